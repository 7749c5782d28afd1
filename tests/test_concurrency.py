"""Tests for bounded coroutine fan-out."""

import asyncio

import pytest

from vuln_tree.core.concurrency import SKIPPED, gather_bounded


class TestGatherBounded:
    """Test gather_bounded."""

    @pytest.mark.asyncio
    async def test_results_keep_item_order(self):
        async def worker(item):
            await asyncio.sleep(0.01 * (5 - item))
            return item * 2

        assert await gather_bounded(range(5), worker, limit=3) == [0, 2, 4, 6, 8]

    @pytest.mark.asyncio
    async def test_limit_is_never_exceeded(self):
        state = {"in_flight": 0, "peak": 0}

        async def worker(item):
            state["in_flight"] += 1
            state["peak"] = max(state["peak"], state["in_flight"])
            await asyncio.sleep(0.005)
            state["in_flight"] -= 1
            return item

        await gather_bounded(range(20), worker, limit=4)
        assert 1 <= state["peak"] <= 4

    @pytest.mark.asyncio
    async def test_exceptions_are_returned(self):
        async def worker(item):
            if item == 1:
                raise RuntimeError("boom")
            return item

        results = await gather_bounded([0, 1, 2], worker, limit=2)
        assert results[0] == 0
        assert isinstance(results[1], RuntimeError)
        assert results[2] == 2

    @pytest.mark.asyncio
    async def test_cancellation_skips_pending_items(self):
        cancel_event = asyncio.Event()
        started = []

        async def worker(item):
            started.append(item)
            cancel_event.set()
            await asyncio.sleep(0)
            return item

        results = await gather_bounded(range(5), worker, limit=1, cancel_event=cancel_event)
        assert results[0] == 0
        assert results[1:] == [SKIPPED] * 4
        assert started == [0]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        async def worker(item):
            return item

        assert await gather_bounded([], worker, limit=2) == []

    @pytest.mark.asyncio
    async def test_invalid_limit(self):
        async def worker(item):
            return item

        with pytest.raises(ValueError):
            await gather_bounded([1], worker, limit=0)
