"""Timing utilities for vuln-tree."""

import functools
import inspect
import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, TypeVar

from rich.console import Console
from rich.table import Table

F = TypeVar('F', bound=Callable[..., Any])

BENCHMARK_ENV_VAR = "VULN_TREE_VERBOSE_BENCHMARK"


@dataclass
class PerformanceMetrics:
    """Timing of one measured operation."""

    name: str
    execution_time: float
    calls: int = 1


class PerformanceMonitor:
    """Collects wall-clock timings of named operations."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.metrics: Dict[str, PerformanceMetrics] = {}
        self.console = Console()

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Context manager measuring the wall-clock time of a block.

        Repeated measurements of the same name are accumulated.

        Args:
            name: Name of the operation being measured
        """
        if not self.enabled:
            yield
            return

        start_time = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start_time
            metric = self.metrics.get(name)
            if metric is None:
                self.metrics[name] = PerformanceMetrics(name=name, execution_time=elapsed)
            else:
                metric.execution_time += elapsed
                metric.calls += 1

    def get_summary(self) -> Dict[str, Any]:
        """Get performance summary.

        Returns:
            Dictionary with performance summary
        """
        if not self.metrics:
            return {}

        metrics: List[PerformanceMetrics] = list(self.metrics.values())
        total_time = sum(m.execution_time for m in metrics)
        total_calls = sum(m.calls for m in metrics)

        return {
            "total_executions": total_calls,
            "total_time": total_time,
            "average_time": total_time / total_calls,
            "metrics": metrics,
        }

    def print_summary(self) -> None:
        """Print performance summary to console."""
        summary = self.get_summary()
        if not summary:
            return

        table = Table(title="Performance Summary")
        table.add_column("Operation", style="cyan")
        table.add_column("Calls", style="green", justify="right")
        table.add_column("Time", style="green", justify="right")

        for metric in summary["metrics"]:
            table.add_row(metric.name, str(metric.calls), f"{metric.execution_time:.4f}s")
        table.add_row("Total", str(summary["total_executions"]), f"{summary['total_time']:.4f}s", style="bold")

        self.console.print(table)


def _report(name: str, elapsed: float) -> None:
    if os.environ.get(BENCHMARK_ENV_VAR):
        logging.getLogger("vuln_tree.Performance").info(f"{name} took {elapsed:.4f} seconds")


def benchmark(func: F) -> F:
    """Benchmark decorator for plain and coroutine functions.

    Timings are only logged when ``VULN_TREE_VERBOSE_BENCHMARK`` is set.

    Args:
        func: Function to benchmark

    Returns:
        Wrapped function with timing
    """
    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _report(func.__name__, time.perf_counter() - start_time)
        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            _report(func.__name__, time.perf_counter() - start_time)
    return wrapper  # type: ignore[return-value]
