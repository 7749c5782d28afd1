"""Vulnerability lookups for resolved dependency nodes."""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..utils.logging import get_logger
from .concurrency import SKIPPED, gather_bounded
from .exceptions import VulnerabilityLookupError
from .models import DependencyNode, Identity, VulnerabilitySummary
from .records import ParseFailure, parse_osv_vulnerability
from .sources import VulnerabilitySource

DEFAULT_QUERY_CONCURRENCY = 10


@dataclass
class QueryOutcome:
    """Vulnerabilities found per node plus lookup bookkeeping."""

    vulnerabilities: Dict[Identity, List[VulnerabilitySummary]] = field(default_factory=dict)
    failed_queries: int = 0
    skipped_queries: int = 0

    def for_node(self, node: DependencyNode) -> List[VulnerabilitySummary]:
        return self.vulnerabilities.get(node.identity, [])


class VulnerabilityQuerier:
    """Query a vulnerability source for every node with bounded concurrency."""

    def __init__(self, source: VulnerabilitySource, concurrency: int = DEFAULT_QUERY_CONCURRENCY) -> None:
        """Initialize the querier.

        Args:
            source: Vulnerability source
            concurrency: Maximum concurrent lookups
        """
        if concurrency < 1:
            raise ValueError("Query concurrency must be at least 1")
        self.source = source
        self.concurrency = concurrency
        self.logger = get_logger("VulnerabilityQuerier")

    async def query(
        self,
        nodes: Iterable[DependencyNode],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> QueryOutcome:
        """Look up vulnerabilities for every distinct node.

        A failed lookup never aborts the others: it is counted in
        ``failed_queries`` and the node gets no vulnerabilities.

        Args:
            nodes: Resolved nodes
            cancel_event: Once set, lookups that have not started are skipped

        Returns:
            Query outcome
        """
        unique: Dict[Identity, DependencyNode] = {}
        for node in nodes:
            unique.setdefault(node.identity, node)
        targets = list(unique.values())

        outcome = QueryOutcome()
        results = await gather_bounded(targets, self._lookup, self.concurrency, cancel_event)

        for node, result in zip(targets, results):
            if result is SKIPPED:
                outcome.skipped_queries += 1
                outcome.vulnerabilities[node.identity] = []
            elif isinstance(result, BaseException):
                self.logger.warning(f"Vulnerability lookup failed for {node.spec}: {result}")
                outcome.failed_queries += 1
                outcome.vulnerabilities[node.identity] = []
            else:
                outcome.vulnerabilities[node.identity] = result

        if outcome.skipped_queries:
            self.logger.warning(f"Skipped {outcome.skipped_queries} vulnerability lookups after cancellation")
        self.logger.debug(
            f"Queried {len(targets)} packages, {outcome.failed_queries} failed, "
            f"{sum(1 for vulns in outcome.vulnerabilities.values() if vulns)} vulnerable"
        )
        return outcome

    async def _lookup(self, node: DependencyNode) -> List[VulnerabilitySummary]:
        records = await self.source.fetch_vulnerabilities(node.name, node.version)
        if not isinstance(records, list):
            raise VulnerabilityLookupError(f"Malformed vulnerability payload for {node.spec}")

        summaries = []
        seen = set()
        for record in records:
            result = parse_osv_vulnerability(record)
            if isinstance(result, ParseFailure):
                self.logger.warning(f"Skipping vulnerability record for {node.spec}: {result.reason}")
                continue
            if result.value.id in seen:
                continue
            seen.add(result.value.id)
            summaries.append(result.value)
        return summaries
