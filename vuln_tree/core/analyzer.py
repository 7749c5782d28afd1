"""Vulnerability tree analysis: resolve, query, aggregate."""

import asyncio
from typing import Optional

from ..config import AnalysisConfig
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor
from .models import PackageVulnerabilityInfo, ResolvedTree, VulnerabilityTreeResult
from .querier import QueryOutcome, VulnerabilityQuerier
from .severity import aggregate_counts, count_severities
from .sources import MetadataSource, VulnerabilitySource
from .walker import DependencyTreeWalker


def build_tree_result(tree: ResolvedTree, outcome: QueryOutcome, partial: bool = False) -> VulnerabilityTreeResult:
    """Combine a resolved tree and its lookup outcome into the final result.

    Vulnerable packages are ordered by depth class, then by discovery order.

    Args:
        tree: Resolved dependency tree
        outcome: Vulnerability lookups for the tree's nodes
        partial: Whether the analysis was cut short

    Returns:
        Vulnerability tree result
    """
    vulnerable = []
    for node in tree.nodes.values():
        vulnerabilities = outcome.for_node(node)
        if not vulnerabilities:
            continue
        vulnerable.append(PackageVulnerabilityInfo(
            name=node.name,
            version=node.version,
            depth=node.depth,
            path=node.path,
            vulnerabilities=tuple(vulnerabilities),
            counts=count_severities(vulnerabilities),
        ))

    # sorted() is stable, so discovery order is kept within a depth class
    vulnerable = sorted(vulnerable, key=lambda info: info.depth.order)

    return VulnerabilityTreeResult(
        package=tree.root.name,
        version=tree.root.version,
        vulnerable_packages=tuple(vulnerable),
        total_packages=len(tree.nodes),
        failed_queries=outcome.failed_queries,
        total_counts=aggregate_counts(vulnerable),
        partial=partial or tree.cancelled or outcome.skipped_queries > 0,
    )


class VulnerabilityTreeAnalyzer:
    """Resolve a package's dependency tree and collect its vulnerabilities."""

    def __init__(
        self,
        metadata_source: MetadataSource,
        vulnerability_source: VulnerabilitySource,
        config: Optional[AnalysisConfig] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            metadata_source: Package metadata source
            vulnerability_source: Vulnerability source
            config: Analysis configuration, defaults to ``AnalysisConfig()``
            performance_monitor: Optional monitor receiving stage timings
        """
        self.config = config or AnalysisConfig()
        self.walker = DependencyTreeWalker(
            metadata_source,
            platform=self.config.platform,
            concurrency=self.config.metadata_concurrency,
        )
        self.querier = VulnerabilityQuerier(vulnerability_source, concurrency=self.config.query_concurrency)
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self.logger = get_logger("VulnerabilityTreeAnalyzer")

    async def analyze(
        self,
        name: str,
        version: str = "latest",
        cancel_event: Optional[asyncio.Event] = None,
    ) -> VulnerabilityTreeResult:
        """Analyze ``name@version``.

        When the cancel event is set, or ``config.timeout`` elapses, no new
        fetch is started and the result accumulated so far is returned with
        ``partial=True``.

        Args:
            name: Root package name
            version: Root version, range or dist-tag
            cancel_event: Optional external cancellation signal

        Returns:
            Vulnerability tree result

        Raises:
            InvalidPackageError: If the root name is malformed
            RootResolutionError: If the root cannot be resolved
        """
        if cancel_event is None:
            cancel_event = asyncio.Event()

        timer = None
        if self.config.timeout is not None:
            timer = asyncio.get_running_loop().call_later(self.config.timeout, cancel_event.set)

        try:
            with self.performance_monitor.measure("resolve_tree"):
                tree = await self.walker.walk(name, version, cancel_event=cancel_event)
            with self.performance_monitor.measure("query_vulnerabilities"):
                outcome = await self.querier.query(tree.nodes.values(), cancel_event=cancel_event)
        finally:
            if timer is not None:
                timer.cancel()

        result = build_tree_result(tree, outcome, partial=cancel_event.is_set())
        self.logger.info(
            f"{result.package}@{result.version}: {result.total_packages} packages, "
            f"{len(result.vulnerable_packages)} vulnerable, {result.total_counts.total} vulnerabilities, "
            f"{result.failed_queries} failed lookups"
        )
        return result
