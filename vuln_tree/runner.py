"""Build sources from configuration and run an analysis."""

import asyncio
from contextlib import AsyncExitStack
from typing import Optional, Tuple

from .config import AnalysisConfig
from .core.analyzer import VulnerabilityTreeAnalyzer
from .core.models import VulnerabilityTreeResult
from .core.sources import MetadataSource, VulnerabilitySource
from .osv.offline import OSVOfflineClient
from .osv.online import OSVOnlineClient
from .registry.offline import LocalRegistrySource
from .registry.online import NpmRegistryClient
from .utils.performance import PerformanceMonitor


async def open_sources(
    config: AnalysisConfig,
    stack: AsyncExitStack,
    performance_monitor: Optional[PerformanceMonitor] = None,
) -> Tuple[MetadataSource, VulnerabilitySource]:
    """Create the metadata and vulnerability sources described by a configuration.

    Offline sources are used when ``registry_dir`` / ``database_path`` are set;
    online clients are entered on ``stack`` so their sessions get closed.

    Args:
        config: Analysis configuration
        stack: Exit stack owning the online clients
        performance_monitor: Optional shared performance monitor

    Returns:
        ``(metadata_source, vulnerability_source)``
    """
    metadata_source: MetadataSource
    vulnerability_source: VulnerabilitySource

    if config.registry_dir is not None:
        metadata_source = LocalRegistrySource(config.registry_dir)
    else:
        metadata_source = await stack.enter_async_context(NpmRegistryClient(
            base_url=config.registry_url,
            timeout=config.request_timeout,
            performance_monitor=performance_monitor,
        ))

    if config.database_path is not None:
        vulnerability_source = OSVOfflineClient(config.database_path, performance_monitor=performance_monitor)
    else:
        vulnerability_source = await stack.enter_async_context(OSVOnlineClient(
            base_url=config.osv_url,
            timeout=config.request_timeout,
            rate_limit_delay=config.rate_limit_delay,
            performance_monitor=performance_monitor,
        ))

    return metadata_source, vulnerability_source


async def analyze_vulnerability_tree(
    name: str,
    version: str = "latest",
    config: Optional[AnalysisConfig] = None,
    cancel_event: Optional[asyncio.Event] = None,
    performance_monitor: Optional[PerformanceMonitor] = None,
) -> VulnerabilityTreeResult:
    """Analyze the vulnerability tree of ``name@version``.

    Args:
        name: Root package name
        version: Root version, range or dist-tag
        config: Analysis configuration, defaults to ``AnalysisConfig.from_env()``
        cancel_event: Optional external cancellation signal
        performance_monitor: Optional shared performance monitor

    Returns:
        Vulnerability tree result
    """
    config = config or AnalysisConfig.from_env()
    async with AsyncExitStack() as stack:
        metadata_source, vulnerability_source = await open_sources(config, stack, performance_monitor)
        analyzer = VulnerabilityTreeAnalyzer(
            metadata_source,
            vulnerability_source,
            config=config,
            performance_monitor=performance_monitor,
        )
        return await analyzer.analyze(name, version, cancel_event=cancel_event)
