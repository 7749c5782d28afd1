"""Dependency resolution and vulnerability aggregation for vuln-tree."""

from .exceptions import (
    InvalidPackageError,
    MetadataError,
    PackageNotFoundError,
    RegistryUnavailableError,
    RootResolutionError,
    VulnerabilityLookupError,
    VulnTreeError,
)
from .severity import Severity, SeverityCounts
from .models import (
    TARGET_PLATFORM,
    DependencyDepth,
    DependencyNode,
    PackageMetadata,
    PackageVulnerabilityInfo,
    ResolvedTree,
    TargetPlatform,
    VersionManifest,
    VulnerabilitySummary,
    VulnerabilityTreeResult,
)
from .platform import matches_platform
from .resolver import resolve_version
from .sources import MetadataSource, VulnerabilitySource
from .walker import DependencyTreeWalker, resolve_tree
from .querier import QueryOutcome, VulnerabilityQuerier
from .analyzer import VulnerabilityTreeAnalyzer, build_tree_result

__all__ = [
    "VulnTreeError",
    "InvalidPackageError",
    "RootResolutionError",
    "MetadataError",
    "PackageNotFoundError",
    "RegistryUnavailableError",
    "VulnerabilityLookupError",
    "Severity",
    "SeverityCounts",
    "TARGET_PLATFORM",
    "TargetPlatform",
    "VersionManifest",
    "PackageMetadata",
    "DependencyDepth",
    "DependencyNode",
    "ResolvedTree",
    "VulnerabilitySummary",
    "PackageVulnerabilityInfo",
    "VulnerabilityTreeResult",
    "matches_platform",
    "resolve_version",
    "MetadataSource",
    "VulnerabilitySource",
    "DependencyTreeWalker",
    "resolve_tree",
    "QueryOutcome",
    "VulnerabilityQuerier",
    "VulnerabilityTreeAnalyzer",
    "build_tree_result",
]
