"""vuln-tree - Resolve an npm package's dependency tree and report its known vulnerabilities."""

__version__ = "0.1.0"
__author__ = "vuln-tree Team"

from .core import (
    DependencyTreeWalker,
    VulnerabilityQuerier,
    VulnerabilityTreeAnalyzer,
    VulnerabilityTreeResult,
    resolve_tree,
    resolve_version,
)
from .config import AnalysisConfig
from .registry import LocalRegistrySource, NpmRegistryClient
from .osv import OSVOfflineClient, OSVOnlineClient
from .runner import analyze_vulnerability_tree
from .output.formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "AnalysisConfig",
    "DependencyTreeWalker",
    "VulnerabilityQuerier",
    "VulnerabilityTreeAnalyzer",
    "VulnerabilityTreeResult",
    "resolve_tree",
    "resolve_version",
    "analyze_vulnerability_tree",
    "NpmRegistryClient",
    "LocalRegistrySource",
    "OSVOnlineClient",
    "OSVOfflineClient",
    "ConsoleFormatter",
    "JSONFormatter",
]
