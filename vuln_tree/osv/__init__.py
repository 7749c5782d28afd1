"""OSV (Open Source Vulnerabilities) data clients for vuln-tree."""

from ..core.sources import VulnerabilitySource
from .online import OSVOnlineClient, OSVQuery
from .offline import OSVOfflineClient

__all__ = [
    "VulnerabilitySource",
    "OSVOnlineClient",
    "OSVQuery",
    "OSVOfflineClient",
]
