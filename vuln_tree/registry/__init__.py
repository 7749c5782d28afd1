"""Package metadata sources for vuln-tree."""

from ..core.sources import MetadataSource
from .online import NpmRegistryClient
from .offline import LocalRegistrySource

__all__ = [
    "MetadataSource",
    "NpmRegistryClient",
    "LocalRegistrySource",
]
