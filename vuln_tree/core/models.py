"""Data models shared by the resolution and vulnerability analysis engine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .severity import Severity, SeverityCounts, highest_severity

Identity = Tuple[str, str]


@dataclass(frozen=True)
class TargetPlatform:
    """Runtime platform a dependency graph is resolved for."""

    os: str
    cpu: str
    libc: str

    def to_dict(self) -> Dict[str, str]:
        return {"os": self.os, "cpu": self.cpu, "libc": self.libc}


TARGET_PLATFORM = TargetPlatform(os="linux", cpu="x64", libc="glibc")


@dataclass(frozen=True)
class VersionManifest:
    """One published version of a package.

    ``dependencies`` already merges regular and optional dependencies, since
    both are installed when the platform allows it.
    """

    version: str
    dependencies: Mapping[str, str] = field(default_factory=dict)
    os: Tuple[str, ...] = ()
    cpu: Tuple[str, ...] = ()
    libc: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PackageMetadata:
    """All published versions of a package plus its dist-tags."""

    name: str
    versions: Mapping[str, VersionManifest] = field(default_factory=dict)
    dist_tags: Mapping[str, str] = field(default_factory=dict)

    @property
    def version_list(self) -> List[str]:
        return list(self.versions)


class DependencyDepth(str, Enum):
    """Distance class of a node from the analysis root."""

    ROOT = "root"
    DIRECT = "direct"
    TRANSITIVE = "transitive"

    @property
    def order(self) -> int:
        return _DEPTH_ORDER[self]


_DEPTH_ORDER = {
    DependencyDepth.ROOT: 0,
    DependencyDepth.DIRECT: 1,
    DependencyDepth.TRANSITIVE: 2,
}


@dataclass(frozen=True)
class DependencyNode:
    """A resolved ``package@version`` reached while walking the graph."""

    name: str
    version: str
    depth: DependencyDepth
    path: Tuple[str, ...] = ()

    @property
    def identity(self) -> Identity:
        return (self.name, self.version)

    @property
    def spec(self) -> str:
        return f"{self.name}@{self.version}"

    def child(self, name: str, version: str) -> "DependencyNode":
        """Create the node discovered through an edge leaving this node.

        Args:
            name: Child package name
            version: Resolved child version

        Returns:
            New node one level deeper than this one
        """
        depth = DependencyDepth.DIRECT if self.depth is DependencyDepth.ROOT else DependencyDepth.TRANSITIVE
        return DependencyNode(name=name, version=version, depth=depth, path=self.path + (self.spec,))


@dataclass(frozen=True)
class ResolvedTree:
    """Output of a graph walk.

    ``nodes`` is ordered by discovery and contains the root.
    """

    root: DependencyNode
    nodes: Mapping[Identity, DependencyNode]
    cancelled: bool = False

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, identity: object) -> bool:
        return identity in self.nodes


@dataclass(frozen=True)
class VulnerabilitySummary:
    """Display-oriented view of one vulnerability record."""

    id: str
    summary: str
    severity: Severity
    aliases: Tuple[str, ...] = ()
    url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "summary": self.summary,
            "severity": self.severity.value,
            "aliases": list(self.aliases),
            "url": self.url,
        }


@dataclass(frozen=True)
class PackageVulnerabilityInfo:
    """A node of the tree together with the vulnerabilities affecting it."""

    name: str
    version: str
    depth: DependencyDepth
    path: Tuple[str, ...]
    vulnerabilities: Tuple[VulnerabilitySummary, ...]
    counts: SeverityCounts

    @property
    def highest_severity(self) -> Severity:
        return highest_severity(self.counts)


@dataclass(frozen=True)
class VulnerabilityTreeResult:
    """Final result of a vulnerability tree analysis."""

    package: str
    version: str
    vulnerable_packages: Tuple[PackageVulnerabilityInfo, ...]
    total_packages: int
    failed_queries: int
    total_counts: SeverityCounts
    partial: bool = False

    def find(self, name: str, version: Optional[str] = None) -> Optional[PackageVulnerabilityInfo]:
        """Find a vulnerable package by name and optionally version.

        Args:
            name: Package name
            version: Optional exact version

        Returns:
            Matching package info or None
        """
        for info in self.vulnerable_packages:
            if info.name == name and (version is None or info.version == version):
                return info
        return None
