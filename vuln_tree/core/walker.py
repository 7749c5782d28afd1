"""Dependency graph walker.

The walk is breadth-first and level-synchronous: every package needed by a
level is fetched concurrently, then the level's edges are processed in
declaration order by this coroutine alone. Discovery order, and therefore the
recorded depth and path of each node, does not depend on which fetch finishes
first.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

from ..utils.logging import get_logger
from .concurrency import SKIPPED, gather_bounded
from .exceptions import InvalidPackageError, RootResolutionError
from .models import (
    TARGET_PLATFORM,
    DependencyDepth,
    DependencyNode,
    Identity,
    PackageMetadata,
    ResolvedTree,
    TargetPlatform,
    VersionManifest,
)
from .platform import matches_platform
from .resolver import NPM_ALIAS_PREFIX, resolve_version, split_alias, validate_package_name
from .sources import MetadataSource

DEFAULT_METADATA_CONCURRENCY = 10

_Frontier = List[Tuple[DependencyNode, VersionManifest]]


def resolve_spec(spec: str, package: PackageMetadata) -> Optional[str]:
    """Resolve a specifier against a package, honouring dist-tags.

    Args:
        spec: Version specifier, range or dist-tag
        package: Package metadata

    Returns:
        Resolved version or None
    """
    tagged = package.dist_tags.get(spec.strip()) if isinstance(spec, str) else None
    if tagged is not None and tagged in package.versions:
        return tagged
    return resolve_version(spec, package.version_list)


def edge_target(name: str, spec: str) -> Optional[Tuple[str, str]]:
    """Return the package an edge installs and the specifier to resolve for it.

    An ``npm:<target>@<spec>`` alias installs ``target`` under the key
    ``name``, so the target is fetched, recorded and queried. Malformed
    aliases and invalid target names give None.
    """
    if not isinstance(spec, str) or not spec.strip().startswith(NPM_ALIAS_PREFIX):
        return name, spec

    alias = split_alias(spec.strip())
    if alias is None:
        return None
    try:
        validate_package_name(alias[0])
    except InvalidPackageError:
        return None
    return alias


class DependencyTreeWalker:
    """Resolve the dependency graph of a package for a target platform."""

    def __init__(
        self,
        source: MetadataSource,
        platform: TargetPlatform = TARGET_PLATFORM,
        concurrency: int = DEFAULT_METADATA_CONCURRENCY,
    ) -> None:
        """Initialize the walker.

        Args:
            source: Package metadata source
            platform: Platform dependencies must be installable on
            concurrency: Maximum concurrent metadata fetches
        """
        if concurrency < 1:
            raise ValueError("Metadata concurrency must be at least 1")
        self.source = source
        self.platform = platform
        self.concurrency = concurrency
        self.logger = get_logger("DependencyTreeWalker")

    async def walk(
        self,
        root_name: str,
        root_version: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ResolvedTree:
        """Walk the dependency graph below a root package.

        Args:
            root_name: Root package name
            root_version: Exact version, range or dist-tag of the root
            cancel_event: Once set, no new fetch is started and the partial graph is returned

        Returns:
            Resolved tree containing every distinct node reached

        Raises:
            InvalidPackageError: If the root name is malformed
            RootResolutionError: If the root cannot be fetched or resolved
        """
        validate_package_name(root_name)
        if not isinstance(root_version, str) or not root_version.strip():
            raise RootResolutionError(root_name, str(root_version), "empty version specifier")

        try:
            root_package = await self.source.fetch_package(root_name)
        except Exception as e:
            raise RootResolutionError(root_name, root_version, str(e)) from e

        version = resolve_spec(root_version, root_package)
        if version is None:
            raise RootResolutionError(root_name, root_version, "no published version satisfies the specifier")

        root = DependencyNode(name=root_name, version=version, depth=DependencyDepth.ROOT)
        nodes: Dict[Identity, DependencyNode] = {root.identity: root}
        packages: Dict[str, Optional[PackageMetadata]] = {root_name: root_package}
        frontier: _Frontier = [(root, root_package.versions[version])]
        cancelled = False

        while frontier:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break

            await self._fetch_missing(frontier, packages, cancel_event)
            frontier = self._expand(frontier, packages, nodes)

        if cancelled:
            self.logger.warning(f"Walk of {root.spec} cancelled after {len(nodes)} packages")
        else:
            self.logger.debug(f"Resolved {len(nodes)} packages below {root.spec}")

        return ResolvedTree(root=root, nodes=nodes, cancelled=cancelled)

    async def _fetch_missing(
        self,
        frontier: _Frontier,
        packages: Dict[str, Optional[PackageMetadata]],
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        """Fetch every package referenced by the frontier that is not cached yet."""
        names: List[str] = []
        for _, manifest in frontier:
            for name, spec in manifest.dependencies.items():
                target = edge_target(name, spec)
                if target is None:
                    continue
                if target[0] not in packages and target[0] not in names:
                    names.append(target[0])

        if not names:
            return

        results = await gather_bounded(names, self.source.fetch_package, self.concurrency, cancel_event)
        for name, result in zip(names, results):
            if result is SKIPPED:
                # Not cached, so a later level could still try it; the walk stops anyway
                continue
            if isinstance(result, BaseException):
                self.logger.warning(f"Failed to fetch metadata for {name}: {result}")
                packages[name] = None
            else:
                packages[name] = result

    def _expand(
        self,
        frontier: _Frontier,
        packages: Dict[str, Optional[PackageMetadata]],
        nodes: Dict[Identity, DependencyNode],
    ) -> _Frontier:
        """Process the frontier's edges in order and return the next level."""
        next_frontier: _Frontier = []

        for parent, manifest in frontier:
            for key, declared in manifest.dependencies.items():
                target = edge_target(key, declared)
                if target is None:
                    self.logger.debug(f"Dropping {parent.spec} -> {key}@{declared}: malformed alias")
                    continue

                name, spec = target
                package = packages.get(name)
                if package is None:
                    continue

                version = resolve_spec(spec, package)
                if version is None:
                    self.logger.debug(f"Dropping {parent.spec} -> {name}@{spec}: unresolvable")
                    continue

                child_manifest = package.versions[version]
                if not matches_platform(child_manifest, self.platform):
                    self.logger.debug(f"Dropping {parent.spec} -> {name}@{version}: platform mismatch")
                    continue

                identity = (name, version)
                if identity in nodes:
                    continue

                child = parent.child(name, version)
                nodes[identity] = child
                next_frontier.append((child, child_manifest))

        return next_frontier


async def resolve_tree(
    root_name: str,
    root_version: str,
    platform: TargetPlatform,
    source: MetadataSource,
    concurrency: int = DEFAULT_METADATA_CONCURRENCY,
    cancel_event: Optional[asyncio.Event] = None,
) -> ResolvedTree:
    """Resolve the dependency graph of ``root_name@root_version``.

    Args:
        root_name: Root package name
        root_version: Root version specifier
        platform: Target platform
        source: Package metadata source
        concurrency: Maximum concurrent metadata fetches
        cancel_event: Optional cancellation signal

    Returns:
        Resolved tree
    """
    walker = DependencyTreeWalker(source, platform=platform, concurrency=concurrency)
    return await walker.walk(root_name, root_version, cancel_event=cancel_event)
