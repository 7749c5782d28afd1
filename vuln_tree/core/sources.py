"""Interfaces of the external collaborators used by the engine."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from .exceptions import PackageNotFoundError
from .models import PackageMetadata, VersionManifest


class MetadataSource(ABC):
    """Supplies published versions and version manifests of packages."""

    @abstractmethod
    async def fetch_package(self, name: str) -> PackageMetadata:
        """Fetch every published version of a package.

        Args:
            name: Package name

        Returns:
            Package metadata

        Raises:
            PackageNotFoundError: If the package does not exist
            RegistryUnavailableError: If the source cannot answer right now
        """
        pass

    async def get_versions(self, name: str) -> List[str]:
        """Get the published version strings of a package."""
        package = await self.fetch_package(name)
        return package.version_list

    async def get_manifest(self, name: str, version: str) -> VersionManifest:
        """Get the manifest of one published version.

        Raises:
            PackageNotFoundError: If the package or version does not exist
        """
        package = await self.fetch_package(name)
        try:
            return package.versions[version]
        except KeyError:
            raise PackageNotFoundError(f"{name}@{version} is not published", package=name) from None


class VulnerabilitySource(ABC):
    """Supplies raw vulnerability records for a package version."""

    @abstractmethod
    async def fetch_vulnerabilities(self, name: str, version: str) -> List[Dict[str, Any]]:
        """Fetch the raw vulnerability records affecting ``name@version``.

        An unknown package yields an empty list.

        Raises:
            VulnerabilityLookupError: If the lookup failed
        """
        pass
