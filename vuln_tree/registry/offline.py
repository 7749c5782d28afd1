"""Offline package metadata read from a directory of packuments."""

import json
from pathlib import Path
from typing import Dict, List

from ..core.exceptions import PackageNotFoundError, RegistryUnavailableError
from ..core.models import PackageMetadata
from ..core.records import ParseFailure, parse_packument
from ..core.sources import MetadataSource
from ..utils.logging import get_logger


class LocalRegistrySource(MetadataSource):
    """Serve packuments stored as ``<root>/<name>.json``.

    Scoped packages live in a scope directory: ``<root>/@scope/name.json``.
    """

    def __init__(self, root: Path) -> None:
        """Initialize the local registry.

        Args:
            root: Directory holding the packument files
        """
        if not root.is_dir():
            raise ValueError(f"Registry directory does not exist: {root}")
        self.root = root
        self.logger = get_logger("LocalRegistrySource")
        self._cache: Dict[str, PackageMetadata] = {}

    def path_for(self, name: str) -> Path:
        """Path of the packument file of a package."""
        return self.root.joinpath(*name.split("/")).with_name(f"{name.split('/')[-1]}.json")

    async def fetch_package(self, name: str) -> PackageMetadata:
        """Load the packument of a package from disk.

        Raises:
            PackageNotFoundError: If no packument file exists
            RegistryUnavailableError: If the file cannot be read or parsed
        """
        if name in self._cache:
            return self._cache[name]

        path = self.path_for(name)
        if not path.is_file():
            raise PackageNotFoundError(f"No packument for {name} in {self.root}", package=name)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise RegistryUnavailableError(f"Failed to read packument {path}: {e}", package=name) from e

        result = parse_packument(name, data)
        if isinstance(result, ParseFailure):
            raise RegistryUnavailableError(f"Malformed packument {path}: {result.reason}", package=name)

        self._cache[name] = result.value
        return result.value

    def list_packages(self) -> List[str]:
        """List the package names available in the directory."""
        names = []
        for path in sorted(self.root.rglob("*.json")):
            relative = path.relative_to(self.root).with_suffix("")
            names.append("/".join(relative.parts))
        return names
