"""Online npm registry client for vuln-tree."""

import asyncio
import ssl
from typing import Any, Dict, Optional

import aiohttp
import certifi
from aiohttp import ClientTimeout

from ..core.exceptions import PackageNotFoundError, RegistryUnavailableError
from ..core.models import PackageMetadata
from ..core.records import ParseFailure, parse_packument
from ..core.sources import MetadataSource
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor, benchmark


def encode_package_name(name: str) -> str:
    """Encode a package name for a registry URL (``@scope/pkg`` -> ``@scope%2Fpkg``)."""
    return name.replace("/", "%2F")


class NpmRegistryClient(MetadataSource):
    """Async client for the npm registry."""

    BASE_URL = "https://registry.npmjs.org"
    TIMEOUT = ClientTimeout(total=30)

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            base_url: Registry URL, defaults to the public npm registry
            session: Optional aiohttp session for connection reuse
            timeout: Optional per-request timeout in seconds
            performance_monitor: Optional shared performance monitor
        """
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.logger = get_logger("NpmRegistryClient")
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self._session = session
        self._owns_session = session is None
        self._timeout = ClientTimeout(total=timeout) if timeout else self.TIMEOUT
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def __aenter__(self) -> "NpmRegistryClient":
        """Async context manager entry."""
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    @benchmark
    async def fetch_package(self, name: str) -> PackageMetadata:
        """Fetch the packument of a package.

        Args:
            name: Package name

        Returns:
            Parsed package metadata

        Raises:
            PackageNotFoundError: If the registry returns 404
            RegistryUnavailableError: On transport errors, other statuses or malformed payloads
        """
        with self.performance_monitor.measure("fetch_package"):
            data = await self._get_json(name)

        result = parse_packument(name, data)
        if isinstance(result, ParseFailure):
            raise RegistryUnavailableError(f"Malformed registry response for {name}: {result.reason}", package=name)
        return result.value

    async def _get_json(self, name: str) -> Any:
        url = f"{self.base_url}/{encode_package_name(name)}"
        session = self._get_session()

        try:
            async with session.get(url, headers={"Accept": "application/json"}) as response:
                if response.status == 404:
                    raise PackageNotFoundError(f"Package not found in registry: {name}", package=name)
                if response.status != 200:
                    error_text = await response.text()
                    self.logger.error(f"Registry error for {name}: {response.status} - {error_text[:200]}")
                    raise RegistryUnavailableError(
                        f"Registry returned HTTP {response.status} for {name}", package=name
                    )
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise RegistryUnavailableError(f"Registry request for {name} failed: {e}", package=name) from e

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if not self._session or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=self._ssl_context)
            self._session = aiohttp.ClientSession(timeout=self._timeout, connector=connector)
            self._owns_session = True
        return self._session

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get performance summary."""
        return self.performance_monitor.get_summary()

    async def test_connection(self) -> bool:
        """Test connection to the registry.

        Returns:
            True if a well-known package could be fetched
        """
        try:
            await self.fetch_package("npm")
            return True
        except (PackageNotFoundError, RegistryUnavailableError) as e:
            self.logger.error(f"Registry connection test failed: {e}")
            return False
