"""Online OSV API client for vuln-tree."""

import asyncio
import ssl
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp
import certifi
from aiohttp import ClientTimeout

from ..core.exceptions import VulnerabilityLookupError
from ..core.records import OSVPage, ParseFailure, parse_osv_response
from ..core.sources import VulnerabilitySource
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor, benchmark

NPM_ECOSYSTEM = "npm"


@dataclass
class OSVQuery:
    """Represents an OSV API query."""

    package_name: str
    version: str
    ecosystem: str = NPM_ECOSYSTEM
    page_token: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert query to dictionary for API request.

        Returns:
            Dictionary representation of the query
        """
        query: Dict[str, Any] = {
            "package": {"name": self.package_name, "ecosystem": self.ecosystem},
            "version": self.version,
        }
        if self.page_token:
            query["page_token"] = self.page_token
        return query


class OSVOnlineClient(VulnerabilitySource):
    """Async client for the OSV.dev API."""

    BASE_URL = "https://api.osv.dev"
    TIMEOUT = ClientTimeout(total=30)
    MAX_PAGES = 10

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        rate_limit_delay: float = 0.0,
        ecosystem: str = NPM_ECOSYSTEM,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        """Initialize the OSV online client.

        Args:
            base_url: API URL, defaults to the public OSV.dev API
            session: Optional aiohttp session for connection reuse
            timeout: Optional per-request timeout in seconds
            rate_limit_delay: Delay before each request, in seconds
            ecosystem: OSV ecosystem queried for every package
            performance_monitor: Optional shared performance monitor
        """
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.ecosystem = ecosystem
        self.logger = get_logger("OSVOnlineClient")
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self._session = session
        self._owns_session = session is None
        self._timeout = ClientTimeout(total=timeout) if timeout else self.TIMEOUT
        self._rate_limit_delay = rate_limit_delay
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def __aenter__(self) -> "OSVOnlineClient":
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
    async def fetch_vulnerabilities(self, name: str, version: str) -> List[Dict[str, Any]]:
        """Query every vulnerability affecting ``name@version``.

        Follows ``next_page_token`` pagination up to ``MAX_PAGES`` pages.

        Args:
            name: Package name
            version: Exact package version

        Returns:
            Raw vulnerability records

        Raises:
            VulnerabilityLookupError: On transport errors, error statuses or malformed payloads
        """
        with self.performance_monitor.measure("fetch_vulnerabilities"):
            query = OSVQuery(package_name=name, version=version, ecosystem=self.ecosystem)
            records: List[Dict[str, Any]] = []

            for _ in range(self.MAX_PAGES):
                page = await self.query_page(query)
                records.extend(page.vulns)
                if not page.next_page_token:
                    break
                query.page_token = page.next_page_token
            else:
                self.logger.warning(f"Stopped paging OSV results for {name}@{version} after {self.MAX_PAGES} pages")

            return records

    async def query_page(self, query: OSVQuery) -> OSVPage:
        """Send one ``/v1/query`` request.

        Args:
            query: OSV query object

        Returns:
            One page of results; an unknown package yields an empty page
        """
        url = f"{self.base_url}/v1/query"
        session = self._get_session()

        if self._rate_limit_delay:
            await asyncio.sleep(self._rate_limit_delay)

        try:
            async with session.post(url, json=query.to_dict()) as response:
                if response.status == 404:
                    return OSVPage()
                if response.status != 200:
                    error_text = await response.text()
                    self.logger.error(f"OSV API error: {response.status} - {error_text[:200]}")
                    raise VulnerabilityLookupError(
                        f"OSV returned HTTP {response.status} for {query.package_name}@{query.version}",
                        status_code=response.status,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise VulnerabilityLookupError(
                f"OSV request for {query.package_name}@{query.version} failed: {e}"
            ) from e

        result = parse_osv_response(data)
        if isinstance(result, ParseFailure):
            raise VulnerabilityLookupError(f"Malformed OSV response: {result.reason}")
        return result.value

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
        """Test connection to the OSV API.

        Returns:
            True if connection successful
        """
        try:
            await self.query_page(OSVQuery(package_name="lodash", version="4.17.20"))
            return True
        except VulnerabilityLookupError as e:
            self.logger.error(f"Connection test failed: {e}")
            return False
