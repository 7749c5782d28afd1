"""Tests for the npm registry and OSV API clients over a stub HTTP session."""

from typing import Any, Dict, List, Optional

import aiohttp
import pytest

from vuln_tree.core.exceptions import PackageNotFoundError, RegistryUnavailableError, VulnerabilityLookupError
from vuln_tree.osv.online import OSVOnlineClient, OSVQuery
from vuln_tree.registry.online import NpmRegistryClient, encode_package_name


class StubResponse:
    def __init__(self, status: int = 200, payload: Any = None, error: Optional[Exception] = None) -> None:
        self.status = status
        self.payload = payload
        self.error = error

    async def __aenter__(self) -> "StubResponse":
        if self.error is not None:
            raise self.error
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def json(self, content_type: Optional[str] = None) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def text(self) -> str:
        return str(self.payload)


class StubSession:
    """Records requests and replays queued responses."""

    closed = False

    def __init__(self, responses: List[StubResponse]) -> None:
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> StubResponse:
        self.requests.append({"method": "GET", "url": url, **kwargs})
        return self.responses.pop(0)

    def post(self, url: str, **kwargs: Any) -> StubResponse:
        self.requests.append({"method": "POST", "url": url, **kwargs})
        return self.responses.pop(0)


PACKUMENT = {
    "name": "lodash",
    "dist-tags": {"latest": "4.17.21"},
    "versions": {"4.17.20": {"version": "4.17.20"}, "4.17.21": {"version": "4.17.21"}},
}


class TestNpmRegistryClient:
    """Test NpmRegistryClient."""

    def test_encode_scoped_name(self):
        assert encode_package_name("@babel/core") == "@babel%2Fcore"
        assert encode_package_name("lodash") == "lodash"

    @pytest.mark.asyncio
    async def test_fetch_package(self):
        session = StubSession([StubResponse(payload=PACKUMENT)])
        client = NpmRegistryClient(base_url="https://registry.example/", session=session)

        package = await client.fetch_package("lodash")

        assert package.version_list == ["4.17.20", "4.17.21"]
        assert package.dist_tags["latest"] == "4.17.21"
        assert session.requests[0]["url"] == "https://registry.example/lodash"

    @pytest.mark.asyncio
    async def test_scoped_package_url(self):
        session = StubSession([StubResponse(payload=PACKUMENT)])
        client = NpmRegistryClient(session=session)

        await client.fetch_package("@types/node")

        assert session.requests[0]["url"] == "https://registry.npmjs.org/@types%2Fnode"

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = NpmRegistryClient(session=StubSession([StubResponse(status=404, payload="Not found")]))

        with pytest.raises(PackageNotFoundError):
            await client.fetch_package("does-not-exist")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        StubResponse(status=503, payload="unavailable"),
        StubResponse(payload=ValueError("bad json")),
        StubResponse(payload={"name": "lodash"}),
        StubResponse(error=aiohttp.ClientConnectionError("reset")),
    ])
    async def test_unavailable(self, response):
        client = NpmRegistryClient(session=StubSession([response]))

        with pytest.raises(RegistryUnavailableError):
            await client.fetch_package("lodash")

    @pytest.mark.asyncio
    async def test_get_manifest(self):
        client = NpmRegistryClient(session=StubSession([StubResponse(payload=PACKUMENT)] * 2))

        manifest = await client.get_manifest("lodash", "4.17.20")
        assert manifest.version == "4.17.20"

        with pytest.raises(PackageNotFoundError):
            await client.get_manifest("lodash", "9.9.9")

    @pytest.mark.asyncio
    async def test_connection_check(self):
        ok = NpmRegistryClient(session=StubSession([StubResponse(payload=PACKUMENT)]))
        down = NpmRegistryClient(session=StubSession([StubResponse(status=500, payload="")]))

        assert await ok.test_connection()
        assert not await down.test_connection()


class TestOSVOnlineClient:
    """Test OSVOnlineClient."""

    def test_query_body(self):
        query = OSVQuery(package_name="lodash", version="4.17.20")
        assert query.to_dict() == {"package": {"name": "lodash", "ecosystem": "npm"}, "version": "4.17.20"}

        query.page_token = "next"
        assert query.to_dict()["page_token"] == "next"

    @pytest.mark.asyncio
    async def test_follows_pagination(self):
        session = StubSession([
            StubResponse(payload={"vulns": [{"id": "A"}], "next_page_token": "p2"}),
            StubResponse(payload={"vulns": [{"id": "B"}]}),
        ])
        client = OSVOnlineClient(session=session)

        records = await client.fetch_vulnerabilities("lodash", "4.17.20")

        assert [record["id"] for record in records] == ["A", "B"]
        assert session.requests[0]["url"] == "https://api.osv.dev/v1/query"
        assert "page_token" not in session.requests[0]["json"]
        assert session.requests[1]["json"]["page_token"] == "p2"

    @pytest.mark.asyncio
    async def test_page_limit(self):
        pages = [StubResponse(payload={"vulns": [{"id": str(i)}], "next_page_token": "more"}) for i in range(3)]
        client = OSVOnlineClient(session=StubSession(pages))
        client.MAX_PAGES = 3

        records = await client.fetch_vulnerabilities("lodash", "4.17.20")

        assert len(records) == 3

    @pytest.mark.asyncio
    async def test_empty_and_not_found(self):
        client = OSVOnlineClient(session=StubSession([StubResponse(payload={}), StubResponse(status=404, payload="")]))

        assert await client.fetch_vulnerabilities("left-pad", "1.3.0") == []
        assert await client.fetch_vulnerabilities("left-pad", "1.3.0") == []

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = OSVOnlineClient(session=StubSession([StubResponse(status=500, payload="boom")]))

        with pytest.raises(VulnerabilityLookupError) as exc_info:
            await client.fetch_vulnerabilities("lodash", "4.17.20")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        client = OSVOnlineClient(session=StubSession([StubResponse(payload={"vulns": "nope"})]))

        with pytest.raises(VulnerabilityLookupError):
            await client.fetch_vulnerabilities("lodash", "4.17.20")
