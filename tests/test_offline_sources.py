"""Tests for the directory-backed registry and OSV database."""

import json

import pytest
import semantic_version

from vuln_tree.core.exceptions import PackageNotFoundError, RegistryUnavailableError
from vuln_tree.osv.offline import OSVOfflineClient, version_in_range
from vuln_tree.registry.offline import LocalRegistrySource


class TestLocalRegistrySource:
    """Test LocalRegistrySource."""

    @pytest.mark.asyncio
    async def test_fetch_package(self, registry_dir):
        source = LocalRegistrySource(registry_dir)
        package = await source.fetch_package("lodash")

        assert package.version_list == ["4.17.19", "4.17.20"]

    @pytest.mark.asyncio
    async def test_scoped_package(self, registry_dir):
        source = LocalRegistrySource(registry_dir)
        package = await source.fetch_package("@scope/util")

        assert source.path_for("@scope/util") == registry_dir / "@scope" / "util.json"
        assert dict(package.versions["1.4.0"].dependencies) == {"fsevents": "^2.0.0"}

    @pytest.mark.asyncio
    async def test_missing_package(self, registry_dir):
        with pytest.raises(PackageNotFoundError):
            await LocalRegistrySource(registry_dir).fetch_package("express")

    @pytest.mark.asyncio
    async def test_malformed_packument(self, registry_dir):
        (registry_dir / "broken.json").write_text("{", encoding="utf-8")
        (registry_dir / "empty.json").write_text(json.dumps({"name": "empty"}), encoding="utf-8")
        source = LocalRegistrySource(registry_dir)

        with pytest.raises(RegistryUnavailableError):
            await source.fetch_package("broken")
        with pytest.raises(RegistryUnavailableError):
            await source.fetch_package("empty")

    @pytest.mark.asyncio
    async def test_versions_helper(self, registry_dir):
        assert await LocalRegistrySource(registry_dir).get_versions("app") == ["1.0.0", "1.1.0-beta.1"]

    def test_list_packages(self, registry_dir):
        assert LocalRegistrySource(registry_dir).list_packages() == ["@scope/util", "app", "fsevents", "lodash"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ValueError):
            LocalRegistrySource(tmp_path / "nowhere")


class TestOSVOfflineClient:
    """Test OSVOfflineClient."""

    @pytest.mark.asyncio
    async def test_affected_version(self, osv_database):
        client = OSVOfflineClient(osv_database)
        records = await client.fetch_vulnerabilities("lodash", "4.17.20")

        assert sorted(record["id"] for record in records) == ["GHSA-29mw-wpgm-hmr9", "GHSA-35jh-r3h4-6jhm"]

    @pytest.mark.asyncio
    async def test_fixed_version(self, osv_database):
        client = OSVOfflineClient(osv_database)

        assert await client.fetch_vulnerabilities("lodash", "4.17.21") == []

    @pytest.mark.asyncio
    async def test_unknown_package(self, osv_database):
        assert await OSVOfflineClient(osv_database).fetch_vulnerabilities("left-pad", "1.3.0") == []

    @pytest.mark.asyncio
    async def test_single_file_with_record_list(self, tmp_path):
        database = tmp_path / "all.json"
        database.write_text(json.dumps([{
            "id": "OSV-1",
            "affected": [{
                "package": {"ecosystem": "npm", "name": "minimist"},
                "ranges": [{"type": "SEMVER", "events": [{"introduced": "1.0.0"}, {"last_affected": "1.2.5"}]}],
            }],
        }]), encoding="utf-8")
        client = OSVOfflineClient(database)

        assert len(await client.fetch_vulnerabilities("minimist", "1.2.5")) == 1
        assert await client.fetch_vulnerabilities("minimist", "1.2.6") == []
        assert await client.fetch_vulnerabilities("minimist", "0.9.0") == []

    @pytest.mark.asyncio
    async def test_other_ecosystems_are_ignored(self, tmp_path):
        (tmp_path / "pypi.json").write_text(json.dumps({
            "id": "PYSEC-1",
            "affected": [{"package": {"ecosystem": "PyPI", "name": "lodash"}, "versions": ["4.17.20"]}],
        }), encoding="utf-8")

        assert await OSVOfflineClient(tmp_path).fetch_vulnerabilities("lodash", "4.17.20") == []

    def test_database_stats(self, osv_database):
        stats = OSVOfflineClient(osv_database).get_database_stats()

        assert stats == {"total_packages": 1, "unique_vulnerabilities": 2}

    def test_missing_database(self, tmp_path):
        with pytest.raises(ValueError):
            OSVOfflineClient(tmp_path / "missing")


class TestVersionInRange:
    """Test OSV range event evaluation."""

    @pytest.mark.parametrize("version,expected", [
        ("0.5.0", False),
        ("1.0.0", True),
        ("1.4.9", True),
        ("1.5.0", False),
        ("2.0.0", True),
        ("2.1.0", True),
        ("2.1.1", False),
    ])
    def test_multiple_intervals(self, version, expected):
        events = [
            {"introduced": "1.0.0"},
            {"fixed": "1.5.0"},
            {"introduced": "2.0.0"},
            {"last_affected": "2.1.0"},
        ]
        assert version_in_range(semantic_version.Version(version), events) is expected

    def test_introduced_zero(self):
        assert version_in_range(semantic_version.Version("0.0.1"), [{"introduced": "0"}])
