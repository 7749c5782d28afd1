"""Tests for validation of registry and OSV payloads."""

from vuln_tree.core.records import (
    ParseFailure,
    ParseSuccess,
    parse_osv_response,
    parse_osv_vulnerability,
    parse_packument,
    parse_version_manifest,
)
from vuln_tree.core.severity import Severity


class TestParseVersionManifest:
    """Test manifest validation."""

    def test_merges_optional_dependencies(self):
        result = parse_version_manifest("1.0.0", {
            "version": "1.0.0",
            "dependencies": {"a": "^1.0.0"},
            "optionalDependencies": {"b": "^2.0.0"},
        })
        assert isinstance(result, ParseSuccess)
        assert dict(result.value.dependencies) == {"a": "^1.0.0", "b": "^2.0.0"}

    def test_platform_axes_accept_strings_and_lists(self):
        result = parse_version_manifest("1.0.0", {"os": "linux", "cpu": ["x64", 3], "libc": None})
        assert result.ok
        assert result.value.os == ("linux",)
        assert result.value.cpu == ("x64",)
        assert result.value.libc == ()

    def test_non_string_dependency_values_are_dropped(self):
        result = parse_version_manifest("1.0.0", {"dependencies": {"a": "1.0.0", "b": 2}})
        assert dict(result.value.dependencies) == {"a": "1.0.0"}

    def test_rejects_non_objects(self):
        assert isinstance(parse_version_manifest("1.0.0", "nope"), ParseFailure)
        assert not parse_version_manifest("1.0.0", {"version": 5}).ok


class TestParsePackument:
    """Test packument validation."""

    def test_valid_packument(self):
        result = parse_packument("pkg", {
            "versions": {"1.0.0": {"version": "1.0.0"}, "2.0.0": {"version": "2.0.0"}},
            "dist-tags": {"latest": "2.0.0"},
        })
        assert result.ok
        assert result.value.version_list == ["1.0.0", "2.0.0"]
        assert result.value.dist_tags == {"latest": "2.0.0"}

    def test_invalid_versions_are_skipped(self):
        result = parse_packument("pkg", {"versions": {"1.0.0": {}, "2.0.0": []}})
        assert result.value.version_list == ["1.0.0"]

    def test_missing_versions(self):
        result = parse_packument("pkg", {"name": "pkg"})
        assert isinstance(result, ParseFailure)
        assert "versions" in result.reason

    def test_not_an_object(self):
        assert not parse_packument("pkg", ["1.0.0"]).ok


class TestParseOSVResponse:
    """Test OSV query response validation."""

    def test_empty_body(self):
        result = parse_osv_response({})
        assert result.ok
        assert result.value.vulns == []
        assert result.value.next_page_token is None

    def test_page_token(self):
        result = parse_osv_response({"vulns": [{"id": "X"}], "next_page_token": "abc"})
        assert result.value.next_page_token == "abc"
        assert result.value.vulns == [{"id": "X"}]

    def test_vulns_must_be_a_list(self):
        assert not parse_osv_response({"vulns": {"id": "X"}}).ok
        assert not parse_osv_response("[]").ok


class TestParseOSVVulnerability:
    """Test mapping of OSV records to summaries."""

    def test_full_record(self):
        result = parse_osv_vulnerability({
            "id": "GHSA-xxxx",
            "summary": "Prototype pollution",
            "aliases": ["CVE-2020-8203", 7],
            "database_specific": {"severity": "HIGH"},
        })
        assert result.ok
        summary = result.value
        assert summary.id == "GHSA-xxxx"
        assert summary.summary == "Prototype pollution"
        assert summary.aliases == ("CVE-2020-8203",)
        assert summary.severity == Severity.HIGH
        assert summary.url == "https://osv.dev/vulnerability/GHSA-xxxx"

    def test_summary_falls_back_to_details(self):
        details = "x" * 150
        summary = parse_osv_vulnerability({"id": "A", "details": details}).value
        assert summary.summary == "x" * 100 + "..."
        assert parse_osv_vulnerability({"id": "B", "details": "short"}).value.summary == "short"

    def test_summary_placeholder(self):
        summary = parse_osv_vulnerability({"id": "A"}).value
        assert summary.summary == "No summary available"
        assert summary.severity == Severity.UNKNOWN

    def test_missing_id(self):
        assert not parse_osv_vulnerability({"summary": "no id"}).ok
        assert not parse_osv_vulnerability({"id": "  "}).ok
        assert not parse_osv_vulnerability(None).ok
