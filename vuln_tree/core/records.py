"""Validation of raw payloads returned by the registry and the vulnerability database.

Every function returns a tagged result instead of trusting the payload shape:
``ParseSuccess`` carries the parsed value, ``ParseFailure`` the reason.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union

from .models import PackageMetadata, VersionManifest, VulnerabilitySummary
from .severity import severity_from_record

T = TypeVar("T")

OSV_VULNERABILITY_URL = "https://osv.dev/vulnerability/{id}"
SUMMARY_FALLBACK_LENGTH = 100


@dataclass(frozen=True)
class ParseSuccess(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ParseFailure:
    reason: str

    @property
    def ok(self) -> bool:
        return False


ParseResult = Union[ParseSuccess[T], ParseFailure]


@dataclass(frozen=True)
class OSVPage:
    """One page of an OSV query response."""

    vulns: List[Dict[str, Any]] = field(default_factory=list)
    next_page_token: Optional[str] = None


def _string_map(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        return {}
    return {key: value for key, value in raw.items() if isinstance(key, str) and isinstance(value, str)}


def _constraint_axis(raw: Any) -> Tuple[str, ...]:
    if isinstance(raw, str):
        return (raw,) if raw else ()
    if isinstance(raw, list):
        return tuple(value for value in raw if isinstance(value, str) and value)
    return ()


def parse_version_manifest(version: str, raw: Any) -> ParseResult[VersionManifest]:
    """Validate one entry of a packument's ``versions`` object.

    Args:
        version: Version key of the entry
        raw: Raw manifest payload

    Returns:
        Parsed manifest or failure
    """
    if not isinstance(raw, dict):
        return ParseFailure(f"manifest for {version} is not an object")

    declared = raw.get("version", version)
    if not isinstance(declared, str) or not declared:
        return ParseFailure(f"manifest for {version} has no valid version field")

    dependencies = _string_map(raw.get("dependencies"))
    dependencies.update(_string_map(raw.get("optionalDependencies")))

    return ParseSuccess(VersionManifest(
        version=version,
        dependencies=dependencies,
        os=_constraint_axis(raw.get("os")),
        cpu=_constraint_axis(raw.get("cpu")),
        libc=_constraint_axis(raw.get("libc")),
    ))


def parse_packument(name: str, raw: Any) -> ParseResult[PackageMetadata]:
    """Validate a full registry document for a package.

    Invalid version entries are skipped rather than failing the document.

    Args:
        name: Requested package name
        raw: Raw packument payload

    Returns:
        Parsed package metadata or failure
    """
    if not isinstance(raw, dict):
        return ParseFailure(f"packument for {name} is not an object")

    raw_versions = raw.get("versions")
    if not isinstance(raw_versions, dict):
        return ParseFailure(f"packument for {name} has no versions object")

    versions = {}
    for version, raw_manifest in raw_versions.items():
        if not isinstance(version, str):
            continue
        result = parse_version_manifest(version, raw_manifest)
        if isinstance(result, ParseSuccess):
            versions[version] = result.value

    return ParseSuccess(PackageMetadata(
        name=name,
        versions=versions,
        dist_tags=_string_map(raw.get("dist-tags")),
    ))


def parse_osv_response(raw: Any) -> ParseResult[OSVPage]:
    """Validate an OSV ``/v1/query`` response body.

    Args:
        raw: Decoded JSON body

    Returns:
        Parsed page or failure
    """
    if not isinstance(raw, dict):
        return ParseFailure("OSV response is not an object")

    vulns = raw.get("vulns", [])
    if vulns is None:
        vulns = []
    if not isinstance(vulns, list):
        return ParseFailure("OSV response field 'vulns' is not a list")

    token = raw.get("next_page_token")
    if not isinstance(token, str) or not token:
        token = None

    return ParseSuccess(OSVPage(vulns=vulns, next_page_token=token))


def _summary_text(raw: Dict[str, Any]) -> str:
    summary = raw.get("summary")
    if isinstance(summary, str) and summary.strip():
        return summary.strip()

    details = raw.get("details")
    if isinstance(details, str) and details.strip():
        details = details.strip()
        if len(details) > SUMMARY_FALLBACK_LENGTH:
            return f"{details[:SUMMARY_FALLBACK_LENGTH]}..."
        return details

    return "No summary available"


def parse_osv_vulnerability(raw: Any) -> ParseResult[VulnerabilitySummary]:
    """Map a raw OSV vulnerability record to a summary.

    Args:
        raw: Raw vulnerability record

    Returns:
        Vulnerability summary or failure
    """
    if not isinstance(raw, dict):
        return ParseFailure("vulnerability record is not an object")

    vuln_id = raw.get("id")
    if not isinstance(vuln_id, str) or not vuln_id.strip():
        return ParseFailure("vulnerability record has no id")
    vuln_id = vuln_id.strip()

    aliases = raw.get("aliases")
    if not isinstance(aliases, list):
        aliases = []

    return ParseSuccess(VulnerabilitySummary(
        id=vuln_id,
        summary=_summary_text(raw),
        severity=severity_from_record(raw),
        aliases=tuple(alias for alias in aliases if isinstance(alias, str)),
        url=OSV_VULNERABILITY_URL.format(id=vuln_id),
    ))
