"""Resolve npm version range specifiers against published versions."""

import re
from typing import Iterable, List, Optional, Tuple

import semantic_version

from .exceptions import InvalidPackageError

NPM_ALIAS_PREFIX = "npm:"

# Sources that are not resolved from the registry version list
_URL_SPEC = re.compile(r"^(?:https?|git|git\+[a-z0-9.+-]+)://", re.IGNORECASE)
_NON_REGISTRY_PREFIXES = (
    "file:",
    "link:",
    "workspace:",
    "github:",
    "gitlab:",
    "bitbucket:",
    "gist:",
    "git@",
)

# Upper case is still served for legacy packages such as JSONStream
_PACKAGE_NAME = re.compile(r"^(?:@[A-Za-z0-9-*~][A-Za-z0-9-*._~]*/)?[A-Za-z0-9-~][A-Za-z0-9-._~]*$")
_MAX_NAME_LENGTH = 214

# npm accepts ">= 1.2.3" and "=v1.2.3"; NpmSpec rejects both
_OPERATOR_GAP = re.compile(r"(<=|>=|<|>|=|~|\^)\s+")
_VERSION_PREFIX = re.compile(r"(^|[\s<>=~^])[vV](?=\d)")


def validate_package_name(name: str) -> str:
    """Validate an npm package name.

    Args:
        name: Package name, optionally scoped

    Returns:
        The name, unchanged

    Raises:
        InvalidPackageError: If the name is not a valid npm package name
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidPackageError("Package name cannot be empty")
    if len(name) > _MAX_NAME_LENGTH:
        raise InvalidPackageError(f"Package name is longer than {_MAX_NAME_LENGTH} characters: {name}")
    if not _PACKAGE_NAME.match(name):
        raise InvalidPackageError(f"Invalid package name: {name}")
    return name


def is_non_registry_spec(range_spec: str) -> bool:
    """Check whether a specifier points outside the registry.

    URLs, ``file:`` and friends, and GitHub ``owner/repo`` shorthands cannot be
    resolved from a list of published versions.
    """
    if _URL_SPEC.match(range_spec):
        return True
    if range_spec.startswith(_NON_REGISTRY_PREFIXES):
        return True
    # owner/repo[#ref]; a scoped name starts with "@" and aliases were handled already
    return "/" in range_spec and not range_spec.startswith(("@", NPM_ALIAS_PREFIX))


def split_alias(range_spec: str) -> Optional[Tuple[str, str]]:
    """Split an ``npm:<name>@<spec>`` alias into target name and spec.

    Args:
        range_spec: Specifier starting with ``npm:``

    Returns:
        ``(name, spec)`` or None when the alias is malformed
    """
    target = range_spec[len(NPM_ALIAS_PREFIX):]
    separator = target.find("@", 1) if target.startswith("@") else target.find("@")
    if separator <= 0:
        return None

    name, spec = target[:separator], target[separator + 1:].strip()
    if not spec:
        return None
    return name, spec


def _parse_versions(available_versions: Iterable[str]) -> List[Tuple[semantic_version.Version, str]]:
    parsed = []
    for raw in available_versions:
        try:
            parsed.append((semantic_version.Version(raw), raw))
        except ValueError:
            continue
    return parsed


def normalize_range(range_spec: str) -> str:
    """Rewrite loose npm range syntax into the form NpmSpec parses.

    Whitespace between an operator and its version is removed and a leading
    ``v`` is dropped from versions, as npm's own range parser does.
    """
    normalized = _OPERATOR_GAP.sub(r"\1", range_spec.strip())
    return _VERSION_PREFIX.sub(r"\1", normalized)


def max_satisfying(range_spec: str, available_versions: Iterable[str]) -> Optional[str]:
    """Pick the highest published version satisfying an npm range.

    Prerelease versions only satisfy a range whose comparators name the same
    ``major.minor.patch`` with a prerelease tag, as npm does.

    Args:
        range_spec: npm range such as ``^1.2.0`` or ``>=1 <3 || 4.x``
        available_versions: Published version strings

    Returns:
        The highest satisfying version string, or None
    """
    try:
        requirement = semantic_version.NpmSpec(normalize_range(range_spec) or "*")
    except ValueError:
        return None

    candidates = [(parsed, raw) for parsed, raw in _parse_versions(available_versions) if requirement.match(parsed)]
    if not candidates:
        return None
    return max(candidates, key=lambda candidate: candidate[0])[1]


def _resolve_registry_spec(range_spec: str, available_versions: List[str]) -> Optional[str]:
    if range_spec in available_versions:
        return range_spec
    return max_satisfying(range_spec, available_versions)


def resolve_version(range_spec: str, available_versions: Iterable[str]) -> Optional[str]:
    """Pick the version a package manager would install for a specifier.

    Args:
        range_spec: Exact version, range, ``*``, ``npm:`` alias or external reference
        available_versions: Published version strings of the package

    Returns:
        Resolved version string, or None when the specifier cannot be satisfied
    """
    if not isinstance(range_spec, str):
        return None
    range_spec = range_spec.strip()
    versions = list(available_versions)

    if range_spec.startswith(NPM_ALIAS_PREFIX):
        alias = split_alias(range_spec)
        if alias is None:
            return None
        return _resolve_registry_spec(alias[1], versions)

    if is_non_registry_spec(range_spec):
        return None

    return _resolve_registry_spec(range_spec, versions)
