"""Exception hierarchy for vuln-tree."""

from typing import Optional


class VulnTreeError(Exception):
    """Base exception for all vuln-tree errors."""
    pass


class InvalidPackageError(VulnTreeError):
    """The requested root package identity is malformed."""
    pass


class RootResolutionError(VulnTreeError):
    """The root package could not be fetched or its version could not be resolved."""

    def __init__(self, package: str, version_spec: str, reason: str) -> None:
        super().__init__(f"Cannot resolve root package {package}@{version_spec}: {reason}")
        self.package = package
        self.version_spec = version_spec
        self.reason = reason


class MetadataError(VulnTreeError):
    """Base exception for package metadata source errors."""

    def __init__(self, message: str, package: Optional[str] = None) -> None:
        super().__init__(message)
        self.package = package


class PackageNotFoundError(MetadataError):
    """The package (or the requested version) does not exist in the registry."""
    pass


class RegistryUnavailableError(MetadataError):
    """The registry could not be reached or returned an unusable response."""
    pass


class VulnerabilityLookupError(VulnTreeError):
    """A vulnerability source lookup failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
