"""Platform constraint matching for version manifests."""

from typing import Sequence

from .models import TARGET_PLATFORM, TargetPlatform, VersionManifest


def axis_matches(values: Sequence[str], target_value: str) -> bool:
    """Check one platform axis (os, cpu or libc) against a target value.

    Args:
        values: Constraint tokens; ``!`` marks an exclusion
        target_value: Target platform value for this axis

    Returns:
        True if the axis admits the target value
    """
    if not values:
        return True

    inclusions = [value for value in values if not value.startswith("!")]
    exclusions = [value[1:] for value in values if value.startswith("!")]

    if inclusions and target_value not in inclusions:
        return False
    return target_value not in exclusions


def matches_platform(manifest: VersionManifest, target: TargetPlatform = TARGET_PLATFORM) -> bool:
    """Check whether a manifest can be installed on the target platform.

    Args:
        manifest: Version manifest with optional os/cpu/libc constraints
        target: Platform the graph is resolved for

    Returns:
        True if every axis admits the target
    """
    return (
        axis_matches(manifest.os, target.os)
        and axis_matches(manifest.cpu, target.cpu)
        and axis_matches(manifest.libc, target.libc)
    )
