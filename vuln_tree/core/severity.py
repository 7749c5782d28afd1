"""Severity ranking and aggregation for vulnerability trees."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from cvss import CVSS3, CVSS4
from cvss.exceptions import CVSSError


class Severity(str, Enum):
    """Severity level of a vulnerability."""

    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    UNKNOWN = "unknown"


# Highest first
SEVERITY_LEVELS = (Severity.CRITICAL, Severity.HIGH, Severity.MODERATE, Severity.LOW)

_DATABASE_SEVERITY = {
    "CRITICAL": Severity.CRITICAL,
    "HIGH": Severity.HIGH,
    "MODERATE": Severity.MODERATE,
    "MEDIUM": Severity.MODERATE,
    "LOW": Severity.LOW,
}


@dataclass(frozen=True)
class SeverityCounts:
    """Number of vulnerabilities per named severity level."""

    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0

    def __post_init__(self) -> None:
        for level in SEVERITY_LEVELS:
            if getattr(self, level.value) < 0:
                raise ValueError(f"Severity count for {level.value} cannot be negative")

    @property
    def total(self) -> int:
        return self.critical + self.high + self.moderate + self.low

    @classmethod
    def from_mapping(cls, counts: Mapping[str, Any]) -> "SeverityCounts":
        """Build counts from a mapping, treating missing keys as zero.

        Args:
            counts: Mapping of severity name to count

        Returns:
            SeverityCounts instance
        """
        return cls(**{level.value: int(counts.get(level.value) or 0) for level in SEVERITY_LEVELS})

    def get(self, severity: Union[Severity, str]) -> int:
        value = severity.value if isinstance(severity, Severity) else severity
        if value not in {level.value for level in SEVERITY_LEVELS}:
            return 0
        return getattr(self, value)

    def __add__(self, other: "SeverityCounts") -> "SeverityCounts":
        if not isinstance(other, SeverityCounts):
            return NotImplemented
        return SeverityCounts(
            critical=self.critical + other.critical,
            high=self.high + other.high,
            moderate=self.moderate + other.moderate,
            low=self.low + other.low,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "critical": self.critical,
            "high": self.high,
            "moderate": self.moderate,
            "low": self.low,
        }


def highest_severity(counts: Union[SeverityCounts, Mapping[str, Any]]) -> Severity:
    """Return the highest severity level with a positive count.

    Args:
        counts: SeverityCounts or a plain mapping of severity name to count

    Returns:
        Highest severity present, or ``Severity.UNKNOWN`` when every count is zero
    """
    if not isinstance(counts, SeverityCounts):
        counts = SeverityCounts.from_mapping(counts)

    for level in SEVERITY_LEVELS:
        if counts.get(level) > 0:
            return level
    return Severity.UNKNOWN


def count_severities(vulnerabilities: Iterable[Any]) -> SeverityCounts:
    """Count vulnerabilities per severity level.

    Vulnerabilities of unknown severity are not part of any bucket.

    Args:
        vulnerabilities: Objects exposing a ``severity`` attribute

    Returns:
        SeverityCounts for the given vulnerabilities
    """
    tally = {level.value: 0 for level in SEVERITY_LEVELS}
    for vuln in vulnerabilities:
        if vuln.severity in SEVERITY_LEVELS:
            tally[vuln.severity.value] += 1
    return SeverityCounts(**tally)


def aggregate_counts(packages: Iterable[Any]) -> SeverityCounts:
    """Sum the per-package counts of every vulnerable package.

    Args:
        packages: Objects exposing a ``counts`` attribute

    Returns:
        Tree-wide SeverityCounts
    """
    total = SeverityCounts()
    for package in packages:
        total = total + package.counts
    return total


def severity_from_score(score: Optional[float]) -> Severity:
    """Map a CVSS base score to a severity level."""
    if score is None:
        return Severity.UNKNOWN
    if score >= 9.0:
        return Severity.CRITICAL
    if score >= 7.0:
        return Severity.HIGH
    if score >= 4.0:
        return Severity.MODERATE
    if score > 0:
        return Severity.LOW
    return Severity.UNKNOWN


def cvss_base_score(entry: Any) -> Optional[float]:
    """Extract the base score of one OSV ``severity`` entry.

    Args:
        entry: A ``{"type": ..., "score": ...}`` object

    Returns:
        Base score, or None when the entry cannot be scored
    """
    if not isinstance(entry, dict):
        return None

    score = entry.get("score")
    if isinstance(score, (int, float)) and not isinstance(score, bool):
        return float(score)
    if not isinstance(score, str) or not score:
        return None

    try:
        return float(score)
    except ValueError:
        pass

    try:
        if score.startswith("CVSS:4"):
            return float(CVSS4(score).base_score)
        if score.startswith("CVSS:3"):
            return float(CVSS3(score).base_score)
    except (CVSSError, ValueError, KeyError):
        return None
    return None


def severity_from_record(record: Mapping[str, Any]) -> Severity:
    """Derive the severity level of a raw OSV vulnerability record.

    The advisory database level wins; otherwise the highest CVSS base score
    among the record's severity entries is used.

    Args:
        record: Raw OSV vulnerability record

    Returns:
        Severity level, ``Severity.UNKNOWN`` when absent or unparseable
    """
    database_specific = record.get("database_specific")
    if isinstance(database_specific, dict):
        level = database_specific.get("severity")
        if isinstance(level, str) and level.upper() in _DATABASE_SEVERITY:
            return _DATABASE_SEVERITY[level.upper()]

    entries = record.get("severity")
    if not isinstance(entries, list):
        return Severity.UNKNOWN

    scores = [score for score in (cvss_base_score(entry) for entry in entries) if score is not None]
    if not scores:
        return Severity.UNKNOWN
    return severity_from_score(max(scores))
