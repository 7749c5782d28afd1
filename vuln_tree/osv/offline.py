"""Offline OSV client for local database scanning."""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import semantic_version

from ..core.sources import VulnerabilitySource
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor, benchmark

NPM_ECOSYSTEM = "npm"


def _parse_semver(value: Any) -> Optional[semantic_version.Version]:
    if not isinstance(value, str):
        return None
    try:
        return semantic_version.Version(value)
    except ValueError:
        return None


def version_in_range(version: semantic_version.Version, events: List[Dict[str, Any]]) -> bool:
    """Check a version against the events of an OSV ``SEMVER``/``ECOSYSTEM`` range.

    Events are applied in order: ``introduced`` opens an affected interval,
    ``fixed`` closes it exclusively and ``last_affected`` closes it inclusively.

    Args:
        version: Version to check
        events: OSV range events

    Returns:
        True if the version lies in an affected interval
    """
    affected = False
    for event in events:
        if not isinstance(event, dict):
            continue

        if "introduced" in event:
            introduced = event["introduced"]
            if introduced == "0":
                affected = True
                continue
            bound = _parse_semver(introduced)
            if bound is not None and version >= bound:
                affected = True
        elif "fixed" in event:
            bound = _parse_semver(event["fixed"])
            if bound is not None and version >= bound:
                affected = False
        elif "last_affected" in event:
            bound = _parse_semver(event["last_affected"])
            if bound is not None and version > bound:
                affected = False

    return affected


class OSVOfflineClient(VulnerabilitySource):
    """Offline client answering lookups from a local OSV database directory."""

    def __init__(
        self,
        database_path: Path,
        ecosystem: str = NPM_ECOSYSTEM,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ) -> None:
        """Initialize the offline OSV client.

        Args:
            database_path: Directory of OSV JSON records (searched recursively)
            ecosystem: OSV ecosystem of the analyzed packages
            performance_monitor: Optional shared performance monitor
        """
        if not database_path.exists():
            raise ValueError(f"Database path does not exist: {database_path}")
        self.database_path = database_path
        self.ecosystem = ecosystem.lower()
        self.logger = get_logger("OSVOfflineClient")
        self.performance_monitor = performance_monitor or PerformanceMonitor()
        self._package_index: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self._index_built = False

    @benchmark
    def build_package_index(self) -> None:
        """Load every record of the database and index it by affected package."""
        with self.performance_monitor.measure("build_package_index"):
            self._package_index.clear()
            count = 0

            for record in self._load_records():
                count += 1
                for affected in record.get("affected") or []:
                    if not isinstance(affected, dict) or not isinstance(affected.get("package"), dict):
                        continue
                    package = affected["package"]
                    name = package.get("name")
                    ecosystem = package.get("ecosystem")
                    if isinstance(name, str) and isinstance(ecosystem, str):
                        key = (ecosystem.lower(), name)
                        bucket = self._package_index.setdefault(key, [])
                        if not any(existing is record for existing in bucket):
                            bucket.append(record)

            self._index_built = True
            self.logger.info(f"Indexed {count} vulnerabilities for {len(self._package_index)} packages")

    def _load_records(self) -> Iterator[Dict[str, Any]]:
        """Yield every OSV record found in the database directory."""
        paths = [self.database_path] if self.database_path.is_file() else sorted(self.database_path.rglob("*.json"))

        for path in paths:
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                self.logger.warning(f"Failed to parse {path}: {e}")
                continue

            records = data if isinstance(data, list) else [data]
            for record in records:
                if isinstance(record, dict) and isinstance(record.get("id"), str):
                    yield record
                else:
                    self.logger.debug(f"Skipping malformed record in {path}")

    async def fetch_vulnerabilities(self, name: str, version: str) -> List[Dict[str, Any]]:
        """Return the records affecting ``name@version``."""
        if not self._index_built:
            self.build_package_index()

        return [
            record
            for record in self._package_index.get((self.ecosystem, name), [])
            if self._affects(record, name, version)
        ]

    def _affects(self, record: Dict[str, Any], name: str, version: str) -> bool:
        parsed = _parse_semver(version)

        for affected in record.get("affected") or []:
            if not isinstance(affected, dict):
                continue
            package = affected.get("package") or {}
            if package.get("name") != name or str(package.get("ecosystem", "")).lower() != self.ecosystem:
                continue

            versions = affected.get("versions")
            if isinstance(versions, list) and version in versions:
                return True

            if parsed is None:
                continue
            for version_range in affected.get("ranges") or []:
                if not isinstance(version_range, dict):
                    continue
                if version_range.get("type") not in ("SEMVER", "ECOSYSTEM"):
                    continue
                if version_in_range(parsed, version_range.get("events") or []):
                    return True

        return False

    def get_database_stats(self) -> Dict[str, Any]:
        """Get database statistics.

        Returns:
            Dictionary with database statistics
        """
        if not self._index_built:
            self.build_package_index()

        unique_ids = {record["id"] for records in self._package_index.values() for record in records}
        return {
            "total_packages": len(self._package_index),
            "unique_vulnerabilities": len(unique_ids),
        }
