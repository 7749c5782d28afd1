"""Configuration for vuln-tree analyses."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from .core.models import TARGET_PLATFORM, TargetPlatform

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"
DEFAULT_OSV_URL = "https://api.osv.dev"

ENV_PREFIX = "VULN_TREE_"


@dataclass(frozen=True)
class AnalysisConfig:
    """Settings of one vulnerability tree analysis."""

    registry_url: str = DEFAULT_REGISTRY_URL
    osv_url: str = DEFAULT_OSV_URL
    platform: TargetPlatform = field(default=TARGET_PLATFORM)
    metadata_concurrency: int = 10
    query_concurrency: int = 10
    # Whole-analysis budget in seconds; None disables the deadline
    timeout: Optional[float] = 60.0
    request_timeout: float = 30.0
    rate_limit_delay: float = 0.0
    registry_dir: Optional[Path] = None
    database_path: Optional[Path] = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.metadata_concurrency < 1:
            raise ValueError("metadata_concurrency must be at least 1")
        if self.query_concurrency < 1:
            raise ValueError("query_concurrency must be at least 1")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.rate_limit_delay < 0:
            raise ValueError("rate_limit_delay cannot be negative")
        if self.registry_dir is not None and not self.registry_dir.is_dir():
            raise ValueError(f"Registry directory does not exist: {self.registry_dir}")
        if self.database_path is not None and not self.database_path.exists():
            raise ValueError(f"Database path does not exist: {self.database_path}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "AnalysisConfig":
        """Build a configuration from ``VULN_TREE_*`` environment variables.

        Args:
            environ: Environment mapping, defaults to ``os.environ``
            **overrides: Values taking precedence over the environment; None values are ignored

        Returns:
            Analysis configuration
        """
        env = os.environ if environ is None else environ
        values: dict = {}

        def read(key: str) -> Optional[str]:
            value = env.get(f"{ENV_PREFIX}{key}")
            return value.strip() if value and value.strip() else None

        if read("REGISTRY_URL"):
            values["registry_url"] = read("REGISTRY_URL")
        if read("OSV_URL"):
            values["osv_url"] = read("OSV_URL")
        if read("CONCURRENCY"):
            concurrency = int(read("CONCURRENCY"))
            values["metadata_concurrency"] = concurrency
            values["query_concurrency"] = concurrency
        if read("TIMEOUT"):
            values["timeout"] = float(read("TIMEOUT"))

        platform = TargetPlatform(
            os=read("OS") or TARGET_PLATFORM.os,
            cpu=read("CPU") or TARGET_PLATFORM.cpu,
            libc=read("LIBC") or TARGET_PLATFORM.libc,
        )
        values["platform"] = platform

        config = cls(**values)
        overrides = {key: value for key, value in overrides.items() if value is not None}
        return replace(config, **overrides) if overrides else config

    def with_platform(
        self,
        os: Optional[str] = None,
        cpu: Optional[str] = None,
        libc: Optional[str] = None,
    ) -> "AnalysisConfig":
        """Return a copy targeting a different platform on the given axes."""
        platform = TargetPlatform(
            os=os or self.platform.os,
            cpu=cpu or self.platform.cpu,
            libc=libc or self.platform.libc,
        )
        return replace(self, platform=platform)
