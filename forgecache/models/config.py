"""Resolver configuration — the explicit struct threaded through the core."""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forgecache.models.artifacts import DEFAULT_ARCHIVE_EXTENSION
from forgecache.models.policy import DEFAULT_POLICY, PolicyFlags


class ResolverConfig(BaseModel):
    """Everything the Resolver and Hook need, resolved up front.

    Built from ``CacheSettings`` (environment) or directly in tests. The core
    never consults environment variables or module-level settings.
    """

    model_config = ConfigDict(frozen=True)

    bucket: str
    package_regex: str
    cache_dir: Path
    install_prefix: Path
    archive_extension: str = DEFAULT_ARCHIVE_EXTENSION
    remote_tool: str = "mc"
    remote_timeout_seconds: float = 60.0
    remote_retries: int = Field(default=0, ge=0, le=5)
    max_workers: int = Field(default=4, ge=1)
    touch_extracted: bool = True
    # Keyed by lowercase component name.
    policies: dict[str, PolicyFlags] = Field(default_factory=dict)

    @field_validator("bucket")
    @classmethod
    def _strip_bucket(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("bucket must not be empty")
        return value

    @field_validator("package_regex")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"package_regex is not a valid pattern: {exc}") from exc
        return value

    @field_validator("archive_extension")
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        return value.lstrip(".")

    @field_validator("policies")
    @classmethod
    def _lowercase_keys(cls, value: dict[str, PolicyFlags]) -> dict[str, PolicyFlags]:
        return {name.lower(): flags for name, flags in value.items()}

    def policy_for(self, name: str) -> PolicyFlags:
        """Return the flags for *name* (case-insensitive), default if unset."""
        return self.policies.get(name.lower(), DEFAULT_POLICY)
