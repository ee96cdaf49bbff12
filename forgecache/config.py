"""Environment-driven configuration.

Centralised settings using pydantic-settings. Reads FORGECACHE_* environment
variables and an optional .env file, then produces the explicit
``ResolverConfig`` the resolver and hook are constructed with.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from forgecache.core.errors import ConfigurationError, MissingConfigurationError
from forgecache.models.config import ResolverConfig
from forgecache.models.policy import PolicyFlags


class CacheSettings(BaseSettings):
    """Configuration surface with environment variable overrides.

    Examples
    --------
    Override via environment::

        export FORGECACHE_BUCKET=minio/prebuilt
        export FORGECACHE_PACKAGE_REGEX='^(core|net)_.*'
        export FORGECACHE_CACHE_DIR=$HOME/.cache/forgecache
        export FORGECACHE_FORCE_FROM_SOURCE=core_io,net_http

    Or via .env file::

        FORGECACHE_INSTALL_PREFIX=build/install
        FORGECACHE_REQUIRE_PREBUILT=core_math
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FORGECACHE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote store
    bucket: str = ""
    remote_tool: str = "mc"
    remote_timeout_seconds: float = 60.0
    remote_retries: int = 0
    archive_extension: str = "tar.gz"

    # Routing
    package_regex: str = ""

    # Local paths
    cache_dir: Path | None = None
    install_prefix: Path = Path("install")

    # Per-component policy (comma separated names)
    force_from_source: Annotated[list[str], NoDecode] = []
    require_prebuilt: Annotated[list[str], NoDecode] = []

    # Runtime
    max_workers: int = 4
    touch_extracted: bool = True
    log_level: str = "INFO"

    @field_validator("force_from_source", "require_prebuilt", mode="before")
    @classmethod
    def _split_names(cls, value: object) -> object:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def policies(self) -> dict[str, PolicyFlags]:
        """Per-component flags; rejects names listed under both options."""
        forced = {name.lower() for name in self.force_from_source}
        required = {name.lower() for name in self.require_prebuilt}
        both = sorted(forced & required)
        if both:
            raise ConfigurationError(
                "Components cannot be both forced from source and require a "
                f"pre-built artifact: {', '.join(both)}"
            )
        flags = {name: PolicyFlags(force_from_source=True) for name in forced}
        flags.update({name: PolicyFlags(require_prebuilt=True) for name in required})
        return flags

    def to_resolver_config(self) -> ResolverConfig:
        """Build the explicit ResolverConfig.

        Raises
        ------
        MissingConfigurationError
            If a required value (bucket, package regex, cache dir) is unset.
        ConfigurationError
            If any value is invalid or policies contradict each other.
        """
        missing = [
            f"FORGECACHE_{name.upper()}"
            for name, value in (
                ("bucket", self.bucket),
                ("package_regex", self.package_regex),
                ("cache_dir", self.cache_dir),
            )
            if not value
        ]
        if missing:
            raise MissingConfigurationError(
                f"Required configuration not set: {', '.join(missing)}"
            )

        try:
            return ResolverConfig(
                bucket=self.bucket,
                package_regex=self.package_regex,
                cache_dir=self.cache_dir,
                install_prefix=self.install_prefix,
                archive_extension=self.archive_extension,
                remote_tool=self.remote_tool,
                remote_timeout_seconds=self.remote_timeout_seconds,
                remote_retries=self.remote_retries,
                max_workers=self.max_workers,
                touch_extracted=self.touch_extracted,
                policies=self.policies(),
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc
