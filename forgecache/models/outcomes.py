"""Resolution outcomes returned to the host build tool."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from forgecache.models.versioning import VersionDescriptor


class ResolutionState(str, Enum):
    """States a single resolution attempt passes through."""

    START = "start"
    VERSION_DERIVED = "version_derived"
    CACHE_HIT_LOCAL = "cache_hit_local"
    CACHE_HIT_REMOTE = "cache_hit_remote"
    MISS = "miss"
    INSTALLED = "installed"
    FALLBACK_TO_SOURCE = "fallback_to_source"


# Allowed successor states. INSTALLED and FALLBACK_TO_SOURCE are terminal.
VALID_RESOLUTION_TRANSITIONS: dict[ResolutionState, set[ResolutionState]] = {
    ResolutionState.START: {
        ResolutionState.VERSION_DERIVED,
        ResolutionState.FALLBACK_TO_SOURCE,
    },
    ResolutionState.VERSION_DERIVED: {
        ResolutionState.CACHE_HIT_LOCAL,
        ResolutionState.CACHE_HIT_REMOTE,
        ResolutionState.MISS,
        ResolutionState.FALLBACK_TO_SOURCE,
    },
    ResolutionState.CACHE_HIT_LOCAL: {
        ResolutionState.INSTALLED,
        ResolutionState.FALLBACK_TO_SOURCE,
    },
    ResolutionState.CACHE_HIT_REMOTE: {
        ResolutionState.INSTALLED,
        ResolutionState.FALLBACK_TO_SOURCE,
    },
    ResolutionState.MISS: {ResolutionState.FALLBACK_TO_SOURCE},
    ResolutionState.INSTALLED: set(),
    ResolutionState.FALLBACK_TO_SOURCE: set(),
}


class FallbackReason(str, Enum):
    """Why a request fell through to a from-source build."""

    FORCED_FROM_SOURCE = "forced_from_source"
    NOT_ELIGIBLE = "not_eligible"
    VERSION_UNAVAILABLE = "version_unavailable"
    VERSION_MISMATCH = "version_mismatch"
    NOT_FOUND = "not_found"
    REMOTE_UNREACHABLE = "remote_unreachable"
    FETCH_FAILED = "fetch_failed"
    CACHE_WRITE_FAILED = "cache_write_failed"
    EXTRACTION_FAILED = "extraction_failed"


class ArtifactSource(str, Enum):
    """Where a satisfied dependency came from."""

    LOCAL_CACHE = "local_cache"
    REMOTE = "remote"
    ALREADY_INSTALLED = "already_installed"
    HOST = "host"


class Satisfied(BaseModel):
    """The artifact is fully extracted into the install prefix."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["satisfied"] = "satisfied"
    component: str
    source: ArtifactSource
    version: VersionDescriptor | None = None
    install_prefix: Path | None = None
    archive_path: Path | None = None
    trace: tuple[ResolutionState, ...] = ()

    @property
    def satisfied(self) -> bool:
        return True


class NotSatisfied(BaseModel):
    """Proceed with a normal from-source build of the component."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["not_satisfied"] = "not_satisfied"
    component: str
    reason: FallbackReason
    detail: str = ""
    version: VersionDescriptor | None = None
    trace: tuple[ResolutionState, ...] = ()

    @property
    def satisfied(self) -> bool:
        return False

    def message(self) -> str:
        """One-line explanation suitable for a developer-facing log."""
        label = _REASON_LABELS[self.reason]
        version = f" ({self.version.dotted})" if self.version is not None else ""
        text = f"{self.component}{version}: {label}, building from source."
        if self.detail:
            text = f"{text} [{self.detail}]"
        return text


_REASON_LABELS: dict[FallbackReason, str] = {
    FallbackReason.FORCED_FROM_SOURCE: "forced from source by policy",
    FallbackReason.NOT_ELIGIBLE: "not cache-eligible",
    FallbackReason.VERSION_UNAVAILABLE: "no readable source revision",
    FallbackReason.VERSION_MISMATCH: "requested version does not match source revision",
    FallbackReason.NOT_FOUND: "pre-built package not present locally or on server",
    FallbackReason.REMOTE_UNREACHABLE: "remote store could not be checked",
    FallbackReason.FETCH_FAILED: "failed to pull pre-built package from server",
    FallbackReason.CACHE_WRITE_FAILED: "local cache could not be written",
    FallbackReason.EXTRACTION_FAILED: "cached archive could not be extracted",
}


ResolutionOutcome = Annotated[
    Union[Satisfied, NotSatisfied], Field(discriminator="kind")
]
