"""forgecache data models — all Pydantic v2, all frozen (immutable)."""

from forgecache.models.artifacts import (
    DEFAULT_ARCHIVE_EXTENSION,
    ArtifactKey,
    CacheEntry,
)
from forgecache.models.component import Component
from forgecache.models.config import ResolverConfig
from forgecache.models.outcomes import (
    VALID_RESOLUTION_TRANSITIONS,
    ArtifactSource,
    FallbackReason,
    NotSatisfied,
    ResolutionOutcome,
    ResolutionState,
    Satisfied,
)
from forgecache.models.policy import DEFAULT_POLICY, PolicyFlags
from forgecache.models.remote import FetchResult, RemoteCheck, RemoteStatus
from forgecache.models.request import FIND_PACKAGE, DependencyRequest
from forgecache.models.versioning import VersionDescriptor

__all__ = [
    # versioning
    "VersionDescriptor",
    # component
    "Component",
    # artifacts
    "ArtifactKey",
    "CacheEntry",
    "DEFAULT_ARCHIVE_EXTENSION",
    # policy
    "PolicyFlags",
    "DEFAULT_POLICY",
    # remote
    "RemoteCheck",
    "RemoteStatus",
    "FetchResult",
    # outcomes
    "ResolutionState",
    "VALID_RESOLUTION_TRANSITIONS",
    "FallbackReason",
    "ArtifactSource",
    "Satisfied",
    "NotSatisfied",
    "ResolutionOutcome",
    # requests
    "DependencyRequest",
    "FIND_PACKAGE",
    # config
    "ResolverConfig",
]
