"""Artifact cache resolver — derive version, consult caches, install or defer.

Per attempt the resolver walks::

    Start -> VersionDerived -> (CacheHitLocal | CacheHitRemote | Miss)
          -> (Installed | FallbackToSource)

A local hit never touches the remote store. A remote hit is fetched into
the local cache first and extracted from there. Every failure on the way
(no revision, remote unreachable, fetch error, cache write error, corrupt
archive) ends in ``FallbackToSource``; only ``PolicyViolation`` escapes, and
only for components that require a pre-built artifact.

Attempts for different components share nothing but the cache root, so
``resolve_many`` runs them on a thread pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from forgecache.core.extractor import ExtractionFailed, extract_archive
from forgecache.core.local_store import CacheWriteFailed, LocalCacheStore
from forgecache.core.policy import PolicyLayer, PolicyViolation
from forgecache.core.remote_client import MinioRemoteClient, RemoteStoreClient
from forgecache.core.vcs import VersionUnavailable
from forgecache.core.version_deriver import VersionDeriver
from forgecache.models.artifacts import ArtifactKey
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
from forgecache.models.remote import RemoteStatus
from forgecache.models.versioning import VersionDescriptor

logger = logging.getLogger(__name__)


class InvalidResolutionTransition(RuntimeError):
    """Raised when the resolver attempts a transition the state table forbids."""


class _Trace:
    """Records the states one attempt passes through, enforcing the table."""

    def __init__(self, component: str) -> None:
        self.component = component
        self.states: list[ResolutionState] = [ResolutionState.START]

    @property
    def current(self) -> ResolutionState:
        return self.states[-1]

    def advance(self, target: ResolutionState) -> None:
        allowed = VALID_RESOLUTION_TRANSITIONS[self.current]
        if target not in allowed:
            raise InvalidResolutionTransition(
                f"{self.component}: cannot go from {self.current.value} to {target.value}"
            )
        self.states.append(target)

    def as_tuple(self) -> tuple[ResolutionState, ...]:
        return tuple(self.states)


class ArtifactResolver:
    """Satisfies dependency requests from the artifact cache when possible.

    Parameters
    ----------
    config:
        Resolver configuration. Collaborators not passed explicitly are
        built from it.
    deriver:
        Version Deriver. Defaults to a git-backed deriver.
    local_store:
        Local Cache Store. Defaults to ``config.cache_dir``.
    remote:
        Remote Store Client. Defaults to ``mc`` against ``config.bucket``.
    policy:
        Policy layer. Defaults to ``config.policies``.
    """

    def __init__(
        self,
        config: ResolverConfig,
        *,
        deriver: VersionDeriver | None = None,
        local_store: LocalCacheStore | None = None,
        remote: RemoteStoreClient | None = None,
        policy: PolicyLayer | None = None,
    ) -> None:
        self._config = config
        self._deriver = deriver or VersionDeriver()
        self._local = local_store or LocalCacheStore(
            config.cache_dir, extension=config.archive_extension
        )
        self._remote = remote or MinioRemoteClient(
            config.bucket,
            tool=config.remote_tool,
            extension=config.archive_extension,
            timeout=config.remote_timeout_seconds,
            retries=config.remote_retries,
        )
        self._policy = policy or PolicyLayer(config.policies)

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def local_store(self) -> LocalCacheStore:
        return self._local

    @property
    def policy(self) -> PolicyLayer:
        return self._policy

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        component: Component,
        constraint: VersionDescriptor | str | None = None,
    ) -> ResolutionOutcome:
        """Try to install *component* from the cache.

        Parameters
        ----------
        constraint:
            Requested version. When given it must equal the derived
            descriptor exactly; there are no range semantics.

        Returns
        -------
        Satisfied | NotSatisfied
            ``NotSatisfied`` means: build the component from source.

        Raises
        ------
        PolicyViolation
            If the component requires a pre-built artifact and none was
            usable.
        """
        if not self._policy.allows_cache(component.name):
            outcome: ResolutionOutcome = NotSatisfied(
                component=component.name,
                reason=FallbackReason.FORCED_FROM_SOURCE,
                trace=(ResolutionState.START, ResolutionState.FALLBACK_TO_SOURCE),
            )
            logger.info(outcome.message())
            return outcome

        outcome = self._attempt(component, constraint)
        if isinstance(outcome, NotSatisfied):
            logger.info(outcome.message())
        else:
            logger.info(
                "Using pre-built %s (%s) from %s.",
                component.name,
                outcome.version,
                outcome.source.value.replace("_", " "),
            )
        return self._policy.enforce(component.name, outcome)

    def resolve_many(
        self,
        requests: list[tuple[Component, VersionDescriptor | str | None]],
    ) -> list[ResolutionOutcome]:
        """Resolve independent components in parallel.

        Results are returned in input order. If any component violates its
        policy, the first such ``PolicyViolation`` (in input order) is raised
        after every attempt has finished.
        """
        if not requests:
            return []

        workers = min(self._config.max_workers, len(requests))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="forgecache") as pool:
            futures = [pool.submit(self.resolve, comp, constraint) for comp, constraint in requests]

        results: list[ResolutionOutcome] = []
        violation: PolicyViolation | None = None
        for future in futures:
            exc = future.exception()
            if isinstance(exc, PolicyViolation):
                violation = violation or exc
                results.append(exc.outcome)
            elif exc is not None:
                raise exc
            else:
                results.append(future.result())
        if violation is not None:
            raise violation
        return results

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _attempt(
        self,
        component: Component,
        constraint: VersionDescriptor | str | None,
    ) -> ResolutionOutcome:
        trace = _Trace(component.name)

        try:
            version = self._deriver.derive(component)
        except VersionUnavailable as exc:
            return self._fallback(trace, component, FallbackReason.VERSION_UNAVAILABLE, str(exc))
        trace.advance(ResolutionState.VERSION_DERIVED)

        mismatch = _constraint_mismatch(constraint, version)
        if mismatch:
            return self._fallback(
                trace, component, FallbackReason.VERSION_MISMATCH, mismatch, version
            )

        key = ArtifactKey(name=component.name, version=version)

        archive = self._local.get(key)
        if archive is not None:
            trace.advance(ResolutionState.CACHE_HIT_LOCAL)
            source = ArtifactSource.LOCAL_CACHE
        else:
            check = self._remote.exists(key)
            if not check.is_present:
                trace.advance(ResolutionState.MISS)
                reason = (
                    FallbackReason.REMOTE_UNREACHABLE
                    if check.status == RemoteStatus.ERROR
                    else FallbackReason.NOT_FOUND
                )
                return self._fallback(trace, component, reason, check.reason, version)

            trace.advance(ResolutionState.CACHE_HIT_REMOTE)
            source = ArtifactSource.REMOTE
            try:
                archive = self._download(key)
            except CacheWriteFailed as exc:
                return self._fallback(
                    trace, component, FallbackReason.CACHE_WRITE_FAILED, str(exc), version
                )
            if archive is None:
                return self._fallback(
                    trace, component, FallbackReason.FETCH_FAILED,
                    f"download of {key} failed", version,
                )

        try:
            extract_archive(
                archive, self._config.install_prefix, touch=self._config.touch_extracted
            )
        except ExtractionFailed as exc:
            self._discard(key)
            return self._fallback(
                trace, component, FallbackReason.EXTRACTION_FAILED, str(exc), version
            )

        trace.advance(ResolutionState.INSTALLED)
        return Satisfied(
            component=component.name,
            source=source,
            version=version,
            install_prefix=self._config.install_prefix,
            archive_path=archive,
            trace=trace.as_tuple(),
        )

    def _download(self, key: ArtifactKey) -> Path | None:
        """Fetch *key* from the remote store into the local cache.

        Returns the cached archive path, or None if the download failed.
        Raises CacheWriteFailed if the cache cannot be written.
        """
        destination = self._local.path_for(key)
        logger.info("Downloading %s to %s.", key, destination)
        with self._local.staging_path(key) as staging:
            result = self._remote.fetch(key, staging)
            if not result.ok:
                logger.warning("Failed to pull %s from remote store: %s", key, result.reason)
                return None
            return self._local.put(key, staging, move=True).path

    def _discard(self, key: ArtifactKey) -> None:
        try:
            self._local.discard(key)
        except CacheWriteFailed as exc:
            logger.warning("Corrupt cache entry for %s could not be removed: %s", key, exc)

    def _fallback(
        self,
        trace: _Trace,
        component: Component,
        reason: FallbackReason,
        detail: str = "",
        version: VersionDescriptor | None = None,
    ) -> NotSatisfied:
        trace.advance(ResolutionState.FALLBACK_TO_SOURCE)
        return NotSatisfied(
            component=component.name,
            reason=reason,
            detail=detail,
            version=version,
            trace=trace.as_tuple(),
        )


def _constraint_mismatch(
    constraint: VersionDescriptor | str | None, version: VersionDescriptor
) -> str:
    """Return a description of why *constraint* rejects *version*, or ''."""
    if constraint is None:
        return ""
    if isinstance(constraint, str):
        try:
            constraint = VersionDescriptor.parse(constraint)
        except ValueError as exc:
            return str(exc)
    if constraint != version:
        return f"requested {constraint}, source is {version}"
    return ""
