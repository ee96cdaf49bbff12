"""Interception hook — routes cache-eligible dependency requests to the resolver.

The host build tool calls ``InterceptionHook.provide(request)`` for every
dependency-satisfaction query. Requests are routed to the resolver only when

1. the method is ``FIND_PACKAGE``,
2. the component name matches the configured pattern, and
3. the component is not forced to build from source.

Everything else is deferred untouched: the hook returns ``NotSatisfied`` and
the host carries on with its built-in mechanism. The hook keeps no state
between calls.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from forgecache.core.policy import PolicyLayer
from forgecache.core.resolver import ArtifactResolver
from forgecache.models.component import Component
from forgecache.models.config import ResolverConfig
from forgecache.models.outcomes import (
    ArtifactSource,
    FallbackReason,
    NotSatisfied,
    ResolutionOutcome,
    ResolutionState,
    Satisfied,
)
from forgecache.models.request import FIND_PACKAGE, DependencyRequest

logger = logging.getLogger(__name__)


@runtime_checkable
class HostBuildTool(Protocol):
    """What the hook needs from the host build tool."""

    def find_installed(self, request: DependencyRequest) -> bool:
        """Run the host's own lookup with the provider bypassed.

        Returns True if the dependency is already installed and usable.
        """
        ...


@runtime_checkable
class DependencyProvider(Protocol):
    """The single capability a host calls into: satisfy or defer."""

    def provide(self, request: DependencyRequest) -> ResolutionOutcome:
        ...


class NullHost:
    """Host stand-in that never has anything installed."""

    def find_installed(self, request: DependencyRequest) -> bool:
        return False


def index_components(components: Mapping[str, Path | str] | list[Component]) -> dict[str, Component]:
    """Build a case-insensitive name -> Component index."""
    if isinstance(components, Mapping):
        items = [Component(name=name, source_path=Path(path)) for name, path in components.items()]
    else:
        items = list(components)
    return {c.lower_name: c for c in items}


class InterceptionHook:
    """Routes matching ``find_package`` requests through the resolver.

    Parameters
    ----------
    config:
        Resolver configuration; supplies the name pattern and policies.
    resolver:
        The resolver to delegate to.
    components:
        Known components and their source paths, keyed case-insensitively.
    host:
        Host build tool adapter. Defaults to ``NullHost``.
    """

    def __init__(
        self,
        config: ResolverConfig,
        resolver: ArtifactResolver,
        components: Mapping[str, Path | str] | list[Component],
        *,
        host: HostBuildTool | None = None,
        policy: PolicyLayer | None = None,
    ) -> None:
        self._pattern = re.compile(config.package_regex)
        self._resolver = resolver
        self._components = index_components(components)
        self._host = host or NullHost()
        self._policy = policy or PolicyLayer(config.policies)

    def is_eligible(self, request: DependencyRequest) -> bool:
        """Return True if the request is one this hook intercepts."""
        return request.method == FIND_PACKAGE and self._pattern.search(request.name) is not None

    def provide(self, request: DependencyRequest) -> ResolutionOutcome:
        """Satisfy *request* from the artifact cache, or defer to the host.

        Raises
        ------
        PolicyViolation
            Only for require-prebuilt components with no usable artifact.
        """
        if not self.is_eligible(request):
            return _defer(request, FallbackReason.NOT_ELIGIBLE, "passed through to host")

        if not self._policy.allows_cache(request.name):
            outcome = _defer(request, FallbackReason.FORCED_FROM_SOURCE)
            logger.info(outcome.message())
            return outcome

        if self._host.find_installed(request):
            logger.debug("%s already installed, cache not consulted.", request.name)
            return Satisfied(
                component=request.name,
                source=ArtifactSource.ALREADY_INSTALLED,
                trace=(ResolutionState.START, ResolutionState.INSTALLED),
            )

        component = self._components.get(request.lower_name)
        if component is None:
            outcome = _defer(
                request,
                FallbackReason.VERSION_UNAVAILABLE,
                "no source path registered for component",
            )
            logger.info(outcome.message())
            return self._policy.enforce(request.name, outcome)

        return self._resolver.resolve(component, request.version)

    def provide_args(self, method: str, args: list[str]) -> ResolutionOutcome:
        """Entry point taking the raw ``(method, find_package args...)`` form."""
        return self.provide(DependencyRequest.from_find_package_args(args, method=method))


def _defer(request: DependencyRequest, reason: FallbackReason, detail: str = "") -> NotSatisfied:
    return NotSatisfied(
        component=request.name,
        reason=reason,
        detail=detail,
        trace=(ResolutionState.START, ResolutionState.FALLBACK_TO_SOURCE),
    )
