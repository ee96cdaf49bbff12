"""Policy layer — per-component force-from-source and require-prebuilt flags.

``force_from_source`` keeps a component away from the Resolver entirely.
``require_prebuilt`` turns a fallback into a hard configuration failure;
``PolicyViolation`` is the only error that may abort a configuration pass.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from forgecache.core.errors import ForgeCacheError
from forgecache.models.outcomes import NotSatisfied, ResolutionOutcome
from forgecache.models.policy import DEFAULT_POLICY, PolicyFlags

logger = logging.getLogger(__name__)


class PolicyViolation(ForgeCacheError, RuntimeError):
    """Raised when a require-prebuilt component would fall back to source.

    This error must not be caught and ignored: the configuration pass
    should stop.
    """

    def __init__(self, message: str, outcome: NotSatisfied) -> None:
        super().__init__(message)
        self.outcome = outcome


class PolicyLayer:
    """Read-only lookup of PolicyFlags by component name.

    Parameters
    ----------
    policies:
        Flags keyed by component name (case-insensitive).
    """

    def __init__(self, policies: Mapping[str, PolicyFlags] | None = None) -> None:
        self._policies = {name.lower(): flags for name, flags in (policies or {}).items()}

    def flags_for(self, name: str) -> PolicyFlags:
        return self._policies.get(name.lower(), DEFAULT_POLICY)

    def allows_cache(self, name: str) -> bool:
        """Return False when the component is forced to build from source."""
        return not self.flags_for(name).force_from_source

    def enforce(self, name: str, outcome: ResolutionOutcome) -> ResolutionOutcome:
        """Return *outcome* unchanged unless policy forbids it.

        Raises
        ------
        PolicyViolation
            If *name* requires a pre-built artifact and *outcome* is a
            fallback to source.
        """
        if outcome.satisfied or not self.flags_for(name).require_prebuilt:
            return outcome

        msg = (
            f"Pre-built artifact required for {name} but none was usable: "
            f"{outcome.message()}"
        )
        logger.error(msg)
        raise PolicyViolation(msg, outcome)
