"""Version Deriver — revision identifier to four-part VersionDescriptor.

The first eight hex characters of the revision are split into four byte
groups, each read as base 16: ``aabbccdd`` becomes ``170.187.204.221``.
The result is a fingerprint, not a semantic version.

Only the tracked revision feeds the descriptor. Build parameters passed to a
component (compiler flags, enabled features) are not part of it, so two
builds of one revision with different parameters share a descriptor.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from forgecache.core.vcs import GitRevisionSource, RevisionSource, VersionUnavailable
from forgecache.models.component import Component
from forgecache.models.versioning import VersionDescriptor

logger = logging.getLogger(__name__)

REVISION_HEX_WIDTH = 8

_HEX_PREFIX = re.compile(r"[0-9a-fA-F]{%d}" % REVISION_HEX_WIDTH)


def descriptor_from_revision(revision: str) -> VersionDescriptor:
    """Map a hexadecimal revision identifier to its VersionDescriptor.

    Longer identifiers (full hashes) are truncated to their first eight
    characters.

    Raises
    ------
    VersionUnavailable
        If *revision* does not start with eight hex characters.
    """
    text = revision.strip()
    match = _HEX_PREFIX.match(text)
    if match is None:
        raise VersionUnavailable(
            f"Revision {revision!r} is not a {REVISION_HEX_WIDTH}-character hex identifier"
        )
    short = match.group(0)
    return VersionDescriptor(*(int(short[i : i + 2], 16) for i in range(0, REVISION_HEX_WIDTH, 2)))


class VersionDeriver:
    """Derives VersionDescriptors for components via a RevisionSource.

    Parameters
    ----------
    revisions:
        Version-control backend. Defaults to ``GitRevisionSource()``.
    """

    def __init__(self, revisions: RevisionSource | None = None) -> None:
        self._revisions = revisions or GitRevisionSource()

    def derive(self, component: Component | Path) -> VersionDescriptor:
        """Return the descriptor for a component's current revision.

        Raises VersionUnavailable when there is no readable revision.
        """
        path = component.source_path if isinstance(component, Component) else Path(component)
        descriptor = descriptor_from_revision(self._revisions.current_revision(path))
        logger.debug("Derived version %s for %s", descriptor, path)
        return descriptor

    def derive_or_placeholder(self, component: Component | Path) -> VersionDescriptor:
        """Like ``derive`` but returns ``0.0.0.0`` when no revision is readable."""
        try:
            return self.derive(component)
        except VersionUnavailable as exc:
            logger.info("Using placeholder version 0.0.0.0: %s", exc)
            return VersionDescriptor.placeholder()
