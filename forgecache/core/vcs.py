"""Version-control boundary — current revision identifier for a path.

The Version Deriver only needs one capability from version control, so the
boundary is a single-method Protocol. ``GitRevisionSource`` is the default
backend; ``StaticRevisionSource`` serves hosts that already know revisions
and tests that must not spawn processes.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable

from forgecache.core.errors import ForgeCacheError

logger = logging.getLogger(__name__)


class VersionUnavailable(ForgeCacheError, RuntimeError):
    """Raised when a path is not under version control or its revision is unreadable."""


@runtime_checkable
class RevisionSource(Protocol):
    """Anything that can report the current revision of a source path."""

    def current_revision(self, path: Path) -> str:
        """Return the hexadecimal revision identifier checked out at *path*.

        Raises
        ------
        VersionUnavailable
            If *path* has no readable revision.
        """
        ...


class GitRevisionSource:
    """Reads ``HEAD`` of the git work tree containing a path.

    Parameters
    ----------
    git:
        Name or path of the git executable.
    timeout:
        Seconds to wait for ``git rev-parse`` before giving up.
    """

    def __init__(self, git: str = "git", *, timeout: float = 10.0) -> None:
        self._git = git
        self._timeout = timeout

    def current_revision(self, path: Path) -> str:
        path = Path(path)
        if not path.is_dir():
            raise VersionUnavailable(f"Source path does not exist: {path}")
        if shutil.which(self._git) is None:
            raise VersionUnavailable(f"'{self._git}' not found on PATH")

        try:
            result = subprocess.run(
                [self._git, "rev-parse", "--verify", "HEAD"],
                cwd=path,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            raise VersionUnavailable(f"git rev-parse failed in {path}: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.strip() or f"exit code {result.returncode}"
            raise VersionUnavailable(f"No git revision for {path}: {stderr}")

        revision = result.stdout.strip()
        logger.debug("Revision for %s: %s", path, revision)
        return revision


class StaticRevisionSource:
    """Revision lookup from a fixed mapping of paths to revisions."""

    def __init__(self, revisions: Mapping[Path | str, str]) -> None:
        self._revisions = {Path(p).resolve(): rev for p, rev in revisions.items()}

    def current_revision(self, path: Path) -> str:
        try:
            return self._revisions[Path(path).resolve()]
        except KeyError:
            raise VersionUnavailable(f"No revision recorded for {path}") from None
