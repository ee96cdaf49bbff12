"""Remote Store Client — presence checks and downloads from the object store.

Remote key layout: {bucket}/{lower name}/{dotted version}.{extension}

The network side is an external command (the MinIO client ``mc`` by
default) whose own configuration holds credentials. Nothing here assumes a
call succeeds: a missing tool, a timeout, a network or auth failure all come
back as a ``RemoteCheck.error`` or a failed ``FetchResult``, never as an
exception.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import Protocol, runtime_checkable

from forgecache.core.errors import ForgeCacheError
from forgecache.models.artifacts import DEFAULT_ARCHIVE_EXTENSION, ArtifactKey
from forgecache.models.remote import FetchResult, RemoteCheck, RemoteStatus

logger = logging.getLogger(__name__)

# Substrings in mc output meaning "the object is not there" rather than
# "the check could not be made".
_NOT_FOUND_MARKERS = (
    "object does not exist",
    "nosuchkey",
    "the specified key does not exist",
)

_RETRY_DELAY_SECONDS = 0.5


class RemoteUnreachable(ForgeCacheError, RuntimeError):
    """The remote store could not be reached (tool missing, network or auth failure)."""


def remote_key(bucket: str, key: ArtifactKey, extension: str = DEFAULT_ARCHIVE_EXTENSION) -> str:
    """Render ``<bucket>/<lower name>/<dotted version>.<extension>``."""
    return f"{bucket.rstrip('/')}/{key.relative_path(extension)}"


@runtime_checkable
class RemoteStoreClient(Protocol):
    """Protocol for remote artifact stores."""

    def exists(self, key: ArtifactKey) -> RemoteCheck:
        """Report whether an archive for *key* is present."""
        ...

    def fetch(self, key: ArtifactKey, destination: Path) -> FetchResult:
        """Download the archive for *key* to *destination*."""
        ...


class MinioRemoteClient:
    """Remote store reached through the ``mc`` command-line client.

    Parameters
    ----------
    bucket:
        ``<alias>/<bucket>[/<prefix>]`` as understood by ``mc``.
    tool:
        Name or path of the client executable.
    extension:
        Archive file extension, without a leading dot.
    timeout:
        Seconds allowed per invocation. A timeout is an ordinary failure.
    retries:
        Extra attempts made after an ``error`` result. ``absent`` is final.
    """

    def __init__(
        self,
        bucket: str,
        *,
        tool: str = "mc",
        extension: str = DEFAULT_ARCHIVE_EXTENSION,
        timeout: float = 60.0,
        retries: int = 0,
    ) -> None:
        self._bucket = bucket.rstrip("/")
        self._tool = tool
        self._extension = extension.lstrip(".")
        self._timeout = timeout
        self._retries = max(0, retries)

    @property
    def tool(self) -> str:
        return self._tool

    def key_for(self, key: ArtifactKey) -> str:
        return remote_key(self._bucket, key, self._extension)

    def is_available(self) -> bool:
        """Return True if the client executable is on PATH."""
        return shutil.which(self._tool) is not None

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def exists(self, key: ArtifactKey) -> RemoteCheck:
        target = self.key_for(key)
        check = self._check_once(target)
        attempt = 0
        while check.status == RemoteStatus.ERROR and attempt < self._retries:
            attempt += 1
            logger.debug("Retrying presence check for %s (%d/%d)", target, attempt, self._retries)
            time.sleep(_RETRY_DELAY_SECONDS * attempt)
            check = self._check_once(target)
        return check

    def fetch(self, key: ArtifactKey, destination: Path) -> FetchResult:
        target = self.key_for(key)
        result = self._fetch_once(target, Path(destination))
        attempt = 0
        while not result.ok and attempt < self._retries:
            attempt += 1
            logger.debug("Retrying download of %s (%d/%d)", target, attempt, self._retries)
            time.sleep(_RETRY_DELAY_SECONDS * attempt)
            result = self._fetch_once(target, Path(destination))
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Invoke the client. Raises RemoteUnreachable if it cannot run at all."""
        executable = shutil.which(self._tool)
        if executable is None:
            raise RemoteUnreachable(f"'{self._tool}' not found on PATH")
        try:
            return subprocess.run(
                [executable, *args],
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise RemoteUnreachable(
                f"'{self._tool} {args[0]}' timed out after {self._timeout:g}s"
            ) from exc
        except (subprocess.SubprocessError, OSError) as exc:
            raise RemoteUnreachable(f"'{self._tool} {args[0]}' failed to run: {exc}") from exc

    def _check_once(self, target: str) -> RemoteCheck:
        try:
            result = self._run("stat", "--json", target)
        except RemoteUnreachable as exc:
            return RemoteCheck.error(str(exc))

        if result.returncode == 0:
            return RemoteCheck.present()

        output = f"{result.stdout}\n{result.stderr}"
        if any(marker in output.lower() for marker in _NOT_FOUND_MARKERS):
            return RemoteCheck.absent(f"{target} not found on server")
        return RemoteCheck.error(_describe_failure(result))

    def _fetch_once(self, target: str, destination: Path) -> FetchResult:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return FetchResult.failure(f"cannot create {destination.parent}: {exc}")

        try:
            result = self._run("cp", "--quiet", target, str(destination))
        except RemoteUnreachable as exc:
            return FetchResult.failure(str(exc))

        if result.returncode != 0:
            return FetchResult.failure(_describe_failure(result))
        if not destination.is_file() or destination.stat().st_size == 0:
            return FetchResult.failure(f"download of {target} produced no data")
        return FetchResult.success()


def _describe_failure(result: subprocess.CompletedProcess[str]) -> str:
    """Pull a readable message out of mc's (possibly JSON) output."""
    for stream in (result.stdout, result.stderr):
        for line in stream.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                return line
            if isinstance(payload, dict):
                error = payload.get("error")
                if isinstance(error, dict) and error.get("message"):
                    return str(error["message"])
    return f"exit code {result.returncode}"


class DirectoryRemoteClient:
    """A remote store backed by a plain directory (shared mount, tests).

    Archives live at ``{root}/{lower name}/{dotted version}.{extension}``,
    the same layout as the object store.
    """

    def __init__(self, root: Path, *, extension: str = DEFAULT_ARCHIVE_EXTENSION) -> None:
        self._root = Path(root)
        self._extension = extension.lstrip(".")

    def key_for(self, key: ArtifactKey) -> Path:
        return self._root / key.relative_path(self._extension)

    def exists(self, key: ArtifactKey) -> RemoteCheck:
        if not self._root.is_dir():
            return RemoteCheck.error(f"remote directory {self._root} is not mounted")
        if self.key_for(key).is_file():
            return RemoteCheck.present()
        return RemoteCheck.absent(f"{self.key_for(key)} not found")

    def fetch(self, key: ArtifactKey, destination: Path) -> FetchResult:
        source = self.key_for(key)
        try:
            Path(destination).parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
        except OSError as exc:
            return FetchResult.failure(f"copy of {source} failed: {exc}")
        return FetchResult.success()
