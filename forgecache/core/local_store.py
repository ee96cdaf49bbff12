"""Local Cache Store — downloaded artifact archives keyed by (name, version).

Storage layout: {cache_root}/{lower name}/{dotted version}.{extension}

Presence of the file is the only validity check; there is no checksum.
Writes go to a temporary file in the same directory and are renamed into
place, so a reader never observes a partially written archive. No eviction
is performed here.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from forgecache.core.errors import ForgeCacheError
from forgecache.models.artifacts import DEFAULT_ARCHIVE_EXTENSION, ArtifactKey, CacheEntry
from forgecache.models.versioning import VersionDescriptor

logger = logging.getLogger(__name__)

_TEMP_PREFIX = ".partial-"


class CacheWriteFailed(ForgeCacheError, RuntimeError):
    """Raised when the local cache cannot be written (permissions, disk full...)."""


class LocalCacheStore:
    """On-disk cache of artifact archives.

    Entries are created once and never modified. ``put`` for an existing key
    is a no-op returning the existing entry.

    Parameters
    ----------
    root:
        Cache root directory. Created lazily on the first write.
    extension:
        Archive file extension, without a leading dot.
    """

    def __init__(self, root: Path, *, extension: str = DEFAULT_ARCHIVE_EXTENSION) -> None:
        self._root = Path(root)
        self._extension = extension.lstrip(".")

    @property
    def root(self) -> Path:
        return self._root

    @property
    def extension(self) -> str:
        return self._extension

    def path_for(self, key: ArtifactKey) -> Path:
        """Compute the storage path for a key (whether or not it exists)."""
        return self._root / key.name / key.file_name(self._extension)

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def has(self, key: ArtifactKey) -> bool:
        return self.path_for(key).is_file()

    def get(self, key: ArtifactKey) -> Path | None:
        """Return the archive path for *key*, or None if absent."""
        path = self.path_for(key)
        return path if path.is_file() else None

    def entry(self, key: ArtifactKey) -> CacheEntry:
        path = self.path_for(key)
        return CacheEntry(key=key, path=path, present=path.is_file())

    def list_entries(self) -> list[CacheEntry]:
        """Every complete archive under the cache root, sorted by key."""
        entries: list[CacheEntry] = []
        if not self._root.is_dir():
            return entries
        suffix = f".{self._extension}"
        for name_dir in sorted(p for p in self._root.iterdir() if p.is_dir()):
            for archive in sorted(name_dir.iterdir()):
                if archive.name.startswith(_TEMP_PREFIX) or not archive.name.endswith(suffix):
                    continue
                try:
                    version = VersionDescriptor.parse(archive.name[: -len(suffix)])
                    key = ArtifactKey(name=name_dir.name, version=version)
                except ValueError:
                    continue
                entries.append(CacheEntry(key=key, path=archive, present=True))
        return entries

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @contextmanager
    def staging_path(self, key: ArtifactKey) -> Iterator[Path]:
        """Yield a unique temporary path beside the final entry location.

        The file is removed on exit unless it was moved into place by
        ``put(..., move=True)``.
        """
        final = self.path_for(key)
        try:
            final.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f"{_TEMP_PREFIX}{final.name}.", dir=final.parent
            )
            os.close(fd)
        except OSError as exc:
            raise CacheWriteFailed(f"Cannot create staging file for {key}: {exc}") from exc

        tmp = Path(tmp_name)
        try:
            yield tmp
        finally:
            tmp.unlink(missing_ok=True)

    def put(self, key: ArtifactKey, source_archive: Path, *, move: bool = False) -> CacheEntry:
        """Place *source_archive* in the cache under *key*.

        If an entry already exists it is kept as-is and *source_archive* is
        left untouched. With ``move=True`` the source is renamed instead of
        copied; it must live on the same filesystem as the cache.

        Raises
        ------
        CacheWriteFailed
            On any filesystem error.
        """
        final = self.path_for(key)
        if final.is_file():
            logger.debug("Cache entry for %s already present at %s", key, final)
            return CacheEntry(key=key, path=final, present=True)

        source_archive = Path(source_archive)
        try:
            final.parent.mkdir(parents=True, exist_ok=True)
            if move:
                os.replace(source_archive, final)
            else:
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f"{_TEMP_PREFIX}{final.name}.", dir=final.parent
                )
                os.close(fd)
                try:
                    shutil.copyfile(source_archive, tmp_name)
                    os.replace(tmp_name, final)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
        except OSError as exc:
            raise CacheWriteFailed(f"Cannot write cache entry for {key}: {exc}") from exc

        logger.debug("Stored %s at %s", key, final)
        return CacheEntry(key=key, path=final, present=True)

    def discard(self, key: ArtifactKey) -> bool:
        """Remove the entry for *key* so later lookups do not trust it.

        Returns True if an entry was removed.
        """
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise CacheWriteFailed(f"Cannot discard cache entry for {key}: {exc}") from exc
        logger.info("Discarded cache entry %s", path)
        return True
