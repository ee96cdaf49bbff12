"""Archive extraction into the install prefix.

The archive's internal layout mirrors the install tree, so extraction is a
direct overlay: existing files are overwritten and nothing else in the
prefix is touched. Extracting the same archive twice leaves the same tree.
"""

from __future__ import annotations

import logging
import os
import tarfile
import time
import zipfile
import zlib
from pathlib import Path

from forgecache.core.errors import ForgeCacheError

logger = logging.getLogger(__name__)


class ExtractionFailed(ForgeCacheError, RuntimeError):
    """Raised when an archive is corrupt, unreadable or unsafe to extract."""


def extract_archive(archive: Path, destination: Path, *, touch: bool = True) -> list[Path]:
    """Overlay the contents of *archive* onto *destination*.

    Tar archives (any compression ``tarfile`` understands) and zip archives
    are accepted. Members that would land outside *destination* are
    rejected.

    Parameters
    ----------
    touch:
        Set the modification time of every extracted path to now, so build
        steps that compare timestamps treat the files as fresh.

    Returns
    -------
    list[Path]
        Paths of the extracted members.

    Raises
    ------
    ExtractionFailed
        If the archive cannot be read or contains unsafe members.
    """
    archive = Path(archive)
    destination = Path(destination)
    try:
        destination.mkdir(parents=True, exist_ok=True)
        if zipfile.is_zipfile(archive):
            names = _extract_zip(archive, destination)
        else:
            names = _extract_tar(archive, destination)
    except ExtractionFailed:
        raise
    except (tarfile.TarError, zipfile.BadZipFile, zlib.error, EOFError, OSError, ValueError) as exc:
        raise ExtractionFailed(f"Cannot extract {archive}: {exc}") from exc

    extracted = [destination / name for name in names]
    if touch:
        now = time.time()
        for path in extracted:
            if path.exists() and not path.is_symlink():
                os.utime(path, (now, now))

    logger.debug("Extracted %d members from %s into %s", len(extracted), archive, destination)
    return extracted


def _extract_tar(archive: Path, destination: Path) -> list[str]:
    with tarfile.open(archive, "r:*") as tar:
        members = tar.getmembers()
        # Vet and read every member once so unsafe paths and truncated
        # streams fail before anything is written to the install prefix.
        names: list[str] = []
        for member in members:
            vetted = tarfile.data_filter(member, str(destination))
            names.append(vetted.name)
            if member.isfile():
                stream = tar.extractfile(member)
                if stream is not None:
                    while stream.read(1 << 20):
                        pass
        _make_parents(destination, [n for n, m in zip(names, members) if not m.isdir()])
        tar.extractall(destination, members=members, filter="data")
        return names


def _extract_zip(archive: Path, destination: Path) -> list[str]:
    root = destination.resolve()
    with zipfile.ZipFile(archive) as zf:
        names = zf.namelist()
        for name in names:
            target = (root / name).resolve()
            if target != root and root not in target.parents:
                raise ExtractionFailed(f"Archive member {name!r} escapes {destination}")
        bad = zf.testzip()
        if bad is not None:
            raise ExtractionFailed(f"Corrupt member {bad!r} in {archive}")
        _make_parents(destination, [n for n in names if not n.endswith("/")])
        zf.extractall(destination)
        return names


def _make_parents(destination: Path, names: list[str]) -> None:
    # Concurrent extractions share the prefix; create parents race-free.
    for name in names:
        (destination / name).parent.mkdir(parents=True, exist_ok=True)
