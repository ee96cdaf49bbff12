"""Artifact addressing models (ArtifactKey, CacheEntry)."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from forgecache.models.versioning import VersionDescriptor

DEFAULT_ARCHIVE_EXTENSION = "tar.gz"


class ArtifactKey(BaseModel):
    """(component name, version) — addresses one archive locally and remotely.

    The name is normalised to lowercase on construction, so keys built from
    ``"Foo"`` and ``"foo"`` are equal.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: VersionDescriptor

    @field_validator("name")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("Artifact name must not be empty")
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError(f"Artifact name is not a valid path segment: {value!r}")
        return value

    def file_name(self, extension: str = DEFAULT_ARCHIVE_EXTENSION) -> str:
        """``<dotted version>.<extension>``"""
        return f"{self.version.dotted}.{extension}"

    def relative_path(self, extension: str = DEFAULT_ARCHIVE_EXTENSION) -> str:
        """``<lower name>/<dotted version>.<extension>``"""
        return f"{self.name}/{self.file_name(extension)}"

    def __str__(self) -> str:
        return f"{self.name} ({self.version.dotted})"


class CacheEntry(BaseModel):
    """A local archive path for an ArtifactKey, present or absent.

    Entries are created once and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    key: ArtifactKey
    path: Path
    present: bool = False
