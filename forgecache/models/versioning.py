"""Version descriptor model — a four-part fingerprint of a source revision."""

from __future__ import annotations

from functools import total_ordering

from pydantic import BaseModel, ConfigDict, field_validator


@total_ordering
class VersionDescriptor(BaseModel):
    """Four non-negative integers derived from a revision identifier.

    Equality is exact; ordering is lexicographic over the four parts and
    carries no meaning about which source state is newer.
    """

    model_config = ConfigDict(frozen=True)

    parts: tuple[int, int, int, int]

    def __init__(self, *args: int, **data: object) -> None:
        if args:
            data["parts"] = tuple(args)
        super().__init__(**data)

    @field_validator("parts")
    @classmethod
    def _non_negative(cls, value: tuple[int, int, int, int]) -> tuple[int, int, int, int]:
        if any(p < 0 for p in value):
            raise ValueError(f"Version parts must be non-negative: {value}")
        return value

    @classmethod
    def parse(cls, dotted: str) -> VersionDescriptor:
        """Parse ``"a.b.c.d"``. Leading zeros are allowed (``00.00.00.00``)."""
        pieces = dotted.strip().split(".")
        if len(pieces) != 4 or not all(p.isdigit() for p in pieces):
            raise ValueError(f"Not a four-part decimal version: {dotted!r}")
        return cls(*(int(p) for p in pieces))

    @classmethod
    def placeholder(cls) -> VersionDescriptor:
        """The descriptor used for components without version control."""
        return cls(0, 0, 0, 0)

    @property
    def dotted(self) -> str:
        return ".".join(str(p) for p in self.parts)

    def __str__(self) -> str:
        return self.dotted

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionDescriptor):
            return NotImplemented
        return self.parts < other.parts
