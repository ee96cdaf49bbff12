"""Component model — a named source unit participating in one configuration pass."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator


class Component(BaseModel):
    """A source unit with a name and a path under version control.

    Identity is the name, compared case-insensitively. Store keys always use
    ``lower_name``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    source_path: Path

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Component name must not be empty")
        return value.strip()

    @property
    def lower_name(self) -> str:
        return self.name.lower()

    def same_as(self, other: Component) -> bool:
        """Return True if *other* names the same component."""
        return self.lower_name == other.lower_name
