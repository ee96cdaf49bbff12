"""Per-component policy flags."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator


class PolicyFlags(BaseModel):
    """Set once at configuration time, read-only afterwards.

    ``require_prebuilt`` has no meaning when ``force_from_source`` is set, so
    the combination is rejected.
    """

    model_config = ConfigDict(frozen=True)

    force_from_source: bool = False
    require_prebuilt: bool = False

    @model_validator(mode="after")
    def _exclusive(self) -> PolicyFlags:
        if self.force_from_source and self.require_prebuilt:
            raise ValueError(
                "require_prebuilt cannot be combined with force_from_source"
            )
        return self


DEFAULT_POLICY = PolicyFlags()
