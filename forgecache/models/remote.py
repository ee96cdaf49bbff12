"""Typed result of a remote presence check."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class RemoteStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    ERROR = "error"


class RemoteCheck(BaseModel):
    """Outcome of ``exists(key)`` on the remote store.

    ``ERROR`` covers a missing tool, timeouts, network and auth failures.
    For decision purposes it is treated like ``ABSENT``; the distinction is
    kept for diagnostics.
    """

    model_config = ConfigDict(frozen=True)

    status: RemoteStatus
    reason: str = ""

    @classmethod
    def present(cls) -> RemoteCheck:
        return cls(status=RemoteStatus.PRESENT)

    @classmethod
    def absent(cls, reason: str = "") -> RemoteCheck:
        return cls(status=RemoteStatus.ABSENT, reason=reason)

    @classmethod
    def error(cls, reason: str) -> RemoteCheck:
        return cls(status=RemoteStatus.ERROR, reason=reason)

    @property
    def is_present(self) -> bool:
        return self.status == RemoteStatus.PRESENT


class FetchResult(BaseModel):
    """Outcome of ``fetch(key, destination)``."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    reason: str = ""

    @classmethod
    def success(cls) -> FetchResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> FetchResult:
        return cls(ok=False, reason=reason)
