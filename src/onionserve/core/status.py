"""
Onion-service publication status.

The transport reports an ordered, possibly repeating sequence of these.
The lifecycle only cares which side of the partition each one falls on:

    terminal success   REACHABLE, DEGRADED_REACHABLE
    terminal failure   BROKEN
    transient          everything else
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StatusKind(Enum):
    STARTING = "starting"
    PUBLISHING = "publishing"
    REACHABLE = "reachable"
    DEGRADED_REACHABLE = "degraded_reachable"
    BROKEN = "broken"


class StatusPartition(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    TRANSIENT = "transient"


@dataclass(frozen=True)
class BootstrapStatus:
    """One status event. `detail` is the Publishing sub-state or the Broken reason."""

    kind: StatusKind
    detail: Optional[str] = None

    @property
    def partition(self) -> StatusPartition:
        if self.kind in (StatusKind.REACHABLE, StatusKind.DEGRADED_REACHABLE):
            return StatusPartition.SUCCESS
        if self.kind is StatusKind.BROKEN:
            return StatusPartition.FAILURE
        return StatusPartition.TRANSIENT

    def describe(self) -> str:
        """Short human label, e.g. "publishing (upload)"."""
        label = self.kind.value.replace("_", " ")
        if self.detail:
            return f"{label} ({self.detail})"
        return label

    @classmethod
    def starting(cls) -> "BootstrapStatus":
        return cls(StatusKind.STARTING)

    @classmethod
    def publishing(cls, detail: Optional[str] = None) -> "BootstrapStatus":
        return cls(StatusKind.PUBLISHING, detail)

    @classmethod
    def reachable(cls) -> "BootstrapStatus":
        return cls(StatusKind.REACHABLE)

    @classmethod
    def degraded(cls, detail: Optional[str] = None) -> "BootstrapStatus":
        return cls(StatusKind.DEGRADED_REACHABLE, detail)

    @classmethod
    def broken(cls, reason: Optional[str] = None) -> "BootstrapStatus":
        return cls(StatusKind.BROKEN, reason)
