"""
CoordinatorData: immutable value shared with entities after every cycle.

This is a pure data module with no HA or network dependencies.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime

from .models import Snapshot
from .scheduler import HostStatus, RefreshResult


@dataclasses.dataclass(frozen=True)
class CoordinatorData:
    """
    Typed, copy-on-write view of the scheduler state.

    Always replace as a whole, never mutate in place.
    """

    status: HostStatus = HostStatus.LOADING

    # Last good snapshot, or a placeholder (is_placeholder=True); None before the first cycle
    snapshot: Snapshot | None = None

    next_refresh_at: datetime | None = None

    # error kind and message of the latest failed attempt, None after a success
    error_kind: str | None = None
    error_message: str | None = None

    @classmethod
    def from_result(cls, result: RefreshResult) -> CoordinatorData:
        return cls(
            status=result.status,
            snapshot=result.snapshot,
            next_refresh_at=result.next_refresh_at,
            error_kind=result.error.kind if result.error else None,
            error_message=str(result.error) if result.error else None,
        )

    @property
    def has_reading(self) -> bool:
        return self.snapshot is not None and not self.snapshot.is_placeholder
