from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from .core.domain.reading import Reading
from .core.domain.status import ConnectionStatus, SeverityBand
from .lifecycle.activity import ActivityState
from .monitor import FeedSnapshot


class ReadingOut(BaseModel):
    value: float
    observed_at: datetime

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingOut":
        return cls(value=reading.value, observed_at=reading.observed_at)


class BoundsOut(BaseModel):
    normal_min: Optional[float] = None
    normal_max: float
    warning_max: float


class FeedStatusOut(BaseModel):
    status: ConnectionStatus
    ready: bool
    client_id: str
    topic: str
    latest: Optional[ReadingOut] = None
    severity: Optional[SeverityBand] = None
    bounds: BoundsOut
    history: List[ReadingOut]
    last_error: Optional[str] = None
    taken_at: datetime

    @classmethod
    def from_snapshot(cls, snap: FeedSnapshot) -> "FeedStatusOut":
        return cls(
            status=snap.status,
            ready=snap.ready,
            client_id=snap.client_id,
            topic=snap.topic,
            latest=ReadingOut.from_reading(snap.latest) if snap.latest is not None else None,
            severity=snap.severity,
            bounds=BoundsOut(**snap.bounds.to_dict()),
            history=[ReadingOut.from_reading(r) for r in snap.history],
            last_error=snap.last_error,
            taken_at=snap.taken_at,
        )


class ActivityIn(BaseModel):
    state: ActivityState


class ActivityOut(BaseModel):
    state: ActivityState
    status: ConnectionStatus
    resumes: int
