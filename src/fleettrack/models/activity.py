"""Activity feed models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from fleettrack.models.status import RiderStatus


class FeedSource(StrEnum):
    EVENT = "event"
    SNAPSHOT = "snapshot"


class ActivityEvent(BaseModel):
    """A rider position change observed between two consecutive polls."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    rider_key: str
    rider_name: str
    status: RiderStatus
    occurred_at: datetime
    lat: float | None = None
    lng: float | None = None


class ActivityFeedRow(BaseModel):
    """One row of the merged feed the UI consumes (one per rider)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rider_key: str
    rider_name: str
    status: RiderStatus
    occurred_at: datetime | None = None
    lat: float | None = None
    lng: float | None = None
    source: FeedSource = FeedSource.SNAPSHOT
