"""Data models for fleettrack."""

from fleettrack.models.activity import ActivityEvent, ActivityFeedRow, FeedSource
from fleettrack.models.detail import RiderDetail
from fleettrack.models.focus import FocusRequest, FocusResult
from fleettrack.models.parcel import ParcelAggregate, ParcelRow
from fleettrack.models.quota import QuotaState, StreakResult
from fleettrack.models.rider import RiderRow, RiderSnapshot
from fleettrack.models.status import (
    ParcelOutcome,
    RiderStatus,
    classify_parcel_status,
    normalize_rider_status,
)
from fleettrack.models.violation import ViolationLog
from fleettrack.models.weather import WeatherSnapshot

__all__ = [
    "ActivityEvent",
    "ActivityFeedRow",
    "FeedSource",
    "FocusRequest",
    "FocusResult",
    "ParcelAggregate",
    "ParcelOutcome",
    "ParcelRow",
    "QuotaState",
    "RiderDetail",
    "RiderRow",
    "RiderSnapshot",
    "RiderStatus",
    "StreakResult",
    "ViolationLog",
    "WeatherSnapshot",
    "classify_parcel_status",
    "normalize_rider_status",
]
