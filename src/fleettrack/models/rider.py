"""Rider row and rider snapshot models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from fleettrack.ingestion.normalize import normalize_coordinate, parse_timestamp, safe_str
from fleettrack.models._base import FleetRowModel
from fleettrack.models.status import RiderStatus, normalize_rider_status

UNKNOWN_RIDER_NAME = "Unknown Rider"


class RiderRow(FleetRowModel):
    """A row of the backend rider table.

    Coordinates are normalized on the way in: anything that is not a finite
    number becomes ``None``. The row is kept even then, so the rider still
    shows up in the tabular and activity views.
    """

    user_id: str | None = Field(default=None, validation_alias=AliasChoices("user_id", "id", "userId"))
    username: str | None = None
    fname: str | None = Field(default=None, validation_alias=AliasChoices("fname", "first_name"))
    mname: str | None = Field(default=None, validation_alias=AliasChoices("mname", "middle_name"))
    lname: str | None = Field(default=None, validation_alias=AliasChoices("lname", "last_name"))
    email: str | None = None
    status: RiderStatus = RiderStatus.UNKNOWN
    last_seen_lat: float | None = Field(
        default=None,
        validation_alias=AliasChoices("last_seen_lat", "lastLat", "last_lat", "lat"),
    )
    last_seen_lng: float | None = Field(
        default=None,
        validation_alias=AliasChoices("last_seen_lng", "lastLng", "last_lng", "lng", "lon"),
    )
    last_active_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("last_active_at", "lastActiveAt", "last_seen_at", "updated_at"),
    )

    @field_validator("user_id", "username", "fname", "mname", "lname", "email", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> RiderStatus:
        return normalize_rider_status(value)

    @field_validator("last_seen_lat", "last_seen_lng", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> float | None:
        return normalize_coordinate(value)

    @field_validator("last_active_at", mode="before")
    @classmethod
    def _coerce_last_active(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @property
    def rider_key(self) -> str | None:
        """Stable tracking key: the username, else the user id."""
        return self.username or self.user_id

    @property
    def display_name(self) -> str:
        full_name = " ".join(part for part in (self.fname, self.lname) if part).strip()
        return full_name or self.username or UNKNOWN_RIDER_NAME


class RiderSnapshot(BaseModel):
    """One rider's most recently known status and location.

    Valid until the next poll supersedes it; snapshots are never merged.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    rider_key: str
    display_name: str = UNKNOWN_RIDER_NAME
    status: RiderStatus = RiderStatus.UNKNOWN
    lat: float | None = None
    lng: float | None = None
    last_active_at: datetime | None = None
    user_id: str | None = None

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value: Any) -> float | None:
        return normalize_coordinate(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> RiderStatus:
        return normalize_rider_status(value)

    @classmethod
    def from_row(cls, row: RiderRow) -> RiderSnapshot | None:
        """Build a snapshot, or ``None`` when the row cannot be tracked."""
        key = row.rider_key
        if not key:
            return None
        return cls(
            rider_key=key,
            display_name=row.display_name,
            status=row.status,
            lat=row.last_seen_lat,
            lng=row.last_seen_lng,
            last_active_at=row.last_active_at,
            user_id=row.user_id,
        )

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def position(self) -> tuple[float, float] | None:
        if self.lat is None or self.lng is None:
            return None
        return (self.lat, self.lng)

    @property
    def is_trackable(self) -> bool:
        """Live and located: the only riders a map can focus on."""
        return self.status.is_live and self.has_location
