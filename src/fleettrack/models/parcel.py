"""Parcel row and per-rider parcel aggregates."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from fleettrack.ingestion.normalize import safe_str
from fleettrack.models._base import FleetRowModel
from fleettrack.models.status import ParcelOutcome, classify_parcel_status


class ParcelRow(FleetRowModel):
    """A row of the backend parcel table.

    ``created_at`` is kept as received; it is parsed lazily by the quota
    calculator so a single malformed date only drops that parcel.
    """

    assigned_rider_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("assigned_rider_id", "assignedRiderId", "rider_id"),
    )
    status: str | None = None
    attempt1_status: str | None = Field(
        default=None,
        validation_alias=AliasChoices("attempt1_status", "attempt1Status"),
    )
    created_at: Any = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("assigned_rider_id", "status", "attempt1_status", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def outcome(self) -> ParcelOutcome:
        return classify_parcel_status(self.status)

    @property
    def first_attempt_outcome(self) -> ParcelOutcome:
        return classify_parcel_status(self.attempt1_status)


class ParcelAggregate(BaseModel):
    """Parcel counts for one rider.

    ``delayed`` counts parcels whose first delivery attempt failed,
    regardless of their final status.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    delivered: int = 0
    ongoing: int = 0
    delayed: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.delivered + self.ongoing + self.cancelled
