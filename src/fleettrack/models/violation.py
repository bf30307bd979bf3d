"""Rider violation log model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from fleettrack._constants import PH_BOUNDS
from fleettrack.ingestion.normalize import is_within_bounds, normalize_lat_lng_pair, parse_timestamp, safe_str
from fleettrack.models._base import FleetRowModel

UNKNOWN_VIOLATION = "Unknown violation"


class ViolationLog(FleetRowModel):
    """A traffic/conduct violation recorded against a rider.

    Coordinates are only kept when they form a valid point inside the
    service area; swapped lat/lng pairs are corrected.
    """

    violation: str = Field(
        default=UNKNOWN_VIOLATION,
        validation_alias=AliasChoices("violation", "violation_type", "type", "violationName"),
    )
    date: datetime | None = None
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "rider_name", "username"))
    lat: float | None = None
    lng: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_point(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        pair = normalize_lat_lng_pair(merged.get("lat"), merged.get("lng"))
        if pair is None or not is_within_bounds(pair[0], pair[1], PH_BOUNDS):
            merged.pop("lat", None)
            merged.pop("lng", None)
        else:
            merged["lat"], merged["lng"] = pair
        return merged

    @field_validator("violation", mode="before")
    @classmethod
    def _coerce_violation(cls, value: Any) -> str:
        return safe_str(value) or UNKNOWN_VIOLATION

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @property
    def has_location(self) -> bool:
        return self.lat is not None and self.lng is not None
