"""Rider detail view model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fleettrack.models.parcel import ParcelAggregate
from fleettrack.models.quota import QuotaState
from fleettrack.models.rider import RiderRow
from fleettrack.models.violation import ViolationLog


class RiderDetail(BaseModel):
    """Everything the rider detail view shows for one rider."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rider: RiderRow
    # Both None when the parcel lookup failed; see parcels_error.
    aggregate: ParcelAggregate | None = None
    quota: QuotaState | None = None
    violations: list[ViolationLog] = Field(default_factory=list)
    violations_error: str | None = None
    parcels_error: str | None = None
