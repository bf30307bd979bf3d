"""Rider and parcel status domains.

Backend status columns are free-form text. They are classified once, here,
into tagged enum values; nothing else in the library compares raw status
strings.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fleettrack.ingestion.normalize import normalize_status_text


class RiderStatus(StrEnum):
    ONLINE = "online"
    ACTIVE = "active"
    OFFLINE = "offline"
    INACTIVE = "inactive"
    UNKNOWN = "unknown"

    @property
    def is_live(self) -> bool:
        """Whether the rider is reporting positions (online or active)."""
        return self in (RiderStatus.ONLINE, RiderStatus.ACTIVE)

    @property
    def is_offline(self) -> bool:
        return self in (RiderStatus.OFFLINE, RiderStatus.INACTIVE)


class ParcelOutcome(StrEnum):
    DELIVERED = "delivered"
    IN_TRANSIT = "in_transit"
    CANCELLED = "cancelled"
    FAILED = "failed"
    OTHER = "other"


_RIDER_STATUS_BY_TEXT: dict[str, RiderStatus] = {
    "online": RiderStatus.ONLINE,
    "active": RiderStatus.ACTIVE,
    "offline": RiderStatus.OFFLINE,
    "inactive": RiderStatus.INACTIVE,
}

_PARCEL_OUTCOME_BY_TEXT: dict[str, ParcelOutcome] = {
    "successfully delivered": ParcelOutcome.DELIVERED,
    "delivered": ParcelOutcome.DELIVERED,
    "successful": ParcelOutcome.DELIVERED,
    "success": ParcelOutcome.DELIVERED,
    "completed": ParcelOutcome.DELIVERED,
    "on going": ParcelOutcome.IN_TRANSIT,
    "cancelled": ParcelOutcome.CANCELLED,
    "canceled": ParcelOutcome.CANCELLED,
    "failed": ParcelOutcome.FAILED,
}


def normalize_rider_status(value: Any) -> RiderStatus:
    if isinstance(value, RiderStatus):
        return value
    return _RIDER_STATUS_BY_TEXT.get(normalize_status_text(value), RiderStatus.UNKNOWN)


def classify_parcel_status(value: Any) -> ParcelOutcome:
    if isinstance(value, ParcelOutcome):
        return value
    return _PARCEL_OUTCOME_BY_TEXT.get(normalize_status_text(value), ParcelOutcome.OTHER)
