"""Parcel table reads."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from fleettrack._api._common import fetch_all_pages, gte, in_filter, lt, select
from fleettrack._transport import Transport
from fleettrack.config import FleetConfig
from fleettrack.ingestion.rows import parse_parcel_rows
from fleettrack.models.parcel import ParcelRow

PARCEL_COLUMNS: tuple[str, ...] = ("assigned_rider_id", "status", "attempt1_status", "created_at")


async def fetch_parcels(
    config: FleetConfig,
    transport: Transport,
    rider_ids: Iterable[str],
    *,
    created_from: datetime | None = None,
    created_until: datetime | None = None,
) -> list[ParcelRow]:
    """Parcels assigned to any of *rider_ids*, optionally within a creation window."""
    ids = sorted({rider_id for rider_id in rider_ids if rider_id})
    if not ids:
        return []
    params = [select(PARCEL_COLUMNS), in_filter("assigned_rider_id", ids)]
    if created_from is not None:
        params.append(gte("created_at", created_from.isoformat()))
    if created_until is not None:
        params.append(lt("created_at", created_until.isoformat()))
    rows = await fetch_all_pages(transport, config.tables.parcels, params)
    return parse_parcel_rows(rows)
