"""Rider table reads."""

from __future__ import annotations

from fleettrack._api._common import eq, fetch_all_pages, order, select
from fleettrack._transport import Transport
from fleettrack.config import FleetConfig
from fleettrack.ingestion.rows import parse_rider_rows
from fleettrack.models.rider import RiderRow

RIDER_COLUMNS: tuple[str, ...] = (
    "user_id",
    "username",
    "fname",
    "mname",
    "lname",
    "email",
    "status",
    "last_seen_lat",
    "last_seen_lng",
    "last_active_at",
)


async def fetch_riders(config: FleetConfig, transport: Transport) -> list[RiderRow]:
    """Every rider, newest activity first."""
    params = [select(RIDER_COLUMNS), order("last_active_at", descending=True)]
    rows = await fetch_all_pages(transport, config.tables.riders, params)
    return parse_rider_rows(rows)


async def fetch_rider_by(config: FleetConfig, transport: Transport, column: str, value: str) -> RiderRow | None:
    """Point lookup on *column*; ``None`` when no valid row matches."""
    params = [select(RIDER_COLUMNS), eq(column, value), ("limit", "1")]
    rows = await transport.get_rows(config.tables.riders, params)
    parsed = parse_rider_rows(rows)
    return parsed[0] if parsed else None
