"""Violation log reads."""

from __future__ import annotations

from fleettrack._api._common import eq, fetch_all_pages, order, select
from fleettrack._transport import Transport
from fleettrack.config import FleetConfig
from fleettrack.ingestion.rows import parse_violation_rows
from fleettrack.models.violation import ViolationLog

VIOLATION_COLUMNS: tuple[str, ...] = ("violation", "date", "lat", "lng", "name")


async def fetch_violations(config: FleetConfig, transport: Transport, user_id: str) -> list[ViolationLog]:
    """Violations logged against the rider *user_id*, newest first."""
    params = [select(VIOLATION_COLUMNS), eq("user_id", user_id), order("date", descending=True)]
    rows = await fetch_all_pages(transport, config.tables.violations, params)
    return parse_violation_rows(rows)
