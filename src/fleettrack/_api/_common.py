"""Shared helpers for the endpoint modules.

Covers PostgREST filter syntax and offset paging. Internal to fleettrack
and may change at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fleettrack._constants import MAX_PAGES, PAGE_SIZE
from fleettrack._transport import QueryParams, Transport

_logger = logging.getLogger(__name__)

_RESERVED = set(',()"\\ ')


def _quote(value: str) -> str:
    if any(ch in _RESERVED for ch in value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def in_filter(column: str, values: Iterable[str]) -> tuple[str, str]:
    """``column=in.(a,b,c)``; values containing reserved characters are quoted."""
    return column, f"in.({','.join(_quote(str(v)) for v in values)})"


def eq(column: str, value: Any) -> tuple[str, str]:
    return column, f"eq.{value}"


def gte(column: str, value: Any) -> tuple[str, str]:
    return column, f"gte.{value}"


def lt(column: str, value: Any) -> tuple[str, str]:
    return column, f"lt.{value}"


def order(column: str, *, descending: bool = False) -> tuple[str, str]:
    return "order", f"{column}.{'desc' if descending else 'asc'}"


def select(columns: Iterable[str]) -> tuple[str, str]:
    return "select", ",".join(columns)


async def fetch_all_pages(
    transport: Transport,
    table: str,
    params: QueryParams,
    *,
    page_size: int = PAGE_SIZE,
    max_pages: int = MAX_PAGES,
) -> list[dict[str, Any]]:
    """Read *table* page by page until a short page or the page cap."""
    rows: list[dict[str, Any]] = []
    for page in range(max_pages):
        page_params = [*params, ("limit", str(page_size)), ("offset", str(page * page_size))]
        batch = await transport.get_rows(table, page_params)
        rows.extend(batch)
        if len(batch) < page_size:
            return rows
    _logger.warning("Stopped reading %s after %d pages (%d rows)", table, max_pages, len(rows))
    return rows
