"""Row parsing for the rider and parcel tables.

A malformed row is logged and skipped; it never aborts parsing of the other
rows in the same batch.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from fleettrack.models.parcel import ParcelRow
from fleettrack.models.rider import RiderRow
from fleettrack.models.violation import ViolationLog

_logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=BaseModel)


def _parse_rows(model: type[TModel], rows: Iterable[Mapping[str, Any] | TModel]) -> list[TModel]:
    parsed: list[TModel] = []
    for index, row in enumerate(rows):
        if isinstance(row, model):
            parsed.append(row)
            continue
        if not isinstance(row, Mapping):
            _logger.debug("Skipping non-mapping %s row at index %d", model.__name__, index)
            continue
        try:
            parsed.append(model.model_validate(dict(row)))
        except ValidationError:
            _logger.debug("Skipping malformed %s row at index %d", model.__name__, index, exc_info=True)
    return parsed


def parse_rider_rows(rows: Iterable[Mapping[str, Any] | RiderRow]) -> list[RiderRow]:
    return _parse_rows(RiderRow, rows)


def parse_parcel_rows(rows: Iterable[Mapping[str, Any] | ParcelRow]) -> list[ParcelRow]:
    return _parse_rows(ParcelRow, rows)


def parse_violation_rows(rows: Iterable[Mapping[str, Any] | ViolationLog]) -> list[ViolationLog]:
    return _parse_rows(ViolationLog, rows)
