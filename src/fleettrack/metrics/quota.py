"""Delivery quota and streak calculation.

Everything here is a pure function of a rider's parcel list and "today";
nothing is persisted. Parcels are bucketed by the local calendar day of
their creation timestamp.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta, tzinfo
from fractions import Fraction
from typing import Any

from fleettrack._constants import STREAK_LOOKBACK_DAYS
from fleettrack.ingestion.normalize import local_date, parse_timestamp
from fleettrack.ingestion.rows import parse_parcel_rows
from fleettrack.models.parcel import ParcelAggregate, ParcelRow
from fleettrack.models.quota import QuotaState, StreakResult
from fleettrack.models.status import ParcelOutcome

_logger = logging.getLogger(__name__)

DAILY_QUOTA_RATIO = Fraction(9, 10)

ParcelInput = Iterable[Mapping[str, Any] | ParcelRow]


def daily_quota_for(monthly_quota: int) -> int:
    """``ceil(monthly_quota * 0.9)``, computed exactly."""
    if monthly_quota <= 0:
        return 0
    return math.ceil(monthly_quota * DAILY_QUOTA_RATIO)


def _today(today: date | None, tz: tzinfo | None) -> date:
    if today is not None:
        return today
    return datetime.now(tz).date() if tz is not None else date.today()


def delivered_counts_by_day(parcels: ParcelInput, tz: tzinfo | None = None) -> Counter[date]:
    """Delivered parcels per local calendar day.

    Parcels with an unparseable ``created_at`` are skipped.
    """
    counts: Counter[date] = Counter()
    for parcel in parse_parcel_rows(parcels):
        if parcel.outcome is not ParcelOutcome.DELIVERED:
            continue
        created = parse_timestamp(parcel.created_at)
        if created is None:
            _logger.debug("Skipping delivered parcel with unparseable created_at: %r", parcel.created_at)
            continue
        counts[local_date(created, tz)] += 1
    return counts


def compute_streak(
    parcels: ParcelInput,
    daily_quota: int,
    *,
    today: date | None = None,
    tz: tzinfo | None = None,
) -> StreakResult:
    """Count consecutive days, ending today, on which the quota was met.

    The walk starts at today and stops at the first day below quota. Today
    is not special-cased: a day still in progress that is short of the
    quota ends the streak at zero.
    """
    counts = delivered_counts_by_day(parcels, tz)
    current = _today(today, tz)

    streak = 0
    for offset in range(STREAK_LOOKBACK_DAYS):
        day = current - timedelta(days=offset)
        if counts.get(day, 0) < daily_quota:
            break
        streak += 1

    today_count = counts.get(current, 0)
    return StreakResult(streak=streak, today_count=today_count, met_today=today_count >= daily_quota)


def aggregate_parcels(parcels: ParcelInput) -> ParcelAggregate:
    delivered = ongoing = delayed = cancelled = 0
    for parcel in parse_parcel_rows(parcels):
        outcome = parcel.outcome
        if outcome is ParcelOutcome.DELIVERED:
            delivered += 1
        elif outcome is ParcelOutcome.IN_TRANSIT:
            ongoing += 1
        elif outcome is ParcelOutcome.CANCELLED:
            cancelled += 1
        if parcel.first_attempt_outcome is ParcelOutcome.FAILED:
            delayed += 1
    return ParcelAggregate(delivered=delivered, ongoing=ongoing, delayed=delayed, cancelled=cancelled)


def aggregate_by_rider(parcels: ParcelInput, rider_ids: Iterable[str]) -> dict[str, ParcelAggregate]:
    """Per-rider aggregates; riders without parcels get zero counts."""
    grouped: dict[str, list[ParcelRow]] = {rider_id: [] for rider_id in rider_ids if rider_id}
    for parcel in parse_parcel_rows(parcels):
        rider_id = parcel.assigned_rider_id
        if rider_id is None or rider_id not in grouped:
            continue
        grouped[rider_id].append(parcel)
    return {rider_id: aggregate_parcels(rows) for rider_id, rows in grouped.items()}


def compute_quota_state(
    parcels: ParcelInput,
    monthly_quota: int,
    *,
    today: date | None = None,
    tz: tzinfo | None = None,
) -> QuotaState:
    rows = parse_parcel_rows(parcels)
    daily_quota = daily_quota_for(monthly_quota)
    streak = compute_streak(rows, daily_quota, today=today, tz=tz)
    delivered_total = sum(1 for row in rows if row.outcome is ParcelOutcome.DELIVERED)
    return QuotaState(
        monthly_quota=max(monthly_quota, 0),
        daily_quota=daily_quota,
        delivered_today=streak.today_count,
        streak_days=streak.streak,
        met_today=streak.met_today,
        delivered_total=delivered_total,
    )
