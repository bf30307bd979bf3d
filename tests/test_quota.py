from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest

from fleettrack.metrics.quota import (
    aggregate_by_rider,
    aggregate_parcels,
    compute_quota_state,
    compute_streak,
    daily_quota_for,
    delivered_counts_by_day,
)
from fleettrack.models.quota import QuotaState

TODAY = date(2026, 3, 3)


def _delivered(day: date, count: int, status: str = "Successfully Delivered") -> list[dict[str, Any]]:
    return [
        {"assigned_rider_id": "u1", "status": status, "created_at": f"{day.isoformat()}T09:{i % 60:02d}:00"}
        for i in range(count)
    ]


def _history(*counts: int) -> list[dict[str, Any]]:
    """Parcels for consecutive days ending today; the last count is today's."""
    parcels: list[dict[str, Any]] = []
    for offset, count in enumerate(reversed(counts)):
        parcels += _delivered(TODAY - timedelta(days=offset), count)
    return parcels


@pytest.mark.parametrize(("monthly", "daily"), [(150, 135), (10, 9), (1, 1), (0, 0), (-5, 0)])
def test_daily_quota_is_ceiling_of_ninety_percent(monthly: int, daily: int) -> None:
    assert daily_quota_for(monthly) == daily


def test_streak_counts_three_consecutive_days() -> None:
    result = compute_streak(_history(10, 10, 10), 10, today=TODAY)

    assert result.streak == 3
    assert result.today_count == 10
    assert result.met_today is True


def test_streak_stops_at_first_shortfall() -> None:
    result = compute_streak(_history(10, 9, 10), 10, today=TODAY)

    assert result.streak == 1


def test_today_shortfall_ends_streak_at_zero() -> None:
    result = compute_streak(_history(10, 10, 3), 10, today=TODAY)

    assert result.streak == 0
    assert result.today_count == 3
    assert result.met_today is False


def test_streak_ignores_undelivered_and_unparseable_parcels() -> None:
    parcels = _history(2, 2)
    parcels += [
        {"status": "on-going", "created_at": TODAY.isoformat()},
        {"status": "delivered", "created_at": "not a date"},
        {"status": "delivered", "created_at": None},
    ]

    result = compute_streak(parcels, 2, today=TODAY)

    assert result.streak == 2
    assert result.today_count == 2


def test_days_are_bucketed_in_the_given_zone() -> None:
    manila = timezone(timedelta(hours=8))
    parcels = [{"status": "delivered", "created_at": "2026-03-02T20:00:00Z"}]

    assert delivered_counts_by_day(parcels, manila) == {date(2026, 3, 3): 1}
    assert delivered_counts_by_day(parcels, timezone.utc) == {date(2026, 3, 2): 1}


def test_aware_today_uses_zone_clock() -> None:
    manila = timezone(timedelta(hours=8))
    now = datetime.now(manila)
    parcels = [{"status": "delivered", "created_at": now.isoformat()}]

    assert compute_streak(parcels, 1, tz=manila).streak == 1


def test_quota_state_combines_streak_and_totals() -> None:
    state = compute_quota_state(_history(9, 9) + [{"status": "cancelled", "created_at": TODAY.isoformat()}], 10, today=TODAY)

    assert state == QuotaState(
        monthly_quota=10,
        daily_quota=9,
        delivered_today=9,
        streak_days=2,
        met_today=True,
        delivered_total=18,
    )
    assert state.progress_percent == 100


def test_quota_state_rejects_daily_above_monthly() -> None:
    with pytest.raises(ValueError):
        QuotaState(monthly_quota=5, daily_quota=6)


def test_aggregate_parcels() -> None:
    parcels = [
        {"status": "Successfully Delivered", "attempt1_status": "failed"},
        {"status": "delivered"},
        {"status": "On-Going"},
        {"status": "Cancelled", "attempt1_status": "FAILED"},
        {"status": "returned"},
    ]

    agg = aggregate_parcels(parcels)

    assert (agg.delivered, agg.ongoing, agg.delayed, agg.cancelled) == (2, 1, 2, 1)
    assert agg.total == 4


def test_aggregate_by_rider_fills_missing_riders() -> None:
    parcels = [
        {"assigned_rider_id": "u1", "status": "delivered"},
        {"assigned_rider_id": "u2", "status": "on-going"},
        {"assigned_rider_id": "stranger", "status": "delivered"},
        {"status": "delivered"},
    ]

    result = aggregate_by_rider(parcels, ["u1", "u2", "u3"])

    assert result["u1"].delivered == 1
    assert result["u2"].ongoing == 1
    assert result["u3"].total == 0
    assert set(result) == {"u1", "u2", "u3"}
