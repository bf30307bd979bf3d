"""Capped, de-duplicated rider activity feed."""

from __future__ import annotations

import itertools
from collections import deque
from collections.abc import Iterable
from datetime import UTC, datetime

from fleettrack._constants import ACTIVITY_FEED_CAP
from fleettrack.models.activity import ActivityEvent, ActivityFeedRow, FeedSource
from fleettrack.models.rider import RiderSnapshot


def _snapshot_sort_key(snapshot: RiderSnapshot) -> tuple[int, int, float]:
    # Live riders first, then most recent activity, then riders never seen.
    live_rank = 0 if snapshot.status.is_live else 1
    missing_rank = 1 if snapshot.last_active_at is None else 0
    # Naive timestamps are local wall-clock time; timestamp() handles both.
    recency = -snapshot.last_active_at.timestamp() if snapshot.last_active_at else 0.0
    return (live_rank, missing_rank, recency)


class ActivityFeed:
    """Movement events, newest first, capped at ``cap`` entries."""

    def __init__(self, cap: int = ACTIVITY_FEED_CAP) -> None:
        if cap < 1:
            raise ValueError("cap must be >= 1")
        self._cap = cap
        self._events: deque[ActivityEvent] = deque(maxlen=cap)
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._events)

    @property
    def cap(self) -> int:
        return self._cap

    def record_moved(self, moved: Iterable[RiderSnapshot], occurred_at: datetime | None = None) -> list[ActivityEvent]:
        """Prepend one event per moved rider; the oldest fall off past the cap."""
        when = occurred_at or datetime.now(UTC)
        created: list[ActivityEvent] = []
        for snapshot in moved:
            event = ActivityEvent(
                id=next(self._ids),
                rider_key=snapshot.rider_key,
                rider_name=snapshot.display_name,
                status=snapshot.status,
                occurred_at=when,
                lat=snapshot.lat,
                lng=snapshot.lng,
            )
            self._events.appendleft(event)
            created.append(event)
        return created

    def events(self) -> list[ActivityEvent]:
        return list(self._events)

    def get_feed(self, snapshots: Iterable[RiderSnapshot] = ()) -> list[ActivityFeedRow]:
        """Merge recorded events with the current snapshot set.

        Each rider appears once: its newest event if it has one (in event
        order), otherwise its snapshot, appended after all event rows.
        """
        rows: list[ActivityFeedRow] = []
        seen: set[str] = set()
        for event in self._events:
            if event.rider_key in seen:
                continue
            seen.add(event.rider_key)
            rows.append(
                ActivityFeedRow(
                    rider_key=event.rider_key,
                    rider_name=event.rider_name,
                    status=event.status,
                    occurred_at=event.occurred_at,
                    lat=event.lat,
                    lng=event.lng,
                    source=FeedSource.EVENT,
                )
            )

        fallback: list[RiderSnapshot] = []
        for snapshot in snapshots:
            if snapshot.rider_key in seen:
                continue
            seen.add(snapshot.rider_key)
            fallback.append(snapshot)

        # sorted() is stable: ties keep snapshot order.
        for snapshot in sorted(fallback, key=_snapshot_sort_key):
            rows.append(
                ActivityFeedRow(
                    rider_key=snapshot.rider_key,
                    rider_name=snapshot.display_name,
                    status=snapshot.status,
                    occurred_at=snapshot.last_active_at,
                    lat=snapshot.lat,
                    lng=snapshot.lng,
                    source=FeedSource.SNAPSHOT,
                )
            )
        return rows

    def clear(self) -> None:
        self._events.clear()
