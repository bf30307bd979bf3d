"""Short motion trails for live riders."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from fleettrack._constants import TRAIL_MAX_POINTS
from fleettrack.models.rider import RiderSnapshot

Point = tuple[float, float]


class TrailBuilder:
    """Bounded recent-position history per rider.

    Only live riders (online/active) with a location grow their trail. A
    rider that goes offline keeps its last trail until it is live again.
    Trails live as long as the builder; map surfaces only read them.
    """

    def __init__(self, max_points: int = TRAIL_MAX_POINTS) -> None:
        if max_points < 1:
            raise ValueError("max_points must be >= 1")
        self._max_points = max_points
        self._trails: dict[str, deque[Point]] = {}

    @property
    def max_points(self) -> int:
        return self._max_points

    def record_tick(self, snapshots: Iterable[RiderSnapshot]) -> None:
        for snapshot in snapshots:
            if not snapshot.status.is_live:
                continue
            point = snapshot.position
            if point is None:
                continue
            trail = self._trails.get(snapshot.rider_key)
            if trail is None:
                trail = deque(maxlen=self._max_points)
                self._trails[snapshot.rider_key] = trail
            if trail and trail[-1] == point:
                continue
            trail.append(point)

    def get_trail(self, rider_key: str) -> tuple[Point, ...]:
        trail = self._trails.get(rider_key)
        return tuple(trail) if trail is not None else ()

    def drawable_trails(self) -> dict[str, tuple[Point, ...]]:
        """Trails with at least two points (anything shorter is not a line)."""
        return {key: tuple(trail) for key, trail in self._trails.items() if len(trail) >= 2}

    def clear(self) -> None:
        self._trails.clear()
