"""Tracking session.

Owns the position store, trail history and activity feed for the lifetime
of one tracking view, and publishes each tick to the mounted surfaces.
Only the polling tick writes here; surfaces read what they are handed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fleettrack._constants import ACTIVITY_FEED_CAP, TRAIL_MAX_POINTS
from fleettrack.models.activity import ActivityEvent, ActivityFeedRow
from fleettrack.models.parcel import ParcelAggregate
from fleettrack.models.rider import RiderRow, RiderSnapshot
from fleettrack.state.activity import ActivityFeed
from fleettrack.state.store import PositionStore
from fleettrack.state.trails import TrailBuilder
from fleettrack.surfaces.controller import MapSurfaceController

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TickResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    tick: int | None = None
    snapshots: list[RiderSnapshot] = Field(default_factory=list)
    moved: list[RiderSnapshot] = Field(default_factory=list)
    events: list[ActivityEvent] = Field(default_factory=list)


class RiderOverview(BaseModel):
    """A rider's snapshot plus parcel counts, for the riders table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    snapshot: RiderSnapshot
    aggregate: ParcelAggregate = Field(default_factory=ParcelAggregate)


class TrackingSession:
    """Shared tracking state for one tracking view."""

    def __init__(
        self,
        *,
        trail_length: int = TRAIL_MAX_POINTS,
        activity_cap: int = ACTIVITY_FEED_CAP,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._clock = clock
        self.positions = PositionStore()
        self.trails = TrailBuilder(trail_length)
        self.activity = ActivityFeed(activity_cap)
        self._surfaces: dict[str, MapSurfaceController] = {}
        self._aggregates: dict[str, ParcelAggregate] = {}
        self._last_tick: int | None = None
        self._closed = False

    def __enter__(self) -> TrackingSession:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_tick(self) -> int | None:
        return self._last_tick

    # ------------------------------------------------------------------
    # Surfaces
    # ------------------------------------------------------------------

    def attach(self, controller: MapSurfaceController) -> None:
        """Register a surface; it is brought up to date immediately."""
        existing = self._surfaces.get(controller.name)
        if existing is not None and existing is not controller:
            existing.unmount()
        self._surfaces[controller.name] = controller
        if controller.is_mounted and len(self.positions):
            self._publish_to(controller, self._last_tick)

    def detach(self, name: str) -> MapSurfaceController | None:
        controller = self._surfaces.pop(name, None)
        if controller is not None:
            controller.unmount()
        return controller

    def surface(self, name: str) -> MapSurfaceController | None:
        return self._surfaces.get(name)

    @property
    def surfaces(self) -> list[MapSurfaceController]:
        return list(self._surfaces.values())

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def apply_tick(
        self,
        rows: Iterable[Mapping[str, Any] | RiderRow | RiderSnapshot],
        aggregates: Mapping[str, ParcelAggregate] | None = None,
        *,
        tick: int | None = None,
        occurred_at: datetime | None = None,
    ) -> TickResult | None:
        """Diff, derive, then publish one poll result.

        Returns ``None`` (and changes nothing) when the session is closed or
        *tick* is older than the last applied tick.
        """
        if self._closed:
            _logger.debug("Ignoring tick %s on closed session", tick)
            return None
        if tick is not None and self._last_tick is not None and tick < self._last_tick:
            _logger.debug("Discarding stale tick %d (last applied %d)", tick, self._last_tick)
            return None

        result = self.positions.ingest(rows)
        self.trails.record_tick(result.snapshots)
        events = self.activity.record_moved(result.moved, occurred_at or self._clock())
        if aggregates is not None:
            self._aggregates = dict(aggregates)
        if tick is not None:
            self._last_tick = tick

        for controller in self._surfaces.values():
            self._publish_to(controller, tick)

        return TickResult(tick=tick, snapshots=result.snapshots, moved=result.moved, events=events)

    def _publish_to(self, controller: MapSurfaceController, tick: int | None) -> None:
        if not controller.is_mounted:
            return
        try:
            controller.reconcile(self.positions.snapshots(), self.trails.drawable_trails(), tick=tick)
        except Exception:
            # Surfaces fail independently.
            _logger.warning("Failed to reconcile %s surface", controller.name, exc_info=True)

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def snapshots(self) -> list[RiderSnapshot]:
        return self.positions.snapshots()

    def feed(self) -> list[ActivityFeedRow]:
        return self.activity.get_feed(self.positions.snapshots())

    def aggregate_for(self, user_id: str | None) -> ParcelAggregate:
        if not user_id:
            return ParcelAggregate()
        return self._aggregates.get(user_id, ParcelAggregate())

    def overview(self) -> list[RiderOverview]:
        return [
            RiderOverview(snapshot=snapshot, aggregate=self.aggregate_for(snapshot.user_id))
            for snapshot in self.positions.snapshots()
        ]

    def close(self) -> None:
        """Unmount every surface and drop all state. Safe to repeat."""
        if self._closed:
            return
        self._closed = True
        for controller in self._surfaces.values():
            controller.unmount()
        self._surfaces.clear()
        self.positions.clear()
        self.trails.clear()
        self.activity.clear()
        self._aggregates.clear()
