from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from fleettrack.config import FleetConfig
from fleettrack.models.rider import RiderSnapshot
from fleettrack.surfaces.canvas import MarkerSpec, MoveListener, Point
from fleettrack.surfaces.profiles import SurfaceProfile


@dataclass
class RecordingCanvas:
    """MapCanvas double that records every call in order."""

    container: Any
    profile: SurfaceProfile
    calls: list[tuple[str, Any]] = field(default_factory=list)
    markers: dict[str, MarkerSpec] = field(default_factory=dict)
    polylines: dict[str, list[Point]] = field(default_factory=dict)
    listeners: list[MoveListener] = field(default_factory=list)
    destroyed: bool = False

    def add_marker(self, spec: MarkerSpec) -> None:
        self.calls.append(("add_marker", spec.key))
        self.markers[spec.key] = spec

    def move_marker(self, key: str, position: Point) -> None:
        self.calls.append(("move_marker", (key, position)))
        self.markers[key] = self.markers[key].model_copy(update={"position": position})

    def update_marker(self, spec: MarkerSpec) -> None:
        self.calls.append(("update_marker", spec.key))
        self.markers[spec.key] = spec

    def remove_marker(self, key: str) -> None:
        self.calls.append(("remove_marker", key))
        self.markers.pop(key, None)

    def add_polyline(self, key: str, points: Sequence[Point]) -> None:
        self.calls.append(("add_polyline", key))
        self.polylines[key] = list(points)

    def remove_polyline(self, key: str) -> None:
        self.calls.append(("remove_polyline", key))
        self.polylines.pop(key, None)

    def fit_bounds(self, points: Sequence[Point], padding: float) -> None:
        self.calls.append(("fit_bounds", (tuple(points), padding)))

    def set_view(self, center: Point, zoom: int) -> None:
        self.calls.append(("set_view", (center, zoom)))
        for listener in self.listeners:
            listener(center, zoom)

    def open_popup(self, key: str) -> None:
        self.calls.append(("open_popup", key))

    def set_overlay(self, tile_url: str | None) -> None:
        self.calls.append(("set_overlay", tile_url))

    def on_move(self, listener: MoveListener) -> None:
        self.listeners.append(listener)

    def destroy(self) -> None:
        self.calls.append(("destroy", None))
        self.destroyed = True

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@dataclass
class CanvasRecorder:
    """Canvas factory that keeps every canvas it built."""

    built: list[RecordingCanvas] = field(default_factory=list)

    def __call__(self, container: Any, profile: SurfaceProfile) -> RecordingCanvas:
        canvas = RecordingCanvas(container, profile)
        self.built.append(canvas)
        return canvas

    @property
    def last(self) -> RecordingCanvas:
        return self.built[-1]


def snapshot(
    key: str,
    lat: float | None = 14.6,
    lng: float | None = 121.0,
    status: str = "online",
    name: str | None = None,
) -> RiderSnapshot:
    return RiderSnapshot(rider_key=key, display_name=name or key, status=status, lat=lat, lng=lng)


def rider_row(
    username: str,
    lat: Any = 14.6,
    lng: Any = 121.0,
    status: str = "online",
    user_id: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    row = {
        "user_id": user_id or f"uid-{username}",
        "username": username,
        "status": status,
        "last_seen_lat": lat,
        "last_seen_lng": lng,
    }
    row.update(extra)
    return row


@pytest.fixture
def canvases() -> CanvasRecorder:
    return CanvasRecorder()


@pytest.fixture
def config() -> FleetConfig:
    return FleetConfig(
        supabase_url="https://fleet.example.test",
        supabase_key="anon-key",
        poll_interval=0.01,
        monthly_quota=10,
        weather_api_key="owm-key",
    )
