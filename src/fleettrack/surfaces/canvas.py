"""Map provider boundary.

A :class:`MapCanvas` is one concrete map (or table) bound to a container.
Controllers only talk to canvases through this protocol, so the tracking
core never depends on a particular map library.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict

from fleettrack.models.status import RiderStatus
from fleettrack.surfaces.profiles import IconSpec, SurfaceProfile

Point = tuple[float, float]
MoveListener = Callable[[Point, int], None]


class MarkerSpec(BaseModel):
    """Everything a canvas needs to draw one rider marker."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    position: Point
    label: str
    status: RiderStatus
    popup_html: str
    icon: IconSpec
    z_index: int = 0


class MapCanvas(Protocol):
    def add_marker(self, spec: MarkerSpec) -> None: ...

    def move_marker(self, key: str, position: Point) -> None: ...

    def update_marker(self, spec: MarkerSpec) -> None: ...

    def remove_marker(self, key: str) -> None: ...

    def add_polyline(self, key: str, points: Sequence[Point]) -> None: ...

    def remove_polyline(self, key: str) -> None: ...

    def fit_bounds(self, points: Sequence[Point], padding: float) -> None: ...

    def set_view(self, center: Point, zoom: int) -> None: ...

    def open_popup(self, key: str) -> None: ...

    def set_overlay(self, tile_url: str | None) -> None: ...

    def on_move(self, listener: MoveListener) -> None: ...

    def destroy(self) -> None: ...


CanvasFactory = Callable[[Any, SurfaceProfile], MapCanvas]
"""Creates a canvas bound to ``container`` for a surface profile."""


def padded_bounds(points: Sequence[Point], padding: float) -> tuple[Point, Point]:
    """South-west/north-east corners of *points*, grown by *padding* per side.

    Matches Leaflet's ``LatLngBounds.pad``: each side grows by ``padding``
    times the span.
    """
    if not points:
        raise ValueError("points must not be empty")
    lats = [p[0] for p in points]
    lngs = [p[1] for p in points]
    south, north = min(lats), max(lats)
    west, east = min(lngs), max(lngs)
    lat_pad = (north - south) * padding
    lng_pad = (east - west) * padding
    return (south - lat_pad, west - lng_pad), (north + lat_pad, east + lng_pad)
