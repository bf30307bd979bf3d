"""Tabular surface.

Renders riders as rows instead of map markers. Camera, popup, overlay and
trail calls are accepted and ignored so the same controller drives it.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict

from fleettrack.models.status import RiderStatus
from fleettrack.surfaces.canvas import MarkerSpec, MoveListener, Point
from fleettrack.surfaces.profiles import SurfaceProfile


class TableRow(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    rider_key: str
    name: str
    status: RiderStatus
    lat: float
    lng: float
    highlighted: bool = False


class TableCanvas:
    def __init__(self, container: Any, profile: SurfaceProfile) -> None:
        self._container = container
        self._profile = profile
        self._rows: dict[str, MarkerSpec] = {}
        self._highlighted: str | None = None

    @classmethod
    def factory(cls, container: Any, profile: SurfaceProfile) -> TableCanvas:
        return cls(container, profile)

    def add_marker(self, spec: MarkerSpec) -> None:
        self._rows[spec.key] = spec

    def move_marker(self, key: str, position: Point) -> None:
        spec = self._rows.get(key)
        if spec is not None:
            self._rows[key] = spec.model_copy(update={"position": position})

    def update_marker(self, spec: MarkerSpec) -> None:
        self._rows[spec.key] = spec

    def remove_marker(self, key: str) -> None:
        self._rows.pop(key, None)
        if self._highlighted == key:
            self._highlighted = None

    def add_polyline(self, key: str, points: Sequence[Point]) -> None:
        return None

    def remove_polyline(self, key: str) -> None:
        return None

    def fit_bounds(self, points: Sequence[Point], padding: float) -> None:
        return None

    def set_view(self, center: Point, zoom: int) -> None:
        return None

    def open_popup(self, key: str) -> None:
        # Focus on a table highlights the row.
        if key in self._rows:
            self._highlighted = key

    def set_overlay(self, tile_url: str | None) -> None:
        return None

    def on_move(self, listener: MoveListener) -> None:
        return None

    def destroy(self) -> None:
        self._rows.clear()
        self._highlighted = None

    def rows(self) -> list[TableRow]:
        """Rows sorted live-first, then by rider name."""
        specs = sorted(self._rows.values(), key=lambda s: (not s.status.is_live, s.label.lower(), s.key))
        return [
            TableRow(
                rider_key=spec.key,
                name=spec.label,
                status=spec.status,
                lat=spec.position[0],
                lng=spec.position[1],
                highlighted=spec.key == self._highlighted,
            )
            for spec in specs
        ]
