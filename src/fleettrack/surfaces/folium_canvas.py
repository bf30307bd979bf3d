"""Leaflet canvas rendered through folium.

folium produces a static Leaflet page, so the canvas keeps its own layer
state and builds a fresh :class:`folium.Map` on every :meth:`render`. The
hosting page reports operator pans/zooms back through :meth:`notify_moved`.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Sequence
from os import PathLike
from typing import Any

import folium

from fleettrack._constants import MAX_ZOOM, OSM_ATTRIBUTION, OSM_TILE_URL
from fleettrack.surfaces.canvas import MarkerSpec, MoveListener, Point, padded_bounds
from fleettrack.surfaces.profiles import SurfaceProfile

_logger = logging.getLogger(__name__)

TRAIL_STYLE: dict[str, Any] = {"color": "#2563eb", "weight": 4, "opacity": 0.75}
OVERLAY_ATTRIBUTION = "Weather data &copy; OpenWeatherMap"


def _marker_icon(spec: MarkerSpec) -> folium.DivIcon:
    # Relative icon URLs are resolved by the browser, never read from disk.
    size = spec.icon.size
    src = html.escape(spec.icon.url, quote=True)
    return folium.DivIcon(
        html=f'<img src="{src}" width="{size}" height="{size}" alt="">',
        icon_size=(size, size),
        icon_anchor=spec.icon.anchor,
        popup_anchor=spec.icon.popup_anchor,
        class_name="rider-marker",
    )


class FoliumCanvas:
    """:class:`~fleettrack.surfaces.canvas.MapCanvas` backed by folium."""

    def __init__(self, container: Any, profile: SurfaceProfile) -> None:
        self._container = container
        self._profile = profile
        self._markers: dict[str, MarkerSpec] = {}
        self._polylines: dict[str, list[Point]] = {}
        self._open_popup: str | None = None
        self._center: Point = profile.default_center
        self._zoom: int = profile.default_zoom
        self._bounds: tuple[Point, Point] | None = None
        self._overlay_url: str | None = None
        self._listeners: list[MoveListener] = []
        self._destroyed = False

    @classmethod
    def factory(cls, container: Any, profile: SurfaceProfile) -> FoliumCanvas:
        return cls(container, profile)

    # ------------------------------------------------------------------
    # MapCanvas
    # ------------------------------------------------------------------

    def add_marker(self, spec: MarkerSpec) -> None:
        self._markers[spec.key] = spec

    def move_marker(self, key: str, position: Point) -> None:
        spec = self._markers.get(key)
        if spec is not None:
            self._markers[key] = spec.model_copy(update={"position": position})

    def update_marker(self, spec: MarkerSpec) -> None:
        self._markers[spec.key] = spec

    def remove_marker(self, key: str) -> None:
        self._markers.pop(key, None)
        if self._open_popup == key:
            self._open_popup = None

    def add_polyline(self, key: str, points: Sequence[Point]) -> None:
        self._polylines[key] = list(points)

    def remove_polyline(self, key: str) -> None:
        self._polylines.pop(key, None)

    def fit_bounds(self, points: Sequence[Point], padding: float) -> None:
        self._bounds = padded_bounds(points, padding)
        (south, west), (north, east) = self._bounds
        self._center = ((south + north) / 2, (west + east) / 2)
        self._notify()

    def set_view(self, center: Point, zoom: int) -> None:
        self._bounds = None
        self._center = center
        self._zoom = zoom
        self._notify()

    def open_popup(self, key: str) -> None:
        if key in self._markers:
            self._open_popup = key

    def set_overlay(self, tile_url: str | None) -> None:
        self._overlay_url = tile_url

    def on_move(self, listener: MoveListener) -> None:
        self._listeners.append(listener)

    def destroy(self) -> None:
        self._markers.clear()
        self._polylines.clear()
        self._listeners.clear()
        self._open_popup = None
        self._overlay_url = None
        self._destroyed = True

    # ------------------------------------------------------------------
    # Host integration
    # ------------------------------------------------------------------

    @property
    def container(self) -> Any:
        return self._container

    @property
    def center(self) -> Point:
        return self._center

    @property
    def zoom(self) -> int:
        return self._zoom

    @property
    def markers(self) -> dict[str, MarkerSpec]:
        return dict(self._markers)

    @property
    def polylines(self) -> dict[str, list[Point]]:
        return {key: list(points) for key, points in self._polylines.items()}

    @property
    def open_popup_key(self) -> str | None:
        return self._open_popup

    def notify_moved(self, center: Point, zoom: int) -> None:
        """Record an operator pan/zoom reported by the browser."""
        self._bounds = None
        self._center = center
        self._zoom = zoom
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._center, self._zoom)
            except Exception:
                _logger.debug("Map move listener failed", exc_info=True)

    def render(self) -> folium.Map:
        """Build the Leaflet map for the current layer state."""
        if self._destroyed:
            raise RuntimeError("canvas was destroyed")

        fmap = folium.Map(location=list(self._center), zoom_start=self._zoom, tiles=None, max_zoom=MAX_ZOOM)
        folium.TileLayer(tiles=OSM_TILE_URL, attr=OSM_ATTRIBUTION, max_zoom=MAX_ZOOM, name="Streets").add_to(fmap)
        if self._overlay_url:
            folium.TileLayer(
                tiles=self._overlay_url,
                attr=OVERLAY_ATTRIBUTION,
                name="Overlay",
                overlay=True,
                opacity=0.6,
            ).add_to(fmap)

        for key, points in self._polylines.items():
            folium.PolyLine(locations=[list(p) for p in points], tooltip=key, **TRAIL_STYLE).add_to(fmap)

        for key, spec in self._markers.items():
            icon = _marker_icon(spec)
            popup = folium.Popup(spec.popup_html, max_width=260, show=key == self._open_popup)
            folium.Marker(
                location=list(spec.position),
                popup=popup,
                tooltip=spec.label,
                icon=icon,
                z_index_offset=spec.z_index,
                rise_on_hover=True,
            ).add_to(fmap)

        if self._bounds is not None:
            (south, west), (north, east) = self._bounds
            fmap.fit_bounds([[south, west], [north, east]])
        return fmap

    def to_html(self) -> str:
        return self.render().get_root().render()

    def save(self, path: str | PathLike[str]) -> None:
        self.render().save(str(path))
