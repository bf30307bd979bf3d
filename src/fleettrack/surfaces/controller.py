"""Map surface controller.

One controller per visible rendering surface (inline panel, fullscreen
modal, track modal, tabular view). It reconciles a canvas against the
tracking session's current snapshots and trails, auto-fits the camera once
per mount, and applies one-shot focus instructions.
"""

from __future__ import annotations

import html
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any

from fleettrack._constants import TRACKING_UNAVAILABLE_NOTICE
from fleettrack.models.focus import FocusRequest, FocusResult
from fleettrack.models.rider import RiderSnapshot
from fleettrack.surfaces.canvas import CanvasFactory, MapCanvas, MarkerSpec, MoveListener, Point, padded_bounds
from fleettrack.surfaces.profiles import SurfaceProfile

_logger = logging.getLogger(__name__)

FocusListener = Callable[[FocusResult], None]


class SurfaceState(StrEnum):
    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"
    POPULATED = "populated"


def build_popup_html(snapshot: RiderSnapshot) -> str:
    """Popup body for a rider marker (name and raw status label)."""
    if snapshot.status.is_live:
        status_class = "is-online"
    elif snapshot.status.is_offline:
        status_class = "is-offline"
    else:
        status_class = "is-default"
    key = html.escape(snapshot.rider_key, quote=True)
    name = html.escape(snapshot.display_name)
    status = html.escape(snapshot.status.value.title())
    return (
        f'<div class="rider-location-popup {status_class}" data-rider-key="{key}">'
        f'<button type="button" class="rider-location-popup-btn" data-rider-key="{key}">{name}</button>'
        f'<span class="rider-location-status">{status}</span>'
        "</div>"
    )


def unavailable_notice(rider_key: str, snapshot: RiderSnapshot | None = None) -> str:
    name = snapshot.display_name if snapshot is not None else rider_key
    return TRACKING_UNAVAILABLE_NOTICE.format(name=name)


class MapSurfaceController:
    """Keeps one canvas consistent with the shared tracking state.

    The controller never mutates session state; it only reads the snapshots
    and trails handed to :meth:`reconcile`.
    """

    def __init__(
        self,
        profile: SurfaceProfile,
        canvas_factory: CanvasFactory,
        *,
        on_focus: FocusListener | None = None,
    ) -> None:
        self._profile = profile
        self._canvas_factory = canvas_factory
        self._on_focus = on_focus
        self._canvas: MapCanvas | None = None
        self._container: Any = None
        self._markers: dict[str, MarkerSpec] = {}
        self._polylines: set[str] = set()
        self._snapshots: dict[str, RiderSnapshot] = {}
        self._auto_fitted = False
        self._last_tick: int | None = None
        self._pending_focus: FocusRequest | None = None
        self._overlay_url: str | None = None
        self._move_listeners: list[MoveListener] = []
        self.last_focus_result: FocusResult | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def profile(self) -> SurfaceProfile:
        return self._profile

    @property
    def name(self) -> str:
        return self._profile.name

    @property
    def canvas(self) -> MapCanvas | None:
        return self._canvas

    @property
    def container(self) -> Any:
        return self._container

    @property
    def state(self) -> SurfaceState:
        if self._canvas is None:
            return SurfaceState.UNMOUNTED
        if self._markers:
            return SurfaceState.POPULATED
        return SurfaceState.MOUNTED

    @property
    def is_mounted(self) -> bool:
        return self._canvas is not None

    @property
    def marker_keys(self) -> set[str]:
        return set(self._markers)

    @property
    def polyline_keys(self) -> set[str]:
        return set(self._polylines)

    @property
    def auto_fitted(self) -> bool:
        return self._auto_fitted

    @property
    def last_tick(self) -> int | None:
        return self._last_tick

    @property
    def focus_pending(self) -> bool:
        return self._pending_focus is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self, container: Any) -> None:
        """Bind a canvas to *container*.

        Mounting again onto the same container is a no-op; a different
        container tears the current canvas down first.
        """
        if self._canvas is not None:
            if container is self._container or container == self._container:
                return
            self.unmount()

        canvas = self._canvas_factory(container, self._profile)
        canvas.set_view(self._profile.default_center, self._profile.default_zoom)
        for listener in self._move_listeners:
            canvas.on_move(listener)
        if self._overlay_url is not None:
            canvas.set_overlay(self._overlay_url)
        self._canvas = canvas
        self._container = container
        self._auto_fitted = False
        self._last_tick = None
        _logger.debug("Mounted %s surface", self.name)

    def unmount(self) -> None:
        """Release the canvas and everything drawn on it. Safe to repeat."""
        canvas = self._canvas
        if canvas is None:
            return
        self._canvas = None
        self._container = None
        self._markers.clear()
        self._polylines.clear()
        self._snapshots.clear()
        self._auto_fitted = False
        self._last_tick = None
        self._pending_focus = None
        canvas.destroy()
        _logger.debug("Unmounted %s surface", self.name)

    def add_move_listener(self, listener: MoveListener) -> None:
        """Subscribe to camera moves; survives remounts."""
        self._move_listeners.append(listener)
        if self._canvas is not None:
            self._canvas.on_move(listener)

    def set_overlay(self, tile_url: str | None) -> None:
        """Show (or with ``None`` hide) a tile overlay such as weather."""
        self._overlay_url = tile_url
        if self._canvas is not None:
            self._canvas.set_overlay(tile_url)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile(
        self,
        snapshots: Iterable[RiderSnapshot],
        trails: Mapping[str, Sequence[Point]] | None = None,
        *,
        tick: int | None = None,
    ) -> bool:
        """Bring the canvas in line with *snapshots* and *trails*.

        Returns ``False`` when nothing was applied: the surface is not
        mounted, or *tick* is older than a tick already applied.
        """
        canvas = self._canvas
        if canvas is None:
            return False
        if tick is not None and self._last_tick is not None and tick < self._last_tick:
            _logger.debug("Discarding stale tick %d on %s surface (last %d)", tick, self.name, self._last_tick)
            return False
        if tick is not None:
            self._last_tick = tick

        self._snapshots = {snapshot.rider_key: snapshot for snapshot in snapshots}
        self._reconcile_markers(canvas)
        if self._profile.draws_trails:
            self._redraw_trails(canvas, trails or {})

        if not self._auto_fitted and self._markers:
            self._auto_fit(canvas)

        if self._pending_focus is not None:
            request = self._pending_focus
            self._pending_focus = None
            self._apply_focus(request.rider_key)
        return True

    def _reconcile_markers(self, canvas: MapCanvas) -> None:
        located = {key: snap for key, snap in self._snapshots.items() if snap.has_location}

        for key in [key for key in self._markers if key not in located]:
            canvas.remove_marker(key)
            del self._markers[key]

        for key, snapshot in located.items():
            spec = self._marker_spec(snapshot)
            current = self._markers.get(key)
            if current is None:
                canvas.add_marker(spec)
            else:
                if current.position != spec.position:
                    canvas.move_marker(key, spec.position)
                if (current.label, current.status, current.popup_html) != (spec.label, spec.status, spec.popup_html):
                    canvas.update_marker(spec)
            self._markers[key] = spec

    def _redraw_trails(self, canvas: MapCanvas, trails: Mapping[str, Sequence[Point]]) -> None:
        for key in self._polylines:
            canvas.remove_polyline(key)
        self._polylines.clear()

        for key, points in trails.items():
            snapshot = self._snapshots.get(key)
            if snapshot is None or not snapshot.status.is_live:
                continue
            if len(points) < 2:
                continue
            canvas.add_polyline(key, list(points))
            self._polylines.add(key)

    def _auto_fit(self, canvas: MapCanvas) -> None:
        points = [spec.position for spec in self._markers.values()]
        if len(points) == 1:
            canvas.set_view(points[0], self._profile.focus_zoom)
        else:
            canvas.fit_bounds(points, self._profile.fit_padding)
        self._auto_fitted = True

    def _marker_spec(self, snapshot: RiderSnapshot) -> MarkerSpec:
        position = snapshot.position
        assert position is not None  # noqa: S101
        return MarkerSpec(
            key=snapshot.rider_key,
            position=position,
            label=snapshot.display_name,
            status=snapshot.status,
            popup_html=build_popup_html(snapshot),
            icon=self._profile.icon,
            z_index=self._profile.z_index,
        )

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    def focus(self, rider_key: str) -> FocusResult:
        """Center on a rider and open its popup, once.

        Riders that are unknown, not live, or without a location produce a
        failed result carrying an operator notice; the canvas is untouched.
        """
        return self._apply_focus(rider_key)

    def request_focus(self, rider_key: str) -> FocusResult | None:
        """Focus now if this surface has data, else on the next reconcile.

        A deferred request is consumed by exactly one reconcile whether or
        not it succeeds; its result goes to the ``on_focus`` listener and
        :attr:`last_focus_result`.
        """
        if self._canvas is not None and self._snapshots:
            return self._apply_focus(rider_key)
        self._pending_focus = FocusRequest(rider_key=rider_key)
        return None

    def _apply_focus(self, rider_key: str) -> FocusResult:
        snapshot = self._snapshots.get(rider_key)
        canvas = self._canvas
        if canvas is None or snapshot is None or not snapshot.is_trackable or rider_key not in self._markers:
            result = FocusResult(ok=False, rider_key=rider_key, notice=unavailable_notice(rider_key, snapshot))
            _logger.debug("Focus on %s unavailable on %s surface", rider_key, self.name)
        else:
            position = snapshot.position
            assert position is not None  # noqa: S101
            canvas.set_view(position, self._profile.focus_zoom)
            canvas.open_popup(rider_key)
            result = FocusResult(ok=True, rider_key=rider_key)

        self.last_focus_result = result
        if self._on_focus is not None:
            try:
                self._on_focus(result)
            except Exception:
                _logger.debug("on_focus callback failed", exc_info=True)
        return result
