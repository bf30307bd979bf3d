"""Live fleet tracker.

Wires a :class:`~fleettrack.client.FleetClient`, a
:class:`~fleettrack.state.session.TrackingSession` and a
:class:`~fleettrack.ingestion.polling.PollingLoop` together. Each tick
fetches the rider table, then parcel aggregates for those riders, then
hands both to the session, which updates state and reconciles every
mounted surface.
"""

from __future__ import annotations

import logging
from typing import Any

from fleettrack.client import FleetClient
from fleettrack.deeplink import DeepLinkResult, apply_deep_link
from fleettrack.detail import RiderDetailView
from fleettrack.exceptions import FleetError
from fleettrack.ingestion.polling import PollingLoop
from fleettrack.models.focus import FocusResult
from fleettrack.models.parcel import ParcelAggregate
from fleettrack.models.weather import WeatherSnapshot
from fleettrack.state.session import TickResult, TrackingSession
from fleettrack.surfaces.canvas import CanvasFactory, MoveListener, Point
from fleettrack.surfaces.controller import FocusListener, MapSurfaceController
from fleettrack.surfaces.profiles import SurfaceProfile

_logger = logging.getLogger(__name__)


class FleetTracker:
    """Polls the backend and keeps every registered surface in sync.

    Usage::

        async with FleetClient(config) as client, FleetTracker(client) as tracker:
            tracker.add_surface(INLINE, FoliumCanvas.factory, container="inline")
            ...
    """

    def __init__(self, client: FleetClient, *, poll_interval: float | None = None) -> None:
        config = client.config
        self._client = client
        self._session = TrackingSession(trail_length=config.trail_length, activity_cap=config.activity_cap)
        self._loop = PollingLoop(
            self._tick,
            interval=config.poll_interval if poll_interval is None else poll_interval,
            name="fleet",
        )
        self._primary: str | None = None
        self._centers: dict[str, Point] = {}
        self._last_result: TickResult | None = None

    async def __aenter__(self) -> FleetTracker:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    @property
    def session(self) -> TrackingSession:
        return self._session

    @property
    def loop(self) -> PollingLoop:
        return self._loop

    @property
    def last_result(self) -> TickResult | None:
        return self._last_result

    # ------------------------------------------------------------------
    # Surfaces
    # ------------------------------------------------------------------

    def add_surface(
        self,
        profile: SurfaceProfile,
        canvas_factory: CanvasFactory,
        container: Any = None,
        *,
        primary: bool = False,
        on_focus: FocusListener | None = None,
    ) -> MapSurfaceController:
        """Register a surface, mounting it onto *container* when given.

        The first surface added is the primary one (deep-link focus target)
        unless another is added with ``primary=True``.
        """
        controller = MapSurfaceController(profile, canvas_factory, on_focus=on_focus)
        controller.add_move_listener(self._center_tracker(controller.name))
        if container is not None:
            controller.mount(container)
        self._session.attach(controller)
        if primary or self._primary is None:
            self._primary = controller.name
        return controller

    def remove_surface(self, name: str) -> None:
        self._session.detach(name)
        self._centers.pop(name, None)
        if self._primary == name:
            remaining = self._session.surfaces
            self._primary = remaining[0].name if remaining else None

    def _center_tracker(self, name: str) -> MoveListener:
        def _record(center: Point, zoom: int) -> None:
            self._centers[name] = center

        return _record

    @property
    def primary(self) -> MapSurfaceController | None:
        if self._primary is None:
            return None
        return self._session.surface(self._primary)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _require_open(self) -> None:
        if self._session.closed:
            raise FleetError("Tracker is stopped; create a new FleetTracker to track again")

    def start(self) -> None:
        """Start polling; the first tick runs immediately.

        A tracker is single-use: once :meth:`stop` has run, it cannot be
        started again.
        """
        self._require_open()
        self._loop.start(immediate=True)

    async def stop(self) -> None:
        """Stop polling and tear every surface down. Safe to repeat."""
        await self._loop.stop()
        self._session.close()

    async def refresh(self) -> bool:
        """Run one tick outside the regular schedule."""
        self._require_open()
        return await self._loop.run_once()

    async def _tick(self, sequence: int) -> None:
        riders = await self._client.list_riders()
        rider_ids = [rider.user_id for rider in riders if rider.user_id]

        aggregates: dict[str, ParcelAggregate]
        try:
            aggregates = await self._client.fetch_parcel_aggregates(rider_ids)
        except FleetError as exc:
            _logger.warning("Parcel aggregates unavailable for tick %d: %s", sequence, exc)
            aggregates = {}

        result = self._session.apply_tick(riders, aggregates, tick=sequence)
        if result is not None:
            self._last_result = result

    # ------------------------------------------------------------------
    # Focus, detail and weather
    # ------------------------------------------------------------------

    def focus(self, rider_key: str) -> FocusResult | None:
        """Focus the primary surface on a rider (deferred if it has no data yet)."""
        controller = self.primary
        if controller is None:
            return None
        return controller.request_focus(rider_key)

    def open_deep_link(self, url: str) -> DeepLinkResult:
        controller = self.primary
        if controller is None:
            raise FleetError("No surface registered for deep-link focus")
        return apply_deep_link(url, controller)

    def detail_view(self) -> RiderDetailView:
        config = self._client.config
        return RiderDetailView(self._client, monthly_quota=config.monthly_quota, tz=config.zone)

    def show_weather(self, enabled: bool = True) -> bool:
        """Toggle the weather tile overlay on every surface.

        Returns ``False`` when no weather API key is configured.
        """
        url = self._client.weather_tile_url() if enabled else None
        for controller in self._session.surfaces:
            controller.set_overlay(url)
        return url is not None or not enabled

    async def weather_at_center(self) -> WeatherSnapshot | None:
        """Current weather at the primary surface's last reported center."""
        controller = self.primary
        if controller is None:
            return None
        lat, lng = self._centers.get(controller.name, controller.profile.default_center)
        return await self._client.fetch_weather(lat, lng)
