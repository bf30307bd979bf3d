"""High-level async client for the fleet backend."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

import aiohttp

from fleettrack._api import parcels as _parcels_api
from fleettrack._api import riders as _riders_api
from fleettrack._api import violations as _violations_api
from fleettrack._api import weather as _weather_api
from fleettrack._transport import RestTransport, Transport
from fleettrack.config import FleetConfig
from fleettrack.exceptions import FleetApiError, FleetError, RiderNotFoundError
from fleettrack.metrics.quota import aggregate_by_rider
from fleettrack.models.parcel import ParcelAggregate, ParcelRow
from fleettrack.models.rider import RiderRow
from fleettrack.models.violation import ViolationLog
from fleettrack.models.weather import WeatherSnapshot

_logger = logging.getLogger(__name__)

# PostgreSQL "invalid_text_representation", e.g. a username compared to a uuid column.
_INVALID_TEXT_CODE = "22P02"


class FleetClient:
    """Async client for the rider, parcel and violation tables.

    Usage::

        async with FleetClient(config) as client:
            riders = await client.list_riders()
    """

    def __init__(
        self,
        config: FleetConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FleetClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = RestTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    @property
    def config(self) -> FleetConfig:
        return self._config

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise FleetError("Client not initialized. Use 'async with FleetClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Riders
    # ------------------------------------------------------------------

    async def list_riders(self) -> list[RiderRow]:
        """Fetch the full rider table (one polling tick's worth of data)."""
        return await _riders_api.fetch_riders(self._config, self._require_transport())

    async def get_rider(self, rider_key: str) -> RiderRow:
        """Look a rider up by username, falling back to user id.

        Raises
        ------
        RiderNotFoundError
            Neither lookup matched a row.
        """
        transport = self._require_transport()
        rider = await _riders_api.fetch_rider_by(self._config, transport, "username", rider_key)
        if rider is not None:
            return rider
        try:
            rider = await _riders_api.fetch_rider_by(self._config, transport, "user_id", rider_key)
        except FleetApiError as exc:
            if exc.code != _INVALID_TEXT_CODE:
                raise
            rider = None
        if rider is None:
            raise RiderNotFoundError(f"No rider matches {rider_key!r}", endpoint=self._config.tables.riders)
        return rider

    # ------------------------------------------------------------------
    # Parcels
    # ------------------------------------------------------------------

    async def list_parcels(
        self,
        rider_ids: Iterable[str],
        *,
        created_from: datetime | None = None,
        created_until: datetime | None = None,
    ) -> list[ParcelRow]:
        return await _parcels_api.fetch_parcels(
            self._config,
            self._require_transport(),
            rider_ids,
            created_from=created_from,
            created_until=created_until,
        )

    async def fetch_parcel_aggregates(self, rider_ids: Iterable[str]) -> dict[str, ParcelAggregate]:
        """Delivered/ongoing/delayed/cancelled counts keyed by rider user id."""
        ids = [rider_id for rider_id in rider_ids if rider_id]
        parcels = await self.list_parcels(ids)
        return aggregate_by_rider(parcels, ids)

    # ------------------------------------------------------------------
    # Violations and weather
    # ------------------------------------------------------------------

    async def list_violation_logs(self, user_id: str) -> list[ViolationLog]:
        return await _violations_api.fetch_violations(self._config, self._require_transport(), user_id)

    async def fetch_weather(self, lat: float, lng: float) -> WeatherSnapshot | None:
        """Current weather at a point; ``None`` when unavailable."""
        return await _weather_api.fetch_current_weather(self._config, self._require_transport(), lat, lng)

    def weather_tile_url(self, layer: str = _weather_api.DEFAULT_WEATHER_LAYER) -> str | None:
        return _weather_api.weather_tile_url(self._config, layer)
