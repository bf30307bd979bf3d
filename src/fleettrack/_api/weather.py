"""OpenWeatherMap current conditions and tile overlay."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from fleettrack._constants import DEFAULT_WEATHER_LAYER, OPENWEATHER_API_URL, OPENWEATHER_TILE_URL
from fleettrack._transport import Transport
from fleettrack.config import FleetConfig
from fleettrack.exceptions import FleetError
from fleettrack.models.weather import WeatherSnapshot

_logger = logging.getLogger(__name__)


def weather_tile_url(config: FleetConfig, layer: str = DEFAULT_WEATHER_LAYER) -> str | None:
    """Leaflet tile template for a weather layer, or ``None`` without an API key."""
    if not config.weather_api_key:
        return None
    return OPENWEATHER_TILE_URL.format(layer=layer, api_key=config.weather_api_key)


async def fetch_current_weather(
    config: FleetConfig,
    transport: Transport,
    lat: float,
    lng: float,
) -> WeatherSnapshot | None:
    """Current conditions at a point. Any failure degrades to ``None``."""
    if not config.weather_api_key:
        return None
    params = [
        ("lat", str(lat)),
        ("lon", str(lng)),
        ("units", "metric"),
        ("appid", config.weather_api_key),
    ]
    try:
        payload = await transport.get_json(OPENWEATHER_API_URL, params)
    except FleetError:
        _logger.warning("Weather lookup failed at %.4f,%.4f", lat, lng, exc_info=True)
        return None
    if not isinstance(payload, dict):
        _logger.debug("Weather payload is not an object: %s", type(payload).__name__)
        return None
    try:
        return WeatherSnapshot.from_api(payload)
    except (ValidationError, ValueError) as exc:
        _logger.debug("Malformed weather payload: %s", exc)
        return None
