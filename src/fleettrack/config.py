"""Client configuration for fleettrack."""

from __future__ import annotations

import dataclasses
import os
from datetime import tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fleettrack._constants import (
    ACTIVITY_FEED_CAP,
    DEFAULT_MONTHLY_QUOTA,
    POLL_INTERVAL_SECONDS,
    TRAIL_MAX_POINTS,
)
from fleettrack.exceptions import FleetConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class TableNames:
    """Backend table names read by the tracker."""

    riders: str = "users"
    parcels: str = "parcels"
    violations: str = "violation_logs"


@dataclasses.dataclass(frozen=True)
class FleetConfig:
    """Client configuration.

    Parameters
    ----------
    supabase_url : str
        Project URL of the row-oriented backend (e.g.
        ``"https://abc.supabase.co"``). The REST root ``/rest/v1`` is appended.
    supabase_key : str
        API key sent as both ``apikey`` and bearer token.
    poll_interval : float
        Seconds between polling ticks of the live tracking view.
    monthly_quota : int
        Per-rider monthly delivery target. The daily target is derived
        from it.
    trail_length : int
        Number of recent positions kept per active rider.
    activity_cap : int
        Maximum number of movement events retained by the activity feed.
    time_zone : str or None
        IANA zone used to bucket deliveries into calendar days. ``None``
        means the host's local time.
    weather_api_key : str or None
        OpenWeatherMap key. Weather overlays are disabled without it.
    request_timeout : float
        Total HTTP timeout per request, in seconds.
    request_trace_enabled : bool
        Log every backend request URL at DEBUG level (credentials redacted).
    tables : TableNames
        Backend table names.
    """

    supabase_url: str
    supabase_key: str
    poll_interval: float = POLL_INTERVAL_SECONDS
    monthly_quota: int = DEFAULT_MONTHLY_QUOTA
    trail_length: int = TRAIL_MAX_POINTS
    activity_cap: int = ACTIVITY_FEED_CAP
    time_zone: str | None = None
    weather_api_key: str | None = None
    request_timeout: float = 15.0
    request_trace_enabled: bool = False
    tables: TableNames = dataclasses.field(default_factory=TableNames)

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def zone(self) -> tzinfo | None:
        """``time_zone`` as a tzinfo; ``None`` means the host's local time.

        Raises
        ------
        FleetConfigError
            If ``time_zone`` is not a known IANA zone.
        """
        if not self.time_zone:
            return None
        try:
            return ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise FleetConfigError(f"Unknown time zone {self.time_zone!r}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> FleetConfig:
        """Create configuration from environment variables.

        Reads ``FLEET_SUPABASE_URL``, ``FLEET_SUPABASE_KEY`` and optional
        ``FLEET_*`` variables. Explicit keyword arguments override
        environment values.

        Raises
        ------
        FleetConfigError
            If the backend URL or key is missing after overrides.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}
        _ENV_CONFIG_MAP = {
            "FLEET_SUPABASE_URL": "supabase_url",
            "FLEET_SUPABASE_KEY": "supabase_key",
            "FLEET_TIME_ZONE": "time_zone",
            "FLEET_WEATHER_API_KEY": "weather_api_key",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP = {
            "FLEET_POLL_INTERVAL": ("poll_interval", float),
            "FLEET_MONTHLY_QUOTA": ("monthly_quota", int),
            "FLEET_TRAIL_LENGTH": ("trail_length", int),
            "FLEET_ACTIVITY_CAP": ("activity_cap", int),
            "FLEET_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = cast(val)
            except ValueError as exc:
                raise FleetConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        if "request_trace_enabled" not in overrides:
            config_kwargs["request_trace_enabled"] = _env_bool(env.get("FLEET_REQUEST_TRACE"), False)

        config_kwargs.update(overrides)

        for required in ("supabase_url", "supabase_key"):
            if not config_kwargs.get(required):
                raise FleetConfigError(f"Missing {required} (set FLEET_{required.upper()})")

        return cls(**config_kwargs)
