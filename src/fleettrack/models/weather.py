"""Weather overlay models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from fleettrack.ingestion.normalize import safe_float, safe_str


def _section(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key)
    return value if isinstance(value, dict) else {}


def _rounded(value: Any) -> int | None:
    number = safe_float(value)
    return round(number) if number is not None else None


class WeatherSnapshot(BaseModel):
    """Current conditions at the map center."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    temp: int = 0
    feels_like: int = 0
    humidity: int | None = None
    wind: float | None = None
    city: str = "Map Area"
    description: str = "No description"
    icon: str | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> WeatherSnapshot:
        """Build a snapshot from an OpenWeatherMap ``/weather`` document.

        Raises
        ------
        ValueError
            The payload carries no numeric ``main.temp``.
        """
        main = _section(payload, "main")
        temp = _rounded(main.get("temp"))
        if temp is None:
            raise ValueError(f"weather payload has no numeric temperature: {main.get('temp')!r}")
        conditions = payload.get("weather") if isinstance(payload.get("weather"), list) else []
        first = conditions[0] if conditions and isinstance(conditions[0], dict) else {}
        feels_like = _rounded(main.get("feels_like"))
        return cls(
            temp=temp,
            feels_like=temp if feels_like is None else feels_like,
            humidity=_rounded(main.get("humidity")),
            wind=safe_float(_section(payload, "wind").get("speed")),
            city=safe_str(payload.get("name")) or "Map Area",
            description=safe_str(first.get("description")) or "No description",
            icon=safe_str(first.get("icon")),
        )
