"""Per-surface rendering constants.

The inline panel, the fullscreen modal, the single-rider track modal and the
tabular view all share one controller; they differ only in these values.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fleettrack._constants import DEFAULT_CENTER, DEFAULT_ZOOM, FIT_BOUNDS_PADDING, FOCUS_ZOOM

RIDER_ICON_URL = "/images/rider.png"


class IconSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = RIDER_ICON_URL
    size: int = Field(default=36, gt=0)

    @property
    def anchor(self) -> tuple[int, int]:
        """Bottom-center of the icon sits on the coordinate."""
        return (self.size // 2, self.size)

    @property
    def popup_anchor(self) -> tuple[int, int]:
        return (0, -self.size)


class SurfaceProfile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    icon: IconSpec = Field(default_factory=IconSpec)
    z_index: int = 1200
    default_center: tuple[float, float] = DEFAULT_CENTER
    default_zoom: int = DEFAULT_ZOOM
    focus_zoom: int = FOCUS_ZOOM
    fit_padding: float = Field(default=FIT_BOUNDS_PADDING, ge=0)
    draws_trails: bool = True


INLINE = SurfaceProfile(name="inline", icon=IconSpec(size=36), z_index=1200)
FULLSCREEN = SurfaceProfile(name="fullscreen", icon=IconSpec(size=42), z_index=1300)
TRACK = SurfaceProfile(name="track", icon=IconSpec(size=40), z_index=1200)
TABULAR = SurfaceProfile(name="tabular", draws_trails=False)
