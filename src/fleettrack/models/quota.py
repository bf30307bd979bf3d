"""Delivery quota models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StreakResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    streak: int = Field(default=0, ge=0)
    today_count: int = Field(default=0, ge=0)
    met_today: bool = False


class QuotaState(BaseModel):
    """Quota achievement for one rider, recomputed on every detail-view open."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    monthly_quota: int = Field(ge=0)
    daily_quota: int = Field(ge=0)
    delivered_today: int = Field(default=0, ge=0)
    streak_days: int = Field(default=0, ge=0)
    met_today: bool = False
    delivered_total: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _daily_within_monthly(self) -> QuotaState:
        if self.daily_quota > self.monthly_quota:
            raise ValueError("daily_quota must not exceed monthly_quota")
        return self

    @property
    def progress_percent(self) -> int:
        """Delivered parcels against the monthly quota, capped at 100."""
        if self.monthly_quota <= 0:
            return 0
        return min(100, round(self.delivered_total / self.monthly_quota * 100))
