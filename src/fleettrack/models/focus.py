"""Focus instruction models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FocusRequest(BaseModel):
    """One-shot camera-centering instruction for a map surface."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rider_key: str


class FocusResult(BaseModel):
    """Outcome of a focus attempt.

    ``notice`` carries the operator-facing message when the rider could not
    be tracked; callers display it as-is.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ok: bool
    rider_key: str
    notice: str | None = None
