"""Base model for backend rows.

Every row model inherits from :class:`FleetRowModel` which provides:

* A ``model_validator(mode="before")`` that strips placeholder values
  (``""``, ``"--"``, ``"null"``, NaN) so the field default is used.
* A ``raw`` dict that captures the original row.

Derived, in-memory values (snapshots, events, feed rows) use plain frozen
pydantic models instead; they never see raw backend text.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Placeholder strings the backend (or hand-edited rows) use for "not set".
_PLACEHOLDERS = frozenset({"", "--", "null", "none", "nan", "undefined"})


class FleetRowModel(BaseModel):
    """Base for backend row models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original backend row."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip().lower() in _PLACEHOLDERS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_row_values(cls, values: Any) -> Any:
        """Strip placeholder values and stash the raw row."""
        if not isinstance(values, dict):
            return values
        original = dict(values)
        cleaned = FleetRowModel._clean_dict(original)
        # Keep a caller-supplied raw= (keyword construction); stash otherwise.
        if "raw" not in values:
            cleaned["raw"] = original
        return cleaned
