"""Focus deep links.

A page URL may carry ``?focus=<riderKey>``. The key is applied once to the
primary map surface and the parameter is removed from the URL so a reload or
a later poll does not focus again.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict

from fleettrack.models.focus import FocusResult
from fleettrack.surfaces.controller import MapSurfaceController

FOCUS_PARAM = "focus"


class DeepLinkResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str
    rider_key: str | None = None
    focus: FocusResult | None = None
    deferred: bool = False


def extract_focus(url: str) -> tuple[str | None, str]:
    """Split the focus key out of *url*.

    Returns ``(rider_key, cleaned_url)``. Every ``focus`` parameter is
    dropped from the cleaned URL; the last non-blank one wins.
    """
    parts = urlsplit(url)
    if not parts.query:
        return None, url

    rider_key: str | None = None
    kept: list[tuple[str, str]] = []
    found = False
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == FOCUS_PARAM:
            found = True
            if value.strip():
                rider_key = value.strip()
            continue
        kept.append((key, value))

    if not found:
        return None, url
    return rider_key, urlunsplit(parts._replace(query=urlencode(kept)))


def apply_deep_link(url: str, controller: MapSurfaceController) -> DeepLinkResult:
    """Request focus on *controller* for the rider named in *url*.

    When the surface has no data yet the request is deferred to its next
    reconcile and ``deferred`` is set; the cleaned URL is returned either way.
    """
    rider_key, cleaned = extract_focus(url)
    if rider_key is None:
        return DeepLinkResult(url=cleaned)
    result = controller.request_focus(rider_key)
    return DeepLinkResult(url=cleaned, rider_key=rider_key, focus=result, deferred=result is None)
