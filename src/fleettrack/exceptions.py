"""Custom exception hierarchy for fleettrack."""

from __future__ import annotations


class FleetError(Exception):
    """Base exception for all fleettrack errors."""


class FleetConfigError(FleetError):
    """Invalid or missing configuration."""


class FleetTransportError(FleetError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class FleetApiError(FleetError):
    """Backend returned an application-level error body."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        super().__init__(message)


class RiderNotFoundError(FleetApiError):
    """No rider row matched a point lookup."""


class DetailError(FleetError):
    """Rider detail view could not be loaded.

    The message is short and operator-facing; it never carries raw backend
    error text (that only goes to the logs).
    """
