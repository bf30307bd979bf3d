"""Rider detail view.

Loads one rider with their parcels and violation logs and derives the quota
state. Only the most recent :meth:`RiderDetailView.open` may publish: a
response that arrives after a newer open, or after :meth:`close`, is
discarded.
"""

from __future__ import annotations

import logging
from datetime import date, tzinfo

from fleettrack.client import FleetClient
from fleettrack.exceptions import DetailError, FleetError, RiderNotFoundError
from fleettrack.metrics.quota import aggregate_parcels, compute_quota_state
from fleettrack.models.detail import RiderDetail
from fleettrack.models.parcel import ParcelAggregate, ParcelRow
from fleettrack.models.quota import QuotaState
from fleettrack.models.violation import ViolationLog

_logger = logging.getLogger(__name__)

RIDER_NOT_FOUND = "Rider information not found."
RIDER_LOAD_FAILED = "Failed to load rider information."
PARCELS_LOAD_FAILED = "Failed to load rider parcels."
VIOLATIONS_LOAD_FAILED = "Failed to load rider violation logs."


class RiderDetailView:
    def __init__(
        self,
        client: FleetClient,
        *,
        monthly_quota: int | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._client = client
        self._monthly_quota = client.config.monthly_quota if monthly_quota is None else monthly_quota
        self._tz = tz
        self._token = 0
        self._current: RiderDetail | None = None

    @property
    def current(self) -> RiderDetail | None:
        return self._current

    @property
    def is_open(self) -> bool:
        return self._current is not None

    def _is_stale(self, token: int) -> bool:
        return token != self._token

    async def open(self, rider_key: str, *, today: date | None = None) -> RiderDetail | None:
        """Load the detail for *rider_key*.

        Returns ``None`` when superseded by a newer :meth:`open` or a
        :meth:`close` while loading.

        Raises
        ------
        DetailError
            The rider could not be found or loaded.
        """
        self._token += 1
        token = self._token

        try:
            rider = await self._client.get_rider(rider_key)
        except RiderNotFoundError:
            if self._is_stale(token):
                return None
            raise DetailError(RIDER_NOT_FOUND) from None
        except FleetError as exc:
            _logger.warning("Rider lookup for %s failed: %s", rider_key, exc)
            if self._is_stale(token):
                return None
            raise DetailError(RIDER_LOAD_FAILED) from exc
        if self._is_stale(token):
            return None

        parcels: list[ParcelRow] = []
        violations: list[ViolationLog] = []
        parcels_error: str | None = None
        violations_error: str | None = None

        if rider.user_id:
            try:
                parcels = await self._client.list_parcels([rider.user_id])
            except FleetError as exc:
                _logger.warning("Parcel lookup for %s failed: %s", rider_key, exc)
                parcels_error = PARCELS_LOAD_FAILED
            if self._is_stale(token):
                return None

            try:
                violations = await self._client.list_violation_logs(rider.user_id)
            except FleetError as exc:
                _logger.warning("Violation lookup for %s failed: %s", rider_key, exc)
                violations_error = VIOLATIONS_LOAD_FAILED
            if self._is_stale(token):
                return None

        aggregate: ParcelAggregate | None = None
        quota: QuotaState | None = None
        if parcels_error is None:
            aggregate = aggregate_parcels(parcels)
            quota = compute_quota_state(parcels, self._monthly_quota, today=today, tz=self._tz)

        detail = RiderDetail(
            rider=rider,
            aggregate=aggregate,
            quota=quota,
            violations=violations,
            violations_error=violations_error,
            parcels_error=parcels_error,
        )
        self._current = detail
        return detail

    def close(self) -> None:
        """Discard the current detail and any load still in flight."""
        self._token += 1
        self._current = None
