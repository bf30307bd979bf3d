"""HTTP transport for the row-oriented REST backend."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol
from urllib.parse import urlencode

import aiohttp

from fleettrack._redact import redact_for_log, redact_url
from fleettrack.config import FleetConfig
from fleettrack.exceptions import FleetApiError, FleetTransportError

_logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]]


class Transport(Protocol):
    """Structural transport interface used by the endpoint modules.

    Endpoint modules only depend on this protocol, so tests can hand them a
    fake backend instead of :class:`RestTransport`.
    """

    async def get_rows(self, table: str, params: QueryParams) -> list[dict[str, Any]]:
        ...

    async def get_json(self, url: str, params: QueryParams) -> Any:
        ...


class RestTransport:
    """GETs table rows over PostgREST-style ``/rest/v1/<table>`` URLs."""

    def __init__(self, config: FleetConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        key = self._config.supabase_key
        return {
            "accept": "application/json",
            "apikey": key,
            "authorization": f"Bearer {key}",
        }

    async def get_rows(self, table: str, params: QueryParams) -> list[dict[str, Any]]:
        """Fetch rows of *table* matching the PostgREST filters in *params*.

        Raises
        ------
        FleetApiError
            The backend rejected the query (it answers with a JSON error body).
        FleetTransportError
            Network failure, unexpected status or a non-JSON body.
        """
        url = f"{self._config.rest_url}/{table}"
        body = await self._request(url, params, headers=self._headers(), endpoint=table)
        if isinstance(body, dict):
            raise FleetApiError(
                f"{table} query failed: {body.get('message') or body}",
                code=str(body.get("code") or ""),
                endpoint=table,
            )
        if not isinstance(body, list):
            raise FleetTransportError(f"Unexpected payload from {table}: {type(body).__name__}", endpoint=table)
        return [row for row in body if isinstance(row, dict)]

    async def get_json(self, url: str, params: QueryParams) -> Any:
        """GET an arbitrary JSON document (third-party APIs such as weather)."""
        return await self._request(url, params, headers={"accept": "application/json"}, endpoint=url)

    async def _request(self, url: str, params: QueryParams, *, headers: dict[str, str], endpoint: str) -> Any:
        if self._config.request_trace_enabled:
            _logger.debug("GET %s", redact_url(f"{url}?{urlencode(list(params))}" if params else url))

        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        try:
            async with self._http.get(url, params=list(params), headers=headers, timeout=timeout) as resp:
                status = resp.status
                try:
                    text = await resp.text()
                except UnicodeDecodeError as exc:
                    raise FleetTransportError(
                        f"Undecodable body from {endpoint} (HTTP {status})",
                        status_code=status,
                        endpoint=endpoint,
                    ) from exc
        except aiohttp.ClientError as exc:
            raise FleetTransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc
        except TimeoutError as exc:
            raise FleetTransportError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc

        try:
            body = json.loads(text) if text else None
        except json.JSONDecodeError as exc:
            raise FleetTransportError(
                f"Invalid JSON from {endpoint} (HTTP {status}): {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        if status >= 400:
            if isinstance(body, dict) and ("message" in body or "code" in body):
                _logger.debug("Error body from %s: %s", endpoint, redact_for_log(body))
                raise FleetApiError(
                    f"{endpoint} failed: code={body.get('code')} message={body.get('message')}",
                    code=str(body.get("code") or status),
                    endpoint=endpoint,
                )
            raise FleetTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            )
        return body
