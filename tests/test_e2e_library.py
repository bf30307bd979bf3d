from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
from conftest import CanvasRecorder

from fleettrack.client import FleetClient
from fleettrack.config import FleetConfig
from fleettrack.detail import RiderDetailView
from fleettrack.exceptions import DetailError, FleetApiError, FleetError, FleetTransportError, RiderNotFoundError
from fleettrack.surfaces.folium_canvas import FoliumCanvas
from fleettrack.surfaces.profiles import FULLSCREEN, INLINE, TABULAR
from fleettrack.surfaces.table import TableCanvas
from fleettrack.tracker import FleetTracker

_CONTROL_PARAMS = {"select", "order", "limit", "offset"}


def _matches(row: dict[str, Any], column: str, expr: str) -> bool:
    value = row.get(column)
    if expr.startswith("eq."):
        return str(value) == expr[3:]
    if expr.startswith("in.(") and expr.endswith(")"):
        wanted = {item.strip('"') for item in expr[4:-1].split(",")}
        return str(value) in wanted
    if expr.startswith("gte."):
        return str(value) >= expr[4:]
    if expr.startswith("lt."):
        return str(value) < expr[3:]
    raise AssertionError(f"unsupported filter {column}={expr}")


@dataclass
class FakeFleetBackend:
    riders: list[dict[str, Any]] = field(default_factory=list)
    parcels: list[dict[str, Any]] = field(default_factory=list)
    violations: list[dict[str, Any]] = field(default_factory=list)
    calls: list[tuple[str, dict[str, str]]] = field(default_factory=list)
    failing_tables: set[str] = field(default_factory=set)
    uuid_user_ids: bool = False
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    weather: dict[str, Any] | None = None

    def _table(self, table: str) -> list[dict[str, Any]]:
        return {"users": self.riders, "parcels": self.parcels, "violation_logs": self.violations}[table]

    async def get_rows(self, table: str, params: list[tuple[str, str]]) -> list[dict[str, Any]]:
        query = dict(params)
        self.calls.append((table, query))
        if table in self.failing_tables:
            raise FleetTransportError(f"HTTP 503 from {table}", status_code=503, endpoint=table)

        username = query.get("username", "")
        gate = self.gates.get(username[3:]) if username.startswith("eq.") else None
        if gate is not None:
            await gate.wait()

        if self.uuid_user_ids and query.get("user_id", "").startswith("eq.") and table == "users":
            raise FleetApiError("invalid input syntax for type uuid", code="22P02", endpoint=table)

        rows = [
            row
            for row in self._table(table)
            if all(_matches(row, col, expr) for col, expr in query.items() if col not in _CONTROL_PARAMS)
        ]
        offset = int(query.get("offset", "0"))
        limit = int(query.get("limit", str(len(rows) or 1)))
        return [dict(row) for row in rows[offset : offset + limit]]

    async def get_json(self, url: str, params: list[tuple[str, str]]) -> Any:
        self.calls.append((url, dict(params)))
        if self.weather is None:
            raise FleetTransportError("HTTP 401 from weather", status_code=401, endpoint=url)
        return self.weather

    def table_calls(self, table: str) -> list[dict[str, str]]:
        return [query for name, query in self.calls if name == table]


def _rider(username: str, lat: Any, lng: Any, status: str = "online", **extra: Any) -> dict[str, Any]:
    row = {
        "user_id": f"uid-{username}",
        "username": username,
        "fname": username.title(),
        "lname": "Rider",
        "status": status,
        "last_seen_lat": lat,
        "last_seen_lng": lng,
    }
    row.update(extra)
    return row


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch) -> FakeFleetBackend:
    fake_backend = FakeFleetBackend(
        riders=[
            _rider("r1", 14.0, 121.0),
            _rider("r2", None, None, status="offline"),
        ],
        parcels=[
            {"assigned_rider_id": "uid-r1", "status": "Successfully Delivered", "created_at": "2026-03-02T09:00:00"},
            {"assigned_rider_id": "uid-r1", "status": "Successfully Delivered", "created_at": "2026-03-03T09:00:00"},
            {"assigned_rider_id": "uid-r1", "status": "On-Going", "attempt1_status": "failed", "created_at": "2026-03-03T10:00:00"},
            {"assigned_rider_id": "uid-r2", "status": "Cancelled", "created_at": "2026-03-01T10:00:00"},
        ],
        violations=[
            {"user_id": "uid-r1", "violation": "Overspeeding", "date": "2026-03-02T08:00:00", "lat": 121.05, "lng": 14.65, "name": "R1 Rider"},
        ],
    )

    async def fake_get_rows(_self: Any, table: str, params: Any) -> list[dict[str, Any]]:
        return await fake_backend.get_rows(table, list(params))

    async def fake_get_json(_self: Any, url: str, params: Any) -> Any:
        return await fake_backend.get_json(url, list(params))

    monkeypatch.setattr("fleettrack._transport.RestTransport.get_rows", fake_get_rows)
    monkeypatch.setattr("fleettrack._transport.RestTransport.get_json", fake_get_json)
    return fake_backend


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_tracker_keeps_surfaces_in_sync(
    config: FleetConfig, backend: FakeFleetBackend, canvases: CanvasRecorder
) -> None:
    async with FleetClient(config) as client, FleetTracker(client) as tracker:
        inline = tracker.add_surface(INLINE, FoliumCanvas.factory, container="inline")
        fullscreen = tracker.add_surface(FULLSCREEN, canvases, container="modal")
        table = tracker.add_surface(TABULAR, TableCanvas.factory, container="table")
        link = tracker.open_deep_link("/dashboard?focus=r1&tab=map")

        assert await tracker.refresh() is True
        backend.riders[0] = _rider("r1", 14.001, 121.001)
        assert await tracker.refresh() is True

        result = tracker.last_result
        assert result is not None and result.tick == 2
        assert [s.rider_key for s in result.moved] == ["r1"]
        assert tracker.session.trails.get_trail("r1") == ((14.0, 121.0), (14.001, 121.001))
        assert link.url == "/dashboard?tab=map" and link.deferred

        for controller in (inline, fullscreen, table):
            assert controller.marker_keys == {"r1"}
        assert inline.polyline_keys == {"r1"}
        assert inline.last_focus_result is not None and inline.last_focus_result.ok

        canvas = inline.canvas
        assert isinstance(canvas, FoliumCanvas)
        assert canvas.open_popup_key == "r1"
        page = canvas.to_html()
        assert "/images/rider.png" in page
        assert "R1 Rider" in page

        table_canvas = table.canvas
        assert isinstance(table_canvas, TableCanvas)
        assert [row.rider_key for row in table_canvas.rows()] == ["r1"]

        overview = {row.snapshot.rider_key: row.aggregate for row in tracker.session.overview()}
        assert overview["r1"].delivered == 2
        assert overview["r1"].delayed == 1
        assert overview["r2"].cancelled == 1

        feed = tracker.session.feed()
        assert [row.rider_key for row in feed] == ["r1", "r2"]

        assert tracker.focus("r2") is not None
        assert fullscreen.focus("r2").notice == "Tracking unavailable for R2 Rider."

    assert tracker.session.closed
    assert not inline.is_mounted
    assert canvases.last.destroyed


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_failed_aggregates_degrade_and_failed_riders_skip_tick(
    config: FleetConfig, backend: FakeFleetBackend, canvases: CanvasRecorder
) -> None:
    async with FleetClient(config) as client, FleetTracker(client) as tracker:
        surface = tracker.add_surface(INLINE, canvases, container="inline")

        backend.failing_tables.add("parcels")
        assert await tracker.refresh() is True
        assert surface.marker_keys == {"r1"}
        assert all(row.aggregate.total == 0 for row in tracker.session.overview())

        backend.failing_tables.add("users")
        assert await tracker.refresh() is False
        assert surface.marker_keys == {"r1"}
        assert tracker.session.last_tick == 1


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_polling_loop_drives_ticks(config: FleetConfig, backend: FakeFleetBackend) -> None:
    async with FleetClient(config) as client, FleetTracker(client) as tracker:
        tracker.start()
        for _ in range(200):
            if tracker.session.last_tick and tracker.session.last_tick >= 2:
                break
            await asyncio.sleep(0.01)
        await tracker.stop()

        assert tracker.session.last_tick is not None and tracker.session.last_tick >= 2
        assert not tracker.loop.running

        with pytest.raises(FleetError, match="stopped"):
            tracker.start()
        with pytest.raises(FleetError, match="stopped"):
            await tracker.refresh()
        assert not tracker.loop.running


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_requests_use_postgrest_filters(config: FleetConfig, backend: FakeFleetBackend) -> None:
    async with FleetClient(config) as client:
        riders = await client.list_riders()
        await client.fetch_parcel_aggregates([r.user_id for r in riders if r.user_id])

    rider_query = backend.table_calls("users")[0]
    assert rider_query["order"] == "last_active_at.desc"
    assert rider_query["limit"] == "1000"
    assert rider_query["offset"] == "0"
    parcel_query = backend.table_calls("parcels")[0]
    assert parcel_query["assigned_rider_id"] == "in.(uid-r1,uid-r2)"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_detail_view(config: FleetConfig, backend: FakeFleetBackend) -> None:
    async with FleetClient(config) as client:
        view = RiderDetailView(client, monthly_quota=2)
        detail = await view.open("r1")

    assert detail is not None
    assert detail.rider.display_name == "R1 Rider"
    assert detail.aggregate.delivered == 2
    assert detail.quota.daily_quota == 2
    assert detail.quota.delivered_total == 2
    assert len(detail.violations) == 1
    assert (detail.violations[0].lat, detail.violations[0].lng) == (14.65, 121.05)
    assert detail.violations_error is None
    assert view.current is detail


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_detail_view_falls_back_to_user_id(config: FleetConfig, backend: FakeFleetBackend) -> None:
    async with FleetClient(config) as client:
        rider = await client.get_rider("uid-r2")
        assert rider.username == "r2"

        backend.uuid_user_ids = True
        with pytest.raises(RiderNotFoundError):
            await client.get_rider("nobody")

        with pytest.raises(DetailError, match=r"^Rider information not found\.$"):
            await RiderDetailView(client).open("nobody")


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_detail_view_errors(config: FleetConfig, backend: FakeFleetBackend) -> None:
    async with FleetClient(config) as client:
        view = RiderDetailView(client)

        backend.failing_tables.add("violation_logs")
        detail = await view.open("r1")
        assert detail is not None
        assert detail.violations == []
        assert detail.violations_error == "Failed to load rider violation logs."
        assert detail.aggregate is not None
        assert detail.aggregate.delivered == 2
        assert detail.quota is not None
        assert detail.parcels_error is None

        backend.failing_tables.add("parcels")
        detail = await view.open("r1")
        assert detail is not None
        assert detail.parcels_error == "Failed to load rider parcels."
        assert detail.quota is None
        assert detail.aggregate is None
        assert detail.rider.username == "r1"

        backend.failing_tables.add("users")
        with pytest.raises(DetailError) as excinfo:
            await view.open("r1")
        assert str(excinfo.value) == "Failed to load rider information."


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_detail_view_discards_superseded_open(config: FleetConfig, backend: FakeFleetBackend) -> None:
    slow = asyncio.Event()
    backend.gates["r1"] = slow

    async with FleetClient(config) as client:
        view = RiderDetailView(client)
        first = asyncio.create_task(view.open("r1"))
        await asyncio.sleep(0)
        second = await view.open("r2")
        slow.set()

        assert await first is None
        assert second is not None
        assert view.current is second
        assert second.rider.username == "r2"

        backend.gates["r1"] = asyncio.Event()
        pending = asyncio.create_task(view.open("r1"))
        await asyncio.sleep(0)
        view.close()
        backend.gates["r1"].set()
        assert await pending is None
        assert view.current is None


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_weather_degrades_to_none(config: FleetConfig, backend: FakeFleetBackend) -> None:
    async with FleetClient(config) as client, FleetTracker(client) as tracker:
        tracker.add_surface(INLINE, FoliumCanvas.factory, container="inline")

        assert await tracker.weather_at_center() is None

        backend.weather = {
            "name": "Quezon City",
            "main": {"temp": 31.6, "feels_like": 36.2, "humidity": 70},
            "wind": {"speed": 3.1},
            "weather": [{"description": "scattered clouds", "icon": "03d"}],
        }
        weather = await tracker.weather_at_center()
        assert weather is not None
        assert (weather.city, weather.temp, weather.description) == ("Quezon City", 32, "scattered clouds")

        assert tracker.show_weather() is True
        assert client.weather_tile_url() == "https://tile.openweathermap.org/map/temp_new/{z}/{x}/{y}.png?appid=owm-key"


@pytest.mark.asyncio
@pytest.mark.e2e
async def test_e2e_malformed_weather_payload(config: FleetConfig, backend: FakeFleetBackend) -> None:
    async with FleetClient(config) as client, FleetTracker(client) as tracker:
        tracker.add_surface(INLINE, FoliumCanvas.factory, container="inline")

        for payload in (
            {"name": "Quezon City", "main": {"temp": "warm"}},
            {"name": "Quezon City", "main": "hot"},
            {"name": "Quezon City"},
        ):
            backend.weather = payload
            assert await tracker.weather_at_center() is None

        backend.weather = {
            "name": 123,
            "main": {"temp": "30.4", "humidity": 65.5, "feels_like": None},
            "wind": {"speed": "n/a"},
            "weather": [{"description": 7}],
        }
        weather = await tracker.weather_at_center()
        assert weather is not None
        assert (weather.city, weather.temp, weather.feels_like, weather.humidity) == ("123", 30, 30, 66)
        assert weather.wind is None
        assert weather.description == "7"
