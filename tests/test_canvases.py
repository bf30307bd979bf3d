from __future__ import annotations

from pathlib import Path

import pytest

from fleettrack.models.status import RiderStatus
from fleettrack.surfaces.canvas import MarkerSpec, padded_bounds
from fleettrack.surfaces.folium_canvas import FoliumCanvas
from fleettrack.surfaces.profiles import FULLSCREEN, INLINE, TABULAR, TRACK
from fleettrack.surfaces.table import TableCanvas


def _spec(key: str, lat: float, lng: float, label: str, status: RiderStatus = RiderStatus.ONLINE) -> MarkerSpec:
    return MarkerSpec(
        key=key,
        position=(lat, lng),
        label=label,
        status=status,
        popup_html=f"<b>{label}</b>",
        icon=INLINE.icon,
        z_index=INLINE.z_index,
    )


def test_padded_bounds_grows_each_side() -> None:
    south_west, north_east = padded_bounds([(10.0, 120.0), (12.0, 124.0)], 0.2)

    assert south_west == pytest.approx((9.6, 119.2))
    assert north_east == pytest.approx((12.4, 124.8))
    with pytest.raises(ValueError):
        padded_bounds([], 0.2)


def test_profiles_carry_surface_constants() -> None:
    assert (INLINE.icon.size, INLINE.z_index) == (36, 1200)
    assert (FULLSCREEN.icon.size, FULLSCREEN.z_index) == (42, 1300)
    assert (TRACK.icon.size, TRACK.z_index) == (40, 1200)
    assert INLINE.icon.anchor == (18, 36)
    assert INLINE.icon.popup_anchor == (0, -36)
    assert not TABULAR.draws_trails


def test_folium_canvas_tracks_layers_and_camera() -> None:
    canvas = FoliumCanvas("inline", INLINE)
    moves: list[tuple[tuple[float, float], int]] = []
    canvas.on_move(lambda center, zoom: moves.append((center, zoom)))

    canvas.add_marker(_spec("a", 14.0, 121.0, "Ana"))
    canvas.add_marker(_spec("b", 14.4, 121.4, "Ben"))
    canvas.move_marker("a", (14.1, 121.1))
    canvas.add_polyline("a", [(14.0, 121.0), (14.1, 121.1)])
    canvas.open_popup("b")
    canvas.fit_bounds([(14.0, 121.0), (14.4, 121.4)], 0.2)
    canvas.notify_moved((14.5, 121.0), 15)

    assert canvas.markers["a"].position == (14.1, 121.1)
    assert canvas.polylines == {"a": [(14.0, 121.0), (14.1, 121.1)]}
    assert canvas.open_popup_key == "b"
    assert canvas.center == (14.5, 121.0)
    assert canvas.zoom == 15
    assert moves[-1] == ((14.5, 121.0), 15)
    assert len(moves) == 2

    canvas.remove_marker("b")
    assert canvas.open_popup_key is None


def test_folium_canvas_renders_leaflet_page(tmp_path: Path) -> None:
    canvas = FoliumCanvas("inline", INLINE)
    canvas.add_marker(_spec("a", 14.0, 121.0, "Ana Cruz"))
    canvas.add_polyline("a", [(13.9, 121.0), (14.0, 121.0)])
    canvas.set_overlay("https://tile.openweathermap.org/map/temp_new/{z}/{x}/{y}.png?appid=k")

    page = canvas.to_html()
    canvas.save(tmp_path / "map.html")

    assert "tile.openstreetmap.org" in page
    assert "temp_new" in page
    assert "Ana Cruz" in page
    assert (tmp_path / "map.html").exists()


def test_destroyed_folium_canvas_cannot_render() -> None:
    canvas = FoliumCanvas("inline", INLINE)
    canvas.destroy()

    with pytest.raises(RuntimeError):
        canvas.render()


def test_table_canvas_rows_and_highlight() -> None:
    table = TableCanvas("table", TABULAR)
    table.add_marker(_spec("z", 14.0, 121.0, "zed", RiderStatus.OFFLINE))
    table.add_marker(_spec("b", 14.1, 121.1, "Ben"))
    table.add_marker(_spec("a", 14.2, 121.2, "ana"))
    table.add_polyline("a", [(1.0, 1.0), (2.0, 2.0)])
    table.open_popup("b")

    rows = table.rows()

    assert [row.rider_key for row in rows] == ["a", "b", "z"]
    assert [row.highlighted for row in rows] == [False, True, False]

    table.destroy()
    assert table.rows() == []
