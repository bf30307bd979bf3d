"""Map and table rendering surfaces."""

from fleettrack.surfaces.canvas import CanvasFactory, MapCanvas, MarkerSpec
from fleettrack.surfaces.controller import MapSurfaceController, SurfaceState
from fleettrack.surfaces.folium_canvas import FoliumCanvas
from fleettrack.surfaces.profiles import FULLSCREEN, INLINE, TABULAR, TRACK, IconSpec, SurfaceProfile
from fleettrack.surfaces.table import TableCanvas, TableRow

__all__ = [
    "FULLSCREEN",
    "INLINE",
    "TABULAR",
    "TRACK",
    "CanvasFactory",
    "FoliumCanvas",
    "IconSpec",
    "MapCanvas",
    "MapSurfaceController",
    "MarkerSpec",
    "SurfaceProfile",
    "SurfaceState",
    "TableCanvas",
    "TableRow",
]
