"""fleettrack - Live courier fleet tracking over a row-oriented REST backend."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fleettrack")
except PackageNotFoundError:
    __version__ = "0+local"
from fleettrack.client import FleetClient
from fleettrack.config import FleetConfig, TableNames
from fleettrack.deeplink import DeepLinkResult, apply_deep_link, extract_focus
from fleettrack.detail import RiderDetailView
from fleettrack.exceptions import (
    DetailError,
    FleetApiError,
    FleetConfigError,
    FleetError,
    FleetTransportError,
    RiderNotFoundError,
)
from fleettrack.ingestion.polling import PollingLoop, PollingState
from fleettrack.metrics.quota import (
    aggregate_parcels,
    compute_quota_state,
    compute_streak,
    daily_quota_for,
)
from fleettrack.models import (
    ActivityEvent,
    ActivityFeedRow,
    FocusResult,
    ParcelAggregate,
    QuotaState,
    RiderDetail,
    RiderSnapshot,
    RiderStatus,
    StreakResult,
)
from fleettrack.state.activity import ActivityFeed
from fleettrack.state.session import TrackingSession
from fleettrack.state.store import PositionStore
from fleettrack.state.trails import TrailBuilder
from fleettrack.surfaces import FULLSCREEN, INLINE, TABULAR, TRACK, FoliumCanvas, MapSurfaceController, TableCanvas
from fleettrack.tracker import FleetTracker

__all__ = [
    "__version__",
    "FULLSCREEN",
    "INLINE",
    "TABULAR",
    "TRACK",
    "ActivityEvent",
    "ActivityFeed",
    "ActivityFeedRow",
    "DeepLinkResult",
    "DetailError",
    "FleetApiError",
    "FleetClient",
    "FleetConfig",
    "FleetConfigError",
    "FleetError",
    "FleetTracker",
    "FleetTransportError",
    "FocusResult",
    "FoliumCanvas",
    "MapSurfaceController",
    "ParcelAggregate",
    "PollingLoop",
    "PollingState",
    "PositionStore",
    "QuotaState",
    "RiderDetail",
    "RiderDetailView",
    "RiderNotFoundError",
    "RiderSnapshot",
    "RiderStatus",
    "StreakResult",
    "TableCanvas",
    "TableNames",
    "TrackingSession",
    "TrailBuilder",
    "aggregate_parcels",
    "apply_deep_link",
    "compute_quota_state",
    "compute_streak",
    "daily_quota_for",
    "extract_focus",
]
