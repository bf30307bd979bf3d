"""Internal constants shared across the library."""

POLL_INTERVAL_SECONDS = 5.0
TRAIL_MAX_POINTS = 8
ACTIVITY_FEED_CAP = 60

DEFAULT_MONTHLY_QUOTA = 150
STREAK_LOOKBACK_DAYS = 366

# Backend paging (PostgREST)
PAGE_SIZE = 1000
MAX_PAGES = 25

# Map defaults (Quezon City)
DEFAULT_CENTER: tuple[float, float] = (14.676, 121.0437)
DEFAULT_ZOOM = 13
FOCUS_ZOOM = 14
MAX_ZOOM = 19
FIT_BOUNDS_PADDING = 0.2

OSM_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
OSM_ATTRIBUTION = "&copy; OpenStreetMap contributors"

# Violation points outside this box are treated as bad records.
PH_BOUNDS: tuple[float, float, float, float] = (4.5, 21.5, 116.0, 127.5)

TRACKING_UNAVAILABLE_NOTICE = "Tracking unavailable for {name}."

OPENWEATHER_API_URL = "https://api.openweathermap.org/data/2.5/weather"
OPENWEATHER_TILE_URL = "https://tile.openweathermap.org/map/{layer}/{{z}}/{{x}}/{{y}}.png?appid={api_key}"
DEFAULT_WEATHER_LAYER = "temp_new"
