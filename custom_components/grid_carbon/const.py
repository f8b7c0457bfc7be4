DOMAIN = "grid_carbon"
VERSION = "0.3.0"

API_BASE_URL = "https://api.electricitymap.org/v3"
AUTH_HEADER = "auth-token"

DEFAULT_ZONE = "US-NW-PACE"
DEFAULT_ENTRY_NAME = "Grid Carbon Intensity"

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_API_KEY = "api_key"
CONF_ZONE = "zone"

# Refresh cadence (seconds)
REFRESH_INTERVAL = 3600      # after a successful cycle
RETRY_INTERVAL = 300         # after a failed cycle, or while no credential is configured
REFRESH_TIMEOUT = 30         # upper bound for one aggregation, all three calls included
REQUEST_TIMEOUT = 15         # per HTTP call

HISTORY_WINDOW_HOURS = 24

# Neutral values used when history is missing
NEUTRAL_PERCENTILE = 50

# Trend threshold in percent, inclusive on both sides
TREND_THRESHOLD_PCT = 5.0

# Percentile cut points (exclusive upper bounds); >= 80 is the dirtiest 20%
PERCENTILE_THRESHOLDS = (20, 40, 60, 80)

# Absolute intensity cut points in gCO2eq/kWh (exclusive upper bounds)
INTENSITY_THRESHOLDS = (50, 150, 300, 450)

# Quintile colours, cleanest first
QUINTILE_COLORS = ("#009900", "#5DB529", "#FDAD3A", "#F76E2D", "#DC1409")

# Compact display, indexed on the cleanliness scale (100 - percentile)
CLEANLINESS_EMOJIS = ("⛔", "😡", "😑", "🌱", "🌿")
UNKNOWN_EMOJI = "❓"

POWER_SOURCE_EMOJIS: dict[str, str] = {
    "wind": "💨",
    "solar": "☀️",
    "hydro": "💧",
    "biomass": "🌱",
    "geothermal": "🌋",
    "nuclear": "⚛️",
    "coal": "🪨",
    "gas": "⛽",
    "oil": "🛢️",
    "unknown": "❓",
}

# Bounded size of the in-memory debug event buffer
DEBUG_EVENT_LIMIT = 500
