"""
config.py
---------
Central configuration for the group itinerary optimizer.
Every tunable is read from an environment variable with a documented default.
Nothing here is read per-request: callers pass OptimizationSettings explicitly,
these values only seed its defaults.
"""

import os
from pathlib import Path

# Load .env from the project root (if it exists) so env vars in that file
# are picked up by os.getenv() below.  Won't override vars already set in the shell.
from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Settings defaults ─────────────────────────────────────────────────────────
DEFAULT_FAIRNESS_WEIGHT: float   = float(os.getenv("TRIPOPT_FAIRNESS_WEIGHT", "0.6"))
DEFAULT_EFFICIENCY_WEIGHT: float = float(os.getenv("TRIPOPT_EFFICIENCY_WEIGHT", "0.4"))
DEFAULT_INCLUDE_MEALS: bool      = _flag("TRIPOPT_INCLUDE_MEALS", "true")
DEFAULT_PREFERRED_TRANSPORT: str = os.getenv("TRIPOPT_PREFERRED_TRANSPORT", "car")

DEFAULT_MAX_PLACES_PER_DAY: int           = int(os.getenv("TRIPOPT_MAX_PLACES_PER_DAY", "6"))
DEFAULT_MAX_TOTAL_DURATION_MINUTES: int   = int(os.getenv("TRIPOPT_MAX_TOTAL_DURATION_MINUTES", "480"))
DEFAULT_MAX_DAILY_HOURS: float            = float(os.getenv("TRIPOPT_MAX_DAILY_HOURS", "12"))
DEFAULT_DAY_START_HOUR: int               = int(os.getenv("TRIPOPT_DAY_START_HOUR", "9"))
DEFAULT_DAY_END_HOUR: int                 = int(os.getenv("TRIPOPT_DAY_END_HOUR", "21"))

# ── Place scoring ─────────────────────────────────────────────────────────────
# Weights for [priority, rating, location]
PRIORITY_WEIGHT: float = float(os.getenv("TRIPOPT_PRIORITY_WEIGHT", "0.4"))
RATING_WEIGHT: float   = float(os.getenv("TRIPOPT_RATING_WEIGHT",   "0.3"))
LOCATION_WEIGHT: float = float(os.getenv("TRIPOPT_LOCATION_WEIGHT", "0.3"))

# Stays at or above this length get the full 0.1 duration penalty
DURATION_PENALTY_CAP_MINUTES: int = 240
DURATION_PENALTY_MAX: float       = 0.1

# Proximity falls linearly to zero at this distance from the scoring anchor
PROXIMITY_RADIUS_KM: float = float(os.getenv("TRIPOPT_PROXIMITY_RADIUS_KM", "10.0"))

# Selection threshold: BASE + (selected / candidates) * SPAN
SELECTION_THRESHOLD_BASE: float = 0.5
SELECTION_THRESHOLD_SPAN: float = 0.4

MUST_VISIT_WISH_LEVEL: int     = 5
HIGH_RATING_THRESHOLD: float   = 4.0
LOW_PRIORITY_WISH_LEVEL: int   = 2
LOW_RATING_THRESHOLD: float    = 3.0

# ── Transport mode thresholds (km) ────────────────────────────────────────────
WALKING_MAX_KM: float          = float(os.getenv("TRIPOPT_WALKING_MAX_KM", "1.0"))
PUBLIC_TRANSPORT_MAX_KM: float = float(os.getenv("TRIPOPT_PUBLIC_TRANSPORT_MAX_KM", "20.0"))
FLIGHT_MIN_KM: float           = float(os.getenv("TRIPOPT_FLIGHT_MIN_KM", "200.0"))

# Average speed (km/h) and fixed overhead (minutes) per mode
TRANSPORT_SPEED_KMH: dict[str, float] = {
    "walking":          5.0,
    "public_transport": 25.0,
    "car":              40.0,
    "flight":           700.0,
}
TRANSPORT_OVERHEAD_MIN: dict[str, float] = {
    "walking":          5.0,
    "public_transport": 10.0,
    "car":              10.0,
    "flight":           60.0,
}
LONG_HAUL_FLIGHT_KM: float         = 3000.0
LONG_HAUL_AIRPORT_OVERHEAD_MIN: float = 90.0

# ── Meal windows (start hour, duration minutes) ──────────────────────────────
MEAL_WINDOWS: dict[str, tuple[int, int]] = {
    "breakfast": (8, 60),
    "lunch":     (12, 90),
    "dinner":    (18, 120),
}
# A meal not started within this many minutes after its window opens is skipped
MEAL_LATEST_START_OFFSET_MIN: int = int(os.getenv("TRIPOPT_MEAL_LATEST_START_OFFSET_MIN", "180"))

# ── Schedule sanity limits ───────────────────────────────────────────────────
MAX_REALISTIC_LEG_MINUTES: float = 720.0
MAX_FLIGHT_DAY_RATIO: float      = 0.5

# ── Retry ─────────────────────────────────────────────────────────────────────
# Options: "default" | "aggressive" | "conservative"
RETRY_PROFILE: str = os.getenv("TRIPOPT_RETRY_PROFILE", "default")

# ── Observability ─────────────────────────────────────────────────────────────
STRUCTURED_LOG_ENABLED: bool = _flag("TRIPOPT_STRUCTURED_LOG_ENABLED", "true")
STRUCTURED_LOG_DIR: str      = os.getenv(
    "TRIPOPT_STRUCTURED_LOG_DIR",
    str(Path(__file__).resolve().parent.parent / "logs"),
)
LOG_LEVEL: str = os.getenv("TRIPOPT_LOG_LEVEL", "INFO").upper()
