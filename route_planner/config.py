"""
Settings and constants for the route planner.
The Google Maps key is read from backend/.local.env (python-dotenv), then from the process env.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).resolve().parent.parent
ENV_PATH = _ROOT / "backend" / ".local.env"

# Route limits
MAX_WAYPOINTS = 6
DEFAULT_SPEED_KMH = 130
MIN_SPEED_KMH = 100
MAX_SPEED_KMH = 180
SPEED_STEP_KMH = 10

# Initial map view (Brasov area)
MAP_CENTER = {"lat": 45.657974, "lng": 25.601198}
MAP_ZOOM = 9
MAP_ID = "ROUTE_PLANNER"

# Zone outline drawn on the map, decimal degrees, closed
ZONE_POLYGON = [
    {"lat": 46.024722, "lng": 25.732500},
    {"lat": 45.865556, "lng": 26.110000},
    {"lat": 45.446667, "lng": 25.712778},
    {"lat": 45.530833, "lng": 25.543056},
    {"lat": 45.460278, "lng": 25.373889},
    {"lat": 45.486944, "lng": 25.318056},
    {"lat": 45.516667, "lng": 25.377778},
    {"lat": 45.583333, "lng": 25.275000},
    {"lat": 45.583333, "lng": 25.235278},
    {"lat": 45.633611, "lng": 25.197222},
    {"lat": 46.024722, "lng": 25.732500},
]

# Static map snapshots for the PDF report
STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"
STATIC_MAP_ZOOM = 13
STATIC_MAP_SIZE = "400x300"
STATIC_MAP_TIMEOUT = 10


@dataclass(frozen=True)
class Settings:
    google_maps_api_key: str = ""
    static_map_url: str = STATIC_MAP_URL
    static_map_zoom: int = STATIC_MAP_ZOOM
    static_map_size: str = STATIC_MAP_SIZE
    static_map_timeout: float = STATIC_MAP_TIMEOUT
    host: str = "0.0.0.0"
    port: int = 8000


def load_settings(env_path: Path = ENV_PATH) -> Settings:
    """Load settings from env_path (if present) and the environment. Missing key gives ''."""
    load_dotenv(env_path)
    return Settings(
        google_maps_api_key=(os.getenv("GOOGLE_MAPS_API_KEY") or "").strip(),
        static_map_url=os.getenv("STATIC_MAP_URL", STATIC_MAP_URL),
        static_map_zoom=int(os.getenv("STATIC_MAP_ZOOM", STATIC_MAP_ZOOM)),
        static_map_size=os.getenv("STATIC_MAP_SIZE", STATIC_MAP_SIZE),
        static_map_timeout=float(os.getenv("STATIC_MAP_TIMEOUT", STATIC_MAP_TIMEOUT)),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
    )
