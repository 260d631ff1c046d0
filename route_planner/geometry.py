"""
Distance and travel-time helpers. All functions are pure.
Distances are meters, speeds km/h, times seconds unless the name says otherwise.
"""

import math
from typing import Iterable, List, Sequence, Tuple

from geopy.distance import great_circle

LatLng = Tuple[float, float]

EARTH_RADIUS_M = 6371000


def distance_between(a: LatLng, b: LatLng) -> float:
    """Great-circle distance in meters between two (lat, lng) points."""
    return great_circle(a, b).meters


def haversine_m(a: LatLng, b: LatLng) -> float:
    """Haversine distance in meters; drop-in replacement for distance_between."""
    lat1, lon1 = a
    lat2, lon2 = b
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lon2 - lon1)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def segment_seconds(distance_m: float, speed_kmh: float) -> float:
    if speed_kmh <= 0:
        raise ValueError(f"speed must be positive, got {speed_kmh}")
    return distance_m / 1000 / speed_kmh * 3600


def time_for(distance_m: float, speed_kmh: float) -> Tuple[int, int]:
    """(minutes, seconds) needed to cover distance_m at speed_kmh, floored."""
    total = segment_seconds(distance_m, speed_kmh)
    return int(total // 60), int(total % 60)


def cumulative_times(distances: Iterable[float], speed_kmh: float) -> List[float]:
    """Running total of seconds after each segment."""
    out = []
    elapsed = 0.0
    for d in distances:
        elapsed += segment_seconds(d, speed_kmh)
        out.append(elapsed)
    return out


def split_hms(seconds: float) -> Tuple[int, int, int]:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return hours, minutes, secs


def total_time(distances: Sequence[float], speed_kmh: float) -> Tuple[int, int, int]:
    """(hours, minutes, seconds) for the whole route."""
    return split_hms(sum(segment_seconds(d, speed_kmh) for d in distances))


def format_ms(minutes: int, seconds: int) -> str:
    return f"{minutes}:{seconds:02d}"


def format_hms(seconds: float) -> str:
    h, m, s = split_hms(seconds)
    return f"{h:02d}:{m:02d}:{s:02d}"
