"""
Waypoint controller for the route planner.

RoutePlanner owns the waypoint list, the speed and the map overlay (marker handles
and route path). Every mutation goes through one recompute pass that rebuilds the
overlay and all segment distances from the waypoint list; nothing is patched
incrementally. When the route holds MAX_WAYPOINTS points it is closed into a loop.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import polyline

from .config import (
    DEFAULT_SPEED_KMH,
    MAX_SPEED_KMH,
    MAX_WAYPOINTS,
    MIN_SPEED_KMH,
    SPEED_STEP_KMH,
)
from .errors import RouteFullError
from .geometry import (
    LatLng,
    cumulative_times,
    distance_between,
    format_hms,
    format_ms,
    segment_seconds,
    split_hms,
    time_for,
)

LOGGER = logging.getLogger(__name__)

FIRST_LABEL_NUMBER = 1
FULL_ROUTE_MESSAGE = f"You can only add up to {MAX_WAYPOINTS} markers."


@dataclass
class Waypoint:
    id: int
    latitude: float
    longitude: float
    label: str

    @property
    def position(self) -> LatLng:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class Segment:
    from_index: int  # 1-based
    to_index: int
    distance_m: float

    @property
    def is_closing(self) -> bool:
        return self.to_index == 1


@dataclass
class MarkerHandle:
    waypoint_id: int
    label: str
    lat: float
    lng: float
    draggable: bool = True


@dataclass
class MapOverlay:
    """What the map shows for the route: one marker per waypoint plus the route path."""

    markers: List[MarkerHandle] = field(default_factory=list)
    path: Optional[List[LatLng]] = None

    def render(self, waypoints: List[Waypoint], path: Optional[List[LatLng]]) -> None:
        self.teardown()
        self.markers = [
            MarkerHandle(waypoint_id=w.id, label=w.label, lat=w.latitude, lng=w.longitude)
            for w in waypoints
        ]
        self.path = path

    def teardown(self) -> None:
        self.markers = []
        self.path = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "markers": [asdict(m) for m in self.markers],
            "path": [list(p) for p in self.path] if self.path else None,
        }


def validate_speed(speed_kmh: float) -> int:
    speed = int(speed_kmh)
    if speed != speed_kmh or not MIN_SPEED_KMH <= speed <= MAX_SPEED_KMH:
        raise ValueError(f"speed must be between {MIN_SPEED_KMH} and {MAX_SPEED_KMH} km/h")
    if (speed - MIN_SPEED_KMH) % SPEED_STEP_KMH:
        raise ValueError(f"speed must be a multiple of {SPEED_STEP_KMH} km/h")
    return speed


class RoutePlanner:
    def __init__(
        self,
        speed_kmh: int = DEFAULT_SPEED_KMH,
        distance_fn: Callable[[LatLng, LatLng], float] = distance_between,
        max_waypoints: int = MAX_WAYPOINTS,
    ):
        self.distance_fn = distance_fn
        self.max_waypoints = max_waypoints
        self.speed_kmh = validate_speed(speed_kmh)
        self.waypoints: List[Waypoint] = []
        self.segments: List[Segment] = []
        self.overlay = MapOverlay()
        self._label_counter = FIRST_LABEL_NUMBER
        self._next_id = 1
        self._handlers: Dict[str, Callable[..., Any]] = {
            "add": self.add_waypoint,
            "move": self.move_waypoint,
            "speed": self.set_speed,
            "clear": self.clear,
        }

    # -- intents -----------------------------------------------------------

    def dispatch(self, intent: str, **payload):
        """Apply a UI intent ('add', 'move', 'speed', 'clear') and return its result."""
        handler = self._handlers.get(intent)
        if handler is None:
            raise ValueError(f"Unknown intent: {intent!r}")
        return handler(**payload)

    def add_waypoint(self, lat: float, lng: float) -> Waypoint:
        if self.is_full:
            raise RouteFullError(FULL_ROUTE_MESSAGE)
        waypoint = Waypoint(
            id=self._next_id,
            latitude=float(lat),
            longitude=float(lng),
            label=f"Marker {self._label_counter}",
        )
        self._next_id += 1
        self._label_counter += 1
        self.waypoints.append(waypoint)
        self._recompute()
        return waypoint

    def move_waypoint(self, waypoint_id: int, lat: Optional[float] = None, lng: Optional[float] = None) -> bool:
        """Drag end. Returns False (and changes nothing) when the event carries no position."""
        if lat is None or lng is None:
            return False
        waypoint = self.get_waypoint(waypoint_id)
        waypoint.latitude = float(lat)
        waypoint.longitude = float(lng)
        self._recompute()
        return True

    def set_speed(self, speed_kmh: float) -> int:
        self.speed_kmh = validate_speed(speed_kmh)
        self._recompute()
        return self.speed_kmh

    def clear(self) -> None:
        self.overlay.teardown()
        self.waypoints = []
        self.segments = []
        self._label_counter = FIRST_LABEL_NUMBER

    # -- queries -----------------------------------------------------------

    def get_waypoint(self, waypoint_id: int) -> Waypoint:
        for w in self.waypoints:
            if w.id == waypoint_id:
                return w
        raise KeyError(waypoint_id)

    @property
    def is_full(self) -> bool:
        return len(self.waypoints) >= self.max_waypoints

    @property
    def is_loop(self) -> bool:
        return len(self.waypoints) == self.max_waypoints

    @property
    def next_label(self) -> str:
        return f"Marker {self._label_counter}"

    @property
    def distances(self) -> List[float]:
        return [s.distance_m for s in self.segments]

    @property
    def total_distance_m(self) -> Optional[float]:
        if len(self.waypoints) < 2:
            return None
        return sum(self.distances)

    @property
    def total_seconds(self) -> Optional[float]:
        if len(self.waypoints) < 2:
            return None
        return sum(segment_seconds(d, self.speed_kmh) for d in self.distances)

    @property
    def total_time(self) -> Optional[Tuple[int, int, int]]:
        seconds = self.total_seconds
        return None if seconds is None else split_hms(seconds)

    def segment_rows(self) -> List[Dict[str, Any]]:
        """Segments with display values at the current speed."""
        rows = []
        cumulative = cumulative_times(self.distances, self.speed_kmh)
        for seg, elapsed in zip(self.segments, cumulative):
            minutes, seconds = time_for(seg.distance_m, self.speed_kmh)
            rows.append({
                "from": seg.from_index,
                "to": seg.to_index,
                "distance_m": seg.distance_m,
                "distance_km": f"{seg.distance_m / 1000:.2f}",
                "time": format_ms(minutes, seconds),
                "cumulative": format_hms(elapsed),
                "cumulative_seconds": elapsed,
            })
        return rows

    def encoded_path(self) -> str:
        if not self.overlay.path:
            return ""
        return polyline.encode(self.overlay.path)

    def snapshot(self, api_key_available: bool = False) -> Dict[str, Any]:
        total_m = self.total_distance_m
        total_s = self.total_seconds
        return {
            "speed_kmh": self.speed_kmh,
            "waypoints": [
                {"id": w.id, "label": w.label, "lat": w.latitude, "lng": w.longitude}
                for w in self.waypoints
            ],
            "segments": self.segment_rows(),
            "total_distance_m": total_m,
            "total_distance_km": None if total_m is None else f"{total_m / 1000:.2f}",
            "total_seconds": total_s,
            "total_time": None if total_s is None else format_hms(total_s),
            "is_loop": self.is_loop,
            "can_add": not self.is_full,
            "can_export": self.is_loop and api_key_available,
            "overlay": self.overlay.to_dict(),
            "polyline": self.encoded_path(),
        }

    # -- recompute ---------------------------------------------------------

    def _recompute(self) -> None:
        points = [w.position for w in self.waypoints]
        segments = []
        path = None
        if len(points) > 1:
            for i in range(len(points) - 1):
                segments.append(Segment(i + 1, i + 2, self.distance_fn(points[i], points[i + 1])))
            path = list(points)
            if self.is_loop:
                segments.append(Segment(len(points), 1, self.distance_fn(points[-1], points[0])))
                path.append(points[0])
        self.segments = segments
        self.overlay.render(self.waypoints, path)
        LOGGER.debug("Recomputed route: %d waypoints, %d segments", len(points), len(segments))
