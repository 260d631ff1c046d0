"""Route planner: up to six waypoints, great-circle legs, travel time at a chosen speed, PDF itinerary."""

from .errors import ReportUnavailableError, RouteFullError, RoutePlannerError, StaticMapError
from .geometry import cumulative_times, distance_between, time_for, total_time
from .planner import MapOverlay, RoutePlanner, Segment, Waypoint
from .report import build_report, render_report_pdf, report_available

__all__ = [
    "RoutePlanner",
    "Waypoint",
    "Segment",
    "MapOverlay",
    "distance_between",
    "time_for",
    "cumulative_times",
    "total_time",
    "build_report",
    "render_report_pdf",
    "report_available",
    "RoutePlannerError",
    "RouteFullError",
    "ReportUnavailableError",
    "StaticMapError",
]
