class RoutePlannerError(Exception):
    """Base class for route planner errors."""


class RouteFullError(RoutePlannerError):
    """Raised when a waypoint is added to a route that already has the maximum."""


class ReportUnavailableError(RoutePlannerError):
    """Raised when a report is requested without a full route or without an API key."""


class StaticMapError(RoutePlannerError):
    """Raised when a static map snapshot could not be fetched."""
