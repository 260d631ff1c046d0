import sys
from pathlib import Path

# Ensure backend dir is on path so "backend.Server" can import backend modules when run from project root
_BACKEND_DIR = Path(__file__).resolve().parent
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

# Project root for the route_planner package
_ROOT = _BACKEND_DIR.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import uvicorn
from typing import Optional

from fastapi import Body, Cookie, FastAPI
from fastapi.responses import FileResponse, JSONResponse, Response
from pydantic import BaseModel, Field

import session_id_manager
from route_planner.config import MAP_CENTER, MAP_ID, MAP_ZOOM, ZONE_POLYGON, load_settings
from route_planner.errors import ReportUnavailableError, RouteFullError, StaticMapError
from route_planner.report import REPORT_FILENAME, build_report, report_available

_TEMPLATES_DIR = _BACKEND_DIR / "templates"
_STATIC_DIR = _BACKEND_DIR / "static"

settings = load_settings()

app = FastAPI(title="Route Planner API")


@app.get("/static/styles.css")
def get_styles():
    return FileResponse(_STATIC_DIR / "styles.css", media_type="text/css")


@app.get("/static/app.js")
def get_app_js():
    return FileResponse(_STATIC_DIR / "app.js", media_type="application/javascript")


@app.get("/")
async def root():
    return FileResponse(_TEMPLATES_DIR / "index.html")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/config")
async def api_config():
    """Google Maps key for the browser SDK. Empty string when not configured."""
    if not settings.google_maps_api_key:
        print("GOOGLE_MAPS_API_KEY is not set; map and report are unavailable.", flush=True)
    return {"googleMapsApiKey": settings.google_maps_api_key}


@app.get("/api/map-options")
async def api_map_options():
    return {
        "center": MAP_CENTER,
        "zoom": MAP_ZOOM,
        "mapId": MAP_ID,
        "streetViewControl": False,
        "gestureHandling": "auto",
        "zone": ZONE_POLYGON,
    }


def _snapshot(planner):
    return planner.snapshot(api_key_available=bool(settings.google_maps_api_key))


def _respond(content, session_id: str, created: bool, status_code: int = 200) -> JSONResponse:
    """JSON response; sets the session cookie when the session was just created."""
    response = JSONResponse(content, status_code=status_code)
    if created:
        session_id_manager.set_session_cookie(response, session_id)
    return response


@app.get("/route")
async def route_state(session_id: str | None = Cookie(None)):
    """Current waypoints, segments, totals and overlay for this session."""
    sid, planner, created = session_id_manager.get_or_create(session_id)
    return _respond(_snapshot(planner), sid, created)


class WaypointBody(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class MoveBody(BaseModel):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)


class SpeedBody(BaseModel):
    speed_kmh: int


@app.post("/route/waypoints")
async def add_waypoint(
    body: WaypointBody,
    session_id: str | None = Cookie(None),
):
    """Map click. 409 when the route is already full."""
    sid, planner, created = session_id_manager.get_or_create(session_id)
    try:
        planner.dispatch("add", lat=body.lat, lng=body.lng)
    except RouteFullError as e:
        return _respond({"error": str(e), "route": _snapshot(planner)}, sid, created, status_code=409)
    return _respond(_snapshot(planner), sid, created)


@app.put("/route/waypoints/{waypoint_id}")
async def move_waypoint(
    waypoint_id: int,
    session_id: str | None = Cookie(None),
    body: Optional[MoveBody] = Body(default=None),
):
    """Marker drag end. A drag without coordinates leaves the route unchanged."""
    sid, planner, created = session_id_manager.get_or_create(session_id)
    b = body or MoveBody()
    try:
        planner.dispatch("move", waypoint_id=waypoint_id, lat=b.lat, lng=b.lng)
    except KeyError:
        return _respond({"error": f"No waypoint with id {waypoint_id}"}, sid, created, status_code=404)
    return _respond(_snapshot(planner), sid, created)


@app.post("/route/speed")
async def set_speed(
    body: SpeedBody,
    session_id: str | None = Cookie(None),
):
    sid, planner, created = session_id_manager.get_or_create(session_id)
    try:
        planner.dispatch("speed", speed_kmh=body.speed_kmh)
    except ValueError as e:
        return _respond({"error": str(e)}, sid, created, status_code=422)
    return _respond(_snapshot(planner), sid, created)


@app.post("/route/clear")
async def clear_route(session_id: str | None = Cookie(None)):
    sid, planner, created = session_id_manager.get_or_create(session_id)
    planner.dispatch("clear")
    return _respond(_snapshot(planner), sid, created)


@app.get("/route/report.pdf")
def route_report(session_id: str | None = Cookie(None)):
    """PDF itinerary. 409 when the route is not full or no key is configured, 502 when a map image fails."""
    sid, planner, created = session_id_manager.get_or_create(session_id)
    if not report_available(planner, settings.google_maps_api_key):
        return _respond(
            {"error": "Export needs 6 markers and a configured Google Maps API key."},
            sid, created, status_code=409,
        )
    try:
        pdf_bytes = build_report(planner, settings)
    except ReportUnavailableError as e:
        return _respond({"error": str(e)}, sid, created, status_code=409)
    except StaticMapError as e:
        print(f"Report generation failed: {e}", flush=True)
        return _respond({"error": str(e)}, sid, created, status_code=502)
    response = Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{REPORT_FILENAME}"'},
    )
    if created:
        session_id_manager.set_session_cookie(response, sid)
    return response


def main():
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
