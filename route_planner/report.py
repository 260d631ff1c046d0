"""
PDF itinerary for a closed route.

Page 1 holds one static map snapshot per waypoint on a 2 x 3 grid, page 2 the
segment timing table and the waypoint coordinates. Snapshots come from the
Google Static Maps API and are fetched one at a time; the first failed fetch
aborts the report.
"""

import logging
from dataclasses import replace
from io import BytesIO
from typing import Dict, List, Optional, Sequence

import requests
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .config import Settings
from .errors import ReportUnavailableError, StaticMapError
from .geometry import cumulative_times, format_hms, format_ms, time_for
from .planner import RoutePlanner, Segment, Waypoint

LOGGER = logging.getLogger(__name__)

REPORT_FILENAME = "route-report.pdf"
PDF_FONT = "Helvetica"

# Image grid on page 1 (A4, mm)
GRID_COLUMNS = 2
GRID_ROWS = 3
GRID_MARGIN = 10
GRID_GUTTER = 10
CAPTION_HEIGHT = 6

TABLE_HEADERS = ["From", "To", "Distance (km)", "Time (m:s)", "Cumulative (hh:mm:ss)"]
TABLE_WIDTHS = [20, 20, 40, 40, 60]


def report_available(planner: RoutePlanner, api_key: str) -> bool:
    return planner.is_loop and bool((api_key or "").strip())


def static_map_params(waypoint: Waypoint, number: int, api_key: str, settings: Settings) -> Dict[str, str]:
    center = f"{waypoint.latitude:.6f},{waypoint.longitude:.6f}"
    return {
        "center": center,
        "zoom": str(settings.static_map_zoom),
        "size": settings.static_map_size,
        "maptype": "roadmap",
        "markers": f"color:red|label:{number}|{center}",
        "key": api_key,
    }


def fetch_static_map(
    waypoint: Waypoint,
    number: int,
    api_key: str,
    settings: Settings,
    session: Optional[requests.Session] = None,
) -> bytes:
    """Fetch one snapshot centered on waypoint. Raises StaticMapError, never retries."""
    http = session or requests
    params = static_map_params(waypoint, number, api_key, settings)
    try:
        r = http.get(settings.static_map_url, params=params, timeout=settings.static_map_timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        LOGGER.warning("Static map request for %s failed: %s", waypoint.label, e)
        raise StaticMapError(f"Could not fetch map image for {waypoint.label}: {e}") from e
    if not r.content:
        raise StaticMapError(f"Empty map image for {waypoint.label}")
    return r.content


def _image_grid_page(pdf: FPDF, waypoints: Sequence[Waypoint], images: Sequence[bytes]) -> None:
    pdf.add_page()
    cell_w = (pdf.w - 2 * GRID_MARGIN - (GRID_COLUMNS - 1) * GRID_GUTTER) / GRID_COLUMNS
    cell_h = (pdf.h - 2 * GRID_MARGIN - (GRID_ROWS - 1) * GRID_GUTTER) / GRID_ROWS
    image_h = min(cell_h - CAPTION_HEIGHT, cell_w * 3 / 4)
    pdf.set_font(PDF_FONT, "B", 10)
    for i, (waypoint, image) in enumerate(zip(waypoints, images)):
        col, row = i % GRID_COLUMNS, i // GRID_COLUMNS
        x = GRID_MARGIN + col * (cell_w + GRID_GUTTER)
        y = GRID_MARGIN + row * (cell_h + GRID_GUTTER)
        pdf.set_xy(x, y)
        pdf.cell(cell_w, CAPTION_HEIGHT, waypoint.label)
        pdf.image(BytesIO(image), x=x, y=y + CAPTION_HEIGHT, w=cell_w, h=image_h)


def _timing_page(pdf: FPDF, waypoints: Sequence[Waypoint], segments: Sequence[Segment], speed_kmh: int) -> None:
    pdf.add_page()
    pdf.set_font(PDF_FONT, "B", 14)
    pdf.cell(0, 10, f"Speed: {speed_kmh} km/h", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(2)

    pdf.set_font(PDF_FONT, "B", 10)
    for header, width in zip(TABLE_HEADERS, TABLE_WIDTHS):
        pdf.cell(width, 8, header, border=1, align="C")
    pdf.ln(8)

    pdf.set_font(PDF_FONT, "", 10)
    cumulative = cumulative_times([s.distance_m for s in segments], speed_kmh)
    for seg, elapsed in zip(segments, cumulative):
        minutes, seconds = time_for(seg.distance_m, speed_kmh)
        row = [
            str(seg.from_index),
            str(seg.to_index),
            f"{seg.distance_m / 1000:.2f}",
            format_ms(minutes, seconds),
            format_hms(elapsed),
        ]
        for value, width in zip(row, TABLE_WIDTHS):
            pdf.cell(width, 7, value, border=1, align="C")
        pdf.ln(7)

    pdf.ln(6)
    pdf.set_font(PDF_FONT, "B", 12)
    pdf.cell(0, 8, "Markers Coordinates:", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font(PDF_FONT, "", 10)
    for w in waypoints:
        pdf.cell(
            0, 6,
            f"{w.label}: Lat: {w.latitude:.6f}, Lng: {w.longitude:.6f}",
            new_x=XPos.LMARGIN, new_y=YPos.NEXT,
        )


def render_report_pdf(
    waypoints: Sequence[Waypoint],
    segments: Sequence[Segment],
    speed_kmh: int,
    images: Sequence[bytes],
) -> bytes:
    """Lay out the report. images[i] is the snapshot for waypoints[i]."""
    if len(images) != len(waypoints):
        raise ValueError("one image per waypoint is required")
    pdf = FPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    _image_grid_page(pdf, waypoints, images)
    _timing_page(pdf, waypoints, segments, speed_kmh)
    return bytes(pdf.output())


def build_report(
    planner: RoutePlanner,
    settings: Settings,
    session: Optional[requests.Session] = None,
) -> bytes:
    """Fetch snapshots for every waypoint in order and render the PDF."""
    api_key = settings.google_maps_api_key
    if not report_available(planner, api_key):
        raise ReportUnavailableError(
            f"Report needs exactly {planner.max_waypoints} markers and a Google Maps API key."
        )
    # Work on a copy; the planner may change while images are loading
    waypoints = [replace(w) for w in planner.waypoints]
    segments = list(planner.segments)
    speed_kmh = planner.speed_kmh
    images: List[bytes] = []
    for number, waypoint in enumerate(waypoints, start=1):
        images.append(fetch_static_map(waypoint, number, api_key, settings, session=session))
    LOGGER.info("Rendering report for %d waypoints at %d km/h", len(images), speed_kmh)
    return render_report_pdf(waypoints, segments, speed_kmh, images)
