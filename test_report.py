import base64

import pytest
import requests
from fpdf import FPDF

from route_planner import report
from route_planner.config import Settings
from route_planner.errors import ReportUnavailableError, StaticMapError
from route_planner.planner import RoutePlanner

SAMPLE_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR4nGMAAQAABQABDQottAAAAABJRU5ErkJggg=="
)

HEXAGON = [
    (45.65, 25.60),
    (45.70, 25.70),
    (45.65, 25.80),
    (45.55, 25.80),
    (45.50, 25.70),
    (45.55, 25.60),
]


class FakeResponse:
    def __init__(self, content=SAMPLE_PNG, status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code != 200:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    """Records static map requests; fails on request number fail_on (1-based) if given."""

    def __init__(self, fail_on=None, response=None):
        self.calls = []
        self.fail_on = fail_on
        self.response = response or FakeResponse()

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.fail_on == len(self.calls):
            raise requests.ConnectionError("connection refused")
        return self.response


@pytest.fixture
def settings():
    return Settings(google_maps_api_key="test-key")


@pytest.fixture
def full_planner():
    planner = RoutePlanner(speed_kmh=120)
    for lat, lng in HEXAGON:
        planner.add_waypoint(lat, lng)
    return planner


def test_report_available(full_planner):
    assert report.report_available(full_planner, "test-key")
    assert not report.report_available(full_planner, "")
    assert not report.report_available(full_planner, "   ")
    partial = RoutePlanner()
    partial.add_waypoint(45.0, 25.0)
    assert not report.report_available(partial, "test-key")


def test_static_map_params(full_planner, settings):
    w = full_planner.waypoints[2]
    params = report.static_map_params(w, 3, "test-key", settings)
    assert params["center"] == "45.650000,25.800000"
    assert params["zoom"] == "13"
    assert params["size"] == "400x300"
    assert params["markers"] == "color:red|label:3|45.650000,25.800000"
    assert params["key"] == "test-key"


def test_build_report_fetches_each_waypoint_in_order(full_planner, settings):
    session = FakeSession()
    pdf_bytes = report.build_report(full_planner, settings, session=session)
    assert pdf_bytes.startswith(b"%PDF")
    assert len(session.calls) == 6
    centers = [params["center"] for _, params, _ in session.calls]
    assert centers == [f"{lat:.6f},{lng:.6f}" for lat, lng in HEXAGON]
    assert all(url == settings.static_map_url for url, _, _ in session.calls)


def test_build_report_aborts_on_first_failed_image(full_planner, settings, monkeypatch):
    def fail_render(*args, **kwargs):
        raise AssertionError("render must not run after a failed fetch")

    monkeypatch.setattr(report, "render_report_pdf", fail_render)
    session = FakeSession(fail_on=2)
    with pytest.raises(StaticMapError):
        report.build_report(full_planner, settings, session=session)
    assert len(session.calls) == 2


def test_build_report_rejects_http_error_and_empty_body(full_planner, settings):
    with pytest.raises(StaticMapError):
        report.build_report(full_planner, settings, session=FakeSession(response=FakeResponse(status_code=403)))
    with pytest.raises(StaticMapError):
        report.build_report(full_planner, settings, session=FakeSession(response=FakeResponse(content=b"")))


def test_build_report_requires_full_route_and_key(full_planner):
    session = FakeSession()
    with pytest.raises(ReportUnavailableError):
        report.build_report(full_planner, Settings(google_maps_api_key=""), session=session)
    partial = RoutePlanner()
    partial.add_waypoint(45.0, 25.0)
    with pytest.raises(ReportUnavailableError):
        report.build_report(partial, Settings(google_maps_api_key="test-key"), session=session)
    assert session.calls == []


def test_render_report_pdf_needs_one_image_per_waypoint(full_planner):
    with pytest.raises(ValueError):
        report.render_report_pdf(full_planner.waypoints, full_planner.segments, 120, [SAMPLE_PNG])


def test_render_report_pdf_has_two_pages(full_planner, monkeypatch):
    documents = []

    class RecordingFPDF(FPDF):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            documents.append(self)

    monkeypatch.setattr(report, "FPDF", RecordingFPDF)
    pdf_bytes = report.render_report_pdf(
        full_planner.waypoints, full_planner.segments, full_planner.speed_kmh, [SAMPLE_PNG] * 6
    )
    assert pdf_bytes.startswith(b"%PDF")
    assert len(documents) == 1
    assert documents[0].page == 2


def test_render_report_pdf_timing_page_content(full_planner, monkeypatch):
    class UncompressedFPDF(FPDF):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.set_compression(False)

    monkeypatch.setattr(report, "FPDF", UncompressedFPDF)
    pdf_bytes = report.render_report_pdf(
        full_planner.waypoints, full_planner.segments, full_planner.speed_kmh, [SAMPLE_PNG] * 6
    )
    assert b"Speed: 120 km/h" in pdf_bytes
    assert b"From" in pdf_bytes
    assert b"Markers Coordinates:" in pdf_bytes

    rows = full_planner.segment_rows()
    assert (rows[-1]["from"], rows[-1]["to"]) == (6, 1)
    for row in rows:
        assert row["distance_km"].encode() in pdf_bytes
        assert row["time"].encode() in pdf_bytes
        assert row["cumulative"].encode() in pdf_bytes
    closing = rows[-1]
    assert len(closing["distance_km"].split(".")[1]) == 2
    assert len(closing["cumulative"].split(":")) == 3
    assert b"Marker 1: Lat: 45.650000, Lng: 25.600000" in pdf_bytes
    assert b"Marker 6: Lat: 45.550000, Lng: 25.600000" in pdf_bytes


def test_build_report_uses_route_as_it_was_when_started(full_planner, settings, monkeypatch):
    rendered = {}

    def fake_render(waypoints, segments, speed_kmh, images):
        rendered["waypoints"] = [w.position for w in waypoints]
        rendered["segments"] = len(segments)
        rendered["speed"] = speed_kmh
        rendered["images"] = len(images)
        return b"%PDF-fake"

    class ClearingSession(FakeSession):
        def get(self, url, params=None, timeout=None):
            if len(self.calls) == 2:
                full_planner.clear()
            return super().get(url, params=params, timeout=timeout)

    monkeypatch.setattr(report, "render_report_pdf", fake_render)
    session = ClearingSession()
    assert report.build_report(full_planner, settings, session=session) == b"%PDF-fake"
    assert full_planner.waypoints == []
    assert len(session.calls) == 6
    assert rendered == {"waypoints": HEXAGON, "segments": 6, "speed": 120, "images": 6}


def test_build_report_ignores_moves_during_fetch(full_planner, settings):
    moved_id = full_planner.waypoints[3].id

    class MovingSession(FakeSession):
        def get(self, url, params=None, timeout=None):
            if len(self.calls) == 1:
                full_planner.move_waypoint(moved_id, 10.0, 10.0)
            return super().get(url, params=params, timeout=timeout)

    session = MovingSession()
    pdf_bytes = report.build_report(full_planner, settings, session=session)
    assert pdf_bytes.startswith(b"%PDF")
    assert full_planner.waypoints[3].position == (10.0, 10.0)
    centers = [params["center"] for _, params, _ in session.calls]
    assert centers == [f"{lat:.6f},{lng:.6f}" for lat, lng in HEXAGON]


def test_report_available_follows_planner_capacity():
    planner = RoutePlanner(max_waypoints=3)
    for lat, lng in HEXAGON[:3]:
        planner.add_waypoint(lat, lng)
    assert planner.snapshot(api_key_available=True)["can_export"] is True
    assert report.report_available(planner, "test-key")
