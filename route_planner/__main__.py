"""Run: python -m route_planner LAT,LNG [LAT,LNG ...] [--speed 130] [--html route_map.html] [--pdf report.pdf]
   Builds the route from the given points, prints the segment table and saves the requested outputs.
   --pdf needs six points and GOOGLE_MAPS_API_KEY (env or backend/.local.env).
"""
import argparse
import sys
from pathlib import Path
from typing import Tuple

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def parse_point(text: str) -> Tuple[float, float]:
    try:
        lat, lng = (float(v) for v in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {text!r}")
    return lat, lng


def main(argv=None) -> int:
    from route_planner.config import DEFAULT_SPEED_KMH, load_settings
    from route_planner.errors import RoutePlannerError
    from route_planner.planner import RoutePlanner
    from route_planner.report import build_report
    from route_planner.view_route import save_route_map

    parser = argparse.ArgumentParser(prog="route_planner", description=__doc__.splitlines()[0])
    parser.add_argument("points", nargs="+", type=parse_point, help="waypoints as LAT,LNG")
    parser.add_argument("--speed", type=int, default=DEFAULT_SPEED_KMH, help="speed in km/h (100-180, step 10)")
    parser.add_argument("--html", help="write a Leaflet preview to this path")
    parser.add_argument("--pdf", help="write the PDF report to this path")
    args = parser.parse_args(argv)

    settings = load_settings()
    try:
        planner = RoutePlanner(speed_kmh=args.speed)
        for lat, lng in args.points:
            planner.dispatch("add", lat=lat, lng=lng)
    except (ValueError, RoutePlannerError) as e:
        print("Error:", e, file=sys.stderr)
        return 1

    snap = planner.snapshot(api_key_available=bool(settings.google_maps_api_key))
    for w in snap["waypoints"]:
        print(f"{w['label']}: Lat: {w['lat']:.6f}, Lng: {w['lng']:.6f}")
    for row in snap["segments"]:
        print(f"{row['from']} -> {row['to']}: {row['distance_km']} km  {row['time']}  {row['cumulative']}")
    if snap["total_distance_km"] is not None:
        print("Total distance:", snap["total_distance_km"], "km, total time:", snap["total_time"])

    if args.html:
        print("Map saved:", save_route_map(snap, args.html))
    if args.pdf:
        try:
            pdf_bytes = build_report(planner, settings)
        except RoutePlannerError as e:
            print("Could not build report:", e, file=sys.stderr)
            return 1
        Path(args.pdf).write_bytes(pdf_bytes)
        print("Report saved:", Path(args.pdf).resolve())
    return 0


if __name__ == "__main__":
    sys.exit(main())
