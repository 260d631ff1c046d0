"""
Save a route to an HTML file you can open in a browser to view it.
No API key required; uses Leaflet + OSM tiles.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import polyline as pl

from .config import MAP_CENTER, MAP_ZOOM, ZONE_POLYGON


def _decode_polyline(encoded: str) -> List[List[float]]:
    """Decode Google-style polyline to list of [lat, lon]."""
    if not encoded:
        return []
    return [list(p) for p in pl.decode(encoded)]


def route_map_html(snapshot: Dict[str, Any]) -> str:
    """Leaflet page showing the waypoints, the route path and the zone outline of a planner snapshot."""
    points = _decode_polyline(snapshot.get("polyline") or "")
    markers = [[w["lat"], w["lng"], w["label"]] for w in snapshot.get("waypoints", [])]
    zone = [[p["lat"], p["lng"]] for p in ZONE_POLYGON]

    total_km = snapshot.get("total_distance_km") or "-"
    total_time = snapshot.get("total_time") or "-"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <title>Route Planner</title>
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" />
  <script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"></script>
</head>
<body>
  <div id="map" style="height: 600px; width: 100%;"></div>
  <p style="margin: 10px;">
    Speed: {snapshot.get('speed_kmh')} km/h &nbsp;
    Total distance: {total_km} km &nbsp;
    Total time: {total_time}
  </p>
  <script>
    var map = L.map('map').setView([{MAP_CENTER['lat']}, {MAP_CENTER['lng']}], {MAP_ZOOM});
    L.tileLayer('https://{{s}}.tile.openstreetmap.org/{{z}}/{{x}}/{{y}}.png', {{
      attribution: '&copy; OpenStreetMap'
    }}).addTo(map);
    L.polygon({json.dumps(zone)}, {{
      color: '#FF0000', weight: 2, opacity: 0.8, fillOpacity: 0.1, interactive: false
    }}).addTo(map);
    var markers = {json.dumps(markers)};
    markers.forEach(function(m) {{
      L.marker([m[0], m[1]]).addTo(map).bindTooltip(m[2], {{permanent: true}});
    }});
    var line = {json.dumps(points)};
    if (line.length > 1) {{
      var route = L.polyline(line, {{color: '#FF0000', weight: 2, opacity: 1.0}}).addTo(map);
      map.fitBounds(route.getBounds());
    }}
  </script>
</body>
</html>
"""


def save_route_map(snapshot: Dict[str, Any], output_path: str = "route_map.html") -> str:
    """
    Write the route page for snapshot to output_path.
    Returns the absolute path to the file. Open it in a browser to check the route.
    """
    if not snapshot.get("waypoints"):
        raise ValueError("No waypoints in snapshot; nothing to draw.")
    out = Path(output_path).resolve()
    out.write_text(route_map_html(snapshot), encoding="utf-8")
    return str(out)
