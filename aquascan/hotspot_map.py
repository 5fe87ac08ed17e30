"""
Hotspot map rendering.

Two overlays on an OpenStreetMap base: point markers for every located history
entry, and zone circles for each regional hotspot. Overlays are computed as plain
data first (build_overlays) and drawn with folium from scratch on every render.
"""

from typing import Any, Dict, List, Sequence, Tuple

import folium

from dashboard import RISK_COLORS, format_score
from models import AnalysisResult, Hotspot, RiskLevel

FALLBACK_CENTER = (37.7749, -122.4194)
ZOOM_START = 12

HIGH_RISK_THRESHOLD = 50
SAFE_ZONE_THRESHOLD = 80

COLORS = {
    "high_risk": "#ef4444",
    "moderate": "#f59e0b",
    "outline": "#ffffff",
}

MARKER_RADIUS = 8
ZONE_RADIUS_M = 1000

TILES_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILES_ATTRIBUTION = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'


def map_center(history: Sequence[AnalysisResult]) -> Tuple[float, float]:
    """First located history entry, else the fallback center."""
    for item in history:
        if item.location is not None:
            return (item.location.latitude, item.location.longitude)
    return FALLBACK_CENTER


def hotspot_position(hotspot: Hotspot, center: Tuple[float, float]) -> Tuple[float, float]:
    """
    Geographic position of a hotspot.

    Hotspots with true coordinates are placed there. Grid-only hotspots are offset
    from the map center by (coord - 50) / 100 degrees, an illustrative placement
    rather than a geodesic one.
    """
    if hotspot.has_coordinates:
        return (hotspot.latitude, hotspot.longitude)
    lat = center[0] + (hotspot.grid_y - 50) / 100
    lng = center[1] + (hotspot.grid_x - 50) / 100
    return (lat, lng)


def hotspot_color(avg_score: float) -> str:
    return COLORS["high_risk"] if avg_score < HIGH_RISK_THRESHOLD else COLORS["moderate"]


def history_markers(history: Sequence[AnalysisResult]) -> List[Dict[str, Any]]:
    markers = []
    for item in history:
        if item.location is None:
            continue
        _, hex_color = RISK_COLORS[item.risk_level]
        markers.append({
            "lat": item.location.latitude,
            "lng": item.location.longitude,
            "color": hex_color,
            "riskLevel": item.risk_level.value,
            "date": item.created_at.date().isoformat(),
            "score": format_score(item.score),
        })
    return markers


def hotspot_zones(hotspots: Sequence[Hotspot], center: Tuple[float, float]) -> List[Dict[str, Any]]:
    zones = []
    for hotspot in hotspots:
        lat, lng = hotspot_position(hotspot, center)
        zones.append({
            **hotspot.to_dict(),
            "lat": lat,
            "lng": lng,
            "color": hotspot_color(hotspot.avg_score),
        })
    return zones


def build_overlays(history: Sequence[AnalysisResult], hotspots: Sequence[Hotspot]) -> Dict[str, Any]:
    """Everything the map shows, as plain data."""
    center = map_center(history)
    return {
        "center": {"lat": center[0], "lng": center[1]},
        "zoom": ZOOM_START,
        "markers": history_markers(history),
        "zones": hotspot_zones(hotspots, center),
        "summary": {
            "atRiskZones": sum(1 for h in hotspots if h.avg_score < HIGH_RISK_THRESHOLD),
            "samples": len(history),
            "safeZones": sum(1 for h in hotspots if h.avg_score >= SAFE_ZONE_THRESHOLD),
        },
    }


def _marker_popup(marker: Dict[str, Any]) -> str:
    return (
        f"<b>{marker['riskLevel']}</b><br>"
        f"Date: {marker['date']}<br>"
        f"Score: {marker['score']}"
    )


def _zone_popup(zone: Dict[str, Any]) -> str:
    return (
        f"<b>{zone['region']}</b><br>"
        f"Avg score: {zone['avgScore']}<br>"
        f"Dominant issue: {zone['dominantIssue']}"
    )


def render_map(history: Sequence[AnalysisResult], hotspots: Sequence[Hotspot]) -> folium.Map:
    """Draw a fresh folium map with both overlays."""
    overlays = build_overlays(history, hotspots)
    center = overlays["center"]

    m = folium.Map(location=[center["lat"], center["lng"]], zoom_start=overlays["zoom"],
                   tiles=TILES_URL, attr=TILES_ATTRIBUTION, control_scale=True)

    samples = folium.FeatureGroup(name="Local samples")
    for marker in overlays["markers"]:
        folium.CircleMarker(
            location=(marker["lat"], marker["lng"]),
            radius=MARKER_RADIUS,
            color=COLORS["outline"], weight=2, opacity=1,
            fill=True, fill_color=marker["color"], fill_opacity=0.8,
            popup=folium.Popup(_marker_popup(marker), max_width=250),
        ).add_to(samples)
    samples.add_to(m)

    zones = folium.FeatureGroup(name="Regional hotspots")
    for zone in overlays["zones"]:
        folium.Circle(
            location=(zone["lat"], zone["lng"]),
            radius=ZONE_RADIUS_M,
            color=zone["color"], fill=True, fill_color=zone["color"], fill_opacity=0.2,
            tooltip=zone["region"],
            popup=folium.Popup(_zone_popup(zone), max_width=250),
        ).add_to(zones)
    zones.add_to(m)

    legend = f"""
    <div style="position: fixed; bottom: 18px; left: 18px; z-index:9999; background: white;
                padding: 10px 12px; border: 1px solid #ccc; border-radius: 6px; font-size: 13px;">
      <b>Water quality</b><br>
      <span style="display:inline-block;width:12px;height:12px;background:{COLORS['high_risk']};"></span>
      High risk zone (avg score &lt; {HIGH_RISK_THRESHOLD})<br>
      <span style="display:inline-block;width:12px;height:12px;background:{COLORS['moderate']};"></span>
      Moderate zone<br>
      <span style="display:inline-block;width:12px;height:12px;background:{RISK_COLORS[RiskLevel.SAFE][1]};"></span>
      Safe sample
    </div>
    """
    m.get_root().html.add_child(folium.Element(legend))

    folium.LayerControl(collapsed=False).add_to(m)
    return m
