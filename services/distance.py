import logging
import math
from dataclasses import dataclass

import requests

from core.config import settings
from services.http import http_session

logger = logging.getLogger(__name__)

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"
EARTH_RADIUS_KM = 6371
CITY_SPEED_KMH = 30
INTERCITY_MAX_KM = 500


@dataclass
class DistanceResult:
    distance_km: float
    duration_minutes: int
    source: str


def haversine_distance(origin_lat: float, origin_lng: float, dest_lat: float, dest_lng: float) -> DistanceResult:
    d_lat = math.radians(dest_lat - origin_lat)
    d_lng = math.radians(dest_lng - origin_lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin_lat)) * math.cos(math.radians(dest_lat)) * math.sin(d_lng / 2) ** 2
    )
    distance_km = EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return DistanceResult(
        distance_km=round(distance_km, 1),
        duration_minutes=math.ceil(distance_km / CITY_SPEED_KMH * 60),
        source="haversine",
    )


def calculate_distance(origin_lat: float, origin_lng: float, dest_lat: float, dest_lng: float) -> DistanceResult:
    """Road distance from Google Distance Matrix, straight-line estimate when unavailable."""
    if not settings.GOOGLE_MAPS_API_KEY:
        return haversine_distance(origin_lat, origin_lng, dest_lat, dest_lng)

    params = {
        "origins": f"{origin_lat},{origin_lng}",
        "destinations": f"{dest_lat},{dest_lng}",
        "units": "metric",
        "key": settings.GOOGLE_MAPS_API_KEY,
    }
    try:
        resp = http_session.get(DISTANCE_MATRIX_URL, params=params, timeout=settings.HTTP_TIMEOUT_SECONDS)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Distance Matrix request failed, using haversine: %s", exc)
        return haversine_distance(origin_lat, origin_lng, dest_lat, dest_lng)

    rows = data.get("rows") or []
    element = rows[0]["elements"][0] if rows and rows[0].get("elements") else None
    if data.get("status") != "OK" or not element or element.get("status") != "OK":
        logger.warning("Distance Matrix returned status %s, using haversine", data.get("status"))
        return haversine_distance(origin_lat, origin_lng, dest_lat, dest_lng)

    return DistanceResult(
        distance_km=round(element["distance"]["value"] / 1000, 1),
        duration_minutes=math.ceil(element["duration"]["value"] / 60),
        source="google",
    )


def is_serviceable(distance_km: float, max_delivery_radius: float, intercity_enabled: bool, same_city: bool) -> bool:
    if same_city and distance_km <= max_delivery_radius:
        return True
    if intercity_enabled and not same_city and distance_km <= INTERCITY_MAX_KM:
        return True
    return False
