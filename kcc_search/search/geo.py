"""
Distance scoring and geographic scope filtering.

Distance never hard-excludes a result by itself; only an explicit "local"
scope filter drops far-away services.
"""

import logging
import math
from functools import cmp_to_key
from typing import Iterable, List, Optional

from ..models import Coordinates, SearchResult, Service, ServiceScope

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

# Score gap above which relevance beats proximity in resort_by_distance
RELEVANCE_BUCKET = 50.0

DISTANCE_TAGS_KM = (1, 5, 10, 25)

LOCAL_RADIUS_KM = 25.0

LOCAL_SCOPES = {ServiceScope.KINGSTON}
PROVINCIAL_SCOPES = {ServiceScope.ONTARIO, ServiceScope.CANADA}


def valid_coordinates(coords: Optional[Coordinates]) -> bool:
    """False for missing, NaN/inf or out-of-range coordinates"""
    if coords is None:
        return False
    lat, lng = coords.lat, coords.lng
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle (haversine) distance in kilometres"""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def service_distance(service: Service, location: Coordinates) -> Optional[float]:
    """Distance to a service, None when either side has unusable coordinates"""
    if not valid_coordinates(location) or not valid_coordinates(service.coordinates):
        return None
    return distance_km(location, service.coordinates)


def annotate_distance(results: List[SearchResult], location: Coordinates) -> List[SearchResult]:
    """Set distance_km and add the tightest "Within Nkm" reason tag"""
    for result in results:
        dist = service_distance(result.service, location)
        result.distance_km = dist
        if dist is None:
            continue
        for radius in DISTANCE_TAGS_KM:
            if dist <= radius:
                tag = f"Within {radius}km"
                if tag not in result.match_reasons:
                    result.match_reasons.append(tag)
                break
    return results


def _compare(a: SearchResult, b: SearchResult) -> int:
    # Significantly different relevance: respect relevance
    if abs(a.score - b.score) > RELEVANCE_BUCKET:
        return -1 if a.score > b.score else 1
    dist_a = a.distance_km if a.distance_km is not None else math.inf
    dist_b = b.distance_km if b.distance_km is not None else math.inf
    if dist_a == dist_b:
        return 0
    return -1 if dist_a < dist_b else 1


def resort_by_distance(results: List[SearchResult], location: Coordinates) -> List[SearchResult]:
    """
    Re-rank by proximity within relevance buckets.

    Results whose scores differ by more than RELEVANCE_BUCKET keep score
    order; otherwise the closer service wins. Services without coordinates
    sort after located ones of similar relevance.
    """
    annotate_distance(results, location)
    return sorted(results, key=cmp_to_key(_compare))


def apply_scope(
    services: Iterable[Service],
    scope: str,
    location: Optional[Coordinates] = None,
    radius_km: float = LOCAL_RADIUS_KM,
) -> List[Service]:
    """
    Segment services by geographic scope.

    Args:
        services: Candidate services
        scope: "all" | "local" | "provincial"
        location: User location; with scope="local", located services beyond
            radius_km are excluded (services without coordinates are kept)
        radius_km: Local radius

    Returns:
        Filtered services, in input order
    """
    services = list(services)
    if scope in (None, "", "all"):
        return services

    if scope == "local":
        kept = [s for s in services if s.scope in LOCAL_SCOPES]
        if location is not None and valid_coordinates(location):
            nearby = []
            for service in kept:
                dist = service_distance(service, location)
                if dist is None or dist <= radius_km:
                    nearby.append(service)
            kept = nearby
        return kept

    if scope == "provincial":
        return [s for s in services if s.scope in PROVINCIAL_SCOPES]

    logger.warning(f"Unknown scope filter '{scope}', ignoring")
    return services
