"""
Haversine Algorithm - great-circle distance between two geographical points
Used to find donors, blood banks and institutions nearest to a search center
"""

import math
from dataclasses import dataclass

from donorlink.errors import InvalidCoordinate, InvalidRequest

# Mean radius of the earth in kilometers
EARTH_RADIUS_KM = 6371


@dataclass(frozen=True)
class GeoPoint:
    """A longitude/latitude pair in decimal degrees (GeoJSON order)."""

    longitude: float
    latitude: float

    def __post_init__(self):
        validate_coordinate(self.longitude, self.latitude)

    @classmethod
    def from_coordinates(cls, coordinates):
        """Build a point from a ``[longitude, latitude]`` pair."""
        try:
            longitude, latitude = coordinates
        except (TypeError, ValueError):
            raise InvalidCoordinate(detail=f"Expected [longitude, latitude], got {coordinates!r}")
        return cls(longitude, latitude)

    def to_coordinates(self):
        return [self.longitude, self.latitude]

    def to_geojson(self):
        return {'type': 'Point', 'coordinates': self.to_coordinates()}


def validate_coordinate(longitude, latitude):
    """Raise InvalidCoordinate unless both values are finite and in range."""
    for name, value, limit in (('longitude', longitude, 180), ('latitude', latitude, 90)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidCoordinate(detail=f"{name} must be a number, got {value!r}")
        if not math.isfinite(value) or not -limit <= value <= limit:
            raise InvalidCoordinate(detail=f"{name} {value} outside [-{limit}, {limit}]")


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate straight-line distance between two points.
    Note: This is "as the crow flies" distance, not road distance.

    Args:
        lat1, lon1: Latitude and longitude of point 1
        lat2, lon2: Latitude and longitude of point 2

    Returns:
        Distance in kilometers
    """
    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return c * EARTH_RADIUS_KM


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in kilometers; symmetric and exactly 0 for equal points."""
    if a == b:
        return 0.0
    # Order the pair so that distance_km(a, b) and distance_km(b, a) run the same arithmetic
    first, second = sorted((a, b), key=lambda p: (p.longitude, p.latitude))
    return haversine_distance(first.latitude, first.longitude, second.latitude, second.longitude)


def _check_radius(radius_km):
    if radius_km is None or radius_km < 0:
        raise InvalidRequest('Invalid radius', detail=f"radius must be a non-negative number of km, got {radius_km!r}")


def filter_within_radius(entities, center: GeoPoint, radius_km: float):
    """
    Keep the entities whose location lies within radius_km of center.

    Entities without a known location are dropped. Input order is preserved.
    """
    _check_radius(radius_km)
    return [
        entity for entity in entities
        if entity.location is not None and distance_km(center, entity.location) <= radius_km
    ]


def sort_by_distance(entities, center: GeoPoint):
    """
    Stable sort ascending by distance from center.

    Entities at equal distance keep their relative order; entities without a
    location are placed last, also in their original order.
    """
    def key(entity):
        if entity.location is None:
            return (1, 0.0)
        return (0, distance_km(center, entity.location))

    return sorted(entities, key=key)


def find_nearby(entities, center: GeoPoint, max_distance: float):
    """
    Find all entities within a specified distance from center

    Returns:
        List of tuples: (entity, distance) sorted by distance (closest first)
    """
    _check_radius(max_distance)
    nearby = []

    for entity in entities:
        if entity.location is None:
            continue
        distance = distance_km(center, entity.location)
        if distance <= max_distance:
            nearby.append((entity, distance))

    # list.sort is stable, ties keep input order
    nearby.sort(key=lambda x: x[1])

    return nearby
