"""
Bounds calculator - smallest lon/lat box around a set of map points

The box is exact; padding for display is left to whoever draws the map.
"""

from dataclasses import dataclass
from typing import Optional

from .haversine import GeoPoint


@dataclass(frozen=True)
class BoundingBox:
    west: float
    south: float
    east: float
    north: float

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.west <= point.longitude <= self.east
            and self.south <= point.latitude <= self.north
        )

    @property
    def center(self) -> GeoPoint:
        return GeoPoint((self.west + self.east) / 2, (self.south + self.north) / 2)

    def to_json(self):
        # GeoJSON bbox order
        return [self.west, self.south, self.east, self.north]


def fit_bounds(points, reference: Optional[GeoPoint] = None) -> Optional[BoundingBox]:
    """
    Accumulate the minimal box covering every located point plus the optional
    reference point. Returns None when no point has a location.
    """
    locations = [point.location for point in points if point.location is not None]
    if not locations:
        return None

    if reference is not None:
        locations.append(reference)

    longitudes = [location.longitude for location in locations]
    latitudes = [location.latitude for location in locations]

    return BoundingBox(
        west=min(longitudes),
        south=min(latitudes),
        east=max(longitudes),
        north=max(latitudes),
    )
