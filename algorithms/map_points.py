"""
Map point adapter - turns geo-tagged records of any kind into uniform map points

Donors, blood banks and medical institutions each become a GeoEntity (see the
``to_geo_entity`` methods on the models, or geo_entity_from_json for API
records). to_map_point then picks the display color and description from
kind-specific rules.
"""

import html
from collections import defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

from .haversine import GeoPoint


class EntityKind(str, Enum):
    DONOR = 'donor'
    BLOOD_BANK = 'blood-bank'
    MEDICAL_INSTITUTION = 'medical-institution'
    GENERIC = 'generic'


class DonorAvailability(str, Enum):
    AVAILABLE = 'available'
    ELIGIBLE = 'eligible'
    UNAVAILABLE = 'unavailable'


# Marker colors
KIND_COLORS = {
    EntityKind.BLOOD_BANK: '#e53e3e',           # Red
    EntityKind.DONOR: '#38a169',                # Green
    EntityKind.MEDICAL_INSTITUTION: '#3182ce',  # Blue
    EntityKind.GENERIC: '#d69e2e',              # Orange
}

AVAILABILITY_COLORS = {
    DonorAvailability.AVAILABLE: '#38a169',     # Green
    DonorAvailability.ELIGIBLE: '#d69e2e',      # Orange
    DonorAvailability.UNAVAILABLE: '#718096',   # Gray
}

EMERGENCY_BLOOD_BANK_COLOR = '#9b2c2c'
EMERGENCY_INSTITUTION_COLOR = '#e53e3e'


@dataclass(frozen=True)
class GeoEntity:
    id: Any
    title: str
    kind: EntityKind
    location: Optional[GeoPoint]
    payload: Mapping = field(default_factory=dict)
    distance_km: Optional[float] = None

    def with_distance(self, distance):
        return replace(self, distance_km=distance)

    def to_json(self):
        return {
            'id': self.id,
            'title': self.title,
            'kind': self.kind.value,
            'location': self.location.to_geojson() if self.location else None,
            'distanceKm': round(self.distance_km, 3) if self.distance_km is not None else None,
            'data': dict(self.payload),
        }


@dataclass(frozen=True)
class MapPoint:
    id: Any
    title: str
    kind: EntityKind
    location: Optional[GeoPoint]
    description: str
    color: str
    popup: Optional[str] = None
    payload: Mapping = field(default_factory=dict)

    @property
    def has_location(self):
        return self.location is not None

    def to_json(self):
        return {
            'id': self.id,
            'title': self.title,
            'kind': self.kind.value,
            'location': self.location.to_geojson() if self.location else None,
            'description': self.description,
            'color': self.color,
            'popup': self.popup,
        }


def classify_donor(is_eligible, receive_donation_alerts) -> DonorAvailability:
    """Three-way donor availability: the one rule every donor marker goes through."""
    if is_eligible and receive_donation_alerts:
        return DonorAvailability.AVAILABLE
    if is_eligible:
        return DonorAvailability.ELIGIBLE
    return DonorAvailability.UNAVAILABLE


def format_distance(km: float) -> str:
    """850 m below one kilometer, 1.2 km at or above."""
    meters = round(km * 1000)
    if meters < 1000:
        return f"{meters} m"
    return f"{km:.1f} km"


def blood_group_label(blood_type, rh_factor):
    if blood_type and rh_factor:
        return f"{blood_type}{rh_factor}"
    return 'Unknown blood type'


def _donor_style(payload):
    availability = classify_donor(payload.get('isEligible'), payload.get('receiveDonationAlerts'))
    description = f"Blood Type: {blood_group_label(payload.get('bloodType'), payload.get('RhFactor'))}"
    if availability is DonorAvailability.AVAILABLE:
        description += ' • Available'
    return description, AVAILABILITY_COLORS[availability]


def _blood_bank_style(payload):
    color = EMERGENCY_BLOOD_BANK_COLOR if payload.get('isEmergency') else KIND_COLORS[EntityKind.BLOOD_BANK]
    return payload.get('address') or 'Blood donation center', color


def _institution_style(payload):
    color = EMERGENCY_INSTITUTION_COLOR if payload.get('hasEmergency') else KIND_COLORS[EntityKind.MEDICAL_INSTITUTION]
    return payload.get('address') or 'Medical facility', color


def _generic_style(payload):
    return payload.get('description') or '', KIND_COLORS[EntityKind.GENERIC]


STYLE_RULES = {
    EntityKind.DONOR: _donor_style,
    EntityKind.BLOOD_BANK: _blood_bank_style,
    EntityKind.MEDICAL_INSTITUTION: _institution_style,
    EntityKind.GENERIC: _generic_style,
}


def render_popup(title, description):
    return f"<strong>{html.escape(title)}</strong><br>{html.escape(description)}"


def to_map_point(entity: GeoEntity, with_popup=False) -> MapPoint:
    description, color = STYLE_RULES[entity.kind](entity.payload)
    if entity.distance_km is not None:
        description = f"{description} • {format_distance(entity.distance_km)} away"

    return MapPoint(
        id=entity.id,
        title=entity.title,
        kind=entity.kind,
        location=entity.location,
        description=description,
        color=color,
        popup=render_popup(entity.title, description) if with_popup else None,
        payload=entity.payload,
    )


def convert_to_map_points(entities, with_popup=False):
    return [to_map_point(entity, with_popup=with_popup) for entity in entities]


def group_points_by_kind(points):
    groups = defaultdict(list)
    for point in points:
        groups[point.kind].append(point)
    return dict(groups)


def geo_entity_from_json(record) -> GeoEntity:
    """
    Parse a GeoEntity as served by the nearby-search API.

    A missing ``location`` yields ``location=None``; malformed or out-of-range
    coordinates raise InvalidCoordinate.
    """
    location = None
    geometry = record.get('location')
    if geometry and geometry.get('coordinates') is not None:
        location = GeoPoint.from_coordinates(geometry['coordinates'])

    try:
        kind = EntityKind(record.get('kind') or EntityKind.GENERIC)
    except ValueError:
        kind = EntityKind.GENERIC

    return GeoEntity(
        id=record.get('id'),
        title=record.get('title') or f"Location {record.get('id')}",
        kind=kind,
        location=location,
        payload=record.get('data') or {},
        distance_km=record.get('distanceKm'),
    )

