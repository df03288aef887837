# api/nearby.py
"""
Nearby search - collects donors, blood banks and medical institutions as
GeoEntities and ranks them by distance from a center point
"""
import math
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from algorithms.blood_compatibility import is_compatible, split_blood_group
from algorithms.haversine import EARTH_RADIUS_KM, GeoPoint, find_nearby
from algorithms.map_points import EntityKind
from bloodbanks.models import BloodBank, MedicalInstitution
from donorlink.errors import InvalidCoordinate, InvalidRequest
from donors.models import DonorProfile

SEARCHABLE_KINDS = (EntityKind.BLOOD_BANK, EntityKind.MEDICAL_INSTITUTION, EntityKind.DONOR)

# Same sphere as the haversine pass, so the band never cuts into the radius
KM_PER_DEGREE_LATITUDE = math.radians(EARTH_RADIUS_KM)


@dataclass(frozen=True)
class NearbyQuery:
    center: GeoPoint
    radius_km: float
    kinds: tuple = SEARCHABLE_KINDS
    blood_group: Optional[str] = None
    compatible_with: Optional[str] = None


def _float_param(params, name):
    raw = params.get(name)
    if raw in (None, ''):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidRequest(f'Invalid {name}', detail=f"{name} must be a number, got {raw!r}")
    if not math.isfinite(value):
        raise InvalidRequest(f'Invalid {name}', detail=f"{name} must be finite")
    return value


def _blood_group_param(params, name):
    raw = params.get(name)
    if not raw:
        return None
    value = raw.strip()
    # An unescaped '+' in a query string arrives as a trailing space
    if value and value[-1] not in '+-' and raw.endswith(' '):
        value += '+'
    if split_blood_group(value) is None:
        raise InvalidRequest(f'Invalid {name}', detail=f"{raw!r} is not a blood group like 'O-' or 'AB+'")
    return value.upper()


def parse_nearby_query(params) -> NearbyQuery:
    """Build a NearbyQuery from request query parameters."""
    latitude = _float_param(params, 'latitude')
    longitude = _float_param(params, 'longitude')
    if latitude is None or longitude is None:
        raise InvalidCoordinate('Missing coordinates', detail="latitude and longitude are required")
    center = GeoPoint(longitude, latitude)

    radius_km = _float_param(params, 'radiusKm')
    if radius_km is None:
        radius_km = settings.NEARBY_DEFAULT_RADIUS_KM
    if radius_km < 0 or radius_km > settings.NEARBY_MAX_RADIUS_KM:
        raise InvalidRequest(
            'Invalid radiusKm',
            detail=f"radiusKm must be between 0 and {settings.NEARBY_MAX_RADIUS_KM}",
        )

    kinds = SEARCHABLE_KINDS
    kind_filter = params.get('kindFilter')
    if kind_filter:
        try:
            kinds = tuple(dict.fromkeys(EntityKind(kind.strip()) for kind in kind_filter.split(',') if kind.strip()))
        except ValueError:
            raise InvalidRequest('Invalid kindFilter', detail=f"Expected a comma separated list of {[k.value for k in SEARCHABLE_KINDS]}")
        if not set(kinds) <= set(SEARCHABLE_KINDS):
            raise InvalidRequest('Invalid kindFilter', detail="Only donors, blood banks and medical institutions are searchable")

    return NearbyQuery(
        center=center,
        radius_km=radius_km,
        kinds=kinds,
        blood_group=_blood_group_param(params, 'bloodType'),
        compatible_with=_blood_group_param(params, 'compatibleWith'),
    )


def _latitude_band(queryset, query):
    """Cheap SQL prefilter; the haversine pass decides the rest."""
    delta = query.radius_km / KM_PER_DEGREE_LATITUDE
    return queryset.filter(
        latitude__isnull=False,
        longitude__isnull=False,
        latitude__gte=query.center.latitude - delta,
        latitude__lte=query.center.latitude + delta,
    )


def _donor_matches(donor, query):
    group = donor.blood_group
    if query.blood_group and group != query.blood_group:
        return False
    if query.compatible_with and not is_compatible(group, query.compatible_with):
        return False
    return True


def _blood_bank_matches(blood_bank, query):
    stocked = blood_bank.blood_types_available or []
    if query.blood_group and query.blood_group not in stocked:
        return False
    if query.compatible_with and not any(is_compatible(group, query.compatible_with) for group in stocked):
        return False
    return True


def collect_entities(query: NearbyQuery):
    entities = []
    for kind in query.kinds:
        if kind is EntityKind.BLOOD_BANK:
            records = _latitude_band(BloodBank.objects.filter(is_active=True), query)
            entities.extend(bank.to_geo_entity() for bank in records if _blood_bank_matches(bank, query))
        elif kind is EntityKind.MEDICAL_INSTITUTION:
            # Institutions have no blood stock to filter on
            if query.blood_group or query.compatible_with:
                continue
            records = _latitude_band(MedicalInstitution.objects.filter(is_active=True), query)
            entities.extend(institution.to_geo_entity() for institution in records)
        elif kind is EntityKind.DONOR:
            records = _latitude_band(DonorProfile.objects.all(), query)
            entities.extend(donor.to_geo_entity() for donor in records if _donor_matches(donor, query))
    return entities


def search_nearby(query: NearbyQuery):
    """GeoEntities within the radius, closest first, each carrying its distance."""
    return [
        entity.with_distance(distance)
        for entity, distance in find_nearby(collect_entities(query), query.center, query.radius_km)
    ]
