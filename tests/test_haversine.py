import math

import pytest

from algorithms.haversine import (
    GeoPoint, distance_km, filter_within_radius, find_nearby, haversine_distance, sort_by_distance,
)
from algorithms.map_points import EntityKind, GeoEntity
from donorlink.errors import InvalidCoordinate, InvalidRequest

MEKELE = GeoPoint(39.45389, 13.5169)
ADDIS = GeoPoint(38.7578, 8.9806)


def entity(id, location):
    return GeoEntity(id=id, title=f"Entity {id}", kind=EntityKind.GENERIC, location=location)


def test_identity_is_zero():
    assert distance_km(MEKELE, MEKELE) == 0
    assert distance_km(GeoPoint(39.45389, 13.5169), GeoPoint(39.45389, 13.5169)) == 0


def test_one_degree_is_about_111_km():
    assert distance_km(GeoPoint(0, 0), GeoPoint(0, 1)) == pytest.approx(111.19, abs=0.5)
    assert distance_km(GeoPoint(0, 0), GeoPoint(1, 0)) == pytest.approx(111.19, abs=0.5)


@pytest.mark.parametrize('a, b', [
    (MEKELE, ADDIS),
    (GeoPoint(-179.9, -89.0), GeoPoint(179.9, 89.0)),
    (GeoPoint(0.1, 0.2), GeoPoint(-0.3, 0.4)),
])
def test_distance_is_symmetric(a, b):
    assert distance_km(a, b) == distance_km(b, a)


def test_mekele_to_addis():
    # ~ 510 km as the crow flies
    assert 480 < distance_km(MEKELE, ADDIS) < 540


def test_antipodes_do_not_blow_up():
    assert haversine_distance(0, 0, 0, 180) == pytest.approx(math.pi * 6371)


@pytest.mark.parametrize('longitude, latitude', [
    (181, 0), (-181, 0), (0, 91), (0, -90.5), (float('nan'), 0), (0, float('inf')), ('1', 2), (True, 0),
])
def test_invalid_points_are_rejected(longitude, latitude):
    with pytest.raises(InvalidCoordinate):
        GeoPoint(longitude, latitude)


def test_from_coordinates_is_longitude_first():
    point = GeoPoint.from_coordinates([39.45389, 13.5169])
    assert point.longitude == 39.45389
    assert point.latitude == 13.5169
    assert point.to_geojson() == {'type': 'Point', 'coordinates': [39.45389, 13.5169]}


def test_from_coordinates_rejects_bad_shape():
    with pytest.raises(InvalidCoordinate):
        GeoPoint.from_coordinates([1, 2, 3])


def test_filter_within_radius_matches_distance():
    entities = [
        entity(1, GeoPoint(39.46, 13.52)),
        entity(2, ADDIS),
        entity(3, None),
        entity(4, GeoPoint(39.50, 13.55)),
    ]
    radius = 10
    kept = filter_within_radius(entities, MEKELE, radius)

    assert [e.id for e in kept] == [1, 4]
    for e in entities:
        inside = e.location is not None and distance_km(MEKELE, e.location) <= radius
        assert (e in kept) == inside


def test_filter_radius_boundary_is_inclusive():
    target = entity(1, GeoPoint(0, 1))
    exact = distance_km(GeoPoint(0, 0), target.location)
    assert filter_within_radius([target], GeoPoint(0, 0), exact) == [target]


def test_negative_radius_is_rejected():
    with pytest.raises(InvalidRequest):
        filter_within_radius([], MEKELE, -1)
    with pytest.raises(InvalidRequest):
        find_nearby([], MEKELE, -0.5)


def test_sort_by_distance_is_stable_and_puts_unknown_last():
    near = GeoPoint(39.46, 13.52)
    entities = [
        entity('far', ADDIS),
        entity('unknown-1', None),
        entity('tie-a', near),
        entity('tie-b', near),
        entity('unknown-2', None),
        entity('tie-c', near),
    ]
    ordered = [e.id for e in sort_by_distance(entities, MEKELE)]
    assert ordered == ['tie-a', 'tie-b', 'tie-c', 'far', 'unknown-1', 'unknown-2']


def test_find_nearby_returns_sorted_pairs():
    entities = [entity(1, GeoPoint(39.50, 13.55)), entity(2, GeoPoint(39.46, 13.52)), entity(3, ADDIS)]
    nearby = find_nearby(entities, MEKELE, 20)

    assert [e.id for e, _ in nearby] == [2, 1]
    distances = [d for _, d in nearby]
    assert distances == sorted(distances)
    assert distances[0] == distance_km(MEKELE, entities[1].location)
