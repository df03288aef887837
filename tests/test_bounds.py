import pytest

from algorithms.bounds import BoundingBox, fit_bounds
from algorithms.haversine import GeoPoint
from algorithms.map_points import EntityKind, GeoEntity, convert_to_map_points


def points(*locations):
    entities = [GeoEntity(i, f"P{i}", EntityKind.GENERIC, location) for i, location in enumerate(locations)]
    return convert_to_map_points(entities)


def test_empty_input_has_no_bounds():
    assert fit_bounds([]) is None
    assert fit_bounds(points(None, None)) is None
    assert fit_bounds([], reference=GeoPoint(0, 0)) is None


def test_bounds_contain_every_point():
    located = points(GeoPoint(39.45, 13.51), GeoPoint(38.75, 8.98), GeoPoint(40.1, 11.2), None)
    box = fit_bounds(located)

    assert box == BoundingBox(west=38.75, south=8.98, east=40.1, north=13.51)
    for point in located:
        if point.location is not None:
            assert box.contains(point.location)


def test_reference_point_extends_the_box():
    box = fit_bounds(points(GeoPoint(39.45, 13.51)), reference=GeoPoint(39.0, 14.0))
    assert box.to_json() == [39.0, 13.51, 39.45, 14.0]
    assert box.center.longitude == pytest.approx(39.225)
    assert box.center.latitude == pytest.approx(13.755)


def test_single_point_is_a_degenerate_box():
    box = fit_bounds(points(GeoPoint(1, 2)))
    assert box.to_json() == [1, 2, 1, 2]
