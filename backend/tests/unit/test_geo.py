from dataclasses import dataclass
from typing import Optional

import pytest

from snapshoot.domain.errors import ValidationFailed
from snapshoot.domain.proximity.geo import GeoPoint, NearQuery, haversine


@dataclass
class Place:
    id: str
    location: Optional[GeoPoint]
    rank: int = 0


def _apply(query, places):
    return query.apply(places, ident=lambda p: p.id, location=lambda p: p.location)


def test_haversine_known_distance():
    paris = GeoPoint(2.3522, 48.8566)
    london = GeoPoint(-0.1276, 51.5072)
    assert haversine(paris, london) == pytest.approx(343_500, rel=0.01)


def test_haversine_zero_for_same_point():
    point = GeoPoint(10.0, 10.0)
    assert haversine(point, point) == pytest.approx(0.0)


@pytest.mark.parametrize("lon,lat", [(181.0, 0.0), (-180.5, 0.0), (0.0, 91.0), (0.0, -90.01)])
def test_geopoint_rejects_out_of_range(lon, lat):
    with pytest.raises(ValidationFailed):
        GeoPoint(lon, lat)


def test_geojson_requires_point_with_two_coordinates():
    assert GeoPoint.from_geojson({"type": "Point", "coordinates": [1.5, 2.5]}) == GeoPoint(1.5, 2.5)
    with pytest.raises(ValidationFailed):
        GeoPoint.from_geojson({"type": "LineString", "coordinates": [1.5, 2.5]})
    with pytest.raises(ValidationFailed):
        GeoPoint.from_geojson({"type": "Point", "coordinates": [1.5]})


def test_near_query_sorts_by_distance_and_filters_radius():
    center = GeoPoint(0.0, 0.0)
    places = [
        Place("far", GeoPoint(0.0, 0.03)),
        Place("near", GeoPoint(0.0, 0.001)),
        Place("mid", GeoPoint(0.0, 0.01)),
        Place("outside", GeoPoint(0.0, 1.0)),
        Place("nowhere", None),
    ]
    hits = _apply(NearQuery(center=center, max_distance_m=5000), places)
    assert [place.id for place, _ in hits] == ["near", "mid", "far"]
    assert hits[0][1] < hits[1][1] < hits[2][1]


def test_near_query_excludes_viewer_and_applies_predicate():
    center = GeoPoint(0.0, 0.0)
    places = [Place("me", center), Place("odd", GeoPoint(0.0, 0.001), rank=1), Place("even", GeoPoint(0.0, 0.002), rank=2)]
    query = NearQuery(center=center, max_distance_m=5000, exclude_id="me", where=lambda p: p.rank % 2 == 0)
    assert [place.id for place, _ in _apply(query, places)] == ["even"]


def test_near_query_tie_break_and_limit():
    center = GeoPoint(0.0, 0.0)
    spot = GeoPoint(0.0, 0.001)
    places = [Place("a", spot, rank=1), Place("b", spot, rank=3), Place("c", spot, rank=2)]
    query = NearQuery(center=center, max_distance_m=5000, limit=2, tie_break=lambda p: -p.rank)
    assert [place.id for place, _ in _apply(query, places)] == ["b", "c"]
