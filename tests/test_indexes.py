import pytest

from journeysapi.gtfs import CsvRecord
from journeysapi.indexes import (
    build_lines,
    build_municipalities,
    build_routes,
    build_stop_points,
    create_coordinate_projection,
)
from journeysapi.model import Municipality
from journeysapi.store import EntityIndex


def _rec(line=1, **fields):
    return CsvRecord(fields, line)


def _route(route_id, short, long, line=1):
    return _rec(line, route_id=route_id, route_short_name=short, route_long_name=long)


def test_build_lines_sorted_by_name_and_keyed_by_trimmed_id():
    index = build_lines(
        [
            _route(" 3A ", "3A", "Etelä-Hervanta - Lentävänniemi"),
            _route("1", " 1 ", "Vatiala - Pirkkala"),
            _route("-1", "-1", "Foobar"),
        ]
    )
    assert [line.name for line in index.all] == ["-1", "1", "3A"]
    assert index.by_id["3A"].description == "Etelä-Hervanta - Lentävänniemi"
    assert index.by_id["1"].name == "1"


def test_build_lines_skips_records_without_id_and_none_entries():
    index = build_lines([None, _rec(2, route_short_name="X"), _route("1", "1", "A")])
    assert len(index.all) == 1
    assert list(index.by_id) == ["1"]


def test_build_lines_missing_names_become_empty():
    index = build_lines([_rec(3, route_id="7")])
    assert index.by_id["7"].name == ""
    assert index.by_id["7"].description == ""


def test_build_municipalities_sorted_by_code():
    rows = [
        _rec(2, id="837", name="Tampere"),
        _rec(3, id="211", name="Kangasala"),
        _rec(4, id="604", name="Pirkkala"),
    ]
    index = build_municipalities(rows)
    assert [m.public_code for m in index.all] == ["211", "604", "837"]
    assert index.by_id["837"].name == "Tampere"


def test_build_municipalities_empty():
    index = build_municipalities([])
    assert index.all == []
    assert index.by_id == {}


def test_projection_of_nothing_is_empty():
    assert create_coordinate_projection([]) == ""
    assert create_coordinate_projection(None) == ""


def test_projection_pinned_value():
    assert create_coordinate_projection([[0.5, 1.25], [0.25, 1.5]]) == "50000,125000:25000,-25000"


def test_projection_has_one_segment_per_point():
    coords = [[61.1, 23.1], [61.2, 23.2], [61.3, 23.3], [61.4, 23.4]]
    projection = create_coordinate_projection(coords)
    assert len(projection.split(":")) == len(coords)
    first_lat, first_lon = projection.split(":")[0].split(",")
    assert int(first_lat) == int(61.1 * 100000)
    assert int(first_lon) == int(23.1 * 100000)


def _shape(shape_id, lat, lon, line=1):
    return _rec(line, shape_id=shape_id, shape_pt_lat=lat, shape_pt_lon=lon)


def test_build_routes_groups_points_by_shape():
    index = build_routes(
        [
            _shape("b", "0.5", "1.25"),
            _shape("a", "0.25", "1.5"),
            _shape("b", "0.25", "1.5"),
            None,
            _rec(5, shape_pt_lat="1", shape_pt_lon="1"),
        ]
    )
    assert [route.id for route in index.all] == ["a", "b"]
    assert index.by_id["b"].geo_projection == create_coordinate_projection([[0.5, 1.25], [0.25, 1.5]])
    assert index.by_id["a"].geo_projection == create_coordinate_projection([[0.25, 1.5]])
    assert index.by_id["a"].line is None


def test_build_routes_unparseable_coordinate_is_zero():
    index = build_routes([_shape("x", "foo", "1.5"), _rec(2, shape_id="x")])
    assert index.by_id["x"].geo_projection == create_coordinate_projection([[0.0, 1.5], [0.0, 0.0]])


def _municipalities():
    index = EntityIndex()
    index.add("211", Municipality(public_code="211", name="Kangasala"))
    return index


def _stop(stop_id, code, **extra):
    fields = dict(
        stop_id=stop_id,
        stop_code=code,
        stop_name=" Vatiala ",
        stop_lat="61.475614",
        stop_lon="23.977564",
        zone_id="B",
    )
    fields.update(extra)
    return CsvRecord(fields, 2)


def test_build_stop_points_rounds_and_links_municipality():
    index = build_stop_points([_stop("4600", "4600", municipality_id="211")], _municipalities())
    stop_point = index.by_id["4600"]
    assert stop_point.latitude == pytest.approx(61.47561)
    assert stop_point.longitude == pytest.approx(23.97756)
    assert stop_point.name == "Vatiala"
    assert stop_point.tariff_zone == "B"
    assert stop_point.municipality.name == "Kangasala"


def test_build_stop_points_skips_unknown_municipality():
    index = build_stop_points([_stop("1", "1", municipality_id="999")], _municipalities())
    assert index.all == []
    assert index.by_id == {}


def test_build_stop_points_without_municipality_and_sorted():
    index = build_stop_points([_stop("b", "8171"), _stop("a", "3607")], _municipalities())
    assert [sp.short_name for sp in index.all] == ["3607", "8171"]
    assert index.by_id["a"].municipality is None


def test_build_stop_points_bad_coordinates_become_zero():
    index = build_stop_points([_stop("c", "1", stop_lat="x", stop_lon="1_0")], _municipalities())
    assert index.by_id["c"].latitude == 0.0
    assert index.by_id["c"].longitude == 0.0