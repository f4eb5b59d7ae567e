import json
from http import HTTPStatus

import pytest

from journeysapi.app import JourneysApp
from journeysapi.model import (
    Journey,
    JourneyCall,
    JourneyGtfsInfo,
    JourneyPattern,
    Line,
    Municipality,
    Route,
    StopPoint,
)
from journeysapi.service import JourneysDataService
from journeysapi.store import JourneysRepository


def _repository():
    repo = JourneysRepository()
    tampere = Municipality(public_code="837", name="Tampere")
    repo.municipalities.add("837", tampere)
    first = StopPoint(
        name="Näyttelijänkatu", short_name="3615", latitude=61.4445, longitude=23.87235,
        tariff_zone="B", municipality=tampere,
    )
    last = StopPoint(
        name="Lavastajanpolku", short_name="3607", latitude=61.44173, longitude=23.86961,
        tariff_zone="B", municipality=tampere,
    )
    repo.stop_points.add("3607", last)
    repo.stop_points.add("3615", first)
    line = Line(name="3A", description="Etelä-Hervanta - Lentävänniemi")
    repo.lines.add("3A", line)
    route = Route(id="1517136151028", line=line, geo_projection="6144444,2387262:17,-14")
    pattern = JourneyPattern(id="65f51d2f85284af2fad1305c0ce71033", stop_points=[first, last], route=route)
    journey = Journey(
        id="7024545685", head_sign="Lentävänniemi", direction="0",
        gtfs_info=JourneyGtfsInfo(trip_id="7024545685"), day_types=["monday"],
        calls=[JourneyCall("07:20:00", "07:20:00", first), JourneyCall("07:21:00", "07:21:00", last)],
        line=line, journey_pattern=pattern, valid_from="2023-01-01", valid_to="2100-12-31",
        route=route, arrival_time="07:21:00", departure_time="07:20:00",
        activity_id="3A_0720_3607_3615",
    )
    route.journeys.append(journey)
    route.journey_patterns.append(pattern)
    pattern.journeys.append(journey)
    repo.routes.add(route.id, route)
    repo.journey_patterns.add(pattern.id, pattern)
    repo.journeys.add(journey.id, journey.activity_id, journey)
    return repo


@pytest.fixture
def app():
    return JourneysApp(JourneysDataService(_repository()), "", "")


def _get(app, path, query=""):
    status, _, body = app.handle("GET", path, query)
    return int(status.split()[0]), json.loads(body)


def test_all_lines(app):
    code, payload = _get(app, "/v1/lines")
    assert code == HTTPStatus.OK
    assert payload["status"] == "success"
    assert payload["data"]["headers"]["paging"]["pageSize"] == len(payload["body"]) == 1
    assert payload["body"] == [
        {"url": "/lines/3A", "name": "3A", "description": "Etelä-Hervanta - Lentävänniemi"}
    ]


def test_lines_exclude_fields(app):
    _, payload = _get(app, "/v1/lines", "exclude-fields=name")
    assert payload["body"] == [{"url": "/lines/3A", "description": "Etelä-Hervanta - Lentävänniemi"}]


def test_unknown_line_gives_empty_body(app):
    _, payload = _get(app, "/v1/lines/foobar")
    assert payload["body"] == []
    assert payload["data"]["headers"]["paging"]["pageSize"] == 0


def test_stop_points_by_location(app):
    _, payload = _get(app, "/v1/stop-points", "location=61.4445,23.87235")
    assert [sp["shortName"] for sp in payload["body"]] == ["3615"]
    assert payload["body"][0]["location"] == "61.4445,23.87235"


def test_journey_by_activity_id(app):
    _, payload = _get(app, "/v1/journeys/3A_0720_3607_3615")
    (journey,) = payload["body"]
    assert journey["url"] == "/journeys/7024545685"
    assert journey["activityUrl"] == "/vehicle-activity/3A_0720_3607_3615"
    assert [c["stopPoint"]["shortName"] for c in journey["calls"]] == ["3615", "3607"]


def test_journey_pattern_and_route(app):
    _, patterns = _get(app, "/v1/journey-patterns/65f51d2f85284af2fad1305c0ce71033")
    assert patterns["body"][0]["name"] == "Näyttelijänkatu - Lavastajanpolku"
    assert patterns["body"][0]["destinationStop"] == "/stop-points/3607"
    _, routes = _get(app, "/v1/routes", "lineId=3A")
    assert routes["body"][0]["geographicCoordinateProjection"] == "6144444,2387262:17,-14"


def test_unknown_path_and_wrong_method(app):
    status, _, _ = app.handle("GET", "/v1/unknown", "")
    assert int(status.split()[0]) == HTTPStatus.NOT_FOUND
    status, _, body = app.handle("POST", "/v1/lines", "")
    assert int(status.split()[0]) == HTTPStatus.METHOD_NOT_ALLOWED
    assert body == b""


def test_conversion_failure_is_internal_error():
    repo = JourneysRepository()
    repo.stop_points.add("1", StopPoint(name="Lonely", short_name="1"))
    app = JourneysApp(JourneysDataService(repo), "", "")
    status, _, _ = app.handle("GET", "/v1/stop-points", "")
    assert int(status.split()[0]) == HTTPStatus.INTERNAL_SERVER_ERROR


def test_wsgi_call_matches_handle(app):
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status

    environ = {"REQUEST_METHOD": "GET", "PATH_INFO": "/v1/municipalities/837", "QUERY_STRING": ""}
    body = b"".join(app(environ, start_response))
    status, _, expected = app.handle("GET", "/v1/municipalities/837", "")
    assert captured["status"] == status
    assert body == expected
    assert json.loads(body)["body"][0]["name"] == "Tampere"