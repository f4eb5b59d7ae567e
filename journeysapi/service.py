"""Search and lookup services over a loaded journeys repository."""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Mapping, Optional

from journeysapi.model import (
    Journey,
    JourneyPattern,
    Line,
    Municipality,
    NoSuchElementError,
    Route,
    StopPoint,
)
from journeysapi.store import JourneysRepository
from journeysapi.utils import str_contains

Conditions = Optional[Mapping[str, str]]


def _lookup(index: Mapping[str, object], entity_id: str):
    try:
        return index[entity_id]
    except KeyError:
        raise NoSuchElementError() from None


@dataclass
class JourneyPatternsService:
    """Queries on journey patterns."""

    repository: JourneysRepository

    def search(self, params: Conditions) -> List[JourneyPattern]:
        """Return the journey patterns matching every given condition."""
        return [
            jp
            for jp in self.repository.journey_patterns.all
            if journey_pattern_matches_conditions(jp, params)
        ]

    def get_one_by_id(self, entity_id: str) -> JourneyPattern:
        """Return a journey pattern by id, or raise NoSuchElementError."""
        return _lookup(self.repository.journey_patterns.by_id, entity_id)


@dataclass
class JourneysService:
    """Queries on journeys."""

    repository: JourneysRepository

    def search(self, params: Conditions) -> List[Journey]:
        """Return the journeys valid today that match every given condition."""
        return [
            journey
            for journey in self.repository.journeys.all
            if journey_matches_conditions(journey, params)
        ]

    def get_one_by_id(self, entity_id: str) -> Journey:
        """Return a journey by trip id or activity id, or raise NoSuchElementError.

        An activity id match takes precedence over a trip id match.
        """
        journeys = self.repository.journeys
        journey = journeys.by_activity_id.get(entity_id) or journeys.by_id.get(entity_id)
        if journey is None:
            raise NoSuchElementError()
        return journey


@dataclass
class LinesService:
    """Queries on lines."""

    repository: JourneysRepository

    def search(self, params: Conditions) -> List[Line]:
        """Return the lines matching every given condition."""
        return [line for line in self.repository.lines.all if line_matches_conditions(line, params)]

    def get_one_by_id(self, entity_id: str) -> Line:
        """Return a line by id, or raise NoSuchElementError."""
        return _lookup(self.repository.lines.by_id, entity_id)


@dataclass
class MunicipalitiesService:
    """Queries on municipalities."""

    repository: JourneysRepository

    def search(self, params: Conditions) -> List[Municipality]:
        """Return the municipalities matching every given condition."""
        return [
            municipality
            for municipality in self.repository.municipalities.all
            if municipality_matches_conditions(municipality, params)
        ]

    def get_one_by_id(self, entity_id: str) -> Municipality:
        """Return a municipality by id, or raise NoSuchElementError."""
        return _lookup(self.repository.municipalities.by_id, entity_id)


@dataclass
class RoutesService:
    """Queries on routes."""

    repository: JourneysRepository

    def search(self, params: Conditions) -> List[Route]:
        """Return the routes matching every given condition."""
        return [route for route in self.repository.routes.all if route_matches_conditions(route, params)]

    def get_one_by_id(self, entity_id: str) -> Route:
        """Return a route by id, or raise NoSuchElementError."""
        return _lookup(self.repository.routes.by_id, entity_id)


@dataclass
class StopPointsService:
    """Queries on stop points."""

    repository: JourneysRepository

    def search(self, params: Conditions) -> List[StopPoint]:
        """Return the stop points matching every given condition."""
        return [
            stop_point
            for stop_point in self.repository.stop_points.all
            if stop_point_matches_conditions(stop_point, params)
        ]

    def get_one_by_id(self, entity_id: str) -> StopPoint:
        """Return a stop point by id, or raise NoSuchElementError."""
        return _lookup(self.repository.stop_points.by_id, entity_id)


class JourneysDataService:
    """All entity services, sharing one repository."""

    def __init__(self, repository: JourneysRepository) -> None:
        self.journey_patterns = JourneyPatternsService(repository)
        self.journeys = JourneysService(repository)
        self.lines = LinesService(repository)
        self.municipalities = MunicipalitiesService(repository)
        self.routes = RoutesService(repository)
        self.stop_points = StopPointsService(repository)


def journey_pattern_matches_conditions(journey_pattern: Optional[JourneyPattern], conditions: Conditions) -> bool:
    """Tell whether a journey pattern satisfies every condition."""
    if journey_pattern is None:
        return False
    stops = journey_pattern.stop_points
    for key, value in (conditions or {}).items():
        if key == "name":
            if not str_contains(journey_pattern.name, value):
                return False
        elif key == "lineId":
            route = journey_pattern.route
            if route is None or route.line is None or route.line.name != value:
                return False
        elif key == "firstStopPointId":
            if not stops or stops[0].short_name != value:
                return False
        elif key == "lastStopPointId":
            if not stops or stops[-1].short_name != value:
                return False
        elif key == "stopPointId":
            if not any(sp.short_name == value for sp in stops):
                return False
    return True


def journey_matches_conditions(journey: Optional[Journey], conditions: Conditions) -> bool:
    """Tell whether a journey is valid today and satisfies every condition."""
    today = datetime.date.today().isoformat()
    if journey is None or not (journey.valid_from <= today and journey.valid_to >= today):
        return False
    if conditions is None:
        return True

    calls = journey.calls
    for key, value in conditions.items():
        if key == "lineId":
            if journey.line is None or journey.line.name != value:
                return False
        elif key == "routeId":
            if journey.route is None or journey.route.id != value:
                return False
        elif key == "journeyPatternId":
            if journey.journey_pattern is None or journey.journey_pattern.id != value:
                return False
        elif key == "dayTypes":
            wanted = set(value.split(","))
            if not any(day_type in wanted for day_type in journey.day_types):
                return False
        elif key == "departureTime":
            if journey.departure_time != value:
                return False
        elif key == "arrivalTime":
            if journey.arrival_time != value:
                return False
        elif key == "firstStopPointId":
            if not calls or calls[0].stop_point is None or calls[0].stop_point.short_name != value:
                return False
        elif key == "lastStopPointId":
            if not calls or calls[-1].stop_point is None or calls[-1].stop_point.short_name != value:
                return False
        elif key == "stopPointId":
            if not any(c.stop_point is not None and c.stop_point.short_name == value for c in calls):
                return False
        elif key == "gtfsTripId":
            if journey.gtfs_info is None or journey.gtfs_info.trip_id != value:
                return False
    return True


def line_matches_conditions(line: Optional[Line], conditions: Conditions) -> bool:
    """Tell whether a line satisfies every condition."""
    if line is None:
        return False
    for key, value in (conditions or {}).items():
        if key == "name":
            if line.name != value:
                return False
        elif key == "description":
            if not str_contains(line.description, value):
                return False
    return True


def municipality_matches_conditions(municipality: Optional[Municipality], conditions: Conditions) -> bool:
    """Tell whether a municipality satisfies every condition."""
    if municipality is None:
        return False
    for key, value in (conditions or {}).items():
        if key == "name":
            if not str_contains(municipality.name, value):
                return False
        elif key == "shortName":
            if not str_contains(municipality.public_code, value):
                return False
    return True


def route_matches_conditions(route: Optional[Route], conditions: Conditions) -> bool:
    """Tell whether a route satisfies every condition."""
    if route is None:
        return False
    for key, value in (conditions or {}).items():
        if key == "name":
            if not str_contains(route.name, value):
                return False
        elif key == "lineId":
            if route.line is None or route.line.name != value:
                return False
    return True


def stop_point_matches_conditions(stop_point: Optional[StopPoint], conditions: Conditions) -> bool:
    """Tell whether a stop point satisfies the conditions.

    A location condition decides the result on its own when it is reached.
    """
    if stop_point is None:
        return False
    municipality = stop_point.municipality
    for key, value in (conditions or {}).items():
        if key == "name":
            if not str_contains(stop_point.name, value):
                return False
        elif key == "shortName":
            if not str_contains(stop_point.short_name, value):
                return False
        elif key == "tariffZone":
            if not str_contains(stop_point.tariff_zone, value):
                return False
        elif key == "municipalityName":
            if municipality is None or not str_contains(municipality.name, value):
                return False
        elif key == "municipalityShortName":
            if municipality is None or not str_contains(municipality.public_code, value):
                return False
        elif key == "location":
            return stop_point_location_matches(stop_point, value)
    return True


def _parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid number: {text!r}")
    return float(text)


def _parse_coordinate_pair(text: str) -> tuple:
    parts = text.split(",")
    if len(parts) != 2:
        raise ValueError(f"invalid coordinate pair: {text!r}")
    return _parse_float(parts[0]), _parse_float(parts[1])


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = repr(float(value))
    if "e" in text:
        exponent = int(text.split("e")[1])
        if 16 <= exponent < 21:
            return format(Decimal(text), "f")
        return text
    if text.endswith(".0"):
        return text[:-2]
    return text


def stop_point_location_matches(stop_point: StopPoint, location_expression: str) -> bool:
    """Match a stop point against "lat,lon" or a "lat,lon:lat,lon" bounding box."""
    parts = location_expression.split(":")
    if len(parts) == 2:
        try:
            upper_left_lat, upper_left_lon = _parse_coordinate_pair(parts[0])
            lower_right_lat, lower_right_lon = _parse_coordinate_pair(parts[1])
        except ValueError:
            return False
        return (
            upper_left_lat <= stop_point.latitude <= lower_right_lat
            and upper_left_lon <= stop_point.longitude <= lower_right_lon
        )
    location = f"{_format_float(stop_point.latitude)},{_format_float(stop_point.longitude)}"
    return location == location_expression