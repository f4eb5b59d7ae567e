"""Domain model of the journeys API: lines, stop points, routes and journeys."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class NoSuchElementError(LookupError):
    """Raised when an entity is looked up with an unknown identifier."""

    def __init__(self, message: str = "no such element") -> None:
        super().__init__(message)


def _back_reference_list():
    # Links that point back up the object graph are left out of repr and
    # equality so that the cyclic graph can be printed and compared safely.
    return field(default_factory=list, repr=False, compare=False)


@dataclass
class Line:
    """A public transport line, identified to users by its name."""

    name: str = ""
    description: str = ""


@dataclass
class Municipality:
    """A municipality that stop points belong to."""

    public_code: str = ""
    name: str = ""


@dataclass
class StopPoint:
    """A place where vehicles stop."""

    name: str = ""
    short_name: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    tariff_zone: str = ""
    municipality: Optional[Municipality] = None


@dataclass
class JourneyGtfsInfo:
    """GTFS identifiers of a journey."""

    trip_id: str = ""


@dataclass
class DayTypeException:
    """A date range on which a journey runs, or does not run, exceptionally."""

    from_date: str = ""
    to_date: str = ""
    runs: bool = False


@dataclass
class JourneyCall:
    """One stop of a journey with its scheduled times."""

    departure_time: str = ""
    arrival_time: str = ""
    stop_point: Optional[StopPoint] = None


@dataclass
class JourneyPattern:
    """An ordered sequence of stop points shared by one or more journeys."""

    id: str = ""
    name: str = ""
    stop_points: List[StopPoint] = field(default_factory=list)
    route: Optional[Route] = None
    journeys: List[Journey] = _back_reference_list()


@dataclass
class Route:
    """A geographic route, with the journey patterns and journeys using it."""

    id: str = ""
    line: Optional[Line] = None
    name: str = ""
    journey_patterns: List[JourneyPattern] = _back_reference_list()
    journeys: List[Journey] = _back_reference_list()
    geo_projection: str = ""


@dataclass
class Journey:
    """A single scheduled trip of a vehicle."""

    id: str = ""
    head_sign: str = ""
    direction: str = ""
    wheelchair_accessible: bool = False
    gtfs_info: Optional[JourneyGtfsInfo] = None
    day_types: List[str] = field(default_factory=list)
    day_type_exceptions: List[DayTypeException] = field(default_factory=list)
    calls: List[JourneyCall] = field(default_factory=list)
    line: Optional[Line] = None
    journey_pattern: Optional[JourneyPattern] = None
    valid_from: str = ""
    valid_to: str = ""
    route: Optional[Route] = None
    arrival_time: str = ""
    departure_time: str = ""
    activity_id: str = ""