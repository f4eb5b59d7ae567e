"""Converting journeys, journey patterns and routes to their API form."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from journeysapi.convert_basic import convert_stop_point
from journeysapi.model import Journey, JourneyPattern, Route
from journeysapi.responses import (
    JOURNEY_PATTERN_PREFIX,
    JOURNEYS_PREFIX,
    LINE_PREFIX,
    ROUTE_PREFIX,
    STOP_POINT_PREFIX,
)

VEHICLE_ACTIVITY_PREFIX = "/vehicle-activity"


def _or_none(items: List[Any]) -> Optional[List[Any]]:
    """An empty collection is sent as null, as the API has always done."""
    return items or None


def _pattern_id(journey: Journey) -> str:
    if journey.journey_pattern is None:
        raise ValueError(f"journey {journey.id!r} has no journey pattern")
    return journey.journey_pattern.id


def _pattern_name(journey_pattern: JourneyPattern) -> str:
    stops = journey_pattern.stop_points
    if not stops:
        return ""
    return f"{stops[0].name} - {stops[-1].name}"


def make_day_type_exceptions(journey: Journey) -> List[Dict[str, str]]:
    """Return the API form of a journey's day type exceptions, runs as "yes" or "no"."""
    return [
        {
            "from": exception.from_date,
            "to": exception.to_date,
            "runs": "yes" if exception.runs else "no",
        }
        for exception in journey.day_type_exceptions
    ]


def convert_journey(journey: Journey, base_url: str, vehicle_activity_base_url: str) -> Dict[str, Any]:
    """Return the API form of a journey.

    Raises ValueError if a call has no stop point or a stop point has no
    municipality.
    """
    calls = []
    for call in journey.calls:
        if call.stop_point is None:
            raise ValueError(f"journey {journey.id!r} has a call without a stop point")
        calls.append(
            {
                "departureTime": call.departure_time,
                "arrivalTime": call.arrival_time,
                "stopPoint": convert_stop_point(call.stop_point, base_url),
            }
        )

    line_id = journey.line.name if journey.line is not None else ""
    route_id = journey.route.id if journey.route is not None else ""
    pattern_id = journey.journey_pattern.id if journey.journey_pattern is not None else ""
    trip_id = journey.gtfs_info.trip_id if journey.gtfs_info is not None else ""

    return {
        "url": f"{base_url}{JOURNEYS_PREFIX}/{journey.id}",
        "activityUrl": f"{vehicle_activity_base_url}{VEHICLE_ACTIVITY_PREFIX}/{journey.activity_id}",
        "lineUrl": f"{base_url}{LINE_PREFIX}/{line_id}",
        "routeUrl": f"{base_url}{ROUTE_PREFIX}/{route_id}",
        "journeyPatternUrl": f"{base_url}{JOURNEY_PATTERN_PREFIX}/{pattern_id}",
        "departureTime": journey.departure_time,
        "arrivalTime": journey.arrival_time,
        "headSign": journey.head_sign,
        "directionId": journey.direction,
        "wheelchairAccessible": journey.wheelchair_accessible,
        "gtfs": {"tripId": trip_id},
        "dayTypes": list(journey.day_types),
        "dayTypeExceptions": make_day_type_exceptions(journey),
        "calls": calls,
    }


def convert_journey_pattern(journey_pattern: JourneyPattern, base_url: str) -> Dict[str, Any]:
    """Return the API form of a journey pattern.

    Raises ValueError if the pattern has no route, its route no line, or it
    has no stop points.
    """
    route = journey_pattern.route
    if route is None:
        raise ValueError(f"journey pattern {journey_pattern.id!r} has no route")
    if route.line is None:
        raise ValueError(f"route {route.id!r} has no line")
    stops = journey_pattern.stop_points
    if not stops:
        raise ValueError(f"journey pattern {journey_pattern.id!r} has no stop points")

    direction = route.journeys[0].direction if route.journeys else ""

    journeys = [
        {
            "url": f"{base_url}{JOURNEYS_PREFIX}/{journey.id}",
            "journeyPatternUrl": f"{base_url}{JOURNEY_PATTERN_PREFIX}/{_pattern_id(journey)}",
            "departureTime": journey.departure_time,
            "arrivalTime": journey.arrival_time,
            "headSign": journey.head_sign,
            "dayTypes": list(journey.day_types),
            "dayTypeExceptions": make_day_type_exceptions(journey),
        }
        for journey in journey_pattern.journeys
    ]

    return {
        "url": f"{base_url}{JOURNEY_PATTERN_PREFIX}/{journey_pattern.id}",
        "routeUrl": f"{base_url}{ROUTE_PREFIX}/{route.id}",
        "lineUrl": f"{base_url}{LINE_PREFIX}/{route.line.name}",
        "originStop": f"{base_url}{STOP_POINT_PREFIX}/{stops[0].short_name}",
        "destinationStop": f"{base_url}{STOP_POINT_PREFIX}/{stops[-1].short_name}",
        "name": _pattern_name(journey_pattern),
        "stopPoints": [convert_stop_point(stop, base_url) for stop in stops],
        "journeys": _or_none(journeys),
        "direction": direction,
    }


def convert_route(route: Route, base_url: str) -> Dict[str, Any]:
    """Return the API form of a route.

    The route is named after the first and last stops of its first journey
    pattern, and every listed journey pattern carries that same name.
    Raises ValueError if the route has no line.
    """
    if route.line is None:
        raise ValueError(f"route {route.id!r} has no line")

    name = _pattern_name(route.journey_patterns[0]) if route.journey_patterns else ""

    journeys = [
        {
            "url": f"{base_url}{JOURNEYS_PREFIX}/{journey.id}",
            "journeyPatternUrl": f"{base_url}{JOURNEY_PATTERN_PREFIX}/{_pattern_id(journey)}",
            "departureTime": journey.departure_time,
            "arrivalTime": journey.arrival_time,
            "dayTypes": list(journey.day_types),
            "dayTypeExceptions": make_day_type_exceptions(journey),
        }
        for journey in route.journeys
    ]

    patterns = []
    for pattern in route.journey_patterns:
        origin = destination = ""
        if pattern.stop_points:
            origin = f"{base_url}{STOP_POINT_PREFIX}/{pattern.stop_points[0].short_name}"
            destination = f"{base_url}{STOP_POINT_PREFIX}/{pattern.stop_points[-1].short_name}"
        patterns.append(
            {
                "url": f"{base_url}{JOURNEY_PATTERN_PREFIX}/{pattern.id}",
                "originStop": origin,
                "destinationStop": destination,
                "name": name,
            }
        )

    return {
        "geographicCoordinateProjection": route.geo_projection,
        "url": f"{base_url}{ROUTE_PREFIX}/{route.id}",
        "name": name,
        "lineUrl": f"{base_url}{LINE_PREFIX}/{route.line.name}",
        "journeyPatterns": _or_none(patterns),
        "journeys": _or_none(journeys),
    }