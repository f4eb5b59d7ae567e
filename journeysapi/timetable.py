"""Building journeys and journey patterns from GTFS trips, stop times and calendars."""

from __future__ import annotations

import datetime
import hashlib
import logging
import re
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from journeysapi.gtfs import CsvRecord
from journeysapi.model import (
    DayTypeException,
    Journey,
    JourneyCall,
    JourneyGtfsInfo,
    JourneyPattern,
    Line,
    Route,
    StopPoint,
)
from journeysapi.store import EntityIndex, JourneyIndex

logger = logging.getLogger(__name__)

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_CALENDAR_COLUMNS = ("service_id",) + _WEEKDAYS + ("start_date", "end_date")
_INTEGER = re.compile(r"^[+-]?\d+$")
_GTFS_DATE = re.compile(r"^\d{8}$")


@dataclass
class CalendarEntry:
    """One service of calendar.txt: its validity period and the weekdays it runs."""

    service_id: str
    start_date: str
    end_date: str
    day_types: List[str] = field(default_factory=list)


def _parse_int(text: Optional[str]) -> Optional[int]:
    if text is None or not _INTEGER.match(text):
        return None
    return int(text)


def _format_gtfs_date(text: str) -> str:
    """Turn YYYYMMDD into YYYY-MM-DD; a value that is not a valid date is kept as is."""
    if not _GTFS_DATE.match(text):
        raise ValueError(f"invalid date: {text!r}")
    return datetime.date(int(text[:4]), int(text[4:6]), int(text[6:])).isoformat()


def _formatted_date(text: str, what: str, line_number: int) -> str:
    try:
        return _format_gtfs_date(text)
    except ValueError:
        logger.info("Error parsing %s, GTFS row: %s", what, line_number)
        return text


def build_calendar_map(calendar_items: Iterable[Optional[CsvRecord]]) -> Dict[str, CalendarEntry]:
    """Map service ids of calendar records to their calendar entries.

    Records missing any calendar column are left out.
    """
    result: Dict[str, CalendarEntry] = {}
    for position, item in enumerate(calendar_items):
        if item is None:
            logger.info("Nil calendar item detected, number %s in the calendar items", position)
            continue
        values = {column: item.get(column) for column in _CALENDAR_COLUMNS}
        if any(value is None for value in values.values()):
            logger.info("malformed calendar item, GTFS row: %s", item.line_number)
            continue
        values = {column: value.strip() for column, value in values.items()}

        service_id = values["service_id"]
        result[service_id] = CalendarEntry(
            service_id=service_id,
            start_date=_formatted_date(values["start_date"], "start date for calendar item", item.line_number),
            end_date=_formatted_date(values["end_date"], "end date for calendar item", item.line_number),
            day_types=[day for day in _WEEKDAYS if values[day] == "1"],
        )
    return result


def build_calendar_dates_map(
    calendar_dates: Iterable[Optional[CsvRecord]],
) -> Dict[str, List[DayTypeException]]:
    """Map service ids to their exceptional dates, in file order.

    An exception type of "1" means the service runs on that date.
    """
    result: Dict[str, List[DayTypeException]] = {}
    for position, record in enumerate(calendar_dates):
        if record is None:
            logger.info("Nil calendar date detected, number %s in the calendar dates", position)
            continue
        service_id = record.get("service_id")
        exception_type = record.get("exception_type")
        date = record.get("date")
        if service_id is None or exception_type is None or date is None:
            logger.info("malformed calendar date, GTFS row: %s", record.line_number)
            continue
        formatted = _formatted_date(date.strip(), "date for calendar date", record.line_number)
        result.setdefault(service_id.strip(), []).append(
            DayTypeException(from_date=formatted, to_date=formatted, runs=exception_type.strip() == "1")
        )
    return result


def stop_ids_digest(stop_times: Iterable[Optional[CsvRecord]]) -> str:
    """Return the hex MD5 digest of the trimmed stop ids of the stop times, in order."""
    digest = hashlib.md5()
    for position, stop_time in enumerate(stop_times):
        if stop_time is None:
            logger.info("Nil stopTime detected, number %s in the stop times", position)
            continue
        stop_id = stop_time.get("stop_id")
        if stop_id is None:
            logger.info("stoptime.StopId is missing, GTFS line: %s", stop_time.line_number)
            continue
        digest.update(stop_id.strip().encode("utf-8"))
    return digest.hexdigest()


def _compare_sequence(first: CsvRecord, second: CsvRecord) -> int:
    a = _parse_int(first.get("stop_sequence"))
    b = _parse_int(second.get("stop_sequence"))
    if a is None or b is None:
        return 0
    return (a > b) - (a < b)


def _trimmed_or_empty(record: CsvRecord, column: str, label: str) -> str:
    value = record.get(column)
    if value is None:
        logger.info("%s (on gtfs row %s): %s is missing", label, record.line_number, column)
        return ""
    return value.strip()


def _group_stop_times(stop_times: Iterable[Optional[CsvRecord]]) -> Dict[str, List[CsvRecord]]:
    grouped: Dict[str, List[CsvRecord]] = {}
    for position, stop_time in enumerate(stop_times):
        if stop_time is None:
            logger.info("Nil stopTime detected, number %s in the stop times", position)
            continue
        trip_id = stop_time.get("trip_id")
        if trip_id is None:
            logger.info("stoptime.TripId is missing, GTFS line: %s", stop_time.line_number)
            continue
        grouped.setdefault(trip_id.strip(), []).append(stop_time)
    return grouped


def build_journeys(
    stop_times: Sequence[Optional[CsvRecord]],
    trips: Sequence[Optional[CsvRecord]],
    calendar_items: Sequence[Optional[CsvRecord]],
    calendar_dates: Sequence[Optional[CsvRecord]],
    stop_points: EntityIndex[StopPoint],
    lines: EntityIndex[Line],
    routes: EntityIndex[Route],
) -> Tuple[JourneyIndex, EntityIndex[JourneyPattern]]:
    """Build journeys and the journey patterns they share.

    Trips that visit the same sequence of stops share one journey pattern,
    identified by the digest of the stop ids. Routes get their line, journeys
    and journey patterns attached. Both results are listed by id.
    """
    patterns: EntityIndex[JourneyPattern] = EntityIndex()
    pattern_by_trip: Dict[str, JourneyPattern] = {}
    calls_by_trip: Dict[str, List[JourneyCall]] = {}

    for trip_id, trip_stop_times in _group_stop_times(stop_times).items():
        trip_stop_times.sort(key=cmp_to_key(_compare_sequence))
        digest = stop_ids_digest(trip_stop_times)
        new_pattern = JourneyPattern(id=digest) if digest not in patterns.by_id else None

        calls = calls_by_trip.setdefault(trip_id, [])
        for stop_time in trip_stop_times:
            stop_point = stop_points.by_id.get(stop_time.get("stop_id"))
            if stop_point is None:
                logger.info(
                    "Unknown stop point in trip, ignoring it. trip_id:%s, stop_id:%s",
                    trip_id,
                    stop_time.get("stop_id"),
                )
                continue
            calls.append(
                JourneyCall(
                    departure_time=_trimmed_or_empty(stop_time, "departure_time", "stoptime"),
                    arrival_time=_trimmed_or_empty(stop_time, "arrival_time", "stoptime"),
                    stop_point=stop_point,
                )
            )
            if new_pattern is not None:
                new_pattern.stop_points.append(stop_point)

        if new_pattern is not None:
            patterns.add(digest, new_pattern)
        pattern_by_trip[trip_id] = patterns.by_id[digest]

    calendar = build_calendar_map(calendar_items)
    exceptions = build_calendar_dates_map(calendar_dates)
    journeys = JourneyIndex()

    for position, trip in enumerate(trips):
        if trip is None:
            logger.info("Nil trip detected, number %s in the trips", position)
            continue
        raw_ids = {column: trip.get(column) for column in ("trip_id", "route_id", "shape_id", "service_id")}
        missing = [column for column, value in raw_ids.items() if value is None]
        if missing:
            logger.info("trip with no %s detected, ignoring it. GTFS trip row: %s", missing[0], trip.line_number)
            continue
        trip_id, route_id, shape_id, service_id = (value.strip() for value in raw_ids.values())

        pattern = pattern_by_trip.get(trip_id)
        if pattern is None:
            logger.info("Journey with no journey pattern detected, ignoring it: %s", trip_id)
            continue
        line = lines.by_id.get(route_id)
        if line is None:
            logger.info("Journey with no line detected, ignoring it: %s", trip_id)
            continue
        route = routes.by_id.get(shape_id)
        if route is None:
            logger.info("Journey with no route detected, ignoring it: %s", trip_id)
            continue
        service = calendar.get(service_id)
        if service is None:
            logger.info("Journey with no service detected, ignoring it: %s", trip_id)
            continue
        calls = calls_by_trip.get(trip_id, [])
        if not calls:
            logger.info("Journey with no calls detected, ignoring it: %s", trip_id)
            continue

        first_call, last_call = calls[0], calls[-1]
        departure_hhmm = "".join(first_call.departure_time.split(":")[:2])
        activity_id = (
            f"{line.name}_{departure_hhmm}_{last_call.stop_point.short_name}_{first_call.stop_point.short_name}"
        )

        journey = Journey(
            id=trip_id,
            head_sign=_trimmed_or_empty(trip, "trip_headsign", "trip"),
            direction=_trimmed_or_empty(trip, "direction_id", "trip"),
            wheelchair_accessible=_trimmed_or_empty(trip, "wheelchair_accessible", "trip") == "1",
            gtfs_info=JourneyGtfsInfo(trip_id=trip_id),
            day_types=service.day_types,
            day_type_exceptions=exceptions.get(service_id, []),
            calls=calls,
            line=line,
            journey_pattern=pattern,
            valid_from=service.start_date,
            valid_to=service.end_date,
            route=route,
            arrival_time=last_call.arrival_time,
            departure_time=first_call.departure_time,
            activity_id=activity_id,
        )

        pattern.route = route
        route.journeys.append(journey)
        route.line = line
        if not any(known.id == pattern.id for known in route.journey_patterns):
            route.journey_patterns.append(pattern)
        pattern.journeys.append(journey)

        journeys.add(raw_ids["trip_id"], activity_id, journey)

    journeys.all.sort(key=lambda journey: journey.id)
    patterns.all.sort(key=lambda pattern: pattern.id)
    return journeys, patterns