"""Building the line, municipality, route and stop point indexes from GTFS records."""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence

from journeysapi.gtfs import CsvRecord
from journeysapi.model import Line, Municipality, Route, StopPoint
from journeysapi.store import EntityIndex

logger = logging.getLogger(__name__)


def _trimmed(record: CsvRecord, column: str, label: str, field_name: str) -> str:
    value = record.get(column)
    if value is None:
        logger.info("%s (on gtfs line %s): %s is missing", label, record.line_number, field_name)
        return ""
    return value.strip()


def _parse_float(text: str) -> float:
    if text != text.strip() or "_" in text:
        raise ValueError(f"invalid number: {text!r}")
    return float(text)


def _coordinate(record: CsvRecord, column: str, label: str, field_name: str) -> float:
    value = record.get(column)
    if value is None:
        logger.info("%s (on gtfs line %s): %s is missing", label, record.line_number, field_name)
        return 0.0
    try:
        return _parse_float(value)
    except ValueError:
        logger.info(
            "%s (on gtfs line %s): cannot parse %s float value", label, record.line_number, field_name
        )
        return 0.0


def _round_to_five_decimals(value: float) -> float:
    """Round to five decimals, halves away from zero."""
    if not math.isfinite(value):
        return value
    scaled = value * 100000
    whole = math.trunc(scaled)
    if abs(scaled - whole) >= 0.5:
        whole += 1 if scaled > 0 else -1
    result = float(whole)
    if result == 0:
        result = math.copysign(0.0, scaled)
    return result / 100000


def build_lines(routes: Iterable[Optional[CsvRecord]]) -> EntityIndex[Line]:
    """Create lines from GTFS route records, listed by name and keyed by route id."""
    index: EntityIndex[Line] = EntityIndex()
    for position, record in enumerate(routes):
        if record is None:
            logger.info("Nil route detected, number %s in the routes array", position)
            continue
        route_id = record.get("route_id")
        if route_id is None:
            logger.info("Line.Id is missing, GTFS route: %s", record.line_number)
            continue
        line = Line(
            name=_trimmed(record, "route_short_name", "line", "ShortName"),
            description=_trimmed(record, "route_long_name", "line", "LongName"),
        )
        index.add(route_id.strip(), line)
    index.all.sort(key=lambda line: line.name)
    return index


def build_municipalities(rows: Iterable[CsvRecord]) -> EntityIndex[Municipality]:
    """Create municipalities from the municipality table, listed and keyed by code."""
    index: EntityIndex[Municipality] = EntityIndex()
    for row in rows:
        code = row.get("id") or ""
        index.add(code, Municipality(public_code=code, name=row.get("name") or ""))
    index.all.sort(key=lambda municipality: municipality.public_code)
    return index


def create_coordinate_projection(coords: Optional[Sequence[Sequence[float]]]) -> str:
    """Encode coordinates as an absolute first point followed by deltas.

    Each coordinate is scaled by 100000 and truncated; every later point is
    written as the previous point minus the current one.
    """
    if not coords:
        return ""
    parts: List[str] = []
    last_lat = last_lon = 0
    for position, (lat_value, lon_value) in enumerate(coords):
        lat = int(lat_value * 100000)
        lon = int(lon_value * 100000)
        if position == 0:
            parts.append(f"{lat},{lon}")
        else:
            parts.append(f"{last_lat - lat},{last_lon - lon}")
        last_lat, last_lon = lat, lon
    return ":".join(parts)


def build_routes(shapes: Iterable[Optional[CsvRecord]]) -> EntityIndex[Route]:
    """Create one route per GTFS shape, listed and keyed by shape id.

    Lines, names, journey patterns and journeys are attached later, when
    journeys are built.
    """
    coords_by_shape: Dict[str, List[List[float]]] = {}
    for position, shape in enumerate(shapes):
        if shape is None:
            logger.info("Nil shape detected, number %s in the shapes array", position)
            continue
        shape_id = shape.get("shape_id")
        if shape_id is None:
            logger.info("Shape.Id is missing, GTFS line: %s", shape.line_number)
            continue
        lat = _coordinate(shape, "shape_pt_lat", "shape", "lat")
        lon = _coordinate(shape, "shape_pt_lon", "shape", "lon")
        coords_by_shape.setdefault(shape_id.strip(), []).append([lat, lon])

    index: EntityIndex[Route] = EntityIndex()
    for shape_id, coords in coords_by_shape.items():
        index.add(shape_id, Route(id=shape_id, geo_projection=create_coordinate_projection(coords)))
    index.all.sort(key=lambda route: route.id)
    return index


def build_stop_points(
    stops: Iterable[Optional[CsvRecord]], municipalities: EntityIndex[Municipality]
) -> EntityIndex[StopPoint]:
    """Create stop points from GTFS stop records, listed by short name and keyed by stop id.

    A stop naming a municipality that is not known is left out.
    """
    index: EntityIndex[StopPoint] = EntityIndex()
    for stop in stops:
        if stop is None:
            continue
        lat = _coordinate(stop, "stop_lat", "stop-point", "lat")
        lon = _coordinate(stop, "stop_lon", "stop-point", "lon")
        stop_point = StopPoint(
            name=_trimmed(stop, "stop_name", "stop-point", "name"),
            short_name=_trimmed(stop, "stop_code", "stop-point", "shortName"),
            latitude=_round_to_five_decimals(lat),
            longitude=_round_to_five_decimals(lon),
            tariff_zone=_trimmed(stop, "zone_id", "stop-point", "tariffZone"),
        )

        stop_id = stop.get("stop_id")
        municipality_id = stop.get("municipality_id")
        if municipality_id:
            municipality = municipalities.by_id.get(municipality_id)
            if municipality is None:
                logger.info(
                    "stop-point (%s): municipality information not found, ignoring the stop-point", stop_id
                )
                continue
            stop_point.municipality = municipality

        if stop_id is None:
            logger.info("stop-point (on gtfs line %s): id is missing", stop.line_number)
            continue
        index.add(stop_id, stop_point)
    index.all.sort(key=lambda stop_point: stop_point.short_name)
    return index