"""Loading a complete journeys repository from a GTFS directory."""

from __future__ import annotations

from typing import List, Tuple

from journeysapi.gtfs import GTFSBundle, load_gtfs_bundle
from journeysapi.indexes import build_lines, build_municipalities, build_routes, build_stop_points
from journeysapi.store import JourneysRepository
from journeysapi.timetable import build_journeys


def bundle_errors(bundle: GTFSBundle) -> List[Exception]:
    """Return the errors collected while reading a bundle, in order."""
    return list(bundle.errors)


def load_repository(gtfs_path: str) -> Tuple[JourneysRepository, List[Exception]]:
    """Read a GTFS directory and build every entity index from it.

    Problems with the files do not stop loading; they are returned with the
    repository built from whatever could be read.
    """
    bundle = load_gtfs_bundle(gtfs_path)

    lines = build_lines(bundle.routes)
    routes = build_routes(bundle.shapes)
    municipalities = build_municipalities(bundle.municipalities)
    stop_points = build_stop_points(bundle.stops, municipalities)
    journeys, journey_patterns = build_journeys(
        bundle.stop_times,
        bundle.trips,
        bundle.calendar_items,
        bundle.calendar_dates,
        stop_points,
        lines,
        routes,
    )

    repository = JourneysRepository(
        lines=lines,
        stop_points=stop_points,
        municipalities=municipalities,
        routes=routes,
        journeys=journeys,
        journey_patterns=journey_patterns,
    )
    return repository, bundle_errors(bundle)