"""The v1 HTTP API: routing of requests to the entity services."""

from __future__ import annotations

import logging
import re
from http import HTTPStatus
from typing import Any, Callable, Dict, Iterable, List, Tuple

from journeysapi.convert_basic import convert_line, convert_municipality, convert_stop_point
from journeysapi.convert_journeys import convert_journey, convert_journey_pattern, convert_route
from journeysapi.model import NoSuchElementError
from journeysapi.responses import exclude_fields_parameter, query_parameters, success_payload
from journeysapi.service import JourneysDataService

logger = logging.getLogger(__name__)

Headers = List[Tuple[str, str]]
Response = Tuple[str, Headers, bytes]

_TEXT_PLAIN = "text/plain; charset=utf-8"
_PATH = re.compile(r"/v1/(?P<collection>[^/]+)(?:/(?P<name>[^/]+))?")


def _status_line(status: HTTPStatus) -> str:
    return f"{status.value} {status.phrase}"


def _response(status: HTTPStatus, body: bytes, extra: Iterable[Tuple[str, str]] = ()) -> Response:
    headers = [("Content-Type", _TEXT_PLAIN), *extra, ("Content-Length", str(len(body)))]
    return _status_line(status), headers, body


def _error(status: HTTPStatus, message: str) -> Response:
    return _response(status, f"{message}\n".encode("utf-8"), [("X-Content-Type-Options", "nosniff")])


def _decode_path(environ: Dict[str, Any]) -> str:
    path = environ.get("PATH_INFO", "")
    try:
        return path.encode("latin-1").decode("utf-8", "replace")
    except UnicodeEncodeError:
        return path


class JourneysApp:
    """A WSGI application serving lines, journeys, journey patterns, routes,
    stop points and municipalities under /v1."""

    def __init__(
        self,
        data_service: JourneysDataService,
        base_url: str,
        vehicle_activity_base_url: str = "",
    ) -> None:
        self._collections: Dict[str, Tuple[Any, Callable[[Any], Dict[str, Any]]]] = {
            "lines": (data_service.lines, lambda e: convert_line(e, base_url)),
            "journeys": (
                data_service.journeys,
                lambda e: convert_journey(e, base_url, vehicle_activity_base_url),
            ),
            "journey-patterns": (
                data_service.journey_patterns,
                lambda e: convert_journey_pattern(e, base_url),
            ),
            "routes": (data_service.routes, lambda e: convert_route(e, base_url)),
            "stop-points": (data_service.stop_points, lambda e: convert_stop_point(e, base_url)),
            "municipalities": (
                data_service.municipalities,
                lambda e: convert_municipality(e, base_url),
            ),
        }

    def handle(self, method: str, path: str, query_string: str = "") -> Response:
        """Answer one request; return the status line, headers and body."""
        match = _PATH.fullmatch(path)
        if match is None or match.group("collection") not in self._collections:
            return _error(HTTPStatus.NOT_FOUND, "404 page not found")
        if method != "GET":
            return _status_line(HTTPStatus.METHOD_NOT_ALLOWED), [("Content-Length", "0")], b""

        service, convert = self._collections[match.group("collection")]
        name = match.group("name")
        try:
            if name is None:
                entities = [convert(item) for item in service.search(query_parameters(query_string))]
            else:
                try:
                    entities = [convert(service.get_one_by_id(name))]
                except NoSuchElementError:
                    entities = []
            body = success_payload(entities, exclude_fields_parameter(query_string))
        except (TypeError, ValueError) as exc:
            logger.error("%s", exc)
            return _error(HTTPStatus.INTERNAL_SERVER_ERROR, "internal server error")
        return _response(HTTPStatus.OK, body)

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> List[bytes]:
        status, headers, body = self.handle(
            environ.get("REQUEST_METHOD", "GET"),
            _decode_path(environ),
            environ.get("QUERY_STRING", ""),
        )
        start_response(status, headers)
        return [body]