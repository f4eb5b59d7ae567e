"""Building and encoding API responses, and reading request query strings."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import unquote_plus

from journeysapi.fields import convert_to_string_any_map, remove_excluded_fields

LINE_PREFIX = "/lines"
JOURNEYS_PREFIX = "/journeys"
STOP_POINT_PREFIX = "/stop-points"
MUNICIPALITIES_PREFIX = "/municipalities"
ROUTE_PREFIX = "/routes"
JOURNEY_PATTERN_PREFIX = "/journey-patterns"

EXCLUDE_FIELDS = "exclude-fields"

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def new_success_response(body: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    """Wrap body elements in the success envelope; a missing body is an empty list."""
    if body is None:
        body = []
    return {
        "status": "success",
        "data": {"headers": {"paging": {"startIndex": 0, "pageSize": len(body), "moreData": False}}},
        "body": body,
    }


def filter_body_elements(body_elements: List[Dict[str, Any]], field_exclusions: str) -> List[Dict[str, Any]]:
    """Remove excluded fields from the elements if any exclusions are given."""
    if field_exclusions:
        return remove_excluded_fields(body_elements, field_exclusions)
    return body_elements


def _sorted_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _sorted_keys(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted_keys(item) for item in value]
    return value


def success_payload(entities: Iterable[Any], field_exclusions: str) -> bytes:
    """Encode entities as a success response body, without the excluded fields.

    Keys of each body element are written in sorted order. Raises TypeError
    or ValueError if the response cannot be encoded.
    """
    elements = [_sorted_keys(convert_to_string_any_map(entity)) for entity in entities]
    return encode_json(new_success_response(filter_body_elements(elements, field_exclusions)))


def encode_json(data: Any) -> bytes:
    """Encode data as compact UTF-8 JSON with HTML-sensitive characters escaped.

    Raises TypeError for values JSON cannot hold and ValueError for NaN or
    infinite numbers.
    """
    text = json.dumps(data, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    for char, escape in _HTML_ESCAPES:
        text = text.replace(char, escape)
    return text.encode("utf-8")


def _parse_query(query_string: Optional[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    if not query_string:
        return values
    for pair in query_string.split("&"):
        if not pair or ";" in pair:
            continue
        key, _, value = pair.partition("=")
        if _BAD_ESCAPE.search(key) or _BAD_ESCAPE.search(value):
            continue
        values.setdefault(unquote_plus(key), unquote_plus(value))
    return values


def query_parameters(query_string: Optional[str]) -> Dict[str, str]:
    """Return the first value of each query parameter except exclude-fields."""
    return {key: value for key, value in _parse_query(query_string).items() if key != EXCLUDE_FIELDS}


def exclude_fields_parameter(query_string: Optional[str]) -> str:
    """Return the exclude-fields query parameter, or an empty string."""
    if query_string is None:
        return ""
    return _parse_query(query_string).get(EXCLUDE_FIELDS, "")