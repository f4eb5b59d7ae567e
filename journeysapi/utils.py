"""Small helpers for string matching and for pruning JSON-like objects."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, Dict


def str_contains(haystack: str, needle: str) -> bool:
    """Tell whether needle occurs in haystack, ignoring case."""
    return needle.lower() in haystack.lower()


def _json_default(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    raise TypeError(f"object of type {type(value).__name__} is not JSON serializable")


def to_plain_dict(obj: Any) -> Dict[str, Any]:
    """Convert an object to a plain dict by way of its JSON form.

    Raises TypeError or ValueError if the object cannot be serialized or
    does not serialize to a JSON object.
    """
    data = json.loads(json.dumps(obj, default=_json_default))
    if not isinstance(data, dict):
        raise TypeError(f"cannot convert {type(obj).__name__} to a JSON object")
    return data


def filter_object(obj: Any, property_paths: str) -> Dict[str, Any]:
    """Convert obj to a plain dict and remove the comma separated property paths."""
    data = to_plain_dict(obj)
    for path in property_paths.split(","):
        delete_property(data, path)
    return data


def delete_property(obj: Any, property_path: str) -> None:
    """Delete a dotted property path from a nested dict in place.

    A path through a list applies the rest of the path to every element.
    Missing keys leave the object untouched.
    """
    if not isinstance(obj, dict):
        return
    fragments = property_path.split(".")
    current = obj
    for index, fragment in enumerate(fragments):
        if fragment not in current:
            return
        value = current[fragment]
        if index == len(fragments) - 1:
            del current[fragment]
        elif isinstance(value, list):
            rest = ".".join(fragments[index + 1:])
            for item in value:
                delete_property(item, rest)
        elif isinstance(value, dict):
            current = value