"""Removing excluded fields from response body elements."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from journeysapi.utils import delete_property, to_plain_dict

logger = logging.getLogger(__name__)


def remove_excluded_fields(body_elements: List[Dict[str, Any]], property_paths: str) -> List[Dict[str, Any]]:
    """Remove the comma separated property paths from every body element."""
    if not body_elements:
        return body_elements
    return [filter_map(element, property_paths) for element in body_elements]


def convert_to_string_any_map(obj: Any) -> Optional[Dict[str, Any]]:
    """Convert an object to a plain dict via JSON, or return None if it cannot be."""
    try:
        return to_plain_dict(obj)
    except (TypeError, ValueError) as exc:
        logger.warning("%s", exc)
        return None


def filter_map(obj: Dict[str, Any], property_paths: str) -> Dict[str, Any]:
    """Delete each comma separated property path from obj in place and return it."""
    for path in property_paths.split(","):
        delete_property(obj, path)
    return obj