"""Converting lines, municipalities and stop points to their API form."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Dict

from journeysapi.model import Line, Municipality, StopPoint
from journeysapi.responses import LINE_PREFIX, MUNICIPALITIES_PREFIX, STOP_POINT_PREFIX


def format_float(value: float) -> str:
    """Format a float in its shortest form, using exponent notation for large or small values.

    Exponent notation is used when the decimal exponent is below -4 or at
    least 6, as in "1e+06" and "1e-05".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    sign = "-" if math.copysign(1.0, value) < 0 else ""
    if value == 0:
        return sign + "0"

    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    point = len(digit_tuple) + exponent
    digits = "".join(str(digit) for digit in digit_tuple).lstrip("0")
    point -= len(digit_tuple) - len("".join(str(d) for d in digit_tuple).lstrip("0"))
    digits = digits.rstrip("0")
    exp10 = point - 1

    if exp10 < -4 or exp10 >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        return f"{sign}{mantissa}e{'+' if exp10 >= 0 else '-'}{abs(exp10):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return sign + digits + "0" * (point - len(digits))
    return f"{sign}{digits[:point]}.{digits[point:]}"


def format_location(stop_point: StopPoint) -> str:
    """Return a stop point's location as "latitude,longitude"."""
    return f"{format_float(stop_point.latitude)},{format_float(stop_point.longitude)}"


def convert_line(line: Line, base_url: str) -> Dict[str, Any]:
    """Return the API form of a line."""
    return {
        "url": f"{base_url}{LINE_PREFIX}/{line.name}",
        "name": line.name,
        "description": line.description,
    }


def convert_municipality(municipality: Municipality, base_url: str) -> Dict[str, Any]:
    """Return the API form of a municipality."""
    return {
        "url": f"{base_url}{MUNICIPALITIES_PREFIX}/{municipality.public_code}",
        "shortName": municipality.public_code,
        "name": municipality.name,
    }


def convert_stop_point(stop_point: StopPoint, base_url: str) -> Dict[str, Any]:
    """Return the API form of a stop point.

    Raises ValueError if the stop point has no municipality.
    """
    if stop_point.municipality is None:
        raise ValueError(f"stop point {stop_point.short_name!r} has no municipality")
    return {
        "url": f"{base_url}{STOP_POINT_PREFIX}/{stop_point.short_name}",
        "shortName": stop_point.short_name,
        "name": stop_point.name,
        "location": format_location(stop_point),
        "tariffZone": stop_point.tariff_zone,
        "municipality": convert_municipality(stop_point.municipality, base_url),
    }