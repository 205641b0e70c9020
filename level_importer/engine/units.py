"""
Unit Resolver Module

Elevation number parsing and conversion to canonical units.

The canonical unit is the decimal foot, the internal length unit of the
document model. All comparisons are made in canonical units.
"""
from typing import Optional
import locale
import re
import logging

import numpy as np

from ..config.settings import LengthUnit, is_selectable_unit


logger = logging.getLogger(__name__)

# Exact conversion factors to feet (1 ft = 0.3048 m)
FEET_PER_UNIT = {
    LengthUnit.MILLIMETERS: 1.0 / 304.8,
    LengthUnit.METERS: 1.0 / 0.3048,
    LengthUnit.FEET: 1.0,
}

# Plain decimal-point number; no grouping separators, no underscores
_INVARIANT_NUMBER = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')


def resolve_unit(
    row_hint: LengthUnit,
    header_hint: LengthUnit,
    default_unit: LengthUnit
) -> LengthUnit:
    """
    Pick the effective unit of a row.

    Priority: row hint, then header hint, then the run default.

    Args:
        row_hint: Unit found on the row itself
        header_hint: Unit annotated on the elevation header
        default_unit: Unit chosen for the run

    Returns:
        Effective LengthUnit (never UNKNOWN)

    Raises:
        ValueError: default_unit is not millimeters, meters or feet
    """
    if not is_selectable_unit(default_unit):
        raise ValueError(f"Default unit must be millimeters, meters or feet, got {default_unit}")
    if row_hint is not None and row_hint != LengthUnit.UNKNOWN:
        return row_hint
    if header_hint is not None and header_hint != LengthUnit.UNKNOWN:
        return header_hint
    return default_unit


def to_canonical(value: float, unit: LengthUnit) -> float:
    """
    Convert a length to canonical units (feet).

    Args:
        value: Length expressed in unit
        unit: Source unit

    Returns:
        Length in feet
    """
    try:
        factor = FEET_PER_UNIT[unit]
    except KeyError:
        raise ValueError(f"Cannot convert from unit {unit}") from None
    return value * factor


def from_canonical(value: float, unit: LengthUnit) -> float:
    """Convert a length in feet to the given unit."""
    return value / FEET_PER_UNIT[unit]


def tolerance_from_millimeters(tolerance_mm: float) -> float:
    """
    Convert a tolerance in millimeters to canonical units.

    Raises:
        ValueError: tolerance is negative or not finite
    """
    if not np.isfinite(tolerance_mm) or tolerance_mm < 0:
        raise ValueError(f"Tolerance must be a finite value >= 0, got {tolerance_mm}")
    return to_canonical(tolerance_mm, LengthUnit.MILLIMETERS)


def _parse_invariant(text: str) -> Optional[float]:
    if not _INVARIANT_NUMBER.match(text):
        return None
    return float(text)


def _parse_locale(text: str) -> Optional[float]:
    try:
        return locale.atof(text)
    except ValueError:
        return None


def parse_elevation(text: str) -> Optional[float]:
    """
    Parse an elevation number.

    Tries, in order:
        1. Decimal point ("3.50")
        2. Current locale ("3,50" under a decimal-comma locale)
        3. Comma swapped for a point ("3,50" -> "3.50")

    Args:
        text: Number text without unit suffix

    Returns:
        Parsed finite value, or None if the text is not a usable number
    """
    if text is None:
        return None
    text = text.strip().replace('−', '-')
    if not text or '_' in text:
        return None

    for attempt in (_parse_invariant, _parse_locale):
        value = attempt(text)
        if value is not None:
            break
    else:
        value = _parse_invariant(text.replace(',', '.'))

    if value is None or not np.isfinite(value):
        return None
    return float(value)


def convert_elevation(
    text: str,
    row_hint: LengthUnit,
    header_hint: LengthUnit,
    default_unit: LengthUnit
) -> Optional[float]:
    """
    Parse an elevation and convert it to canonical units.

    Returns:
        Elevation in feet, or None when the text cannot be parsed
    """
    unit = resolve_unit(row_hint, header_hint, default_unit)
    value = parse_elevation(text)
    if value is None:
        return None
    return to_canonical(value, unit)
