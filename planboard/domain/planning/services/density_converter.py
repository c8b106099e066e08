"""
Density Converter

Maps slot indices and lengths between densities through a common base unit:
one base unit is one hour of the default 8:00-18:00 working window. The
conversion assumes every day carries the same number of slots per density,
so it is only exact for uniform calendars; callers clamp the results.

Rounding policy used throughout the board:

- starts convert with ``FLOOR``
- lengths convert with ``CEIL``
- a pointer-derived interval floors its start and ceils its end
"""

import math
from fractions import Fraction

from ..value_objects.enums import Density, RoundingMode

BASE_SLOTS_PER_DAY = 18 - 8


def slots_per_day_for_density(density: Density) -> int:
    """Nominal slots per day at ``density`` for the default working window."""
    step = density.hour_step
    if step is None:
        return 1
    return math.ceil(BASE_SLOTS_PER_DAY / step)


def slot_units_per_slot(density: Density) -> Fraction:
    """Base units covered by one slot at ``density``."""
    return Fraction(BASE_SLOTS_PER_DAY, slots_per_day_for_density(density))


def _apply_rounding(value: Fraction, mode: RoundingMode) -> int:
    if mode is RoundingMode.FLOOR:
        return math.floor(value)
    if mode is RoundingMode.CEIL:
        return math.ceil(value)
    if mode is RoundingMode.ROUND:
        # half-up, matching the rounding used for labels and payloads
        return math.floor(value + Fraction(1, 2))
    raise AssertionError(f"Unhandled rounding mode: {mode!r}")


def convert_slot_index(
    value: int, from_density: Density, to_density: Density, mode: RoundingMode
) -> int:
    """
    Convert a slot index (or slot boundary) between densities.

    Args:
        value: Index at ``from_density``
        from_density: Source density
        to_density: Target density
        mode: Rounding applied in target units

    Returns:
        Index at ``to_density``; not clamped
    """
    if from_density is to_density:
        return value
    base_units = value * slot_units_per_slot(from_density)
    return _apply_rounding(base_units / slot_units_per_slot(to_density), mode)


def convert_slot_length(
    value: int, from_density: Density, to_density: Density, mode: RoundingMode
) -> int:
    """Convert a length between densities; never shorter than one slot."""
    return max(1, convert_slot_index(value, from_density, to_density, mode))
