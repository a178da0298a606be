"""Range-clamped numeric primitives for physical quantities.

Constructors reject values that are not numbers (a programming error) and
clamp physiologically impossible values to the documented bounds, so a
single bad reading never aborts a whole calculation. Callers that need
strict rejection use the ``is_valid_*`` guards instead.
"""

import math
from typing import NewType

Millimeters = NewType("Millimeters", float)
Centimeters = NewType("Centimeters", float)
Meters = NewType("Meters", float)
Kilograms = NewType("Kilograms", float)
Percentage = NewType("Percentage", float)
Years = NewType("Years", int)

SKINFOLD_RANGE_MM = (0.0, 100.0)
LENGTH_RANGE_CM = (0.0, 300.0)
WEIGHT_RANGE_KG = (0.0, 500.0)
PERCENT_RANGE = (0.0, 100.0)
AGE_RANGE_YEARS = (0, 150)


class UnitError(TypeError, ValueError):
    """Raised when a unit constructor receives a non-numeric or NaN value."""


def millimeters(value: float) -> Millimeters:
    """Return a skinfold length in millimeters clamped to 0-100."""
    return Millimeters(_clamp(_checked(value, "millimeters"), *SKINFOLD_RANGE_MM))


def centimeters(value: float) -> Centimeters:
    """Return a length in centimeters clamped to 0-300."""
    return Centimeters(_clamp(_checked(value, "centimeters"), *LENGTH_RANGE_CM))


def kilograms(value: float) -> Kilograms:
    """Return a mass in kilograms clamped to 0-500."""
    return Kilograms(_clamp(_checked(value, "kilograms"), *WEIGHT_RANGE_KG))


def percentage(value: float) -> Percentage:
    """Return a percentage clamped to 0-100."""
    return Percentage(_clamp(_checked(value, "percentage"), *PERCENT_RANGE))


def years(value: float) -> Years:
    """Return whole years, floored and clamped to 0-150."""
    low, high = AGE_RANGE_YEARS
    return Years(math.floor(_clamp(_checked(value, "years"), low, high)))


def unsafe_millimeters(value: float) -> Millimeters:
    return Millimeters(float(value))


def unsafe_centimeters(value: float) -> Centimeters:
    return Centimeters(float(value))


def unsafe_kilograms(value: float) -> Kilograms:
    return Kilograms(float(value))


def unsafe_percentage(value: float) -> Percentage:
    return Percentage(float(value))


def unsafe_years(value: float) -> Years:
    return Years(int(value))


def mm_to_cm(value: Millimeters) -> Centimeters:
    """Convert millimeters to centimeters."""
    return Centimeters(_checked(value, "mm_to_cm") / 10)


def cm_to_mm(value: Centimeters) -> Millimeters:
    """Convert centimeters to millimeters."""
    return Millimeters(_checked(value, "cm_to_mm") * 10)


def cm_to_m(value: Centimeters) -> Meters:
    """Convert centimeters to meters."""
    return Meters(_checked(value, "cm_to_m") / 100)


def is_valid_skinfold(value: object) -> bool:
    return _in_range(value, 0, 100)


def is_valid_height(value: object) -> bool:
    return _in_range(value, 50, 250)


def is_valid_weight(value: object) -> bool:
    return _in_range(value, 20, 500)


def is_valid_body_fat(value: object) -> bool:
    return _in_range(value, 3, 60)


def _checked(value: object, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise UnitError(f"{name}: expected a number, got {type(value).__name__}")
    if math.isnan(value):
        raise UnitError(f"{name}: value is NaN")
    return float(value)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _in_range(value: object, low: float, high: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    if math.isnan(value):
        return False
    return low <= value <= high
