"""Anthropometric measurement records."""

import statistics
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID


@dataclass(frozen=True)
class RawValue:
    """A single plain reading."""

    value: float


@dataclass(frozen=True)
class IsakValue:
    """Repeated ISAK readings with the resolved final value."""

    val1: float
    val2: float
    final: float
    val3: float | None = None

    @classmethod
    def from_readings(
        cls, val1: float, val2: float, val3: float | None = None
    ) -> "IsakValue":
        """Resolve the final value: median of three readings, mean of two."""
        if val3 is None:
            final = (val1 + val2) / 2
        else:
            final = statistics.median([val1, val2, val3])
        return cls(val1=val1, val2=val2, val3=val3, final=final)


AnthroValue = RawValue | IsakValue


def anthro_number(value: AnthroValue | float | None) -> float | None:
    """Return the usable number of a reading, or None when absent."""
    if value is None:
        return None
    if isinstance(value, IsakValue):
        return value.final
    if isinstance(value, RawValue):
        return value.value
    return float(value)


def parse_anthro_value(raw: object) -> AnthroValue | None:
    """Parse a stored reading (number or ISAK mapping) into a tagged value."""
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        val1 = raw.get("val1")
        val2 = raw.get("val2")
        final = raw.get("final")
        if val1 is None or val2 is None:
            return RawValue(float(final)) if final is not None else None
        val3 = raw.get("val3")
        return IsakValue.from_readings(
            float(val1), float(val2), float(val3) if val3 is not None else None
        )
    return RawValue(float(raw))


@dataclass(frozen=True)
class Somatotype:
    """Heath-Carter somatotype rating."""

    endomorphy: float
    mesomorphy: float
    ectomorphy: float


@dataclass(frozen=True)
class Measurement:
    """One clinical visit's anthropometric record.

    Skinfolds are in millimeters; girths, breadths and lengths in
    centimeters. Site keys are lowercase snake_case names such as
    ``triceps``, ``supraspinale``, ``arm_relaxed`` or ``humerus``.
    """

    patient_id: UUID
    measured_on: date
    weight_kg: float
    height_cm: float
    id: UUID | None = None
    sitting_height_cm: float | None = None
    head_circumference_cm: float | None = None
    skinfolds: dict[str, AnthroValue] = field(default_factory=dict)
    girths: dict[str, AnthroValue] = field(default_factory=dict)
    breadths: dict[str, AnthroValue] = field(default_factory=dict)
    body_fat_percent: float | None = None
    muscle_mass_kg: float | None = None
    somatotype: Somatotype | None = None
    quality: str | None = None

    def skinfold(self, site: str) -> float | None:
        return anthro_number(self.skinfolds.get(site))

    def girth(self, site: str) -> float | None:
        return anthro_number(self.girths.get(site))

    def breadth(self, site: str) -> float | None:
        return anthro_number(self.breadths.get(site))
