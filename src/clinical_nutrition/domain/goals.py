"""Energy estimates, resolved nutritional goals and clinical warnings."""

from dataclasses import dataclass, field
from enum import StrEnum


class WarningSeverity(StrEnum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    INFO = "info"


@dataclass(frozen=True)
class ClinicalWarning:
    """A structured safety message attached to a computed result."""

    severity: WarningSeverity
    message: str


@dataclass(frozen=True)
class EnergyEstimate:
    """BMR and TDEE in kcal/day tagged with the formula actually applied.

    ``method`` is ``primary`` or ``fallback:<name>`` when the requested
    formula could not be used.
    """

    bmr: float
    tdee: float
    activity_factor: float
    formula_used: str
    method: str = "primary"


@dataclass(frozen=True)
class ProteinBasisResult:
    basis: str
    weight_kg: float
    label: str
    warning: str | None = None


@dataclass(frozen=True)
class NutritionalGoals:
    """Safety-clamped daily targets with the full audit trail."""

    calories: float
    tdee: float
    kcal_adjustment: float
    preset_label: str
    protein_percent: float
    carbs_percent: float
    fat_percent: float
    protein_g: float
    carbs_g: float
    fat_g: float
    protein_basis: ProteinBasisResult
    micronutrients: dict[str, float] = field(default_factory=dict)
    auto_adjusted_for_obesity: bool = False
    pediatric_deficit_blocked: bool = False
    calorie_floor_applied: bool = False
    geriatric_protein_floor_applied: bool = False
    macro_renormalized: bool = False
    warnings: list[ClinicalWarning] = field(default_factory=list)
