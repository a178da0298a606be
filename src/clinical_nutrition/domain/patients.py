"""Patient records and nutritional configuration."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from uuid import UUID


class Sex(StrEnum):
    MALE = "male"
    FEMALE = "female"


class ActivityLevel(StrEnum):
    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"
    ELITE = "elite"
    ULTRA = "ultra"


class EnergyFormula(StrEnum):
    MIFFLIN = "mifflin"
    HARRIS_BENEDICT = "harris_benedict"
    KATCH_MCARDLE = "katch_mcardle"
    CUNNINGHAM = "cunningham"
    FAO_WHO = "fao_who"
    HENRY = "henry"
    IOM = "iom"


class ProteinBasis(StrEnum):
    TOTAL = "total"
    IDEAL = "ideal"
    ADJUSTED = "adjusted"
    LEAN = "lean"


class CaloriePreset(StrEnum):
    AGGRESSIVE_DEFICIT = "aggressive_deficit"
    MODERATE_DEFICIT = "moderate_deficit"
    MILD_DEFICIT = "mild_deficit"
    MAINTENANCE = "maintenance"
    MILD_SURPLUS = "mild_surplus"
    MODERATE_SURPLUS = "moderate_surplus"


class PatientType(StrEnum):
    """Profile used to pick the body-composition equation."""

    GENERAL = "general"
    ATHLETE = "athlete"
    CONTROL = "control"
    RAPID = "rapid"
    FITNESS = "fitness"


class AllergySeverity(StrEnum):
    FATAL = "fatal"
    INTOLERANCE = "intolerance"
    PREFERENCE = "preference"


class LactationType(StrEnum):
    BREAST = "breast"
    FORMULA = "formula"
    MIXED = "mixed"


@dataclass(frozen=True)
class Allergy:
    """An allergen and how strictly it must be avoided."""

    allergen: str
    severity: AllergySeverity = AllergySeverity.FATAL


@dataclass(frozen=True)
class MealMoment:
    """A named feeding slot with its share of daily calories (0-1)."""

    name: str
    ratio: float
    enabled: bool = True


DEFAULT_MEAL_MOMENTS: tuple[MealMoment, ...] = (
    MealMoment("breakfast", 0.25),
    MealMoment("lunch", 0.35),
    MealMoment("dinner", 0.25),
    MealMoment("snack", 0.15),
)


@dataclass(frozen=True)
class ClinicalRecord:
    """Clinical history relevant to diet generation."""

    pathologies: list[str] = field(default_factory=list)
    allergies: list[Allergy] = field(default_factory=list)
    medications: list[str] = field(default_factory=list)
    hemoglobin_g_dl: float | None = None
    biochemistry: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class NutritionConfig:
    """Clinician-chosen settings driving the energy and goal calculations."""

    activity_level: ActivityLevel = ActivityLevel.SEDENTARY
    formula: EnergyFormula | None = None
    weight_objective: str | None = None
    carbs_percent: float = 50.0
    protein_ratio_g_per_kg: float = 1.6
    protein_basis: ProteinBasis | None = None
    calorie_preset: CaloriePreset | None = None
    kcal_adjustment: float = 0.0
    patient_type: PatientType = PatientType.GENERAL
    is_athlete: bool = False
    include_tef: bool = False
    meal_moments: tuple[MealMoment, ...] = DEFAULT_MEAL_MOMENTS
    liked_foods: list[str] = field(default_factory=list)
    disliked_foods: list[str] = field(default_factory=list)
    micronutrient_overrides: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PediatricInfo:
    gestational_weeks_at_birth: int | None = None
    birth_weight_kg: float | None = None
    lactation_type: LactationType = LactationType.BREAST
    has_iron_supplementation: bool = False


@dataclass(frozen=True)
class PregnancyInfo:
    is_pregnant: bool = False
    trimester: int | None = None
    gestational_week: int | None = None
    is_postpartum: bool = False


@dataclass(frozen=True)
class GeriatricInfo:
    calf_circumference_cm: float | None = None
    knee_height_cm: float | None = None


@dataclass(frozen=True)
class Patient:
    """A patient with demographics, clinical record and configuration."""

    id: UUID
    owner_id: UUID
    name: str
    birth_date: date
    sex: Sex
    weight_kg: float
    height_cm: float
    clinical: ClinicalRecord = field(default_factory=ClinicalRecord)
    config: NutritionConfig = field(default_factory=NutritionConfig)
    pediatric: PediatricInfo | None = None
    pregnancy: PregnancyInfo | None = None
    geriatric: GeriatricInfo | None = None

    def age_in_years(self, on: date) -> int:
        """Return completed years of age on a given date."""
        birthday = (self.birth_date.month, self.birth_date.day)
        had_birthday = (on.month, on.day) >= birthday
        return on.year - self.birth_date.year - (0 if had_birthday else 1)

    def age_in_months(self, on: date) -> int:
        """Return completed months of age on a given date."""
        months = (on.year - self.birth_date.year) * 12 + (
            on.month - self.birth_date.month
        )
        if on.day < self.birth_date.day:
            months -= 1
        return max(months, 0)
