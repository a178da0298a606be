"""Special-population guidance models."""

from dataclasses import dataclass, field

from clinical_nutrition.domain.patients import LactationType, Sex


@dataclass(frozen=True)
class MealTexture:
    description: str
    examples: list[str]


@dataclass(frozen=True)
class PediatricNutritionPlan:
    """Feeding guidance for a child aged 0-36 months."""

    age_months: int
    lactation_type: LactationType
    age_bracket: str
    breastfeeding_recommendation: str
    breastfeeding_frequency: str
    iron_rich_foods: list[str]
    forbidden_foods: list[str]
    forbidden_reasons: list[str]
    alerts: list[str]
    texture: MealTexture | None = None
    meal_frequency: str | None = None
    portion_size: str | None = None


@dataclass(frozen=True)
class AnemiaInput:
    """Inputs for the iron supplementation protocol."""

    age_months: int
    weight_kg: float
    sex: Sex
    has_anemia: bool = False
    hemoglobin_g_dl: float | None = None
    altitude_m: float = 0.0
    is_pregnant: bool = False
    trimester: int | None = None
    gestational_week: int | None = None
    is_postpartum: bool = False
    is_premature: bool = False
    gestational_weeks_at_birth: int | None = None
    low_birth_weight: bool = False


@dataclass(frozen=True)
class AnemiaProtocol:
    """Iron dose, presentation and feeding rules for one patient."""

    protocol_type: str
    severity: str
    altitude_adjustment: float
    corrected_hemoglobin: float | None
    dose_mg: float
    max_dose_mg: float | None
    drops: int
    syrup_ml: float
    folic_acid_mg: float
    duration_months: int
    presentation: str
    texture: str
    portion: str
    meal_frequency: str
    follow_up: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
