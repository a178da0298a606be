"""Daily and weekly meal plan models."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from clinical_nutrition.domain.foods import Food, FoodCategory, NutrientProfile
from clinical_nutrition.domain.goals import ClinicalWarning, NutritionalGoals
from clinical_nutrition.domain.patients import (
    DEFAULT_MEAL_MOMENTS,
    Allergy,
    MealMoment,
)


@dataclass(frozen=True)
class FoodItem:
    """A food placed in a meal with its raw, as-eaten quantity in grams."""

    id: str
    food: Food
    quantity_g: float
    category: FoodCategory

    @property
    def nutrients(self) -> NutrientProfile:
        return self.food.nutrients.scaled(self.quantity_g / 100)


@dataclass(frozen=True)
class Meal:
    name: str
    items: list[FoodItem]
    stats: NutrientProfile
    target_calories: float = 0.0


@dataclass(frozen=True)
class DailyPlan:
    day: str
    meals: list[Meal]
    stats: NutrientProfile
    warnings: list[ClinicalWarning] = field(default_factory=list)


@dataclass(frozen=True)
class WeeklyPlan:
    days: list[DailyPlan]
    warnings: list[ClinicalWarning] = field(default_factory=list)


@dataclass(frozen=True)
class SavedPlan:
    """An immutable snapshot stored in the plan history."""

    id: UUID
    owner_id: UUID
    patient_id: UUID | None
    name: str
    created_at: datetime
    plan: WeeklyPlan
    goals: NutritionalGoals | None = None


@dataclass(frozen=True)
class MealPlanPreferences:
    """Likes, exclusions and meal layout applied while assembling plans."""

    liked_foods: list[str] = field(default_factory=list)
    disliked_foods: list[str] = field(default_factory=list)
    allergies: list[Allergy] = field(default_factory=list)
    pathologies: list[str] = field(default_factory=list)
    medications: list[str] = field(default_factory=list)
    age_years: int | None = None
    meal_moments: tuple[MealMoment, ...] = DEFAULT_MEAL_MOMENTS
