"""Plan aggregation and editing operations.

Every edit returns a new plan whose meal and day stats are recomputed from
the items, so cached totals never go stale.
"""

from dataclasses import replace
from functools import reduce
from uuid import uuid4

from clinical_nutrition.domain.foods import Food, NutrientProfile
from clinical_nutrition.domain.goals import ClinicalWarning
from clinical_nutrition.domain.plans import DailyPlan, FoodItem, Meal, WeeklyPlan

DEFAULT_ADD_QUANTITY_G = 100.0


class PlanEditError(ValueError):
    """Raised when an edit targets a meal or item that does not exist."""


def sum_nutrients(profiles: list[NutrientProfile]) -> NutrientProfile:
    return reduce(lambda total, profile: total + profile, profiles, NutrientProfile())


def build_meal(name: str, items: list[FoodItem], target_calories: float = 0.0) -> Meal:
    """Create a meal with stats aggregated from its items."""
    return Meal(
        name=name,
        items=list(items),
        stats=sum_nutrients([item.nutrients for item in items]),
        target_calories=target_calories,
    )


def build_day(
    day: str, meals: list[Meal], warnings: list[ClinicalWarning] | None = None
) -> DailyPlan:
    """Create a day with stats aggregated from its meals."""
    return DailyPlan(
        day=day,
        meals=list(meals),
        stats=sum_nutrients([meal.stats for meal in meals]),
        warnings=list(warnings or []),
    )


def add_food(
    plan: DailyPlan,
    meal_index: int,
    food: Food,
    quantity_g: float = DEFAULT_ADD_QUANTITY_G,
) -> DailyPlan:
    """Append a food to a meal (100 g unless stated)."""
    meal = _meal_at(plan, meal_index)
    item = FoodItem(
        id=uuid4().hex,
        food=food,
        quantity_g=_checked_quantity(quantity_g),
        category=food.category,
    )
    return _with_meal(plan, meal_index, [*meal.items, item])


def remove_food(plan: DailyPlan, meal_index: int, item_id: str) -> DailyPlan:
    meal = _meal_at(plan, meal_index)
    remaining = [item for item in meal.items if item.id != item_id]
    if len(remaining) == len(meal.items):
        raise PlanEditError(f"Item {item_id} not found in meal {meal.name}")
    return _with_meal(plan, meal_index, remaining)


def change_quantity(
    plan: DailyPlan, meal_index: int, item_id: str, quantity_g: float
) -> DailyPlan:
    meal = _meal_at(plan, meal_index)
    quantity = _checked_quantity(quantity_g)
    found = False
    items = []
    for item in meal.items:
        if item.id == item_id:
            found = True
            items.append(replace(item, quantity_g=quantity))
        else:
            items.append(item)
    if not found:
        raise PlanEditError(f"Item {item_id} not found in meal {meal.name}")
    return _with_meal(plan, meal_index, items)


def replace_day(week: WeeklyPlan, day_index: int, day: DailyPlan) -> WeeklyPlan:
    """Return a week with one day swapped for an edited version."""
    if not 0 <= day_index < len(week.days):
        raise PlanEditError(f"Day index {day_index} out of range")
    days = list(week.days)
    days[day_index] = day
    return WeeklyPlan(days=days, warnings=list(week.warnings))


def _meal_at(plan: DailyPlan, meal_index: int) -> Meal:
    if not 0 <= meal_index < len(plan.meals):
        raise PlanEditError(f"Meal index {meal_index} out of range")
    return plan.meals[meal_index]


def _with_meal(plan: DailyPlan, meal_index: int, items: list[FoodItem]) -> DailyPlan:
    meal = plan.meals[meal_index]
    meals = list(plan.meals)
    meals[meal_index] = build_meal(meal.name, items, meal.target_calories)
    return build_day(plan.day, meals, plan.warnings)


def _checked_quantity(quantity_g: float) -> float:
    if quantity_g <= 0:
        raise PlanEditError("Quantity must be positive")
    return float(quantity_g)
