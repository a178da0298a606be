"""Tests for plan aggregation and edits."""

import pytest

from clinical_nutrition.domain.foods import FoodCategory
from clinical_nutrition.domain.plans import FoodItem, WeeklyPlan
from clinical_nutrition.services.plan_editing import (
    PlanEditError,
    add_food,
    build_day,
    build_meal,
    change_quantity,
    remove_food,
    replace_day,
)
from tests.conftest import make_food


def _day():  # type: ignore[no-untyped-def]
    rice = make_food("rice", "White rice", FoodCategory.CARBOHYDRATE, 130, 2.7, 28)
    item = FoodItem(id="item-1", food=rice, quantity_g=200, category=rice.category)
    return build_day("Monday", [build_meal("lunch", [item], target_calories=500)])


def test_add_food_defaults_to_100_g() -> None:
    chicken = make_food("chicken", "Chicken", FoodCategory.PROTEIN, 165, 31, 0, 3.6)

    day = add_food(_day(), 0, chicken)

    added = day.meals[0].items[-1]
    assert added.quantity_g == 100
    assert day.stats.calories == pytest.approx(260 + 165)
    assert day.meals[0].stats == day.stats


def test_change_quantity_recomputes_stats() -> None:
    day = change_quantity(_day(), 0, "item-1", 100)

    assert day.meals[0].items[0].quantity_g == 100
    assert day.stats.calories == pytest.approx(130)
    assert day.meals[0].target_calories == 500


def test_remove_food() -> None:
    day = remove_food(_day(), 0, "item-1")

    assert day.meals[0].items == []
    assert day.stats.calories == 0


def test_invalid_edits_raise() -> None:
    with pytest.raises(PlanEditError):
        remove_food(_day(), 0, "missing")
    with pytest.raises(PlanEditError):
        change_quantity(_day(), 0, "item-1", 0)
    with pytest.raises(PlanEditError):
        change_quantity(_day(), 3, "item-1", 50)


def test_replace_day() -> None:
    week = WeeklyPlan(days=[_day(), _day()])
    edited = remove_food(week.days[1], 0, "item-1")

    updated = replace_day(week, 1, edited)

    assert updated.days[1] == edited
    assert updated.days[0] == week.days[0]
    with pytest.raises(PlanEditError):
        replace_day(week, 7, edited)
