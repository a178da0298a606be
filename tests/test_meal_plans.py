"""Tests for meal plan generation."""

from dataclasses import replace

import pytest

from clinical_nutrition.domain.foods import NUTRIENT_FIELDS, FoodCategory
from clinical_nutrition.domain.goals import ClinicalWarning, WarningSeverity
from clinical_nutrition.domain.patients import Allergy, AllergySeverity, MealMoment
from clinical_nutrition.domain.plans import MealPlanPreferences
from clinical_nutrition.services.meal_plans import (
    WEEK_DAYS,
    active_moments,
    filter_catalog,
    generate_daily_plan,
    generate_weekly_plan,
    hard_cap,
)
from tests.conftest import make_food, make_goals, sample_foods


def _food_names(plan) -> set[str]:  # type: ignore[no-untyped-def]
    return {item.food.name for meal in plan.meals for item in meal.items}


def test_fatal_dairy_allergy_excludes_derivatives() -> None:
    prefs = MealPlanPreferences(allergies=[Allergy("dairy", AllergySeverity.FATAL)])

    week = generate_weekly_plan(make_goals(), sample_foods(), prefs)

    for day in week.days:
        names = " ".join(_food_names(day)).lower()
        assert "milk" not in names
        assert "yogurt" not in names
        assert "cheese" not in names
        assert any(
            warning.severity == WarningSeverity.CRITICAL for warning in day.warnings
        )
        assert any("No eligible dairy" in warning.message for warning in day.warnings)


def test_intolerance_and_preference_exclusions() -> None:
    prefs = MealPlanPreferences(
        allergies=[
            Allergy("egg", AllergySeverity.INTOLERANCE),
            Allergy("spinach", AllergySeverity.PREFERENCE),
        ]
    )

    result = filter_catalog(sample_foods(), prefs)

    names = {food.name for food in result.allowed}
    assert "Egg" not in names
    assert "Spinach" not in names
    assert [warning.severity for warning in result.warnings] == [
        WarningSeverity.MODERATE
    ]


def test_pathology_bans() -> None:
    prefs = MealPlanPreferences(pathologies=["Type 2 diabetes", "Chronic kidney"])

    names = {food.name for food in filter_catalog(sample_foods(), prefs).allowed}

    assert "Honey" not in names
    assert "Banana" not in names
    assert "Orange" not in names
    assert "Apple" in names


def test_infant_bans() -> None:
    prefs = MealPlanPreferences(age_years=0)

    names = {food.name for food in filter_catalog(sample_foods(), prefs).allowed}

    assert "Honey" not in names


def test_terms_match_word_starts_only() -> None:
    catalog = [
        make_food("goat", "Goat cheese", FoodCategory.DAIRY, 364, 22, 0, 30),
        make_food("oats", "Rolled oats", FoodCategory.CARBOHYDRATE, 389, 17, 66, 7),
    ]
    prefs = MealPlanPreferences(disliked_foods=["oat"])

    names = {food.name for food in filter_catalog(catalog, prefs).allowed}

    assert names == {"Goat cheese"}


def test_stats_are_aggregated_from_items() -> None:
    week = generate_weekly_plan(make_goals(), sample_foods())

    for day in week.days:
        for meal in day.meals:
            for name in NUTRIENT_FIELDS:
                expected = sum(getattr(item.nutrients, name) for item in meal.items)
                assert getattr(meal.stats, name) == pytest.approx(expected, abs=1e-6)
        for name in NUTRIENT_FIELDS:
            expected = sum(getattr(meal.stats, name) for meal in day.meals)
            assert getattr(day.stats, name) == pytest.approx(expected, abs=1e-6)


def test_generation_is_deterministic() -> None:
    first = generate_weekly_plan(make_goals(), sample_foods())
    second = generate_weekly_plan(make_goals(), list(reversed(sample_foods())))

    assert first == second


def test_week_has_seven_labelled_days_that_rotate() -> None:
    week = generate_weekly_plan(make_goals(), sample_foods())

    assert [day.day for day in week.days] == list(WEEK_DAYS)
    assert _food_names(week.days[0]) != _food_names(week.days[1])


def test_liked_food_is_ranked_first() -> None:
    prefs = MealPlanPreferences(liked_foods=["salmon"])

    week = generate_weekly_plan(make_goals(), sample_foods(), prefs)

    for day in week.days:
        lunch = next(meal for meal in day.meals if meal.name == "lunch")
        proteins = [
            item for item in lunch.items if item.category == FoodCategory.PROTEIN
        ]
        assert proteins[0].food.name == "Salmon fillet"


def test_portions_respect_bounds() -> None:
    day = generate_daily_plan(make_goals(3500), sample_foods(), "Monday")

    for meal in day.meals:
        for item in meal.items:
            assert 15 <= item.quantity_g <= hard_cap(item.food)
            assert item.quantity_g % 5 == 0


def test_calorie_target_is_met_or_reported() -> None:
    goals = make_goals()
    day = generate_daily_plan(goals, sample_foods(), "Monday")

    deviation = abs(day.stats.calories - goals.calories) / goals.calories
    assert deviation <= 0.05 or any(
        "planned against a target" in warning.message for warning in day.warnings
    )


def test_empty_catalog_returns_empty_plan_with_warning() -> None:
    day = generate_daily_plan(make_goals(), [], "Monday")

    assert all(not meal.items for meal in day.meals)
    assert day.stats.calories == 0
    assert any(
        warning.severity == WarningSeverity.CRITICAL
        and "plan is empty" in warning.message
        for warning in day.warnings
    )


def test_very_low_target_is_flagged() -> None:
    day = generate_daily_plan(make_goals(300), sample_foods(), "Monday")

    assert any("below 400 kcal" in warning.message for warning in day.warnings)


def test_disabled_moments_become_full_day() -> None:
    moments = (MealMoment("breakfast", 0.3, enabled=False),)
    prefs = MealPlanPreferences(meal_moments=moments)

    day = generate_daily_plan(make_goals(), sample_foods(), "Monday", prefs)

    assert [meal.name for meal in day.meals] == ["Full day"]


def test_active_moments_are_normalized() -> None:
    moments = active_moments(
        (MealMoment("breakfast", 0.2), MealMoment("lunch", 0.2), MealMoment("x", 0))
    )

    assert [moment.ratio for moment in moments] == [0.5, 0.5]


def test_hard_caps() -> None:
    foods = {food.id: food for food in sample_foods()}

    assert hard_cap(foods["oats"]) == 80
    assert hard_cap(foods["olive-oil"]) == 15
    assert hard_cap(foods["rice"]) == 250
    assert hard_cap(replace(foods["cheese"], name="Goat cheese")) == 250


def test_weekly_plan_carries_goal_warnings() -> None:
    warning = ClinicalWarning(WarningSeverity.INFO, "Fat share kept within 15-40%")
    goals = replace(make_goals(), warnings=[warning])

    week = generate_weekly_plan(goals, sample_foods())

    assert week.warnings == [warning]


def test_combined_pathology_applies_every_ban() -> None:
    catalog = [
        make_food("banana", "Banana", FoodCategory.FRUIT, 89, 1.1, 23, 0.3),
        make_food("honey", "Honey", FoodCategory.MISC, 304, 0.3, 82, 0),
        make_food("apple", "Apple", FoodCategory.FRUIT, 52, 0.3, 14, 0.2),
    ]
    prefs = MealPlanPreferences(pathologies=["Type 2 diabetes with CKD"])

    names = {food.name for food in filter_catalog(catalog, prefs).allowed}

    assert names == {"Apple"}


@pytest.mark.parametrize("allergen", ["shellfish", "tree nuts", "dairy", "egg"])
def test_fatal_allergy_is_at_least_as_strict_as_intolerance(allergen: str) -> None:
    catalog = [
        make_food("soup", "Shellfish soup", FoodCategory.PROTEIN, 60, 8, 3, 1),
        make_food("prawns", "Grilled prawns", FoodCategory.PROTEIN, 99, 24, 0, 0.3),
        make_food("nuts", "Mixed tree nuts", FoodCategory.FAT, 607, 20, 21, 54),
        make_food("walnut", "Walnut halves", FoodCategory.FAT, 654, 15, 14, 65),
        make_food("dessert", "Dairy dessert", FoodCategory.DAIRY, 130, 4, 20, 4),
        make_food("milk", "Skim milk", FoodCategory.DAIRY, 34, 3.4, 5, 0.1),
        make_food("egg", "Egg", FoodCategory.PROTEIN, 155, 13, 1.1, 11),
        make_food("rice", "White rice", FoodCategory.CARBOHYDRATE, 130, 2.7, 28),
    ]

    def allowed(severity: AllergySeverity) -> set[str]:
        prefs = MealPlanPreferences(allergies=[Allergy(allergen, severity)])
        return {food.name for food in filter_catalog(catalog, prefs).allowed}

    fatal = allowed(AllergySeverity.FATAL)
    assert fatal <= allowed(AllergySeverity.INTOLERANCE)
    assert "White rice" in fatal


def test_fatal_allergy_excludes_collective_terms() -> None:
    catalog = [
        make_food("soup", "Shellfish soup", FoodCategory.PROTEIN, 60, 8, 3, 1),
        make_food("nuts", "Mixed tree nuts", FoodCategory.FAT, 607, 20, 21, 54),
        make_food("dessert", "Dairy dessert", FoodCategory.DAIRY, 130, 4, 20, 4),
    ]
    prefs = MealPlanPreferences(
        allergies=[
            Allergy("shellfish", AllergySeverity.FATAL),
            Allergy("tree nuts", AllergySeverity.FATAL),
            Allergy("dairy", AllergySeverity.FATAL),
        ]
    )

    assert filter_catalog(catalog, prefs).allowed == []


def test_renal_patients_exclude_high_potassium_foods() -> None:
    catalog = [
        make_food(
            "potato", "Potato", FoodCategory.CARBOHYDRATE, 77, 2, 17, 0.1,
            potassium_mg=425,
        ),
        make_food(
            "rice", "White rice", FoodCategory.CARBOHYDRATE, 130, 2.7, 28, 0.3,
            potassium_mg=35,
        ),
    ]

    renal = MealPlanPreferences(pathologies=["CKD stage 3"])
    general = MealPlanPreferences()

    assert [food.name for food in filter_catalog(catalog, renal).allowed] == [
        "White rice"
    ]
    assert len(filter_catalog(catalog, general).allowed) == 2


def test_hypertension_excludes_high_sodium_foods() -> None:
    catalog = [
        make_food(
            "olives", "Green olives", FoodCategory.FAT, 145, 1, 4, 15,
            sodium_mg=1556,
        ),
        make_food("apple", "Apple", FoodCategory.FRUIT, 52, 0.3, 14, 0.2, sodium_mg=1),
    ]
    prefs = MealPlanPreferences(pathologies=["Arterial hypertension"])

    names = [food.name for food in filter_catalog(catalog, prefs).allowed]

    assert names == ["Apple"]


def test_critical_drug_interactions_are_excluded() -> None:
    catalog = [
        *sample_foods(),
        make_food("grapefruit", "Grapefruit", FoodCategory.FRUIT, 42, 0.8, 11, 0.1),
    ]
    prefs = MealPlanPreferences(medications=["Coumadin", "Zocor"])

    result = filter_catalog(catalog, prefs)

    names = {food.name for food in result.allowed}
    assert "Spinach" not in names
    assert "Broccoli" not in names
    assert "Grapefruit" not in names
    assert "Carrot" in names
    assert any("Warfarin" in warning.message for warning in result.warnings)
    assert any(
        warning.severity == WarningSeverity.CRITICAL
        and "3 foods excluded" in warning.message
        for warning in result.warnings
    )


def test_moderate_drug_interactions_only_warn() -> None:
    prefs = MealPlanPreferences(medications=["enalapril", "unknown-drug"])

    result = filter_catalog(sample_foods(), prefs)

    assert len(result.allowed) == len(sample_foods())
    assert [warning.severity for warning in result.warnings] == [
        WarningSeverity.MODERATE
    ]
