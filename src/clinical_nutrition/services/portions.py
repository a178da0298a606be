"""Raw, cooked and as-purchased weight conversions.

These figures are informational only. Nutrient totals are always computed
from the raw, as-eaten quantity stored on each plan item.
"""

import re
from enum import StrEnum

from clinical_nutrition.domain.foods import Food, FoodCategory
from clinical_nutrition.domain.plans import FoodItem


class PreparationMethod(StrEnum):
    RAW = "raw"
    BOILED = "boiled"
    GRILLED = "grilled"
    FRIED = "fried"
    SAUTEED = "sauteed"
    BAKED = "baked"
    STEAMED = "steamed"


# Cooked weight / raw weight, by method and category.
COOKING_YIELDS: dict[PreparationMethod, dict[FoodCategory, float]] = {
    PreparationMethod.RAW: {},
    PreparationMethod.BOILED: {
        FoodCategory.PROTEIN: 0.80,
        FoodCategory.CARBOHYDRATE: 2.6,
        FoodCategory.VEGETABLE: 0.85,
    },
    PreparationMethod.GRILLED: {
        FoodCategory.PROTEIN: 0.75,
        FoodCategory.CARBOHYDRATE: 0.90,
        FoodCategory.VEGETABLE: 0.80,
        FoodCategory.MISC: 0.95,
    },
    PreparationMethod.FRIED: {
        FoodCategory.PROTEIN: 0.70,
        FoodCategory.CARBOHYDRATE: 0.85,
        FoodCategory.VEGETABLE: 0.75,
        FoodCategory.MISC: 0.90,
    },
    PreparationMethod.SAUTEED: {
        FoodCategory.PROTEIN: 0.75,
        FoodCategory.CARBOHYDRATE: 0.95,
        FoodCategory.VEGETABLE: 0.85,
        FoodCategory.MISC: 0.95,
    },
    PreparationMethod.BAKED: {
        FoodCategory.PROTEIN: 0.78,
        FoodCategory.CARBOHYDRATE: 0.95,
        FoodCategory.VEGETABLE: 0.82,
        FoodCategory.MISC: 0.95,
    },
    PreparationMethod.STEAMED: {
        FoodCategory.PROTEIN: 0.85,
        FoodCategory.CARBOHYDRATE: 2.5,
        FoodCategory.VEGETABLE: 0.90,
    },
}

UNCOOKED_CATEGORIES = {FoodCategory.FRUIT, FoodCategory.DAIRY, FoodCategory.FAT}
GRAIN_YIELD = 2.8
TUBER_YIELD = 1.05

_ALREADY_COOKED = re.compile(
    r"\b(cooked|boiled|roasted|grilled|fried|baked|steamed|stewed|toasted)\b"
)
_TUBERS = ("potato", "sweet potato", "cassava", "yuca", "yam", "olluco")
_GRAINS = ("rice", "quinoa", "oat", "lentil", "bean", "chickpea", "barley", "pasta")


def cooking_yield(
    food: Food, method: PreparationMethod = PreparationMethod.BOILED
) -> float:
    """Return the cooked/raw weight ratio for a food and preparation method."""
    if food.category in UNCOOKED_CATEGORIES:
        return 1.0
    name = food.name.lower()
    if _ALREADY_COOKED.search(name):
        return 1.0
    if food.category == FoodCategory.CARBOHYDRATE and method in (
        PreparationMethod.BOILED,
        PreparationMethod.STEAMED,
    ):
        if any(term in name for term in _TUBERS):
            return TUBER_YIELD
        if any(term in name for term in _GRAINS):
            return GRAIN_YIELD
    return COOKING_YIELDS[method].get(food.category, 1.0)


def raw_to_cooked(
    raw_g: float, food: Food, method: PreparationMethod = PreparationMethod.BOILED
) -> float:
    return float(round(raw_g * cooking_yield(food, method)))


def raw_to_gross(raw_g: float, food: Food) -> float:
    """As-purchased weight needed for a raw edible weight."""
    waste_factor = food.waste_factor if 0 < food.waste_factor <= 1 else 1.0
    return float(round(raw_g / waste_factor))


def describe_item(
    item: FoodItem, method: PreparationMethod = PreparationMethod.BOILED
) -> dict[str, float | str]:
    """Raw, cooked and gross weights of a plan item for display."""
    return {
        "food": item.food.name,
        "raw_g": item.quantity_g,
        "cooked_g": raw_to_cooked(item.quantity_g, item.food, method),
        "gross_g": raw_to_gross(item.quantity_g, item.food),
    }
