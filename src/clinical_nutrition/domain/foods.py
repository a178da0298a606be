"""Food catalog models."""

from dataclasses import dataclass, fields
from enum import StrEnum


class FoodCategory(StrEnum):
    PROTEIN = "protein"
    CARBOHYDRATE = "carbohydrate"
    FAT = "fat"
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    DAIRY = "dairy"
    MISC = "misc"


@dataclass(frozen=True)
class NutrientProfile:
    """Nutrient amounts: per 100 g on a food, absolute on totals.

    Calories in kcal; macros and fiber in g; calcium, phosphorus, zinc,
    iron, thiamin, riboflavin, niacin, vitamin C, sodium and potassium in
    mg; vitamin A and folate in micrograms.
    """

    calories: float = 0.0
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    fiber_g: float = 0.0
    calcium_mg: float = 0.0
    phosphorus_mg: float = 0.0
    zinc_mg: float = 0.0
    iron_mg: float = 0.0
    vitamin_a_ug: float = 0.0
    thiamin_mg: float = 0.0
    riboflavin_mg: float = 0.0
    niacin_mg: float = 0.0
    vitamin_c_mg: float = 0.0
    folate_ug: float = 0.0
    sodium_mg: float = 0.0
    potassium_mg: float = 0.0

    def scaled(self, factor: float) -> "NutrientProfile":
        return NutrientProfile(
            **{name: getattr(self, name) * factor for name in NUTRIENT_FIELDS}
        )

    def __add__(self, other: "NutrientProfile") -> "NutrientProfile":
        return NutrientProfile(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in NUTRIENT_FIELDS
            }
        )


NUTRIENT_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(NutrientProfile))


@dataclass(frozen=True)
class Food:
    """Catalog entry with a per-100 g nutrient profile.

    ``waste_factor`` is the edible share of the purchased weight (0-1].
    """

    id: str
    name: str
    category: FoodCategory
    nutrients: NutrientProfile
    waste_factor: float = 1.0
