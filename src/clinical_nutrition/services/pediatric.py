"""Complementary feeding guidance for children under three years."""

import logging
import re

from clinical_nutrition.domain.patients import LactationType
from clinical_nutrition.domain.protocols import MealTexture, PediatricNutritionPlan

_logger = logging.getLogger(__name__)

FORBIDDEN_UNDER_ONE_YEAR = [
    "Added salt",
    "Added sugar",
    "Honey",
    "Whole cow's milk",
    "Watery broths and soups",
    "Packaged juices",
    "Cookies and ultra-processed snacks",
    "Cured meats (ham, sausage, hot dog)",
    "Sodas and sweetened drinks",
    "Whole nuts and seeds",
]

FORBIDDEN_REASONS = [
    "Honey can carry Clostridium botulinum spores (infant botulism).",
    "Salt overloads immature kidneys.",
    "Sugar builds a preference for sweet taste and raises caries risk.",
    "Cow's milk is low in iron and can cause intestinal micro-bleeding.",
    "Broths fill the stomach without providing enough nutrients.",
    "Whole nuts and hard pieces are a choking hazard.",
]

EARLY_INFANCY_FORBIDDEN = [
    "Water",
    "Herbal infusions",
    "Juices",
    "Any solid or semi-solid food",
]

IRON_RICH_FOODS = [
    "Chicken blood",
    "Liver (chicken or beef)",
    "Spleen",
    "Lung",
    "Dark-fleshed fish (bonito, mackerel)",
    "Heart",
    "Egg yolk",
    "Ground beef",
    "Shredded chicken",
    "Mashed lentils",
]

TEXTURES: dict[int, MealTexture] = {
    6: MealTexture(
        "Thick purees and mashes",
        ["Mashed potato with liver", "Pumpkin puree", "Mashed banana"],
    ),
    7: MealTexture(
        "Thick mashes with soft lumps",
        ["Mashed lentils", "Mashed egg yolk", "Fork-crushed avocado"],
    ),
    8: MealTexture(
        "Mashed and crushed foods",
        ["Crushed rice with chicken", "Mashed vegetables with fish"],
    ),
    9: MealTexture(
        "Finely chopped foods",
        ["Finely chopped chicken", "Soft cooked carrot pieces", "Fish flakes"],
    ),
    10: MealTexture(
        "Chopped pieces and finger foods",
        ["Cooked vegetable sticks", "Soft fruit pieces", "Shredded meat"],
    ),
    11: MealTexture(
        "Small pieces close to family food",
        ["Rice with shredded chicken", "Chopped stews", "Whole egg"],
    ),
}

FAMILY_TEXTURE = MealTexture(
    "Family pot food cut into small pieces",
    ["Family stews", "Rice with legumes", "Chopped salads", "Whole fruit pieces"],
)

_UNSAFE_UNDER_ONE_YEAR = [
    re.compile(pattern)
    for pattern in (
        r"\bhoney\b",
        r"\bsalt(ed)?\b",
        r"\bsugar\b",
        r"\bcandy\b",
        r"\bcow'?s milk\b",
        r"\bwhole milk\b",
        r"\bham\b",
        r"\bsausage",
        r"\bbacon\b",
        r"\bhot ?dog",
        r"\bsalami\b",
        r"\bnuts?\b",
        r"\bpeanuts?\b",
        r"\balmonds?\b",
        r"\bwalnuts?\b",
        r"\bsoda\b",
    )
]


def generate_pediatric_plan(
    age_months: int,
    lactation_type: LactationType = LactationType.BREAST,
    has_iron_supplementation: bool = False,
) -> PediatricNutritionPlan:
    """Return feeding guidance for the child's age bracket."""
    age_months = max(0, int(age_months))
    if age_months < 6:
        return _early_infancy_plan(
            age_months, lactation_type, has_iron_supplementation
        )
    if age_months < 12:
        return _complementary_plan(age_months, lactation_type)
    return _family_plan(age_months, lactation_type)


def is_food_safe_for_age(food_name: str, age_months: int) -> bool:
    """Whether a food may be offered at the given age."""
    if age_months < 6:
        return False
    if age_months >= 12:
        return True
    name = food_name.lower()
    return not any(pattern.search(name) for pattern in _UNSAFE_UNDER_ONE_YEAR)


def age_bracket(age_months: int) -> str:
    if age_months < 6:
        return "0-6"
    if age_months < 9:
        return "6-9"
    if age_months < 12:
        return "9-12"
    if age_months < 24:
        return "12-24"
    return "24-36"


def _early_infancy_plan(
    age_months: int, lactation_type: LactationType, has_iron_supplementation: bool
) -> PediatricNutritionPlan:
    if lactation_type == LactationType.BREAST:
        recommendation = (
            "Exclusive breastfeeding on demand, day and night. "
            "No other food or liquid is needed."
        )
    elif lactation_type == LactationType.MIXED:
        recommendation = (
            "Increase the number of breastfeeds to build milk supply; "
            "offer formula only as the pediatrician prescribed."
        )
    else:
        recommendation = (
            "Follow the pediatrician's formula prescription. Prepare each bottle "
            "with boiled water and exact measures."
        )

    if age_months < 1:
        frequency = "8-12 feeds per day"
    elif age_months < 3:
        frequency = "7-9 feeds per day"
    else:
        frequency = "6-8 feeds per day"

    alerts: list[str] = []
    if lactation_type == LactationType.FORMULA:
        alerts.append("Check that the formula is an infant (0-6 months) formula.")
    if age_months >= 4 and not has_iron_supplementation:
        alerts.append(
            "Iron drops should start at 4 months; confirm supplementation "
            "with the health center."
        )

    return PediatricNutritionPlan(
        age_months=age_months,
        lactation_type=lactation_type,
        age_bracket=age_bracket(age_months),
        breastfeeding_recommendation=recommendation,
        breastfeeding_frequency=frequency,
        iron_rich_foods=[],
        forbidden_foods=[*EARLY_INFANCY_FORBIDDEN, *FORBIDDEN_UNDER_ONE_YEAR],
        forbidden_reasons=list(FORBIDDEN_REASONS),
        alerts=alerts,
    )


def _complementary_plan(
    age_months: int, lactation_type: LactationType
) -> PediatricNutritionPlan:
    if age_months == 6:
        meal_frequency = "2 meals per day"
    elif age_months < 9:
        meal_frequency = "3 meals per day"
    else:
        meal_frequency = "3 meals and 1 snack per day"
    portion = "5-7 spoonfuls" if age_months >= 9 else "3-5 spoonfuls"

    alerts = [
        "Offer 2 spoonfuls of iron-rich food every day.",
        "Egg and fish can be offered from 6 months.",
        "Plain yogurt and fresh cheese are allowed.",
    ]
    if age_months == 6:
        alerts.insert(
            0, "The first month is for learning: be patient with small amounts."
        )
    if age_months >= 9:
        alerts.append("Encourage finger foods so the child eats independently.")

    return PediatricNutritionPlan(
        age_months=age_months,
        lactation_type=lactation_type,
        age_bracket=age_bracket(age_months),
        breastfeeding_recommendation=(
            "Continue breastfeeding on demand after the meals."
        ),
        breastfeeding_frequency="On demand",
        iron_rich_foods=list(IRON_RICH_FOODS),
        forbidden_foods=list(FORBIDDEN_UNDER_ONE_YEAR),
        forbidden_reasons=list(FORBIDDEN_REASONS),
        alerts=alerts,
        texture=TEXTURES[age_months],
        meal_frequency=meal_frequency,
        portion_size=portion,
    )


def _family_plan(
    age_months: int, lactation_type: LactationType
) -> PediatricNutritionPlan:
    if age_months > 36:
        _logger.info("Age %s months is past 36; using the 24-36 bracket", age_months)
    return PediatricNutritionPlan(
        age_months=age_months,
        lactation_type=lactation_type,
        age_bracket=age_bracket(age_months),
        breastfeeding_recommendation="Continue breastfeeding up to 2 years or more.",
        breastfeeding_frequency="On demand",
        iron_rich_foods=list(IRON_RICH_FOODS),
        forbidden_foods=[
            "Sodas and sweetened drinks",
            "Cookies and ultra-processed snacks",
            "Whole nuts and hard candies",
        ],
        forbidden_reasons=[
            "Sugary drinks displace nutritious foods and raise caries risk.",
            "Whole nuts and hard pieces are a choking hazard.",
        ],
        alerts=[
            "The child joins family meals.",
            "Cow's milk is allowed from 1 year, up to 500 mL per day.",
            "Keep 2 spoonfuls of iron-rich food every day.",
        ],
        texture=FAMILY_TEXTURE,
        meal_frequency="3 meals and 2 snacks per day",
        portion_size="7-10 spoonfuls",
    )
