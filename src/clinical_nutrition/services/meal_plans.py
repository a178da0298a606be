"""Daily and weekly meal plan generation.

Selection is greedy and deterministic: candidates are ranked by whether the
patient likes them, then by how closely their macro split matches the daily
goal, then by name. Hard exclusions (allergies, pathology bans, dislikes,
infant bans) are applied to the whole catalog before any ranking. A
shortfall never raises; it is reported through plan warnings.
"""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from clinical_nutrition.domain.foods import Food, FoodCategory
from clinical_nutrition.domain.goals import (
    ClinicalWarning,
    NutritionalGoals,
    WarningSeverity,
)
from clinical_nutrition.domain.patients import AllergySeverity, MealMoment
from clinical_nutrition.domain.plans import (
    DailyPlan,
    FoodItem,
    Meal,
    MealPlanPreferences,
    WeeklyPlan,
)
from clinical_nutrition.services.interactions import check_food, medication_warnings
from clinical_nutrition.services.plan_editing import build_day, build_meal

_logger = logging.getLogger(__name__)

WEEK_DAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

ALLERGEN_DERIVATIVES: dict[str, tuple[str, ...]] = {
    "dairy": (
        "dairy",
        "milk",
        "cheese",
        "yogurt",
        "yoghurt",
        "butter",
        "cream",
        "casein",
        "whey",
        "lactose",
        "curd",
        "kefir",
        "ice cream",
        "ricotta",
    ),
    "egg": ("egg", "mayonnaise", "albumin", "ovalbumin", "lecithin", "meringue"),
    "peanut": ("peanut", "groundnut", "peanut butter"),
    "tree nuts": (
        "tree nut",
        "nuts",
        "walnut",
        "almond",
        "hazelnut",
        "chestnut",
        "pistachio",
        "pecan",
        "cashew",
        "macadamia",
        "brazil nut",
    ),
    "wheat": (
        "wheat",
        "flour",
        "bread",
        "noodle",
        "pasta",
        "cracker",
        "semolina",
        "couscous",
        "bran",
    ),
    "gluten": ("wheat", "oat", "barley", "rye", "spelt", "kamut", "gluten", "seitan"),
    "shellfish": (
        "shellfish",
        "shrimp",
        "prawn",
        "crab",
        "lobster",
        "mussel",
        "clam",
        "oyster",
        "squid",
        "octopus",
        "scallop",
    ),
    "fish": (
        "fish",
        "tuna",
        "salmon",
        "tilapia",
        "bonito",
        "mackerel",
        "anchovy",
        "sardine",
        "trout",
        "cod",
    ),
    "soy": ("soy", "soya", "tofu", "tempeh", "edamame", "miso"),
    "sesame": ("sesame", "tahini"),
}

ALLERGEN_DIRECT_TERMS: dict[str, tuple[str, ...]] = {
    "dairy": ("milk", "cheese", "yogurt"),
    "egg": ("egg",),
    "peanut": ("peanut",),
    "tree nuts": ("walnut", "almond", "pecan"),
    "wheat": ("wheat",),
    "gluten": ("wheat", "gluten"),
    "shellfish": ("shrimp", "prawn", "shellfish"),
    "fish": ("fish", "tuna"),
    "soy": ("soy", "soya"),
    "sesame": ("sesame",),
}

# Keyword found in the pathology name -> banned food-name terms.
PATHOLOGY_BANS: dict[str, tuple[str, ...]] = {
    "diabetes": (
        "sugar",
        "honey",
        "syrup",
        "candy",
        "jam",
        "soda",
        "soft drink",
        "nectar",
        "pastry",
        "molasses",
    ),
    "hypertension": (
        "salt",
        "sodium",
        "soy sauce",
        "canned",
        "sausage",
        "hot dog",
        "chorizo",
        "ham",
        "bacon",
        "bouillon",
        "stock cube",
    ),
    "renal": (
        "banana",
        "orange",
        "tomato",
        "spinach",
        "chard",
        "avocado",
        "nut",
        "pecan",
        "walnut",
        "almond",
        "peanut",
        "chocolate",
        "cocoa",
        "whole grain",
        "whole wheat",
        "bran",
    ),
    "celiac": (
        "wheat",
        "oat",
        "barley",
        "rye",
        "bread",
        "noodle",
        "pasta",
        "spaghetti",
        "flour",
        "cracker",
        "semolina",
        "couscous",
        "beer",
        "malt",
    ),
    "dyslipidemia": (
        "butter",
        "lard",
        "bacon",
        "pork",
        "crackling",
        "skin",
        "whole milk",
        "fried",
        "palm oil",
        "coconut",
    ),
    "obesity": ("sugar", "honey", "fried", "soda", "cookie", "candy", "chocolate"),
    "gastritis": (
        "chili",
        "pepper",
        "cumin",
        "lemon",
        "coffee",
        "alcohol",
        "beer",
        "wine",
        "soda",
        "chocolate",
        "fried",
        "citrus",
        "orange",
    ),
    "reflux": (
        "chili",
        "pepper",
        "cumin",
        "lemon",
        "coffee",
        "alcohol",
        "beer",
        "wine",
        "soda",
        "chocolate",
        "mint",
        "tomato",
        "citrus",
    ),
    "hypothyroid": (
        "soy",
        "tofu",
        "edamame",
        "miso",
        "tempeh",
        "raw cabbage",
        "raw broccoli",
        "raw cauliflower",
        "turnip",
        "radish",
        "flaxseed",
    ),
    "hyperthyroid": (
        "seaweed",
        "nori",
        "kombu",
        "wakame",
        "kelp",
        "shellfish",
        "shrimp",
        "prawn",
        "crab",
        "lobster",
        "mussel",
        "clam",
        "octopus",
        "squid",
        "coffee",
        "black tea",
        "energy drink",
        "chocolate",
        "cocoa",
    ),
    "pcos": (
        "sugar",
        "honey",
        "syrup",
        "candy",
        "soda",
        "cookie",
        "white bread",
        "white rice",
        "whole milk",
        "cream",
        "ice cream",
        "fried",
    ),
    "anemia": ("coffee", "tea", "cola", "soda", "chocolate", "bran"),
}

# Pathology keyword -> (nutrient field, upper limit per 100 g).
PATHOLOGY_NUTRIENT_LIMITS: dict[str, tuple[str, float]] = {
    "renal": ("potassium_mg", 300.0),
    "hypertension": ("sodium_mg", 600.0),
}

_PATHOLOGY_ALIASES: dict[str, str] = {
    "kidney": "renal",
    "ckd": "renal",
    "coeliac": "celiac",
    "cholesterol": "dyslipidemia",
    "gerd": "reflux",
    "polycystic": "pcos",
    "anaemia": "anemia",
}

INFANT_BANS = (
    "honey",
    "salt",
    "sugar",
    "sausage",
    "ham",
    "hot dog",
    "juice",
    "whole milk",
    "soda",
)

HARD_CAPS_BY_NAME: tuple[tuple[str, float], ...] = (
    ("oat", 80),
    ("rice", 250),
    ("potato", 250),
    ("pasta", 200),
    ("noodle", 200),
    ("spaghetti", 200),
    ("bread", 120),
    ("egg", 150),
)
HARD_CAPS_BY_CATEGORY: dict[FoodCategory, float] = {
    FoodCategory.FRUIT: 200,
    FoodCategory.DAIRY: 250,
    FoodCategory.FAT: 15,
    FoodCategory.VEGETABLE: 150,
    FoodCategory.PROTEIN: 180,
}
DEFAULT_HARD_CAP = 500.0
MIN_PORTION_G = 15.0
PORTION_STEP_G = 5.0

CALIBRATION_PASSES = 10
CALIBRATION_TOLERANCE = 0.02
FINAL_TOLERANCE = 0.05
PROTEIN_TOLERANCE = 0.15
MIN_SAFE_DAILY_KCAL = 400
PEDIATRIC_MIN_KCAL = 1000
GASTRIC_LIMITS_ML = {"pediatric": 300, "geriatric": 400, "adult": 600}
GASTRIC_MARGIN_ML = 50
VOLUME_PER_GRAM_ML = 1.2
IRON_RICH_MG = 2.5
CALCIUM_RICH_MG = 100.0
ROTATION_WINDOW = 3

# Meal slot templates: (category, share of the meal's calories).
_BREAKFAST_SLOTS = (
    (FoodCategory.DAIRY, 0.30),
    (FoodCategory.CARBOHYDRATE, 0.40),
    (FoodCategory.FRUIT, 0.30),
)
_MAIN_SLOTS = (
    (FoodCategory.PROTEIN, 0.35),
    (FoodCategory.CARBOHYDRATE, 0.35),
    (FoodCategory.VEGETABLE, 0.15),
    (FoodCategory.FAT, 0.15),
)
_SNACK_SLOTS = (
    (FoodCategory.FRUIT, 0.50),
    (FoodCategory.DAIRY, 0.50),
)


@dataclass(frozen=True)
class _Exclusions:
    allowed: list[Food]
    warnings: list[ClinicalWarning]


def generate_daily_plan(
    goals: NutritionalGoals,
    catalog: Sequence[Food],
    day_label: str,
    preferences: MealPlanPreferences | None = None,
    *,
    day_index: int = 0,
) -> DailyPlan:
    """Assemble one day of meals approximating the goals.

    ``day_index`` rotates among the best-ranked candidates so consecutive
    days differ while staying reproducible.
    """
    prefs = preferences or MealPlanPreferences()
    exclusions = filter_catalog(catalog, prefs)
    warnings = list(exclusions.warnings)
    pool = sorted(exclusions.allowed, key=lambda food: (food.name.lower(), food.id))

    if goals.calories < MIN_SAFE_DAILY_KCAL:
        warnings.append(
            ClinicalWarning(
                WarningSeverity.CRITICAL,
                f"Daily target of {goals.calories:.0f} kcal is below "
                f"{MIN_SAFE_DAILY_KCAL} kcal; review the prescription.",
            )
        )
    age = prefs.age_years
    if age is not None and 1 < age < 12 and goals.calories < PEDIATRIC_MIN_KCAL:
        warnings.append(
            ClinicalWarning(
                WarningSeverity.MODERATE,
                f"Daily target of {goals.calories:.0f} kcal may be insufficient "
                f"for a {age}-year-old child.",
            )
        )
    if not pool:
        warnings.append(
            ClinicalWarning(
                WarningSeverity.CRITICAL,
                "No catalog food passed the safety filters; the plan is empty.",
            )
        )
        _logger.warning("Empty food pool for %s", day_label)

    liked = [term.lower() for term in prefs.liked_foods]
    used: set[str] = set()
    meals: list[Meal] = []
    for moment in active_moments(prefs.meal_moments):
        target = goals.calories * moment.ratio
        items: list[FoodItem] = []
        for slot_index, (category, share) in enumerate(_slots_for(moment.name)):
            food = _pick_food(pool, category, goals, liked, used, day_index)
            if food is None:
                if pool:
                    warnings.append(
                        ClinicalWarning(
                            WarningSeverity.MODERATE,
                            f"No eligible {category.value} food for {moment.name}.",
                        )
                    )
                continue
            used.add(food.id)
            items.append(
                FoodItem(
                    id=f"{day_label}-{len(meals)}-{slot_index}-{food.id}",
                    food=food,
                    quantity_g=_portion_for(food, target * share),
                    category=food.category,
                )
            )
        meals.append(build_meal(moment.name, items, target_calories=target))

    meals = _calibrate(meals, goals.calories)
    day = build_day(day_label, meals)
    warnings.extend(_review_day(day, goals, age))
    return build_day(day_label, day.meals, warnings)


def generate_weekly_plan(
    goals: NutritionalGoals,
    catalog: Sequence[Food],
    preferences: MealPlanPreferences | None = None,
) -> WeeklyPlan:
    """Generate seven daily plans, Monday to Sunday."""
    days = [
        generate_daily_plan(goals, catalog, label, preferences, day_index=index)
        for index, label in enumerate(WEEK_DAYS)
    ]
    return WeeklyPlan(days=days, warnings=list(goals.warnings))


def filter_catalog(
    catalog: Sequence[Food], preferences: MealPlanPreferences
) -> _Exclusions:
    """Remove every food excluded by a hard constraint."""
    banned: list[str] = []
    warnings: list[ClinicalWarning] = []
    for allergy in preferences.allergies:
        key = allergy.allergen.strip().lower()
        if allergy.severity == AllergySeverity.FATAL:
            terms = tuple(
                dict.fromkeys(
                    (
                        key,
                        *ALLERGEN_DERIVATIVES.get(key, ()),
                        *ALLERGEN_DIRECT_TERMS.get(key, ()),
                    )
                )
            )
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.CRITICAL,
                    f"Fatal allergy to {allergy.allergen}: {len(terms)} ingredient "
                    "terms and derivatives excluded.",
                )
            )
        elif allergy.severity == AllergySeverity.INTOLERANCE:
            terms = ALLERGEN_DIRECT_TERMS.get(key, (key,))
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.MODERATE,
                    f"Intolerance to {allergy.allergen}: direct sources excluded.",
                )
            )
        else:
            terms = (key,)
        banned.extend(terms)

    limits: list[tuple[str, float]] = []
    for pathology in preferences.pathologies:
        for key in _pathology_keys(pathology):
            banned.extend(PATHOLOGY_BANS[key])
            if key in PATHOLOGY_NUTRIENT_LIMITS:
                limits.append(PATHOLOGY_NUTRIENT_LIMITS[key])

    if preferences.age_years is not None and preferences.age_years < 1:
        banned.extend(INFANT_BANS)

    banned.extend(term.lower() for term in preferences.disliked_foods)
    patterns = [_term_pattern(term) for term in dict.fromkeys(banned) if term]
    allowed = [
        food
        for food in catalog
        if not any(pattern.search(food.name.lower()) for pattern in patterns)
        and not any(
            getattr(food.nutrients, nutrient) > limit for nutrient, limit in limits
        )
    ]

    if preferences.medications:
        warnings.extend(medication_warnings(preferences.medications))
        safe = [
            food
            for food in allowed
            if check_food(food.name, preferences.medications).critical_count == 0
        ]
        removed = len(allowed) - len(safe)
        if removed:
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.CRITICAL,
                    f"Drug-food interaction: {removed} foods excluded for the "
                    "current medication.",
                )
            )
        allowed = safe

    excluded = len(catalog) - len(allowed)
    if excluded:
        _logger.info("Excluded %s of %s catalog foods", excluded, len(catalog))
    return _Exclusions(allowed=allowed, warnings=warnings)


def active_moments(moments: Sequence[MealMoment]) -> list[MealMoment]:
    """Return enabled moments with ratios normalized to sum to 1.0."""
    enabled = [moment for moment in moments if moment.enabled and moment.ratio > 0]
    if not enabled:
        return [MealMoment(name="Full day", ratio=1.0)]
    total = sum(moment.ratio for moment in enabled)
    return [
        MealMoment(name=moment.name, ratio=moment.ratio / total) for moment in enabled
    ]


def hard_cap(food: Food) -> float:
    """Largest realistic raw portion of a food, in grams."""
    name = food.name.lower()
    for pattern, cap in HARD_CAPS_BY_NAME:
        if _term_pattern(pattern).search(name):
            return cap
    return HARD_CAPS_BY_CATEGORY.get(food.category, DEFAULT_HARD_CAP)


def _slots_for(moment_name: str) -> tuple[tuple[FoodCategory, float], ...]:
    name = moment_name.lower()
    if "breakfast" in name:
        return _BREAKFAST_SLOTS
    if "snack" in name:
        return _SNACK_SLOTS
    return _MAIN_SLOTS


def _pick_food(  # noqa: PLR0913
    pool: list[Food],
    category: FoodCategory,
    goals: NutritionalGoals,
    liked: list[str],
    used: set[str],
    day_index: int,
) -> Food | None:
    candidates = [food for food in pool if food.category == category]
    if not candidates:
        return None
    fresh = [food for food in candidates if food.id not in used] or candidates

    def rank(food: Food) -> tuple[int, float, str]:
        is_liked = any(term in food.name.lower() for term in liked)
        return (0 if is_liked else 1, _macro_distance(food, goals), food.name.lower())

    ranked = sorted(fresh, key=rank)
    liked_count = sum(1 for food in ranked if rank(food)[0] == 0)
    window = liked_count or min(len(ranked), ROTATION_WINDOW)
    return ranked[day_index % window]


def _macro_distance(food: Food, goals: NutritionalGoals) -> float:
    """Distance between a food's energy split and the goal's macro split."""
    nutrients = food.nutrients
    energy = nutrients.protein_g * 4 + nutrients.carbs_g * 4 + nutrients.fat_g * 9
    if energy <= 0:
        return 3.0
    protein = nutrients.protein_g * 4 / energy * 100
    carbs = nutrients.carbs_g * 4 / energy * 100
    fat = nutrients.fat_g * 9 / energy * 100
    return (
        abs(protein - goals.protein_percent)
        + abs(carbs - goals.carbs_percent)
        + abs(fat - goals.fat_percent)
    ) / 100


def _portion_for(food: Food, kcal: float) -> float:
    per_gram = food.nutrients.calories / 100
    if per_gram <= 0:
        return _bounded(100.0, food)
    return _bounded(kcal / per_gram, food)


def _bounded(quantity: float, food: Food) -> float:
    cap = hard_cap(food)
    rounded = round(quantity / PORTION_STEP_G) * PORTION_STEP_G
    return float(min(max(rounded, MIN_PORTION_G), cap))


def _calibrate(meals: list[Meal], target: float) -> list[Meal]:
    """Scale portions toward the daily calorie target within portion bounds."""
    if target <= 0:
        return meals
    for _ in range(CALIBRATION_PASSES):
        total = sum(meal.stats.calories for meal in meals)
        if total <= 0 or abs(total - target) / target <= CALIBRATION_TOLERANCE:
            break
        ratio = target / total
        changed = False
        scaled: list[Meal] = []
        for meal in meals:
            items = []
            for item in meal.items:
                quantity = _bounded(item.quantity_g * ratio, item.food)
                if quantity != item.quantity_g:
                    changed = True
                items.append(
                    FoodItem(
                        id=item.id,
                        food=item.food,
                        quantity_g=quantity,
                        category=item.category,
                    )
                )
            scaled.append(build_meal(meal.name, items, meal.target_calories))
        meals = scaled
        if not changed:
            break
    return meals


def _review_day(
    day: DailyPlan, goals: NutritionalGoals, age: int | None
) -> list[ClinicalWarning]:
    warnings: list[ClinicalWarning] = []
    calories = day.stats.calories
    if goals.calories > 0 and calories > 0:
        deviation = (calories - goals.calories) / goals.calories
        if abs(deviation) > FINAL_TOLERANCE:
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.MODERATE,
                    f"{day.day}: {calories:.0f} kcal planned against a target of "
                    f"{goals.calories:.0f} kcal ({deviation:+.0%}). "
                    "The catalog could not cover the target within portion limits.",
                )
            )
    if goals.protein_g > 0 and calories > 0:
        protein_gap = (day.stats.protein_g - goals.protein_g) / goals.protein_g
        if abs(protein_gap) > PROTEIN_TOLERANCE:
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.MODERATE,
                    f"{day.day}: protein {day.stats.protein_g:.0f} g against a "
                    f"target of {goals.protein_g:.0f} g ({protein_gap:+.0%}).",
                )
            )

    limit = GASTRIC_LIMITS_ML[_population(age)]
    for meal in day.meals:
        volume = sum(item.quantity_g for item in meal.items) * VOLUME_PER_GRAM_ML
        if volume > limit + GASTRIC_MARGIN_ML:
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.MODERATE,
                    f"{day.day} {meal.name}: about {volume:.0f} mL exceeds the "
                    f"{limit} mL gastric capacity guide; consider splitting it.",
                )
            )
        iron_rich = any(
            item.food.nutrients.iron_mg >= IRON_RICH_MG for item in meal.items
        )
        calcium_rich = any(
            item.food.nutrients.calcium_mg >= CALCIUM_RICH_MG for item in meal.items
        )
        if iron_rich and calcium_rich:
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.INFO,
                    f"{day.day} {meal.name}: iron-rich and calcium-rich foods "
                    "together reduce iron absorption.",
                )
            )
    return warnings


def _population(age: int | None) -> str:
    if age is not None and age < 12:
        return "pediatric"
    if age is not None and age >= 60:
        return "geriatric"
    return "adult"


def _pathology_keys(pathology: str) -> list[str]:
    name = pathology.strip().lower()
    keys = [key for key in PATHOLOGY_BANS if key in name]
    keys.extend(key for alias, key in _PATHOLOGY_ALIASES.items() if alias in name)
    return list(dict.fromkeys(keys))


def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term.lower())}")
