"""Drug-food interaction checks used while filtering the catalog."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from clinical_nutrition.domain.goals import ClinicalWarning, WarningSeverity

_logger = logging.getLogger(__name__)


class InteractionSeverity(StrEnum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    MINOR = "minor"


@dataclass(frozen=True)
class DrugFoodInteraction:
    """Food terms that interact with one generic drug.

    Foods matching ``avoid`` or ``increase_absorption`` of a critical drug are
    removed from the plan; every other match only produces a warning.
    """

    severity: InteractionSeverity
    warning: str
    recommendation: str = ""
    avoid: tuple[str, ...] = ()
    reduce_absorption: tuple[str, ...] = ()
    increase_absorption: tuple[str, ...] = ()
    synergistic_risk: tuple[str, ...] = ()


@dataclass(frozen=True)
class InteractionCheck:
    warnings: list[str] = field(default_factory=list)
    critical_count: int = 0
    moderate_count: int = 0


_VITAMIN_K_GREENS = (
    "spinach",
    "broccoli",
    "cabbage",
    "chard",
    "lettuce",
    "kale",
    "parsley",
    "coriander",
    "cilantro",
    "cauliflower",
)
_GRAPEFRUIT = ("grapefruit", "pomelo")
_POTASSIUM_RICH = ("potassium", "banana", "orange", "tomato", "avocado")
_DAIRY_AND_MINERALS = ("milk", "yogurt", "cheese", "calcium", "iron", "zinc")
_LICORICE = ("licorice", "liquorice")

DRUG_FOOD_INTERACTIONS: dict[str, DrugFoodInteraction] = {
    "warfarin": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning=(
            "Warfarin: high vitamin K intake reduces its effect; cranberry "
            "raises the bleeding risk."
        ),
        recommendation="Keep vitamin K intake constant and monitor INR.",
        avoid=(*_VITAMIN_K_GREENS, "green tea", "cranberry"),
    ),
    "acenocoumarol": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning="Acenocoumarol: same vitamin K interaction as warfarin.",
        recommendation="Keep vitamin K intake constant and check INR often.",
        avoid=_VITAMIN_K_GREENS[:8],
    ),
    "metformin": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Metformin: long-term use can cause vitamin B12 deficiency.",
        recommendation="Check B12 yearly.",
        reduce_absorption=("alcohol",),
    ),
    "levothyroxine": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Levothyroxine: take fasting, 30-60 minutes before breakfast.",
        recommendation="Separate from calcium and iron by 4 hours.",
        reduce_absorption=("calcium", "iron", "soy", "coffee", "fiber", "bran"),
    ),
    "enalapril": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Enalapril: retains potassium; dietary excess risks hyperkalemia.",
        recommendation="Monitor serum potassium and avoid salt substitutes.",
        synergistic_risk=_POTASSIUM_RICH,
    ),
    "lisinopril": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Lisinopril: retains potassium; risk of hyperkalemia.",
        recommendation="Moderate potassium-rich foods.",
        synergistic_risk=_POTASSIUM_RICH,
    ),
    "losartan": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Losartan: can raise serum potassium.",
        recommendation="Moderate potassium intake and monitor electrolytes.",
        synergistic_risk=_POTASSIUM_RICH,
    ),
    "simvastatin": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning="Simvastatin: grapefruit raises drug levels up to 15x.",
        recommendation="Avoid grapefruit completely during treatment.",
        avoid=_GRAPEFRUIT,
    ),
    "atorvastatin": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Atorvastatin: grapefruit raises drug levels.",
        recommendation="Limit grapefruit to an occasional portion.",
        avoid=_GRAPEFRUIT,
    ),
    "rosuvastatin": DrugFoodInteraction(
        severity=InteractionSeverity.MINOR,
        warning="Rosuvastatin: little interaction with grapefruit.",
        recommendation="Can be taken with or without food.",
    ),
    "ciprofloxacin": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Ciprofloxacin: dairy and minerals cut absorption by up to 50%.",
        recommendation="Take 2 hours before or 6 hours after dairy.",
        reduce_absorption=_DAIRY_AND_MINERALS,
    ),
    "tetracycline": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning="Tetracycline: dairy cancels its effect.",
        recommendation="No dairy 2 hours before or after a dose.",
        reduce_absorption=(*_DAIRY_AND_MINERALS[:5], "antacid"),
    ),
    "phenytoin": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Phenytoin: complex interaction with food and folic acid.",
        recommendation="Pause tube feeding 2 hours around doses.",
        reduce_absorption=("enteral formula",),
        increase_absorption=("alcohol",),
    ),
    "ibuprofen": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Ibuprofen: take with food to protect the gastric mucosa.",
        recommendation="Avoid alcohol.",
        avoid=("alcohol",),
    ),
    "naproxen": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Naproxen: take with food; alcohol raises ulcer risk.",
        recommendation="Take with meals.",
        avoid=("alcohol",),
    ),
    "phenelzine": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning="Phenelzine (MAOI): tyramine-rich foods cause hypertensive crisis.",
        recommendation="Avoid aged cheese, wine, cured meats and fermented soy.",
        avoid=(
            "aged cheese",
            "wine",
            "beer",
            "salami",
            "cured ham",
            "sausage",
            "soy",
            "fermented",
        ),
    ),
    "cyclosporine": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning="Cyclosporine: grapefruit raises levels into the toxic range.",
        recommendation="Avoid grapefruit and monitor serum levels.",
        avoid=_GRAPEFRUIT,
        increase_absorption=_GRAPEFRUIT,
    ),
    "omeprazole": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Omeprazole: chronic use lowers B12, iron and magnesium absorption.",
        recommendation="Check B12 and magnesium yearly.",
    ),
    "esomeprazole": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Esomeprazole: same long-term risk as omeprazole.",
        recommendation="Check B12 and magnesium yearly.",
    ),
    "digoxin": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning=(
            "Digoxin: narrow therapeutic range; St John's wort lowers levels "
            "and licorice raises toxicity."
        ),
        recommendation="Separate from high-fiber foods.",
        avoid=("st john", *_LICORICE),
        reduce_absorption=("fiber", "oat", "bran", "antacid"),
    ),
    "furosemide": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning="Furosemide: increases potassium, sodium and magnesium loss.",
        recommendation="Monitor electrolytes and avoid licorice.",
        avoid=_LICORICE,
        synergistic_risk=("alcohol",),
    ),
    "hydrochlorothiazide": DrugFoodInteraction(
        severity=InteractionSeverity.MODERATE,
        warning="Hydrochlorothiazide: can cause potassium and magnesium loss.",
        recommendation="Moderate sodium and avoid licorice.",
        avoid=_LICORICE,
    ),
    "spironolactone": DrugFoodInteraction(
        severity=InteractionSeverity.CRITICAL,
        warning="Spironolactone: potassium-sparing; high risk of hyperkalemia.",
        recommendation="Avoid potassium supplements and salt substitutes.",
        synergistic_risk=_POTASSIUM_RICH,
    ),
}

MEDICATION_ALIASES: dict[str, str] = {
    "coumadin": "warfarin",
    "sintrom": "acenocoumarol",
    "glucophage": "metformin",
    "eutirox": "levothyroxine",
    "euthyrox": "levothyroxine",
    "synthroid": "levothyroxine",
    "renitec": "enalapril",
    "zestril": "lisinopril",
    "cozaar": "losartan",
    "zocor": "simvastatin",
    "lipitor": "atorvastatin",
    "crestor": "rosuvastatin",
    "cipro": "ciprofloxacin",
    "advil": "ibuprofen",
    "motrin": "ibuprofen",
    "aleve": "naproxen",
    "nardil": "phenelzine",
    "prilosec": "omeprazole",
    "nexium": "esomeprazole",
    "lanoxin": "digoxin",
    "lasix": "furosemide",
    "aldactone": "spironolactone",
}


def normalize_medication(medication: str) -> str:
    name = medication.strip().lower()
    return MEDICATION_ALIASES.get(name, name)


def check_food(food_name: str, medications: Sequence[str]) -> InteractionCheck:
    """Collect the interactions between one food and the patient's drugs."""
    name = food_name.lower()
    warnings: list[str] = []
    critical = 0
    moderate = 0
    for medication in medications:
        interaction = DRUG_FOOD_INTERACTIONS.get(normalize_medication(medication))
        if interaction is None:
            continue
        is_critical = interaction.severity == InteractionSeverity.CRITICAL
        if _matches(name, interaction.avoid):
            warnings.append(f"{food_name} + {medication}: {interaction.warning}")
            critical += is_critical
            moderate += not is_critical
        if _matches(name, interaction.reduce_absorption):
            warnings.append(
                f"{food_name} reduces absorption of {medication}; "
                "separate them by 2-4 hours."
            )
            moderate += 1
        if _matches(name, interaction.increase_absorption):
            warnings.append(
                f"{food_name} raises {medication} levels; risk of toxicity."
            )
            critical += is_critical
            moderate += not is_critical
        if _matches(name, interaction.synergistic_risk):
            warnings.append(
                f"{food_name} + {medication}: additive effect. "
                f"{interaction.recommendation or 'Moderate intake.'}"
            )
            moderate += 1
    return InteractionCheck(
        warnings=warnings, critical_count=critical, moderate_count=moderate
    )


def medication_warnings(medications: Sequence[str]) -> list[ClinicalWarning]:
    """General guidance for every known drug the patient takes."""
    warnings: list[ClinicalWarning] = []
    for medication in medications:
        interaction = DRUG_FOOD_INTERACTIONS.get(normalize_medication(medication))
        if interaction is None:
            _logger.debug("No interaction data for %s", medication)
            continue
        message = interaction.warning
        if interaction.recommendation:
            message = f"{message} {interaction.recommendation}"
        severity = (
            WarningSeverity.CRITICAL
            if interaction.severity == InteractionSeverity.CRITICAL
            else WarningSeverity.MODERATE
        )
        warnings.append(ClinicalWarning(severity, message))
    return warnings


def _matches(name: str, terms: Sequence[str]) -> bool:
    return any(re.search(rf"\b{re.escape(term)}", name) for term in terms)
