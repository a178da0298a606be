"""Iron supplementation protocol for anemia prevention and treatment."""

import logging

from clinical_nutrition.domain.patients import Sex
from clinical_nutrition.domain.protocols import AnemiaInput, AnemiaProtocol

_logger = logging.getLogger(__name__)

# Hemoglobin correction (g/dL) for altitude, as (upper bound in meters, adjustment).
ALTITUDE_STEPS: list[tuple[float, float]] = [
    (500, 0.0),
    (1000, 0.4),
    (1500, 0.8),
    (2000, 1.1),
    (2500, 1.4),
    (3000, 1.8),
    (3500, 2.1),
    (4000, 2.5),
    (4500, 2.9),
]
MAX_ALTITUDE_ADJUSTMENT = 3.3

MG_PER_DROP = 1.25
MG_PER_ML_SYRUP = 3.0
CURATIVE_MONTHS = 6
PREVENTIVE_MONTHS = 3
ADOLESCENT_END_MONTHS = 216
FERTILE_AGE_MONTHS = (144, 600)
PRETERM_WEEKS = 37
DAYS_PER_MONTH = 30.44
# Preterm infants: (age limit in weeks, hemoglobin above which they are normal).
PRETERM_CUTOFFS: list[tuple[float, float]] = [(1, 13.0), (4, 10.0), (8, 8.0)]

# (normal, mild, moderate) lower bounds in g/dL; below moderate is severe.
_Thresholds = tuple[float, float, float]


def altitude_adjustment(altitude_m: float) -> float:
    for upper, adjustment in ALTITUDE_STEPS:
        if altitude_m < upper:
            return adjustment
    return MAX_ALTITUDE_ADJUSTMENT


def corrected_hemoglobin(hemoglobin_g_dl: float, altitude_m: float) -> float:
    """Sea-level equivalent hemoglobin, rounded to 0.1 g/dL."""
    return round((hemoglobin_g_dl - altitude_adjustment(altitude_m)) * 10) / 10


def classify_anemia(hemoglobin_g_dl: float, data: AnemiaInput) -> str:
    """Return none, mild, moderate or severe for a corrected hemoglobin value."""
    preterm_cutoff = _preterm_cutoff(data)
    if preterm_cutoff is not None:
        return "none" if hemoglobin_g_dl > preterm_cutoff else "moderate"
    normal, mild, moderate = _thresholds(data)
    if hemoglobin_g_dl >= normal:
        return "none"
    if hemoglobin_g_dl >= mild:
        return "mild"
    if hemoglobin_g_dl >= moderate:
        return "moderate"
    return "severe"


def generate_anemia_protocol(data: AnemiaInput) -> AnemiaProtocol:
    """Build the iron dose, presentation, menu rules and follow-up plan."""
    adjustment = altitude_adjustment(data.altitude_m)
    corrected = None
    severity = "none"
    if data.hemoglobin_g_dl is not None and data.hemoglobin_g_dl > 0:
        corrected = corrected_hemoglobin(data.hemoglobin_g_dl, data.altitude_m)
        severity = classify_anemia(corrected, data)
    has_anemia = data.has_anemia or severity != "none"
    if has_anemia and severity == "none":
        severity = "mild"

    notes: list[str] = []
    dose, max_dose, folic_acid = _dose(data, has_anemia, notes)
    presentation = _presentation(data)
    texture, portion, frequency = _menu_rules(data.age_months)
    duration = CURATIVE_MONTHS if has_anemia else PREVENTIVE_MONTHS

    if has_anemia:
        follow_up = [
            "Hemoglobin control at 1 month",
            "Hemoglobin control at 3 months",
            "Hemoglobin control at 6 months",
        ]
    else:
        follow_up = ["Hemoglobin screening at the end of supplementation"]

    if severity == "severe":
        notes.append("Severe anemia: refer for specialist evaluation.")
    notes.append("Give iron one hour before meals, with citrus juice if possible.")
    notes.append("Avoid tea, coffee and dairy within one hour of the dose.")

    _logger.info(
        "Anemia protocol: severity=%s dose=%s mg age=%s months",
        severity,
        dose,
        data.age_months,
    )
    return AnemiaProtocol(
        protocol_type="curative treatment" if has_anemia else "preventive",
        severity=severity,
        altitude_adjustment=adjustment,
        corrected_hemoglobin=corrected,
        dose_mg=dose,
        max_dose_mg=max_dose,
        drops=round(dose / MG_PER_DROP),
        syrup_ml=round(dose / MG_PER_ML_SYRUP * 10) / 10,
        folic_acid_mg=folic_acid,
        duration_months=duration,
        presentation=presentation,
        texture=texture,
        portion=portion,
        meal_frequency=frequency,
        follow_up=follow_up,
        notes=notes,
    )


def _is_preterm(data: AnemiaInput) -> bool:
    return data.is_premature or (
        data.gestational_weeks_at_birth is not None
        and data.gestational_weeks_at_birth < PRETERM_WEEKS
    )


def _preterm_cutoff(data: AnemiaInput) -> float | None:
    if data.is_pregnant or data.is_postpartum or data.age_months >= 6:
        return None
    if not _is_preterm(data):
        return None
    age_weeks = data.age_months * DAYS_PER_MONTH / 7
    for limit, cutoff in PRETERM_CUTOFFS:
        if age_weeks <= limit:
            return cutoff
    return None


def _thresholds(data: AnemiaInput) -> _Thresholds:
    age = data.age_months
    if data.is_pregnant:
        if data.trimester == 2:
            return (10.5, 10.0, 7.0)
        return (11.0, 10.0, 7.0)
    if data.is_postpartum:
        return (12.0, 11.0, 8.0)
    if age < 6:
        # Young infants are either normal or moderately anemic.
        normal = 13.5 if age < 2 else 9.5
        return (normal, normal, 0.0)
    if age < 24:
        return (10.5, 10.0, 7.0)
    if age < 60:
        return (11.0, 10.0, 7.0)
    if age < 144:
        return (11.5, 11.0, 8.0)
    if age < 180:
        return (12.0, 11.0, 8.0)
    if data.sex == Sex.MALE:
        return (13.0, 11.0, 8.0)
    return (12.0, 11.0, 8.0)


def _dose(
    data: AnemiaInput, has_anemia: bool, notes: list[str]
) -> tuple[float, float | None, float]:
    age = data.age_months
    weight = data.weight_kg
    premature = _is_preterm(data) or data.low_birth_weight
    if premature and age < 6:
        if has_anemia:
            notes.append(
                "Premature or low birth weight infant with anemia: "
                "management by a specialist."
            )
            return 0.0, None, 0.0
        return round(2 * weight, 1), None, 0.0
    if age < 6:
        return _infant_dose(weight, has_anemia, 40.0)
    if age < 24:
        return _infant_dose(weight, has_anemia, 70.0)
    if age < 36:
        return _child_dose(weight, has_anemia, 30.0, 70.0)
    if age < 60:
        return _child_dose(weight, has_anemia, 30.0, 90.0)
    if age < 144:
        return _child_dose(weight, has_anemia, 60.0, 120.0)
    if (
        age < ADOLESCENT_END_MONTHS
        or data.is_pregnant
        or data.is_postpartum
        or _is_fertile_woman(data)
    ):
        if has_anemia:
            return 120.0, None, 0.8
        return 60.0, None, 0.4
    if has_anemia:
        return 120.0, None, 0.0
    return 0.0, None, 0.0


def _infant_dose(
    weight: float, has_anemia: bool, max_mg: float
) -> tuple[float, float | None, float]:
    """Weight-based drops; only the curative dose is capped."""
    if has_anemia:
        return min(round(3 * weight, 1), max_mg), max_mg, 0.0
    return round(2 * weight, 1), None, 0.0


def _child_dose(
    weight: float, has_anemia: bool, preventive_mg: float, max_mg: float
) -> tuple[float, float | None, float]:
    if has_anemia:
        return min(round(3 * weight, 1), max_mg), max_mg, 0.0
    return preventive_mg, None, 0.0


def _is_fertile_woman(data: AnemiaInput) -> bool:
    low, high = FERTILE_AGE_MONTHS
    return data.sex == Sex.FEMALE and low <= data.age_months < high


def _presentation(data: AnemiaInput) -> str:
    if data.age_months < 24:
        return "Iron drops (ferrous sulfate or polymaltose)"
    if data.age_months < 144:
        return "Iron syrup"
    return "Iron tablets"


def _menu_rules(age_months: int) -> tuple[str, str, str]:
    if age_months < 6:
        return (
            "Exclusive breastfeeding",
            "On demand",
            "Breastfeed on demand, day and night",
        )
    if age_months < 9:
        return ("Mashed", "2-3 spoonfuls", "2 meals per day")
    if age_months < 12:
        return ("Finely chopped", "5-7 spoonfuls", "3 meals and 1 snack per day")
    if age_months < 36:
        return ("Family pot", "7-10 spoonfuls", "3 meals and 2 snacks per day")
    return ("Family meals", "Full plate", "3 meals and 2 snacks per day")
