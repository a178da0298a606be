"""Basal metabolic rate and total daily energy expenditure."""

import logging
from datetime import date

from clinical_nutrition.domain.goals import EnergyEstimate
from clinical_nutrition.domain.measurements import Measurement
from clinical_nutrition.domain.patients import (
    ActivityLevel,
    EnergyFormula,
    NutritionConfig,
    Patient,
    Sex,
)
from clinical_nutrition.services.anthropometry import estimate_body_fat

_logger = logging.getLogger(__name__)

ACTIVITY_FACTORS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
    ActivityLevel.ELITE: 2.2,
    ActivityLevel.ULTRA: 2.5,
}

# IOM physical activity coefficients for children and adolescents.
_IOM_PA_MALE = {
    ActivityLevel.SEDENTARY: 1.0,
    ActivityLevel.LIGHT: 1.13,
    ActivityLevel.MODERATE: 1.26,
    ActivityLevel.ACTIVE: 1.26,
    ActivityLevel.VERY_ACTIVE: 1.42,
    ActivityLevel.ELITE: 1.42,
    ActivityLevel.ULTRA: 1.42,
}
_IOM_PA_FEMALE = {
    ActivityLevel.SEDENTARY: 1.0,
    ActivityLevel.LIGHT: 1.16,
    ActivityLevel.MODERATE: 1.31,
    ActivityLevel.ACTIVE: 1.31,
    ActivityLevel.VERY_ACTIVE: 1.56,
    ActivityLevel.ELITE: 1.56,
    ActivityLevel.ULTRA: 1.56,
}

# (upper age bound exclusive, male (slope, intercept), female (slope, intercept))
_Band = tuple[int | None, tuple[float, float], tuple[float, float]]

_FAO_WHO_BANDS = (
    (3, (60.9, -54), (61.0, -51)),
    (10, (22.7, 495), (22.5, 499)),
    (18, (17.5, 651), (12.2, 746)),
    (30, (15.3, 679), (14.7, 496)),
    (60, (11.6, 879), (8.7, 829)),
    (None, (13.5, 487), (10.5, 596)),
)
_HENRY_BANDS = (
    (3, (61.0, -33.7), (58.3, -31.1)),
    (10, (23.3, 514), (22.5, 499)),
    (18, (18.4, 581), (12.2, 746)),
    (30, (16.0, 545), (10.1, 569)),
    (60, (14.2, 593), (11.0, 543)),
    (None, (13.5, 514), (10.9, 514)),
)

_FORMULA_LABELS = {
    EnergyFormula.MIFFLIN: "Mifflin-St Jeor",
    EnergyFormula.HARRIS_BENEDICT: "Harris-Benedict",
    EnergyFormula.KATCH_MCARDLE: "Katch-McArdle",
    EnergyFormula.CUNNINGHAM: "Cunningham",
    EnergyFormula.FAO_WHO: "FAO/WHO",
    EnergyFormula.HENRY: "Henry (Oxford)",
    EnergyFormula.IOM: "IOM EER (pediatric)",
}

TEF_FACTOR = 1.10
PEDIATRIC_AGE = 18
IOM_MIN_AGE = 3


def estimate_tdee(
    patient: Patient,
    measurement: Measurement | None = None,
    config: NutritionConfig | None = None,
    *,
    on: date | None = None,
) -> EnergyEstimate:
    """Estimate BMR and TDEE (kcal/day) for a patient.

    The formula is the explicit config choice, otherwise the population
    default: IOM EER from 3 to 17 years, FAO/WHO under 3, and
    Mifflin-St Jeor for adults. Weight and height come from the measurement
    when one is given. Katch-McArdle and Cunningham need a positive body fat
    percentage and fall back to Mifflin-St Jeor without one; the fallback
    is reported through ``formula_used`` and ``method``.
    """
    resolved_config = config or patient.config
    reference_date = on or (measurement.measured_on if measurement else date.today())
    age = patient.age_in_years(reference_date)
    weight = measurement.weight_kg if measurement else patient.weight_kg
    height = measurement.height_cm if measurement else patient.height_cm
    sex = patient.sex
    activity = resolved_config.activity_level
    factor = ACTIVITY_FACTORS[activity]
    formula = resolved_config.formula or _default_formula(age)

    if formula == EnergyFormula.IOM and age < PEDIATRIC_AGE:
        if age >= IOM_MIN_AGE:
            eer = _iom_eer(weight, height, age, sex, activity)
            return EnergyEstimate(
                bmr=round(eer / 1.2),
                tdee=round(eer),
                activity_factor=1.0,
                formula_used=_FORMULA_LABELS[EnergyFormula.IOM],
            )
        formula = EnergyFormula.FAO_WHO
    elif formula == EnergyFormula.IOM:
        formula = EnergyFormula.MIFFLIN

    method = "primary"
    formula_used = _FORMULA_LABELS[formula]
    if formula in (EnergyFormula.KATCH_MCARDLE, EnergyFormula.CUNNINGHAM):
        body_fat = _body_fat_percent(patient, measurement, resolved_config)
        if body_fat is None:
            _logger.info(
                "%s needs body fat; using Mifflin-St Jeor for patient %s",
                formula_used,
                patient.id,
            )
            bmr = mifflin_st_jeor(weight, height, age, sex)
            formula_used = "Mifflin-St Jeor (fallback)"
            method = "fallback:mifflin"
        else:
            lean_mass = weight * (1 - body_fat / 100)
            if formula == EnergyFormula.KATCH_MCARDLE:
                bmr = 370 + 21.6 * lean_mass
            else:
                bmr = 500 + 22 * lean_mass
    elif formula == EnergyFormula.HARRIS_BENEDICT:
        bmr = harris_benedict(weight, height, age, sex)
    elif formula == EnergyFormula.FAO_WHO:
        bmr = _banded(_FAO_WHO_BANDS, weight, age, sex)
    elif formula == EnergyFormula.HENRY:
        bmr = _banded(_HENRY_BANDS, weight, age, sex)
    else:
        bmr = mifflin_st_jeor(weight, height, age, sex)

    tdee = bmr * factor
    if resolved_config.include_tef:
        tdee *= TEF_FACTOR
    return EnergyEstimate(
        bmr=round(bmr),
        tdee=round(tdee),
        activity_factor=factor,
        formula_used=formula_used,
        method=method,
    )


def mifflin_st_jeor(weight_kg: float, height_cm: float, age: int, sex: Sex) -> float:
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    return base + 5 if sex == Sex.MALE else base - 161


def harris_benedict(weight_kg: float, height_cm: float, age: int, sex: Sex) -> float:
    """Revised Harris-Benedict equation (Roza & Shizgal, 1984)."""
    if sex == Sex.MALE:
        return 88.362 + 13.397 * weight_kg + 4.799 * height_cm - 5.677 * age
    return 447.593 + 9.247 * weight_kg + 3.098 * height_cm - 4.330 * age


def _iom_eer(
    weight_kg: float, height_cm: float, age: int, sex: Sex, activity: ActivityLevel
) -> float:
    height_m = height_cm / 100
    if sex == Sex.MALE:
        pa = _IOM_PA_MALE[activity]
        return 88.5 - 61.9 * age + pa * (26.7 * weight_kg + 903 * height_m) + 20
    pa = _IOM_PA_FEMALE[activity]
    return 135.3 - 30.8 * age + pa * (10.0 * weight_kg + 934 * height_m) + 20


def _banded(
    bands: tuple[_Band, ...], weight_kg: float, age: int, sex: Sex
) -> float:
    for upper, male, female in bands:
        if upper is None or age < upper:
            slope, intercept = male if sex == Sex.MALE else female
            return slope * weight_kg + intercept
    raise ValueError("age bands must end with an open band")


def _default_formula(age: int) -> EnergyFormula:
    if age < IOM_MIN_AGE:
        return EnergyFormula.FAO_WHO
    if age < PEDIATRIC_AGE:
        return EnergyFormula.IOM
    return EnergyFormula.MIFFLIN


def _body_fat_percent(
    patient: Patient, measurement: Measurement | None, config: NutritionConfig
) -> float | None:
    if measurement is None:
        return None
    if measurement.body_fat_percent and measurement.body_fat_percent > 0:
        return measurement.body_fat_percent
    estimate = estimate_body_fat(measurement, patient.sex, config.patient_type)
    if estimate.value is None or estimate.value <= 0:
        return None
    return estimate.value
