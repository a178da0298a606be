"""Nutritional goal resolution with population safety overrides."""

import logging
from datetime import date

from clinical_nutrition.domain.goals import (
    ClinicalWarning,
    EnergyEstimate,
    NutritionalGoals,
    ProteinBasisResult,
    WarningSeverity,
)
from clinical_nutrition.domain.measurements import Measurement
from clinical_nutrition.domain.patients import (
    ActivityLevel,
    CaloriePreset,
    NutritionConfig,
    Patient,
    ProteinBasis,
    Sex,
)
from clinical_nutrition.services.anthropometry import calculate_bmi, estimate_body_fat

_logger = logging.getLogger(__name__)

CALORIE_PRESETS: dict[CaloriePreset, float] = {
    CaloriePreset.AGGRESSIVE_DEFICIT: -25,
    CaloriePreset.MODERATE_DEFICIT: -20,
    CaloriePreset.MILD_DEFICIT: -15,
    CaloriePreset.MAINTENANCE: 0,
    CaloriePreset.MILD_SURPLUS: 10,
    CaloriePreset.MODERATE_SURPLUS: 15,
}

DEFAULT_MICRONUTRIENTS: dict[str, float] = {
    "calcium_mg": 1000,
    "phosphorus_mg": 700,
    "zinc_mg": 11,
    "iron_mg": 14,
    "vitamin_a_ug": 900,
    "thiamin_mg": 1.2,
    "riboflavin_mg": 1.3,
    "niacin_mg": 16,
    "vitamin_c_mg": 90,
    "folate_ug": 400,
    "sodium_mg": 2300,
    "potassium_mg": 4700,
}

OBESITY_BMI = 30.0
PEDIATRIC_AGE = 18
GERIATRIC_AGE = 60
PEDIATRIC_CALORIE_FLOOR = 400
FEMALE_CALORIE_FLOOR = 1200
MALE_CALORIE_FLOOR = 1500
PROTEIN_PERCENT_RANGE = (10.0, 45.0)
FAT_PERCENT_RANGE = (15.0, 40.0)
DEFAULT_CARBS_PERCENT = 50.0
GERIATRIC_PROTEIN_G_PER_KG = 1.2
GERIATRIC_ACTIVE_PROTEIN_G_PER_KG = 1.5

_ACTIVE_LEVELS = {
    ActivityLevel.ACTIVE,
    ActivityLevel.VERY_ACTIVE,
    ActivityLevel.ELITE,
    ActivityLevel.ULTRA,
}


def resolve_goals(
    energy: EnergyEstimate,
    patient: Patient,
    measurement: Measurement | None = None,
    config: NutritionConfig | None = None,
    *,
    on: date | None = None,
) -> NutritionalGoals:
    """Combine TDEE and clinician settings into safety-clamped daily goals.

    Policy overrides never raise. Each one substitutes a value, sets its
    flag and appends a warning, and all of them are returned together.
    """
    resolved_config = config or patient.config
    reference_date = on or (measurement.measured_on if measurement else date.today())
    age = patient.age_in_years(reference_date)
    weight = measurement.weight_kg if measurement else patient.weight_kg
    height = measurement.height_cm if measurement else patient.height_cm
    bmi = calculate_bmi(weight, height)
    warnings: list[ClinicalWarning] = []
    tdee = energy.tdee

    # Calories: preset or manual delta, pediatric deficit block, floor.
    if resolved_config.calorie_preset is not None:
        preset_label = resolved_config.calorie_preset.value
        adjustment = float(
            round(tdee * CALORIE_PRESETS[resolved_config.calorie_preset] / 100)
        )
    else:
        adjustment = float(resolved_config.kcal_adjustment)
        preset_label = "manual" if adjustment else "maintenance"

    pediatric_blocked = False
    if age < PEDIATRIC_AGE and adjustment < 0:
        pediatric_blocked = True
        _logger.info(
            "Blocked %s kcal deficit for patient %s aged %s",
            adjustment,
            patient.id,
            age,
        )
        warnings.append(
            ClinicalWarning(
                WarningSeverity.CRITICAL,
                f"Calorie deficit blocked for a patient under {PEDIATRIC_AGE} "
                f"(requested {preset_label}, {adjustment:+.0f} kcal). "
                "Growth must not be restricted; maintenance energy is used.",
            )
        )
        adjustment = 0.0
        preset_label = "blocked"

    raw_calories = round(tdee + adjustment)
    floor = _calorie_floor(age, patient.sex)
    floor_applied = raw_calories < floor
    calories = float(max(raw_calories, floor))
    if floor_applied:
        _logger.info("Calorie floor %s applied for patient %s", floor, patient.id)
        warnings.append(
            ClinicalWarning(
                WarningSeverity.CRITICAL,
                f"Computed target of {raw_calories} kcal is below the safe minimum; "
                f"raised to {floor} kcal.",
            )
        )

    # Protein basis, with automatic obesity protection.
    auto_obesity = False
    requested_basis = resolved_config.protein_basis
    if requested_basis is None:
        if bmi is not None and bmi >= OBESITY_BMI:
            requested_basis = ProteinBasis.ADJUSTED
            auto_obesity = True
        else:
            requested_basis = ProteinBasis.TOTAL
    body_fat = _body_fat_percent(patient, measurement, resolved_config)
    basis = resolve_protein_basis(
        requested_basis,
        weight_kg=weight,
        height_cm=height,
        sex=patient.sex,
        body_fat_percent=body_fat,
        bmi=bmi,
        is_athlete=resolved_config.is_athlete,
    )
    if auto_obesity:
        basis = ProteinBasisResult(
            basis=basis.basis,
            weight_kg=basis.weight_kg,
            label=basis.label,
            warning=(
                f"BMI {bmi} is in the obesity range: protein is computed on "
                f"adjusted body weight ({basis.weight_kg} kg) instead of total "
                f"weight ({round(weight, 1)} kg)."
            ),
        )
    if basis.warning:
        warnings.append(ClinicalWarning(WarningSeverity.MODERATE, basis.warning))

    ratio = resolved_config.protein_ratio_g_per_kg or 1.6
    protein_g = ratio * basis.weight_kg

    geriatric_floor_applied = False
    if age >= GERIATRIC_AGE:
        per_kg = (
            GERIATRIC_ACTIVE_PROTEIN_G_PER_KG
            if resolved_config.activity_level in _ACTIVE_LEVELS
            else GERIATRIC_PROTEIN_G_PER_KG
        )
        minimum = per_kg * weight
        if protein_g < minimum:
            geriatric_floor_applied = True
            warnings.append(
                ClinicalWarning(
                    WarningSeverity.MODERATE,
                    f"Protein raised from {protein_g:.0f} g to {minimum:.0f} g "
                    f"({per_kg} g/kg) to prevent sarcopenia.",
                )
            )
            protein_g = minimum

    # Macro split.
    protein_percent = round(protein_g * 4 / calories * 100)
    clamped_protein = _clamp(protein_percent, *PROTEIN_PERCENT_RANGE)
    if clamped_protein != protein_percent:
        warnings.append(
            ClinicalWarning(
                WarningSeverity.INFO,
                f"Protein share {protein_percent}% adjusted to {clamped_protein:.0f}% "
                "of calories.",
            )
        )
        protein_g = calories * clamped_protein / 100 / 4
    protein_percent = clamped_protein

    carbs_percent = _clamp(
        resolved_config.carbs_percent
        if resolved_config.carbs_percent is not None
        else DEFAULT_CARBS_PERCENT,
        0.0,
        100.0,
    )
    raw_fat = 100 - protein_percent - carbs_percent
    fat_percent = _clamp(raw_fat, *FAT_PERCENT_RANGE)
    renormalized = fat_percent != raw_fat
    if renormalized:
        carbs_percent = max(0.0, 100 - protein_percent - fat_percent)
        warnings.append(
            ClinicalWarning(
                WarningSeverity.INFO,
                f"Fat share kept within {FAT_PERCENT_RANGE[0]:.0f}-"
                f"{FAT_PERCENT_RANGE[1]:.0f}%; carbohydrates set to "
                f"{carbs_percent:.0f}% so macros add up to 100%.",
            )
        )

    micronutrients = dict(DEFAULT_MICRONUTRIENTS)
    micronutrients.update(resolved_config.micronutrient_overrides)

    return NutritionalGoals(
        calories=calories,
        tdee=float(tdee),
        kcal_adjustment=adjustment,
        preset_label=preset_label,
        protein_percent=float(protein_percent),
        carbs_percent=float(carbs_percent),
        fat_percent=float(fat_percent),
        protein_g=round(protein_g, 1),
        carbs_g=round(calories * carbs_percent / 100 / 4, 1),
        fat_g=round(calories * fat_percent / 100 / 9, 1),
        protein_basis=basis,
        micronutrients=micronutrients,
        auto_adjusted_for_obesity=auto_obesity,
        pediatric_deficit_blocked=pediatric_blocked,
        calorie_floor_applied=floor_applied,
        geriatric_protein_floor_applied=geriatric_floor_applied,
        macro_renormalized=renormalized,
        warnings=warnings,
    )


def resolve_protein_basis(  # noqa: PLR0913
    basis: ProteinBasis,
    *,
    weight_kg: float,
    height_cm: float,
    sex: Sex,
    body_fat_percent: float | None = None,
    bmi: float | None = None,
    is_athlete: bool = False,
) -> ProteinBasisResult:
    """Return the weight used to scale g/kg protein targets."""
    if basis == ProteinBasis.IDEAL:
        ideal = ideal_body_weight(height_cm, sex)
        return ProteinBasisResult(
            basis=basis.value, weight_kg=round(ideal, 1), label="Ideal weight (Devine)"
        )
    if basis == ProteinBasis.ADJUSTED:
        adjusted = adjusted_body_weight(weight_kg, height_cm, sex)
        return ProteinBasisResult(
            basis=basis.value,
            weight_kg=round(adjusted, 1),
            label="Adjusted weight",
        )
    if basis == ProteinBasis.LEAN:
        if body_fat_percent is None or body_fat_percent <= 0:
            adjusted = adjusted_body_weight(weight_kg, height_cm, sex)
            return ProteinBasisResult(
                basis=ProteinBasis.ADJUSTED.value,
                weight_kg=round(adjusted, 1),
                label="Adjusted weight",
                warning=(
                    "Lean mass is unavailable without a body fat estimate; "
                    "adjusted weight was used instead."
                ),
            )
        lean = weight_kg * (1 - body_fat_percent / 100)
        return ProteinBasisResult(
            basis=basis.value, weight_kg=round(lean, 1), label="Lean body mass"
        )
    warning = None
    if bmi is not None and bmi >= OBESITY_BMI and not is_athlete:
        warning = (
            f"Total body weight with BMI {bmi} overestimates protein needs; "
            "consider adjusted weight."
        )
    return ProteinBasisResult(
        basis=ProteinBasis.TOTAL.value,
        weight_kg=round(weight_kg, 1),
        label="Total weight",
        warning=warning,
    )


def ideal_body_weight(height_cm: float, sex: Sex) -> float:
    """Devine formula: 50/45.5 kg plus 2.3 kg per inch above five feet."""
    inches_over = max(0.0, height_cm / 2.54 - 60)
    base = 50.0 if sex == Sex.MALE else 45.5
    return base + 2.3 * inches_over


def adjusted_body_weight(weight_kg: float, height_cm: float, sex: Sex) -> float:
    ideal = ideal_body_weight(height_cm, sex)
    if weight_kg <= ideal:
        return weight_kg
    return ideal + 0.25 * (weight_kg - ideal)


def _calorie_floor(age: int, sex: Sex) -> int:
    if age < PEDIATRIC_AGE:
        return PEDIATRIC_CALORIE_FLOOR
    return MALE_CALORIE_FLOOR if sex == Sex.MALE else FEMALE_CALORIE_FLOOR


def _body_fat_percent(
    patient: Patient, measurement: Measurement | None, config: NutritionConfig
) -> float | None:
    if measurement is None:
        return None
    if measurement.body_fat_percent and measurement.body_fat_percent > 0:
        return measurement.body_fat_percent
    result = estimate_body_fat(measurement, patient.sex, config.patient_type)
    return result.value


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)
