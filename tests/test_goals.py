"""Tests for goal resolution and safety overrides."""

from datetime import date

import pytest

from clinical_nutrition.domain.goals import EnergyEstimate, WarningSeverity
from clinical_nutrition.domain.measurements import Measurement, RawValue
from clinical_nutrition.domain.patients import (
    ActivityLevel,
    CaloriePreset,
    NutritionConfig,
    PatientType,
    ProteinBasis,
    Sex,
)
from clinical_nutrition.services.anthropometry import estimate_body_fat
from clinical_nutrition.services.goals import (
    adjusted_body_weight,
    ideal_body_weight,
    resolve_goals,
    resolve_protein_basis,
)
from tests.conftest import REFERENCE_DATE, make_patient


def _energy(tdee: float) -> EnergyEstimate:
    return EnergyEstimate(
        bmr=round(tdee / 1.2),
        tdee=tdee,
        activity_factor=1.2,
        formula_used="Mifflin-St Jeor",
    )


def test_obese_patient_gets_adjusted_protein_basis() -> None:
    patient = make_patient(sex=Sex.FEMALE, weight_kg=82, height_cm=160)

    goals = resolve_goals(_energy(1900), patient, on=REFERENCE_DATE)

    assert goals.auto_adjusted_for_obesity
    assert goals.protein_basis.basis == "adjusted"
    assert goals.protein_basis.weight_kg < 82
    assert any("obesity" in warning.message for warning in goals.warnings)


def test_pediatric_deficit_is_blocked() -> None:
    patient = make_patient(
        birth_date=date(2014, 1, 1),
        weight_kg=35,
        height_cm=140,
        config=NutritionConfig(calorie_preset=CaloriePreset.MODERATE_DEFICIT),
    )

    goals = resolve_goals(_energy(1800), patient, on=REFERENCE_DATE)

    assert goals.pediatric_deficit_blocked
    assert goals.kcal_adjustment == 0
    assert goals.preset_label == "blocked"
    assert goals.calories == 1800
    assert goals.warnings[0].severity == WarningSeverity.CRITICAL


def test_pediatric_manual_deficit_is_blocked() -> None:
    patient = make_patient(
        birth_date=date(2014, 1, 1),
        weight_kg=35,
        height_cm=140,
        config=NutritionConfig(kcal_adjustment=-300),
    )

    goals = resolve_goals(_energy(1800), patient, on=REFERENCE_DATE)

    assert goals.pediatric_deficit_blocked
    assert goals.calories == 1800


def test_adult_preset_applies_percentage() -> None:
    patient = make_patient(
        config=NutritionConfig(calorie_preset=CaloriePreset.MODERATE_DEFICIT)
    )

    goals = resolve_goals(_energy(2500), patient, on=REFERENCE_DATE)

    assert goals.kcal_adjustment == -500
    assert goals.calories == 2000
    assert not goals.pediatric_deficit_blocked


def test_calorie_floor() -> None:
    patient = make_patient(sex=Sex.FEMALE, weight_kg=50, height_cm=160)

    goals = resolve_goals(_energy(1000), patient, on=REFERENCE_DATE)

    assert goals.calories == 1200
    assert goals.calorie_floor_applied


@pytest.mark.parametrize("carbs_percent", [0.0, 30.0, 50.0, 80.0, 100.0])
def test_macros_always_sum_to_100(carbs_percent: float) -> None:
    patient = make_patient(config=NutritionConfig(carbs_percent=carbs_percent))

    goals = resolve_goals(_energy(2400), patient, on=REFERENCE_DATE)

    total = goals.protein_percent + goals.carbs_percent + goals.fat_percent
    assert total == pytest.approx(100.0)
    assert 15 <= goals.fat_percent <= 40
    assert 10 <= goals.protein_percent <= 45


def test_high_carbs_renormalized() -> None:
    patient = make_patient(config=NutritionConfig(carbs_percent=80))

    goals = resolve_goals(_energy(2400), patient, on=REFERENCE_DATE)

    assert goals.macro_renormalized
    assert goals.fat_percent == 15
    assert goals.carbs_percent == 100 - 15 - goals.protein_percent


def test_geriatric_protein_floor() -> None:
    patient = make_patient(
        birth_date=date(1950, 1, 1),
        weight_kg=70,
        height_cm=170,
        config=NutritionConfig(
            protein_ratio_g_per_kg=0.8, activity_level=ActivityLevel.SEDENTARY
        ),
    )

    goals = resolve_goals(_energy(1800), patient, on=REFERENCE_DATE)

    assert goals.geriatric_protein_floor_applied
    assert goals.protein_g == pytest.approx(84.0)


def test_resolution_is_idempotent() -> None:
    patient = make_patient(sex=Sex.FEMALE, weight_kg=82, height_cm=160)

    first = resolve_goals(_energy(1900), patient, on=REFERENCE_DATE)
    second = resolve_goals(_energy(1900), patient, on=REFERENCE_DATE)

    assert first == second


def test_micronutrient_overrides() -> None:
    patient = make_patient(
        config=NutritionConfig(micronutrient_overrides={"iron_mg": 18})
    )

    goals = resolve_goals(_energy(2000), patient, on=REFERENCE_DATE)

    assert goals.micronutrients["iron_mg"] == 18
    assert goals.micronutrients["calcium_mg"] == 1000


def test_protein_basis_helpers() -> None:
    assert ideal_body_weight(152.4, Sex.MALE) == pytest.approx(50.0)
    assert adjusted_body_weight(60, 180, Sex.MALE) == 60
    lean = resolve_protein_basis(
        ProteinBasis.LEAN,
        weight_kg=80,
        height_cm=180,
        sex=Sex.MALE,
        body_fat_percent=25,
    )
    missing = resolve_protein_basis(
        ProteinBasis.LEAN, weight_kg=80, height_cm=180, sex=Sex.MALE
    )

    assert lean.weight_kg == 60.0
    assert missing.basis == "adjusted"
    assert missing.warning is not None


def test_lean_basis_uses_patient_type_from_given_config() -> None:
    patient = make_patient()
    measurement = Measurement(
        patient_id=patient.id,
        measured_on=REFERENCE_DATE,
        weight_kg=80.0,
        height_cm=180.0,
        skinfolds={
            "triceps": RawValue(10.0),
            "biceps": RawValue(5.0),
            "subscapular": RawValue(12.0),
            "iliac_crest": RawValue(15.0),
        },
    )
    config = NutritionConfig(
        protein_basis=ProteinBasis.LEAN, patient_type=PatientType.CONTROL
    )

    goals = resolve_goals(
        _energy(2400), patient, measurement, config, on=REFERENCE_DATE
    )

    body_fat = estimate_body_fat(measurement, Sex.MALE, PatientType.CONTROL).value
    assert body_fat is not None
    assert goals.protein_basis.basis == "lean"
    assert goals.protein_basis.weight_kg == round(80.0 * (1 - body_fat / 100), 1)
