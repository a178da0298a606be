"""Tests for energy expenditure estimation."""

from datetime import date
from uuid import uuid4

import pytest

from clinical_nutrition.domain.measurements import Measurement, RawValue
from clinical_nutrition.domain.patients import (
    ActivityLevel,
    EnergyFormula,
    NutritionConfig,
    PatientType,
    Sex,
)
from clinical_nutrition.services.anthropometry import estimate_body_fat
from clinical_nutrition.services.energy import (
    estimate_tdee,
    harris_benedict,
    mifflin_st_jeor,
)
from tests.conftest import REFERENCE_DATE, make_patient


def test_adult_defaults_to_mifflin() -> None:
    patient = make_patient()

    result = estimate_tdee(patient, on=REFERENCE_DATE)

    assert result.bmr == 1780
    assert result.tdee == 2136
    assert result.activity_factor == 1.2
    assert result.formula_used == "Mifflin-St Jeor"
    assert result.method == "primary"


def test_katch_without_body_fat_falls_back() -> None:
    patient = make_patient()
    config = NutritionConfig(formula=EnergyFormula.KATCH_MCARDLE)

    result = estimate_tdee(patient, config=config, on=REFERENCE_DATE)

    assert result.bmr == 1780
    assert result.method == "fallback:mifflin"
    assert "fallback" in result.formula_used


def test_katch_uses_lean_mass_from_measurement() -> None:
    patient = make_patient()
    measurement = Measurement(
        patient_id=patient.id,
        measured_on=REFERENCE_DATE,
        weight_kg=80.0,
        height_cm=180.0,
        body_fat_percent=20.0,
    )
    config = NutritionConfig(formula=EnergyFormula.KATCH_MCARDLE)

    result = estimate_tdee(patient, measurement, config)

    # 370 + 21.6 * 64 kg lean mass
    assert result.bmr == 1752
    assert result.formula_used == "Katch-McArdle"


def test_activity_factor_and_tef() -> None:
    patient = make_patient()
    config = NutritionConfig(activity_level=ActivityLevel.MODERATE, include_tef=True)

    result = estimate_tdee(patient, config=config, on=REFERENCE_DATE)

    assert result.activity_factor == 1.55
    assert result.tdee == round(1780 * 1.55 * 1.10)


def test_school_age_child_uses_iom() -> None:
    patient = make_patient(birth_date=date(2014, 1, 1), weight_kg=30, height_cm=135)

    result = estimate_tdee(patient, on=REFERENCE_DATE)

    assert result.formula_used == "IOM EER (pediatric)"
    assert result.tdee == 1510
    assert result.activity_factor == 1.0


def test_toddler_uses_fao_who() -> None:
    patient = make_patient(birth_date=date(2022, 1, 1), weight_kg=12, height_cm=86)

    result = estimate_tdee(patient, on=REFERENCE_DATE)

    assert result.formula_used == "FAO/WHO"
    assert result.bmr == 677


def test_iom_for_adult_uses_mifflin() -> None:
    patient = make_patient()
    config = NutritionConfig(formula=EnergyFormula.IOM)

    result = estimate_tdee(patient, config=config, on=REFERENCE_DATE)

    assert result.formula_used == "Mifflin-St Jeor"


def test_equations() -> None:
    assert mifflin_st_jeor(60, 165, 40, Sex.FEMALE) == 600 + 1031.25 - 200 - 161
    assert round(harris_benedict(80, 180, 30, Sex.MALE)) == 1854


def test_measurement_overrides_patient_weight() -> None:
    patient = make_patient(weight_kg=100)
    measurement = Measurement(
        patient_id=uuid4(),
        measured_on=REFERENCE_DATE,
        weight_kg=80.0,
        height_cm=180.0,
    )

    result = estimate_tdee(patient, measurement)

    assert result.bmr == 1780


def test_katch_uses_patient_type_from_given_config() -> None:
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
        formula=EnergyFormula.KATCH_MCARDLE, patient_type=PatientType.CONTROL
    )

    result = estimate_tdee(patient, measurement, config)

    body_fat = estimate_body_fat(measurement, Sex.MALE, PatientType.CONTROL).value
    assert body_fat is not None
    assert result.bmr == pytest.approx(370 + 21.6 * 80.0 * (1 - body_fat / 100), abs=1)
    assert result.method == "primary"
