"""Tests for the stored-patient assessment pipeline."""

import asyncio
from datetime import date
from uuid import uuid4

import pytest

from clinical_nutrition.domain.measurements import Measurement, RawValue
from clinical_nutrition.domain.patients import (
    Allergy,
    ClinicalRecord,
    EnergyFormula,
    NutritionConfig,
)
from clinical_nutrition.services.assessments import AssessmentService, preferences_for
from clinical_nutrition.services.cache import InMemoryCache
from clinical_nutrition.services.catalog import FoodCatalogService
from clinical_nutrition.services.patients import PatientNotFoundError, PatientService
from tests.conftest import (
    REFERENCE_DATE,
    FakeFoodCatalogClient,
    InMemoryPatientRepository,
    make_patient,
    sample_food_rows,
)


def _service(
    repository: InMemoryPatientRepository, **options: object
) -> AssessmentService:
    catalog = FoodCatalogService(
        client=FakeFoodCatalogClient(rows=sample_food_rows()), cache=InMemoryCache()
    )
    return AssessmentService(
        patients=PatientService(repository), catalog=catalog, **options
    )


def test_assess_runs_the_full_pipeline() -> None:
    repository = InMemoryPatientRepository()
    patient = make_patient(
        clinical=ClinicalRecord(allergies=[Allergy("dairy")]),
    )
    measurement = Measurement(
        patient_id=patient.id,
        measured_on=date(2024, 5, 1),
        weight_kg=80.0,
        height_cm=180.0,
        skinfolds={"abdominal": RawValue(20.0), "thigh": RawValue(15.0)},
    )
    repository.add(patient, measurement)

    assessment = asyncio.run(_service(repository).assess(patient.id, REFERENCE_DATE))

    assert assessment.measurement == measurement
    assert assessment.body_fat is not None
    assert assessment.body_fat.method == "primary"
    assert assessment.bmi is not None and assessment.bmi.bmi == 24.7
    assert assessment.energy.tdee == 2136
    assert assessment.goals.calories == 2136
    assert len(assessment.plan.days) == 7
    names = {
        item.food.name.lower()
        for day in assessment.plan.days
        for meal in day.meals
        for item in meal.items
    }
    assert not any("milk" in name or "yogurt" in name for name in names)


def test_assess_without_measurement_uses_patient_record() -> None:
    repository = InMemoryPatientRepository()
    patient = make_patient()
    repository.add(patient)

    assessment = asyncio.run(_service(repository).assess(patient.id, REFERENCE_DATE))

    assert assessment.measurement is None
    assert assessment.body_fat is None
    assert assessment.energy.bmr == 1780


def test_assess_unknown_patient() -> None:
    service = _service(InMemoryPatientRepository())

    with pytest.raises(PatientNotFoundError):
        asyncio.run(service.assess(uuid4(), REFERENCE_DATE))


def test_default_formula_applies_to_adults_only() -> None:
    service = _service(
        InMemoryPatientRepository(),
        default_formula=EnergyFormula.HARRIS_BENEDICT,
        include_tef=True,
    )
    adult = make_patient()
    child = make_patient(birth_date=date(2016, 1, 1))
    explicit = make_patient(config=NutritionConfig(formula=EnergyFormula.HENRY))

    assert service.config_for(adult, REFERENCE_DATE).formula == (
        EnergyFormula.HARRIS_BENEDICT
    )
    assert service.config_for(child, REFERENCE_DATE).formula is None
    assert service.config_for(explicit, REFERENCE_DATE).formula == EnergyFormula.HENRY
    assert service.config_for(adult, REFERENCE_DATE).include_tef


def test_preferences_for_patient() -> None:
    patient = make_patient(
        birth_date=date(2023, 12, 1),
        config=NutritionConfig(liked_foods=["banana"], disliked_foods=["liver"]),
        clinical=ClinicalRecord(
            pathologies=["celiac disease"], medications=["warfarin"]
        ),
    )

    preferences = preferences_for(patient, REFERENCE_DATE)

    assert preferences.age_years == 0
    assert preferences.liked_foods == ["banana"]
    assert preferences.disliked_foods == ["liver"]
    assert preferences.pathologies == ["celiac disease"]
    assert preferences.medications == ["warfarin"]
