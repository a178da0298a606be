"""End-to-end assessment of a stored patient."""

import logging
from dataclasses import dataclass, replace
from datetime import date
from uuid import UUID

from clinical_nutrition.domain.composition import BmiDiagnosis, BodyFatResult
from clinical_nutrition.domain.goals import EnergyEstimate, NutritionalGoals
from clinical_nutrition.domain.measurements import Measurement
from clinical_nutrition.domain.patients import EnergyFormula, NutritionConfig, Patient
from clinical_nutrition.domain.plans import MealPlanPreferences, WeeklyPlan
from clinical_nutrition.services.anthropometry import diagnose_bmi, estimate_body_fat
from clinical_nutrition.services.catalog import FoodCatalogService
from clinical_nutrition.services.energy import estimate_tdee
from clinical_nutrition.services.goals import resolve_goals
from clinical_nutrition.services.meal_plans import generate_weekly_plan
from clinical_nutrition.services.patients import PatientService

_logger = logging.getLogger(__name__)

ADULT_AGE = 18


@dataclass(frozen=True)
class Assessment:
    """Composition, energy, goals and a weekly plan computed together."""

    patient: Patient
    measurement: Measurement | None
    body_fat: BodyFatResult | None
    bmi: BmiDiagnosis | None
    energy: EnergyEstimate
    goals: NutritionalGoals
    plan: WeeklyPlan


@dataclass
class AssessmentService:
    """Runs measurements through composition, energy, goals and meal assembly."""

    patients: PatientService
    catalog: FoodCatalogService
    default_formula: EnergyFormula | None = None
    include_tef: bool = False

    async def assess(self, patient_id: UUID, on: date | None = None) -> Assessment:
        patient = self.patients.get_patient(patient_id)
        measurement = self.patients.latest_measurement(patient_id)
        reference_date = on or date.today()
        config = self.config_for(patient, reference_date)

        body_fat = None
        if measurement is not None:
            body_fat = estimate_body_fat(measurement, patient.sex, config.patient_type)
        weight = measurement.weight_kg if measurement else patient.weight_kg
        height = measurement.height_cm if measurement else patient.height_cm
        bmi = diagnose_bmi(weight, height, patient.age_in_years(reference_date))

        energy = estimate_tdee(patient, measurement, config, on=reference_date)
        goals = resolve_goals(energy, patient, measurement, config, on=reference_date)
        foods = await self.catalog.load()
        preferences = preferences_for(patient, reference_date)
        plan = generate_weekly_plan(goals, foods, preferences)
        _logger.info(
            "Assessed patient %s: tdee=%s target=%s warnings=%s",
            patient_id,
            energy.tdee,
            goals.calories,
            len(goals.warnings),
        )
        return Assessment(
            patient=patient,
            measurement=measurement,
            body_fat=body_fat,
            bmi=bmi,
            energy=energy,
            goals=goals,
            plan=plan,
        )

    def config_for(self, patient: Patient, on: date) -> NutritionConfig:
        """Apply deployment-wide defaults the patient's config leaves open.

        The default formula only applies to adults; children keep the
        age-specific equations.
        """
        config = patient.config
        formula = config.formula
        if formula is None and patient.age_in_years(on) >= ADULT_AGE:
            formula = self.default_formula
        return replace(
            config,
            formula=formula,
            include_tef=config.include_tef or self.include_tef,
        )


def preferences_for(patient: Patient, on: date) -> MealPlanPreferences:
    """Collect the meal plan constraints recorded for a patient."""
    return MealPlanPreferences(
        liked_foods=list(patient.config.liked_foods),
        disliked_foods=list(patient.config.disliked_foods),
        allergies=list(patient.clinical.allergies),
        pathologies=list(patient.clinical.pathologies),
        medications=list(patient.clinical.medications),
        age_years=patient.age_in_years(on),
        meal_moments=patient.config.meal_moments,
    )
