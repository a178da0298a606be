"""Stateless engine endpoints and token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from clinical_nutrition.api.schemas import (  # noqa: TC001
    AnemiaRequest,
    EngineRequest,
    PediatricRequest,
)
from clinical_nutrition.services.anemia import generate_anemia_protocol
from clinical_nutrition.services.anthropometry import diagnose_bmi, estimate_body_fat
from clinical_nutrition.services.assessments import preferences_for
from clinical_nutrition.services.energy import estimate_tdee
from clinical_nutrition.services.goals import resolve_goals
from clinical_nutrition.services.meal_plans import generate_weekly_plan
from clinical_nutrition.services.pediatric import generate_pediatric_plan

if TYPE_CHECKING:
    from clinical_nutrition.containers import AppContainer
    from clinical_nutrition.domain.goals import EnergyEstimate, NutritionalGoals
    from clinical_nutrition.domain.plans import WeeklyPlan


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


router = APIRouter(
    prefix="/engine", tags=["engine"], dependencies=[Depends(require_token)]
)
patients_router = APIRouter(
    prefix="/patients", tags=["patients"], dependencies=[Depends(require_token)]
)


@router.post("/energy")
async def energy(payload: EngineRequest, request: Request) -> dict[str, object]:
    """Estimate BMR and TDEE, plus body composition when measured."""
    container: AppContainer = request.app.state.container
    patient = payload.patient.to_domain()
    measurement = payload.measurement_for(patient)
    on = payload.reference_date()
    config = container.assessment_service.config_for(patient, on)
    body_fat = (
        estimate_body_fat(measurement, patient.sex, config.patient_type)
        if measurement
        else None
    )
    weight = measurement.weight_kg if measurement else patient.weight_kg
    height = measurement.height_cm if measurement else patient.height_cm
    bmi = diagnose_bmi(weight, height, patient.age_in_years(on))
    return {
        "energy": asdict(estimate_tdee(patient, measurement, config, on=on)),
        "body_fat": asdict(body_fat) if body_fat else None,
        "bmi": asdict(bmi) if bmi else None,
    }


@router.post("/goals")
async def goals(payload: EngineRequest, request: Request) -> dict[str, object]:
    """Resolve daily targets with every safety override applied."""
    container: AppContainer = request.app.state.container
    energy_estimate, resolved = _energy_and_goals(payload, container)
    return {"energy": asdict(energy_estimate), "goals": asdict(resolved)}


@router.post("/plans/weekly")
async def weekly_plan(payload: EngineRequest, request: Request) -> dict[str, object]:
    """Generate a seven-day plan from the resident food catalog."""
    container: AppContainer = request.app.state.container
    energy_estimate, resolved, plan = await build_weekly_plan(payload, container)
    return {
        "energy": asdict(energy_estimate),
        "goals": asdict(resolved),
        "plan": asdict(plan),
    }


@router.post("/protocols/pediatric")
async def pediatric_protocol(payload: PediatricRequest) -> dict[str, object]:
    plan = generate_pediatric_plan(
        payload.age_months, payload.lactation_type, payload.has_iron_supplementation
    )
    return asdict(plan)


@router.post("/protocols/anemia")
async def anemia_protocol(payload: AnemiaRequest) -> dict[str, object]:
    return asdict(generate_anemia_protocol(payload.to_domain()))


@patients_router.get("/{patient_id}/assessment")
async def patient_assessment(patient_id: UUID, request: Request) -> dict[str, object]:
    """Run the full pipeline for a stored patient's latest measurement."""
    container: AppContainer = request.app.state.container
    assessment = await container.assessment_service.assess(patient_id)
    return asdict(assessment)


async def build_weekly_plan(
    payload: EngineRequest, container: AppContainer
) -> tuple[EnergyEstimate, NutritionalGoals, WeeklyPlan]:
    """Compute energy, goals and a weekly plan for an inline patient."""
    energy_estimate, resolved = _energy_and_goals(payload, container)
    patient = payload.patient.to_domain()
    foods = await container.catalog_service.load()
    plan = generate_weekly_plan(
        resolved, foods, preferences_for(patient, payload.reference_date())
    )
    return energy_estimate, resolved, plan


def _energy_and_goals(
    payload: EngineRequest, container: AppContainer
) -> tuple[EnergyEstimate, NutritionalGoals]:
    patient = payload.patient.to_domain()
    measurement = payload.measurement_for(patient)
    on = payload.reference_date()
    config = container.assessment_service.config_for(patient, on)
    energy_estimate = estimate_tdee(patient, measurement, config, on=on)
    resolved = resolve_goals(energy_estimate, patient, measurement, config, on=on)
    return energy_estimate, resolved
