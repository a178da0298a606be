"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from clinical_nutrition.adapters.food_catalog_client import HttpxFoodCatalogClient
from clinical_nutrition.adapters.supabase_patient_repository import (
    SupabasePatientRepository,
)
from clinical_nutrition.adapters.supabase_plan_history_repository import (
    SupabasePlanHistoryRepository,
)
from clinical_nutrition.config import Settings
from clinical_nutrition.services.assessments import AssessmentService
from clinical_nutrition.services.cache import InMemoryCache
from clinical_nutrition.services.catalog import FoodCatalogService
from clinical_nutrition.services.patients import PatientService
from clinical_nutrition.services.plan_history import PlanHistoryService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: FoodCatalogService
    patient_service: PatientService
    plan_history_service: PlanHistoryService
    assessment_service: AssessmentService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog_client = HttpxFoodCatalogClient.create(resolved_settings.food_catalog_url)
    catalog_service = FoodCatalogService(
        client=catalog_client,
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.catalog_ttl_seconds,
    )
    patient_service = PatientService(SupabasePatientRepository(supabase_client))
    plan_history_service = PlanHistoryService(
        SupabasePlanHistoryRepository(supabase_client)
    )
    assessment_service = AssessmentService(
        patients=patient_service,
        catalog=catalog_service,
        default_formula=resolved_settings.default_formula,
        include_tef=resolved_settings.include_tef,
    )

    async def close_resources() -> None:
        await catalog_client.close()

    return AppContainer(
        settings=resolved_settings,
        catalog_service=catalog_service,
        patient_service=patient_service,
        plan_history_service=plan_history_service,
        assessment_service=assessment_service,
        close_resources=close_resources,
    )
