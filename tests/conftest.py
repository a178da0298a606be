"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID, uuid4

import pytest

from clinical_nutrition.adapters.food_catalog_client import FoodCatalogClient
from clinical_nutrition.config import Settings
from clinical_nutrition.containers import AppContainer
from clinical_nutrition.domain.foods import Food, FoodCategory, NutrientProfile
from clinical_nutrition.domain.goals import NutritionalGoals, ProteinBasisResult
from clinical_nutrition.domain.measurements import Measurement
from clinical_nutrition.domain.patients import (
    ClinicalRecord,
    NutritionConfig,
    Patient,
    Sex,
)
from clinical_nutrition.domain.plans import SavedPlan
from clinical_nutrition.services.assessments import AssessmentService
from clinical_nutrition.services.cache import InMemoryCache
from clinical_nutrition.services.catalog import FoodCatalogService
from clinical_nutrition.services.patients import PatientRepository, PatientService
from clinical_nutrition.services.plan_history import (
    PlanHistoryRepository,
    PlanHistoryService,
)

REFERENCE_DATE = date(2024, 6, 1)


@dataclass
class InMemoryPatientRepository(PatientRepository):
    """In-memory patient repository for tests."""

    patients: dict[UUID, Patient] = field(default_factory=dict)
    measurements: dict[UUID, list[Measurement]] = field(default_factory=dict)

    def add(self, patient: Patient, *measurements: Measurement) -> None:
        self.patients[patient.id] = patient
        self.measurements.setdefault(patient.id, []).extend(measurements)

    def get_patient(self, patient_id: UUID) -> Patient | None:
        return self.patients.get(patient_id)

    def list_measurements(self, patient_id: UUID) -> list[Measurement]:
        return list(self.measurements.get(patient_id, []))


@dataclass
class InMemoryPlanHistoryRepository(PlanHistoryRepository):
    """In-memory saved plan repository for tests."""

    plans: dict[UUID, SavedPlan] = field(default_factory=dict)

    def save(self, plan: SavedPlan) -> SavedPlan:
        self.plans[plan.id] = plan
        return plan

    def get(self, plan_id: UUID) -> SavedPlan | None:
        return self.plans.get(plan_id)

    def list_for_owner(self, owner_id: UUID, limit: int) -> list[SavedPlan]:
        owned = [plan for plan in self.plans.values() if plan.owner_id == owner_id]
        owned.sort(key=lambda plan: plan.created_at, reverse=True)
        return owned[:limit]

    def delete(self, plan_id: UUID) -> bool:
        return self.plans.pop(plan_id, None) is not None


@dataclass
class FakeFoodCatalogClient(FoodCatalogClient):
    """Fake catalog client serving fixed rows."""

    rows: list[dict[str, object]] = field(default_factory=list)
    failures: int = 0
    calls: int = 0

    async def fetch_foods(self) -> list[dict[str, object]]:
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise RuntimeError("catalog unavailable")
        return list(self.rows)


def make_food(  # noqa: PLR0913
    food_id: str,
    name: str,
    category: FoodCategory,
    calories: float,
    protein_g: float = 0.0,
    carbs_g: float = 0.0,
    fat_g: float = 0.0,
    **nutrients: float,
) -> Food:
    return Food(
        id=food_id,
        name=name,
        category=category,
        nutrients=NutrientProfile(
            calories=calories,
            protein_g=protein_g,
            carbs_g=carbs_g,
            fat_g=fat_g,
            **nutrients,
        ),
    )


def sample_foods() -> list[Food]:
    """A small catalog covering every meal slot."""
    return [
        make_food("chicken", "Chicken breast", FoodCategory.PROTEIN, 165, 31, 0, 3.6),
        make_food("salmon", "Salmon fillet", FoodCategory.PROTEIN, 208, 20, 0, 13),
        make_food(
            "liver", "Beef liver", FoodCategory.PROTEIN, 135, 20, 3.9, 3.6, iron_mg=6.5
        ),
        make_food("egg", "Egg", FoodCategory.PROTEIN, 155, 13, 1.1, 11),
        make_food("rice", "White rice", FoodCategory.CARBOHYDRATE, 130, 2.7, 28, 0.3),
        make_food("oats", "Rolled oats", FoodCategory.CARBOHYDRATE, 389, 17, 66, 7),
        make_food("potato", "Potato", FoodCategory.CARBOHYDRATE, 77, 2, 17, 0.1),
        make_food(
            "bread", "Whole wheat bread", FoodCategory.CARBOHYDRATE, 247, 13, 41, 3.4
        ),
        make_food("broccoli", "Broccoli", FoodCategory.VEGETABLE, 34, 2.8, 7, 0.4),
        make_food("spinach", "Spinach", FoodCategory.VEGETABLE, 23, 2.9, 3.6, 0.4),
        make_food("carrot", "Carrot", FoodCategory.VEGETABLE, 41, 0.9, 10, 0.2),
        make_food("olive-oil", "Olive oil", FoodCategory.FAT, 884, 0, 0, 100),
        make_food("avocado", "Avocado", FoodCategory.FAT, 160, 2, 9, 15),
        make_food("banana", "Banana", FoodCategory.FRUIT, 89, 1.1, 23, 0.3),
        make_food("apple", "Apple", FoodCategory.FRUIT, 52, 0.3, 14, 0.2),
        make_food("orange", "Orange", FoodCategory.FRUIT, 47, 0.9, 12, 0.1),
        make_food(
            "milk", "Skim milk", FoodCategory.DAIRY, 34, 3.4, 5, 0.1, calcium_mg=122
        ),
        make_food(
            "yogurt", "Greek yogurt", FoodCategory.DAIRY, 59, 10, 3.6, 0.4,
            calcium_mg=110,
        ),
        make_food(
            "cheese", "Fresh cheese", FoodCategory.DAIRY, 98, 11, 3.4, 4.3,
            calcium_mg=83,
        ),
        make_food("honey", "Honey", FoodCategory.MISC, 304, 0.3, 82, 0),
    ]


def sample_food_rows() -> list[dict[str, object]]:
    """Catalog rows as the remote service returns them."""
    rows: list[dict[str, object]] = []
    for food in sample_foods():
        rows.append(
            {
                "id": food.id,
                "name": food.name,
                "category": food.category.value,
                "nutrients": {
                    "calories": food.nutrients.calories,
                    "protein_g": food.nutrients.protein_g,
                    "carbs_g": food.nutrients.carbs_g,
                    "fat_g": food.nutrients.fat_g,
                    "iron_mg": food.nutrients.iron_mg,
                    "calcium_mg": food.nutrients.calcium_mg,
                },
            }
        )
    return rows


def make_goals(calories: float = 2000.0) -> NutritionalGoals:
    """Maintenance goals with a 20/50/30 macro split."""
    return NutritionalGoals(
        calories=calories,
        tdee=calories,
        kcal_adjustment=0.0,
        preset_label="maintenance",
        protein_percent=20.0,
        carbs_percent=50.0,
        fat_percent=30.0,
        protein_g=round(calories * 0.2 / 4, 1),
        carbs_g=round(calories * 0.5 / 4, 1),
        fat_g=round(calories * 0.3 / 9, 1),
        protein_basis=ProteinBasisResult("total", 80.0, "Total weight"),
    )


def make_patient(  # noqa: PLR0913
    *,
    birth_date: date = date(1994, 1, 1),
    sex: Sex = Sex.MALE,
    weight_kg: float = 80.0,
    height_cm: float = 180.0,
    config: NutritionConfig | None = None,
    clinical: ClinicalRecord | None = None,
) -> Patient:
    return Patient(
        id=uuid4(),
        owner_id=uuid4(),
        name="Test patient",
        birth_date=birth_date,
        sex=sex,
        weight_kg=weight_kg,
        height_cm=height_cm,
        clinical=clinical or ClinicalRecord(),
        config=config or NutritionConfig(),
    )


def patient_payload(**overrides: object) -> dict[str, object]:
    """JSON body for an inline patient."""
    payload: dict[str, object] = {
        "birth_date": "1994-01-01",
        "sex": "male",
        "weight_kg": 80,
        "height_cm": 180,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="eyJhbGciOiJIUzI1NiJ9.eyJyb2xlIjoic2VydmljZSJ9.signature",
        api_token="api-token",
        food_catalog_url="https://catalog.example/foods.json",
    )


@pytest.fixture
def catalog_client() -> FakeFoodCatalogClient:
    return FakeFoodCatalogClient(rows=sample_food_rows())


@pytest.fixture
def patient_repository() -> InMemoryPatientRepository:
    return InMemoryPatientRepository()


@pytest.fixture
def plan_repository() -> InMemoryPlanHistoryRepository:
    return InMemoryPlanHistoryRepository()


@pytest.fixture
def container(
    settings: Settings,
    catalog_client: FakeFoodCatalogClient,
    patient_repository: InMemoryPatientRepository,
    plan_repository: InMemoryPlanHistoryRepository,
) -> AppContainer:
    catalog_service = FoodCatalogService(client=catalog_client, cache=InMemoryCache())
    patient_service = PatientService(patient_repository)
    plan_history_service = PlanHistoryService(plan_repository)
    assessment_service = AssessmentService(
        patients=patient_service, catalog=catalog_service
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        catalog_service=catalog_service,
        patient_service=patient_service,
        plan_history_service=plan_history_service,
        assessment_service=assessment_service,
        close_resources=close_resources,
    )
