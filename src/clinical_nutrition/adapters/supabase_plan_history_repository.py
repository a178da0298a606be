"""Supabase-backed saved plan repository."""

from dataclasses import asdict, dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from clinical_nutrition.domain.foods import Food, FoodCategory, NutrientProfile
from clinical_nutrition.domain.goals import (
    ClinicalWarning,
    NutritionalGoals,
    ProteinBasisResult,
    WarningSeverity,
)
from clinical_nutrition.domain.plans import (
    DailyPlan,
    FoodItem,
    Meal,
    SavedPlan,
    WeeklyPlan,
)
from clinical_nutrition.services.plan_history import PlanHistoryRepository


@dataclass
class SupabasePlanHistoryRepository(PlanHistoryRepository):
    """Stores each saved plan as one row with JSON plan and goals columns."""

    client: Client

    def save(self, plan: SavedPlan) -> SavedPlan:
        """Insert a saved plan and return the stored row."""
        response = (
            self.client.table("plan_history")
            .insert(
                {
                    "id": str(plan.id),
                    "owner_id": str(plan.owner_id),
                    "patient_id": str(plan.patient_id) if plan.patient_id else None,
                    "name": plan.name,
                    "created_at": plan.created_at.isoformat(),
                    "plan_json": asdict(plan.plan),
                    "goals_json": asdict(plan.goals) if plan.goals else None,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save plan")
        return _parse_saved_plan(response.data[0])

    def get(self, plan_id: UUID) -> SavedPlan | None:
        """Return a saved plan by id, if present."""
        response = (
            self.client.table("plan_history")
            .select("*")
            .eq("id", str(plan_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_saved_plan(response.data[0])

    def list_for_owner(self, owner_id: UUID, limit: int) -> list[SavedPlan]:
        """Return an owner's saved plans, newest first."""
        response = (
            self.client.table("plan_history")
            .select("*")
            .eq("owner_id", str(owner_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [_parse_saved_plan(row) for row in response.data or []]

    def delete(self, plan_id: UUID) -> bool:
        """Delete a saved plan by id."""
        response = (
            self.client.table("plan_history")
            .delete()
            .eq("id", str(plan_id))
            .execute()
        )
        return bool(response.data)


def _parse_saved_plan(row: dict[str, object]) -> SavedPlan:
    goals = row.get("goals_json")
    return SavedPlan(
        id=UUID(str(row["id"])),
        owner_id=UUID(str(row["owner_id"])),
        patient_id=UUID(str(row["patient_id"])) if row.get("patient_id") else None,
        name=str(row["name"]),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        plan=_parse_week(row.get("plan_json") or {}),
        goals=_parse_goals(goals) if goals else None,
    )


def _parse_week(data: dict[str, object]) -> WeeklyPlan:
    return WeeklyPlan(
        days=[_parse_day(day) for day in data.get("days") or []],
        warnings=_parse_warnings(data.get("warnings")),
    )


def _parse_day(data: dict[str, object]) -> DailyPlan:
    return DailyPlan(
        day=str(data["day"]),
        meals=[_parse_meal(meal) for meal in data.get("meals") or []],
        stats=NutrientProfile(**data.get("stats") or {}),
        warnings=_parse_warnings(data.get("warnings")),
    )


def _parse_meal(data: dict[str, object]) -> Meal:
    return Meal(
        name=str(data["name"]),
        items=[_parse_item(item) for item in data.get("items") or []],
        stats=NutrientProfile(**data.get("stats") or {}),
        target_calories=float(data.get("target_calories") or 0.0),
    )


def _parse_item(data: dict[str, object]) -> FoodItem:
    food = data["food"]
    return FoodItem(
        id=str(data["id"]),
        food=Food(
            id=str(food["id"]),
            name=str(food["name"]),
            category=FoodCategory(food["category"]),
            nutrients=NutrientProfile(**food.get("nutrients") or {}),
            waste_factor=float(food.get("waste_factor") or 1.0),
        ),
        quantity_g=float(data["quantity_g"]),
        category=FoodCategory(data["category"]),
    )


def _parse_goals(data: dict[str, object]) -> NutritionalGoals:
    basis = data["protein_basis"]
    fields = {
        key: value
        for key, value in data.items()
        if key not in {"protein_basis", "warnings"}
    }
    return NutritionalGoals(
        **fields,
        protein_basis=ProteinBasisResult(**basis),
        warnings=_parse_warnings(data.get("warnings")),
    )


def _parse_warnings(data: object) -> list[ClinicalWarning]:
    return [
        ClinicalWarning(WarningSeverity(entry["severity"]), str(entry["message"]))
        for entry in data or []
    ]
