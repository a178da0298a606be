"""Saved plan history."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from clinical_nutrition.domain.goals import NutritionalGoals
from clinical_nutrition.domain.plans import SavedPlan, WeeklyPlan
from clinical_nutrition.services import plan_editing
from clinical_nutrition.services.plan_editing import PlanEditError

_logger = logging.getLogger(__name__)


class PlanNotFoundError(LookupError):
    """Raised when a saved plan id does not exist."""


class PlanHistoryRepository(Protocol):
    """Persistence interface for saved plans."""

    def save(self, plan: SavedPlan) -> SavedPlan:
        """Insert a saved plan and return it."""

    def get(self, plan_id: UUID) -> SavedPlan | None:
        """Return a saved plan by id, if present."""

    def list_for_owner(self, owner_id: UUID, limit: int) -> list[SavedPlan]:
        """Return an owner's saved plans, newest first."""

    def delete(self, plan_id: UUID) -> bool:
        """Delete a saved plan; return whether a row was removed."""


@dataclass
class PlanHistoryService:
    """Stores immutable snapshots of generated plans."""

    repository: PlanHistoryRepository

    def save(
        self,
        owner_id: UUID,
        name: str,
        plan: WeeklyPlan,
        *,
        patient_id: UUID | None = None,
        goals: NutritionalGoals | None = None,
    ) -> SavedPlan:
        saved = self.repository.save(
            SavedPlan(
                id=uuid4(),
                owner_id=owner_id,
                patient_id=patient_id,
                name=name,
                created_at=datetime.now(tz=UTC),
                plan=plan,
                goals=goals,
            )
        )
        _logger.info("Saved plan %s for owner %s", saved.id, owner_id)
        return saved

    def get(self, plan_id: UUID) -> SavedPlan:
        saved = self.repository.get(plan_id)
        if saved is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        return saved

    def list_plans(self, owner_id: UUID, limit: int = 20) -> list[SavedPlan]:
        return self.repository.list_for_owner(owner_id, limit)

    def clone(self, plan_id: UUID, name: str | None = None) -> SavedPlan:
        """Copy a saved plan under a new id so it can be edited separately."""
        source = self.get(plan_id)
        return self.repository.save(
            replace(
                source,
                id=uuid4(),
                name=name or f"{source.name} (copy)",
                created_at=datetime.now(tz=UTC),
            )
        )

    def change_quantity(  # noqa: PLR0913
        self,
        plan_id: UUID,
        day_index: int,
        meal_index: int,
        item_id: str,
        quantity_g: float,
    ) -> SavedPlan:
        """Store a revision of a saved plan with one item's quantity changed."""
        source = self.get(plan_id)
        if not 0 <= day_index < len(source.plan.days):
            raise PlanEditError(f"Day index {day_index} out of range")
        day = plan_editing.change_quantity(
            source.plan.days[day_index], meal_index, item_id, quantity_g
        )
        return self.repository.save(
            replace(
                source,
                id=uuid4(),
                created_at=datetime.now(tz=UTC),
                plan=plan_editing.replace_day(source.plan, day_index, day),
            )
        )

    def delete(self, plan_id: UUID) -> None:
        if not self.repository.delete(plan_id):
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        _logger.info("Deleted plan %s", plan_id)
