"""Saved plan history endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, Response, status

from clinical_nutrition.api.engine import build_weekly_plan, require_token
from clinical_nutrition.api.schemas import (  # noqa: TC001
    ClonePlanRequest,
    QuantityChangeRequest,
    SavePlanRequest,
)

if TYPE_CHECKING:
    from clinical_nutrition.containers import AppContainer

router = APIRouter(
    prefix="/plans/history", tags=["plans"], dependencies=[Depends(require_token)]
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def save_plan(payload: SavePlanRequest, request: Request) -> dict[str, object]:
    """Generate a weekly plan and store a snapshot of it."""
    container: AppContainer = request.app.state.container
    _, resolved, plan = await build_weekly_plan(payload, container)
    saved = container.plan_history_service.save(
        payload.owner_id,
        payload.name,
        plan,
        patient_id=payload.patient_id,
        goals=resolved,
    )
    return asdict(saved)


@router.get("")
async def list_plans(
    owner_id: UUID, request: Request, limit: int = 20
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    plans = container.plan_history_service.list_plans(owner_id, limit)
    return {
        "plans": [
            {
                "id": saved.id,
                "name": saved.name,
                "patient_id": saved.patient_id,
                "created_at": saved.created_at,
            }
            for saved in plans
        ]
    }


@router.get("/{plan_id}")
async def get_plan(plan_id: UUID, request: Request) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return asdict(container.plan_history_service.get(plan_id))


@router.post("/{plan_id}/clone", status_code=status.HTTP_201_CREATED)
async def clone_plan(
    plan_id: UUID, payload: ClonePlanRequest, request: Request
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return asdict(container.plan_history_service.clone(plan_id, payload.name))


@router.post("/{plan_id}/quantity", status_code=status.HTTP_201_CREATED)
async def change_quantity(
    plan_id: UUID, payload: QuantityChangeRequest, request: Request
) -> dict[str, object]:
    """Store a revision with one item's quantity changed."""
    container: AppContainer = request.app.state.container
    saved = container.plan_history_service.change_quantity(
        plan_id,
        payload.day_index,
        payload.meal_index,
        payload.item_id,
        payload.quantity_g,
    )
    return asdict(saved)


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(plan_id: UUID, request: Request) -> Response:
    container: AppContainer = request.app.state.container
    container.plan_history_service.delete(plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
