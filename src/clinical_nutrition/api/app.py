"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from clinical_nutrition.api.engine import patients_router
from clinical_nutrition.api.engine import router as engine_router
from clinical_nutrition.api.plans import router as plans_router
from clinical_nutrition.app_logging import configure_logging
from clinical_nutrition.containers import AppContainer
from clinical_nutrition.services.patients import PatientNotFoundError
from clinical_nutrition.services.plan_editing import PlanEditError
from clinical_nutrition.services.plan_history import PlanNotFoundError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="Clinical Nutrition Engine", lifespan=lifespan)
    app.state.container = container

    app.include_router(engine_router)
    app.include_router(patients_router)
    app.include_router(plans_router)

    async def not_found(request: Request, exc: Exception) -> JSONResponse:
        logger.info("Not found on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)}
        )

    app.add_exception_handler(PatientNotFoundError, not_found)
    app.add_exception_handler(PlanNotFoundError, not_found)

    @app.exception_handler(PlanEditError)
    async def invalid_edit(request: Request, exc: PlanEditError) -> JSONResponse:
        logger.info("Rejected edit on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
