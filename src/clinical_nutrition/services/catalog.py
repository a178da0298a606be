"""Food catalog loading with caching and retry."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from clinical_nutrition.adapters.food_catalog_client import FoodCatalogClient
from clinical_nutrition.domain.foods import (
    NUTRIENT_FIELDS,
    Food,
    FoodCategory,
    NutrientProfile,
)
from clinical_nutrition.services.cache import Cache

_CACHE_KEY = "catalog:foods"

_logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass
class FoodCatalogService:
    """Keeps the resident food list used by the plan generator."""

    client: FoodCatalogClient
    cache: Cache
    ttl_seconds: int = 3600
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    async def load(self) -> list[Food]:
        """Return the parsed catalog, fetching it when the cache is cold."""
        cached = self.cache.get(_CACHE_KEY)
        if isinstance(cached, list):
            return cached

        rows = await self._call_with_retry(self.client.fetch_foods, action="fetch")
        foods: list[Food] = []
        for row in rows:
            try:
                food = _parse_food(row)
            except (TypeError, ValueError) as exc:
                _logger.warning(
                    "Skipping catalog row with bad values: %s (%s)", row, exc
                )
                continue
            if food is None:
                _logger.warning("Skipping catalog row without id or name: %s", row)
                continue
            foods.append(food)
        self.cache.set(_CACHE_KEY, foods, ttl_seconds=self.ttl_seconds)
        _logger.info("Food catalog loaded: %s foods", len(foods))
        return foods

    def refresh(self) -> None:
        """Forget the cached catalog so the next load refetches it."""
        self.cache.invalidate(_CACHE_KEY)

    async def _call_with_retry(
        self,
        func: "Callable[[], Awaitable[list[dict[str, object]]]]",
        *,
        action: str,
    ) -> list[dict[str, object]]:
        attempt = 0
        while True:
            try:
                return await func()
            except Exception as exc:
                attempt += 1
                _logger.warning(
                    "Catalog %s failed (attempt %s/%s, status=%s): %s",
                    action,
                    attempt,
                    self.retry_attempts + 1,
                    _status_code_from_exception(exc),
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise
                await asyncio.sleep(self.retry_delay_seconds)


def _status_code_from_exception(exc: Exception) -> str:
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _parse_food(row: Mapping[str, object]) -> Food | None:
    food_id = row.get("id")
    name = row.get("name")
    if food_id is None or not name:
        return None
    nutrients = row.get("nutrients")
    source = nutrients if isinstance(nutrients, Mapping) else row
    try:
        category = FoodCategory(str(row.get("category", "misc")).lower())
    except ValueError:
        category = FoodCategory.MISC
    waste_factor = row.get("waste_factor")
    return Food(
        id=str(food_id),
        name=str(name),
        category=category,
        nutrients=NutrientProfile(
            **{field: _as_float(source.get(field)) for field in NUTRIENT_FIELDS}
        ),
        waste_factor=_as_float(waste_factor) if waste_factor else 1.0,
    )


def _as_float(value: object) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)
