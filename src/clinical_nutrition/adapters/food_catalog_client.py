"""HTTP client for the food composition catalog."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class FoodCatalogClient(Protocol):
    """Source of raw food composition rows."""

    async def fetch_foods(self) -> list[dict[str, object]]:
        """Return every catalog row as decoded JSON."""


@dataclass
class HttpxFoodCatalogClient(FoodCatalogClient):
    """HTTPX-backed catalog client."""

    url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 15

    @classmethod
    def create(cls, url: str) -> "HttpxFoodCatalogClient":
        """Create a catalog client with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient())

    async def fetch_foods(self) -> list[dict[str, object]]:
        response = await self.http_client.get(self.url, timeout=self.timeout_seconds)
        response.raise_for_status()
        payload = response.json()
        # Accept either a bare list or an envelope like {"foods": [...]}.
        if isinstance(payload, dict):
            payload = payload.get("foods", [])
        return list(payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
