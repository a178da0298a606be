"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from clinical_nutrition.domain.patients import EnergyFormula

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    food_catalog_url: str
    catalog_ttl_seconds: int = 3600
    default_formula: EnergyFormula | None = None
    include_tef: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
