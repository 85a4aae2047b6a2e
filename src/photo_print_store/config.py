"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    stripe_secret_key: str
    admin_token: str
    catalog_base_url: str
    catalog_api_key: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    storage_backend: Literal["memory", "supabase"] = "memory"
    storage_table: str = "storefront_storage"
    storage_quota_bytes: int | None = None
    site_url: str = "http://localhost:3000"
    checkout_currency: str = "cad"
    checkout_description: str = "Photo print purchase"
    stripe_timeout_seconds: float = 30
    reconcile_timeout_seconds: float = 10
    catalog_cache_ttl_seconds: float = 300
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def checkout_success_url(settings: Settings) -> str:
    """Return the provider redirect target after a completed payment.

    The provider substitutes `{CHECKOUT_SESSION_ID}` with the real session id.
    """
    base = settings.site_url.rstrip("/")
    return f"{base}/payment-success?session_id={{CHECKOUT_SESSION_ID}}"


def checkout_cancel_url(settings: Settings) -> str:
    """Return the provider redirect target after an abandoned payment."""
    return f"{settings.site_url.rstrip('/')}/payment-cancelled"
