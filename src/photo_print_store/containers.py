"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from photo_print_store.adapters.catalog_client import HttpxCatalogClient
from photo_print_store.adapters.memory_storage import InMemoryStorageRegistry
from photo_print_store.adapters.stripe_gateway import StripePaymentGateway
from photo_print_store.adapters.supabase_storage import SupabaseStore
from photo_print_store.config import (
    Settings,
    checkout_cancel_url,
    checkout_success_url,
)
from photo_print_store.services.cache import InMemoryCache
from photo_print_store.services.catalog import CatalogService
from photo_print_store.services.payments import PaymentService
from photo_print_store.services.storage import KeyValueStore
from photo_print_store.services.storefront import StorefrontFactory


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    payment_service: PaymentService
    catalog_service: CatalogService
    storefront_factory: StorefrontFactory
    close_resources: Callable[[], Awaitable[None]]


def build_storage_provider(settings: Settings) -> Callable[[str], KeyValueStore]:
    """Return a factory opening one storage context per visitor namespace."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase storage requires SUPABASE_URL and key")
        supabase_client = create_client(
            settings.supabase_url, settings.supabase_service_key
        )

        def supabase_store(namespace: str) -> KeyValueStore:
            return SupabaseStore(
                client=supabase_client,
                namespace=namespace,
                table=settings.storage_table,
            )

        return supabase_store
    registry = InMemoryStorageRegistry(quota_bytes=settings.storage_quota_bytes)
    return registry.connect


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    gateway = StripePaymentGateway.create(
        resolved_settings.stripe_secret_key,
        timeout=resolved_settings.stripe_timeout_seconds,
    )
    payment_service = PaymentService(
        gateway=gateway,
        success_url=checkout_success_url(resolved_settings),
        cancel_url=checkout_cancel_url(resolved_settings),
        default_currency=resolved_settings.checkout_currency,
        default_description=resolved_settings.checkout_description,
        retrieval_timeout_seconds=resolved_settings.reconcile_timeout_seconds,
    )
    catalog_client = HttpxCatalogClient.create(
        base_url=resolved_settings.catalog_base_url,
        api_key=resolved_settings.catalog_api_key,
    )
    catalog_service = CatalogService(
        client=catalog_client,
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.catalog_cache_ttl_seconds,
    )
    storefront_factory = StorefrontFactory(
        payments=payment_service,
        storage_provider=build_storage_provider(resolved_settings),
        price_resolver=catalog_service,
    )

    async def close_resources() -> None:
        await catalog_client.close()
        await gateway.close()

    return AppContainer(
        settings=resolved_settings,
        payment_service=payment_service,
        catalog_service=catalog_service,
        storefront_factory=storefront_factory,
        close_resources=close_resources,
    )
