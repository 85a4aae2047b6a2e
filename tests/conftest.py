"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace

import pytest

from photo_print_store.adapters.catalog_client import CatalogClient
from photo_print_store.adapters.memory_storage import (
    InMemoryStorageHub,
    InMemoryStorageRegistry,
    InMemoryStore,
)
from photo_print_store.config import (
    Settings,
    checkout_cancel_url,
    checkout_success_url,
)
from photo_print_store.containers import AppContainer
from photo_print_store.domain.cart import CartEntry
from photo_print_store.domain.checkout import PaymentHistoryPage, PaymentSession
from photo_print_store.domain.errors import StorageUnavailable
from photo_print_store.services.cache import InMemoryCache
from photo_print_store.services.cart import CartStore
from photo_print_store.services.catalog import CatalogService
from photo_print_store.services.checkout import CheckoutOrchestrator
from photo_print_store.services.payments import PaymentGateway, PaymentService
from photo_print_store.services.selection import SelectionService
from photo_print_store.services.storefront import StorefrontFactory


def make_entry(
    photo_id: str | int = "101", size_tier: str = "small", price: str = "12.00"
) -> CartEntry:
    return CartEntry.create(
        photo_id=photo_id,
        size_tier=size_tier,
        unit_price=price,
        image_locator=f"https://cdn.example.com/{photo_id}.jpg",
        display_label=f"Photo {photo_id} ({size_tier})",
    )


@dataclass
class RejectingStorageHub(InMemoryStorageHub):
    """Hub that rejects writes to the listed keys."""

    rejected_keys: set[str] = field(default_factory=set)

    def write(self, origin: InMemoryStore, key: str, raw: str) -> None:
        if key in self.rejected_keys:
            raise StorageUnavailable("Storage write rejected", details={"key": key})
        super().write(origin, key, raw)


@dataclass
class FakePaymentGateway(PaymentGateway):
    """Records provider calls and serves sessions from memory."""

    sessions: dict[str, PaymentSession] = field(default_factory=dict)
    create_calls: list[dict[str, object]] = field(default_factory=list)
    retrieve_calls: list[str] = field(default_factory=list)
    fail_create: bool = False
    fail_retrieve: bool = False
    retrieve_delay: float = 0

    async def create_session(  # noqa: PLR0913
        self,
        *,
        amount_minor: int,
        currency: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
    ) -> PaymentSession:
        self.create_calls.append(
            {
                "amount_minor": amount_minor,
                "currency": currency,
                "description": description,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
            }
        )
        if self.fail_create:
            raise RuntimeError("provider unavailable")
        session_id = f"cs_test_{len(self.create_calls)}"
        session = PaymentSession(
            id=session_id,
            status="unpaid",
            checkout_status="open",
            amount_total=amount_minor,
            currency=currency,
            url=f"https://checkout.example.com/pay/{session_id}",
            metadata=dict(metadata),
        )
        self.sessions[session_id] = session
        return session

    async def retrieve_session(self, session_id: str) -> PaymentSession:
        self.retrieve_calls.append(session_id)
        if self.retrieve_delay:
            await asyncio.sleep(self.retrieve_delay)
        if self.fail_retrieve:
            raise RuntimeError("provider unavailable")
        if session_id not in self.sessions:
            raise LookupError(session_id)
        return self.sessions[session_id]

    async def list_sessions(
        self, limit: int = 10, starting_after: str | None = None
    ) -> PaymentHistoryPage:
        ordered = list(reversed(self.sessions.values()))
        if starting_after is not None:
            ids = [session.id for session in ordered]
            ordered = ordered[ids.index(starting_after) + 1 :]
        return PaymentHistoryPage(
            sessions=ordered[:limit], has_more=len(ordered) > limit
        )

    def complete(
        self,
        session_id: str,
        email: str | None = "buyer@example.com",
        name: str | None = "Ada Buyer",
    ) -> None:
        """Simulate the buyer finishing payment on the hosted page."""
        self.sessions[session_id] = replace(
            self.sessions[session_id],
            status="paid",
            checkout_status="complete",
            customer_email=email,
            customer_name=name,
        )

    def expire(self, session_id: str) -> None:
        self.sessions[session_id] = replace(
            self.sessions[session_id], checkout_status="expired"
        )


@dataclass
class FakeCatalogClient(CatalogClient):
    """Serves photo records from memory and counts lookups."""

    photos: dict[str, dict[str, object]] = field(
        default_factory=lambda: {
            "101": {
                "id": "101",
                "title": "Harbour at dawn",
                "description": "Long exposure",
                "s3_newsize_path": "https://cdn.example.com/101.jpg",
                "prices": {
                    "small": {"S": "12.00"},
                    "medium": {"S": "24.00"},
                    "large": {"S": "48.00"},
                },
            },
            "202": {
                "id": "202",
                "title": "Alpine lake",
                "s3_newsize_path": "https://cdn.example.com/202.jpg",
                "prices": {"small": "10.00", "medium": "20.00"},
            },
        }
    )
    calls: list[str] = field(default_factory=list)
    fail: bool = False

    async def get_photo_info(self, photo_id: str) -> dict[str, object]:
        self.calls.append(photo_id)
        if self.fail:
            raise RuntimeError("catalog down")
        return self.photos[photo_id]

    async def close(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        stripe_secret_key="sk_test_123",
        admin_token="admin-token",
        catalog_base_url="https://catalog.example.com/prod",
        site_url="https://prints.example.com",
    )


@pytest.fixture
def gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def payment_service(settings: Settings, gateway: FakePaymentGateway) -> PaymentService:
    return PaymentService(
        gateway=gateway,
        success_url=checkout_success_url(settings),
        cancel_url=checkout_cancel_url(settings),
        retrieval_timeout_seconds=0.5,
    )


@pytest.fixture
def catalog_client() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def catalog_service(catalog_client: FakeCatalogClient) -> CatalogService:
    return CatalogService(client=catalog_client, cache=InMemoryCache())


@pytest.fixture
def registry() -> InMemoryStorageRegistry:
    return InMemoryStorageRegistry()


@pytest.fixture
def storage(registry: InMemoryStorageRegistry) -> InMemoryStore:
    return registry.connect("visitor-1")


@pytest.fixture
def cart(storage: InMemoryStore) -> CartStore:
    store = CartStore(storage)
    store.load()
    return store


@pytest.fixture
def selection(cart: CartStore, storage: InMemoryStore) -> SelectionService:
    return SelectionService(cart=cart, storage=storage)


@pytest.fixture
def orchestrator(
    cart: CartStore,
    selection: SelectionService,
    storage: InMemoryStore,
    payment_service: PaymentService,
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        cart=cart, selection=selection, storage=storage, payments=payment_service
    )


@pytest.fixture
def storefront_factory(
    payment_service: PaymentService,
    catalog_service: CatalogService,
    registry: InMemoryStorageRegistry,
) -> StorefrontFactory:
    return StorefrontFactory(
        payments=payment_service,
        storage_provider=registry.connect,
        price_resolver=catalog_service,
    )


@pytest.fixture
def container(
    settings: Settings,
    payment_service: PaymentService,
    catalog_service: CatalogService,
    storefront_factory: StorefrontFactory,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        payment_service=payment_service,
        catalog_service=catalog_service,
        storefront_factory=storefront_factory,
        close_resources=close_resources,
    )


@pytest.fixture
def small_and_medium() -> tuple[CartEntry, CartEntry]:
    return make_entry("101", "small", "12.00"), make_entry("202", "medium", "20.00")
