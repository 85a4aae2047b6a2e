"""Per-visitor storefront context wiring."""

from collections.abc import Callable
from dataclasses import dataclass

from photo_print_store.services.cart import CartStore
from photo_print_store.services.checkout import CheckoutOrchestrator, PriceResolver
from photo_print_store.services.payments import PaymentService
from photo_print_store.services.selection import SelectionService
from photo_print_store.services.storage import KeyValueStore


@dataclass
class Storefront:
    """Cart, selection and checkout sharing one storage context."""

    storage: KeyValueStore
    cart: CartStore
    selection: SelectionService
    checkout: CheckoutOrchestrator

    def open(self) -> "Storefront":
        """Load the persisted cart and follow other contexts."""
        self.cart.load()
        self.cart.attach()
        return self

    def close(self) -> None:
        """Stop following other contexts and release the storage context."""
        self.cart.detach()
        self.storage.close()


@dataclass
class StorefrontFactory:
    """Builds storefront contexts for visitors."""

    payments: PaymentService
    storage_provider: Callable[[str], KeyValueStore]
    price_resolver: PriceResolver | None = None

    def build(self, visitor_id: str) -> Storefront:
        """Create an unopened storefront for a visitor namespace."""
        storage = self.storage_provider(visitor_id)
        cart = CartStore(storage)
        selection = SelectionService(cart=cart, storage=storage)
        checkout = CheckoutOrchestrator(
            cart=cart,
            selection=selection,
            storage=storage,
            payments=self.payments,
            price_resolver=self.price_resolver,
        )
        return Storefront(
            storage=storage, cart=cart, selection=selection, checkout=checkout
        )
