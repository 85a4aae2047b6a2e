"""Pydantic request models and response serializers for the HTTP API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from photo_print_store.domain.cart import CartEntry
from photo_print_store.domain.catalog import PhotoPricing
from photo_print_store.domain.checkout import ReconcileResult, Selection
from photo_print_store.services.storefront import Storefront


class CreateCheckoutSessionRequest(BaseModel):
    """Ad-hoc checkout for an amount in major currency units."""

    amount: int | float | str | None = None
    currency: str | None = None
    description: str | None = None


class AddCartItemRequest(BaseModel):
    """Photo and size tier to put in the cart."""

    photo_id: str | int
    size_tier: str = Field(min_length=1)


class SelectionRequest(BaseModel):
    """Entries to pay for; omitted ids select every unpurchased entry."""

    ids: list[str | int] | None = None


class StorefrontCheckoutRequest(BaseModel):
    """Options for checking out the current selection."""

    currency: str | None = None
    description: str | None = None


def cart_entry_payload(entry: CartEntry) -> dict[str, object]:
    return entry.to_dict()


def selection_payload(selection: Selection) -> dict[str, object]:
    return {"ids": list(selection.ids), "total": str(selection.total)}


def cart_payload(storefront: Storefront) -> dict[str, object]:
    """Serialize a visitor's cart with its totals and current selection."""
    cart = storefront.cart
    unpurchased_total = sum(
        (entry.unit_price for entry in cart.unpurchased()), Decimal("0")
    )
    return {
        "items": [cart_entry_payload(entry) for entry in cart.entries()],
        "total": str(cart.total()),
        "unpurchased_total": str(unpurchased_total),
        "selection": selection_payload(storefront.selection.consume_selection()),
    }


def pricing_payload(pricing: PhotoPricing) -> dict[str, object]:
    return {
        "id": pricing.photo_id,
        "title": pricing.title,
        "description": pricing.description,
        "image_url": pricing.image_locator,
        "prices": {tier: str(price) for tier, price in pricing.prices.items()},
    }


def reconcile_payload(
    result: ReconcileResult, contact: dict[str, str]
) -> dict[str, object]:
    """Serialize a reconcile outcome for the payment-success view."""
    return {
        "session_id": result.session_id,
        "status": result.status,
        "confirmed": result.confirmed,
        "already_confirmed": result.already_confirmed,
        "purchased_ids": list(result.purchased_ids),
        "session": result.session.to_dict() if result.session else None,
        "contact": contact,
    }
