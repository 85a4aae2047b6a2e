"""Per-visitor cart, selection and checkout endpoints."""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from photo_print_store.api.models import (
    AddCartItemRequest,
    SelectionRequest,
    StorefrontCheckoutRequest,
    cart_entry_payload,
    cart_payload,
    reconcile_payload,
    selection_payload,
)
from photo_print_store.services.storefront import Storefront  # noqa: TC001

if TYPE_CHECKING:
    from photo_print_store.containers import AppContainer

router = APIRouter(prefix="/storefront", tags=["storefront"])

_VISITOR_ID = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


def get_storefront(
    request: Request, x_storefront_id: str | None = Header(default=None)
) -> Iterator[Storefront]:
    """Open the visitor's storefront for the duration of one request."""
    if not x_storefront_id or not _VISITOR_ID.match(x_storefront_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Storefront-Id header is required",
        )
    container: AppContainer = request.app.state.container
    storefront = container.storefront_factory.build(x_storefront_id).open()
    try:
        yield storefront
    finally:
        storefront.close()


@router.get("/cart")
async def get_cart(
    storefront: Storefront = Depends(get_storefront),
) -> dict[str, object]:
    """Return the cart with totals and the pending selection."""
    return cart_payload(storefront)


@router.post("/cart/items")
async def add_cart_item(
    payload: AddCartItemRequest,
    request: Request,
    storefront: Storefront = Depends(get_storefront),
) -> dict[str, object]:
    """Add a photo at a size tier, priced by the catalog."""
    container: AppContainer = request.app.state.container
    entry = await container.catalog_service.build_entry(
        payload.photo_id, payload.size_tier
    )
    added = storefront.cart.add(entry)
    return {
        "added": added,
        "item": cart_entry_payload(entry),
        "cart": cart_payload(storefront),
    }


@router.delete("/cart/items/{entry_id}")
async def remove_cart_item(
    entry_id: str, storefront: Storefront = Depends(get_storefront)
) -> dict[str, object]:
    """Remove an unpurchased entry."""
    removed = storefront.cart.remove(entry_id)
    return {"removed": removed, "cart": cart_payload(storefront)}


@router.delete("/cart")
async def clear_cart(
    storefront: Storefront = Depends(get_storefront),
) -> dict[str, object]:
    """Empty the cart, purchased entries included."""
    storefront.cart.clear()
    return cart_payload(storefront)


@router.post("/selection")
async def begin_selection(
    payload: SelectionRequest, storefront: Storefront = Depends(get_storefront)
) -> dict[str, object]:
    """Choose the entries to pay for next."""
    if payload.ids is None:
        selection = storefront.selection.select_all_unpurchased()
    else:
        selection = storefront.selection.begin_selection(payload.ids)
    return selection_payload(selection)


@router.delete("/selection")
async def clear_selection(
    storefront: Storefront = Depends(get_storefront),
) -> dict[str, object]:
    storefront.selection.clear_selection()
    return {"status": "ok"}


@router.post("/checkout")
async def checkout(
    payload: StorefrontCheckoutRequest,
    storefront: Storefront = Depends(get_storefront),
) -> dict[str, object]:
    """Create a checkout session for the current selection."""
    session = await storefront.checkout.checkout_selection(
        currency=payload.currency, description=payload.description
    )
    return {"sessionId": session.id, "url": session.url}


@router.get("/checkout/success")
async def checkout_success(
    session_id: str | None = None,
    storefront: Storefront = Depends(get_storefront),
) -> dict[str, object]:
    """Reconcile the session the provider redirected back with."""
    result = await storefront.checkout.reconcile(session_id or "")
    return reconcile_payload(result, storefront.checkout.contact_info())


@router.get("/checkout/cancel")
async def checkout_cancel(
    storefront: Storefront = Depends(get_storefront),
) -> dict[str, object]:
    """Acknowledge an abandoned checkout; the cart is left as it was."""
    storefront.checkout.cancel()
    return {"status": storefront.checkout.state.value, "cart": cart_payload(storefront)}
