"""Stateless checkout and catalog endpoints used by the storefront frontend."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

from photo_print_store.api.models import CreateCheckoutSessionRequest, pricing_payload

if TYPE_CHECKING:
    from photo_print_store.containers import AppContainer

router = APIRouter(prefix="/api", tags=["checkout"])


@router.post("/create-checkout-session")
async def create_checkout_session(
    payload: CreateCheckoutSessionRequest, request: Request
) -> dict[str, object]:
    """Create a hosted checkout session for an amount."""
    container: AppContainer = request.app.state.container
    session = await container.payment_service.create_session(
        payload.amount,
        currency=payload.currency,
        description=payload.description,
    )
    return {"sessionId": session.id, "url": session.url}


@router.get("/retrieve-session")
async def retrieve_session(
    request: Request, session_id: str | None = None
) -> dict[str, object]:
    """Return a checkout session as reported by the provider."""
    container: AppContainer = request.app.state.container
    session = await container.payment_service.retrieve_session(session_id or "")
    return session.to_dict()


@router.get("/photos/{photo_id}")
async def photo_pricing(photo_id: str, request: Request) -> dict[str, object]:
    """Return size tiers and prices for a photo."""
    container: AppContainer = request.app.state.container
    pricing = await container.catalog_service.get_pricing(photo_id)
    return pricing_payload(pricing)
