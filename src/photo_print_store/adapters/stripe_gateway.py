"""Stripe Checkout adapter."""

from collections.abc import Mapping
from dataclasses import dataclass

import stripe

from photo_print_store.domain.checkout import PaymentHistoryPage, PaymentSession
from photo_print_store.services.payments import PaymentGateway


@dataclass
class StripePaymentGateway(PaymentGateway):
    """Payment gateway backed by Stripe Checkout sessions."""

    client: stripe.StripeClient
    http_client: stripe.HTTPXClient | None = None

    @classmethod
    def create(cls, api_key: str, timeout: float = 30) -> "StripePaymentGateway":
        """Create a gateway whose Stripe client talks over async httpx."""
        http_client = stripe.HTTPXClient(timeout=timeout)
        return cls(
            client=stripe.StripeClient(api_key, http_client=http_client),
            http_client=http_client,
        )

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
        """Create a one-line checkout session for the given amount."""
        session = await self.client.checkout.sessions.create_async(
            params={
                "mode": "payment",
                "payment_method_types": ["card"],
                "line_items": [
                    {
                        "price_data": {
                            "currency": currency,
                            "product_data": {"name": description},
                            "unit_amount": amount_minor,
                        },
                        "quantity": 1,
                    }
                ],
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
            }
        )
        return PaymentSession.from_provider(_as_mapping(session))

    async def retrieve_session(self, session_id: str) -> PaymentSession:
        """Retrieve a checkout session by id."""
        session = await self.client.checkout.sessions.retrieve_async(session_id)
        return PaymentSession.from_provider(_as_mapping(session))

    async def list_sessions(
        self, limit: int = 10, starting_after: str | None = None
    ) -> PaymentHistoryPage:
        """List recent checkout sessions."""
        params: dict[str, object] = {"limit": limit}
        if starting_after:
            params["starting_after"] = starting_after
        page = _as_mapping(await self.client.checkout.sessions.list_async(params=params))
        return PaymentHistoryPage(
            sessions=[
                PaymentSession.from_provider(_as_mapping(item))
                for item in page.get("data") or []
            ],
            has_more=bool(page.get("has_more")),
        )

    async def close(self) -> None:
        """Release the async HTTP session held by the Stripe client."""
        if self.http_client is not None:
            await self.http_client.close_async()


def _as_mapping(value: object) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        return value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Unexpected Stripe payload: {type(value).__name__}")
