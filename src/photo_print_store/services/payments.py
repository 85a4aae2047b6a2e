"""Payment-session service in front of the hosted checkout provider."""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from photo_print_store.domain.cart import to_decimal
from photo_print_store.domain.checkout import (
    PaymentHistoryPage,
    PaymentSession,
    minimum_charge,
    to_minor_units,
)
from photo_print_store.domain.errors import (
    InvalidAmount,
    SessionCreationFailed,
    SessionRetrievalFailed,
)

_logger = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    """Interface for the hosted checkout provider."""

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
        """Create a single-line-item checkout session."""

    async def retrieve_session(self, session_id: str) -> PaymentSession:
        """Fetch a checkout session by id."""

    async def list_sessions(
        self, limit: int = 10, starting_after: str | None = None
    ) -> PaymentHistoryPage:
        """List recent checkout sessions, newest first."""


def validate_amount(amount: object, currency: str) -> Decimal:
    """Return the amount as Decimal or raise InvalidAmount."""
    try:
        value = to_decimal(amount)
    except ValueError as exc:
        raise InvalidAmount(amount, currency) from exc
    if value <= 0 or to_minor_units(value, currency) <= 0:
        raise InvalidAmount(amount, currency)
    minimum = minimum_charge(currency)
    if value < minimum:
        raise InvalidAmount(amount, currency, minimum=minimum)
    return value


@dataclass
class PaymentService:
    """Validates charges and converts provider failures into domain errors."""

    gateway: PaymentGateway
    success_url: str
    cancel_url: str
    default_currency: str = "cad"
    default_description: str = "Photo print purchase"
    retrieval_timeout_seconds: float = 10.0

    async def create_session(
        self,
        amount: object,
        currency: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentSession:
        """Create a checkout session; invalid amounts never reach the provider."""
        resolved_currency = (currency or self.default_currency).strip().lower()
        value = validate_amount(amount, resolved_currency)
        amount_minor = to_minor_units(value, resolved_currency)
        try:
            session = await self.gateway.create_session(
                amount_minor=amount_minor,
                currency=resolved_currency,
                description=description or self.default_description,
                success_url=self.success_url,
                cancel_url=self.cancel_url,
                metadata=metadata or {},
            )
        except Exception as exc:
            _logger.exception(
                "Checkout session creation failed",
                extra={"amount_minor": amount_minor, "currency": resolved_currency},
            )
            raise SessionCreationFailed("Error creating checkout session") from exc
        _logger.info(
            "Created checkout session",
            extra={"session_id": session.id, "amount_minor": amount_minor},
        )
        return session

    async def retrieve_session(self, session_id: str) -> PaymentSession:
        """Fetch a session with a bounded wait."""
        cleaned = (session_id or "").strip()
        if not cleaned:
            raise SessionRetrievalFailed("Session ID is required", retryable=False)
        try:
            return await asyncio.wait_for(
                self.gateway.retrieve_session(cleaned),
                timeout=self.retrieval_timeout_seconds,
            )
        except TimeoutError as exc:
            _logger.warning("Session retrieval timed out", extra={"session_id": cleaned})
            raise SessionRetrievalFailed(
                "Timed out retrieving session", details={"session_id": cleaned}
            ) from exc
        except Exception as exc:
            _logger.exception("Session retrieval failed", extra={"session_id": cleaned})
            raise SessionRetrievalFailed(
                "Error retrieving session", details={"session_id": cleaned}
            ) from exc

    async def payment_history(
        self, limit: int = 10, starting_after: str | None = None
    ) -> PaymentHistoryPage:
        """Return one page of past sessions."""
        try:
            return await self.gateway.list_sessions(
                limit=max(1, min(limit, 100)), starting_after=starting_after
            )
        except Exception as exc:
            _logger.exception("Payment history lookup failed")
            raise SessionRetrievalFailed("Error fetching payment history") from exc
