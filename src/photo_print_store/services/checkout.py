"""Checkout orchestration and post-payment reconciliation."""

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from photo_print_store.domain.cart import CartEntry
from photo_print_store.domain.checkout import (
    CheckoutState,
    PaymentSession,
    ReconcileResult,
)
from photo_print_store.domain.errors import (
    PhotoStoreError,
    SessionRetrievalFailed,
    StaleSelection,
    StorageUnavailable,
)
from photo_print_store.services.cart import CartStore
from photo_print_store.services.payments import PaymentService
from photo_print_store.services.selection import SelectionService
from photo_print_store.services.storage import (
    CONFIRMED_SESSIONS_KEY,
    CONTACT_INFO_KEY,
    PENDING_CHECKOUTS_KEY,
    KeyValueStore,
)

_logger = logging.getLogger(__name__)

_MAX_REMEMBERED_SESSIONS = 50
_METADATA_IDS_LIMIT = 500
_ABANDONED_STATUSES = frozenset({"expired", "canceled"})


class PriceResolver(Protocol):
    """Source of the authoritative price of a cart entry."""

    async def price_for(self, entry: CartEntry) -> Decimal:
        """Return the current price of an entry."""


@dataclass
class CheckoutOrchestrator:
    """Drives one storefront context through checkout.

    `Idle -> SessionRequested -> Redirected -> Reconciling ->
    {Confirmed | Abandoned | Failed}`. Everything needed to resume after the
    redirect lives in storage, so a fresh instance can reconcile a session
    created by another.
    """

    cart: CartStore
    selection: SelectionService
    storage: KeyValueStore
    payments: PaymentService
    price_resolver: PriceResolver | None = None
    state: CheckoutState = CheckoutState.IDLE
    session_id: str | None = None
    _confirmed: set[str] = field(default_factory=set)

    async def create_session(
        self,
        amount: object,
        currency: str | None = None,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentSession:
        """Request a provider session for an amount and hand off to it."""
        self.state = CheckoutState.SESSION_REQUESTED
        try:
            session = await self.payments.create_session(
                amount, currency=currency, description=description, metadata=metadata
            )
        except PhotoStoreError:
            self.state = CheckoutState.FAILED
            raise
        self.session_id = session.id
        self.state = CheckoutState.REDIRECTED
        return session

    async def checkout_selection(
        self, currency: str | None = None, description: str | None = None
    ) -> PaymentSession:
        """Create a session for the persisted selection at current prices."""
        selection = self.selection.consume_selection()
        entries = self.selection.resolve(selection)
        if not entries:
            self.selection.clear_selection()
            self.state = CheckoutState.IDLE
            raise StaleSelection(selection.ids)
        entry_ids = [entry.id for entry in entries]
        amount = await self._charge_amount(entries)
        encoded_ids = json.dumps(entry_ids, separators=(",", ":"))
        metadata = {"checkout": "selection"}
        if len(encoded_ids) <= _METADATA_IDS_LIMIT:
            metadata["entry_ids"] = encoded_ids
        session = await self.create_session(
            amount, currency=currency, description=description, metadata=metadata
        )
        self._remember_pending(session.id, entry_ids)
        return session

    async def reconcile(self, session_id: str) -> ReconcileResult:
        """Apply the provider's verdict on a session to the cart, exactly once."""
        self.state = CheckoutState.RECONCILING
        try:
            session = await self.payments.retrieve_session(session_id)
        except SessionRetrievalFailed:
            self.state = CheckoutState.FAILED
            raise
        self.session_id = session.id

        if not session.is_paid:
            if session.checkout_status in _ABANDONED_STATUSES:
                self.state = CheckoutState.ABANDONED
            else:
                self.state = CheckoutState.REDIRECTED
            _logger.info(
                "Session not paid yet",
                extra={"session_id": session.id, "status": session.status},
            )
            return ReconcileResult(
                session_id=session.id,
                status=session.status,
                confirmed=False,
                session=session,
            )

        if self._is_confirmed(session.id):
            self.state = CheckoutState.CONFIRMED
            return ReconcileResult(
                session_id=session.id,
                status=session.status,
                confirmed=True,
                already_confirmed=True,
                session=session,
            )

        # Held in memory while marking; persisted only once the cart is saved.
        self._confirmed.add(session.id)
        entry_ids = self._paid_entry_ids(session)
        try:
            if entry_ids is None:
                purchased = self.cart.mark_all_unpurchased_as_purchased()
            else:
                purchased = self.cart.mark_purchased(entry_ids)
        except StorageUnavailable:
            self._confirmed.discard(session.id)
            self.state = CheckoutState.FAILED
            _logger.warning(
                "Paid session not applied to cart", extra={"session_id": session.id}
            )
            raise
        self._remember_confirmed(session.id)
        self.selection.clear_selection()
        self._forget_pending(session.id)
        self._cache_contact(session)
        self.state = CheckoutState.CONFIRMED
        _logger.info(
            "Checkout confirmed",
            extra={"session_id": session.id, "purchased": len(purchased)},
        )
        return ReconcileResult(
            session_id=session.id,
            status=session.status,
            confirmed=True,
            purchased_ids=tuple(purchased),
            session=session,
        )

    def cancel(self) -> None:
        """Record an abandoned checkout; cart and selection stay untouched."""
        self.state = CheckoutState.ABANDONED

    def contact_info(self) -> dict[str, str]:
        """Return contact details cached from the last confirmed checkout."""
        value = self.storage.get(CONTACT_INFO_KEY)
        if not isinstance(value, dict):
            return {}
        return {str(key): str(item) for key, item in value.items() if item}

    async def _charge_amount(self, entries: list[CartEntry]) -> Decimal:
        if self.price_resolver is None:
            return sum((entry.unit_price for entry in entries), Decimal("0"))
        total = Decimal("0")
        for entry in entries:
            try:
                total += await self.price_resolver.price_for(entry)
            except PhotoStoreError:
                _logger.warning(
                    "Falling back to cart price", extra={"entry_id": entry.id}
                )
                total += entry.unit_price
        return total

    def _paid_entry_ids(self, session: PaymentSession) -> list[str] | None:
        """Ids bought by a session, or None for an ad-hoc payment."""
        pending = self.storage.get(PENDING_CHECKOUTS_KEY)
        if isinstance(pending, dict) and isinstance(pending.get(session.id), list):
            return [str(entry_id) for entry_id in pending[session.id]]
        raw_ids = session.metadata.get("entry_ids")
        if raw_ids:
            try:
                decoded = json.loads(raw_ids)
            except ValueError:
                decoded = None
            if isinstance(decoded, list):
                return [str(entry_id) for entry_id in decoded]
        if session.metadata.get("checkout") == "selection":
            _logger.warning(
                "Selected ids unknown; marking every unpurchased entry",
                extra={"session_id": session.id},
            )
        return None

    def _is_confirmed(self, session_id: str) -> bool:
        if session_id in self._confirmed:
            return True
        stored = self.storage.get(CONFIRMED_SESSIONS_KEY)
        return isinstance(stored, list) and session_id in stored

    def _remember_confirmed(self, session_id: str) -> None:
        self._confirmed.add(session_id)
        stored = self.storage.get(CONFIRMED_SESSIONS_KEY)
        confirmed: list[str] = []
        if isinstance(stored, list):
            confirmed = [item for item in stored if isinstance(item, str)]
        confirmed.append(session_id)
        self.storage.set(CONFIRMED_SESSIONS_KEY, confirmed[-_MAX_REMEMBERED_SESSIONS:])

    def _remember_pending(self, session_id: str, entry_ids: list[str]) -> None:
        stored = self.storage.get(PENDING_CHECKOUTS_KEY)
        pending = dict(stored) if isinstance(stored, dict) else {}
        pending[session_id] = entry_ids
        recent = list(pending.items())[-_MAX_REMEMBERED_SESSIONS:]
        self.storage.set(PENDING_CHECKOUTS_KEY, dict(recent))

    def _forget_pending(self, session_id: str) -> None:
        stored = self.storage.get(PENDING_CHECKOUTS_KEY)
        if isinstance(stored, dict) and session_id in stored:
            pending = {key: value for key, value in stored.items() if key != session_id}
            self.storage.set(PENDING_CHECKOUTS_KEY, pending)

    def _cache_contact(self, session: PaymentSession) -> None:
        contact = {
            key: value
            for key, value in {
                "email": session.customer_email,
                "name": session.customer_name,
            }.items()
            if value
        }
        if contact:
            self.storage.set(CONTACT_INFO_KEY, contact)
