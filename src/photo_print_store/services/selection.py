"""Selection layer: what the user pays for in the current checkout attempt."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from photo_print_store.domain.cart import CartEntry, normalize_id, to_decimal
from photo_print_store.domain.checkout import Selection
from photo_print_store.services.cart import CartStore
from photo_print_store.services.storage import (
    SELECTION_IDS_KEY,
    SELECTION_TOTAL_KEY,
    KeyValueStore,
)

_logger = logging.getLogger(__name__)


@dataclass
class SelectionService:
    """Persists a selected subset apart from the cart snapshot.

    The stored total is a display hint only; charges are re-derived from
    current prices when the session is created.
    """

    cart: CartStore
    storage: KeyValueStore

    def begin_selection(self, entry_ids: Iterable[str | int]) -> Selection:
        """Start a new selection from ids that are unpurchased cart entries."""
        unpurchased = {entry.id: entry for entry in self.cart.unpurchased()}
        selected: list[str] = []
        for entry_id in entry_ids:
            normalized = normalize_id(entry_id)
            if normalized in unpurchased and normalized not in selected:
                selected.append(normalized)
        total = sum(
            (unpurchased[entry_id].unit_price for entry_id in selected), Decimal("0")
        )
        self.storage.set(SELECTION_IDS_KEY, selected)
        self.storage.set(SELECTION_TOTAL_KEY, str(total))
        return Selection(ids=tuple(selected), total=total)

    def select_all_unpurchased(self) -> Selection:
        """Start a selection covering every unpurchased entry."""
        return self.begin_selection(entry.id for entry in self.cart.unpurchased())

    def consume_selection(self) -> Selection:
        """Read back the persisted selection; absent keys read as empty."""
        raw_ids = self.storage.get(SELECTION_IDS_KEY)
        ids: list[str] = []
        if isinstance(raw_ids, list):
            ids = [
                normalize_id(item) for item in raw_ids if isinstance(item, str | int)
            ]
        elif raw_ids is not None:
            _logger.warning("Ignoring malformed selection ids")
        total = _parse_total(self.storage.get(SELECTION_TOTAL_KEY))
        return Selection(ids=tuple(ids), total=total)

    def clear_selection(self) -> None:
        """Drop the selection keys; safe when none exist."""
        self.storage.remove(SELECTION_IDS_KEY)
        self.storage.remove(SELECTION_TOTAL_KEY)

    def resolve(self, selection: Selection) -> list[CartEntry]:
        """Return the selected entries still present and unpurchased."""
        wanted = set(selection.ids)
        return [entry for entry in self.cart.unpurchased() if entry.id in wanted]


def _parse_total(value: object | None) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        return to_decimal(value)
    except ValueError:
        return Decimal("0")
