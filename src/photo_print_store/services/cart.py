"""Cart store: the authoritative list of cart entries for one context."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from photo_print_store.domain.cart import CartEntry, normalize_id
from photo_print_store.domain.errors import StorageUnavailable
from photo_print_store.services.storage import (
    CART_ITEMS_KEY,
    CART_KEY_PREFIX,
    SELECTION_IDS_KEY,
    SELECTION_TOTAL_KEY,
    KeyValueStore,
)

_logger = logging.getLogger(__name__)


@dataclass
class CartStore:
    """In-memory cart mirrored to a key-value store.

    Every mutation rewrites the full snapshot before returning, so a read in
    the same context never sees stale data. A rejected write rolls memory
    back to the persisted snapshot. Other contexts converge when their
    change notification arrives (last writer wins).
    """

    storage: KeyValueStore
    _entries: list[CartEntry] = field(default_factory=list)
    _unsubscribe: Callable[[], None] | None = None

    def load(self) -> None:
        """Replace in-memory state with the persisted snapshot."""
        self._entries = _decode_entries(self.storage.get(CART_ITEMS_KEY))

    def refresh(self) -> None:
        """Re-read the persisted snapshot."""
        self.load()

    def attach(self) -> None:
        """Follow cart changes made by other contexts."""
        if self._unsubscribe is None:
            self._unsubscribe = self.storage.subscribe(
                CART_ITEMS_KEY, self._on_external_change
            )

    def detach(self) -> None:
        """Stop following other contexts."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def entries(self) -> list[CartEntry]:
        return list(self._entries)

    def get(self, entry_id: str | int) -> CartEntry | None:
        wanted = normalize_id(entry_id)
        for entry in self._entries:
            if entry.id == wanted:
                return entry
        return None

    def is_in_cart(self, entry_id: str | int) -> bool:
        return self.get(entry_id) is not None

    def add(self, entry: CartEntry) -> bool:
        """Add an entry unless present; False when it is a duplicate or unsaved."""
        if self.is_in_cart(entry.id):
            return False
        self._entries.append(entry)
        return self._persist()

    def remove(self, entry_id: str | int) -> bool:
        """Remove an unpurchased entry by id.

        Purchased entries are kept as the record of what was bought.
        """
        entry = self.get(entry_id)
        if entry is None:
            return False
        if entry.purchased:
            _logger.info("Refusing to remove purchased entry", extra={"id": entry.id})
            return False
        self._entries = [item for item in self._entries if item.id != entry.id]
        return self._persist()

    def clear(self) -> None:
        """Empty the cart and drop every cart-namespaced key."""
        self._entries = []
        keys = set(self.storage.keys(CART_KEY_PREFIX))
        keys.update({CART_ITEMS_KEY, SELECTION_IDS_KEY, SELECTION_TOTAL_KEY})
        for key in sorted(keys):
            self.storage.remove(key)

    def mark_all_unpurchased_as_purchased(self) -> list[str]:
        """Flag every unpurchased entry as purchased and return their ids.

        Raises StorageUnavailable, with memory rolled back, when the flags
        could not be saved.
        """
        return self._mark(lambda entry: True)

    def mark_purchased(self, entry_ids: Iterable[str | int]) -> list[str]:
        """Flag the named unpurchased entries as purchased and return their ids."""
        wanted = {normalize_id(entry_id) for entry_id in entry_ids}
        return self._mark(lambda entry: entry.id in wanted)

    def total(self) -> Decimal:
        """Sum of unit prices over all entries, purchased or not."""
        return sum((entry.unit_price for entry in self._entries), Decimal("0"))

    def unpurchased(self) -> list[CartEntry]:
        return [entry for entry in self._entries if not entry.purchased]

    def purchased(self) -> list[CartEntry]:
        return [entry for entry in self._entries if entry.purchased]

    def _mark(self, predicate: Callable[[CartEntry], bool]) -> list[str]:
        flipped: list[str] = []
        updated: list[CartEntry] = []
        for entry in self._entries:
            if not entry.purchased and predicate(entry):
                flipped.append(entry.id)
                updated.append(entry.as_purchased())
            else:
                updated.append(entry)
        if flipped:
            self._entries = updated
            if not self._persist():
                raise StorageUnavailable(
                    "Could not save purchased items", details={"ids": flipped}
                )
        return flipped

    def _persist(self) -> bool:
        snapshot = [entry.to_dict() for entry in self._entries]
        if self.storage.set(CART_ITEMS_KEY, snapshot):
            return True
        self.load()
        return False

    def _on_external_change(self, key: str, value: object | None) -> None:
        self._entries = _decode_entries(value)
        _logger.info(
            "Cart replaced from another context", extra={"entries": len(self._entries)}
        )


def _decode_entries(value: object | None) -> list[CartEntry]:
    """Decode a snapshot; corrupt items are dropped and ids stay unique."""
    if value is None:
        return []
    if not isinstance(value, list):
        _logger.warning("Ignoring malformed cart snapshot")
        return []
    entries: list[CartEntry] = []
    seen: set[str] = set()
    for item in value:
        if not isinstance(item, dict):
            continue
        try:
            entry = CartEntry.from_dict(item)
        except (KeyError, TypeError, ValueError):
            _logger.warning("Dropping unreadable cart entry", extra={"item": item})
            continue
        if entry.id in seen:
            continue
        seen.add(entry.id)
        entries.append(entry)
    return entries
