"""Key-value persistence contract shared by storefront contexts."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from photo_print_store.domain.errors import StorageUnavailable

CART_KEY_PREFIX = "cart."
CART_ITEMS_KEY = "cart.items"
SELECTION_IDS_KEY = "cart.selection.ids"
SELECTION_TOTAL_KEY = "cart.selection.total"
CONTACT_INFO_KEY = "checkout.contact"
CONFIRMED_SESSIONS_KEY = "checkout.confirmed"
PENDING_CHECKOUTS_KEY = "checkout.pending"

ChangeCallback = Callable[[str, object | None], None]

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Durable JSON storage scoped to one origin, observable across contexts."""

    def get(self, key: str) -> object | None:
        """Return the stored JSON value, or None when absent or unreadable."""

    def set(self, key: str, value: object) -> bool:
        """Store a JSON value; returns False when the write did not land.

        A successful write is visible to this context's next `get` at once.
        """

    def remove(self, key: str) -> None:
        """Delete a key if present."""

    def keys(self, prefix: str = "") -> list[str]:
        """Return stored keys starting with a prefix."""

    def subscribe(self, key: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register for changes made by other contexts; returns an unsubscribe."""

    def close(self) -> None:
        """Release this context; it stops receiving notifications."""


def encode_value(value: object) -> str:
    """Serialize a value to compact JSON."""
    try:
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise StorageUnavailable(
            "Value is not JSON serializable", details={"error": str(exc)}
        ) from exc


def decode_value(key: str, raw: str | None) -> object | None:
    """Parse stored JSON, treating corrupt data as absent."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        _logger.warning("Discarding unreadable value", extra={"key": key})
        return None


@dataclass
class ChangeListeners:
    """Per-key callback registry used by store implementations."""

    _callbacks: dict[str, list[ChangeCallback]] = field(default_factory=dict)

    def add(self, key: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register a callback and return a function removing it."""
        self._callbacks.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._callbacks.get(key, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def notify(self, key: str, value: object | None) -> None:
        """Deliver a change to every callback registered for the key."""
        for callback in list(self._callbacks.get(key, [])):
            try:
                callback(key, value)
            except Exception:
                _logger.exception("Storage change listener failed", extra={"key": key})

    def clear(self) -> None:
        self._callbacks.clear()

    def __len__(self) -> int:
        return sum(len(callbacks) for callbacks in self._callbacks.values())
