"""In-process key-value storage shared by several storefront contexts."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from photo_print_store.domain.errors import StorageUnavailable
from photo_print_store.services.storage import (
    ChangeCallback,
    ChangeListeners,
    KeyValueStore,
    decode_value,
    encode_value,
)

_logger = logging.getLogger(__name__)


@dataclass
class InMemoryStorageHub:
    """Backing map for one origin; each connected store is one context."""

    values: dict[str, str] = field(default_factory=dict)
    quota_bytes: int | None = None
    contexts: list["InMemoryStore"] = field(default_factory=list)

    def connect(self) -> "InMemoryStore":
        """Attach a new context to this origin."""
        store = InMemoryStore(hub=self)
        self.contexts.append(store)
        return store

    def disconnect(self, store: "InMemoryStore") -> None:
        """Detach a context; it stops receiving notifications."""
        if store in self.contexts:
            self.contexts.remove(store)

    def write(self, origin: "InMemoryStore", key: str, raw: str) -> None:
        """Store a raw value and notify every other context."""
        if self.quota_bytes is not None:
            others = sum(len(k) + len(v) for k, v in self.values.items() if k != key)
            used = others + len(key) + len(raw)
            if used > self.quota_bytes:
                raise StorageUnavailable(
                    "Storage quota exceeded",
                    details={"key": key, "quota_bytes": self.quota_bytes},
                )
        self.values[key] = raw
        self._publish(origin, key, raw)

    def delete(self, origin: "InMemoryStore", key: str) -> None:
        """Delete a value and notify every other context."""
        if self.values.pop(key, None) is not None:
            self._publish(origin, key, None)

    def _publish(self, origin: "InMemoryStore", key: str, raw: str | None) -> None:
        for context in list(self.contexts):
            if context is not origin:
                context.deliver(key, raw)


@dataclass(eq=False)
class InMemoryStore(KeyValueStore):
    """One context's view of an in-memory origin."""

    hub: InMemoryStorageHub
    listeners: ChangeListeners = field(default_factory=ChangeListeners)

    def get(self, key: str) -> object | None:
        """Return the stored value, if present and readable."""
        return decode_value(key, self.hub.values.get(key))

    def set(self, key: str, value: object) -> bool:
        """Store a value; failures are logged and leave storage unchanged."""
        try:
            self.hub.write(self, key, encode_value(value))
        except StorageUnavailable as exc:
            _logger.warning("Storage write failed: %s", exc, extra={"key": key})
            return False
        return True

    def remove(self, key: str) -> None:
        """Delete a key if present."""
        self.hub.delete(self, key)

    def keys(self, prefix: str = "") -> list[str]:
        """Return keys starting with a prefix."""
        return sorted(key for key in self.hub.values if key.startswith(prefix))

    def subscribe(self, key: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register for changes made by other contexts."""
        return self.listeners.add(key, callback)

    def deliver(self, key: str, raw: str | None) -> None:
        """Receive a change published by another context."""
        self.listeners.notify(key, decode_value(key, raw))

    def close(self) -> None:
        """Detach from the hub."""
        self.hub.disconnect(self)


@dataclass
class InMemoryStorageRegistry:
    """Hubs keyed by namespace, one per visitor origin."""

    quota_bytes: int | None = None
    hubs: dict[str, InMemoryStorageHub] = field(default_factory=dict)

    def connect(self, namespace: str) -> InMemoryStore:
        """Open a new context on the namespace's hub."""
        hub = self.hubs.get(namespace)
        if hub is None:
            hub = InMemoryStorageHub(quota_bytes=self.quota_bytes)
            self.hubs[namespace] = hub
        return hub.connect()
