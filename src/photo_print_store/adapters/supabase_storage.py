"""Supabase-backed key-value storage with polled change notification."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from supabase import Client

from photo_print_store.domain.errors import StorageUnavailable
from photo_print_store.services.storage import (
    ChangeCallback,
    ChangeListeners,
    KeyValueStore,
    decode_value,
    encode_value,
)

_logger = logging.getLogger(__name__)


@dataclass(eq=False)
class SupabaseStore(KeyValueStore):
    """Rows of `(namespace, key, value_json, writer_id)`; one store per context.

    Supabase offers no change event for this table, so other contexts' writes
    are picked up by `poll_changes`.
    """

    client: Client
    namespace: str
    table: str = "storefront_storage"
    writer_id: str = field(default_factory=lambda: uuid4().hex)
    listeners: ChangeListeners = field(default_factory=ChangeListeners)
    _seen: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        """Return the stored value, or None when absent or unreadable."""
        try:
            response = (
                self.client.table(self.table)
                .select("key, value_json, writer_id")
                .eq("namespace", self.namespace)
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception:
            _logger.exception(
                "Storage read failed",
                extra={"namespace": self.namespace, "key": key},
            )
            return None
        if not response.data:
            return None
        raw = response.data[0].get("value_json")
        if isinstance(raw, str):
            self._seen[key] = raw
        return decode_value(key, raw if isinstance(raw, str) else None)

    def set(self, key: str, value: object) -> bool:
        """Upsert a value; failures are logged and leave storage unchanged."""
        try:
            raw = encode_value(value)
        except StorageUnavailable as exc:
            _logger.warning("Storage write failed: %s", exc, extra={"key": key})
            return False
        try:
            self.client.table(self.table).upsert(
                {
                    "namespace": self.namespace,
                    "key": key,
                    "value_json": raw,
                    "writer_id": self.writer_id,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="namespace,key",
            ).execute()
        except Exception:
            _logger.exception(
                "Storage write failed",
                extra={"namespace": self.namespace, "key": key},
            )
            return False
        self._seen[key] = raw
        return True

    def remove(self, key: str) -> None:
        """Delete a key if present."""
        try:
            self.client.table(self.table).delete().eq("namespace", self.namespace).eq(
                "key", key
            ).execute()
        except Exception:
            _logger.exception(
                "Storage delete failed",
                extra={"namespace": self.namespace, "key": key},
            )
            return
        self._seen.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        """Return keys in the namespace starting with a prefix."""
        try:
            response = (
                self.client.table(self.table)
                .select("key")
                .eq("namespace", self.namespace)
                .like("key", f"{prefix}%")
                .execute()
            )
        except Exception:
            _logger.exception("Storage key listing failed", extra={"prefix": prefix})
            return []
        return sorted(
            str(row["key"])
            for row in response.data or []
            if str(row.get("key", "")).startswith(prefix)
        )

    def subscribe(self, key: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register for changes made by other writers."""
        return self.listeners.add(key, callback)

    def poll_changes(self) -> int:
        """Diff the namespace against the last seen values and notify.

        Returns the number of notifications delivered. Keys last written by
        this store's own writer id are recorded but never notified.
        """
        try:
            response = (
                self.client.table(self.table)
                .select("key, value_json, writer_id")
                .eq("namespace", self.namespace)
                .execute()
            )
        except Exception:
            _logger.exception("Storage poll failed", extra={"namespace": self.namespace})
            return 0
        delivered = 0
        current: dict[str, str] = {}
        for row in response.data or []:
            key = str(row.get("key", ""))
            raw = row.get("value_json")
            if not key or not isinstance(raw, str):
                continue
            current[key] = raw
            if self._seen.get(key) == raw:
                continue
            self._seen[key] = raw
            if row.get("writer_id") != self.writer_id:
                self.listeners.notify(key, decode_value(key, raw))
                delivered += 1
        for key in [key for key in self._seen if key not in current]:
            self._seen.pop(key)
            self.listeners.notify(key, None)
            delivered += 1
        return delivered

    def close(self) -> None:
        """Drop every listener; the rows stay in place."""
        self.listeners.clear()
