"""Tests for the Supabase storage adapter."""

from dataclasses import dataclass, field

from photo_print_store.adapters.supabase_storage import SupabaseStore
from photo_print_store.services.cart import CartStore
from tests.conftest import make_entry


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeQuery:
    rows: list[dict[str, object]]
    fail: bool = False
    _action: str = "select"
    _payload: dict[str, object] | None = None
    _filters: list[tuple[str, str, object]] = field(default_factory=list)
    _limit: int | None = None

    def select(self, *_args) -> "FakeQuery":
        self._action = "select"
        return self

    def upsert(self, payload, on_conflict: str = "") -> "FakeQuery":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self._payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeQuery":  # type: ignore[no-untyped-def]
        self._filters.append(("eq", column, value))
        return self

    def like(self, column: str, pattern: str) -> "FakeQuery":
        self._filters.append(("like", column, pattern))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def _matches(self, row: dict[str, object]) -> bool:
        for op, column, value in self._filters:
            if op == "eq" and row.get(column) != value:
                return False
            if op == "like" and not str(row.get(column)).startswith(
                str(value).rstrip("%")
            ):
                return False
        return True

    def execute(self) -> FakeResponse:
        if self.fail:
            raise RuntimeError("supabase down")
        if self._action == "upsert":
            payload = dict(self._payload or {})
            for row in self.rows:
                if (row["namespace"], row["key"]) == (
                    payload["namespace"],
                    payload["key"],
                ):
                    row.update(payload)
                    return FakeResponse(data=[row])
            self.rows.append(payload)
            return FakeResponse(data=[payload])
        matched = [row for row in self.rows if self._matches(row)]
        if self._action == "delete":
            for row in matched:
                self.rows.remove(row)
            return FakeResponse(data=matched)
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResponse(data=[dict(row) for row in matched])


@dataclass
class FakeSupabaseClient:
    rows: list[dict[str, object]] = field(default_factory=list)
    fail: bool = False
    tables: list[str] = field(default_factory=list)

    def table(self, name: str) -> FakeQuery:
        self.tables.append(name)
        return FakeQuery(rows=self.rows, fail=self.fail)


def test_set_get_and_remove() -> None:
    client = FakeSupabaseClient()
    store = SupabaseStore(client=client, namespace="visitor-1")

    assert store.set("cart.items", [{"id": "1-small"}]) is True

    assert store.get("cart.items") == [{"id": "1-small"}]
    assert client.rows[0]["writer_id"] == store.writer_id
    assert client.tables[0] == "storefront_storage"

    store.remove("cart.items")

    assert store.get("cart.items") is None
    assert client.rows == []


def test_namespaces_do_not_leak() -> None:
    client = FakeSupabaseClient()
    SupabaseStore(client=client, namespace="a").set("cart.items", [1])

    other = SupabaseStore(client=client, namespace="b")

    assert other.get("cart.items") is None
    assert other.keys("cart.") == []


def test_keys_by_prefix() -> None:
    store = SupabaseStore(client=FakeSupabaseClient(), namespace="visitor")
    store.set("cart.items", [])
    store.set("cart.selection.ids", [])
    store.set("checkout.pending", {})

    assert store.keys("cart.") == ["cart.items", "cart.selection.ids"]


def test_poll_notifies_only_foreign_writes() -> None:
    client = FakeSupabaseClient()
    first = SupabaseStore(client=client, namespace="visitor")
    second = SupabaseStore(client=client, namespace="visitor")
    first_seen: list[object] = []
    second_seen: list[object] = []
    first.subscribe("cart.items", lambda _key, value: first_seen.append(value))
    second.subscribe("cart.items", lambda _key, value: second_seen.append(value))

    first.set("cart.items", [1])

    assert first.poll_changes() == 0
    assert second.poll_changes() == 1
    assert second.poll_changes() == 0

    first.remove("cart.items")

    assert second.poll_changes() == 1
    assert first_seen == []
    assert second_seen == [[1], None]


def test_cart_follows_other_writer_through_polling() -> None:
    client = FakeSupabaseClient()
    writer = CartStore(SupabaseStore(client=client, namespace="visitor"))
    reader_store = SupabaseStore(client=client, namespace="visitor")
    reader = CartStore(reader_store)
    writer.load()
    reader.load()
    reader.attach()

    writer.add(make_entry("101", "small"))
    reader_store.poll_changes()

    assert reader.is_in_cart("101-small")


def test_failures_degrade_to_empty_results() -> None:
    client = FakeSupabaseClient(fail=True)
    store = SupabaseStore(client=client, namespace="visitor")

    assert store.set("cart.items", [1]) is False
    store.remove("cart.items")

    assert store.get("cart.items") is None
    assert store.keys() == []
    assert store.poll_changes() == 0
