"""Tests for the in-memory storage adapter."""

from photo_print_store.adapters.memory_storage import InMemoryStorageRegistry


def test_changes_reach_other_contexts_only() -> None:
    registry = InMemoryStorageRegistry()
    first = registry.connect("visitor")
    second = registry.connect("visitor")
    first_seen: list[tuple[str, object]] = []
    second_seen: list[tuple[str, object]] = []
    first.subscribe("cart.items", lambda key, value: first_seen.append((key, value)))
    second.subscribe("cart.items", lambda key, value: second_seen.append((key, value)))

    first.set("cart.items", [{"id": "1-small"}])
    first.remove("cart.items")

    assert first_seen == []
    assert second_seen == [("cart.items", [{"id": "1-small"}]), ("cart.items", None)]


def test_namespaces_are_isolated() -> None:
    registry = InMemoryStorageRegistry()
    registry.connect("a").set("cart.items", [1])

    assert registry.connect("b").get("cart.items") is None
    assert registry.connect("a").get("cart.items") == [1]


def test_unsubscribe_and_close_stop_notifications() -> None:
    registry = InMemoryStorageRegistry()
    writer = registry.connect("visitor")
    reader = registry.connect("visitor")
    seen: list[object] = []
    unsubscribe = reader.subscribe("cart.items", lambda _key, value: seen.append(value))

    writer.set("cart.items", [1])
    unsubscribe()
    writer.set("cart.items", [2])
    reader.subscribe("cart.items", lambda _key, value: seen.append(value))
    reader.close()
    writer.set("cart.items", [3])

    assert seen == [[1]]


def test_failing_listener_does_not_break_writer() -> None:
    registry = InMemoryStorageRegistry()
    writer = registry.connect("visitor")
    reader = registry.connect("visitor")
    seen: list[object] = []

    def broken(_key: str, _value: object) -> None:
        raise RuntimeError("listener bug")

    reader.subscribe("cart.items", broken)
    reader.subscribe("cart.items", lambda _key, value: seen.append(value))

    writer.set("cart.items", [1])

    assert writer.get("cart.items") == [1]
    assert seen == [[1]]


def test_unserializable_value_is_not_written() -> None:
    store = InMemoryStorageRegistry().connect("visitor")

    assert store.set("cart.items", {"bad": object()}) is False
    assert store.get("cart.items") is None


def test_keys_filters_by_prefix() -> None:
    store = InMemoryStorageRegistry().connect("visitor")
    store.set("cart.items", [])
    store.set("cart.selection.ids", [])
    store.set("checkout.contact", {})

    assert store.keys("cart.") == ["cart.items", "cart.selection.ids"]
