"""Tests for the selection layer."""

from decimal import Decimal

from photo_print_store.domain.checkout import Selection
from photo_print_store.services.storage import SELECTION_IDS_KEY, SELECTION_TOTAL_KEY
from tests.conftest import make_entry


def test_begin_selection_keeps_unpurchased_ids_once(cart, selection) -> None:
    cart.add(make_entry("101", "small", "12.00"))
    cart.add(make_entry("202", "medium", "20.00"))
    cart.add(make_entry("303", "large", "40.00"))
    cart.mark_purchased(["303-large"])

    chosen = selection.begin_selection(
        ["202-medium", "303-large", "nope", "202-medium"]
    )

    assert chosen == Selection(ids=("202-medium",), total=Decimal("20.00"))


def test_selection_round_trips_through_storage(cart, selection, storage) -> None:
    cart.add(make_entry("101", "small", "12.00"))
    selection.begin_selection(["101-small"])

    assert storage.get(SELECTION_IDS_KEY) == ["101-small"]
    assert storage.get(SELECTION_TOTAL_KEY) == "12.00"
    assert selection.consume_selection() == Selection(
        ids=("101-small",), total=Decimal("12.00")
    )


def test_missing_selection_reads_as_empty(selection) -> None:
    consumed = selection.consume_selection()

    assert consumed.is_empty
    assert consumed.total == Decimal("0")


def test_malformed_selection_total_reads_as_zero(selection, storage) -> None:
    storage.set(SELECTION_IDS_KEY, ["101-small"])
    storage.set(SELECTION_TOTAL_KEY, "lots")

    assert selection.consume_selection().total == Decimal("0")


def test_selection_does_not_change_cart(cart, selection) -> None:
    cart.add(make_entry("101", "small"))
    before = cart.entries()

    selection.begin_selection(["101-small"])
    selection.clear_selection()
    selection.clear_selection()

    assert cart.entries() == before
    assert selection.consume_selection().is_empty


def test_select_all_unpurchased(cart, selection) -> None:
    cart.add(make_entry("101", "small", "12.00"))
    cart.add(make_entry("202", "medium", "20.00"))
    cart.mark_purchased(["101-small"])

    assert selection.select_all_unpurchased().ids == ("202-medium",)


def test_resolve_drops_entries_purchased_meanwhile(cart, selection) -> None:
    cart.add(make_entry("101", "small"))
    cart.add(make_entry("202", "medium", "20.00"))
    chosen = selection.begin_selection(["101-small", "202-medium"])
    cart.mark_purchased(["101-small"])

    assert [entry.id for entry in selection.resolve(chosen)] == ["202-medium"]
