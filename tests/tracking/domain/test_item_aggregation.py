"""Tests for resolving raw identifiers and structured item lists into basket items."""

from decimal import Decimal

import pytest
from tracking.basket.items import Item, aggregate, normalize_items, total_of
from tracking.catalog import InMemoryCatalog
from tracking.exceptions import InvalidPayload


@pytest.fixture()
def catalog():
    return InMemoryCatalog.from_mapping(
        {
            "A": {"name": "Apple", "price": "0.50"},
            "B": {"name": "Bread", "price": "2.25"},
            "C": {"name": "Cheese", "price": "6.00"},
        }
    )


class TestAggregate:
    def test_counts_repeated_identifiers_in_first_seen_order(self, catalog):
        items = aggregate(["B", "A", "B", "C", "A", "B"], catalog)

        assert [(item.id, item.quantity) for item in items] == [("B", 3), ("A", 2), ("C", 1)]

    def test_quantities_sum_to_known_identifier_count(self, catalog):
        identifiers = ["A", "A", "X-UNKNOWN", "B", "A"]

        items = aggregate(identifiers, catalog)

        assert sum(item.quantity for item in items) == 4

    def test_unknown_identifiers_are_dropped(self, catalog):
        items = aggregate(["A", "NOISE", "B"], catalog)

        assert [item.id for item in items] == ["A", "B"]

    def test_empty_list_yields_empty_basket(self, catalog):
        assert aggregate([], catalog) == []

    def test_resolves_name_and_price_from_catalog(self, catalog):
        (item,) = aggregate(["C"], catalog)

        assert item.name == "Cheese"
        assert item.unit_price == Decimal("6.00")

    @pytest.mark.parametrize("payload", ["A,B", None, 42, {"A": 1}])
    def test_non_list_payload_rejected(self, catalog, payload):
        with pytest.raises(InvalidPayload):
            aggregate(payload, catalog)

    @pytest.mark.parametrize("payload", [["A", ""], ["A", 7], ["A", None]])
    def test_non_string_identifier_rejected(self, catalog, payload):
        with pytest.raises(InvalidPayload):
            aggregate(payload, catalog)


class TestNormalizeItems:
    def test_accepts_structured_items(self):
        items = normalize_items(
            [
                {"id": "A", "name": "Apple", "unit_price": "0.50", "quantity": 3},
                {"uid": "B", "name": "Bread", "price": 2.25},
            ]
        )

        assert items == [
            Item(id="A", name="Apple", unit_price=Decimal("0.50"), quantity=3),
            Item(id="B", name="Bread", unit_price=Decimal("2.25"), quantity=1),
        ]

    def test_duplicate_ids_are_merged(self):
        items = normalize_items(
            [
                {"id": "A", "name": "Apple", "unitPrice": "0.50", "quantity": 1},
                {"id": "B", "name": "Bread", "unitPrice": "2.25"},
                {"id": "A", "name": "Apple (dup)", "unitPrice": "9.99", "quantity": 2},
            ]
        )

        assert [(item.id, item.quantity) for item in items] == [("A", 3), ("B", 1)]
        assert items[0].name == "Apple"
        assert items[0].unit_price == Decimal("0.50")

    def test_name_defaults_to_id(self):
        (item,) = normalize_items([{"display_id": "SKU-9", "price": "1"}])

        assert item.name == "SKU-9"

    @pytest.mark.parametrize(
        "entry",
        [
            {"name": "No id", "price": "1.00"},
            {"id": "A", "name": "Apple"},
            {"id": "A", "price": "-1.00"},
            {"id": "A", "price": "abc"},
            {"id": "A", "price": True},
            {"id": "A", "price": "1.00", "quantity": 0},
            {"id": "A", "price": "1.00", "quantity": "2"},
            {"id": "A", "price": "1.00", "quantity": True},
            "A",
        ],
    )
    def test_invalid_entries_rejected(self, entry):
        with pytest.raises(InvalidPayload):
            normalize_items([entry])

    def test_non_list_rejected(self):
        with pytest.raises(InvalidPayload):
            normalize_items({"id": "A", "price": "1"})


class TestItem:
    def test_subtotal_and_total(self):
        items = [
            Item(id="A", name="Apple", unit_price=Decimal("0.50"), quantity=3),
            Item(id="B", name="Bread", unit_price=Decimal("2.25"), quantity=2),
        ]

        assert items[0].subtotal == Decimal("1.50")
        assert total_of(items) == Decimal("6.00")

    def test_total_of_empty_is_zero(self):
        assert total_of([]) == Decimal("0")

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValueError):
            Item(id="A", name="Apple", unit_price=Decimal("1"), quantity=0)

    def test_dict_form_keeps_exact_price(self):
        item = Item(id="A", name="Apple", unit_price=Decimal("0.10"), quantity=3)

        assert item.to_dict()["unit_price"] == "0.10"
        assert Item.from_dict(item.to_dict()) == item
