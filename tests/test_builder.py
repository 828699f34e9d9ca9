"""Tests for the in-progress order builder."""

from decimal import Decimal
from fractions import Fraction

import pytest

from gelato_pos.builder import OrderBuilder, coerce_quantity
from gelato_pos.models import Product


class TestAddItem:
    def test_first_add_snapshots_product(self, gelato_cup):
        builder = OrderBuilder()
        builder.add_item(gelato_cup)

        (item,) = builder.items()
        assert item.product_id == "gelato_cup"
        assert item.product_name == "Gelato Cup"
        assert item.unit_price == Decimal("3.50")
        assert item.quantity == 1
        assert item.subtotal == Decimal("3.50")

    def test_add_twice_equals_add_then_set_two(self, gelato_cup):
        twice = OrderBuilder()
        twice.add_item(gelato_cup)
        twice.add_item(gelato_cup)

        set_two = OrderBuilder()
        set_two.add_item(gelato_cup)
        set_two.set_quantity(gelato_cup.id, 2)

        assert twice.items() == set_two.items()
        assert twice.items()[0].subtotal == Decimal("7.00")

    def test_one_line_per_product_in_first_added_order(self, gelato_cup, cone):
        builder = OrderBuilder()
        builder.add_item(gelato_cup)
        builder.add_item(cone)
        builder.add_item(gelato_cup)

        assert [item.product_id for item in builder.items()] == ["gelato_cup", "cone"]
        assert len(builder) == 2

    def test_catalog_change_does_not_alter_added_item(self, gelato_cup):
        builder = OrderBuilder()
        builder.add_item(gelato_cup)

        repriced = Product(id=gelato_cup.id, name="Gelato Cup Deluxe", category="Classics", price=Decimal("9.99"))
        builder.add_item(repriced)

        (item,) = builder.items()
        assert item.product_name == "Gelato Cup"
        assert item.unit_price == Decimal("3.50")
        assert item.quantity == 2


class TestSetQuantity:
    def test_zero_removes_item(self, gelato_cup, cone):
        builder = OrderBuilder()
        builder.add_item(gelato_cup)
        builder.add_item(cone)

        builder.set_quantity(gelato_cup.id, 0)

        assert gelato_cup.id not in builder
        assert [item.product_id for item in builder.items()] == ["cone"]

    def test_negative_removes_item(self, cone):
        builder = OrderBuilder()
        builder.add_item(cone)
        builder.set_quantity(cone.id, -3)
        assert builder.is_empty

    @pytest.mark.parametrize("raw", ["abc", None, "", float("nan"), object()])
    def test_non_numeric_input_removes_without_raising(self, cone, raw):
        builder = OrderBuilder()
        builder.add_item(cone)
        builder.set_quantity(cone.id, raw)
        assert builder.is_empty

    def test_fractional_input_is_truncated(self, cone):
        builder = OrderBuilder()
        builder.add_item(cone)

        builder.set_quantity(cone.id, 2.9)
        assert builder.get(cone.id).quantity == 2

        builder.set_quantity(cone.id, "4 scoops")
        assert builder.get(cone.id).quantity == 4

    def test_unknown_product_is_ignored(self, cone):
        builder = OrderBuilder()
        builder.set_quantity(cone.id, 3)
        assert builder.is_empty

    def test_update_keeps_position(self, gelato_cup, cone):
        builder = OrderBuilder()
        builder.add_item(gelato_cup)
        builder.add_item(cone)
        builder.set_quantity(gelato_cup.id, 5)

        assert [item.product_id for item in builder.items()] == ["gelato_cup", "cone"]
        assert builder.items()[0].subtotal == Decimal("17.50")


class TestRemoveAndClear:
    def test_remove_missing_is_noop(self, cone):
        builder = OrderBuilder()
        builder.remove_item("nope")
        builder.add_item(cone)
        builder.remove_item("nope")
        assert len(builder) == 1

    def test_decrement_to_zero_removes(self, cone):
        builder = OrderBuilder()
        builder.add_item(cone)
        builder.increment(cone.id)
        builder.decrement(cone.id)
        builder.decrement(cone.id)
        assert builder.is_empty

    def test_clear_empties(self, gelato_cup, cone):
        builder = OrderBuilder()
        builder.add_item(gelato_cup)
        builder.add_item(cone)
        builder.clear()
        assert builder.items() == ()


class TestSnapshot:
    def test_items_is_immutable_snapshot(self, cone):
        builder = OrderBuilder()
        builder.add_item(cone)
        snapshot = builder.items()

        builder.add_item(cone)

        assert isinstance(snapshot, tuple)
        assert snapshot[0].quantity == 1
        with pytest.raises(AttributeError):
            snapshot[0].quantity = 10  # type: ignore[misc]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (3, 3),
        (True, 0),
        (-2.5, -2),
        (Decimal("7.8"), 7),
        (Fraction(5, 2), 2),
        ("  12", 12),
        ("+2", 2),
        ("x1", 0),
        ("9" * 5000, 0),
        (float("inf"), 0),
        (None, 0),
    ],
)
def test_coerce_quantity(raw, expected):
    assert coerce_quantity(raw) == expected


def test_set_quantity_with_fraction_keeps_line(cone):
    builder = OrderBuilder()
    builder.add_item(cone)
    builder.set_quantity("cone", Fraction(5, 2))
    assert builder.get("cone").quantity == 2


def test_set_quantity_with_overlong_digits_removes_line(cone):
    builder = OrderBuilder()
    builder.add_item(cone)
    builder.set_quantity("cone", "9" * 5000)
    assert builder.get("cone") is None
