"""Tests for receipt rendering."""

from datetime import datetime
from decimal import Decimal

from gelato_pos.builder import OrderBuilder
from gelato_pos.models import ShopSettings, Totals
from gelato_pos.receipt import DIVIDER, FOOTER, HEADER, ITEM, SUBTOTAL, TAX, TOTAL, render_receipt
from gelato_pos.totals import calculate_totals

STAMP = datetime(2026, 10, 19, 9, 5, 0)


def _scenario_items(gelato_cup, cone):
    builder = OrderBuilder()
    builder.add_item(gelato_cup)
    builder.add_item(gelato_cup)
    builder.add_item(cone)
    return builder.items()


class TestRenderReceipt:
    def test_gelato_scenario_lines(self, gelato_cup, cone, shop_settings):
        items = _scenario_items(gelato_cup, cone)
        doc = render_receipt(shop_settings, items, calculate_totals(items), STAMP)

        assert [str(line) for line in doc.lines_of(ITEM)] == ["2x Gelato Cup  $7.00", "1x Cone  $2.00"]
        (total,) = doc.lines_of(TOTAL)
        assert total.right == "$9.00"
        assert total.emphasized
        assert doc.lines_of(SUBTOTAL)[0].right == "$9.00"

    def test_section_order(self, gelato_cup, cone, shop_settings):
        items = _scenario_items(gelato_cup, cone)
        doc = render_receipt(shop_settings, items, calculate_totals(items), STAMP)

        kinds = [line.kind for line in doc.lines]
        assert kinds == [HEADER, HEADER, HEADER, HEADER, DIVIDER, ITEM, ITEM, DIVIDER, SUBTOTAL, TOTAL, FOOTER]
        assert [line.left for line in doc.lines_of(HEADER)] == [
            "Boutique del Gelato",
            "12 Via Roma",
            "555-0142",
            "2026-10-19 09:05:00",
        ]
        assert doc.lines[-1].left == "Thank you!"

    def test_tax_line_only_when_positive(self, cone):
        items = _scenario_items(cone, cone)
        taxed = Totals(subtotal=Decimal("6.00"), tax=Decimal("0.495"), total=Decimal("6.495"))

        assert render_receipt(None, items, calculate_totals(items), STAMP).lines_of(TAX) == []
        (tax,) = render_receipt(None, items, taxed, STAMP).lines_of(TAX)
        assert tax.right == "$0.50"
        assert render_receipt(None, items, taxed, STAMP).lines_of(TOTAL)[0].right == "$6.50"

    def test_sub_cent_tax_prints_no_tax_line(self, cone):
        items = _scenario_items(cone, cone)
        tiny = Totals(subtotal=Decimal("4.00"), tax=Decimal("0.004"), total=Decimal("4.004"))

        doc = render_receipt(None, items, tiny, STAMP)

        assert doc.lines_of(TAX) == []
        assert doc.lines_of(TOTAL)[0].right == "$4.00"

    def test_default_shop_name_and_optional_lines(self, cone):
        items = _scenario_items(cone, cone)
        totals = calculate_totals(items)

        for settings in (None, ShopSettings(shop_name="   ")):
            headers = render_receipt(settings, items, totals, STAMP).lines_of(HEADER)
            assert [line.left for line in headers] == ["Boutique del Gelato", "2026-10-19 09:05:00"]

    def test_deterministic(self, gelato_cup, cone, shop_settings):
        items = _scenario_items(gelato_cup, cone)
        totals = calculate_totals(items)
        assert render_receipt(shop_settings, items, totals, STAMP) == render_receipt(shop_settings, items, totals, STAMP)


class TestToText:
    def test_fixed_width_layout(self, gelato_cup, cone, shop_settings):
        items = _scenario_items(gelato_cup, cone)
        text = render_receipt(shop_settings, items, calculate_totals(items), STAMP).to_text(width=32)
        rows = text.splitlines()

        assert rows[0] == "Boutique del Gelato".center(32).rstrip()
        assert "-" * 32 in rows
        item_row = next(row for row in rows if row.startswith("2x Gelato Cup"))
        assert item_row.endswith("$7.00")
        assert len(item_row) == 32
        assert rows[-1].strip() == "Thank you!"

    def test_narrow_width_keeps_two_space_gap(self, gelato_cup, cone):
        items = _scenario_items(gelato_cup, cone)
        text = render_receipt(None, items, calculate_totals(items), STAMP).to_text(width=10)
        assert "2x Gelato Cup  $7.00" in text.splitlines()
        assert "1x Cone  $2.00" in text.splitlines()
