import pytest

from models import CabinetItem, CabinetType, PricingLineItem, ProjectFinancials
from pricing_engine import NOT_FOUND
from quote_summary import line_items_frame, summarize_quote


def line(code, cabinet_type, room, quantity, unit_cost, final_unit_price, source="Catalog (Exact Tier)"):
    item = CabinetItem(id=code, original_code=code, type=cabinet_type, quantity=quantity, room=room)
    return PricingLineItem(
        item=item,
        base_price=unit_cost,
        options_price=0,
        unit_cost=unit_cost,
        final_unit_price=final_unit_price,
        total_price=final_unit_price * quantity,
        pricing_factor=1.0,
        margin=0,
        tier_name="Standard",
        source=source,
        matched_sku=code,
    )


@pytest.fixture
def lines():
    return [
        line("B15", CabinetType.BASE, "Kitchen", 2, 100, 150),
        line("W3030", CabinetType.WALL, "Bath", 1, 50, 80),
        line("ZZZ", CabinetType.OTHER, "General", 1, 0, 0, source=NOT_FOUND),
    ]


def test_summary_totals(lines):
    financials = ProjectFinancials(
        discount_rate=10, tax_rate=8, shipping_cost=50, fuel_surcharge=10, misc_charge=5,
    )
    summary = summarize_quote(lines, financials)

    assert summary.item_count == 3
    assert summary.total_quantity == 4
    assert summary.not_found_count == 1
    assert summary.sell_subtotal == 380
    assert summary.cost_subtotal == 250
    assert summary.discount_amount == 38
    assert summary.tax_amount == pytest.approx(27.36)
    assert summary.grand_total == pytest.approx(434.36)
    assert summary.gross_profit == 92


def test_summary_breakdowns(lines):
    summary = summarize_quote(lines)
    assert summary.room_subtotals == {"Bath": 80, "General": 0, "Kitchen": 300}
    assert list(summary.room_subtotals) == ["Bath", "General", "Kitchen"]
    assert summary.type_subtotals == {"Base": 300, "Other": 0, "Wall": 80}


def test_summary_without_financials(lines):
    summary = summarize_quote(lines)
    assert summary.grand_total == 380
    assert summary.discount_amount == 0
    assert summary.tax_amount == 0


def test_empty_quote_keeps_fixed_charges():
    summary = summarize_quote([], ProjectFinancials(shipping_cost=25, tax_rate=8))
    assert summary.item_count == 0
    assert summary.sell_subtotal == 0
    assert summary.grand_total == 25
    assert summary.room_subtotals == {}


def test_line_items_frame(lines):
    df = line_items_frame(lines)
    assert list(df["code"]) == ["B15", "W3030", "ZZZ"]
    assert list(df["type"]) == ["Base", "Wall", "Other"]
    assert df["quantity"].sum() == 4


def test_to_dict_round_trips_fields(lines):
    data = summarize_quote(lines).to_dict()
    assert data["sell_subtotal"] == 380
    assert data["type_subtotals"]["Base"] == 300


def test_string_type_labels_are_coerced():
    item = CabinetItem(id="w", original_code="W3030", type="Wall")
    assert item.type is CabinetType.WALL
    assert CabinetItem(id="x", original_code="HNDL", type="knob").type is CabinetType.OTHER

    priced = line("W3030", "wall", "Kitchen", 1, 50, 80)
    assert priced.to_dict()["type"] == "Wall"
    assert summarize_quote([priced]).type_subtotals == {"Wall": 80}
