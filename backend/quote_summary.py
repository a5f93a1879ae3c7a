"""
Quote Summary - Project totals for a priced quotation.

Aggregates priced line items with pandas: sell and cost subtotals,
discount, tax, fixed charges, gross profit and per-room / per-type
breakdowns.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd

from models import PricingLineItem, ProjectFinancials
from pricing_engine import NOT_FOUND, round_money

logger = logging.getLogger(__name__)


@dataclass
class QuoteSummary:
    item_count: int = 0
    total_quantity: int = 0
    not_found_count: int = 0
    sell_subtotal: float = 0.0
    cost_subtotal: float = 0.0
    discount_amount: float = 0.0
    tax_amount: float = 0.0
    shipping_cost: float = 0.0
    fuel_surcharge: float = 0.0
    misc_charge: float = 0.0
    grand_total: float = 0.0
    gross_profit: float = 0.0
    room_subtotals: Dict[str, float] = field(default_factory=dict)
    type_subtotals: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_count": self.item_count,
            "total_quantity": self.total_quantity,
            "not_found_count": self.not_found_count,
            "sell_subtotal": self.sell_subtotal,
            "cost_subtotal": self.cost_subtotal,
            "discount_amount": self.discount_amount,
            "tax_amount": self.tax_amount,
            "shipping_cost": self.shipping_cost,
            "fuel_surcharge": self.fuel_surcharge,
            "misc_charge": self.misc_charge,
            "grand_total": self.grand_total,
            "gross_profit": self.gross_profit,
            "room_subtotals": dict(self.room_subtotals),
            "type_subtotals": dict(self.type_subtotals),
        }


def line_items_frame(lines: List[PricingLineItem]) -> pd.DataFrame:
    """One row per line item with the columns the summary needs."""
    columns = ["code", "room", "type", "quantity", "unit_cost", "total_price", "source"]
    rows = [
        {
            "code": line.original_code,
            "room": line.room or "General",
            "type": line.type.value,
            "quantity": line.quantity,
            "unit_cost": line.unit_cost,
            "total_price": line.total_price,
            "source": line.source,
        }
        for line in lines
    ]
    return pd.DataFrame(rows, columns=columns)


def _subtotals(df: pd.DataFrame, column: str) -> Dict[str, float]:
    if df.empty:
        return {}
    grouped = df.groupby(column, sort=True)["total_price"].sum()
    return {str(key): round_money(float(value)) for key, value in grouped.items()}


def summarize_quote(
    lines: List[PricingLineItem],
    financials: Optional[ProjectFinancials] = None,
) -> QuoteSummary:
    """
    Build quote totals.

    Discount and tax rates are whole percents; tax applies after discount.
    Shipping, fuel and misc charges are added untaxed.
    """
    fin = financials or ProjectFinancials()
    df = line_items_frame(lines)

    if df.empty:
        sell_subtotal = cost_subtotal = 0.0
        total_quantity = not_found = 0
    else:
        sell_subtotal = float(df["total_price"].sum())
        cost_subtotal = float((df["unit_cost"] * df["quantity"]).sum())
        total_quantity = int(df["quantity"].sum())
        not_found = int((df["source"] == NOT_FOUND).sum())

    discount = sell_subtotal * (fin.discount_rate or 0) / 100
    post_discount = sell_subtotal - discount
    tax = post_discount * (fin.tax_rate or 0) / 100
    shipping = fin.shipping_cost or 0
    fuel = fin.fuel_surcharge or 0
    misc = fin.misc_charge or 0
    grand_total = post_discount + tax + shipping + fuel + misc

    summary = QuoteSummary(
        item_count=len(lines),
        total_quantity=total_quantity,
        not_found_count=not_found,
        sell_subtotal=round_money(sell_subtotal),
        cost_subtotal=round_money(cost_subtotal),
        discount_amount=round_money(discount),
        tax_amount=round_money(tax),
        shipping_cost=round_money(shipping),
        fuel_surcharge=round_money(fuel),
        misc_charge=round_money(misc),
        grand_total=round_money(grand_total),
        gross_profit=round_money(post_discount - cost_subtotal),
        room_subtotals=_subtotals(df, "room"),
        type_subtotals=_subtotals(df, "type"),
    )
    logger.info(
        f"Quote summary: {summary.item_count} lines, subtotal {summary.sell_subtotal}, "
        f"grand total {summary.grand_total}"
    )
    return summary
