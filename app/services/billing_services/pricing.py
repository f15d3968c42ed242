# app/services/billing_services/pricing.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from app.models.billing_models.order_models import OrderType
from app.utils.decimal_utils import to_decimal, to_money

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal

    def rounded(self) -> "OrderTotals":
        return OrderTotals(
            subtotal=to_money(self.subtotal),
            discount_amount=to_money(self.discount_amount),
            total=to_money(self.total),
        )


def _line_price(line) -> Decimal:
    if isinstance(line, dict):
        return to_decimal(line.get("price"))
    return to_decimal(getattr(line, "price", None))


def compute_totals(
    lines: Iterable,
    discount_percentage=0,
    order_type: OrderType = OrderType.PURCHASE,
    security_deposit=0,
) -> OrderTotals:
    """
    subtotal = sum of line prices
    discount = subtotal * pct / 100
    total    = subtotal - discount (+ security deposit for rentals)

    Values are not rounded here; call `.rounded()` at the boundary.
    """
    subtotal = sum((_line_price(line) for line in lines), Decimal("0"))
    discount_amount = subtotal * to_decimal(discount_percentage) / HUNDRED
    total = subtotal - discount_amount
    if OrderType(order_type) == OrderType.RENT:
        total += to_decimal(security_deposit)
    return OrderTotals(subtotal=subtotal, discount_amount=discount_amount, total=total)
