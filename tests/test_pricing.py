from decimal import Decimal

import pytest

from app.models.billing_models.order_models import OrderType
from app.services.billing_services.pricing import compute_totals

LINES = [{"price": Decimal("1000")}, {"price": Decimal("500")}]


def test_purchase_totals_with_discount():
    totals = compute_totals(LINES, 10, OrderType.PURCHASE).rounded()

    assert totals.subtotal == Decimal("1500.00")
    assert totals.discount_amount == Decimal("150.00")
    assert totals.total == Decimal("1350.00")


def test_rent_totals_include_security_deposit():
    totals = compute_totals(LINES, 0, OrderType.RENT, security_deposit=2000).rounded()

    assert totals.subtotal == Decimal("1500.00")
    assert totals.total == Decimal("3500.00")


def test_security_deposit_ignored_for_purchase():
    totals = compute_totals(LINES, 0, OrderType.PURCHASE, security_deposit=2000)
    assert totals.total == Decimal("1500")


def test_float_prices_do_not_drift():
    lines = [{"price": 0.1}] * 10
    totals = compute_totals(lines, 0, "PURCHASE")
    assert totals.subtotal == Decimal("1.0")


def test_accepts_objects_with_price_attribute():
    class Line:
        def __init__(self, price):
            self.price = price

    totals = compute_totals([Line("19.99"), Line("0.01")], 50, OrderType.PURCHASE)
    assert totals.subtotal == Decimal("20.00")
    assert totals.discount_amount == Decimal("10.00")


def test_empty_order_is_zero():
    totals = compute_totals([], 25, OrderType.PURCHASE)
    assert totals.subtotal == 0
    assert totals.total == 0


@pytest.mark.parametrize("discount", [0, 1, 12.5, 33.33, 50, 99.99, 100])
@pytest.mark.parametrize("prices", [["1"], ["999.99", "0.01"], ["1234.56", "78.9", "10"]])
def test_discount_amount_and_non_negative_total(discount, prices):
    lines = [{"price": p} for p in prices]
    totals = compute_totals(lines, discount, OrderType.PURCHASE)

    assert totals.discount_amount == totals.subtotal * Decimal(str(discount)) / 100
    assert totals.total >= 0
