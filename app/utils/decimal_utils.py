# app/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    """
    Coerce a price-like value to Decimal without going through binary floats.
    None and empty strings count as zero.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a valid amount: {value!r}")


def to_money(value) -> Decimal:
    """Round to two decimals, used at persistence and response boundaries only."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
