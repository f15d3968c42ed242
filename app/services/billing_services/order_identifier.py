# app/services/billing_services/order_identifier.py
from datetime import datetime, timezone


def generate_order_id(customer_id: int, now: datetime) -> str:
    """ORD + 6-digit customer id + _ + UTC date, e.g. ORD000042_20261019."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    date_str = now.astimezone(timezone.utc).strftime("%Y%m%d")
    return f"ORD{int(customer_id):06d}_{date_str}"


def disambiguate_order_id(base: str, attempt: int) -> str:
    """Suffix used when the same customer already has an order on the same day."""
    if attempt <= 0:
        return base
    return f"{base}-{attempt + 1}"
