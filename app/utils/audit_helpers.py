# app/utils/audit_helpers.py
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.inventory_models import Product, ProductAuditSnapshot, AuditAction
from app.utils.decimal_utils import to_money


def _json_value(value):
    if isinstance(value, Decimal):
        return str(to_money(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def product_state(product: Product) -> dict:
    """Full JSON-safe copy of every product column."""
    return {
        column.key: _json_value(getattr(product, column.key))
        for column in Product.__table__.columns
    }


def record_product_snapshot(
    db: AsyncSession,
    product: Product,
    actor: str,
    action: AuditAction = AuditAction.UPDATED,
    note: str = None,
    timestamp: datetime = None,
) -> ProductAuditSnapshot:
    """
    Adds a product snapshot to the session. The caller is responsible for the commit.
    """
    snapshot = ProductAuditSnapshot(
        ads_id=product.ads_id,
        product_state=product_state(product),
        updated_by=actor,
        timestamp=timestamp or datetime.now(timezone.utc),
        action=AuditAction(action).value,
        note=note,
    )
    db.add(snapshot)
    return snapshot
