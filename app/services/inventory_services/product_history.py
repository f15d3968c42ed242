# app/services/inventory_services/product_history.py
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.inventory_models import Product, ProductAuditSnapshot
from app.schemas.inventory_schemas import (
    AuditSnapshotOut,
    FieldChange,
    HistoryDiff,
    ProductHistoryOut,
    ProductHistoryResponse,
)

# Fields compared between consecutive snapshots
TRACKED_FIELDS = (
    "brand",
    "model",
    "condition",
    "cost_price",
    "specifications",
    "prod_id",
    "prod_health",
    "prod_status",
    "order_status",
    "product_type",
    "last_audit_date",
    "audit_status",
    "maintenance_date",
    "maintenance_status",
)


@dataclass(frozen=True)
class HistoryEntry:
    snapshot: ProductAuditSnapshot
    changes: Tuple[FieldChange, ...]


def diff_states(previous: Optional[dict], current: dict) -> Tuple[FieldChange, ...]:
    if previous is None:
        return ()
    return tuple(
        FieldChange(field=name, old_value=previous.get(name), new_value=current.get(name))
        for name in TRACKED_FIELDS
        if current.get(name) != previous.get(name)
    )


def iter_product_history(snapshots: Iterable[ProductAuditSnapshot]) -> Iterator[HistoryEntry]:
    """
    Walk time-ordered snapshots, pairing each one with the changes since the
    one before. The first entry carries no changes. Nothing is cached, so
    iterating again recomputes from the snapshots given.
    """
    previous = None
    for snapshot in snapshots:
        state = snapshot.product_state or {}
        yield HistoryEntry(snapshot=snapshot, changes=diff_states(previous, state))
        previous = state


async def get_product_history(db: AsyncSession, ads_id: str) -> ProductHistoryResponse:
    result = await db.execute(select(Product).where(Product.ads_id == ads_id))
    product = result.scalars().first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    result = await db.execute(
        select(ProductAuditSnapshot)
        .where(ProductAuditSnapshot.ads_id == ads_id)
        .order_by(ProductAuditSnapshot.timestamp.asc(), ProductAuditSnapshot.id.asc())
    )
    snapshots = result.scalars().all()

    trail: List[AuditSnapshotOut] = []
    diffs: List[HistoryDiff] = []
    for position, entry in enumerate(iter_product_history(snapshots)):
        trail.append(AuditSnapshotOut.model_validate(entry.snapshot))
        if position > 0:
            diffs.append(HistoryDiff(
                snapshot_id=entry.snapshot.id,
                timestamp=entry.snapshot.timestamp,
                action=entry.snapshot.action,
                updated_by=entry.snapshot.updated_by,
                changes=list(entry.changes),
            ))

    return ProductHistoryResponse(
        message="Product history fetched successfully",
        data=ProductHistoryOut(
            ads_id=product.ads_id,
            brand=product.brand,
            model=product.model,
            version=len(trail),
            audit_trail=trail,
            diffs=diffs,
        ),
    )
