# app/services/billing_services/order_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import OrderConflictError
from app.models.billing_models.client_models import Client
from app.models.billing_models.order_models import Order, OrderItem, OrderType
from app.models.inventory_models import Product, ProductAuditSnapshot, ProductStatus, OrderStatus, AuditAction
from app.schemas.billing_schemas.order_schema import OrderCreate, OrderOut, OrderListResponse, OrderResponse
from app.services.billing_services.pricing import compute_totals
from app.utils.audit_helpers import record_product_snapshot
from app.utils.decimal_utils import to_decimal, to_money, ZERO

logger = logging.getLogger(__name__)

DUPLICATE_ORDER_ID = "DUPLICATE_ORDER_ID"
PRODUCT_UNAVAILABLE = "PRODUCT_UNAVAILABLE"

STATUS_FOR_ORDER_TYPE = {
    OrderType.RENT: ProductStatus.leased,
    OrderType.PURCHASE: ProductStatus.sold,
}


# =====================================================
# 🔹 HELPERS
# =====================================================
def _unavailable(ads_ids: List[str]) -> OrderConflictError:
    return OrderConflictError(
        PRODUCT_UNAVAILABLE,
        f"Product(s) no longer available: {', '.join(ads_ids)}",
        ads_ids=ads_ids,
    )


async def claim_product(db: AsyncSession, ads_id: str, order_type: OrderType, actor: str, now: datetime) -> bool:
    """
    Compare-and-swap on order_status: only a product still in INVENTORY is moved.
    Returns False when another order got there first.
    """
    result = await db.execute(
        update(Product)
        .where(Product.ads_id == ads_id, Product.order_status == OrderStatus.INVENTORY.value)
        .values(
            order_status=order_type.value,
            prod_status=STATUS_FOR_ORDER_TYPE[order_type].value,
            last_modified_by=actor,
            last_modified_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _load_order(db: AsyncSession, order_pk: int) -> Order:
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.items))
        .where(Order.id == order_pk)
        .execution_options(populate_existing=True)
    )
    return result.scalars().one()


# =====================================================
# 🔹 CREATE ORDER (single unit of work)
# =====================================================
async def create_order(
    db: AsyncSession,
    payload: OrderCreate,
    actor: str,
    now: Optional[datetime] = None,
) -> Tuple[Order, List[ProductAuditSnapshot]]:
    """
    Persist an order and claim its products atomically:

    1. insert the order row
    2. insert one order item per product
    3. re-check every product is still in INVENTORY and claim it
    4. append an UPDATED audit snapshot per product

    Any failure rolls the whole thing back.
    """
    now = now or datetime.now(timezone.utc)
    order_type = OrderType(payload.order_type)
    ads_ids = [line.ads_id for line in payload.products]

    try:
        client = await db.get(Client, payload.customer_id)
        if not client or not client.is_active:
            raise HTTPException(status_code=404, detail=f"Client {payload.customer_id} not found or is inactive")

        existing = await db.execute(select(Order.id).where(Order.order_id == payload.order_id))
        if existing.scalars().first():
            raise OrderConflictError(DUPLICATE_ORDER_ID, f"Order {payload.order_id} already exists")

        # Lock the rows we are about to claim (no-op on SQLite)
        result = await db.execute(
            select(Product)
            .where(Product.ads_id.in_(ads_ids))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        products = {p.ads_id: p for p in result.scalars().all()}
        missing = [ads_id for ads_id in ads_ids if ads_id not in products]
        if missing:
            raise _unavailable(missing)

        totals = compute_totals(payload.products, payload.discount_percentage, order_type, payload.security_deposit).rounded()
        deposit = to_money(payload.security_deposit) if order_type == OrderType.RENT else ZERO

        # 1. Order row
        order = Order(
            order_id=payload.order_id,
            customer_id=client.id,
            order_type=order_type.value,
            ads_ids=ads_ids,
            required_pieces=len(ads_ids),
            delivered_pieces=len(ads_ids),
            contract_date=payload.contract_date,
            estimated_delivery_date=payload.estimated_delivery_date,
            delivery_date=payload.delivery_date,
            order_delivery_status=payload.order_delivery_status.value,
            discount_percentage=to_money(payload.discount_percentage),
            security_deposit=deposit,
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            quoted_price=totals.total,
            total_payment_received=ZERO,
            created_by=actor,
            created_at=now,
        )
        db.add(order)
        await db.flush()

        # 2. Order items
        for line in payload.products:
            price = to_money(line.price)
            db.add(OrderItem(
                order_id=order.id,
                ads_id=line.ads_id,
                selling_price=price if order_type == OrderType.PURCHASE else None,
                rental_price_per_month=price if order_type == OrderType.RENT else None,
                created_at=now,
            ))
        await db.flush()

        # 3. Availability re-check and claim
        taken = [ads_id for ads_id in ads_ids if products[ads_id].order_status != OrderStatus.INVENTORY.value]
        if taken:
            raise _unavailable(taken)

        for ads_id in ads_ids:
            if not await claim_product(db, ads_id, order_type, actor, now):
                raise _unavailable([ads_id])

        # 4. Audit trail
        snapshots = []
        note = f"Assigned to order {payload.order_id} ({order_type.value})"
        for ads_id in ads_ids:
            product = products[ads_id]
            await db.refresh(product)
            snapshots.append(
                record_product_snapshot(db, product, actor, AuditAction.UPDATED, note=note, timestamp=now)
            )

        if order_type == OrderType.RENT and deposit > 0:
            client.total_security_money = to_money(to_decimal(client.total_security_money) + deposit)
            client.updated_by = actor

        await db.commit()

    except OrderConflictError as exc:
        await db.rollback()
        logger.warning("Order %s rejected: %s", payload.order_id, exc.message)
        raise
    except HTTPException:
        await db.rollback()
        raise
    except IntegrityError as e:
        await db.rollback()
        if "order_id" in str(e.orig).lower() or "unique" in str(e.orig).lower():
            raise OrderConflictError(DUPLICATE_ORDER_ID, f"Order {payload.order_id} already exists")
        raise HTTPException(status_code=400, detail=f"Integrity error: {e.orig}")
    except Exception:
        await db.rollback()
        logger.exception("Unexpected error while creating order %s", payload.order_id)
        raise

    logger.info("Order %s created by %s for %d product(s)", order.order_id, actor, len(ads_ids))
    return await _load_order(db, order.id), snapshots


def order_response(order: Order, snapshots: List[ProductAuditSnapshot], message: str) -> OrderResponse:
    return OrderResponse(
        message=message,
        data=OrderOut.model_validate(order),
        history_updates=[
            {"ads_id": s.ads_id, "snapshot_id": s.id, "action": s.action, "timestamp": s.timestamp}
            for s in snapshots
        ],
    )


# =====================================================
# 🔹 RETRIEVAL
# =====================================================
async def get_order(db: AsyncSession, order_id: str) -> OrderResponse:
    result = await db.execute(
        select(Order).options(selectinload(Order.items)).where(Order.order_id == order_id)
    )
    order = result.scalars().first()
    if not order:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return OrderResponse(message="Order retrieved successfully", data=OrderOut.model_validate(order))


async def list_orders(
    db: AsyncSession,
    order_type: Optional[OrderType] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> OrderListResponse:
    """Newest first; `search` matches order id, client name or client code."""
    query = select(Order).join(Client, Order.customer_id == Client.id)

    if order_type:
        query = query.where(Order.order_type == OrderType(order_type).value)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Order.order_id.ilike(pattern),
            Client.name.ilike(pattern),
            Client.customer_id.ilike(pattern),
        ))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = (
        query.options(selectinload(Order.items))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .offset(offset)
        .limit(limit)
    )
    orders = (await db.execute(query)).scalars().all()

    return OrderListResponse(
        message="Orders retrieved successfully",
        total=total,
        data=[OrderOut.model_validate(o) for o in orders],
    )
