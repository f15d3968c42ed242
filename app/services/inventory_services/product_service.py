# app/services/inventory_services/product_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.inventory_models import Product, OrderStatus, AuditAction
from app.schemas.inventory_schemas import (
    ProductCreate,
    ProductUpdate,
    ProductOut,
    ProductResponse,
    ProductListResponse,
)
from app.utils.audit_helpers import record_product_snapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------
# Helper: identifiers
# ---------------------------------------------------
async def generate_product_identifiers(db: AsyncSession, now: datetime) -> tuple[str, str]:
    """Next ADS id (6-digit sequence) and reference number REF-YYYYMMDD-NNNN."""
    result = await db.execute(select(func.max(Product.id)))
    sequence_number = (result.scalar() or 0) + 1
    ads_id = f"{sequence_number:06d}"
    reference_number = f"REF-{now.strftime('%Y%m%d')}-{sequence_number:04d}"
    return ads_id, reference_number


async def _get_by_ads_id(db: AsyncSession, ads_id: str) -> Product:
    result = await db.execute(select(Product).where(Product.ads_id == ads_id))
    product = result.scalars().first()
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {ads_id} not found")
    return product


def _column_values(data) -> dict:
    """Enum members are stored by value."""
    return {
        key: getattr(value, "value", value)
        for key, value in data.items()
    }


# ---------------------------------------------------
# CREATE PRODUCT
# ---------------------------------------------------
async def create_product(db: AsyncSession, data: ProductCreate, current_user) -> ProductResponse:
    """
    Create a product with generated ADS id / reference number and record
    its first (CREATED) snapshot in the audit trail.
    """
    now = datetime.now(timezone.utc)
    try:
        ads_id, reference_number = await generate_product_identifiers(db, now)
        product = Product(
            **_column_values(data.model_dump()),
            ads_id=ads_id,
            reference_number=reference_number,
            created_by=current_user.username,
            created_at=now,
            last_modified_by=current_user.username,
            last_modified_at=now,
        )
        db.add(product)
        await db.flush()

        record_product_snapshot(db, product, current_user.username, AuditAction.CREATED, note="Product created", timestamp=now)

        await db.commit()
        await db.refresh(product)
        logger.info("Product %s created by %s", product.ads_id, current_user.username)
        return ProductResponse(message="Product created successfully", data=ProductOut.model_validate(product))

    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Product identifier already taken, please retry")
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Error creating product")
        raise HTTPException(status_code=500, detail=f"Error creating product: {e}")


# ---------------------------------------------------
# LIST PRODUCTS
# ---------------------------------------------------
async def list_products(
    db: AsyncSession,
    search: Optional[str] = None,
    brands: Optional[List[str]] = None,
    prod_health: Optional[List[str]] = None,
    prod_status: Optional[List[str]] = None,
    order_status: Optional[List[str]] = None,
    limit: int = 100,
    offset: int = 0,
) -> ProductListResponse:
    query = select(Product)

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            Product.ads_id.ilike(pattern),
            Product.reference_number.ilike(pattern),
            (Product.brand + " " + Product.model).ilike(pattern),
            Product.prod_id.ilike(pattern),
        ))
    if brands:
        query = query.where(Product.brand.in_(brands))
    if prod_health:
        query = query.where(Product.prod_health.in_(prod_health))
    if prod_status:
        query = query.where(Product.prod_status.in_(prod_status))
    if order_status:
        query = query.where(Product.order_status.in_(order_status))

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(Product.id.asc()).offset(offset).limit(limit)
    products = (await db.execute(query)).scalars().all()

    return ProductListResponse(
        message="Products fetched successfully",
        total=total,
        data=[ProductOut.model_validate(p) for p in products],
    )


async def list_available_products(db: AsyncSession, search: Optional[str] = None) -> ProductListResponse:
    """Products that can be put on a new order (order_status == INVENTORY)."""
    response = await list_products(db, search=search, order_status=[OrderStatus.INVENTORY.value], limit=1000)
    response.message = "Available products fetched successfully"
    return response


# ---------------------------------------------------
# GET SINGLE PRODUCT
# ---------------------------------------------------
async def get_product(db: AsyncSession, ads_id: str) -> ProductResponse:
    product = await _get_by_ads_id(db, ads_id)
    return ProductResponse(message="Product fetched successfully", data=ProductOut.model_validate(product))


# ---------------------------------------------------
# UPDATE PRODUCT
# ---------------------------------------------------
async def update_product(db: AsyncSession, ads_id: str, data: ProductUpdate, current_user) -> ProductResponse:
    """
    Apply changed fields and append an UPDATED snapshot listing them.
    A request that changes nothing leaves the audit trail alone.
    """
    try:
        product = await _get_by_ads_id(db, ads_id)

        changes = []
        for key, value in _column_values(data.model_dump(exclude_unset=True)).items():
            old_val = getattr(product, key)
            if old_val != value:
                changes.append(f"{key}: {old_val} → {value}")
                setattr(product, key, value)

        if changes:
            now = datetime.now(timezone.utc)
            product.last_modified_by = current_user.username
            product.last_modified_at = now
            await db.flush()
            record_product_snapshot(
                db, product, current_user.username, AuditAction.UPDATED,
                note=", ".join(changes), timestamp=now,
            )
            await db.commit()
            await db.refresh(product)
            logger.info("Product %s updated by %s: %s", ads_id, current_user.username, ", ".join(changes))

        return ProductResponse(message="Product updated successfully", data=ProductOut.model_validate(product))

    except IntegrityError:
        await db.rollback()
        logger.warning("Rejected update of product %s: constraint violated", ads_id)
        raise HTTPException(status_code=400, detail="Product update violates a required field or unique value")
    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("Error updating product %s", ads_id)
        raise HTTPException(status_code=500, detail=f"Error updating product: {e}")
