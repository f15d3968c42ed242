from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.inventory_schemas import (
    ProductCreate, ProductUpdate,
    ProductResponse, ProductListResponse, ProductHistoryResponse,
)
from app.services.inventory_services import product_service, product_history
from app.utils.get_user import get_current_user
from app.utils.check_roles import require_role

router = APIRouter(prefix="/products", tags=["Products"])

ALL_ROLES = ["admin", "sales", "inventory"]


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
@require_role(["admin", "inventory"])
async def create_product_route(
    product: ProductCreate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await product_service.create_product(db, product, _user)


@router.get("/", response_model=ProductListResponse)
@require_role(ALL_ROLES)
async def list_products_route(
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
    search: Optional[str] = Query(None, description="ADS id, reference, brand/model or product id"),
    brand: Optional[List[str]] = Query(None),
    prod_health: Optional[List[str]] = Query(None),
    prod_status: Optional[List[str]] = Query(None),
    order_status: Optional[List[str]] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    return await product_service.list_products(
        db, search, brand, prod_health, prod_status, order_status, limit, offset
    )


# Must stay above /{ads_id}
@router.get("/available", response_model=ProductListResponse)
@require_role(ALL_ROLES)
async def list_available_products_route(
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
    search: Optional[str] = Query(None),
):
    return await product_service.list_available_products(db, search)


@router.get("/{ads_id}", response_model=ProductResponse)
@require_role(ALL_ROLES)
async def get_product_route(
    ads_id: str,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await product_service.get_product(db, ads_id)


@router.put("/{ads_id}", response_model=ProductResponse)
@require_role(["admin", "inventory"])
async def update_product_route(
    ads_id: str,
    product: ProductUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await product_service.update_product(db, ads_id, product, _user)


@router.get("/{ads_id}/history", response_model=ProductHistoryResponse)
@require_role(ALL_ROLES)
async def get_product_history_route(
    ads_id: str,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await product_history.get_product_history(db, ads_id)
