from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.billing_models.order_models import OrderType
from app.schemas.billing_schemas.order_schema import OrderCreate, OrderResponse, OrderListResponse
from app.services.billing_services import order_composer, order_service
from app.utils.get_user import get_current_user
from app.utils.check_roles import require_role

router = APIRouter(prefix="/orders", tags=["Orders"])


# POST create order
@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@require_role(["admin", "sales"])
async def create_order_route(
    order: OrderCreate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    # Same validation gate as the composer; the actor always comes from the session
    draft = order_composer.draft_from_request(order)
    submission = await order_composer.submit_order(db, draft, _user)
    return order_service.order_response(
        submission.order,
        submission.history_updates,
        f"Order {submission.order.order_id} has been created",
    )


# GET all orders
@router.get("/", response_model=OrderListResponse)
@require_role(["admin", "sales"])
async def list_orders_route(
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
    order_type: Optional[OrderType] = Query(None),
    search: Optional[str] = Query(None, description="Order id, client name or client code"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return await order_service.list_orders(db, order_type, search, limit, offset)


# GET order by order id
@router.get("/{order_id}", response_model=OrderResponse)
@require_role(["admin", "sales"])
async def get_order_route(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await order_service.get_order(db, order_id)
