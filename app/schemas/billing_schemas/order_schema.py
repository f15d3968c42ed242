from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from app.models.billing_models.order_models import OrderType, OrderDeliveryStatus


# =====================================================
# 🔹 Input / Request Schemas
# =====================================================
class OrderLineIn(BaseModel):
    ads_id: str
    price: Decimal


class OrderCreate(BaseModel):
    customer_id: Optional[int] = None
    order_id: Optional[str] = None  # generated from customer + date when omitted
    order_type: OrderType = OrderType.PURCHASE
    products: List[OrderLineIn] = []
    contract_date: Optional[datetime] = None
    estimated_delivery_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    order_delivery_status: OrderDeliveryStatus = OrderDeliveryStatus.pending
    discount_percentage: Decimal = Decimal("0")
    security_deposit: Decimal = Decimal("0")
    created_by: Optional[str] = None


# =====================================================
# 🔹 Response Schemas
# =====================================================
class OrderItemOut(BaseModel):
    id: int
    ads_id: str
    selling_price: Optional[Decimal] = None
    rental_price_per_month: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OrderOut(BaseModel):
    id: int
    order_id: str
    customer_id: int
    order_type: OrderType
    ads_ids: List[str]
    required_pieces: int
    delivered_pieces: int
    contract_date: datetime
    estimated_delivery_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    order_delivery_status: OrderDeliveryStatus
    discount_percentage: Decimal
    security_deposit: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    quoted_price: Decimal
    total_payment_received: Decimal
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemOut] = []

    model_config = {"from_attributes": True}


class HistoryUpdate(BaseModel):
    """Tells the caller which product histories changed, so cached trails can be dropped."""
    ads_id: str
    snapshot_id: int
    action: str
    timestamp: datetime


class OrderResponse(BaseModel):
    message: str
    data: Optional[OrderOut] = None
    history_updates: List[HistoryUpdate] = []


class OrderListResponse(BaseModel):
    message: str
    total: int
    data: List[OrderOut]
