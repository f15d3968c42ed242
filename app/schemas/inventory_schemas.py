# app/schemas/inventory_schemas.py
from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from datetime import date, datetime
from decimal import Decimal

from app.models.inventory_models import (
    ProductType, ProductCondition, ProductHealth, ProductStatus, OrderStatus
)


# --------------------------
# Product
# --------------------------
class ProductBase(BaseModel):
    brand: str
    model: str
    product_type: ProductType = ProductType.laptop
    condition: ProductCondition = ProductCondition.new
    cost_price: Decimal = Field(default=Decimal("0.00"), ge=0)
    specifications: Optional[str] = None
    prod_id: Optional[str] = None
    prod_health: ProductHealth = ProductHealth.working
    prod_status: ProductStatus = ProductStatus.available
    order_status: OrderStatus = OrderStatus.INVENTORY
    last_audit_date: Optional[date] = None
    audit_status: Optional[str] = None
    maintenance_date: Optional[date] = None
    maintenance_status: Optional[str] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    product_type: Optional[ProductType] = None
    condition: Optional[ProductCondition] = None
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    specifications: Optional[str] = None
    prod_id: Optional[str] = None
    prod_health: Optional[ProductHealth] = None
    prod_status: Optional[ProductStatus] = None
    order_status: Optional[OrderStatus] = None
    last_audit_date: Optional[date] = None
    audit_status: Optional[str] = None
    maintenance_date: Optional[date] = None
    maintenance_status: Optional[str] = None

    @field_validator(
        "brand", "model", "product_type", "condition", "cost_price",
        "prod_health", "prod_status", "order_status",
    )
    def required_when_given(cls, value):
        if value is None:
            raise ValueError("Cannot be null")
        return value


class ProductOut(ProductBase):
    id: int
    ads_id: str
    reference_number: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    last_modified_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductResponse(BaseModel):
    message: str
    data: Optional[ProductOut] = None


class ProductListResponse(BaseModel):
    message: str
    total: int
    data: List[ProductOut]


# --------------------------
# History
# --------------------------
class AuditSnapshotOut(BaseModel):
    id: int
    ads_id: str
    product_state: dict
    updated_by: str
    timestamp: datetime
    action: str
    note: Optional[str] = None

    model_config = {"from_attributes": True}


class FieldChange(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None


class HistoryDiff(BaseModel):
    snapshot_id: int
    timestamp: datetime
    action: str
    updated_by: str
    changes: List[FieldChange]


class ProductHistoryOut(BaseModel):
    ads_id: str
    brand: str
    model: str
    version: int
    audit_trail: List[AuditSnapshotOut]
    diffs: List[HistoryDiff]


class ProductHistoryResponse(BaseModel):
    message: str
    data: ProductHistoryOut
