# app/models/inventory_models.py
import enum

from sqlalchemy import (
    Column, Integer, String, Numeric, ForeignKey, DateTime, Date, Text,
    JSON, CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
from app.core.db import Base


# --------------------------
# Enums
# --------------------------
class ProductType(str, enum.Enum):
    laptop = "laptop"
    desktop = "desktop"


class ProductCondition(str, enum.Enum):
    new = "new"
    refurbished = "refurbished"
    used = "used"


class ProductHealth(str, enum.Enum):
    working = "working"
    maintenance = "maintenance"
    expired = "expired"


class ProductStatus(str, enum.Enum):
    available = "available"
    leased = "leased"
    sold = "sold"
    leased_not_working = "leased but not working"
    leased_maintenance = "leased but maintenance"
    returned = "returned"


class OrderStatus(str, enum.Enum):
    INVENTORY = "INVENTORY"
    RENT = "RENT"
    PURCHASE = "PURCHASE"


class AuditAction(str, enum.Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"


# --------------------------
# Product
# --------------------------
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    ads_id = Column(String, unique=True, nullable=False, index=True)
    reference_number = Column(String, unique=True, nullable=False)

    brand = Column(String, nullable=False, index=True)
    model = Column(String, nullable=False)
    product_type = Column(String, nullable=False, default=ProductType.laptop.value)
    condition = Column(String, nullable=False, default=ProductCondition.new.value)
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    specifications = Column(Text, nullable=True)
    prod_id = Column(String, nullable=True)

    prod_health = Column(String, nullable=False, default=ProductHealth.working.value)
    prod_status = Column(String, nullable=False, default=ProductStatus.available.value)
    order_status = Column(String, nullable=False, default=OrderStatus.INVENTORY.value, index=True)

    # Audit / maintenance
    last_audit_date = Column(Date, nullable=True)
    audit_status = Column(String, nullable=True)
    maintenance_date = Column(Date, nullable=True)
    maintenance_status = Column(String, nullable=True)

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_modified_by = Column(String, nullable=True)
    last_modified_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(cost_price >= 0, name="check_product_cost_price_non_negative"),
    )

    audit_trail = relationship(
        "ProductAuditSnapshot",
        back_populates="product",
        order_by="(ProductAuditSnapshot.timestamp, ProductAuditSnapshot.id)",
        cascade="all, delete-orphan",
    )


# --------------------------
# Product audit trail (append-only)
# --------------------------
class ProductAuditSnapshot(Base):
    __tablename__ = "product_audit_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    ads_id = Column(String, ForeignKey("products.ads_id", ondelete="CASCADE"), nullable=False, index=True)
    product_state = Column(JSON, nullable=False)
    updated_by = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    action = Column(String, nullable=False)
    note = Column(String, nullable=True)

    product = relationship("Product", back_populates="audit_trail")


# --------------------------
# Index Optimization
# --------------------------
Index("ix_product_brand_model", Product.brand, Product.model)
Index("ix_audit_ads_id_timestamp", ProductAuditSnapshot.ads_id, ProductAuditSnapshot.timestamp)
