# app/models/billing_models/order_models.py
import enum

from sqlalchemy import (
    Column, Integer, String, ForeignKey, JSON, DateTime, Numeric,
    CheckConstraint, func
)
from sqlalchemy.orm import relationship
from app.core.db import Base


class OrderType(str, enum.Enum):
    RENT = "RENT"
    PURCHASE = "PURCHASE"


class OrderDeliveryStatus(str, enum.Enum):
    pending = "pending"
    in_transit = "in_transit"
    delivered = "delivered"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, unique=True, nullable=False, index=True)

    customer_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    order_type = Column(String, nullable=False)
    ads_ids = Column(JSON, nullable=False, default=list)

    required_pieces = Column(Integer, nullable=False, default=0)
    delivered_pieces = Column(Integer, nullable=False, default=0)

    contract_date = Column(DateTime(timezone=True), nullable=False)
    estimated_delivery_date = Column(DateTime(timezone=True), nullable=True)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
    order_delivery_status = Column(String, nullable=False, default=OrderDeliveryStatus.pending.value)

    # Financials
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    security_deposit = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    quoted_price = Column(Numeric(12, 2), nullable=False, default=0)
    total_payment_received = Column(Numeric(12, 2), nullable=False, default=0)

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("discount_percentage >= 0 AND discount_percentage <= 100", name="check_order_discount_range"),
        CheckConstraint("security_deposit >= 0", name="check_order_security_deposit_non_negative"),
    )

    client = relationship("Client", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    ads_id = Column(String, ForeignKey("products.ads_id", ondelete="RESTRICT"), nullable=False, index=True)
    selling_price = Column(Numeric(12, 2), nullable=True)
    rental_price_per_month = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")
