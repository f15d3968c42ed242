from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.db import Base


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String, unique=True, nullable=True, index=True)  # CX000001, set after insert
    name = Column(String, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    company = Column(String, nullable=True)
    gst = Column(String, nullable=True, index=True)
    pan = Column(String, nullable=True, index=True)
    website = Column(String, nullable=True)

    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)

    total_security_money = Column(Numeric(12, 2), nullable=False, default=0)
    is_active = Column(Boolean, default=True)

    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    orders = relationship("Order", back_populates="client", lazy="selectin")
