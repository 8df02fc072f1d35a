from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from shanthi_store.db.base_class import Base
from shanthi_store.models.order import PaymentGateway


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Set once the domain order exists (after gateway verification)
    order_id = Column(Integer, ForeignKey("orders.id"), unique=True, nullable=True)

    gateway = Column(Enum(PaymentGateway), nullable=False)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    amount = Column(Float, nullable=False)  # rupees
    currency = Column(String(3), default="INR", nullable=False)
    receipt = Column(String(100), nullable=True)

    # Gateway-specific fields
    gateway_order_id = Column(String(100), unique=True, nullable=False, index=True)
    gateway_payment_id = Column(String(100), nullable=True, index=True)
    signature = Column(String(200), nullable=True)
    gateway_response = Column(Text, nullable=True)  # Store JSON response
    error_code = Column(String(100), nullable=True)

    paid_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    order = relationship("Order", back_populates="payment")
