from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from shanthi_store.db.base_class import Base


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    PAYMENT_FAILED = "payment_failed"


class PaymentMethod(str, enum.Enum):
    COD = "cod"  # Cash on Delivery
    ONLINE = "online"


class PaymentGateway(str, enum.Enum):
    RAZORPAY = "razorpay"
    PHONEPE = "phonepe"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Customer snapshot
    customer_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(15), nullable=True)
    billing_address = Column(Text, nullable=True)
    delivery_address = Column(Text, nullable=False)

    # Always sum(price * quantity) over items; never written independently
    total = Column(Float, nullable=False)

    payment_method = Column(Enum(PaymentMethod), nullable=False)
    gateway = Column(Enum(PaymentGateway), nullable=True)
    # Denormalized cache of the latest OrderStatusHistory entry
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    transaction_id = Column(String(100), nullable=True, index=True)
    gateway_order_id = Column(String(100), nullable=True, index=True)

    expires_at = Column(DateTime, nullable=True)
    anonymized_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    payment = relationship("Payment", back_populates="order", uselist=False)
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistory.timestamp",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    # Snapshot at order time, decoupled from the live cart
    name = Column(String(200), nullable=False)
    price = Column(Float, nullable=False)
    image = Column(String(500), nullable=True)
    category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    weight = Column(String(50), nullable=True)
    purity = Column(String(20), nullable=True)
    quantity = Column(Integer, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")

    @property
    def line_total(self) -> float:
        return self.price * self.quantity
