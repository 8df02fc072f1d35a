from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, Text, JSON, Index, event
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
from shanthi_store.db.base_class import Base
from shanthi_store.models.order import OrderStatus


class UpdatedBy(str, enum.Enum):
    SYSTEM = "system"
    ADMIN = "admin"
    USER = "user"


class OrderStatusHistory(Base):
    """Append-only log of order status changes."""
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    status = Column(Enum(OrderStatus), nullable=False)
    updated_by = Column(Enum(UpdatedBy), default=UpdatedBy.SYSTEM, nullable=False)
    updated_by_user_id = Column(String(64), nullable=True)  # user id or admin id
    note = Column(Text, default="", nullable=False)
    # "metadata" is reserved on declarative classes
    extra_metadata = Column("metadata", JSON, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    order = relationship("Order", back_populates="status_history")

    __table_args__ = (
        Index("ix_order_status_history_order_timestamp", "order_id", "timestamp"),
        Index("ix_order_status_history_status_timestamp", "status", "timestamp"),
    )


@event.listens_for(OrderStatusHistory, "before_update")
def _reject_history_update(mapper, connection, target):
    raise ValueError("Order status history entries are immutable")
