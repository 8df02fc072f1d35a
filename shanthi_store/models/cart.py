from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from shanthi_store.db.base_class import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    # Product snapshot at add-time
    name = Column(String(200), nullable=False)
    price = Column(Float, nullable=False)
    image = Column(String(500), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    weight = Column(String(50), nullable=True)
    purity = Column(String(20), nullable=True)

    quantity = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="cart_items")
    product = relationship("Product")

    # One line per product per user; duplicates are rejected, never merged
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="unique_user_product_cart"),
        CheckConstraint("quantity >= 1", name="cart_item_quantity_positive"),
    )
