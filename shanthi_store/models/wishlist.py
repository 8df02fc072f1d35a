from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from shanthi_store.db.base_class import Base


class WishlistItem(Base):
    __tablename__ = "wishlist_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    # Product snapshot
    title = Column(String(200), nullable=False)
    price = Column(Float, nullable=False)
    images = Column(JSON, default=list, nullable=False)
    category = Column(String(100))
    karatage = Column(String(20))
    material_colour = Column(String(50))
    gross_weight = Column(String(50))
    metal = Column(String(50))

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="wishlist_items")
    product = relationship("Product")

    # Ensure one product per user in wishlist
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="unique_user_product_wishlist"),
    )
