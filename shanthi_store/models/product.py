from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, JSON
from datetime import datetime
from shanthi_store.db.base_class import Base


class Product(Base):
    """Catalog entry referenced by carts, wishlists and orders."""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    price = Column(Float, nullable=False)
    images = Column(JSON, default=list, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Jewellery attributes
    gross_weight = Column(String(50))
    karatage = Column(String(20))  # 22K, 24K, 18K
    metal = Column(String(50))
    material_colour = Column(String(50))

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def primary_image(self):
        return self.images[0] if self.images else None
