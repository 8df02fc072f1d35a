import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shanthi_store.core.exceptions import APIError, ProductNotFound, WishlistItemNotFound
from shanthi_store.models.product import Product
from shanthi_store.models.wishlist import WishlistItem

logger = structlog.get_logger()


def serialize_wishlist_item(item: WishlistItem) -> dict:
    return {
        "id": item.id,
        "productId": item.product_id,
        "product": {
            "title": item.title,
            "price": item.price,
            "images": list(item.images or []),
            "category": item.category,
            "karatage": item.karatage,
            "materialColour": item.material_colour,
            "grossWeight": item.gross_weight,
            "metal": item.metal,
        },
        "createdAt": item.created_at,
    }


class WishlistService:

    @staticmethod
    def add_to_wishlist(db: Session, user_id: int, product_id: int) -> dict:
        """Add a product to user's wishlist. Enforces one product per user."""
        product = db.query(Product).filter(
            Product.id == product_id,
            Product.is_active == True,
        ).first()
        if not product:
            raise ProductNotFound()

        existing = db.query(WishlistItem).filter(
            WishlistItem.user_id == user_id,
            WishlistItem.product_id == product_id,
        ).first()
        if existing:
            raise APIError(status_code=409, message="Item already in wishlist")

        wishlist_item = WishlistItem(
            user_id=user_id,
            product_id=product.id,
            title=product.title,
            price=product.price,
            images=list(product.images or []),
            category=product.category,
            karatage=product.karatage,
            material_colour=product.material_colour,
            gross_weight=product.gross_weight,
            metal=product.metal,
        )
        db.add(wishlist_item)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise APIError(status_code=409, message="Item already in wishlist")
        db.refresh(wishlist_item)

        logger.info("wishlist_item_added", user_id=user_id, product_id=product_id)
        return serialize_wishlist_item(wishlist_item)

    @staticmethod
    def get_user_wishlist(db: Session, user_id: int) -> list:
        """Newest first."""
        items = (
            db.query(WishlistItem)
            .filter(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
            .all()
        )
        return [serialize_wishlist_item(item) for item in items]

    @staticmethod
    def remove_item(db: Session, user_id: int, item_id: int) -> None:
        item = db.query(WishlistItem).filter(
            WishlistItem.id == item_id,
            WishlistItem.user_id == user_id,
        ).first()
        if not item:
            raise WishlistItemNotFound()

        db.delete(item)
        db.commit()
        logger.info("wishlist_item_removed", user_id=user_id, item_id=item_id)

    @staticmethod
    def remove_by_product(db: Session, user_id: int, product_id: int) -> None:
        item = db.query(WishlistItem).filter(
            WishlistItem.user_id == user_id,
            WishlistItem.product_id == product_id,
        ).first()
        if not item:
            raise WishlistItemNotFound()

        db.delete(item)
        db.commit()
        logger.info("wishlist_item_removed", user_id=user_id, product_id=product_id)

    @staticmethod
    def count(db: Session, user_id: int) -> int:
        return db.query(WishlistItem).filter(WishlistItem.user_id == user_id).count()

    @staticmethod
    def check_in_wishlist(db: Session, user_id: int, product_id: int) -> bool:
        """Check if a product is in user's wishlist."""
        return db.query(WishlistItem).filter(
            WishlistItem.user_id == user_id,
            WishlistItem.product_id == product_id,
        ).first() is not None
