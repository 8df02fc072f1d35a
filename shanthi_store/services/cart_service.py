import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shanthi_store.core.exceptions import APIError, CartItemNotFound, ProductNotFound
from shanthi_store.models.cart import CartItem
from shanthi_store.models.product import Product
from shanthi_store.schemas.cart import CartItemCreate

logger = structlog.get_logger()


def serialize_cart_item(item: CartItem) -> dict:
    return {
        "id": item.id,
        "productId": item.product_id,
        "name": item.name,
        "price": item.price,
        "image": item.image,
        "quantity": item.quantity,
        "category": item.category,
        "description": item.description,
        "weight": item.weight,
        "purity": item.purity,
    }


class CartService:

    @staticmethod
    def _items(db: Session, user_id: int):
        return (
            db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.asc(), CartItem.id.asc())
            .all()
        )

    @staticmethod
    def get_cart(db: Session, user_id: int) -> dict:
        """Canonical cart: items plus totals derived from the stored lines."""
        items = CartService._items(db, user_id)
        return {
            "items": [serialize_cart_item(item) for item in items],
            "totalAmount": sum(item.price * item.quantity for item in items),
            "totalItems": sum(item.quantity for item in items),
        }

    @staticmethod
    def count(db: Session, user_id: int) -> int:
        return sum(item.quantity for item in CartService._items(db, user_id))

    @staticmethod
    def add_item(db: Session, user_id: int, payload: CartItemCreate) -> dict:
        """Add a product snapshot line. A product already in the cart is a 409, never a merge."""
        product = db.query(Product).filter(
            Product.id == payload.product_id,
            Product.is_active == True,
        ).first()
        if not product:
            raise ProductNotFound()

        existing = db.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.product_id == payload.product_id,
        ).first()
        if existing:
            raise APIError(
                status_code=409,
                message="Item already in cart",
                data={"cart": CartService.get_cart(db, user_id)},
            )

        db.add(CartItem(
            user_id=user_id,
            product_id=payload.product_id,
            name=payload.name,
            price=payload.price,
            image=payload.image,
            quantity=payload.quantity,
            category=payload.category,
            description=payload.description,
            weight=payload.weight,
            purity=payload.purity,
        ))
        try:
            db.commit()
        except IntegrityError:
            # Lost a race against a concurrent add of the same product
            db.rollback()
            raise APIError(
                status_code=409,
                message="Item already in cart",
                data={"cart": CartService.get_cart(db, user_id)},
            )

        logger.info("cart_item_added", user_id=user_id, product_id=payload.product_id)
        return CartService.get_cart(db, user_id)

    @staticmethod
    def _get_line(db: Session, user_id: int, item_id: int) -> CartItem:
        item = db.query(CartItem).filter(
            CartItem.id == item_id,
            CartItem.user_id == user_id,
        ).first()
        if not item:
            raise CartItemNotFound()
        return item

    @staticmethod
    def update_quantity(db: Session, user_id: int, item_id: int, quantity: int) -> dict:
        item = CartService._get_line(db, user_id, item_id)
        item.quantity = quantity
        db.commit()
        logger.info("cart_item_updated", user_id=user_id, item_id=item_id, quantity=quantity)
        return CartService.get_cart(db, user_id)

    @staticmethod
    def remove_item(db: Session, user_id: int, item_id: int) -> dict:
        item = CartService._get_line(db, user_id, item_id)
        db.delete(item)
        db.commit()
        logger.info("cart_item_removed", user_id=user_id, item_id=item_id)
        return CartService.get_cart(db, user_id)

    @staticmethod
    def clear(db: Session, user_id: int) -> dict:
        db.query(CartItem).filter(CartItem.user_id == user_id).delete()
        db.commit()
        logger.info("cart_cleared", user_id=user_id)
        return CartService.get_cart(db, user_id)
