from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shanthi_store.api.deps import get_current_active_user
from shanthi_store.db.session import get_db
from shanthi_store.models.user import User
from shanthi_store.schemas.cart import CartItemCreate, CartItemUpdate
from shanthi_store.services.cart_service import CartService
from shanthi_store.utils.response import success

router = APIRouter()


@router.get("/", response_model=dict)
def get_cart(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get user's cart"""
    return success(data={"cart": CartService.get_cart(db, current_user.id)}, message="Cart retrieved")


@router.get("/count", response_model=dict)
def get_cart_count(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return success(data={"count": CartService.count(db, current_user.id)})


@router.post(
    "/",
    response_model=dict,
    responses={
        404: {"description": "Product not found"},
        409: {"description": "Item already in cart; body carries the current cart"},
    },
)
def add_to_cart(
    cart_item: CartItemCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Add item to cart"""
    cart = CartService.add_item(db, current_user.id, cart_item)
    return success(data={"cart": cart}, message="Item added to cart successfully")


@router.put("/{item_id}", response_model=dict)
def update_cart_item(
    item_id: int,
    update_data: CartItemUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Update cart item quantity"""
    cart = CartService.update_quantity(db, current_user.id, item_id, update_data.quantity)
    return success(data={"cart": cart}, message="Cart updated successfully")


@router.delete("/{item_id}", response_model=dict)
def remove_from_cart(
    item_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Remove item from cart"""
    cart = CartService.remove_item(db, current_user.id, item_id)
    return success(data={"cart": cart}, message="Item removed from cart")


@router.delete("/", response_model=dict)
def clear_cart(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Clear entire cart"""
    cart = CartService.clear(db, current_user.id)
    return success(data={"cart": cart}, message="Cart cleared successfully")
