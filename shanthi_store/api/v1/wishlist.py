from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shanthi_store.db.session import get_db
from shanthi_store.api.deps import get_current_active_user
from shanthi_store.models.user import User
from shanthi_store.services.wishlist_service import WishlistService
from shanthi_store.schemas.wishlist import WishlistCreate
from shanthi_store.utils.response import success

router = APIRouter()


@router.get("/", response_model=dict)
def get_user_wishlist(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get user's wishlist, newest first."""
    items = WishlistService.get_user_wishlist(db, current_user.id)
    return success(data={"items": items, "total": len(items)}, message="Wishlist retrieved successfully")


@router.post("/", response_model=dict, status_code=status.HTTP_201_CREATED)
def add_to_wishlist(
    wishlist_data: WishlistCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Add a product to user's wishlist."""
    item = WishlistService.add_to_wishlist(db, current_user.id, wishlist_data.product_id)
    return success(data={"item": item}, message="Item added to wishlist")


@router.get("/count", response_model=dict)
def get_wishlist_count(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    return success(data={"count": WishlistService.count(db, current_user.id)})


@router.get("/check/{product_id}", response_model=dict)
def check_wishlist_status(
    product_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Check if a product is in user's wishlist."""
    in_wishlist = WishlistService.check_in_wishlist(db, current_user.id, product_id)
    return success(data={"in_wishlist": in_wishlist}, message="Wishlist status checked")


@router.delete("/product/{product_id}", response_model=dict)
def remove_product_from_wishlist(
    product_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    WishlistService.remove_by_product(db, current_user.id, product_id)
    return success(message="Product removed from wishlist")


@router.delete("/{item_id}", response_model=dict)
def remove_from_wishlist(
    item_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Remove a wishlist entry by its own id."""
    WishlistService.remove_item(db, current_user.id, item_id)
    return success(message="Item removed from wishlist")
