from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import structlog

from shanthi_store.api.deps import get_current_active_user
from shanthi_store.db.session import get_db
from shanthi_store.models.cart import CartItem
from shanthi_store.models.user import User
from shanthi_store.models.wishlist import WishlistItem
from shanthi_store.services.order_service import anonymize_user_orders
from shanthi_store.utils.response import success

router = APIRouter()
logger = structlog.get_logger()


@router.delete("/me", response_model=dict)
def delete_account(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Delete the caller's account.

    Cart and wishlist rows are removed, orders are kept for accounting but
    stripped of customer details, and the user row is deactivated and scrubbed.
    """
    user_id = current_user.id

    db.query(CartItem).filter(CartItem.user_id == user_id).delete()
    db.query(WishlistItem).filter(WishlistItem.user_id == user_id).delete()
    anonymized = anonymize_user_orders(db, user_id)

    current_user.is_active = False
    current_user.email = f"deleted-{user_id}@deleted.invalid"
    current_user.full_name = "Deleted User"
    current_user.phone = None
    current_user.updated_at = datetime.utcnow()
    db.commit()

    logger.info("account_deleted", user_id=user_id, orders_anonymized=anonymized)
    response = JSONResponse(
        content=success(
            data={"ordersAnonymized": anonymized},
            message="Account deleted",
        )
    )
    response.delete_cookie("access_token", path="/")
    return response
