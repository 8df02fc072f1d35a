from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from shanthi_store.api.deps import get_current_active_user, require_admin
from shanthi_store.core.exceptions import OrderNotFound
from shanthi_store.core.rate_limiter import limiter
from shanthi_store.db.session import get_db
from shanthi_store.models.order import Order
from shanthi_store.models.order_status_history import UpdatedBy
from shanthi_store.models.user import User, UserRole
from shanthi_store.schemas.order import OrderCreate, OrderStatusUpdate
from shanthi_store.services import order_service
from shanthi_store.services.order_tracking_service import get_order_tracking, transition_order_status
from shanthi_store.utils.response import success

router = APIRouter()


@router.post(
    "/cod",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Place cash-on-delivery order",
    description="""
Creates a `Pending` cash-on-delivery order from the submitted snapshot.

The submitted `total` must equal the sum of `price x quantity` over `items`;
otherwise the request is rejected with 400 and nothing is stored.
""",
    responses={
        201: {"description": "Order placed"},
        400: {"description": "Total does not match items"},
        401: {"description": "Authentication required"},
    },
)
@limiter.limit("10/minute")
def create_cod_order(
    request: Request,
    order_data: OrderCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    order = order_service.create_cod_order(db, current_user, order_data)
    return success(
        data={"order": order_service.serialize_order(order)},
        message="Order placed successfully. Pay on delivery.",
    )


@router.get("/", response_model=dict)
@limiter.limit("30/minute")
def get_user_orders(
    request: Request,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get user's order history"""
    orders = order_service.list_user_orders(db, current_user.id)
    return success(
        data=[order_service.serialize_order(order) for order in orders],
        message="Orders retrieved",
    )


@router.get("/{order_id}", response_model=dict)
@limiter.limit("30/minute")
def get_order_detail(
    request: Request,
    order_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get order details"""
    order = order_service.get_user_order(db, current_user.id, order_id)
    return success(
        data=order_service.serialize_order(order, include_history=True),
        message="Order detail retrieved",
    )


@router.put("/{order_id}/cancel", response_model=dict)
@limiter.limit("10/minute")
def cancel_order(
    request: Request,
    order_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Cancel a Pending order"""
    order = order_service.cancel_user_order(db, current_user, order_id)
    return success(
        data={"orderId": order.id, "status": order.status.value},
        message="Order cancelled successfully",
    )


# Order Tracking Endpoints

@router.put("/{order_id}/status", response_model=dict)
@limiter.limit("20/minute")
def update_order_status(
    request: Request,
    order_id: int,
    status_update: OrderStatusUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update order status (admin only)."""
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise OrderNotFound()

    order = transition_order_status(
        db,
        order,
        status_update.status,
        updated_by=UpdatedBy.ADMIN,
        user_id=current_user.id,
        note=status_update.note,
    )
    return success(
        data={"orderId": order.id, "status": order.status.value},
        message="Order status updated",
    )


@router.get("/{order_id}/tracking", response_model=dict)
@limiter.limit("30/minute")
def get_order_tracking_info(
    request: Request,
    order_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get order tracking information."""
    tracking = get_order_tracking(
        db, order_id, current_user.id, is_admin=current_user.role == UserRole.ADMIN
    )
    return success(data=tracking, message="Order tracking retrieved")
