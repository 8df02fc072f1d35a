from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
import random
import string
import structlog

from shanthi_store.core.config import settings
from shanthi_store.core.exceptions import OrderNotFound, OrderTotalMismatch
from shanthi_store.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentGateway,
    PaymentMethod,
)
from shanthi_store.models.order_status_history import UpdatedBy
from shanthi_store.models.user import User
from shanthi_store.schemas.order import OrderCreate
from shanthi_store.services.order_tracking_service import (
    apply_status,
    record_initial_status,
    serialize_history_entry,
    transition_order_status,
)

logger = structlog.get_logger()

# Client totals are floats in rupees; anything closer than a paisa is equal.
TOTAL_TOLERANCE = 0.01


def order_total(items: Iterable) -> float:
    """Sum of price x quantity over order lines (schema or ORM objects)."""
    return round(sum(item.price * item.quantity for item in items), 2)


def ensure_total_matches(order_data: OrderCreate) -> float:
    expected = order_total(order_data.items)
    if abs(expected - order_data.total) > TOTAL_TOLERANCE:
        raise OrderTotalMismatch(expected=expected, received=order_data.total)
    return expected


def generate_order_number(db: Session) -> str:
    """Generate a unique order number with bounded retries."""
    max_attempts = 10

    for _ in range(max_attempts):
        timestamp = datetime.utcnow().strftime("%Y%m%d")
        random_part = "".join(
            random.choices(string.ascii_uppercase + string.digits, k=8)
        )
        order_number = f"SOG{timestamp}{random_part}"

        existing = db.query(Order).filter(Order.order_number == order_number).first()
        if not existing:
            return order_number

    raise ValueError("Failed to generate unique order number")


def build_order(
    db: Session,
    user: User,
    order_data: OrderCreate,
    payment_method: PaymentMethod,
    gateway: Optional[PaymentGateway] = None,
    expires_at: Optional[datetime] = None,
    note: str = "Order created",
) -> Order:
    """Stage a Pending order, its item snapshot and its first history entry.

    Nothing is committed here; callers that need further writes (payment
    links, an immediate transition) commit once at the end.
    """
    total = ensure_total_matches(order_data)
    customer = order_data.customer

    order = Order(
        order_number=generate_order_number(db),
        user_id=user.id,
        customer_name=customer.name,
        customer_email=customer.email or user.email,
        customer_phone=customer.phone or user.phone,
        billing_address=customer.billing_address or customer.delivery_address,
        delivery_address=customer.delivery_address,
        total=total,
        payment_method=payment_method,
        gateway=gateway,
        status=OrderStatus.PENDING,
        expires_at=expires_at,
    )
    for item in order_data.items:
        order.items.append(OrderItem(
            product_id=item.product_id,
            name=item.name,
            price=item.price,
            image=item.image,
            category=item.category,
            description=item.description,
            weight=item.weight,
            purity=item.purity,
            quantity=item.quantity,
        ))

    db.add(order)
    record_initial_status(db, order, updated_by=UpdatedBy.USER, user_id=user.id, note=note)
    return order


def create_cod_order(db: Session, user: User, order_data: OrderCreate) -> Order:
    order = build_order(
        db,
        user,
        order_data,
        payment_method=PaymentMethod.COD,
        note="Cash on delivery order placed",
    )
    db.commit()
    db.refresh(order)

    logger.info(
        "order_created",
        order_id=order.id,
        order_number=order.order_number,
        user_id=user.id,
        payment_method=PaymentMethod.COD.value,
        total=order.total,
    )
    return order


def create_pending_online_order(
    db: Session,
    user: User,
    order_data: OrderCreate,
    gateway: PaymentGateway,
) -> Order:
    """Pending online order that the expiry task cancels if payment never lands."""
    order = build_order(
        db,
        user,
        order_data,
        payment_method=PaymentMethod.ONLINE,
        gateway=gateway,
        expires_at=datetime.utcnow() + timedelta(minutes=settings.PENDING_ORDER_TTL_MINUTES),
        note="Awaiting online payment",
    )
    db.commit()
    db.refresh(order)

    logger.info(
        "order_created",
        order_id=order.id,
        order_number=order.order_number,
        user_id=user.id,
        payment_method=PaymentMethod.ONLINE.value,
        gateway=gateway.value,
        total=order.total,
    )
    return order


def get_user_order(db: Session, user_id: int, order_id: int) -> Order:
    order = db.query(Order).filter(
        Order.id == order_id,
        Order.user_id == user_id,
    ).first()
    if not order:
        raise OrderNotFound()
    return order


def list_user_orders(db: Session, user_id: int) -> List[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def serialize_order(order: Order, include_history: bool = False) -> dict:
    data = {
        "id": order.id,
        "orderNumber": order.order_number,
        "customer": {
            "name": order.customer_name,
            "email": order.customer_email,
            "phone": order.customer_phone,
            "billingAddress": order.billing_address,
            "deliveryAddress": order.delivery_address,
        },
        "items": [
            {
                "productId": item.product_id,
                "name": item.name,
                "price": item.price,
                "image": item.image,
                "category": item.category,
                "description": item.description,
                "weight": item.weight,
                "purity": item.purity,
                "quantity": item.quantity,
            }
            for item in order.items
        ],
        "total": order.total,
        "paymentMethod": order.payment_method.value,
        "gateway": order.gateway.value if order.gateway else None,
        "status": order.status.value,
        "transactionId": order.transaction_id,
        "createdAt": order.created_at,
        "updatedAt": order.updated_at,
    }
    if include_history:
        data["statusHistory"] = [serialize_history_entry(entry) for entry in order.status_history]
    return data


def cancel_user_order(db: Session, user: User, order_id: int) -> Order:
    """Customer cancellation; only Pending orders may be cancelled."""
    order = get_user_order(db, user.id, order_id)
    return transition_order_status(
        db,
        order,
        OrderStatus.CANCELLED,
        updated_by=UpdatedBy.USER,
        user_id=user.id,
        note="Cancelled by customer",
    )


def auto_cancel_pending_orders(db: Session) -> int:
    """
    Cancel online-payment orders whose payment window has lapsed.

    Args:
        db (Session): Database session

    Returns:
        int: Number of orders cancelled
    """
    now = datetime.utcnow()
    cutoff_time = now - timedelta(minutes=settings.PENDING_ORDER_TTL_MINUTES)

    pending_orders: List[Order] = (
        db.query(Order)
        .filter(
            Order.status == OrderStatus.PENDING,
            Order.payment_method == PaymentMethod.ONLINE,
        )
        .all()
    )

    cancelled_count = 0
    for order in pending_orders:
        if order.expires_at:
            is_expired = order.expires_at <= now
        else:
            is_expired = order.created_at < cutoff_time

        if not is_expired:
            continue

        apply_status(
            db,
            order,
            OrderStatus.CANCELLED,
            updated_by=UpdatedBy.SYSTEM,
            note="Payment window expired",
            metadata={"reason": "payment_timeout"},
        )
        order.expires_at = None
        logger.info(
            "order_expired",
            order_id=order.id,
            user_id=order.user_id,
            previous_status=OrderStatus.PENDING.value,
        )
        cancelled_count += 1

    db.commit()
    return cancelled_count


def anonymize_user_orders(db: Session, user_id: int) -> int:
    """Strip customer details from a deleted account's orders. History is left as written."""
    orders = db.query(Order).filter(Order.user_id == user_id, Order.anonymized_at.is_(None)).all()
    now = datetime.utcnow()
    for order in orders:
        order.customer_name = "Deleted User"
        order.customer_email = None
        order.customer_phone = None
        order.billing_address = None
        order.delivery_address = "[removed]"
        order.anonymized_at = now
    return len(orders)
