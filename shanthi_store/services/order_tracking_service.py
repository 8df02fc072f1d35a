from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from shanthi_store.core.exceptions import InvalidStatusTransition, OrderNotFound
from shanthi_store.models.order import Order, OrderStatus
from shanthi_store.models.order_status_history import OrderStatusHistory, UpdatedBy

logger = structlog.get_logger()

# Cancelled, payment_failed and Delivered have no outgoing edges.
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
        OrderStatus.PAYMENT_FAILED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.PAYMENT_FAILED: set(),
}

TERMINAL_STATUSES = {status for status, targets in ALLOWED_TRANSITIONS.items() if not targets}


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, set())


def _history_entry(
    order: Order,
    status: OrderStatus,
    updated_by: UpdatedBy,
    user_id: Optional[Any],
    note: Optional[str],
    metadata: Optional[Dict[str, Any]],
    timestamp: Optional[datetime] = None,
) -> OrderStatusHistory:
    return OrderStatusHistory(
        order=order,
        status=status,
        updated_by=updated_by,
        updated_by_user_id=str(user_id) if user_id is not None else None,
        note=note or "",
        extra_metadata=metadata or {},
        timestamp=timestamp or datetime.utcnow(),
    )


def record_initial_status(
    db: Session,
    order: Order,
    updated_by: UpdatedBy = UpdatedBy.SYSTEM,
    user_id: Optional[Any] = None,
    note: str = "Order created",
    metadata: Optional[Dict[str, Any]] = None,
) -> OrderStatusHistory:
    """Stage the first history entry for a freshly built order.

    The caller commits, so the order row and its first history row land in
    the same transaction.
    """
    entry = _history_entry(order, order.status, updated_by, user_id, note, metadata)
    db.add(entry)
    return entry


def apply_status(
    db: Session,
    order: Order,
    new_status: OrderStatus,
    updated_by: UpdatedBy = UpdatedBy.SYSTEM,
    user_id: Optional[Any] = None,
    note: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> OrderStatusHistory:
    """Validate and stage a transition without committing."""
    current = OrderStatus(order.status)
    if not can_transition(current, new_status):
        raise InvalidStatusTransition(current.value, new_status.value)

    # Keep history strictly ordered even when two writes share a clock tick.
    now = datetime.utcnow()
    latest = order.status_history[-1] if order.status_history else None
    if latest is not None and latest.timestamp >= now:
        now = latest.timestamp + timedelta(microseconds=1)

    order.status = new_status
    entry = _history_entry(order, new_status, updated_by, user_id, note, metadata, timestamp=now)
    db.add(entry)
    return entry


def transition_order_status(
    db: Session,
    order: Order,
    new_status: OrderStatus,
    updated_by: UpdatedBy = UpdatedBy.SYSTEM,
    user_id: Optional[Any] = None,
    note: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Order:
    """Move an order to a new status and append the matching history row.

    Both writes go out in a single commit; on any failure the session is
    rolled back so Order.status never drifts from the latest history entry.
    """
    previous = order.status
    try:
        apply_status(db, order, new_status, updated_by, user_id, note, metadata)
        db.commit()
    except InvalidStatusTransition:
        db.rollback()
        logger.warning(
            "order_status_transition_rejected",
            order_id=order.id,
            current_status=getattr(previous, "value", previous),
            requested_status=new_status.value,
        )
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(
        "order_status_changed",
        order_id=order.id,
        from_status=getattr(previous, "value", previous),
        to_status=new_status.value,
        updated_by=updated_by.value,
    )
    return order


def get_order_history(db: Session, order_id: int) -> List[OrderStatusHistory]:
    return (
        db.query(OrderStatusHistory)
        .filter(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.timestamp.asc(), OrderStatusHistory.id.asc())
        .all()
    )


def get_latest_status(db: Session, order_id: int) -> Optional[OrderStatus]:
    latest = (
        db.query(OrderStatusHistory)
        .filter(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.timestamp.desc(), OrderStatusHistory.id.desc())
        .first()
    )
    return latest.status if latest else None


def serialize_history_entry(entry: OrderStatusHistory) -> dict:
    return {
        "status": entry.status.value,
        "updatedBy": entry.updated_by.value,
        "updatedByUserId": entry.updated_by_user_id,
        "note": entry.note,
        "metadata": entry.extra_metadata or {},
        "timestamp": entry.timestamp,
    }


def get_order_tracking(db: Session, order_id: int, user_id: int, is_admin: bool = False) -> dict:
    """Current status plus the full history. Users only see their own orders."""
    query = db.query(Order).filter(Order.id == order_id)
    if not is_admin:
        query = query.filter(Order.user_id == user_id)
    order = query.first()
    if not order:
        raise OrderNotFound()

    history = get_order_history(db, order.id)
    return {
        "orderId": order.id,
        "orderNumber": order.order_number,
        "status": order.status.value,
        "history": [serialize_history_entry(entry) for entry in history],
    }
