from datetime import datetime, timedelta

from sqlalchemy.orm import Session, sessionmaker

from shanthi_store.models.order import Order, OrderStatus, PaymentGateway, PaymentMethod
from shanthi_store.schemas.order import OrderCreate
from shanthi_store.services.order_service import (
    auto_cancel_pending_orders,
    create_cod_order,
    create_pending_online_order,
)
from shanthi_store.tasks import order_tasks
from tests.factories import order_payload


def _online_order(db: Session, user, products: dict, expired: bool) -> Order:
    order = create_pending_online_order(
        db,
        user,
        OrderCreate.model_validate(order_payload([(products["A"], 1)])),
        gateway=PaymentGateway.PHONEPE,
    )
    if expired:
        order.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db.commit()
    return order


def test_expired_online_orders_are_cancelled(db_session: Session, customer, products: dict):
    expired = _online_order(db_session, customer, products, expired=True)
    fresh = _online_order(db_session, customer, products, expired=False)
    cod = create_cod_order(db_session, customer, OrderCreate.model_validate(order_payload([(products["B"], 1)])))

    cancelled = auto_cancel_pending_orders(db_session)

    assert cancelled == 1
    for order in (expired, fresh, cod):
        db_session.refresh(order)
    assert expired.status == OrderStatus.CANCELLED
    assert expired.status_history[-1].updated_by.value == "system"
    assert expired.status_history[-1].extra_metadata == {"reason": "payment_timeout"}
    assert fresh.status == OrderStatus.PENDING
    assert cod.status == OrderStatus.PENDING
    assert cod.payment_method == PaymentMethod.COD


def test_cleanup_task_uses_its_own_session(
    monkeypatch, session_factory: sessionmaker, db_session: Session, customer, products: dict
):
    order = _online_order(db_session, customer, products, expired=True)
    monkeypatch.setattr(order_tasks, "SessionLocal", session_factory)

    result = order_tasks.cleanup_expired_orders.apply().get()

    assert result == 1
    db_session.refresh(order)
    assert order.status == OrderStatus.CANCELLED


def test_cleanup_is_scheduled_on_beat():
    from shanthi_store.core.celery_app import celery_app

    entry = celery_app.conf.beat_schedule["cancel-expired-orders-every-5-min"]

    assert entry["task"] == order_tasks.cleanup_expired_orders.name
    assert "shanthi_store.tasks.order_tasks" in celery_app.conf.include
