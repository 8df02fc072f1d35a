import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from shanthi_store.core.exceptions import InvalidStatusTransition
from shanthi_store.models.order import Order, OrderStatus
from shanthi_store.models.order_status_history import OrderStatusHistory, UpdatedBy
from shanthi_store.services.order_tracking_service import (
    TERMINAL_STATUSES,
    can_transition,
    get_latest_status,
    transition_order_status,
)
from tests.factories import auth_headers, order_payload


def _place_cod(client: TestClient, headers: dict, products: dict) -> int:
    response = client.post("/api/v1/orders/cod", headers=headers, json=order_payload([(products["A"], 1)]))
    assert response.status_code == 201
    return response.json()["data"]["order"]["id"]


def _set_status(client: TestClient, admin, order_id: int, status: str, note: str = None):
    return client.put(
        f"/api/v1/orders/{order_id}/status",
        headers=auth_headers(admin),
        json={"status": status, "note": note},
    )


def test_forward_path_is_recorded_in_order(client: TestClient, headers: dict, products: dict, admin):
    order_id = _place_cod(client, headers, products)

    for status in ("Processing", "Shipped", "Delivered"):
        response = _set_status(client, admin, order_id, status, note=f"moved to {status}")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == status

    tracking = client.get(f"/api/v1/orders/{order_id}/tracking", headers=headers).json()["data"]
    assert tracking["status"] == "Delivered"
    assert [entry["status"] for entry in tracking["history"]] == [
        "Pending",
        "Processing",
        "Shipped",
        "Delivered",
    ]
    assert [entry["updatedBy"] for entry in tracking["history"]] == ["user", "admin", "admin", "admin"]
    assert tracking["history"][1]["updatedByUserId"] == str(admin.id)
    timestamps = [entry["timestamp"] for entry in tracking["history"]]
    assert timestamps == sorted(timestamps)
    assert len(set(timestamps)) == len(timestamps)


def test_skipping_a_step_is_rejected(
    client: TestClient, headers: dict, products: dict, admin, db_session: Session
):
    order_id = _place_cod(client, headers, products)

    response = _set_status(client, admin, order_id, "Shipped")

    assert response.status_code == 409
    assert get_latest_status(db_session, order_id) == OrderStatus.PENDING
    assert db_session.query(OrderStatusHistory).filter(OrderStatusHistory.order_id == order_id).count() == 1


@pytest.mark.parametrize("terminal", ["Cancelled", "payment_failed"])
def test_failure_branches_are_terminal(
    client: TestClient, headers: dict, products: dict, admin, terminal: str
):
    order_id = _place_cod(client, headers, products)
    assert _set_status(client, admin, order_id, terminal).status_code == 200

    response = _set_status(client, admin, order_id, "Processing")

    assert response.status_code == 409


def test_transition_table():
    assert TERMINAL_STATUSES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.PAYMENT_FAILED}
    assert can_transition(OrderStatus.PENDING, OrderStatus.PAYMENT_FAILED)
    assert not can_transition(OrderStatus.PROCESSING, OrderStatus.CANCELLED)
    assert not can_transition(OrderStatus.SHIPPED, OrderStatus.PROCESSING)


def test_status_cache_matches_latest_history_entry(
    client: TestClient, headers: dict, products: dict, db_session: Session
):
    order_id = _place_cod(client, headers, products)
    order = db_session.query(Order).filter(Order.id == order_id).one()

    transition_order_status(db_session, order, OrderStatus.PROCESSING, updated_by=UpdatedBy.SYSTEM)
    with pytest.raises(InvalidStatusTransition):
        transition_order_status(db_session, order, OrderStatus.PENDING, updated_by=UpdatedBy.SYSTEM)

    db_session.refresh(order)
    assert order.status == OrderStatus.PROCESSING
    assert get_latest_status(db_session, order_id) == order.status


def test_history_entries_cannot_be_rewritten(
    client: TestClient, headers: dict, products: dict, db_session: Session
):
    order_id = _place_cod(client, headers, products)
    entry = db_session.query(OrderStatusHistory).filter(OrderStatusHistory.order_id == order_id).one()

    entry.note = "rewritten"
    with pytest.raises(ValueError):
        db_session.commit()
    db_session.rollback()


def test_tracking_is_private(client: TestClient, headers: dict, products: dict, other_customer, admin):
    order_id = _place_cod(client, headers, products)

    assert client.get(f"/api/v1/orders/{order_id}/tracking", headers=auth_headers(other_customer)).status_code == 404
    assert client.get(f"/api/v1/orders/{order_id}/tracking", headers=auth_headers(admin)).status_code == 200
