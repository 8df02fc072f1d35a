from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from shanthi_store.models.order import Order, OrderStatus
from shanthi_store.models.order_status_history import OrderStatusHistory
from tests.factories import auth_headers, cart_payload, order_payload


def _place_cod(client: TestClient, headers: dict, products: dict) -> dict:
    response = client.post(
        "/api/v1/orders/cod",
        headers=headers,
        json=order_payload([(products["A"], 2), (products["B"], 1)]),
    )
    assert response.status_code == 201
    return response.json()["data"]["order"]


def test_cod_order_is_pending_with_snapshot(client: TestClient, headers: dict, products: dict):
    order = _place_cod(client, headers, products)

    assert order["status"] == "Pending"
    assert order["paymentMethod"] == "cod"
    assert order["total"] == 2500
    assert order["orderNumber"].startswith("SOG")
    assert order["transactionId"] is None
    assert [(item["productId"], item["quantity"]) for item in order["items"]] == [
        (products["A"].id, 2),
        (products["B"].id, 1),
    ]


def test_cod_order_records_initial_history(
    client: TestClient, headers: dict, products: dict, db_session: Session
):
    order = _place_cod(client, headers, products)

    history = db_session.query(OrderStatusHistory).filter(OrderStatusHistory.order_id == order["id"]).all()
    assert len(history) == 1
    assert history[0].status == OrderStatus.PENDING
    assert history[0].updated_by.value == "user"


def test_total_mismatch_is_rejected_and_nothing_stored(
    client: TestClient, headers: dict, products: dict, db_session: Session
):
    response = client.post(
        "/api/v1/orders/cod",
        headers=headers,
        json=order_payload([(products["A"], 2), (products["B"], 1)], total=2400),
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["message"] == "Order total does not match items"
    assert payload["errors"][0]["code"] == "TOTAL_MISMATCH"
    assert db_session.query(Order).count() == 0


def test_order_requires_items(client: TestClient, headers: dict, products: dict):
    payload = order_payload([(products["A"], 1)])
    payload["items"] = []
    payload["total"] = 0

    response = client.post("/api/v1/orders/cod", headers=headers, json=payload)

    assert response.status_code == 422


def test_placing_an_order_leaves_the_server_cart_alone(client: TestClient, headers: dict, products: dict):
    client.post("/api/v1/cart/", headers=headers, json=cart_payload(products["A"]))

    _place_cod(client, headers, products)

    cart = client.get("/api/v1/cart/", headers=headers).json()["data"]["cart"]
    assert cart["totalItems"] == 1


def test_order_listing_and_detail(client: TestClient, headers: dict, products: dict, other_customer):
    order = _place_cod(client, headers, products)

    listing = client.get("/api/v1/orders/", headers=headers).json()["data"]
    assert [entry["id"] for entry in listing] == [order["id"]]

    detail = client.get(f"/api/v1/orders/{order['id']}", headers=headers).json()["data"]
    assert detail["statusHistory"][0]["status"] == "Pending"

    foreign = client.get(f"/api/v1/orders/{order['id']}", headers=auth_headers(other_customer))
    assert foreign.status_code == 404


def test_customer_can_cancel_pending_order_once(client: TestClient, headers: dict, products: dict):
    order = _place_cod(client, headers, products)

    cancelled = client.put(f"/api/v1/orders/{order['id']}/cancel", headers=headers)
    assert cancelled.status_code == 200
    assert cancelled.json()["data"]["status"] == "Cancelled"

    again = client.put(f"/api/v1/orders/{order['id']}/cancel", headers=headers)
    assert again.status_code == 409
    assert again.json()["errors"][0]["code"] == "INVALID_STATUS_TRANSITION"


def test_status_update_requires_admin(client: TestClient, headers: dict, products: dict):
    order = _place_cod(client, headers, products)

    response = client.put(
        f"/api/v1/orders/{order['id']}/status",
        headers=headers,
        json={"status": "Processing"},
    )

    assert response.status_code == 403


def test_account_deletion_anonymizes_orders(
    client: TestClient, headers: dict, products: dict, db_session: Session, customer
):
    order = _place_cod(client, headers, products)
    client.post("/api/v1/cart/", headers=headers, json=cart_payload(products["C"]))

    response = client.delete("/api/v1/users/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["ordersAnonymized"] == 1
    stored = db_session.query(Order).filter(Order.id == order["id"]).one()
    db_session.refresh(stored)
    assert stored.customer_name == "Deleted User"
    assert stored.customer_email is None
    assert stored.anonymized_at is not None
    assert len(stored.status_history) == 1

    after = client.get("/api/v1/cart/", headers=headers)
    assert after.status_code == 403
