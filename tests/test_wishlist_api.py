from fastapi.testclient import TestClient

from tests.factories import auth_headers


def test_add_to_wishlist_snapshots_product(client: TestClient, headers: dict, products: dict):
    response = client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["A"].id})

    assert response.status_code == 201
    item = response.json()["data"]["item"]
    assert item["productId"] == products["A"].id
    assert item["product"]["title"] == "Lakshmi Haram"
    assert item["product"]["karatage"] == "22K"
    assert item["product"]["images"] == products["A"].images


def test_wishlist_rejects_duplicates(client: TestClient, headers: dict, products: dict):
    client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["A"].id})

    response = client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["A"].id})

    assert response.status_code == 409
    assert response.json()["message"] == "Item already in wishlist"
    count = client.get("/api/v1/wishlist/count", headers=headers)
    assert count.json()["data"]["count"] == 1


def test_wishlist_unknown_product(client: TestClient, headers: dict, products: dict):
    response = client.post("/api/v1/wishlist/", headers=headers, json={"productId": 4242})

    assert response.status_code == 404


def test_wishlist_lists_newest_first_and_checks_membership(client: TestClient, headers: dict, products: dict):
    client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["A"].id})
    client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["B"].id})

    listing = client.get("/api/v1/wishlist/", headers=headers).json()["data"]
    assert listing["total"] == 2
    assert [item["productId"] for item in listing["items"]] == [products["B"].id, products["A"].id]

    check = client.get(f"/api/v1/wishlist/check/{products['A'].id}", headers=headers)
    assert check.json()["data"]["in_wishlist"] is True
    check = client.get(f"/api/v1/wishlist/check/{products['C'].id}", headers=headers)
    assert check.json()["data"]["in_wishlist"] is False


def test_remove_by_entry_and_by_product(client: TestClient, headers: dict, products: dict):
    added = client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["A"].id})
    client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["B"].id})
    item_id = added.json()["data"]["item"]["id"]

    assert client.delete(f"/api/v1/wishlist/{item_id}", headers=headers).status_code == 200
    assert client.delete(f"/api/v1/wishlist/product/{products['B'].id}", headers=headers).status_code == 200
    assert client.get("/api/v1/wishlist/", headers=headers).json()["data"]["items"] == []

    missing = client.delete(f"/api/v1/wishlist/{item_id}", headers=headers)
    assert missing.status_code == 404


def test_wishlist_entries_are_private(client: TestClient, headers: dict, products: dict, other_customer):
    added = client.post("/api/v1/wishlist/", headers=headers, json={"productId": products["A"].id})
    item_id = added.json()["data"]["item"]["id"]

    response = client.delete(f"/api/v1/wishlist/{item_id}", headers=auth_headers(other_customer))

    assert response.status_code == 404
    other_listing = client.get("/api/v1/wishlist/", headers=auth_headers(other_customer))
    assert other_listing.json()["data"]["total"] == 0
