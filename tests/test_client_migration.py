import pytest
from fastapi.testclient import TestClient

from shanthi_store.client.local_storage import CART_KEY, WISHLIST_KEY, LocalStorage
from tests.factories import PASSWORD, access_token_for, auth_headers, cart_payload


def _guest_line(product, quantity: int = 1) -> dict:
    return {
        "productId": product.id,
        "name": product.title,
        "price": product.price,
        "image": product.images[0],
        "quantity": quantity,
        "category": product.category,
    }


@pytest.mark.asyncio
async def test_guest_items_are_migrated_once(storefront, customer, products: dict):
    storefront.storage.set(CART_KEY, [_guest_line(products["A"], 2), _guest_line(products["B"])])
    storefront.storage.set(WISHLIST_KEY, [{"productId": products["C"].id}])

    report = await storefront.authenticate(access_token_for(customer), {"id": customer.id})

    assert report.attempted == 3
    assert report.migrated == 3
    assert report.failed == []
    assert storefront.storage.get(CART_KEY) is None
    assert storefront.storage.get(WISHLIST_KEY) is None
    assert storefront.cart.total_amount == 2500
    assert [item["productId"] for item in storefront.wishlist.items] == [products["C"].id]
    assert storefront.notifier.last.message == "Your saved items have been synced to your account"

    again = await storefront.migration.run()
    assert again.skipped is True


@pytest.mark.asyncio
async def test_items_already_on_the_server_count_as_duplicates(
    storefront, customer, products: dict, client: TestClient
):
    client.post("/api/v1/cart/", headers=auth_headers(customer), json=cart_payload(products["A"], quantity=3))
    storefront.storage.set(CART_KEY, [_guest_line(products["A"]), _guest_line(products["B"])])

    report = await storefront.authenticate(access_token_for(customer), {"id": customer.id})

    assert report.duplicates == 1
    assert report.migrated == 1
    quantities = {line["productId"]: line["quantity"] for line in storefront.cart.items}
    assert quantities == {products["A"].id: 3, products["B"].id: 1}


@pytest.mark.asyncio
async def test_failing_item_does_not_block_the_batch(storefront, customer, products: dict):
    storefront.storage.set(CART_KEY, [_guest_line(products["A"])])
    storefront.storage.set(WISHLIST_KEY, [{"productId": 9999}, {"productId": products["B"].id}])

    report = await storefront.authenticate(access_token_for(customer), {"id": customer.id})

    assert report.attempted == 3
    assert report.migrated == 2
    assert len(report.failed) == 1
    assert report.failed[0].item == {"productId": 9999}
    assert report.failed[0].cause.message == "Product not found"
    # Failed entries are dropped with the rest of the local copy
    assert storefront.storage.get(WISHLIST_KEY) is None


@pytest.mark.asyncio
async def test_malformed_guest_entry_is_skipped(storefront, customer, products: dict):
    storefront.storage.set(CART_KEY, [None, _guest_line(products["B"])])
    storefront.storage.set(WISHLIST_KEY, [{"productId": products["C"].id}])

    report = await storefront.authenticate(access_token_for(customer), {"id": customer.id})

    assert report.attempted == 3
    assert report.migrated == 2
    assert len(report.failed) == 1
    assert report.failed[0].item is None
    assert [line["productId"] for line in storefront.cart.items] == [products["B"].id]
    assert [item["productId"] for item in storefront.wishlist.items] == [products["C"].id]
    assert storefront.storage.get(CART_KEY) is None
    assert storefront.storage.get(WISHLIST_KEY) is None


@pytest.mark.asyncio
async def test_nothing_to_migrate_stays_quiet(storefront, customer):
    report = await storefront.authenticate(access_token_for(customer), {"id": customer.id})

    assert report.attempted == 0
    assert storefront.notifier.shown == []


@pytest.mark.asyncio
async def test_migration_reruns_after_signing_in_again(storefront, customer, products: dict):
    await storefront.authenticate(access_token_for(customer), {"id": customer.id})
    storefront.sign_out()
    storefront.storage.set(WISHLIST_KEY, [{"productId": products["A"].id}])

    result = await storefront.sign_in(customer.email, PASSWORD)

    assert result.ok is True
    assert result.data.migrated == 1
    assert storefront.session.is_authenticated


@pytest.mark.asyncio
async def test_sign_in_with_wrong_password(storefront, customer):
    result = await storefront.sign_in(customer.email, "WrongPass1")

    assert result.ok is False
    assert result.message == "Incorrect email or password"
    assert storefront.session.is_authenticated is False


def test_local_storage_persists_to_file(tmp_path):
    path = tmp_path / "guest.json"
    LocalStorage(str(path)).set(CART_KEY, [{"productId": 1}])

    assert LocalStorage(str(path)).get(CART_KEY) == [{"productId": 1}]

    path.write_text("{not json", encoding="utf-8")
    assert LocalStorage(str(path)).get(CART_KEY) is None

    path.write_text("[1]", encoding="utf-8")
    assert LocalStorage(str(path)).get(CART_KEY) is None
