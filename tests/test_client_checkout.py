import pytest
from sqlalchemy.orm import Session

from shanthi_store.client.checkout import ORDER_HISTORY_VIEW, GatewayOutcome, order_total
from shanthi_store.models.order import Order
from tests.factories import CUSTOMER, razorpay_signature


class _Launcher:
    """Stands in for the payment modal."""

    def __init__(self, succeed: bool = True, forge: bool = False):
        self.succeed = succeed
        self.forge = forge
        self.opened = []

    async def open(self, gateway_order: dict) -> GatewayOutcome:
        self.opened.append(gateway_order)
        if not self.succeed:
            return GatewayOutcome(success=False, error="Payment cancelled by user")
        signature = "forged" if self.forge else razorpay_signature(gateway_order["id"], "pay_001")
        return GatewayOutcome(
            success=True,
            payment_id="pay_001",
            order_id=gateway_order["id"],
            signature=signature,
        )


def _product(product) -> dict:
    return {
        "id": product.id,
        "title": product.title,
        "price": product.price,
        "images": list(product.images),
        "category": product.category,
    }


async def _fill_cart(front, products: dict) -> None:
    await front.cart.add_to_cart(_product(products["A"]))
    line = front.cart.find_by_product(products["A"].id)
    await front.cart.update_quantity(line["id"], 2)
    await front.cart.add_to_cart(_product(products["B"]))


def test_order_total_sums_lines():
    items = [{"productId": "A", "price": 1000, "quantity": 2}, {"productId": "B", "price": 500, "quantity": 1}]

    assert order_total(items) == 2500


@pytest.mark.asyncio
async def test_cod_order_clears_cart(signed_in, products: dict):
    await _fill_cart(signed_in, products)

    result = await signed_in.checkout.place_cod_order(CUSTOMER)

    assert result.ok is True
    assert result.next_view == ORDER_HISTORY_VIEW
    assert result.order["total"] == 2500
    assert result.order["status"] == "Pending"
    assert signed_in.cart.items == []


@pytest.mark.asyncio
async def test_empty_cart_cannot_check_out(signed_in):
    result = await signed_in.checkout.place_cod_order(CUSTOMER)

    assert result.ok is False
    assert result.message == "Your cart is empty"


@pytest.mark.asyncio
async def test_server_rejection_keeps_the_cart(signed_in, products: dict):
    await _fill_cart(signed_in, products)

    result = await signed_in.checkout.place_cod_order({"name": "No Address"})

    assert result.ok is False
    assert result.message == "Validation failed"
    assert len(signed_in.cart.items) == 2


@pytest.mark.asyncio
async def test_online_payment_is_verified_before_order_exists(
    signed_in, products: dict, fake_razorpay, db_session: Session
):
    await _fill_cart(signed_in, products)
    launcher = _Launcher()

    result = await signed_in.checkout.pay_online(CUSTOMER, launcher)

    assert result.ok is True
    assert result.message == "Payment successful and order placed!"
    assert result.order["status"] == "Processing"
    assert launcher.opened[0]["amount"] == 250000
    assert signed_in.cart.items == []
    assert db_session.query(Order).count() == 1


@pytest.mark.asyncio
async def test_modal_failure_creates_nothing(signed_in, products: dict, fake_razorpay, db_session: Session):
    await _fill_cart(signed_in, products)

    result = await signed_in.checkout.pay_online(CUSTOMER, _Launcher(succeed=False))

    assert result.ok is False
    assert result.message == "Payment cancelled by user"
    assert db_session.query(Order).count() == 0
    assert len(signed_in.cart.items) == 2


@pytest.mark.asyncio
async def test_forged_success_callback_is_not_trusted(
    signed_in, products: dict, fake_razorpay, db_session: Session
):
    await _fill_cart(signed_in, products)

    result = await signed_in.checkout.pay_online(CUSTOMER, _Launcher(forge=True))

    assert result.ok is False
    assert result.message == "Payment verification failed. No order was placed."
    assert db_session.query(Order).count() == 0
    assert len(signed_in.cart.items) == 2


@pytest.mark.asyncio
async def test_phonepe_checkout_returns_redirect(signed_in, products: dict, fake_phonepe):
    await _fill_cart(signed_in, products)

    result = await signed_in.checkout.start_phonepe_checkout(CUSTOMER, redirect_url="https://shop.test/return")

    assert result.ok is True
    assert result.redirect_url.startswith("https://mercury.phonepe.test/pay/")
    assert result.order["status"] == "Pending"
    assert fake_phonepe.checkouts[0]["redirectUrl"] == "https://shop.test/return"
    assert len(signed_in.cart.items) == 2
