from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol

import structlog

from shanthi_store.client.api_client import ApiClient
from shanthi_store.client.cart_store import CartStore
from shanthi_store.client.errors import (
    GENERIC_FAILURE_MESSAGE,
    AuthRequired,
    NetworkOrServerError,
    PaymentVerificationFailure,
    StorefrontError,
)
from shanthi_store.client.notifier import Notifier
from shanthi_store.client.session import AuthSession

logger = structlog.get_logger()

ORDER_HISTORY_VIEW = "order_history"
ORDER_DETAIL_VIEW = "order_detail"

# Snapshot fields copied from a cart line onto an order line
_LINE_FIELDS = ("productId", "name", "price", "quantity", "image", "category", "description", "weight", "purity")


def order_total(items: Iterable[Mapping[str, Any]]) -> float:
    return round(sum(float(item["price"]) * int(item["quantity"]) for item in items), 2)


@dataclass
class GatewayOutcome:
    """What the payment modal reported. A hint only; the server decides."""

    success: bool
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    signature: Optional[str] = None
    error: Optional[str] = None


class GatewayLauncher(Protocol):
    async def open(self, gateway_order: dict) -> GatewayOutcome:
        ...


@dataclass
class CheckoutResult:
    ok: bool
    message: str = ""
    order: Optional[dict] = None
    next_view: Optional[str] = None
    redirect_url: Optional[str] = None


class Checkout:
    """Turns the current cart into an order through COD, Razorpay or PhonePe."""

    def __init__(self, api: ApiClient, session: AuthSession, cart: CartStore, notifier: Notifier):
        self.api = api
        self.session = session
        self.cart = cart
        self.notifier = notifier

    def build_order_payload(self, customer: Mapping[str, Any]) -> dict:
        items = [{key: line.get(key) for key in _LINE_FIELDS} for line in self.cart.items]
        return {
            "customer": dict(customer),
            "items": items,
            "total": order_total(items),
        }

    def _fail(self, message: str) -> CheckoutResult:
        self.notifier.error(message)
        return CheckoutResult(ok=False, message=message)

    def _precheck(self) -> Optional[CheckoutResult]:
        if not self.session.is_authenticated:
            return self._fail(AuthRequired().message)
        if not self.cart.items:
            return self._fail("Your cart is empty")
        return None

    async def place_cod_order(self, customer: Mapping[str, Any]) -> CheckoutResult:
        blocked = self._precheck()
        if blocked:
            return blocked

        payload = self.build_order_payload(customer)
        try:
            data = await self.api.post("orders/cod", json=payload)
        except StorefrontError as exc:
            logger.warning("cod_order_failed", error=exc.message)
            return self._fail(exc.message or GENERIC_FAILURE_MESSAGE)

        order = (data or {}).get("order")
        await self.cart.clear_cart(silent=True)
        self.notifier.success("Order placed successfully")
        logger.info("cod_order_placed", order_id=(order or {}).get("id"))
        return CheckoutResult(ok=True, message="Order placed successfully", order=order, next_view=ORDER_HISTORY_VIEW)

    async def pay_online(
        self,
        customer: Mapping[str, Any],
        launcher: GatewayLauncher,
        receipt: Optional[str] = None,
    ) -> CheckoutResult:
        """Two-phase Razorpay checkout.

        The gateway order carries no domain order. Only a successful
        server-side signature check creates one; a success reported by the
        modal alone never does.
        """
        blocked = self._precheck()
        if blocked:
            return blocked

        payload = self.build_order_payload(customer)
        try:
            gateway_order = await self.api.post(
                "payments/create-order",
                json={"amount": payload["total"], "currency": "INR", "receipt": receipt},
            )
        except StorefrontError as exc:
            logger.warning("gateway_order_failed", error=exc.message)
            return self._fail(exc.message or GENERIC_FAILURE_MESSAGE)

        outcome = await launcher.open(gateway_order)
        if not outcome.success:
            logger.info("gateway_payment_not_completed", gateway_order_id=gateway_order.get("id"))
            return self._fail(outcome.error or "Payment was not completed")

        try:
            data = await self.api.post(
                "payments/verify",
                json={
                    "paymentId": outcome.payment_id,
                    "orderId": outcome.order_id or gateway_order.get("id"),
                    "signature": outcome.signature,
                    "orderData": payload,
                },
            )
        except NetworkOrServerError as exc:
            failure = PaymentVerificationFailure() if exc.status_code == 400 else exc
            logger.warning(
                "payment_verification_failed",
                gateway_order_id=gateway_order.get("id"),
                status_code=exc.status_code,
            )
            return self._fail(failure.message)
        except StorefrontError as exc:
            logger.warning("payment_verification_failed", gateway_order_id=gateway_order.get("id"))
            return self._fail(exc.message)

        order = (data or {}).get("order")
        message = (data or {}).get("msg") or "Payment successful"
        await self.cart.clear_cart(silent=True)
        self.notifier.success(message)
        logger.info("online_order_placed", order_id=(order or {}).get("id"))
        return CheckoutResult(ok=True, message=message, order=order, next_view=ORDER_HISTORY_VIEW)

    async def start_phonepe_checkout(
        self,
        customer: Mapping[str, Any],
        redirect_url: Optional[str] = None,
    ) -> CheckoutResult:
        """Create the Pending order and hand back PhonePe's payment page URL.

        The cart is left alone; the order detail view polls the payment state.
        """
        blocked = self._precheck()
        if blocked:
            return blocked

        payload = self.build_order_payload(customer)
        if redirect_url:
            payload["redirectUrl"] = redirect_url
        try:
            data = await self.api.post("phonepe/initiate-checkout", json=payload)
        except StorefrontError as exc:
            logger.warning("phonepe_checkout_failed", error=exc.message)
            return self._fail(exc.message or GENERIC_FAILURE_MESSAGE)

        data = data or {}
        order = {"id": data.get("orderId"), "orderNumber": data.get("orderNumber"), "status": "Pending"}
        return CheckoutResult(
            ok=True,
            message="Redirecting to PhonePe",
            order=order,
            next_view=ORDER_DETAIL_VIEW,
            redirect_url=data.get("redirectUrl"),
        )
