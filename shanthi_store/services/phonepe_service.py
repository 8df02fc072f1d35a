import hashlib
import hmac
import json
import time
from datetime import datetime
from functools import lru_cache
from typing import Optional

import httpx
import structlog
from sqlalchemy.orm import Session

from shanthi_store.core.config import settings
from shanthi_store.core.exceptions import APIError, OrderNotFound, PaymentGatewayError
from shanthi_store.models.order import Order, OrderStatus, PaymentGateway
from shanthi_store.models.order_status_history import UpdatedBy
from shanthi_store.models.payment import Payment, PaymentStatus
from shanthi_store.models.user import User
from shanthi_store.schemas.payment import PhonePeCheckoutRequest
from shanthi_store.services.order_service import create_pending_online_order, get_user_order
from shanthi_store.services.order_tracking_service import transition_order_status

logger = structlog.get_logger()

STATE_PENDING = "PENDING"
STATE_COMPLETED = "COMPLETED"
STATE_FAILED = "FAILED"
# Gateway states that close the payment without money moving
FAILED_STATES = {STATE_FAILED, "CANCELLED", "EXPIRED"}

CALLBACK_COMPLETED = "CHECKOUT_ORDER_COMPLETED"
CALLBACK_FAILED = "CHECKOUT_ORDER_FAILED"


class PhonePeGateway:
    """Minimal PhonePe standard-checkout (v2) client over httpx."""

    # Production splits auth and payments across services; sandbox does not.
    _PATHS = {
        "production": {
            "token": "/identity-manager/v1/oauth/token",
            "pay": "/pg/checkout/v2/pay",
            "status": "/pg/checkout/v2/order/{merchant_order_id}/status",
        },
        "sandbox": {
            "token": "/v1/oauth/token",
            "pay": "/checkout/v2/pay",
            "status": "/checkout/v2/order/{merchant_order_id}/status",
        },
    }

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        client_version: str,
        base_url: str,
        environment: str = "sandbox",
        timeout: float = 15.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.client_version = client_version
        self.paths = self._PATHS["production" if environment == "production" else "sandbox"]
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def _access_token(self) -> str:
        if self._token and time.time() < self._token_expires_at - 60:
            return self._token

        try:
            response = self._http.post(
                self.paths["token"],
                data={
                    "client_id": self.client_id,
                    "client_version": self.client_version,
                    "client_secret": self.client_secret,
                    "grant_type": "client_credentials",
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PaymentGatewayError(f"PhonePe authorization failed: {exc}", _status_of(exc))

        body = response.json()
        self._token = body["access_token"]
        self._token_expires_at = float(body.get("expires_at") or time.time() + 300)
        return self._token

    def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"O-Bearer {self._access_token()}",
        }
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PaymentGatewayError(f"PhonePe request failed: {exc}", _status_of(exc))
        return response.json()

    def create_checkout(self, merchant_order_id: str, amount_paise: int, redirect_url: str) -> dict:
        return self._request(
            "POST",
            self.paths["pay"],
            json={
                "merchantOrderId": merchant_order_id,
                "amount": amount_paise,
                "paymentFlow": {
                    "type": "PG_CHECKOUT",
                    "merchantUrls": {"redirectUrl": redirect_url},
                },
            },
        )

    def get_order_status(self, merchant_order_id: str) -> dict:
        return self._request(
            "GET",
            self.paths["status"].format(merchant_order_id=merchant_order_id),
            params={"details": "false"},
        )


def _status_of(exc: httpx.HTTPError) -> Optional[int]:
    response = getattr(exc, "response", None)
    return response.status_code if response is not None else None


@lru_cache
def get_phonepe_gateway() -> PhonePeGateway:
    return PhonePeGateway(
        client_id=settings.PHONEPE_CLIENT_ID,
        client_secret=settings.PHONEPE_CLIENT_SECRET,
        client_version=settings.PHONEPE_CLIENT_VERSION,
        base_url=settings.phonepe_base_url,
        environment=settings.PHONEPE_ENV,
        timeout=settings.PHONEPE_TIMEOUT_SECONDS,
    )


def webhook_authorization(username: str, password: str) -> str:
    return hashlib.sha256(f"{username}:{password}".encode()).hexdigest()


def is_valid_callback(authorization: Optional[str]) -> bool:
    if not authorization or not settings.PHONEPE_WEBHOOK_USERNAME:
        return False
    expected = webhook_authorization(settings.PHONEPE_WEBHOOK_USERNAME, settings.PHONEPE_WEBHOOK_PASSWORD)
    # Some dashboards send the digest with a "SHA256 " prefix
    candidate = authorization.strip()
    if candidate.upper().startswith("SHA256 "):
        candidate = candidate[7:].strip()
    return hmac.compare_digest(candidate.lower(), expected)


def initiate_checkout(
    db: Session,
    gateway: PhonePeGateway,
    user: User,
    payload: PhonePeCheckoutRequest,
) -> dict:
    """Create the Pending order, then open a PhonePe checkout session for it."""
    order = create_pending_online_order(db, user, payload, gateway=PaymentGateway.PHONEPE)
    amount_paise = int(round(order.total * 100))
    redirect_url = payload.redirect_url or settings.phonepe_redirect_url

    try:
        checkout = gateway.create_checkout(order.order_number, amount_paise, redirect_url)
    except PaymentGatewayError as exc:
        logger.error(
            "phonepe_checkout_failed",
            order_id=order.id,
            order_number=order.order_number,
            error=exc.message,
        )
        transition_order_status(
            db,
            order,
            OrderStatus.PAYMENT_FAILED,
            updated_by=UpdatedBy.SYSTEM,
            note="Payment session could not be started",
            metadata={"gateway": "phonepe", "error": exc.message},
        )
        raise APIError(status_code=502, message="Could not start PhonePe checkout")

    phonepe_order_id = checkout.get("orderId")
    order.transaction_id = phonepe_order_id
    order.gateway_order_id = order.order_number
    db.add(Payment(
        user_id=user.id,
        order=order,
        gateway=PaymentGateway.PHONEPE,
        payment_status=PaymentStatus.PENDING,
        amount=order.total,
        currency=settings.CURRENCY,
        receipt=order.order_number,
        gateway_order_id=phonepe_order_id or order.order_number,
        gateway_response=json.dumps(checkout, default=str),
    ))
    db.commit()

    logger.info(
        "phonepe_checkout_started",
        order_id=order.id,
        order_number=order.order_number,
        phonepe_order_id=phonepe_order_id,
        amount=amount_paise,
    )
    return {
        "orderId": order.id,
        "orderNumber": order.order_number,
        "redirectUrl": checkout.get("redirectUrl"),
        "phonepeOrderId": phonepe_order_id,
        "state": checkout.get("state", STATE_PENDING),
    }


def apply_gateway_state(
    db: Session,
    order: Order,
    state: str,
    source: str,
    transaction_id: Optional[str] = None,
) -> Order:
    """Reconcile a gateway payment state onto the order.

    Only a Pending order moves; repeated or late callbacks leave later
    states untouched.
    """
    state = (state or STATE_PENDING).upper()
    if order.status != OrderStatus.PENDING:
        return order
    if state != STATE_COMPLETED and state not in FAILED_STATES:
        return order

    payment = db.query(Payment).filter(Payment.order_id == order.id).first()
    now = datetime.utcnow()

    if state == STATE_COMPLETED:
        new_status = OrderStatus.PROCESSING
        note = "Payment completed"
        if payment:
            payment.payment_status = PaymentStatus.SUCCESS
            payment.paid_at = now
            if transaction_id:
                payment.gateway_payment_id = transaction_id
        order.expires_at = None
    else:
        new_status = OrderStatus.PAYMENT_FAILED
        note = "Payment failed"
        if payment:
            payment.payment_status = PaymentStatus.FAILED
            payment.failed_at = now
            payment.error_code = state

    return transition_order_status(
        db,
        order,
        new_status,
        updated_by=UpdatedBy.SYSTEM,
        note=note,
        metadata={"gateway": "phonepe", "state": state, "source": source, "transactionId": transaction_id},
    )


def refresh_order_status(db: Session, gateway: PhonePeGateway, user: User, order_id: int) -> dict:
    order = get_user_order(db, user.id, order_id)
    if order.gateway != PaymentGateway.PHONEPE:
        raise APIError(status_code=400, message="Order was not paid through PhonePe")

    try:
        gateway_status = gateway.get_order_status(order.order_number)
    except PaymentGatewayError as exc:
        logger.error("phonepe_status_check_failed", order_id=order.id, error=exc.message)
        if exc.status_code == 404:
            raise OrderNotFound()
        raise APIError(status_code=502, message="Could not fetch payment status")

    state = (gateway_status.get("state") or STATE_PENDING).upper()
    transaction_id = None
    details = gateway_status.get("paymentDetails") or []
    if details:
        transaction_id = details[-1].get("transactionId")

    order = apply_gateway_state(db, order, state, source="status_check", transaction_id=transaction_id)
    logger.info("phonepe_status_checked", order_id=order.id, state=state, order_status=order.status.value)
    return {
        "orderId": order.id,
        "state": state,
        "orderStatus": order.status.value,
    }


def process_webhook(db: Session, event: dict) -> dict:
    """Apply a verified PhonePe server-to-server callback."""
    callback_type = event.get("type") or event.get("event")
    payload = event.get("payload")
    if not isinstance(payload, dict):
        payload = {}
    merchant_order_id = payload.get("merchantOrderId") or payload.get("originalMerchantOrderId")
    phonepe_order_id = payload.get("orderId")

    if callback_type not in (CALLBACK_COMPLETED, CALLBACK_FAILED):
        logger.info("phonepe_webhook_ignored", callback_type=callback_type)
        return {"handled": False, "reason": "unhandled_callback_type"}

    query = db.query(Order).filter(Order.gateway == PaymentGateway.PHONEPE)
    order = None
    if merchant_order_id:
        order = query.filter(Order.order_number == merchant_order_id).first()
    if order is None and phonepe_order_id:
        order = query.filter(Order.transaction_id == phonepe_order_id).first()
    if order is None:
        logger.warning(
            "phonepe_webhook_order_not_found",
            merchant_order_id=merchant_order_id,
            phonepe_order_id=phonepe_order_id,
        )
        return {"handled": False, "reason": "order_not_found"}

    details = payload.get("paymentDetails") or []
    transaction_id = details[-1].get("transactionId") if details else None
    state = STATE_COMPLETED if callback_type == CALLBACK_COMPLETED else STATE_FAILED

    order = apply_gateway_state(db, order, state, source="webhook", transaction_id=transaction_id)
    logger.info(
        "phonepe_webhook_processed",
        callback_type=callback_type,
        order_id=order.id,
        order_status=order.status.value,
    )
    return {"handled": True, "orderId": order.id, "orderStatus": order.status.value}
