import hashlib
import hmac
import json
from datetime import datetime
from functools import lru_cache

import razorpay
import structlog
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shanthi_store.core.config import settings
from shanthi_store.models.order import Order, OrderStatus, PaymentGateway, PaymentMethod
from shanthi_store.models.order_status_history import UpdatedBy
from shanthi_store.models.payment import Payment, PaymentStatus
from shanthi_store.models.user import User
from shanthi_store.schemas.payment import GatewayOrderCreate, VerifyPaymentRequest
from shanthi_store.services.order_service import TOTAL_TOLERANCE, build_order
from shanthi_store.services.order_tracking_service import apply_status

logger = structlog.get_logger()


@lru_cache
def get_razorpay_client() -> razorpay.Client:
    """Process-wide Razorpay client; overridden in tests."""
    return razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))


def payment_error(code: str, message: str, status_code: int) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "message": message,
            "errors": [{"code": code}],
        },
    )


def create_gateway_order(
    db: Session,
    client: razorpay.Client,
    user: User,
    payload: GatewayOrderCreate,
) -> dict:
    """Create a Razorpay order and remember it as a pending payment.

    No domain order exists yet; it is created by verify_and_place_order once
    the gateway signature has been checked.
    """
    amount_paise = int(round(payload.amount * 100))
    currency = payload.currency or settings.CURRENCY

    try:
        gateway_order = client.order.create({
            "amount": amount_paise,
            "currency": currency,
            "receipt": payload.receipt,
            "notes": {
                "user_id": user.id,
                "customer_email": user.email,
            },
        })
    except Exception as exc:
        logger.error("gateway_order_create_failed", user_id=user.id, error=str(exc))
        raise payment_error("GATEWAY_ERROR", "Could not create payment order", 502)

    if not gateway_order or not gateway_order.get("id"):
        raise payment_error("GATEWAY_ERROR", "Could not create payment order", 502)

    db.add(Payment(
        user_id=user.id,
        gateway=PaymentGateway.RAZORPAY,
        payment_status=PaymentStatus.PENDING,
        amount=amount_paise / 100,
        currency=currency,
        receipt=payload.receipt,
        gateway_order_id=gateway_order["id"],
        gateway_response=json.dumps(gateway_order, default=str),
    ))
    db.commit()

    logger.info(
        "gateway_order_created",
        user_id=user.id,
        gateway_order_id=gateway_order["id"],
        amount=amount_paise,
    )
    return {
        "id": gateway_order["id"],
        "amount": gateway_order.get("amount", amount_paise),
        "currency": gateway_order.get("currency", currency),
        "receipt": gateway_order.get("receipt", payload.receipt),
        "keyId": settings.RAZORPAY_KEY_ID,
    }


def verify_payment_signature(
    razorpay_order_id: str,
    razorpay_payment_id: str,
    razorpay_signature: str,
) -> bool:
    """Verify Razorpay payment signature."""
    message = f"{razorpay_order_id}|{razorpay_payment_id}"

    generated_signature = hmac.new(
        settings.RAZORPAY_KEY_SECRET.encode(),
        message.encode(),
        hashlib.sha256,
    ).hexdigest()

    return hmac.compare_digest(generated_signature, razorpay_signature)


def verify_and_place_order(db: Session, user: User, payload: VerifyPaymentRequest) -> Order:
    """Check the gateway signature and only then create the paid order.

    The order is staged as Pending, moved to Processing and linked to its
    payment in one commit.
    """
    if not payload.order_id or not payload.payment_id or not payload.signature:
        raise payment_error("PAYMENT_CANCELLED", "Payment was cancelled by user", 400)

    payment = (
        db.query(Payment)
        .filter(
            Payment.gateway_order_id == payload.order_id,
            Payment.gateway == PaymentGateway.RAZORPAY,
        )
        .with_for_update()
        .first()
    )
    if not payment or payment.user_id != user.id:
        raise payment_error("PAYMENT_NOT_FOUND", "Payment record not found", 404)

    if not verify_payment_signature(payload.order_id, payload.payment_id, payload.signature):
        logger.warning(
            "payment_signature_mismatch",
            order_id=payload.order_id,
            payment_id=payload.payment_id,
            user_id=user.id,
        )
        if payment.payment_status == PaymentStatus.PENDING:
            payment.payment_status = PaymentStatus.FAILED
            payment.failed_at = datetime.utcnow()
            payment.error_code = "SIGNATURE_MISMATCH"
            db.commit()
        raise payment_error("PAYMENT_VERIFICATION_FAILED", "Invalid payment signature", 400)

    if payment.payment_status == PaymentStatus.SUCCESS:
        raise payment_error("PAYMENT_ALREADY_PROCESSED", "Payment already processed", 409)
    if payment.payment_status == PaymentStatus.FAILED:
        raise payment_error("PAYMENT_FAILED", "Payment failed. Please retry.", 400)

    if abs(payment.amount - payload.order_data.total) > TOTAL_TOLERANCE:
        logger.warning(
            "payment_amount_mismatch",
            gateway_order_id=payload.order_id,
            paid=payment.amount,
            order_total=payload.order_data.total,
        )
        raise payment_error("AMOUNT_MISMATCH", "Paid amount does not match order total", 400)

    try:
        order = build_order(
            db,
            user,
            payload.order_data,
            payment_method=PaymentMethod.ONLINE,
            gateway=PaymentGateway.RAZORPAY,
            note="Awaiting online payment",
        )
        order.transaction_id = payload.payment_id
        order.gateway_order_id = payload.order_id
        apply_status(
            db,
            order,
            OrderStatus.PROCESSING,
            updated_by=UpdatedBy.SYSTEM,
            note="Payment verified",
            metadata={"gateway": "razorpay", "paymentId": payload.payment_id},
        )

        payment.order = order
        payment.gateway_payment_id = payload.payment_id
        payment.signature = payload.signature
        payment.payment_status = PaymentStatus.SUCCESS
        payment.paid_at = datetime.utcnow()
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        raise payment_error("PAYMENT_ALREADY_PROCESSED", "Payment already processed", 409)
    except Exception:
        db.rollback()
        logger.exception("payment_verification_atomic_failure", payment_id=payment.id)
        raise payment_error("PAYMENT_FAILED", "Payment processing failed", 500)

    db.refresh(order)
    logger.info(
        "payment_verified",
        order_id=order.id,
        order_number=order.order_number,
        payment_id=payload.payment_id,
        amount=payment.amount,
    )
    return order
