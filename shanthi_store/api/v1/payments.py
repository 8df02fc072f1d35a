import razorpay
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from shanthi_store.api.deps import get_current_active_user
from shanthi_store.core.rate_limiter import limiter
from shanthi_store.db.session import get_db
from shanthi_store.models.user import User
from shanthi_store.schemas.payment import GatewayOrderCreate, VerifyPaymentRequest
from shanthi_store.services import order_service
from shanthi_store.services.payment_service import (
    create_gateway_order,
    get_razorpay_client,
    verify_and_place_order,
)
from shanthi_store.utils.response import success

router = APIRouter()


@router.post(
    "/create-order",
    summary="Create Razorpay payment order",
    description="""
Creates a gateway order for the amount about to be paid.

Process:
1. Creates Razorpay order in paise
2. Persists a pending payment record
3. Returns the gateway payload required by the frontend checkout

No domain order is created at this stage.
""",
    responses={
        200: {"description": "Payment order created successfully"},
        401: {"description": "Authentication required"},
        502: {"description": "Gateway unavailable"},
    },
)
@limiter.limit("20/minute")
def create_payment_order(
    request: Request,
    payload: GatewayOrderCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    client: razorpay.Client = Depends(get_razorpay_client),
):
    """Create Razorpay order for payment"""
    gateway_order = create_gateway_order(db, client, current_user, payload)
    return success(data=gateway_order, message="Payment order created")


@router.post(
    "/verify",
    summary="Verify Razorpay payment and place order",
    responses={
        200: {"description": "Signature valid; order created in Processing"},
        400: {"description": "Signature or amount mismatch"},
        409: {"description": "Payment already processed"},
    },
)
@limiter.limit("30/minute")
def verify_payment(
    request: Request,
    payload: VerifyPaymentRequest,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Verify Razorpay payment signature"""
    order = verify_and_place_order(db, current_user, payload)
    return success(
        data={
            "msg": "Payment successful and order placed!",
            "order": order_service.serialize_order(order, include_history=True),
        },
        message="Payment successful",
    )
