import structlog
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from shanthi_store.api.deps import get_current_active_user
from shanthi_store.core.rate_limiter import limiter
from shanthi_store.db.session import get_db
from shanthi_store.models.user import User
from shanthi_store.schemas.payment import PhonePeCheckoutRequest
from shanthi_store.services import phonepe_service
from shanthi_store.services.phonepe_service import PhonePeGateway, get_phonepe_gateway
from shanthi_store.utils.response import error, success

router = APIRouter()
logger = structlog.get_logger()


@router.post(
    "/initiate-checkout",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Start PhonePe checkout",
    description="""
Creates a `Pending` online order and a PhonePe standard-checkout session
for it. The client redirects to `redirectUrl` and then polls
`/phonepe/order-status/{orderId}`.
""",
)
@limiter.limit("10/minute")
def initiate_checkout(
    request: Request,
    payload: PhonePeCheckoutRequest,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    gateway: PhonePeGateway = Depends(get_phonepe_gateway),
):
    result = phonepe_service.initiate_checkout(db, gateway, current_user, payload)
    return success(data=result, message="Checkout initiated")


@router.get("/order-status/{order_id}", response_model=dict)
@limiter.limit("30/minute")
def get_order_status(
    request: Request,
    order_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    gateway: PhonePeGateway = Depends(get_phonepe_gateway),
):
    """Ask PhonePe for the payment state and reconcile the order."""
    result = phonepe_service.refresh_order_status(db, gateway, current_user, order_id)
    return success(data=result, message="Payment status retrieved")


@router.post("/webhook")
@limiter.limit("120/minute")
async def phonepe_webhook(request: Request, db: Session = Depends(get_db)):
    """Handle PhonePe server-to-server callbacks"""
    if not phonepe_service.is_valid_callback(request.headers.get("Authorization")):
        logger.warning(
            "webhook_authorization_invalid",
            client_ip=request.client.host if request.client else None,
        )
        return error(message="Invalid webhook authorization", status_code=401)

    try:
        event = await request.json()
    except ValueError:
        event = None
    if not isinstance(event, dict):
        logger.warning("webhook_body_invalid")
        return error(message="Webhook body must be a JSON object", status_code=400)

    result = phonepe_service.process_webhook(db, event)
    return success(data=result, message="Webhook processed")
