import structlog
from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError

from shanthi_store.db.session import SessionLocal
from shanthi_store.services.order_service import auto_cancel_pending_orders

logger = structlog.get_logger()


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def cleanup_expired_orders(self) -> int:
    """Beat job: cancel Razorpay/PhonePe orders whose payment window has lapsed."""
    db = SessionLocal()
    try:
        cancelled = auto_cancel_pending_orders(db)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("expired_order_sweep_failed", attempt=self.request.retries + 1, error=str(exc))
        raise self.retry(exc=exc)
    finally:
        db.close()

    if cancelled:
        logger.info("expired_orders_cancelled", cancelled=cancelled)
    return cancelled
