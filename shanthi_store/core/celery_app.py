from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from shanthi_store.core.config import settings
from shanthi_store.core.logging_config import configure_logging

ORDER_TASKS = "shanthi_store.tasks.order_tasks"

celery_app = Celery(
    "shanthi_store",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[ORDER_TASKS],
)

# Only short database sweeps run here, so keep limits tight and results short-lived
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Kolkata",
    enable_utc=True,
    task_time_limit=120,
    task_soft_time_limit=90,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=900,
    task_routes={f"{ORDER_TASKS}.*": {"queue": "orders"}},
)

celery_app.conf.beat_schedule = {
    "cancel-expired-orders-every-5-min": {
        "task": f"{ORDER_TASKS}.cleanup_expired_orders",
        "schedule": crontab(minute="*/5"),
    },
}


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging()
