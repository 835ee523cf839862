# coffeeshop/celery_worker.py
from celery import Celery

from coffeeshop.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    RECONCILE_INTERVAL_SECONDS,
)

celery_app = Celery(
    "coffeeshop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski trzeba zaimportowac explicite zeby worker je zarejestrowal
celery_app.conf.imports = (
    "coffeeshop.tasks.reconcile",
    "coffeeshop.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "reconcile-pending-payments": {
        "task": "coffeeshop.tasks.reconcile.reconcile_pending_payments_task",
        "schedule": float(RECONCILE_INTERVAL_SECONDS),
    },
}

celery_app.conf.timezone = "UTC"
