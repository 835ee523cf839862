# coffeeshop/tasks/reconcile.py
from datetime import datetime, timezone, timedelta

from sqlalchemy.orm import Session

from coffeeshop.celery_worker import celery_app
from coffeeshop.data.database import SessionLocal
from coffeeshop.domain.errors import ServiceError
from coffeeshop.domain.schemas import PaymentNotificationIn
from coffeeshop.domain.status import PENDING
from coffeeshop.repos.payment_repo import PaymentRepo
from coffeeshop.services.gateway_client import MidtransGateway
from coffeeshop.services.lock_service import LockService
from coffeeshop.services.notification_service import NotificationService
from coffeeshop.services.payment_service import PaymentService
from coffeeshop.utils.settings import RECONCILE_AFTER_SECONDS
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)


def reconcile_pending_payments(
    db: Session,
    gateway: MidtransGateway,
    lock_service: LockService,
    notifier: NotificationService | None = None,
    older_than_seconds: int = RECONCILE_AFTER_SECONDS,
) -> dict:
    """
    Platnosci wiszace w pending dluzej niz older_than_seconds:
    pytamy Midtrans o status i przepuszczamy go przez te sama sciezke co notyfikacje.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
    payments = PaymentRepo(db).get_stale_pending(cutoff)
    transaction_ids = [p.transaction_id for p in payments]
    db.rollback()

    logger.info(f"Found {len(transaction_ids)} pending payments to reconcile")

    service = PaymentService(db, lock_service=lock_service, notifier=notifier)
    summary = {"checked": 0, "updated": 0, "skipped": 0, "errors": 0}

    for transaction_id in transaction_ids:
        summary["checked"] += 1
        try:
            status = gateway.get_transaction_status(transaction_id)
        except ServiceError as e:
            logger.warning(f"Status check failed for {transaction_id}: {e}")
            summary["errors"] += 1
            continue

        if str(status.get("status_code")) == "404":
            # klient nie otworzyl jeszcze checkoutu
            summary["skipped"] += 1
            continue

        try:
            notification = PaymentNotificationIn.model_validate({**status, "order_id": transaction_id})
            result = service.apply_status(notification, source="reconcile")
        except ServiceError as e:
            logger.warning(f"Reconcile of {transaction_id} not applied: {e}")
            summary["errors"] += 1
            continue
        except Exception:
            # redis/baza padly dla tej transakcji, reszta partii idzie dalej
            logger.exception(f"Reconcile of {transaction_id} failed")
            db.rollback()
            summary["errors"] += 1
            continue

        if result["status"] != PENDING:
            summary["updated"] += 1
        else:
            summary["skipped"] += 1

    logger.info(f"Reconcile finished: {summary}")
    return summary


@celery_app.task(name="coffeeshop.tasks.reconcile.reconcile_pending_payments_task")
def reconcile_pending_payments_task():
    logger.info("Reconcile pending payments task started")

    db = SessionLocal()
    try:
        return reconcile_pending_payments(
            db,
            gateway=MidtransGateway(),
            lock_service=LockService(),
            notifier=NotificationService(),
        )
    finally:
        db.close()
