# coffeeshop/services/notification_service.py
from coffeeshop.celery_worker import celery_app
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Powiadomienia o zmianie statusu zamowienia.
    Celery, zeby nie blokowac odpowiedzi dla bramki platnosci.
    """

    @staticmethod
    def send_order_status_notification(user_id: int, order_id: int, status: str):
        send_order_status_notification_task.delay(user_id, order_id, status)


@celery_app.task(name="coffeeshop.services.notification_service.send_order_status_notification_task")
def send_order_status_notification_task(user_id: int, order_id: int, status: str):
    """
    W prawdziwym systemie email/push do klienta.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} is now {status}")

    return {"user_id": user_id, "order_id": order_id, "status": status, "sent": True}
