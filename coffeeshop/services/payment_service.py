# coffeeshop/services/payment_service.py
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.orm import Session

from coffeeshop.domain.errors import BadRequest, Conflict, NotFound
from coffeeshop.domain.schemas import PaymentNotificationIn
from coffeeshop.domain.status import SUCCESS, map_transaction_status, is_transition_allowed
from coffeeshop.repos.cart_repo import CartRepo
from coffeeshop.repos.payment_repo import PaymentRepo
from coffeeshop.services.lock_service import LockService
from coffeeshop.services.notification_service import NotificationService
from coffeeshop.utils.signature import verify_signature
from coffeeshop.utils.settings import MIDTRANS_SERVER_KEY, CAPTURE_CHALLENGE_STATUS
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)

# Midtrans podaje transaction_time bez strefy, w czasie WIB
MIDTRANS_TZ = timezone(timedelta(hours=7))


def parse_transaction_time(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)

    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparsable transaction_time {value!r}, using current time")
        return datetime.now(timezone.utc)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=MIDTRANS_TZ)
    return parsed


class PaymentService:
    """
    Obsluga notyfikacji z bramki platnosci:
    - weryfikacja podpisu (zawsze, w kazdym srodowisku)
    - lock per transakcja + SELECT FOR UPDATE na platnosci
    - mapowanie statusu, idempotencja, brak wyjscia ze stanow koncowych
    - czyszczenie koszyka przy przejsciu na success
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        notifier: NotificationService | None = None,
        server_key: str | None = None,
        capture_challenge_status: str | None = None,
    ):
        self.repo = PaymentRepo(db)
        self.cart_repo = CartRepo(db)
        self.lock_service = lock_service
        self.notifier = notifier
        self.server_key = MIDTRANS_SERVER_KEY if server_key is None else server_key
        self.capture_challenge_status = capture_challenge_status or CAPTURE_CHALLENGE_STATUS

    def handle_notification(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            notification = PaymentNotificationIn.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Malformed notification payload: {e.error_count()} invalid fields")
            raise BadRequest("Invalid notification payload") from e

        if not notification.order_id:
            raise BadRequest("Missing order_id")

        if not verify_signature(
            notification.order_id,
            notification.status_code,
            notification.gross_amount,
            notification.signature_key,
            self.server_key,
        ):
            logger.warning(f"Invalid signature for notification {notification.order_id}")
            raise BadRequest("Invalid signature")

        return self.apply_status(notification, source="notification")

    def apply_status(self, notification: PaymentNotificationIn, source: str = "notification") -> Dict[str, Any]:
        """Zastosowanie zweryfikowanego statusu (notyfikacja albo reconcile)."""
        transaction_id = notification.order_id
        token = self.lock_service.new_token()

        if not self.lock_service.acquire_payment_lock(transaction_id, token):
            logger.warning(f"Transaction {transaction_id} is locked by another worker ({source})")
            raise Conflict("Notification for this transaction is already being processed")

        try:
            result, change = self._apply_locked(notification, source)
        finally:
            self.lock_service.release_payment_lock(transaction_id, token)

        if change and self.notifier:
            user_id, order_id, status = change
            try:
                self.notifier.send_order_status_notification(user_id, order_id, status)
            except Exception as e:
                # zmiana juz zapisana, powiadomienie nie moze jej cofnac
                logger.warning(f"Failed to enqueue status notification for order {order_id}: {e}")

        return result

    @staticmethod
    def _result(transaction_id: str, status: str) -> Dict[str, Any]:
        return {
            "success": True,
            "order_id": transaction_id,
            "status": status,
            "processed_at": datetime.now(timezone.utc),
        }

    @staticmethod
    def _is_duplicate(payment, order, notification: PaymentNotificationIn, new_status: str) -> bool:
        return (
            payment.transaction_status == notification.transaction_status
            and payment.status_code == (notification.status_code or "200")
            and (payment.fraud_status or None) == (notification.fraud_status or None)
            and order.status == new_status
        )

    def _apply_locked(
        self, notification: PaymentNotificationIn, source: str
    ) -> Tuple[Dict[str, Any], Optional[Tuple[int, int, str]]]:
        transaction_id = notification.order_id

        payment = self.repo.get_by_transaction_id(transaction_id, for_update=True)
        if not payment:
            self.repo.rollback()
            logger.error(f"Payment not found: {transaction_id}")
            raise NotFound("Payment not found")

        order = payment.order
        previous = order.status
        new_status = map_transaction_status(
            notification.transaction_status,
            notification.fraud_status,
            self.capture_challenge_status,
        )

        if self._is_duplicate(payment, order, notification, new_status):
            self.repo.rollback()
            logger.info(f"Duplicate {source} for {transaction_id} ({notification.transaction_status}), skipping")
            return self._result(transaction_id, previous), None

        if not is_transition_allowed(previous, new_status):
            self.repo.rollback()
            logger.warning(
                f"Ignoring {source} for {transaction_id}: order {order.id} is {previous}, "
                f"gateway reports {notification.transaction_status} -> {new_status}"
            )
            return self._result(transaction_id, previous), None

        try:
            payment.payment_type = notification.payment_type or "unknown"
            payment.status_code = notification.status_code or "200"
            payment.transaction_status = notification.transaction_status
            payment.fraud_status = notification.fraud_status or None
            payment.transaction_time = parse_transaction_time(notification.transaction_time)

            order.status = new_status

            # tylko przy przejsciu na success, caly koszyk
            if new_status == SUCCESS and previous != SUCCESS:
                cart = self.cart_repo.get_cart_by_user(order.user_id)
                if cart:
                    deleted = self.cart_repo.clear_cart(cart.id)
                    logger.info(f"Cleared {deleted} items from cart {cart.id} after payment {transaction_id}")

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.id} {previous} -> {new_status} ({source} {transaction_id})")

        change = (order.user_id, order.id, new_status) if previous != new_status else None
        return self._result(transaction_id, new_status), change
