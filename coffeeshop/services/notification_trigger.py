# coffeeshop/services/notification_trigger.py
from datetime import datetime, timezone
from typing import Any, Dict

import requests

from coffeeshop.domain.errors import BadRequest, InternalError
from coffeeshop.utils.signature import compute_signature
from coffeeshop.utils.settings import MIDTRANS_SERVER_KEY, HTTP_TIMEOUT_SECONDS
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)

NOTIFICATION_PATH = "/payment/notification"
TEST_USER_AGENT = "Midtrans-TestSuite/1.0"


class NotificationTrigger:
    """
    Symulowana notyfikacja "settlement" dla lokalnego developmentu,
    kiedy Midtrans nie moze dojsc do naszego callback URL.
    Podpis liczony kluczem serwera, bo endpoint notyfikacji zawsze go sprawdza.
    Tylko dev, router nie jest montowany na produkcji.
    """

    def __init__(self, session=None, server_key: str | None = None, timeout: int | None = None):
        self.session = session or requests.Session()
        self.server_key = MIDTRANS_SERVER_KEY if server_key is None else server_key
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS

    def build_payload(self, transaction_id: str) -> Dict[str, Any]:
        status_code = "200"
        gross_amount = "100000.00"
        return {
            "order_id": transaction_id,
            "status_code": status_code,
            "gross_amount": gross_amount,
            "transaction_status": "settlement",
            "fraud_status": "accept",
            "payment_type": "credit_card",
            "transaction_time": datetime.now(timezone.utc).isoformat(),
            "signature_key": compute_signature(transaction_id, status_code, gross_amount, self.server_key),
        }

    def send(self, transaction_id: str | None, base_url: str) -> Dict[str, Any]:
        if not transaction_id:
            raise BadRequest("Transaction ID required")

        payload = self.build_payload(transaction_id)
        url = f"{base_url.rstrip('/')}{NOTIFICATION_PATH}"
        logger.info(f"Sending simulated notification for {transaction_id} to {url}")

        # jedna proba, bez retry
        try:
            resp = self.session.post(
                url,
                json=payload,
                headers={"User-Agent": TEST_USER_AGENT},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Test notification for {transaction_id} failed: {e}")
            raise InternalError("Test notification failed") from e

        try:
            result = resp.json()
        except ValueError as e:
            raise InternalError("Invalid response from notification endpoint") from e

        if resp.status_code >= 400:
            logger.error(f"Notification endpoint returned {resp.status_code} for {transaction_id}: {result}")
            raise InternalError(
                f"Notification endpoint returned {resp.status_code}: {result.get('error', 'Unknown error')}"
            )

        return {
            "success": True,
            "notification_sent": payload,
            "notification_response": result,
        }
