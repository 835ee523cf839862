# coffeeshop/services/gateway_client.py
import requests

from coffeeshop.domain.errors import GatewayError
from coffeeshop.utils.retry import http_retry
from coffeeshop.utils.settings import (
    MIDTRANS_SERVER_KEY,
    MIDTRANS_IS_PRODUCTION,
    HTTP_TIMEOUT_SECONDS,
)
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)

SNAP_URLS = {
    False: "https://app.sandbox.midtrans.com/snap/v1",
    True: "https://app.midtrans.com/snap/v1",
}
CORE_URLS = {
    False: "https://api.sandbox.midtrans.com/v2",
    True: "https://api.midtrans.com/v2",
}


class MidtransGateway:
    """
    Klient Midtrans:
    - Snap create transaction (token + redirect_url), bez retry
    - Core API status transakcji (GET, z retry)
    """

    def __init__(
        self,
        server_key: str | None = None,
        is_production: bool | None = None,
        timeout: int | None = None,
        session: requests.Session | None = None,
    ):
        self.server_key = MIDTRANS_SERVER_KEY if server_key is None else server_key
        self.is_production = MIDTRANS_IS_PRODUCTION if is_production is None else is_production
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS
        self.snap_url = SNAP_URLS[self.is_production]
        self.core_url = CORE_URLS[self.is_production]
        self.session = session or requests.Session()

    def _headers(self, notification_url: str | None = None) -> dict:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if notification_url:
            headers["X-Override-Notification"] = notification_url
        return headers

    def create_transaction(self, parameters: dict, notification_url: str | None = None) -> dict:
        url = f"{self.snap_url}/transactions"
        order_id = parameters.get("transaction_details", {}).get("order_id")
        logger.info(f"MidtransGateway POST {url} order_id={order_id}")

        # pojedyncza proba, Midtrans odrzuca powtorzone order_id
        try:
            resp = self.session.post(
                url,
                json=parameters,
                auth=(self.server_key, ""),
                headers=self._headers(notification_url),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Midtrans unreachable for {order_id}: {e}")
            raise GatewayError("Payment gateway unavailable") from e

        if resp.status_code >= 400:
            logger.error(f"Midtrans rejected {order_id}: HTTP {resp.status_code} {resp.text}")
            raise GatewayError(f"Payment gateway returned HTTP {resp.status_code}")

        data = resp.json()
        if not data.get("token"):
            raise GatewayError("Payment gateway returned no token")

        return {"token": data["token"], "redirect_url": data.get("redirect_url")}

    @http_retry()
    def _fetch_status(self, transaction_id: str) -> dict:
        url = f"{self.core_url}/{transaction_id}/status"
        logger.info(f"MidtransGateway GET {url}")

        resp = self.session.get(
            url,
            auth=(self.server_key, ""),
            headers=self._headers(),
            timeout=self.timeout,
        )
        if resp.status_code == 404:
            # transakcja nigdy nie zostala otwarta przez klienta
            return {"order_id": transaction_id, "status_code": "404"}
        resp.raise_for_status()
        return resp.json()

    def get_transaction_status(self, transaction_id: str) -> dict:
        try:
            return self._fetch_status(transaction_id)
        except requests.RequestException as e:
            logger.error(f"Midtrans status check failed for {transaction_id}: {e}")
            raise GatewayError("Payment gateway unavailable") from e
