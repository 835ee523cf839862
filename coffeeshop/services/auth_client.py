# coffeeshop/services/auth_client.py
import requests

from coffeeshop.domain.errors import NotFound
from coffeeshop.utils.retry import http_retry
from coffeeshop.utils.settings import AUTH_PROVIDER_URL, AUTH_PROVIDER_SECRET_KEY, HTTP_TIMEOUT_SECONDS
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)


class AuthProviderClient:
    """Profil uzytkownika z backend API auth providera (Clerk)."""

    def __init__(
        self,
        base_url: str | None = None,
        secret_key: str | None = None,
        timeout: int | None = None,
    ):
        self.base_url = (base_url or AUTH_PROVIDER_URL).rstrip("/")
        self.secret_key = AUTH_PROVIDER_SECRET_KEY if secret_key is None else secret_key
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS

    @http_retry()
    def _get(self, url: str) -> requests.Response:
        resp = requests.get(
            url,
            headers={"Authorization": f"Bearer {self.secret_key}"},
            timeout=self.timeout,
        )
        if resp.status_code != 404:
            resp.raise_for_status()
        return resp

    def fetch_profile(self, external_id: str) -> dict:
        url = f"{self.base_url}/v1/users/{external_id}"
        logger.info(f"AuthProviderClient GET {url}")

        resp = self._get(url)
        if resp.status_code == 404:
            raise NotFound("User not found")

        data = resp.json()
        emails = data.get("email_addresses") or []
        return {
            "external_id": external_id,
            "email": emails[0].get("email_address", "") if emails else "",
            "first_name": data.get("first_name") or "",
            "last_name": data.get("last_name") or "",
            "image_url": data.get("image_url"),
        }
