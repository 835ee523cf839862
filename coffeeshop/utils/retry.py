# coffeeshop/utils/retry.py
import logging

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    retry_if_exception_type,
    before_sleep_log,
)
import requests
import redis

from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)


def is_transient_http_error(exc: BaseException) -> bool:
    """Bledy sieci, 5xx i 429. Pozostale 4xx nie zmienia sie przy ponowieniu."""
    if not isinstance(exc, requests.RequestException):
        return False
    response = getattr(exc, "response", None)
    if response is None:
        return True
    return response.status_code >= 500 or response.status_code == 429


# tylko dla idempotentnych GET (status transakcji, profil usera)
def http_retry(attempts: int = 3):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception(is_transient_http_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def redis_retry(attempts: int = 3):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
