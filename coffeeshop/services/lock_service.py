import uuid

import redis

from coffeeshop.utils.retry import redis_retry
from coffeeshop.utils.settings import REDIS_URL, PAYMENT_LOCK_TTL_SECONDS
from coffeeshop.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nie mozna wcisnac sie miedzy GET a DEL
#wiec zwalniamy tylko wlasny lock, nawet jesli ttl minal i ktos inny go przejal


class LockService:
    """
    -lock per transakcja (jedna notyfikacja naraz dla danego order_id)
    -zwalnianie locka tylko przez wlasciciela
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None, ttl: int | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl or PAYMENT_LOCK_TTL_SECONDS

    @staticmethod
    def _key(transaction_id: str) -> str:
        return f"payment:{transaction_id}:lock"

    @staticmethod
    def new_token() -> str:
        return uuid.uuid4().hex

    @redis_retry()
    def acquire_payment_lock(self, transaction_id: str, token: str) -> bool:
        key = self._key(transaction_id)
        logger.info(f"Acquire lock {key}")
        #SET payment:ORDER-1-...:lock <token> NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,
                ex=self.ttl,  # wygasa sam jesli proces padnie
            )
        )

    @redis_retry()
    def release_payment_lock(self, transaction_id: str, token: str) -> bool:
        key = self._key(transaction_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
