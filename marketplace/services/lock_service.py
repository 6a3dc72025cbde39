# marketplace/services/lock_service.py
import redis
from marketplace.utils.retry import redis_retry
from marketplace.utils.settings import REDIS_URL, NOTIFICATION_DEDUP_TTL_SECONDS
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in lua, atomic on the redis side
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#a worker only ever releases its own claim


class DeliveryLockService:
    """
    -claims a notification dedup key before delivery (SET NX EX)
    -releases the claim when delivery failed, so a retry can go through
    -an unreleased claim expires after ttl
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(dedup_key: str) -> str:
        return f"notification:{dedup_key}:lock"

    @redis_retry()
    def acquire_delivery_lock(self, dedup_key: str, token: str, ttl: int = NOTIFICATION_DEDUP_TTL_SECONDS) -> bool:
        key = self._key(dedup_key)
        logger.info(f"Acquire lock {key} for delivery {token}")
        #SET notification:new_order:1:2:lock "<token>" NX EX 86400
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True, #only if the key does not exist yet
                ex=ttl,
            )
        )

    @redis_retry()
    def release_delivery_lock(self, dedup_key: str, token: str) -> bool:
        key = self._key(dedup_key)
        logger.info(f"Release lock {key} for delivery {token}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)


def build_delivery_lock_service() -> DeliveryLockService | None:
    if not REDIS_URL:
        return None
    return DeliveryLockService()
