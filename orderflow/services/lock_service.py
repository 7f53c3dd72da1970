# orderflow/services/lock_service.py
import uuid
from contextlib import contextmanager
from typing import Iterator

import redis
from redis.exceptions import RedisError

from orderflow.utils.logging import get_logger
from orderflow.utils.retry import lock_wait, redis_retry
from orderflow.utils.settings import ORDER_LOCK_TTL_SECONDS, ORDER_LOCK_WAIT_SECONDS, REDIS_URL

logger = get_logger(__name__)

# compare-and-delete in one step, so a lock that expired and was taken by
# someone else is never released by us
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Per order number lock held while an order is committed.

    The lock only narrows the race between a webhook retry and a capture for
    the same order; the unique index on order_number still decides.
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(order_number: str) -> str:
        return f"order:{order_number}:lock"

    @redis_retry()
    def acquire_order_lock(self, order_number: str, token: str, ttl: int = ORDER_LOCK_TTL_SECONDS) -> bool:
        # SET order:FV-...:lock <token> NX EX 30
        return bool(self.redis.set(name=self._key(order_number), value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_order_lock(self, order_number: str, token: str) -> bool:
        res = self.redis.eval(_RELEASE_LUA, 1, self._key(order_number), token)
        return bool(res)

    @contextmanager
    def hold(self, order_number: str, wait: float = ORDER_LOCK_WAIT_SECONDS) -> Iterator[bool]:
        """Yields True when the lock was taken, False when we go on without it."""
        token = uuid.uuid4().hex
        try:
            acquired = lock_wait(wait)(self.acquire_order_lock, order_number, token)
        except RedisError as e:
            logger.warning(f"Lock store unavailable for {order_number}, committing without lock: {e}")
            acquired = False
        else:
            if not acquired:
                logger.warning(f"Timed out waiting for lock on {order_number}, committing without it")

        try:
            yield acquired
        finally:
            if acquired:
                try:
                    self.release_order_lock(order_number, token)
                except RedisError as e:
                    logger.warning(f"Failed to release lock on {order_number}: {e}")
