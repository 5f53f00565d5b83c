# storefront/services/lock_service.py
from contextlib import contextmanager
from typing import Iterable, Iterator, List

import redis
from redis.exceptions import RedisError

from storefront.domain.errors import ResourceLocked, UpstreamError
from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry
from storefront.utils.settings import LOCK_TTL_SECONDS, REDIS_URL

logger = get_logger(__name__)

# compare-and-delete in one lua call, so nobody slips in between GET and DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def product_key(product_id: int) -> str:
    return f"product:{product_id}:lock"


def cart_key(cart_id) -> str:
    return f"cart:{cart_id}:lock"


class LockService:
    """
    Short-lived mutual exclusion on products and carts.

    SET key owner NX EX ttl to acquire, lua compare-and-delete to release.
    A lock left behind by a crashed worker expires on its own after ttl.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def _set_nx(self, key: str, owner: str, ttl: int) -> bool:
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def _release(self, key: str, owner: str) -> bool:
        return bool(self.redis.eval(_RELEASE_LUA, 1, key, owner))

    def acquire(self, key: str, owner: str, ttl: int = LOCK_TTL_SECONDS) -> bool:
        logger.info(f"Acquire lock {key} for {owner}")
        try:
            return self._set_nx(key, owner, ttl)
        except RedisError as e:
            logger.error(f"Redis unavailable while locking {key}: {e}")
            raise UpstreamError("Lock backend unavailable", key=key) from e

    def release(self, key: str, owner: str) -> bool:
        logger.info(f"Release lock {key} for {owner}")
        try:
            return self._release(key, owner)
        except RedisError as e:
            # the key expires after ttl anyway
            logger.warning(f"Failed to release lock {key}: {e}")
            return False

    @contextmanager
    def hold(self, keys: Iterable[str], owner: str, ttl: int = LOCK_TTL_SECONDS) -> Iterator[List[str]]:
        """
        Take every key or none of them. Keys are taken in sorted order so two
        requests over overlapping sets cannot deadlock each other.
        """
        held: List[str] = []
        try:
            for key in sorted(set(keys)):
                if not self.acquire(key, owner, ttl):
                    raise ResourceLocked(key)
                held.append(key)
            yield held
        finally:
            for key in reversed(held):
                self.release(key, owner)
