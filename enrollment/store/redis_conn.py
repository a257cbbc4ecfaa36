from typing import Optional

from redis import ConnectionPool, Redis

from enrollment.settings import settings

_pool: Optional[ConnectionPool] = None


def get_redis() -> Redis:
    """
    Redis client on a process-wide pool; one action touches flow state, the
    step store, the lock and counters, so connections are reused.
    """
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SEC,
        )
    return Redis(connection_pool=_pool)
