"""
Transient Step Store
--------------------
Short-lived, flow-scoped key/value storage that carries validated data
between wizard steps so earlier steps never have to be resubmitted.

Three string keys make up the layout; renaming any of them breaks flows
that are already in progress.
"""
from typing import Dict, List, Optional

from redis.exceptions import RedisError

from enrollment.observability.logging import log
from enrollment.settings import settings
from enrollment.store.redis_conn import get_redis

KEY_EMIRATES_ID = "signup_emiratesId"
KEY_FULL_NAME = "signup_fullName"
KEY_USER_ID = "signup_userId"

ALL_KEYS = (KEY_EMIRATES_ID, KEY_FULL_NAME, KEY_USER_ID)

PREFIX = "stepstore:"


class StepStore:
    """Interface shared by the in-memory and Redis stores."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        for key in ALL_KEYS:
            self.remove(key)

    def missing(self, *keys: str) -> List[str]:
        """Keys that are absent or empty."""
        return [k for k in keys if not self.get(k)]


class InMemoryStepStore(StepStore):
    """Process-lifetime store, used by the terminal wizard and tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def as_dict(self) -> Dict[str, str]:
        return dict(self._data)


class RedisStepStore(StepStore):
    """
    One Redis hash per flow: stepstore:{scope}. Every write slides the TTL
    so an abandoned flow's identity data expires on its own.
    """

    def __init__(self, scope: str, ttl_seconds: int = 0):
        self._scope = scope
        self._key = f"{PREFIX}{scope}"
        self._ttl = int(ttl_seconds or settings.STEP_STORE_TTL_SEC)
        self._redis = get_redis()

    def get(self, key: str) -> Optional[str]:
        return self._redis.hget(self._key, key)

    def set(self, key: str, value: str) -> None:
        pipe = self._redis.pipeline()
        pipe.hset(self._key, key, value)
        pipe.expire(self._key, self._ttl)
        pipe.execute()

    def remove(self, key: str) -> None:
        self._redis.hdel(self._key, key)

    def clear(self) -> None:
        try:
            self._redis.delete(self._key)
        except RedisError as e:
            # Fall back to per-key removal; identity data must not outlive the flow
            log(event="step_store_clear_failed", scope=self._scope, error=str(e)[:200])
            for key in ALL_KEYS:
                self.remove(key)
