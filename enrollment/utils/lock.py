from contextlib import contextmanager
import time
import uuid
from redis.exceptions import RedisError
from enrollment.observability.logging import log
from enrollment.store.redis_conn import get_redis
from enrollment.settings import settings


class FlowBusy(RuntimeError):
    """Another worker is currently processing an action for this flow."""


@contextmanager
def flow_lock(flow_id: str, ttl_ms: int = 0):
    """
    Distributed lock to ensure single-writer per enrollment flow.
    """
    r = get_redis()
    key = f"lock:flow:{flow_id}"
    token = uuid.uuid4().hex
    ttl_ms = int(ttl_ms or settings.FLOW_LOCK_TTL_MS)
    acquired = r.set(key, token, px=ttl_ms, nx=True)

    try:
        if not acquired:
            # Short spin; a flow is driven by one user so contention is brief
            for _ in range(5):
                time.sleep(0.1)
                if r.set(key, token, px=ttl_ms, nx=True):
                    acquired = True
                    break

            if not acquired:
                raise FlowBusy(f"Could not acquire lock for flow {flow_id}")

        yield
    finally:
        if acquired:
            # Release only if we own it
            script = """
            if redis.call("get", KEYS[1]) == ARGV[1] then
                return redis.call("del", KEYS[1])
            else
                return 0
            end
            """
            try:
                r.eval(script, 1, key, token)
            except RedisError as e:
                # Lock expires on its own after ttl_ms
                log(event="flow_lock_release_failed", flowId=flow_id, error=str(e)[:200])
