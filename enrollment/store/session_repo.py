import json
import time
import inspect
from enrollment.settings import settings
from enrollment.store.redis_conn import get_redis
from enrollment.store.models import EnrollmentSession

PREFIX = "flow:"

# Held in memory for one request only; never written to Redis.
TRANSIENT_FIELDS = ("pinDigits", "confirmDigits", "pinPhase", "loading")


def _key(session_id: str) -> str:
    return f"{PREFIX}{session_id}"


def _filter_session_kwargs(data: dict) -> dict:
    """
    Drop unknown fields so EnrollmentSession(**kwargs) never explodes
    """
    sig = inspect.signature(EnrollmentSession)
    allowed = set(sig.parameters.keys())
    return {k: v for k, v in data.items() if k in allowed}


def _to_storable(session: EnrollmentSession) -> dict:
    data = session.__dict__.copy()
    for f in TRANSIENT_FIELDS:
        data.pop(f, None)
    return data


def load_session(session_id: str) -> EnrollmentSession:
    r = get_redis()
    raw = r.get(_key(session_id))
    if not raw:
        s = EnrollmentSession(sessionId=session_id)
        s.lastUpdatedAtEpoch = int(time.time())
        return s

    data = json.loads(raw)
    for f in TRANSIENT_FIELDS:
        data.pop(f, None)

    # Drop unknown fields
    data = _filter_session_kwargs(data)

    return EnrollmentSession(**data)


def save_session(session: EnrollmentSession) -> None:
    r = get_redis()
    session.lastUpdatedAtEpoch = int(time.time())
    r.set(_key(session.sessionId), json.dumps(_to_storable(session)), ex=settings.SESSION_TTL_SEC)


def delete_session(session_id: str) -> None:
    r = get_redis()
    r.delete(_key(session_id))
