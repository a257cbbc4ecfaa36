"""
Enrollment funnel counters
--------------------------
One Redis INCR counter per (step, outcome) pair, e.g.
metrics:funnel:CONTACT:advanced or metrics:funnel:OTP:backend_rejected.
Counting is best-effort: a Redis outage must never break a user's flow,
so failures are logged and dropped.
"""
from __future__ import annotations
from typing import Dict
from enrollment.core import state_machine as sm
from enrollment.observability.logging import log
from enrollment.settings import settings
from enrollment.store.redis_conn import get_redis

K_FUNNEL_PREFIX = "metrics:funnel:"

OUTCOMES = (
    "advanced",
    "validation_error",
    "session_lost",
    "backend_rejected",
    "transport_failure",
    "mismatch",
    "otp_invalid",
    "resent",
)


def _key(step: str, outcome: str) -> str:
    return f"{K_FUNNEL_PREFIX}{step}:{outcome}"


def record_step_outcome(step: str, outcome: str) -> None:
    if not settings.ENABLE_METRICS:
        return
    try:
        r = get_redis()
        r.incr(_key(step, outcome), 1)
    except Exception as e:
        log(event="metrics_record_failed", step=step, outcome=outcome, error=str(e)[:200])


def get_funnel_snapshot() -> Dict[str, Dict[str, int]]:
    """
    {step: {outcome: count}} for every known step/outcome; missing keys read as 0.
    """
    r = get_redis()
    keys = [(step, outcome) for step in sm.STEPS for outcome in OUTCOMES]
    values = r.mget([_key(s, o) for s, o in keys])
    out: Dict[str, Dict[str, int]] = {step: {} for step in sm.STEPS}
    for (step, outcome), raw in zip(keys, values):
        out[step][outcome] = int(raw or 0)
    return out
