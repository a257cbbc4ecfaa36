import time


def now_ms() -> int:
    return int(time.time() * 1000)


def elapsed_seconds(since_ms: int, now: int = 0) -> int:
    """
    Whole seconds elapsed since `since_ms` (epoch ms), clamped to >= 0.
    A zero/absent start means nothing has elapsed.
    """
    if not since_ms:
        return 0
    now = now or now_ms()
    return max(0, (int(now) - int(since_ms)) // 1000)
