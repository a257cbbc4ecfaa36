import threading
import time
from enrollment.core.timers import ResendCooldown, Ticker


def test_cooldown_counts_down_to_zero():
    c = ResendCooldown(60)
    assert c.can_resend is True

    c.start()
    assert c.remaining == 60
    assert c.can_resend is False

    reached = [c.tick() for _ in range(60)]
    assert reached[-1] is True
    assert reached.count(True) == 1
    assert c.remaining == 0
    assert c.can_resend is True

    # Further ticks do nothing
    assert c.tick() is False
    assert c.remaining == 0


def test_cooldown_reset():
    c = ResendCooldown(60)
    c.start()
    c.reset()
    assert c.can_resend is True


def test_cooldown_resumes_from_remaining():
    c = ResendCooldown(60, remaining=12)
    assert c.remaining == 12
    assert ResendCooldown(60, remaining=-5).remaining == 0


def test_ticker_stops_when_callback_returns_false():
    calls = []
    done = threading.Event()

    def on_tick():
        calls.append(1)
        if len(calls) >= 3:
            done.set()
            return False
        return True

    t = Ticker(on_tick, interval=0.01)
    t.start()
    assert done.wait(2.0)
    for _ in range(100):
        if not t.running:
            break
        time.sleep(0.01)
    assert len(calls) == 3
    assert t.running is False


def test_ticker_cancel_prevents_further_ticks():
    calls = []
    t = Ticker(lambda: calls.append(1) or True, interval=10)
    t.start()
    assert t.running is True
    t.cancel()
    assert t.running is False
    assert calls == []


def test_cancel_does_not_wait_for_a_running_tick():
    entered = threading.Event()
    release = threading.Event()

    def on_tick():
        entered.set()
        release.wait(2.0)
        return True

    t = Ticker(on_tick, interval=0.01)
    t.start()
    assert entered.wait(2.0)

    canceller = threading.Thread(target=t.cancel, daemon=True)
    canceller.start()
    canceller.join(0.5)
    assert not canceller.is_alive()

    release.set()
    time.sleep(0.05)
    assert t.running is False
