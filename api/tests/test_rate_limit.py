from starlette.requests import Request

from eventmatch.services.rate_limit import SlidingWindowLimiter, caller_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limiter_blocks_after_limit_and_recovers():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(clock=clock)

    assert limiter.check("k", limit=2, window_seconds=60).allowed
    assert limiter.check("k", limit=2, window_seconds=60).allowed
    blocked = limiter.check("k", limit=2, window_seconds=60)
    assert not blocked.allowed
    assert blocked.retry_after_seconds == 60

    clock.now += 61
    assert limiter.check("k", limit=2, window_seconds=60).allowed


def test_limiter_keys_are_independent():
    limiter = SlidingWindowLimiter(clock=FakeClock())
    assert limiter.check("a", limit=1, window_seconds=60).allowed
    assert not limiter.check("a", limit=1, window_seconds=60).allowed
    assert limiter.check("b", limit=1, window_seconds=60).allowed


def test_reset_clears_history():
    limiter = SlidingWindowLimiter(clock=FakeClock())
    limiter.check("a", limit=1, window_seconds=60)
    limiter.reset()
    assert limiter.check("a", limit=1, window_seconds=60).allowed


def test_caller_key_distinguishes_bearer_tokens():
    def _req(token):
        return Request({"type": "http", "headers": [(b"authorization", f"Bearer {token}".encode())], "client": ("1.2.3.4", 1)})

    same_header = "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    assert caller_key(_req(same_header + "a.sig1")) != caller_key(_req(same_header + "b.sig2"))
    assert caller_key(_req(same_header + "a.sig1")) == caller_key(_req(same_header + "a.sig1"))


def test_sweep_drops_callers_whose_window_elapsed():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(clock=clock)
    limiter.check("old", limit=5, window_seconds=60)
    clock.now += 30
    limiter.check("recent", limit=5, window_seconds=60)
    clock.now += 31

    assert limiter.sweep() == 1
    assert limiter.tracked_keys() == 1


def test_sweep_runs_during_checks():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(clock=clock, sweep_every=3)
    limiter.check("a", limit=5, window_seconds=10)
    limiter.check("b", limit=5, window_seconds=10)
    clock.now += 11
    limiter.check("c", limit=5, window_seconds=10)
    assert limiter.tracked_keys() == 1
