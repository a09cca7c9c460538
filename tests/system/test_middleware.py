from src.staff_management.staff_management.system.middleware import RateLimiter


class TickingClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limiter_blocks_after_budget_until_window_passes():
    clock = TickingClock()
    limiter = RateLimiter(window_seconds=60, max_requests=2, clock=clock)

    assert limiter.hit("10.0.0.1") is None
    assert limiter.hit("10.0.0.1") is None
    assert limiter.hit("10.0.0.1") == 60
    clock.now += 45
    assert limiter.hit("10.0.0.1") == 15

    clock.now += 15
    assert limiter.hit("10.0.0.1") is None


def test_limiter_forgets_clients_after_their_window():
    clock = TickingClock()
    limiter = RateLimiter(window_seconds=60, max_requests=5, clock=clock)
    for n in range(100):
        limiter.hit(f"10.0.0.{n}")
    assert limiter.tracked_keys() == 100

    clock.now += 61
    limiter.hit("10.0.1.1")

    assert limiter.tracked_keys() == 1


def test_limiter_reset_clears_windows():
    limiter = RateLimiter(window_seconds=60, max_requests=1, clock=TickingClock())
    limiter.hit("a")
    assert limiter.hit("a") is not None

    limiter.reset()

    assert limiter.tracked_keys() == 0
    assert limiter.hit("a") is None
