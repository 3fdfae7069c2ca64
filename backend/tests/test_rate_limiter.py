from bolgen.services.rate_limiter import RateLimiter, client_key


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RateLimiter(limit=3, window_seconds=60, clock=FakeClock())
        assert [limiter.hit("a") for _ in range(4)] == [True, True, True, False]

    def test_keys_are_independent(self):
        limiter = RateLimiter(limit=1, window_seconds=60, clock=FakeClock())
        assert limiter.hit("a")
        assert limiter.hit("b")
        assert not limiter.hit("a")

    def test_window_resets(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
        assert limiter.hit("a")
        assert not limiter.hit("a")
        clock.now += 61
        assert limiter.hit("a")

    def test_expired_windows_are_evicted(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)
        for n in range(50):
            limiter.hit(f"10.0.0.{n}")
        assert len(limiter._windows) == 50
        clock.now += 61
        limiter.hit("10.0.1.1")
        assert list(limiter._windows) == ["10.0.1.1"]
        assert limiter.retry_after("10.0.0.1") == 0

    def test_retry_after(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=1, window_seconds=3600, clock=clock)
        assert limiter.retry_after("a") == 0
        limiter.hit("a")
        clock.now += 600.5
        assert limiter.retry_after("a") == 3000

    def test_reset(self):
        limiter = RateLimiter(limit=1, window_seconds=60, clock=FakeClock())
        limiter.hit("a")
        limiter.reset()
        assert limiter.hit("a")


class TestClientKey:
    def test_first_forwarded_hop(self):
        assert client_key("203.0.113.7, 10.0.0.1", "10.0.0.2") == "203.0.113.7"

    def test_peer_host(self):
        assert client_key(None, "10.0.0.2") == "10.0.0.2"

    def test_unknown(self):
        assert client_key("", None) == "unknown"
