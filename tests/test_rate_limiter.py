import threading

from fastapi import Depends
from fastapi.testclient import TestClient

from conftest import FakeClock

from leadcapture.middleware.rate_limiter import FixedWindowRateLimiter, strict_rate_limit
from leadcapture.security.events import SecurityEventType


def test_allows_up_to_limit_then_blocks():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(10, 60, clock=clock)

    decisions = [limiter.hit("1.2.3.4") for _ in range(10)]
    assert all(d.allowed for d in decisions)
    assert [d.remaining for d in decisions] == list(range(9, -1, -1))

    blocked = limiter.hit("1.2.3.4")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.limit == 10


def test_window_resets_after_elapsing():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(2, 60, clock=clock)
    limiter.hit("k")
    limiter.hit("k")
    assert limiter.hit("k").allowed is False

    clock.advance(59)
    assert limiter.hit("k").allowed is False

    clock.advance(1)
    decision = limiter.hit("k")
    assert decision.allowed is True
    assert decision.remaining == 1


def test_reset_after_counts_down_within_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(5, 60, clock=clock)
    assert limiter.hit("k").reset_after == 60
    clock.advance(20.5)
    assert limiter.hit("k").reset_after == 40


def test_keys_are_independent():
    limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())
    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed
    assert not limiter.hit("a").allowed


def test_headers():
    limiter = FixedWindowRateLimiter(10, 60, clock=FakeClock())
    assert limiter.hit("k").headers() == {
        "RateLimit-Limit": "10",
        "RateLimit-Remaining": "9",
        "RateLimit-Reset": "60",
    }


def test_concurrent_hits_on_one_key_never_overshoot():
    limiter = FixedWindowRateLimiter(20, 60)
    allowed = []
    lock = threading.Lock()

    def worker():
        for _ in range(10):
            decision = limiter.hit("shared")
            if decision.allowed:
                with lock:
                    allowed.append(decision)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(allowed) == 20
    assert limiter.hit("shared").allowed is False


def test_expired_windows_are_swept_when_table_is_full():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(5, 60, clock=clock, max_keys=2)
    limiter.hit("a")
    limiter.hit("b")
    clock.advance(61)
    limiter.hit("c")
    assert set(limiter._windows) == {"c"}


def test_strict_limiter_dependency(app, clock, sink):
    async def sensitive():
        return {"ok": True}

    app.add_api_route(
        "/api/sensitive", sensitive, methods=["POST"], dependencies=[Depends(strict_rate_limit)]
    )
    client = TestClient(app)

    for _ in range(5):
        response = client.post("/api/sensitive")
        assert response.status_code == 200
        assert "ratelimit-remaining" in response.headers

    response = client.post("/api/sensitive")
    assert response.status_code == 429
    assert response.json() == {"error": "Demasiados intentos. Intenta de nuevo en 15 minutos."}
    assert response.headers["retry-after"] == "900"
    assert response.headers["ratelimit-remaining"] == "0"

    assert sink.types() == [SecurityEventType.RATE_LIMIT_EXCEEDED]
    assert sink.events[0].detail == "Strict rate limit exceeded"

    clock.advance(15 * 60)
    assert client.post("/api/sensitive").status_code == 200
