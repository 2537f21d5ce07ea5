import redis

from app import ratelimit
from app.config import settings

class FakePipeline:
    def __init__(self, counts: dict, fail: bool = False):
        self.counts = counts
        self.fail = fail
        self.key = None

    def incr(self, key):
        self.key = key

    def expire(self, key, seconds, nx=False):
        pass

    def execute(self):
        if self.fail:
            raise redis.ConnectionError("connection refused")
        self.counts[self.key] = self.counts.get(self.key, 0) + 1
        return [self.counts[self.key], True]

class FakeRedis:
    def __init__(self, fail: bool = False):
        self.counts: dict = {}
        self.fail = fail

    def pipeline(self):
        return FakePipeline(self.counts, self.fail)

def test_request_link_is_rate_limited(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_enabled", True)
    monkeypatch.setattr(ratelimit, "redis_client", FakeRedis())

    limit = settings.rate_limit_auth_request_link_per_min
    for _ in range(limit):
        r = client.post("/auth/request-link", json={"email": "spam@example.com"})
        assert r.status_code == 200

    r = client.post("/auth/request-link", json={"email": "spam@example.com"})
    assert r.status_code == 429
    assert r.json()["detail"] == "rate_limited"

def test_limiter_fails_open_without_redis(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_enabled", True)
    monkeypatch.setattr(ratelimit, "redis_client", FakeRedis(fail=True))

    r = client.post("/auth/request-link", json={"email": "open@example.com"})
    assert r.status_code == 200
