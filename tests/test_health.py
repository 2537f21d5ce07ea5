from app.routes import health

def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

def test_ready_when_everything_answers(client, monkeypatch):
    monkeypatch.setitem(health.READINESS_CHECKS, "db", lambda: True)
    monkeypatch.setitem(health.READINESS_CHECKS, "redis", lambda: True)

    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "checks": {"db": True, "redis": True}}

def test_ready_reports_failures(client, monkeypatch):
    def broken():
        raise RuntimeError("connection refused")

    monkeypatch.setitem(health.READINESS_CHECKS, "db", lambda: True)
    monkeypatch.setitem(health.READINESS_CHECKS, "redis", broken)

    r = client.get("/ready")
    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "unready"
    assert body["checks"] == {"db": True, "redis": False}
    assert body["errors"] == {"redis": "RuntimeError: connection refused"}
