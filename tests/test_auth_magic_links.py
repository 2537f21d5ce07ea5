import uuid
from datetime import timedelta

from app.auth.tokens import hash_magic_token, issue_access_token, now_utc
from app.models.auth_magic_link import AuthMagicLink

def _request_magic_token(client, email: str = "magiclink@example.com", **extra) -> str:
    r = client.post("/auth/request-link", json={"email": email, **extra})
    assert r.status_code == 200, r.text
    token = r.json().get("token")
    assert token, "expected token to be returned in non-prod env"
    return token

def test_redeem_returns_bearer_token(client):
    token = _request_magic_token(client, name="Magic Person")

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] > 0

    me = client.get("/users/me", headers={"authorization": f"bearer {body['access_token']}"})
    assert me.status_code == 200, me.text
    assert me.json()["email"] == "magiclink@example.com"
    assert me.json()["name"] == "Magic Person"

def test_same_email_is_one_user(client):
    first = client.post("/auth/redeem", json={"token": _request_magic_token(client, "Same@Example.com")})
    second = client.post("/auth/redeem", json={"token": _request_magic_token(client, "same@example.com")})

    ids = {
        client.get("/users/me", headers={"authorization": f"bearer {r.json()['access_token']}"}).json()["id"]
        for r in (first, second)
    }
    assert len(ids) == 1

def test_magic_link_cannot_be_reused(client):
    token = _request_magic_token(client)

    r1 = client.post("/auth/redeem", json={"token": token})
    assert r1.status_code == 200, r1.text

    r2 = client.post("/auth/redeem", json={"token": token})
    assert r2.status_code == 400, r2.text
    assert "used" in r2.json()["detail"].lower()

def test_magic_link_expires(client, db_session):
    token = _request_magic_token(client)

    row = db_session.get(AuthMagicLink, hash_magic_token(token))
    assert row is not None
    row.expires_at = now_utc() - timedelta(seconds=1)
    db_session.add(row)
    db_session.commit()

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 400, r.text
    assert "expired" in r.json()["detail"].lower()

def test_unknown_magic_token(client):
    r = client.post("/auth/redeem", json={"token": "not-a-real-token"})
    assert r.status_code == 400
    assert r.json()["detail"] == "invalid token"

def test_protected_routes_need_a_valid_bearer(client):
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers={"authorization": "bearer garbage"}).status_code == 401

    # well-formed token for a user that doesn't exist
    ghost = issue_access_token(uuid.uuid4())
    r = client.get("/users/me", headers={"authorization": f"bearer {ghost}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "user not found"
