import os
import time
import uuid

# settings are read at import time, so point them at a throwaway db first
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.db import get_db
from app.main import create_app
from app.models import Base

def _test_engine(database_url: str):
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)

@pytest.fixture()
def db_session() -> Session:
    engine = _test_engine(os.environ["DATABASE_URL"])
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path

@pytest.fixture()
def client(db_session: Session, upload_dir) -> TestClient:
    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)

def _login(client, email: str) -> str:
    r = client.post("/auth/request-link", json={"email": email})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    r = client.post("/auth/redeem", json={"token": token})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]

def _auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}

@pytest.fixture()
def owner_jwt(client) -> str:
    # unique per test run to avoid collisions
    email = f"owner+{int(time.time())}_{uuid.uuid4().hex[:8]}@example.com"
    return _login(client, email)

@pytest.fixture()
def team_project(client, owner_jwt) -> dict:
    """A project owned by ``owner_jwt`` that belongs to a team, so members can be added."""
    r = client.post("/teams", json={"name": f"team-{uuid.uuid4().hex[:6]}"}, headers=_auth(owner_jwt))
    assert r.status_code == 200, r.text
    team_id = r.json()["id"]

    r = client.post("/projects", json={"name": "seeded project", "team_id": team_id}, headers=_auth(owner_jwt))
    assert r.status_code == 200, r.text
    return {"team_id": team_id, "project_id": r.json()["id"]}
