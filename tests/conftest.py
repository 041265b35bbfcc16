import os
import itertools
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["AUTO_CREATE_TABLES"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"

from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.main import create_app

_counter = itertools.count(1)


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    path = Path("test.db")
    if path.exists():
        path.unlink()


@pytest.fixture()
def client():
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(client):
    def _make_user(nickname: str | None = None) -> dict:
        n = next(_counter)
        resp = client.post(
            "/users",
            json={
                "email": f"user{n}@campus.ac.kr",
                "password": "secret123",
                "nickname": nickname or f"user{n}",
                "studentId": f"6020{n:04d}",
            },
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make_user


@pytest.fixture()
def make_listing(client):
    def _make_listing(author: dict, **overrides) -> dict:
        body = {
            "authorId": author["id"],
            "title": "Bulk ramen order",
            "content": "Splitting a 40-pack box",
            "price": 12000,
            "minParticipants": 2,
            "deadline": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
            "pickupLocation": "Engineering building lobby",
            "category": "food",
        }
        body.update(overrides)
        resp = client.post("/listings", json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make_listing


def trust_score(client, user: dict) -> int:
    resp = client.get(f"/users/{user['id']}")
    assert resp.status_code == 200
    return resp.json()["trustScore"]


def notifications_for(client, user: dict, **params) -> list[dict]:
    resp = client.get("/notifications", headers={"X-User-Id": user["id"]}, params=params)
    assert resp.status_code == 200, resp.text
    return resp.json()["notifications"]
