from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from attendance_service.core.config import Settings
from attendance_service.core.db import MongoStore
from attendance_service.main import create_app


class FakeClock:
    """고정된 "현재 시각" (naive UTC). advance()로 앞으로 감기."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def settings(tmp_path):
    return Settings(
        MONGODB_DB_NAME="attendance_test",
        JWT_SECRET="test-secret",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        MAX_UPLOAD_BYTES=1024,
        TIMEZONE="UTC",
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, 0))


@pytest.fixture
async def store():
    store = MongoStore(AsyncMongoMockClient(), f"attendance_test_{uuid4().hex}")
    await store.ensure_indexes()
    return store


@pytest.fixture
def client(settings, clock):
    store = MongoStore(AsyncMongoMockClient(), f"attendance_test_{uuid4().hex}")
    app = create_app(settings=settings, store=store)
    app.state.clock = clock
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    resp = client.post(
        "/api/users/register",
        json={"name": "Admin", "email": "admin@corp.com", "password": "secret123"},
    )
    assert resp.status_code == 201
    return {"x-auth-token": resp.json()["token"]}


def employee_form(**overrides):
    data = {
        "name": "Kim Minsu",
        "email": "minsu@corp.com",
        "phone": "010-1234-5678",
        "address": "Seoul",
        "position": "Engineer",
        "department": "Platform",
        "employeeId": "E1",
    }
    data.update(overrides)
    return data
