"""Shared fixtures: a file backed SQLite ledger, a fixed clock and seeded operators."""

from __future__ import annotations

import os
from datetime import datetime, timedelta

import pytest

os.environ["API_KEY"] = "test-api-key"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["PIN_HASH_ROUNDS"] = "4"
os.environ["LOG_DIR"] = os.environ.get("LOG_DIR", "logs")

from fastapi.testclient import TestClient  # noqa: E402

from apps.operators.models import Operator  # noqa: E402
from apps.operators.services import hash_pin  # noqa: E402
from apps.tickets.context import QueueContext  # noqa: E402
from apps.tickets.queue_class import build_queue_classes  # noqa: E402
from apps.tickets.services import TicketService  # noqa: E402
from apps.tickets.settings import QueueSettings  # noqa: E402
from main import create_app  # noqa: E402
from shared.database import create_db_engine, init_database  # noqa: E402

API_KEY_HEADERS = {"Authorization": "Bearer test-api-key"}


class FakeClock:
    """Service clock frozen at ``now`` until advanced"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'queue.db'}", echo=False)
    assert init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 30))


@pytest.fixture
def settings():
    return QueueSettings(queue_classes=build_queue_classes(["E", "M"]))


@pytest.fixture
def context(engine, settings, clock):
    return QueueContext.build(settings=settings, bind=engine, clock=clock)


@pytest.fixture
def operators(context):
    with context.session_factory() as db:
        db.add_all([
            Operator(user_id="op1", user_name="Ana", pin=hash_pin("1234"), room="Sala 1", desk="Mesa 2"),
            Operator(user_id="op2", user_name="Bruno", pin=hash_pin("5678"), room="Sala 3", desk="Mesa 1"),
            Operator(user_id="retired", user_name="Carla", pin=hash_pin("0000"), room="Sala 9", desk="Mesa 9", status=0),
        ])
        db.commit()
    return ["op1", "op2"]


@pytest.fixture
def service(context, operators):
    return TicketService(context)


@pytest.fixture
def events(context):
    received = []
    context.broadcaster.subscribe(lambda topic, payload: received.append((topic, payload)))
    return received


@pytest.fixture
def client(context, operators):
    with TestClient(create_app(context)) as c:
        yield c


@pytest.fixture
def operator_headers(client):
    resp = client.post("/api/v1/auth/token", data={"username": "op1", "pin": "1234"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def admin_headers():
    return dict(API_KEY_HEADERS)
