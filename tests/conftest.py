import dataclasses
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from todo_service.main import create_app
from todo_service.repositories import InMemoryRepository
from todo_service.service import TodoService
from todo_service.settings import get_settings

T0 = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def parse_dt(value: str) -> datetime:
    # pydantic serializes UTC as a trailing 'Z'
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def make_settings(**overrides):
    base = dataclasses.replace(
        get_settings(),
        persistence_backend="memory",
        sweep_enabled=False,
        log_level="DEBUG",
    )
    return dataclasses.replace(base, **overrides)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def service(repo, clock):
    return TodoService(repo, clock=clock)


@pytest.fixture
def app(repo, clock):
    return create_app(settings=make_settings(), repository=repo, clock=clock)


@pytest.fixture
def client(app):
    return TestClient(app)
