from datetime import timedelta

import pytest

from conftest import T0, make_settings
from todo_service.db import SQLiteRepository
from todo_service.models import TodoStatus
from todo_service.repositories import InMemoryRepository, ListQuery, get_repository


def make_entity(todo_id, status=TodoStatus.NOT_DONE, due_offset_hours=0, created_offset_minutes=0):
    return {
        "id": todo_id,
        "description": f"Todo {todo_id}",
        "status": status,
        "creation_datetime": T0 + timedelta(minutes=created_offset_minutes),
        "due_datetime": T0 + timedelta(hours=due_offset_hours),
        "done_datetime": T0 if status == TodoStatus.DONE else None,
    }


@pytest.fixture(params=["memory", "sqlite-file", "sqlite-memory"])
def repository(request, tmp_path):
    if request.param == "memory":
        return InMemoryRepository()
    if request.param == "sqlite-file":
        return SQLiteRepository(str(tmp_path / "nested" / "todos.db"))
    return SQLiteRepository(":memory:")


class TestRepositoryContract:
    def test_get_missing_returns_none(self, repository):
        assert repository.get("nope") is None

    def test_save_and_get_round_trip(self, repository):
        entity = make_entity("a", status=TodoStatus.DONE)
        repository.save(entity)
        assert repository.get("a") == entity

    def test_save_replaces_existing(self, repository):
        repository.save(make_entity("a"))
        repository.save({**make_entity("a"), "description": "changed", "status": TodoStatus.PAST_DUE})
        stored = repository.get("a")
        assert stored["description"] == "changed"
        assert stored["status"] == TodoStatus.PAST_DUE
        assert len(repository.list()) == 1

    def test_returned_entities_are_copies(self, repository):
        repository.save(make_entity("a"))
        fetched = repository.get("a")
        fetched["description"] = "mutated"
        assert repository.get("a")["description"] == "Todo a"

    def test_save_many_writes_all(self, repository):
        saved = repository.save_many([make_entity("a"), make_entity("b", created_offset_minutes=1)])
        assert [e["id"] for e in saved] == ["a", "b"]
        assert {e["id"] for e in repository.list()} == {"a", "b"}

    def test_list_orders_by_creation(self, repository):
        repository.save(make_entity("late", created_offset_minutes=5))
        repository.save(make_entity("early", created_offset_minutes=-5))
        repository.save(make_entity("middle"))
        assert [e["id"] for e in repository.list()] == ["early", "middle", "late"]

    def test_list_filters_by_status(self, repository):
        repository.save_many(
            [
                make_entity("open"),
                make_entity("done", status=TodoStatus.DONE, created_offset_minutes=1),
                make_entity("late", status=TodoStatus.PAST_DUE, created_offset_minutes=2),
            ]
        )
        assert [e["id"] for e in repository.list(ListQuery(status=TodoStatus.DONE))] == ["done"]
        assert [e["id"] for e in repository.list(ListQuery(status=TodoStatus.NOT_DONE))] == ["open"]

    def test_list_filters_due_before_strictly(self, repository):
        repository.save_many(
            [
                make_entity("before", due_offset_hours=-1),
                make_entity("exact", due_offset_hours=0, created_offset_minutes=1),
                make_entity("after", due_offset_hours=1, created_offset_minutes=2),
            ]
        )
        result = repository.list(ListQuery(due_before=T0))
        assert [e["id"] for e in result] == ["before"]

    def test_list_combines_predicates(self, repository):
        repository.save_many(
            [
                make_entity("overdue", due_offset_hours=-1),
                make_entity("overdue-done", status=TodoStatus.DONE, due_offset_hours=-1, created_offset_minutes=1),
                make_entity("future", due_offset_hours=1, created_offset_minutes=2),
            ]
        )
        result = repository.list(ListQuery(status=TodoStatus.NOT_DONE, due_before=T0))
        assert [e["id"] for e in result] == ["overdue"]

    def test_ping(self, repository):
        assert repository.ping() is True


class TestSQLiteRepository:
    def test_data_survives_new_instance(self, tmp_path):
        path = str(tmp_path / "todos.db")
        SQLiteRepository(path).save(make_entity("a"))
        assert SQLiteRepository(path).get("a") == make_entity("a")

    def test_datetimes_come_back_as_aware_utc(self, tmp_path):
        repo = SQLiteRepository(str(tmp_path / "todos.db"))
        repo.save(make_entity("a"))
        stored = repo.get("a")
        assert stored["due_datetime"].utcoffset() == timedelta(0)
        assert stored["status"] is TodoStatus.NOT_DONE

    def test_ping_reports_unreachable_database(self, tmp_path):
        path = tmp_path / "todos.db"
        repo = SQLiteRepository(str(path))
        path.unlink()
        path.mkdir()  # a directory where the database file was
        assert repo.ping() is False


class TestGetRepository:
    def test_memory_backend(self):
        assert isinstance(get_repository(make_settings(persistence_backend="memory")), InMemoryRepository)

    def test_sqlite_backend(self, tmp_path):
        settings = make_settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "x.db"))
        repo = get_repository(settings)
        assert isinstance(repo, SQLiteRepository)
        assert (tmp_path / "x.db").exists()
