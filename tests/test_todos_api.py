from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import T0, make_settings, parse_dt
from todo_service.main import create_app
from todo_service.models import TodoStatus


def create_todo_payload(description="Test Task", due=None):
    return {
        "description": description,
        "dueDatetime": (due or T0 + timedelta(days=7)).isoformat(),
    }


def assert_todo_shape(todo: dict):
    for key in ["id", "description", "status", "creationDatetime", "dueDatetime", "doneDatetime"]:
        assert key in todo
    assert isinstance(todo["id"], str)
    assert isinstance(todo["description"], str)
    assert todo["status"] in {s.value for s in TodoStatus}
    parse_dt(todo["creationDatetime"])
    parse_dt(todo["dueDatetime"])
    # DONE iff doneDatetime is set
    assert (todo["status"] == "DONE") == (todo["doneDatetime"] is not None)


def create(client, **kwargs) -> dict:
    res = client.post("/todos", json=create_todo_payload(**kwargs))
    assert res.status_code == 201
    return res.json()


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok", "db": "up"}

    def test_health_reports_db_down(self, clock):
        class DownRepository:
            def ping(self):
                return False

        client = TestClient(create_app(settings=make_settings(), repository=DownRepository(), clock=clock))
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok", "db": "down"}


class TestTodosCRUD:
    def test_create_todo(self, client, clock):
        todo = create(client, description="Buy groceries")
        assert_todo_shape(todo)
        assert todo["description"] == "Buy groceries"
        assert todo["status"] == "NOT_DONE"
        assert todo["doneDatetime"] is None
        assert parse_dt(todo["creationDatetime"]) == clock.now

    def test_create_todo_with_date_only_due(self, client):
        res = client.post("/todos", json={"description": "Pay bills", "dueDatetime": "2099-12-25"})
        assert res.status_code == 201
        # Due date should be promoted to midnight UTC
        assert parse_dt(res.json()["dueDatetime"]).isoformat() == "2099-12-25T00:00:00+00:00"

    def test_create_todo_with_offset_due_is_normalized_to_utc(self, client):
        res = client.post("/todos", json={"description": "Call", "dueDatetime": "2099-01-01T10:00:00+02:00"})
        assert res.status_code == 201
        assert parse_dt(res.json()["dueDatetime"]).isoformat() == "2099-01-01T08:00:00+00:00"

    def test_get_todo_and_not_found(self, client):
        tid = create(client, description="Read book")["id"]

        res_get = client.get(f"/todos/{tid}")
        assert res_get.status_code == 200
        fetched = res_get.json()
        assert fetched["id"] == tid
        assert fetched["description"] == "Read book"

        res_404 = client.get("/todos/999999")
        assert res_404.status_code == 404
        assert res_404.json()["message"] == "Todo 999999 not found"

    def test_update_description(self, client):
        tid = create(client, description="Old")["id"]
        res = client.patch(f"/todos/{tid}/description", json={"description": "Updated description"})
        assert res.status_code == 200
        assert res.json()["description"] == "Updated description"
        assert client.get(f"/todos/{tid}").json()["description"] == "Updated description"

    def test_update_description_not_found(self, client):
        res = client.patch("/todos/unknown/description", json={"description": "x"})
        assert res.status_code == 404

    def test_mark_done_then_not_done(self, client, clock):
        tid = create(client, description="Cycle")["id"]

        res_done = client.patch(f"/todos/{tid}/mark-done")
        assert res_done.status_code == 200
        done = res_done.json()
        assert done["status"] == "DONE"
        assert parse_dt(done["doneDatetime"]) == clock.now

        res_not_done = client.patch(f"/todos/{tid}/mark-not-done")
        assert res_not_done.status_code == 200
        not_done = res_not_done.json()
        assert not_done["status"] == "NOT_DONE"
        assert not_done["doneDatetime"] is None

    def test_mark_done_and_not_done_not_found(self, client):
        assert client.patch("/todos/unknown/mark-done").status_code == 404
        assert client.patch("/todos/unknown/mark-not-done").status_code == 404

    def test_full_lifecycle(self, client):
        tid = create(client, description="Complete project")["id"]
        client.patch(f"/todos/{tid}/description", json={"description": "Complete big project"})
        client.patch(f"/todos/{tid}/mark-done")
        client.patch(f"/todos/{tid}/mark-not-done")

        res = client.get(f"/todos/{tid}")
        assert res.status_code == 200
        body = res.json()
        assert body["description"] == "Complete big project"
        assert body["status"] == "NOT_DONE"
        assert body["doneDatetime"] is None


class TestListFiltering:
    def test_default_lists_only_not_done(self, client):
        open_todo = create(client, description="Active task")
        done_todo = create(client, description="Completed task")
        client.patch(f"/todos/{done_todo['id']}/mark-done")

        res = client.get("/todos")
        assert res.status_code == 200
        ids = [t["id"] for t in res.json()]
        assert ids == [open_todo["id"]]

    def test_all_true_lists_every_todo(self, client):
        open_todo = create(client, description="Active task")
        done_todo = create(client, description="Completed task")
        client.patch(f"/todos/{done_todo['id']}/mark-done")

        res = client.get("/todos?all=true")
        assert res.status_code == 200
        body = res.json()
        assert {t["id"] for t in body} == {open_todo["id"], done_todo["id"]}
        assert {t["status"] for t in body} == {"NOT_DONE", "DONE"}
        for todo in body:
            assert_todo_shape(todo)

    def test_all_false_is_default(self, client):
        create(client)
        assert client.get("/todos?all=false").json() == client.get("/todos").json()

    def test_invalid_all_param(self, client):
        res = client.get("/todos?all=maybe")
        assert res.status_code == 400
        assert res.json()["message"] == "Request validation failed"


class TestPastDue:
    def test_overdue_todo_reads_as_past_due_and_is_frozen(self, client):
        tid = create(client, description="Yesterday", due=T0 - timedelta(days=1))["id"]

        res = client.get(f"/todos/{tid}")
        assert res.status_code == 200
        assert res.json()["status"] == "PAST_DUE"

        res_done = client.patch(f"/todos/{tid}/mark-done")
        assert res_done.status_code == 400
        assert res_done.json()["message"] == f"Todo {tid} is past due and cannot be modified"

    def test_mutations_rejected_without_prior_read(self, client):
        tid = create(client, due=T0 - timedelta(seconds=1))["id"]
        assert client.patch(f"/todos/{tid}/description", json={"description": "x"}).status_code == 400
        assert client.patch(f"/todos/{tid}/mark-done").status_code == 400
        assert client.patch(f"/todos/{tid}/mark-not-done").status_code == 400

    def test_future_todo_becomes_past_due_when_time_passes(self, client, clock):
        tid = create(client, due=T0 + timedelta(hours=1))["id"]
        assert client.get(f"/todos/{tid}").json()["status"] == "NOT_DONE"

        clock.advance(hours=2)
        assert client.get(f"/todos/{tid}").json()["status"] == "PAST_DUE"

    def test_swept_todo_is_frozen(self, client, app, clock):
        tid = create(client, due=T0 + timedelta(minutes=1))["id"]
        clock.advance(minutes=5)

        assert app.state.todo_service.run_past_due_sweep() == 1
        assert app.state.todo_service.run_past_due_sweep() == 0

        assert client.patch(f"/todos/{tid}/mark-done").status_code == 400
        assert client.get(f"/todos/{tid}").json()["status"] == "PAST_DUE"

    def test_default_list_shows_flip_then_drops_item(self, client):
        tid = create(client, due=T0 - timedelta(minutes=1))["id"]
        first = client.get("/todos").json()
        assert [(t["id"], t["status"]) for t in first] == [(tid, "PAST_DUE")]
        assert client.get("/todos").json() == []
        assert client.get("/todos?all=true").json()[0]["status"] == "PAST_DUE"


class TestValidationErrors:
    def test_create_empty_description(self, client):
        res = client.post("/todos", json={"description": "  ", "dueDatetime": "2099-01-01"})
        assert res.status_code == 400
        body = res.json()
        assert body["error"] == "Bad Request"
        assert body["message"] == "Request validation failed"
        assert isinstance(body["detail"], list)

    def test_create_bad_due_date(self, client):
        res = client.post("/todos", json={"description": "x", "dueDatetime": "not-a-date"})
        assert res.status_code == 400
        assert isinstance(res.json()["detail"], list)

    def test_create_missing_due_date(self, client):
        res = client.post("/todos", json={"description": "x"})
        assert res.status_code == 400

    def test_update_empty_description(self, client):
        tid = create(client)["id"]
        res = client.patch(f"/todos/{tid}/description", json={"description": ""})
        assert res.status_code == 400

    @pytest.mark.parametrize(
        "due", ["9999-12-31T23:30:00-05:00", "0001-01-01T00:30:00+05:00"]
    )
    def test_create_due_outside_utc_range(self, client, due):
        res = client.post("/todos", json={"description": "x", "dueDatetime": due})
        assert res.status_code == 400
        assert res.json()["message"] == "Request validation failed"
