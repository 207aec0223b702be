import time

from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from todo_list.errors import DuplicateId
from todo_list.main import create_app
from todo_list.models import DEFAULT_TASKS
from todo_list.settings import Settings

BASE = "/api/v1/tasks"


def get_state(client: TestClient) -> dict:
    res = client.get(f"{BASE}/")
    assert res.status_code == 200
    return res.json()


def visible_titles(client: TestClient) -> list:
    return [t["title"] for t in get_state(client)["items"]]


def assert_task_shape(task: dict):
    for key in ["id", "title", "description", "is_completed"]:
        assert key in task
    assert isinstance(task["id"], str)
    assert isinstance(task["title"], str)
    assert isinstance(task["is_completed"], bool)


def wait_until(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class TestHealth:
    def test_health_check(self, client: TestClient):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] == "sqlite"


class TestFirstRun:
    def test_defaults_are_seeded(self, client: TestClient):
        state = get_state(client)
        assert [t["title"] for t in state["items"]] == [t for t, _ in DEFAULT_TASKS]
        assert state["editing_id"] is None
        assert state["search_text"] == ""
        for task in state["items"]:
            assert_task_shape(task)

    def test_seed_only_once_across_restarts(self, settings: Settings):
        with TestClient(create_app(settings)) as first:
            for task in get_state(first)["items"]:
                assert first.delete(f"{BASE}/{task['id']}").status_code == 204
            assert get_state(first)["items"] == []

        with TestClient(create_app(settings)) as second:
            assert get_state(second)["items"] == []


class TestIntents:
    def test_add_uses_total_count(self, client: TestClient):
        res = client.post(f"{BASE}/")
        assert res.status_code == 201
        task = res.json()
        assert_task_shape(task)
        assert task["title"] == f"new task {len(DEFAULT_TASKS) + 1}"
        assert task["description"] == ""
        assert task["is_completed"] is False

    def test_get_task_and_not_found(self, client: TestClient):
        task = client.post(f"{BASE}/").json()
        res = client.get(f"{BASE}/{task['id']}")
        assert res.status_code == 200
        assert res.json() == task

        res_404 = client.get(f"{BASE}/does-not-exist")
        assert res_404.status_code == 404
        body = res_404.json()
        assert body["error"] == "NotFound"
        assert body["task_id"] == "does-not-exist"

    def test_editing_flow(self, client: TestClient):
        task = client.post(f"{BASE}/").json()

        res = client.put(f"{BASE}/editing", json={"task_id": task["id"]})
        assert res.status_code == 200
        assert res.json()["editing_id"] == task["id"]

        res = client.put(f"{BASE}/{task['id']}/title", json={"title": "Buy milk"})
        assert res.status_code == 200
        assert res.json()["title"] == "Buy milk"
        assert get_state(client)["editing_id"] is None

        client.put(f"{BASE}/editing", json={"task_id": task["id"]})
        res = client.delete(f"{BASE}/editing")
        assert res.status_code == 200
        assert res.json()["editing_id"] is None

    def test_begin_editing_unknown_task(self, client: TestClient):
        res = client.put(f"{BASE}/editing", json={"task_id": "nope"})
        assert res.status_code == 404
        assert get_state(client)["editing_id"] is None

    def test_set_title_not_found(self, client: TestClient):
        res = client.put(f"{BASE}/nope/title", json={"title": "x"})
        assert res.status_code == 404
        assert res.json()["error"] == "NotFound"

    def test_search(self, client: TestClient):
        task = client.post(f"{BASE}/").json()
        client.put(f"{BASE}/{task['id']}/title", json={"title": "Buy milk"})

        res = client.put(f"{BASE}/search", json={"text": "BUY"})
        assert res.status_code == 200
        state = res.json()
        assert state["search_text"] == "BUY"
        assert [t["title"] for t in state["items"]] == ["Buy milk"]

        client.put(f"{BASE}/search", json={"text": ""})
        assert len(visible_titles(client)) == len(DEFAULT_TASKS) + 1

    def test_delete_and_delete_again(self, client: TestClient):
        task = client.post(f"{BASE}/").json()
        res_del = client.delete(f"{BASE}/{task['id']}")
        assert res_del.status_code == 204
        assert res_del.text == ""
        assert client.get(f"{BASE}/{task['id']}").status_code == 404
        assert client.delete(f"{BASE}/{task['id']}").status_code == 404

    def test_delete_at_visible_position(self, client: TestClient):
        target = DEFAULT_TASKS[1][0]
        state = client.put(f"{BASE}/search", json={"text": "presentation"}).json()
        assert [t["title"] for t in state["items"]] == [target]

        res = client.delete(f"{BASE}/positions/0")
        assert res.status_code == 200
        assert res.json()["title"] == target

        client.put(f"{BASE}/search", json={"text": ""})
        assert target not in visible_titles(client)
        assert len(visible_titles(client)) == len(DEFAULT_TASKS) - 1

        assert client.delete(f"{BASE}/positions/99").status_code == 404

    def test_version_bumps_on_change(self, client: TestClient):
        before = get_state(client)["version"]
        client.post(f"{BASE}/")
        assert get_state(client)["version"] > before


class TestCompletion:
    def test_completed_task_is_removed_after_delay(self, client: TestClient):
        task = client.post(f"{BASE}/").json()
        res = client.post(f"{BASE}/{task['id']}/toggle")
        assert res.status_code == 200
        assert res.json()["is_completed"] is True
        assert get_state(client)["pending_deletions"] == [task["id"]]

        assert wait_until(lambda: client.get(f"{BASE}/{task['id']}").status_code == 404)
        assert get_state(client)["pending_deletions"] == []

    def test_reopened_task_survives(self, client: TestClient):
        task = client.post(f"{BASE}/").json()
        client.post(f"{BASE}/{task['id']}/toggle")
        res = client.post(f"{BASE}/{task['id']}/toggle")
        assert res.json()["is_completed"] is False

        time.sleep(0.6)
        res_get = client.get(f"{BASE}/{task['id']}")
        assert res_get.status_code == 200
        assert res_get.json()["is_completed"] is False

    def test_toggle_not_found(self, client: TestClient):
        assert client.post(f"{BASE}/nope/toggle").status_code == 404


class TestValidationErrors:
    def test_title_missing(self, client: TestClient):
        task = client.post(f"{BASE}/").json()
        res = client.put(f"{BASE}/{task['id']}/title", json={})
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)

    def test_blank_editing_id(self, client: TestClient):
        res = client.put(f"{BASE}/editing", json={"task_id": "   "})
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert "task_id must not be blank" in body["detail"][0]["msg"]
        assert body["detail"][0]["ctx"]["error"] == "task_id must not be blank"
        assert get_state(client)["editing_id"] is None

    def test_negative_position(self, client: TestClient):
        res = client.delete(f"{BASE}/positions/-1")
        assert res.status_code == 422


class TestServerErrors:
    def test_duplicate_id_maps_to_500_and_logs_error(self, settings: Settings):
        app = create_app(settings)

        @app.post("/collide")
        async def collide():
            raise DuplicateId("abc123")

        with TestClient(app) as c:
            with capture_logs() as logs:
                res = c.post("/collide")

        assert res.status_code == 500
        body = res.json()
        assert body["error"] == "DuplicateId"
        assert "abc123" in body["message"]
        errors = [e for e in logs if e["event"] == "duplicate_task_id"]
        assert errors and errors[0]["log_level"] == "error"
        assert errors[0]["task_id"] == "abc123"
