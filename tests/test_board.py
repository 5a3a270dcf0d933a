from datetime import date, datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from family_todo.board import SOURCE_API, SOURCE_CACHE, FamilyBoard, Notice, group_todos
from family_todo.client import ApiClient, ApiClientError
from family_todo.local_cache import LocalCache, seed_todos
from family_todo.main import create_app
from family_todo.schemas import FamilyMemberOut, TodoOut
from family_todo.settings import Settings

from .fakes import FakeApiClient

TODAY = date(2025, 10, 16)
NOW = datetime(2025, 10, 16, 8, 0, tzinfo=timezone.utc)


def todo(todo_id, title="Task", completed=False, due_date=None, assigned_to="Mom", priority="normal") -> TodoOut:
    return TodoOut(
        id=todo_id,
        title=title,
        completed=completed,
        assigned_to=assigned_to,
        assigned_to_color="#ec4899",
        due_date=due_date,
        priority=priority,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture()
def notices():
    return []


@pytest.fixture()
def cache(tmp_path) -> LocalCache:
    return LocalCache(tmp_path / "cache")


@pytest.fixture()
def fake() -> FakeApiClient:
    return FakeApiClient(
        todos=[todo("2", "Finish homework", assigned_to="Son"), todo("1", "Shop for dinner")],
        members=[
            FamilyMemberOut(id="mom", name="Mom", color="#ec4899", created_at=NOW),
            FamilyMemberOut(id="son", name="Son", color="#10b981", created_at=NOW),
        ],
    )


@pytest.fixture()
def board(fake, cache, notices) -> FamilyBoard:
    return FamilyBoard(fake, cache, notify=notices.append)


class TestLoad:
    def test_load_from_api_mirrors_into_cache(self, board, fake, cache):
        assert board.load() == SOURCE_API
        assert board.todos == fake.todos
        assert [m.id for m in board.family_members] == ["mom", "son"]
        assert cache.load() == fake.todos
        assert sorted(fake.calls) == ["list_family_members", "list_todos"]

    def test_offline_falls_back_to_cache(self, board, fake, cache, notices):
        saved = [todo("9", "Saved earlier")]
        cache.save(saved)
        fake.offline = True

        assert board.load() == SOURCE_CACHE
        assert board.todos == saved
        assert [m.id for m in board.family_members] == ["dad", "mom", "son", "daughter"]
        assert notices[-1].level == "error"

    def test_offline_without_cache_uses_seed_list(self, board, fake):
        fake.offline = True
        board.load()
        assert board.todos == seed_todos()

    def test_server_error_also_falls_back(self, board, fake):
        fake.fail_with = ApiClientError(500, "Storage unavailable")
        assert board.load() == SOURCE_CACHE

    def test_unexpected_api_body_falls_back(self, tmp_path, cache, notices):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/todos":
                return httpx.Response(200, json={"items": []})
            return httpx.Response(200, json={"familyMembers": []})

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://todo.invalid")
        board = FamilyBoard(ApiClient(http), cache, notify=notices.append)

        assert board.load() == SOURCE_CACHE
        assert board.todos == seed_todos()
        assert notices[-1].description == "Unexpected response body"

    def test_load_against_real_api(self, tmp_path, cache):
        app = create_app(Settings(persistence_backend="memory"))
        board = FamilyBoard(ApiClient(TestClient(app)), cache, notify=lambda n: None)

        assert board.load() == SOURCE_API
        assert len(board.todos) == 5
        assert [m.name for m in board.family_members] == ["Dad", "Mom", "Son", "Daughter"]


class TestHandlers:
    def test_add_todo(self, board, cache, notices):
        board.load()
        created = board.add_todo("Buy milk", "Mom", "#ec4899", priority="high", due_date="2025-10-16")

        assert created is not None
        assert board.todos[0] == created
        assert cache.load()[0] == created
        assert notices[-1] == Notice("success", "Task added", "Buy milk")

    def test_add_failure_keeps_state(self, board, fake, cache, notices):
        board.load()
        before = list(board.todos)
        fake.fail_with = ApiClientError(400, "Missing or invalid fields")

        assert board.add_todo("", "Mom", "#ec4899") is None
        assert board.todos == before
        assert cache.load() == before
        assert notices[-1] == Notice("error", "Failed to add task", "Missing or invalid fields")

    def test_toggle_todo(self, board, notices):
        board.load()
        updated = board.toggle_todo("1")
        assert updated.completed is True
        assert next(t for t in board.todos if t.id == "1").completed is True
        assert notices[-1] == Notice("success", "Task completed!", "Shop for dinner")

        again = board.toggle_todo("1")
        assert again.completed is False

    def test_toggle_unknown_id_is_ignored(self, board, fake):
        board.load()
        assert board.toggle_todo("nope") is None
        assert "update_todo" not in fake.calls

    def test_toggle_priority(self, board, cache):
        board.load()
        assert board.toggle_priority("1").priority == "high"
        assert board.toggle_priority("1").priority == "normal"
        assert next(t for t in cache.load() if t.id == "1").priority == "normal"

    def test_delete_todo(self, board, cache, notices):
        board.load()
        assert board.delete_todo("2") is True
        assert [t.id for t in board.todos] == ["1"]
        assert [t.id for t in cache.load()] == ["1"]
        assert notices[-1] == Notice("info", "Task deleted", "Finish homework")

    def test_failures_after_load_do_not_fall_back(self, board, fake, notices):
        board.load()
        fake.offline = True
        assert board.delete_todo("2") is False
        assert board.source == SOURCE_API
        assert [t.id for t in board.todos] == ["2", "1"]
        assert notices[-1].title == "Failed to delete task"


class TestViews:
    def test_group_todos(self):
        todos = [
            todo("a", due_date=date(2025, 10, 15)),
            todo("b", due_date=TODAY),
            todo("c", due_date=date(2025, 10, 17)),
            todo("d", due_date=date(2025, 10, 20)),
            todo("e"),
            todo("f", completed=True, due_date=date(2025, 10, 1)),
        ]
        groups = group_todos(todos, TODAY)
        assert [t.id for t in groups.overdue] == ["a"]
        assert [t.id for t in groups.today] == ["b"]
        assert [t.id for t in groups.tomorrow] == ["c"]
        assert [t.id for t in groups.upcoming] == ["d"]
        assert [t.id for t in groups.no_due_date] == ["e"]
        assert [t.id for t in groups.completed] == ["f"]

    def test_filters_and_progress(self, board, fake):
        fake.todos = [
            todo("1", completed=True, due_date=TODAY),
            todo("2", due_date=TODAY, assigned_to="Son"),
            todo("3", assigned_to="Son"),
        ]
        board.load()

        assert [t.id for t in board.visible_todos("active")] == ["2", "3"]
        assert [t.id for t in board.visible_todos("completed")] == ["1"]
        assert [t.id for t in board.visible_todos("all", "Son")] == ["2", "3"]
        assert [t.id for t in board.visible_todos("active", "Mom")] == []
        assert [t.id for t in board.groups(TODAY, member="Son").today] == ["2"]

        progress = board.progress(TODAY)
        assert (progress.total, progress.completed, progress.due_today) == (3, 1, 2)
        assert progress.percent == 33
