"""
Headless counterpart of the family board screen.

FamilyBoard owns the todo and member lists the screen renders. It talks to the
API through an injected ApiClient, mirrors every successfully obtained todo list
into a LocalCache, and reports outcomes as Notice objects (the "toasts"). Only
the initial load falls back to the cache; later failures leave state as is.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, List, Optional

from .client import ApiClient, ApiClientError
from .local_cache import LocalCache
from .schemas import FamilyMemberOut, Priority, TodoOut, TodoUpdate
from .seeds import DEFAULT_FAMILY_MEMBERS, SEED_TIMESTAMP

logger = logging.getLogger(__name__)

SOURCE_API = "api"
SOURCE_CACHE = "cache"

STATUS_ALL = "all"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"


@dataclass(frozen=True)
class Notice:
    level: str  # "success", "info" or "error"
    title: str
    description: Optional[str] = None


Notifier = Callable[[Notice], None]


def log_notice(notice: Notice) -> None:
    """Default notifier: write the notice to the log."""
    level = logging.ERROR if notice.level == "error" else logging.INFO
    logger.log(level, "%s%s", notice.title, f" ({notice.description})" if notice.description else "")


def default_family_members() -> List[FamilyMemberOut]:
    return [FamilyMemberOut(**m, created_at=SEED_TIMESTAMP) for m in DEFAULT_FAMILY_MEMBERS]


@dataclass
class TaskGroups:
    overdue: List[TodoOut] = field(default_factory=list)
    today: List[TodoOut] = field(default_factory=list)
    tomorrow: List[TodoOut] = field(default_factory=list)
    upcoming: List[TodoOut] = field(default_factory=list)
    no_due_date: List[TodoOut] = field(default_factory=list)
    completed: List[TodoOut] = field(default_factory=list)


@dataclass(frozen=True)
class Progress:
    total: int
    completed: int
    due_today: int

    @property
    def percent(self) -> int:
        return round(self.completed * 100 / self.total) if self.total else 0


def group_todos(todos: List[TodoOut], today: date) -> TaskGroups:
    """Split todos into the board's sections. Open todos are grouped by due date."""
    tomorrow = today + timedelta(days=1)
    groups = TaskGroups()
    for t in todos:
        if t.completed:
            groups.completed.append(t)
        elif t.due_date is None:
            groups.no_due_date.append(t)
        elif t.due_date < today:
            groups.overdue.append(t)
        elif t.due_date == today:
            groups.today.append(t)
        elif t.due_date == tomorrow:
            groups.tomorrow.append(t)
        else:
            groups.upcoming.append(t)
    return groups


# PUBLIC_INTERFACE
class FamilyBoard:
    """
    State holder for the board screen.

    Example:
        board = FamilyBoard(ApiClient.from_settings(settings), LocalCache(settings.local_cache_dir))
        board.load()
        board.add_todo("Buy milk", "Mom", "#ec4899", priority="high")
    """

    def __init__(self, client: ApiClient, cache: LocalCache, notify: Notifier = log_notice) -> None:
        self._client = client
        self._cache = cache
        self._notify = notify
        self.todos: List[TodoOut] = []
        self.family_members: List[FamilyMemberOut] = default_family_members()
        self.source: Optional[str] = None

    def _find(self, todo_id: str) -> Optional[TodoOut]:
        return next((t for t in self.todos if t.id == todo_id), None)

    def _replace(self, updated: TodoOut) -> None:
        self.todos = [updated if t.id == updated.id else t for t in self.todos]
        self._cache.save(self.todos)

    def _fail(self, title: str, error: ApiClientError) -> None:
        self._notify(Notice("error", title, error.message))

    def load(self) -> str:
        """
        Fetch todos and family members in parallel.

        On any API error both lists come from local fallbacks: the cached todo
        list and the default members. Returns the source used ("api" or "cache").
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="board-load") as pool:
            todos_future = pool.submit(self._client.list_todos)
            members_future = pool.submit(self._client.list_family_members)
            try:
                todos = todos_future.result()
                members = members_future.result()
            except ApiClientError as e:
                logger.warning("Loading from API failed, falling back to local cache: %s", e)
                self._fail("Could not reach the server, showing saved tasks", e)
                self.todos = self._cache.load()
                self.family_members = default_family_members()
                self.source = SOURCE_CACHE
                return self.source

        self.todos = todos
        self.family_members = members
        self._cache.save(self.todos)
        self.source = SOURCE_API
        return self.source

    def add_todo(
        self,
        title: str,
        assigned_to: str,
        assigned_to_color: str,
        priority: Priority = Priority.NORMAL,
        due_date: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Optional[TodoOut]:
        try:
            created = self._client.create_todo(
                title, assigned_to, assigned_to_color, priority=priority, due_date=due_date, category=category
            )
        except ApiClientError as e:
            self._fail("Failed to add task", e)
            return None
        self.todos = [created, *self.todos]
        self._cache.save(self.todos)
        self._notify(Notice("success", "Task added", title))
        return created

    def toggle_todo(self, todo_id: str) -> Optional[TodoOut]:
        todo = self._find(todo_id)
        if todo is None:
            return None
        try:
            updated = self._client.update_todo(todo_id, TodoUpdate(completed=not todo.completed))
        except ApiClientError as e:
            self._fail("Failed to update task", e)
            return None
        self._replace(updated)
        if updated.completed:
            self._notify(Notice("success", "Task completed!", todo.title))
        return updated

    def toggle_priority(self, todo_id: str) -> Optional[TodoOut]:
        todo = self._find(todo_id)
        if todo is None:
            return None
        new_priority = Priority.NORMAL if todo.priority == Priority.HIGH else Priority.HIGH
        try:
            updated = self._client.update_todo(todo_id, TodoUpdate(priority=new_priority))
        except ApiClientError as e:
            self._fail("Failed to update priority", e)
            return None
        self._replace(updated)
        return updated

    def delete_todo(self, todo_id: str) -> bool:
        todo = self._find(todo_id)
        try:
            self._client.delete_todo(todo_id)
        except ApiClientError as e:
            self._fail("Failed to delete task", e)
            return False
        self.todos = [t for t in self.todos if t.id != todo_id]
        self._cache.save(self.todos)
        self._notify(Notice("info", "Task deleted", todo.title if todo else None))
        return True

    def visible_todos(self, status: str = STATUS_ALL, member: Optional[str] = None) -> List[TodoOut]:
        """Todos matching a status filter and, unless member is None/"all", an assignee name."""
        items = self.todos
        if status == STATUS_ACTIVE:
            items = [t for t in items if not t.completed]
        elif status == STATUS_COMPLETED:
            items = [t for t in items if t.completed]
        if member and member != STATUS_ALL:
            items = [t for t in items if t.assigned_to == member]
        return items

    def groups(self, today: date, status: str = STATUS_ALL, member: Optional[str] = None) -> TaskGroups:
        return group_todos(self.visible_todos(status, member), today)

    def progress(self, today: date) -> Progress:
        return Progress(
            total=len(self.todos),
            completed=sum(1 for t in self.todos if t.completed),
            due_today=sum(1 for t in self.todos if t.due_date == today),
        )
