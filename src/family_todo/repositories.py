from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, List, Optional

from fastapi import Request

from .errors import Conflict
from .models import FamilyMemberEntity, TodoEntity
from .schemas import FamilyMemberCreate, FamilyMemberUpdate, TodoCreate, TodoUpdate
from .seeds import DEFAULT_FAMILY_MEMBERS, DEFAULT_TODOS
from .settings import Settings
from .utils import timestamp_id, utc_now

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for the todo and family member tables."""

    # Todos

    @abstractmethod
    def list_todos(self) -> List[TodoEntity]:
        """Return all todos, newest first."""

    @abstractmethod
    def get_todo(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a todo by id, or None if not found."""

    @abstractmethod
    def create_todo(self, data: TodoCreate) -> TodoEntity:
        """Create a todo with a fresh timestamp-derived id and return it."""

    @abstractmethod
    def update_todo(self, todo_id: str, patch: TodoUpdate) -> Optional[TodoEntity]:
        """
        Coalesce-merge the non-null fields of ``patch`` into a todo and refresh
        updated_at. Return the updated todo or None if not found.
        """

    @abstractmethod
    def delete_todo(self, todo_id: str) -> Optional[TodoEntity]:
        """Delete a todo. Return its former content, or None if not found."""

    @abstractmethod
    def count_todos_assigned_to(self, name: str) -> int:
        """Count todos whose denormalized assignee name equals ``name``."""

    # Family members

    @abstractmethod
    def list_members(self) -> List[FamilyMemberEntity]:
        """Return all family members, oldest first."""

    @abstractmethod
    def get_member(self, member_id: str) -> Optional[FamilyMemberEntity]:
        """Return a family member by id, or None if not found."""

    @abstractmethod
    def create_member(self, data: FamilyMemberCreate) -> FamilyMemberEntity:
        """Create a family member. Raises Conflict if the id is taken."""

    @abstractmethod
    def update_member(self, member_id: str, patch: FamilyMemberUpdate) -> Optional[FamilyMemberEntity]:
        """Coalesce-merge a patch into a member. Return it or None if not found."""

    @abstractmethod
    def delete_member(self, member_id: str) -> Optional[FamilyMemberEntity]:
        """Delete a member. Return its former content, or None if not found."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self, seed: bool = True) -> None:
        self._lock = RLock()
        self._todos: Dict[str, TodoEntity] = {}
        self._members: Dict[str, FamilyMemberEntity] = {}
        # Insertion sequence, used to order rows sharing a timestamp
        self._seq: Dict[str, int] = {}
        self._next_seq = 0
        self._last_id = 0
        if seed:
            self._seed()

    def _seed(self) -> None:
        now = utc_now()
        with self._lock:
            for m in DEFAULT_FAMILY_MEMBERS:
                self._members[m["id"]] = {**m, "created_at": now}  # type: ignore[typeddict-item]
            for t in DEFAULT_TODOS:
                self._todos[t["id"]] = {**t, "created_at": now, "updated_at": now}  # type: ignore[typeddict-item]
                self._remember(t["id"])
        logger.info("Seeded in-memory store with %d members and %d todos", len(DEFAULT_FAMILY_MEMBERS), len(DEFAULT_TODOS))

    def _remember(self, todo_id: str) -> None:
        self._seq[todo_id] = self._next_seq
        self._next_seq += 1

    def _allocate_id(self) -> str:
        with self._lock:
            i = timestamp_id(utc_now(), self._last_id)
            while str(i) in self._todos:
                i += 1
            self._last_id = i
            return str(i)

    # Todos

    def list_todos(self) -> List[TodoEntity]:
        with self._lock:
            items = sorted(
                self._todos.values(),
                key=lambda t: (t["created_at"], self._seq.get(t["id"], 0)),
                reverse=True,
            )
            # Return copies to avoid external mutation
            return [t.copy() for t in items]

    def get_todo(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._todos.get(todo_id)
            return None if item is None else item.copy()

    def create_todo(self, data: TodoCreate) -> TodoEntity:
        now = utc_now()
        with self._lock:
            entity: TodoEntity = {
                "id": self._allocate_id(),
                "title": data.title,
                "completed": False,
                "assigned_to": data.assigned_to,
                "assigned_to_color": data.assigned_to_color,
                "due_date": data.due_date,
                "priority": data.priority,
                "category": data.category,
                "created_at": now,
                "updated_at": now,
            }
            self._todos[entity["id"]] = entity
            self._remember(entity["id"])
            return entity.copy()

    def update_todo(self, todo_id: str, patch: TodoUpdate) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return None

            # Update only provided fields
            updated = existing.copy()
            updated.update(patch.changes())  # type: ignore[typeddict-item]
            updated["updated_at"] = utc_now(after=existing["updated_at"])

            self._todos[todo_id] = updated
            return updated.copy()

    def delete_todo(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            self._seq.pop(todo_id, None)
            return self._todos.pop(todo_id, None)

    def count_todos_assigned_to(self, name: str) -> int:
        with self._lock:
            return sum(1 for t in self._todos.values() if t["assigned_to"] == name)

    # Family members

    def list_members(self) -> List[FamilyMemberEntity]:
        with self._lock:
            # dict preserves insertion order, which breaks created_at ties
            items = sorted(self._members.values(), key=lambda m: m["created_at"])
            return [m.copy() for m in items]

    def get_member(self, member_id: str) -> Optional[FamilyMemberEntity]:
        with self._lock:
            item = self._members.get(member_id)
            return None if item is None else item.copy()

    def create_member(self, data: FamilyMemberCreate) -> FamilyMemberEntity:
        with self._lock:
            if data.id in self._members:
                raise Conflict(f"Family member with id {data.id} already exists")
            entity: FamilyMemberEntity = {
                "id": data.id,
                "name": data.name,
                "color": data.color,
                "created_at": utc_now(),
            }
            self._members[data.id] = entity
            return entity.copy()

    def update_member(self, member_id: str, patch: FamilyMemberUpdate) -> Optional[FamilyMemberEntity]:
        with self._lock:
            existing = self._members.get(member_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated.update(patch.changes())  # type: ignore[typeddict-item]
            self._members[member_id] = updated
            return updated.copy()

    def delete_member(self, member_id: str) -> Optional[FamilyMemberEntity]:
        with self._lock:
            return self._members.pop(member_id, None)


# PUBLIC_INTERFACE
def build_repository(settings: Settings) -> Repository:
    """
    Construct the repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by settings.sqlite_db_path
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path, seed=settings.seed_defaults)
    return InMemoryRepository(seed=settings.seed_defaults)


# PUBLIC_INTERFACE
def get_repository(request: Request) -> Repository:
    """FastAPI dependency returning the repository the application was built with."""
    return request.app.state.repository
