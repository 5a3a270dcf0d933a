from __future__ import annotations

from datetime import date, datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Storage-side representation of a todo row (snake_case column names).

    Fields:
    - id: Unique string identifier derived from the creation time in milliseconds
    - title: Display text (trimmed, non-empty)
    - completed: Boolean completion flag
    - assigned_to: Copy of the assignee's name at creation time (not a foreign key)
    - assigned_to_color: Copy of the assignee's color at creation time
    - due_date: Optional calendar date
    - priority: 'high' or 'normal'
    - category: Optional free-text label
    - created_at: UTC creation timestamp
    - updated_at: UTC last update timestamp, refreshed on every mutation
    """

    id: str
    title: str
    completed: bool
    assigned_to: str
    assigned_to_color: str
    due_date: Optional[date]
    priority: str
    category: Optional[str]
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class FamilyMemberEntity(TypedDict):
    """Storage-side representation of a family member row."""

    id: str
    name: str
    color: str
    created_at: datetime
