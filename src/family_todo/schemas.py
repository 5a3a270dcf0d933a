from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

# Shared type for incoming due dates: a date, a datetime or an ISO8601 string
DueDateInput = Union[date, datetime, str]


class Priority(str, Enum):
    HIGH = "high"
    NORMAL = "normal"


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[date]:
    """
    Normalize dueDate input into a calendar date.
    - Empty strings and None mean "no due date".
    - ISO date strings are parsed as-is; ISO datetime strings keep only their date part.
    - datetime values are truncated to their date.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return date.fromisoformat(s)
        except ValueError:
            try:
                return datetime.fromisoformat(s).date()
            except ValueError as e:
                raise ValueError(
                    "Invalid dueDate format. Use an ISO8601 date string (e.g., '2025-10-16')."
                ) from e

    raise ValueError("Invalid type for dueDate; expected date or ISO8601 string.")


def _require_text(value: Optional[str], name: str) -> str:
    if value is None:
        raise ValueError(f"{name} is required")
    s = value.strip()
    if not s:
        raise ValueError(f"{name} must not be empty")
    return s


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    s = value.strip()
    return s or None


class CamelModel(BaseModel):
    """
    Base for every wire schema: snake_case attributes, camelCase JSON.

    Either spelling is accepted on input; FastAPI serializes responses by alias.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# PUBLIC_INTERFACE
class TodoCreate(CamelModel):
    """
    Schema for creating a new todo.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "assignedTo": "Mom",
                "assignedToColor": "#ec4899",
                "priority": "high",
                "dueDate": "2025-10-16",
                "category": "Shopping",
            }
        }
    )

    title: str = Field(..., description="Display text of the todo", min_length=1, max_length=500)
    assigned_to: str = Field(..., description="Assignee display name", min_length=1, max_length=100)
    assigned_to_color: str = Field(..., description="Assignee color (#rrggbb)", min_length=1, max_length=7)
    priority: Priority = Field(default=Priority.NORMAL, validate_default=True, description="Priority: high or normal")
    due_date: Optional[date] = Field(default=None, description="Optional due date (ISO8601 date)")
    category: Optional[str] = Field(default=None, description="Optional free-text label", max_length=100)

    @field_validator("title", "assigned_to", "assigned_to_color")
    @classmethod
    def validate_required_text(cls, v: str, info: ValidationInfo) -> str:
        """
        Strip whitespace and reject empty values.
        """
        return _require_text(v, to_camel(info.field_name))

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: Optional[str]) -> Optional[str]:
        return _optional_text(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TodoUpdate(CamelModel):
    """
    Typed patch for an existing todo.

    Every field is optional. Fields left as None keep their stored value
    (coalesce-merge); there is no way to clear a field through a patch.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "completed": True,
                "priority": "normal",
            }
        }
    )

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    priority: Optional[Priority] = Field(default=None)
    assigned_to: Optional[str] = Field(default=None, min_length=1, max_length=100)
    assigned_to_color: Optional[str] = Field(default=None, min_length=1, max_length=7)
    due_date: Optional[date] = Field(default=None)
    category: Optional[str] = Field(default=None, max_length=100)

    @field_validator("title", "assigned_to", "assigned_to_color")
    @classmethod
    def validate_text(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is None:
            return v
        return _require_text(v, to_camel(info.field_name))

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: Optional[str]) -> Optional[str]:
        return _optional_text(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[date]:
        return _parse_due_date(v)

    def changes(self) -> Dict[str, Any]:
        """Return the fields this patch overwrites, keyed by storage name."""
        return self.model_dump(exclude_none=True, exclude={"id"})


class TodoUpdateById(TodoUpdate):
    """Patch body for ``PUT /todos`` carrying the target id inline."""

    id: str = Field(..., min_length=1, max_length=50)


# PUBLIC_INTERFACE
class TodoOut(CamelModel):
    """
    Schema returned by the API for a todo.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "1760572800000",
                "title": "Buy milk",
                "completed": False,
                "assignedTo": "Mom",
                "assignedToColor": "#ec4899",
                "dueDate": "2025-10-16",
                "priority": "high",
                "category": None,
                "createdAt": "2025-10-16T00:00:00Z",
                "updatedAt": "2025-10-16T00:00:00Z",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the todo")
    title: str
    completed: bool = False
    assigned_to: str
    assigned_to_color: str
    due_date: Optional[date] = None
    priority: Priority = Field(default=Priority.NORMAL, validate_default=True)
    category: Optional[str] = None
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class FamilyMemberCreate(CamelModel):
    """
    Schema for creating a family member. The id is chosen by the caller (e.g. 'mom').
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"id": "grandma", "name": "Grandma", "color": "#8b5cf6"}}
    )

    id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(..., min_length=1, max_length=7)

    @field_validator("id", "name", "color")
    @classmethod
    def validate_required_text(cls, v: str, info: ValidationInfo) -> str:
        return _require_text(v, info.field_name)


class FamilyMemberUpdate(CamelModel):
    """Typed patch for a family member; None keeps the stored value."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, min_length=1, max_length=7)

    @field_validator("name", "color")
    @classmethod
    def validate_text(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if v is None:
            return v
        return _require_text(v, info.field_name)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"id"})


class FamilyMemberUpdateById(FamilyMemberUpdate):
    id: str = Field(..., min_length=1, max_length=50)


# PUBLIC_INTERFACE
class FamilyMemberOut(CamelModel):
    """
    Schema returned by the API for a family member.
    """

    id: str
    name: str
    color: str
    created_at: datetime


# Response envelopes


class TodoEnvelope(CamelModel):
    todo: TodoOut


class TodoListEnvelope(CamelModel):
    todos: List[TodoOut]


class DeleteTodoResult(CamelModel):
    success: bool = True


class FamilyMemberEnvelope(CamelModel):
    family_member: FamilyMemberOut


class FamilyMemberListEnvelope(CamelModel):
    family_members: List[FamilyMemberOut]


class DeleteFamilyMemberResult(CamelModel):
    message: str
    deleted_member: FamilyMemberOut
