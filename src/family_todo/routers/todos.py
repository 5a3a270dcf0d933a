from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..errors import NotFound, ValidationError
from ..repositories import Repository, get_repository
from ..schemas import (
    DeleteTodoResult,
    TodoCreate,
    TodoEnvelope,
    TodoListEnvelope,
    TodoOut,
    TodoUpdate,
    TodoUpdateById,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

_ERROR_RESPONSES = {
    400: {"description": "Missing or invalid fields"},
    404: {"description": "Todo not found"},
    500: {"description": "Storage unavailable"},
}


def _not_found(todo_id: str) -> NotFound:
    return NotFound(f"Todo with id {todo_id} not found")


def _apply_update(repo: Repository, todo_id: str, patch: TodoUpdate) -> TodoEnvelope:
    if not patch.changes():
        raise ValidationError("No fields to update")
    updated = repo.update_todo(todo_id, patch)
    if updated is None:
        raise _not_found(todo_id)
    return TodoEnvelope(todo=TodoOut(**updated))


def _apply_delete(repo: Repository, todo_id: str) -> DeleteTodoResult:
    removed = repo.delete_todo(todo_id)
    if removed is None:
        raise _not_found(todo_id)
    logger.info("Deleted todo %s (%r)", todo_id, removed["title"])
    return DeleteTodoResult(success=True)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListEnvelope,
    summary="List Todos",
    description="List all todos, newest first.",
    responses={500: _ERROR_RESPONSES[500]},
)
def list_todos(repo: Repository = Depends(get_repository)) -> TodoListEnvelope:
    """
    Return every todo ordered by creation time, descending. No pagination.
    """
    return TodoListEnvelope(todos=[TodoOut(**t) for t in repo.list_todos()])


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new todo and return the stored record.",
    responses={400: _ERROR_RESPONSES[400], 500: _ERROR_RESPONSES[500]},
)
def create_todo(payload: TodoCreate, repo: Repository = Depends(get_repository)) -> TodoEnvelope:
    """
    Create a new todo. title, assignedTo and assignedToColor are required.
    """
    created = repo.create_todo(payload)
    logger.info("Created todo %s for %s", created["id"], created["assigned_to"])
    return TodoEnvelope(todo=TodoOut(**created))


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=TodoEnvelope,
    summary="Update Todo (id in body)",
    description="Coalesce-merge the given fields into the todo named by the body's id.",
    responses=_ERROR_RESPONSES,
)
def update_todo_by_body(payload: TodoUpdateById, repo: Repository = Depends(get_repository)) -> TodoEnvelope:
    return _apply_update(repo, payload.id, payload)


# PUBLIC_INTERFACE
@router.delete(
    "",
    response_model=DeleteTodoResult,
    summary="Delete Todo (id in query)",
    responses={400: _ERROR_RESPONSES[400], 404: _ERROR_RESPONSES[404]},
)
def delete_todo_by_query(
    todo_id: Optional[str] = Query(None, alias="id", description="Id of the todo to delete"),
    repo: Repository = Depends(get_repository),
) -> DeleteTodoResult:
    if not todo_id:
        raise ValidationError("Todo id is required")
    return _apply_delete(repo, todo_id)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Get Todo",
    description="Get a single todo by id.",
    responses={404: _ERROR_RESPONSES[404]},
)
def get_todo(todo_id: str, repo: Repository = Depends(get_repository)) -> TodoEnvelope:
    item = repo.get_todo(todo_id)
    if item is None:
        raise _not_found(todo_id)
    return TodoEnvelope(todo=TodoOut(**item))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Update Todo",
    description=(
        "Partially update a todo. Only fields present (and non-null) in the body are "
        "changed; updatedAt is always refreshed."
    ),
    responses=_ERROR_RESPONSES,
)
def update_todo(todo_id: str, payload: TodoUpdate, repo: Repository = Depends(get_repository)) -> TodoEnvelope:
    """
    Partial update of a todo.
    """
    return _apply_update(repo, todo_id, payload)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=DeleteTodoResult,
    summary="Delete Todo",
    description="Delete a todo by id. Repeating the call yields 404.",
    responses={404: _ERROR_RESPONSES[404]},
)
def delete_todo(todo_id: str, repo: Repository = Depends(get_repository)) -> DeleteTodoResult:
    return _apply_delete(repo, todo_id)
