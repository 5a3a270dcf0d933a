from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .schemas import (
    DeleteFamilyMemberResult,
    DeleteTodoResult,
    FamilyMemberEnvelope,
    FamilyMemberListEnvelope,
    FamilyMemberOut,
    FamilyMemberUpdate,
    Priority,
    TodoEnvelope,
    TodoListEnvelope,
    TodoOut,
    TodoUpdate,
)
from .settings import Settings

logger = logging.getLogger(__name__)

_Envelope = TypeVar("_Envelope", bound=BaseModel)


# PUBLIC_INTERFACE
class ApiClientError(Exception):
    """
    Raised for every failed API call.

    status_code is the HTTP status of the response, or None when the request
    never got one (connection refused, DNS failure, timeout...).
    """

    def __init__(self, status_code: Optional[int], message: str, details: Optional[str] = None) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details
        label = f"HTTP {status_code}" if status_code is not None else "Network error"
        super().__init__(f"{label}: {message}")


# PUBLIC_INTERFACE
class ApiClient:
    """
    Thin client for the Family Todo HTTP API.

    Every method returns the decoded payload on success and raises ApiClientError
    otherwise. There are no retries, no request coalescing and no timeouts beyond
    what the given httpx.Client is configured with.

    The httpx client is injected; fastapi.testclient.TestClient works as well.
    """

    def __init__(self, http: httpx.Client) -> None:
        self._http = http

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiClient":
        return cls(httpx.Client(base_url=settings.api_base_url))

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _request(self, envelope: Type[_Envelope], method: str, path: str, **kwargs: Any) -> _Envelope:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiClientError(None, str(e) or type(e).__name__) from e

        if response.is_success:
            try:
                data = response.json()
            except ValueError as e:
                raise ApiClientError(response.status_code, "Invalid JSON in response") from e
            try:
                return envelope.model_validate(data)
            except PydanticValidationError as e:
                logger.warning("%s %s returned an unexpected body: %s", method, path, e)
                raise ApiClientError(response.status_code, "Unexpected response body", details=str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("error") or f"HTTP {response.status_code}"
        details = body.get("details")
        logger.debug("%s %s -> %s %s", method, path, response.status_code, message)
        raise ApiClientError(response.status_code, str(message), details if isinstance(details, str) else None)

    @staticmethod
    def _body(model: Union[TodoUpdate, FamilyMemberUpdate]) -> Dict[str, Any]:
        return model.model_dump(mode="json", by_alias=True, exclude_none=True)

    # Todos

    def list_todos(self) -> List[TodoOut]:
        return self._request(TodoListEnvelope, "GET", "/todos").todos

    def create_todo(
        self,
        title: str,
        assigned_to: str,
        assigned_to_color: str,
        priority: Priority = Priority.NORMAL,
        due_date: Optional[str] = None,
        category: Optional[str] = None,
    ) -> TodoOut:
        # Validation happens server-side so bad input surfaces as an ApiClientError
        payload: Dict[str, Any] = {
            "title": title,
            "assignedTo": assigned_to,
            "assignedToColor": assigned_to_color,
            "priority": getattr(priority, "value", priority),
        }
        if due_date is not None:
            payload["dueDate"] = due_date
        if category is not None:
            payload["category"] = category
        return self._request(TodoEnvelope, "POST", "/todos", json=payload).todo

    def update_todo(self, todo_id: str, patch: TodoUpdate) -> TodoOut:
        return self._request(TodoEnvelope, "PUT", f"/todos/{quote(todo_id, safe='')}", json=self._body(patch)).todo

    def delete_todo(self, todo_id: str) -> bool:
        return self._request(DeleteTodoResult, "DELETE", f"/todos/{quote(todo_id, safe='')}").success

    # Family members

    def list_family_members(self) -> List[FamilyMemberOut]:
        return self._request(FamilyMemberListEnvelope, "GET", "/family-members").family_members

    def create_family_member(self, member_id: str, name: str, color: str) -> FamilyMemberOut:
        payload = {"id": member_id, "name": name, "color": color}
        return self._request(FamilyMemberEnvelope, "POST", "/family-members", json=payload).family_member

    def update_family_member(self, member_id: str, patch: FamilyMemberUpdate) -> FamilyMemberOut:
        body = {"id": member_id, **self._body(patch)}
        return self._request(FamilyMemberEnvelope, "PUT", "/family-members", json=body).family_member

    def delete_family_member(self, member_id: str) -> FamilyMemberOut:
        return self._request(DeleteFamilyMemberResult, "DELETE", "/family-members", params={"id": member_id}).deleted_member
