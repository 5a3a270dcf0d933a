from datetime import date

import httpx
import pytest

from family_todo.client import ApiClient, ApiClientError
from family_todo.schemas import FamilyMemberUpdate, TodoUpdate


@pytest.fixture()
def api(client) -> ApiClient:
    return ApiClient(client)


class TestTodoCalls:
    def test_create_then_list(self, api):
        created = api.create_todo("Buy milk", "Mom", "#ec4899", priority="high", due_date="2025-10-16")

        todos = api.list_todos()
        assert todos == [created]
        todo = todos[0]
        assert todo.title == "Buy milk"
        assert todo.assigned_to == "Mom"
        assert todo.assigned_to_color == "#ec4899"
        assert todo.priority == "high"
        assert todo.due_date == date(2025, 10, 16)
        assert todo.completed is False

    def test_update(self, api):
        created = api.create_todo("Fold the laundry", "Mom", "#ec4899")
        updated = api.update_todo(created.id, TodoUpdate(completed=True))
        assert updated.id == created.id
        assert updated.completed is True
        assert updated.updated_at > created.updated_at

    def test_delete_and_repeat(self, api):
        created = api.create_todo("Take out the trash", "Dad", "#3b82f6")
        assert api.delete_todo(created.id) is True

        with pytest.raises(ApiClientError) as excinfo:
            api.delete_todo(created.id)
        assert excinfo.value.status_code == 404
        assert excinfo.value.message == f"Todo with id {created.id} not found"
        assert str(excinfo.value) == f"HTTP 404: Todo with id {created.id} not found"

    def test_validation_error_is_raised_as_client_error(self, api):
        with pytest.raises(ApiClientError) as excinfo:
            api.create_todo("", "Mom", "#ec4899")
        assert excinfo.value.status_code == 400
        assert excinfo.value.message == "Missing or invalid fields"
        assert excinfo.value.details

    def test_empty_patch(self, api):
        created = api.create_todo("Piano practice", "Daughter", "#f59e0b")
        with pytest.raises(ApiClientError) as excinfo:
            api.update_todo(created.id, TodoUpdate())
        assert excinfo.value.status_code == 400
        assert excinfo.value.message == "No fields to update"


class TestFamilyMemberCalls:
    def test_lifecycle(self, api):
        member = api.create_family_member("grandpa", "Grandpa", "#64748b")
        assert [m.id for m in api.list_family_members()] == ["grandpa"]

        renamed = api.update_family_member("grandpa", FamilyMemberUpdate(name="Grandad"))
        assert renamed.name == "Grandad"
        assert renamed.color == member.color

        deleted = api.delete_family_member("grandpa")
        assert deleted.id == "grandpa"
        assert api.list_family_members() == []

    def test_conflicts(self, api):
        api.create_family_member("mom", "Mom", "#ec4899")
        with pytest.raises(ApiClientError) as dup:
            api.create_family_member("mom", "Mother", "#000000")
        assert dup.value.status_code == 409

        api.create_todo("Shop for dinner", "Mom", "#ec4899")
        with pytest.raises(ApiClientError) as blocked:
            api.delete_family_member("mom")
        assert blocked.value.status_code == 409
        assert blocked.value.details == "1 todo(s) reference this member"


class TestTransportFailures:
    def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        api = ApiClient(httpx.Client(transport=httpx.MockTransport(handler), base_url="http://todo.invalid"))
        with pytest.raises(ApiClientError) as excinfo:
            api.list_todos()
        assert excinfo.value.status_code is None
        assert "Connection refused" in excinfo.value.message

    def test_non_json_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad gateway")

        with ApiClient(httpx.Client(transport=httpx.MockTransport(handler), base_url="http://todo.invalid")) as api:
            with pytest.raises(ApiClientError) as excinfo:
                api.list_family_members()
        assert excinfo.value.status_code == 502
        assert excinfo.value.message == "HTTP 502"

    def test_no_retries(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            return httpx.Response(500, json={"error": "Storage unavailable"})

        api = ApiClient(httpx.Client(transport=httpx.MockTransport(handler), base_url="http://todo.invalid"))
        with pytest.raises(ApiClientError) as excinfo:
            api.delete_todo("1")
        assert excinfo.value.message == "Storage unavailable"
        assert calls == ["/todos/1"]

    def test_unexpected_success_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"items": []})

        api = ApiClient(httpx.Client(transport=httpx.MockTransport(handler), base_url="http://todo.invalid"))
        with pytest.raises(ApiClientError) as excinfo:
            api.list_todos()
        assert excinfo.value.status_code == 200
        assert excinfo.value.message == "Unexpected response body"
        assert "todos" in excinfo.value.details

    def test_malformed_record_in_success_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"familyMembers": [{"id": "mom"}]})

        api = ApiClient(httpx.Client(transport=httpx.MockTransport(handler), base_url="http://todo.invalid"))
        with pytest.raises(ApiClientError) as excinfo:
            api.list_family_members()
        assert excinfo.value.message == "Unexpected response body"
