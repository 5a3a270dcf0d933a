import pytest


def create_member(client, member_id="grandma", name="Grandma", color="#8b5cf6") -> dict:
    res = client.post("/family-members", json={"id": member_id, "name": name, "color": color})
    assert res.status_code == 201, res.text
    return res.json()["familyMember"]


def create_todo_for(client, name, color="#ec4899", title="Chore") -> dict:
    res = client.post("/todos", json={"title": title, "assignedTo": name, "assignedToColor": color})
    assert res.status_code == 201, res.text
    return res.json()["todo"]


class TestFamilyMembersCRUD:
    def test_create_and_list(self, client):
        member = create_member(client)
        assert member["id"] == "grandma"
        assert member["name"] == "Grandma"
        assert member["color"] == "#8b5cf6"
        assert "createdAt" in member

        res = client.get("/family-members")
        assert res.status_code == 200
        assert res.json() == {"familyMembers": [member]}

    def test_list_is_oldest_first(self, client):
        create_member(client, "dad", "Dad", "#3b82f6")
        create_member(client, "mom", "Mom", "#ec4899")
        create_member(client, "son", "Son", "#10b981")
        ids = [m["id"] for m in client.get("/family-members").json()["familyMembers"]]
        assert ids == ["dad", "mom", "son"]

    def test_duplicate_id_conflicts_without_touching_existing(self, client):
        original = create_member(client, "mom", "Mom", "#ec4899")

        res = client.post("/family-members", json={"id": "mom", "name": "Mother", "color": "#000000"})
        assert res.status_code == 409
        assert res.json()["error"] == "Family member with id mom already exists"

        members = client.get("/family-members").json()["familyMembers"]
        assert members == [original]

    @pytest.mark.parametrize("field", ["id", "name", "color"])
    def test_missing_fields(self, client, field):
        payload = {"id": "aunt", "name": "Aunt", "color": "#123456"}
        del payload[field]
        res = client.post("/family-members", json=payload)
        assert res.status_code == 400
        assert res.json()["error"] == "Missing or invalid fields"

    def test_update_merges_given_fields(self, client):
        member = create_member(client)
        res = client.put("/family-members", json={"id": member["id"], "name": "Granny"})
        assert res.status_code == 200
        updated = res.json()["familyMember"]
        assert updated["name"] == "Granny"
        assert updated["color"] == member["color"]
        assert updated["createdAt"] == member["createdAt"]

    def test_rename_does_not_touch_existing_todos(self, client):
        member = create_member(client, "mom", "Mom", "#ec4899")
        todo = create_todo_for(client, "Mom")

        client.put("/family-members", json={"id": member["id"], "name": "Mother", "color": "#f43f5e"})

        stored = client.get(f"/todos/{todo['id']}").json()["todo"]
        assert stored["assignedTo"] == "Mom"
        assert stored["assignedToColor"] == "#ec4899"

    def test_update_not_found(self, client):
        res = client.put("/family-members", json={"id": "ghost", "name": "Ghost"})
        assert res.status_code == 404
        assert res.json()["error"] == "Family member with id ghost not found"

    def test_update_without_fields(self, client):
        member = create_member(client)
        res = client.put("/family-members", json={"id": member["id"]})
        assert res.status_code == 400
        assert res.json()["error"] == "No fields to update"


class TestFamilyMemberDelete:
    def test_delete_blocked_while_assigned(self, client):
        create_member(client, "mom", "Mom", "#ec4899")
        todo = create_todo_for(client, "Mom")

        res = client.delete("/family-members", params={"id": "mom"})
        assert res.status_code == 409
        body = res.json()
        assert body["error"] == "Family member Mom is assigned to existing todos"
        assert body["details"] == "1 todo(s) reference this member"
        assert [m["id"] for m in client.get("/family-members").json()["familyMembers"]] == ["mom"]

        # Once the last referencing todo is gone the delete goes through
        assert client.delete(f"/todos/{todo['id']}").status_code == 200
        res_ok = client.delete("/family-members", params={"id": "mom"})
        assert res_ok.status_code == 200
        body_ok = res_ok.json()
        assert body_ok["message"] == "Family member Mom deleted"
        assert body_ok["deletedMember"]["id"] == "mom"
        assert client.get("/family-members").json()["familyMembers"] == []

    def test_delete_ignores_todos_of_other_members(self, client):
        create_member(client, "dad", "Dad", "#3b82f6")
        create_todo_for(client, "Mom")
        res = client.delete("/family-members", params={"id": "dad"})
        assert res.status_code == 200

    def test_delete_not_found(self, client):
        res = client.delete("/family-members", params={"id": "ghost"})
        assert res.status_code == 404
        assert res.json()["error"] == "Family member with id ghost not found"

    def test_delete_requires_id(self, client):
        res = client.delete("/family-members")
        assert res.status_code == 400
        assert res.json()["error"] == "Family member id is required"
