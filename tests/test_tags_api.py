BASE = "/api/v1/tags/"


def create_tag(client, name, color=None):
    payload = {"name": name}
    if color is not None:
        payload["color"] = color
    res = client.post(BASE, json=payload)
    assert res.status_code == 201, res.text
    return res.json()


class TestTagsCRUD:
    def test_create_and_list(self, client):
        work = create_tag(client, "  Work ", "#1890ff")
        home = create_tag(client, "Home")
        assert work["name"] == "Work"
        assert work["color"] == "#1890ff"
        assert home["color"] == "#722ed1"

        res = client.get(BASE)
        assert res.status_code == 200
        assert [t["name"] for t in res.json()] == ["Work", "Home"]

    def test_create_existing_name_returns_existing(self, client):
        first = create_tag(client, "Work", "#ff0000")
        again = create_tag(client, "Work ", "#00ff00")
        assert again["id"] == first["id"]
        assert again["color"] == "#ff0000"
        assert len(client.get(BASE).json()) == 1

    def test_blank_name_rejected(self, client):
        res = client.post(BASE, json={"name": "   "})
        assert res.status_code == 422
        assert res.json()["error"] == "ValidationError"

    def test_get_and_not_found(self, client):
        tag = create_tag(client, "Work")
        assert client.get(f"{BASE}{tag['id']}").json()["name"] == "Work"
        res = client.get(f"{BASE}999")
        assert res.status_code == 404
        assert res.json()["detail"] == "Tag not found"

    def test_update(self, client):
        tag = create_tag(client, "Work")
        res = client.put(f"{BASE}{tag['id']}", json={"color": "#000000"})
        assert res.status_code == 200
        assert res.json() == {**tag, "color": "#000000"}

        res = client.put(f"{BASE}{tag['id']}", json={"name": "Job"})
        assert res.json()["name"] == "Job"
        assert res.json()["color"] == "#000000"

    def test_update_name_conflict(self, client):
        create_tag(client, "Work")
        home = create_tag(client, "Home")
        res = client.put(f"{BASE}{home['id']}", json={"name": "Work"})
        assert res.status_code == 409
        assert res.json()["detail"] == "Tag name already exists: Work"

    def test_update_to_own_name_is_allowed(self, client):
        tag = create_tag(client, "Work")
        assert client.put(f"{BASE}{tag['id']}", json={"name": "Work"}).status_code == 200

    def test_update_not_found(self, client):
        assert client.put(f"{BASE}999", json={"color": "#000"}).status_code == 404

    def test_delete(self, client):
        tag = create_tag(client, "Work")
        assert client.delete(f"{BASE}{tag['id']}").status_code == 204
        assert client.get(f"{BASE}{tag['id']}").status_code == 404
        assert client.delete(f"{BASE}{tag['id']}").status_code == 404


class TestTagReferences:
    def test_todos_keep_names_after_tag_rename_and_delete(self, client):
        tag = create_tag(client, "Work")
        todo = client.post("/api/v1/todos/", json={"title": "Report", "tags": ["Work"]}).json()

        client.put(f"{BASE}{tag['id']}", json={"name": "Job"})
        assert client.get(f"/api/v1/todos/{todo['id']}").json()["tags"] == ["Work"]

        client.delete(f"{BASE}{tag['id']}")
        listed = client.get("/api/v1/todos/?tag=work").json()["items"]
        assert [t["id"] for t in listed] == [todo["id"]]
