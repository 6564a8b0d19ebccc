"""API tests for category endpoints."""
import uuid

from conftest import auth_headers


def create_category(client, headers, name, parent_id=None):
    payload = {"name": name}
    if parent_id is not None:
        payload["parent_id"] = parent_id
    return client.post("/api/v1/categories", json=payload, headers=headers)


class TestCategoryCreation:

    def test_admin_builds_three_levels(self, client, admin_user):
        headers = auth_headers(admin_user)

        electronics = create_category(client, headers, "Electronics")
        assert electronics.status_code == 201
        assert electronics.json()["depth"] == 0

        phones = create_category(client, headers, "Phones", electronics.json()["id"])
        assert phones.status_code == 201
        assert phones.json()["depth"] == 1

        smartphones = create_category(client, headers, "Smartphones", phones.json()["id"])
        assert smartphones.status_code == 201
        assert smartphones.json()["depth"] == 2

        android = create_category(client, headers, "Android", smartphones.json()["id"])
        assert android.status_code == 400
        assert android.json()["code"] == "max_depth_exceeded"

    def test_regular_user_forbidden(self, client, regular_user):
        response = create_category(client, auth_headers(regular_user), "Toys")
        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    def test_unknown_parent(self, client, admin_user):
        response = create_category(client, auth_headers(admin_user), "Lost", str(uuid.uuid4()))
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_parent"

    def test_blank_name_rejected(self, client, admin_user):
        response = create_category(client, auth_headers(admin_user), "   ")
        assert response.status_code == 422

    def test_requires_authentication(self, client):
        response = client.post("/api/v1/categories", json={"name": "Anon"})
        assert response.status_code == 401


class TestCategoryReads:

    def test_tree_and_detail(self, client, admin_user, regular_user):
        admin = auth_headers(admin_user)
        root = create_category(client, admin, "R").json()
        child = create_category(client, admin, "A", root["id"]).json()
        grandchild = create_category(client, admin, "B", child["id"]).json()

        user = auth_headers(regular_user)
        tree = client.get("/api/v1/categories/tree", headers=user).json()
        assert [node["id"] for node in tree] == [root["id"]]
        assert [node["id"] for node in tree[0]["children"]] == [child["id"]]
        assert [node["id"] for node in tree[0]["children"][0]["children"]] == [grandchild["id"]]

        subtree = client.get(
            "/api/v1/categories/tree", params={"parent_id": child["id"]}, headers=user
        ).json()
        assert [node["id"] for node in subtree] == [grandchild["id"]]

        detail = client.get(f"/api/v1/categories/{grandchild['id']}", headers=user)
        assert detail.status_code == 200
        assert detail.json()["depth"] == 2

    def test_paginated_list(self, client, admin_user):
        headers = auth_headers(admin_user)
        for name in ("One", "Two", "Three"):
            create_category(client, headers, name)

        response = client.get("/api/v1/categories", params={"page": 1, "page_size": 2}, headers=headers)
        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["items"]) == 2

    def test_unknown_category(self, client, regular_user):
        response = client.get(f"/api/v1/categories/{uuid.uuid4()}", headers=auth_headers(regular_user))
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"


class TestCategoryUpdateAndDelete:

    def test_update_rejects_self_parent(self, client, admin_user):
        headers = auth_headers(admin_user)
        category = create_category(client, headers, "Loop").json()

        response = client.put(
            f"/api/v1/categories/{category['id']}",
            json={"parent_id": category["id"]},
            headers=headers
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_parent"

    def test_update_moves_to_root(self, client, admin_user):
        headers = auth_headers(admin_user)
        parent = create_category(client, headers, "Parent").json()
        child = create_category(client, headers, "Child", parent["id"]).json()

        response = client.put(
            f"/api/v1/categories/{child['id']}",
            json={"parent_id": None},
            headers=headers
        )
        assert response.status_code == 200
        assert response.json()["parent_id"] is None
        assert response.json()["depth"] == 0

    def test_delete_blocked_while_referenced(self, client, admin_user):
        headers = auth_headers(admin_user)
        parent = create_category(client, headers, "Parent").json()
        create_category(client, headers, "Child", parent["id"])

        response = client.delete(f"/api/v1/categories/{parent['id']}", headers=headers)
        assert response.status_code == 409
        assert response.json()["code"] == "resource_in_use"
        assert client.get(f"/api/v1/categories/{parent['id']}", headers=headers).status_code == 200

    def test_delete_leaf(self, client, admin_user):
        headers = auth_headers(admin_user)
        leaf = create_category(client, headers, "Leaf").json()

        response = client.delete(f"/api/v1/categories/{leaf['id']}", headers=headers)
        assert response.status_code == 204
        assert client.get(f"/api/v1/categories/{leaf['id']}", headers=headers).status_code == 404

    def test_user_delete_of_missing_category_is_forbidden(self, client, regular_user):
        response = client.delete(f"/api/v1/categories/{uuid.uuid4()}", headers=auth_headers(regular_user))
        assert response.status_code == 403
