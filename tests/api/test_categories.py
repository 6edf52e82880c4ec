"""Tests for category endpoints."""

import pytest
from httpx import AsyncClient


class TestListCategories:
    """Tests for GET /api/categories."""

    async def test_tree(self, client: AsyncClient) -> None:
        response = await client.get("/api/categories")

        assert response.status_code == 200
        assert response.json()["data"]["categories"] == [
            {
                "id": 1,
                "name": "Electronics",
                "parentId": None,
                "children": [
                    {"id": 3, "name": "Laptops", "parentId": 1, "children": []},
                    {"id": 2, "name": "Smartphones", "parentId": 1, "children": []},
                ],
            },
            {"id": 4, "name": "Fashion", "parentId": None, "children": []},
        ]

    async def test_public(self, client: AsyncClient, customer_headers: dict) -> None:
        response = await client.get("/api/categories", headers=customer_headers)
        assert response.status_code == 200


class TestCreateCategory:
    """Tests for POST /api/categories."""

    async def test_create_child(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post(
            "/api/categories",
            json={"name": "  Tablets ", "parentId": 1},
            headers=admin_headers,
        )

        assert response.status_code == 201
        category = response.json()["data"]["category"]
        assert category["name"] == "Tablets"
        assert category["parentId"] == 1

        tree = (await client.get("/api/categories")).json()["data"]["categories"]
        assert [c["name"] for c in tree[0]["children"]] == ["Laptops", "Smartphones", "Tablets"]

    async def test_create_root(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post("/api/categories", json={"name": "Books"}, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["data"]["category"]["parentId"] is None

    async def test_seller_forbidden(self, client: AsyncClient, seller_headers: dict) -> None:
        response = await client.post("/api/categories", json={"name": "Books"}, headers=seller_headers)
        assert response.status_code == 403

    async def test_anonymous_unauthorized(self, client: AsyncClient) -> None:
        response = await client.post("/api/categories", json={"name": "Books"})
        assert response.status_code == 401

    async def test_missing_parent(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.post("/api/categories", json={"name": "Books", "parentId": 999}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"

    @pytest.mark.parametrize("name", ["A", "   ", "x" * 101])
    async def test_bad_name(self, client: AsyncClient, admin_headers: dict, name: str) -> None:
        response = await client.post("/api/categories", json={"name": name}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "name"


class TestDeleteCategory:
    """Tests for DELETE /api/categories/{id}."""

    async def test_delete_leaf(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.delete("/api/categories/3", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Category deleted"}
        tree = (await client.get("/api/categories")).json()["data"]["categories"]
        assert [c["name"] for c in tree[0]["children"]] == ["Smartphones"]

    async def test_with_children(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.delete("/api/categories/1", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CATEGORY_IN_USE"

    async def test_referenced_by_product(self, client: AsyncClient, phone: dict, admin_headers: dict) -> None:
        response = await client.delete("/api/categories/2", headers=admin_headers)
        assert response.status_code == 409

    async def test_referenced_by_deleted_product(
        self, client: AsyncClient, phone: dict, seller_headers: dict, admin_headers: dict
    ) -> None:
        await client.delete(f"/api/products/{phone['id']}", headers=seller_headers)
        response = await client.delete("/api/categories/2", headers=admin_headers)
        assert response.status_code == 409

    async def test_missing(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.delete("/api/categories/999", headers=admin_headers)
        assert response.status_code == 404

    async def test_seller_forbidden(self, client: AsyncClient, seller_headers: dict) -> None:
        response = await client.delete("/api/categories/3", headers=seller_headers)
        assert response.status_code == 403


class TestGetCategory:
    """Tests for GET /api/categories/{id}."""

    async def test_with_subtree(self, client: AsyncClient) -> None:
        response = await client.get("/api/categories/1")

        assert response.status_code == 200
        category = response.json()["data"]["category"]
        assert category["name"] == "Electronics"
        assert [c["name"] for c in category["children"]] == ["Laptops", "Smartphones"]

    async def test_leaf(self, client: AsyncClient) -> None:
        response = await client.get("/api/categories/2")
        assert response.json()["data"]["category"] == {"id": 2, "name": "Smartphones", "parentId": 1, "children": []}

    @pytest.mark.parametrize(("raw", "status_code"), [("999", 404), ("0", 404), ("abc", 400)])
    async def test_missing(self, client: AsyncClient, raw: str, status_code: int) -> None:
        response = await client.get(f"/api/categories/{raw}")
        assert response.status_code == status_code


class TestUpdateCategory:
    """Tests for PUT /api/categories/{id}."""

    async def test_rename(self, client: AsyncClient, phone: dict, admin_headers: dict) -> None:
        response = await client.put("/api/categories/2", json={"name": " Phones "}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["category"] == {"id": 2, "name": "Phones", "parentId": 1}
        product = (await client.get(f"/api/products/{phone['id']}")).json()["data"]["product"]
        assert product["category"]["name"] == "Phones"

    async def test_move(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.put("/api/categories/3", json={"parentId": 4}, headers=admin_headers)
        assert response.status_code == 200

        tree = (await client.get("/api/categories")).json()["data"]["categories"]
        assert {c["name"]: [child["name"] for child in c["children"]] for c in tree} == {
            "Electronics": ["Smartphones"],
            "Fashion": ["Laptops"],
        }

    async def test_move_to_root(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.put("/api/categories/3", json={"parentId": None}, headers=admin_headers)
        assert response.json()["data"]["category"]["parentId"] is None

    @pytest.mark.parametrize("parent_id", [1, 2])
    async def test_cycle_rejected(self, client: AsyncClient, admin_headers: dict, parent_id: int) -> None:
        """Electronics cannot move under itself or under Smartphones."""
        response = await client.put("/api/categories/1", json={"parentId": parent_id}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["reason"] == "cycle"

    @pytest.mark.parametrize(("body", "field"), [({}, "body"), ({"name": "A"}, "name"), ({"name": None}, "name")])
    async def test_invalid(self, client: AsyncClient, admin_headers: dict, body: dict, field: str) -> None:
        response = await client.put("/api/categories/2", json=body, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == field

    async def test_missing_parent(self, client: AsyncClient, admin_headers: dict) -> None:
        response = await client.put("/api/categories/2", json={"parentId": 999}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"

    async def test_seller_forbidden(self, client: AsyncClient, seller_headers: dict) -> None:
        response = await client.put("/api/categories/2", json={"name": "Phones"}, headers=seller_headers)
        assert response.status_code == 403
