"""Tests for product create, read, update and delete endpoints."""

from typing import Any

import pytest
from httpx import AsyncClient

from catalog_service.api.dependencies import SELLER_HEADER
from catalog_service.catalog.repository import CategoryRepository, ProductRepository
from catalog_service.infrastructure.database import Database

SELLER_ID = 2
OTHER_SELLER_ID = 3


class TestCreateProduct:
    """Tests for POST /api/products."""

    async def test_seller_creates_full_graph(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        """Options, values, variants, attributes and packages are stored together."""
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        product = body["data"]["product"]
        assert product["sellerId"] == SELLER_ID
        assert product["baseSku"] == "PHONE-001"
        assert product["category"] == {"id": 2, "name": "Smartphones", "parent": {"id": 1, "name": "Electronics"}}
        assert product["hasVariants"] is True
        assert product["priceRange"] == {"min": 799.99, "max": 899.99}
        assert product["images"] == [
            "https://img.example.com/phone-black.jpg",
            "https://img.example.com/phone-white.jpg",
        ]

        color, storage = product["options"]
        assert color["optionName"] == "color"
        assert [v["value"] for v in color["values"]] == ["black", "white"]
        assert color["values"][0]["colorCode"] == "#000000"
        assert color["values"][0]["variantCount"] == 1
        assert storage["optionName"] == "storage"

        first, second = product["variants"]
        assert first["isDefault"] is True
        assert first["inStock"] is True
        assert second["inStock"] is False
        assert [(s["optionName"], s["value"]) for s in first["selectedOptions"]] == [
            ("color", "black"),
            ("storage", "128gb"),
        ]

        assert product["attributes"][0]["key"] == "material"
        assert product["attributes"][0]["value"] == "Glass"
        assert product["packageOptions"][0]["price"] == 1500.0

    async def test_admin_must_name_seller(self, client: AsyncClient, admin_headers: dict, phone_payload: dict) -> None:
        response = await client.post("/api/products", json=phone_payload, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "sellerId"

        phone_payload["sellerId"] = OTHER_SELLER_ID
        response = await client.post("/api/products", json=phone_payload, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["data"]["product"]["sellerId"] == OTHER_SELLER_ID

    async def test_admin_cannot_create_for_non_seller(self, client: AsyncClient, admin_headers: dict, phone_payload: dict) -> None:
        phone_payload["sellerId"] = 4
        response = await client.post("/api/products", json=phone_payload, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SELLER_NOT_FOUND"

    async def test_seller_ignores_seller_id_in_body(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        """Sellers always create for themselves."""
        phone_payload["sellerId"] = OTHER_SELLER_ID
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.json()["data"]["product"]["sellerId"] == SELLER_ID

    async def test_requires_authentication(self, client: AsyncClient, phone_payload: dict) -> None:
        response = await client.post("/api/products", json=phone_payload)
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    async def test_customer_forbidden(self, client: AsyncClient, customer_headers: dict, phone_payload: dict) -> None:
        response = await client.post("/api/products", json=phone_payload, headers=customer_headers)
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    async def test_same_base_sku_for_another_seller(
        self,
        phone: dict,
        other_seller_headers: dict,
        create_product: Any,
    ) -> None:
        """Base SKUs are unique per seller, not globally."""
        other = await create_product(headers=other_seller_headers)
        assert other["baseSku"] == phone["baseSku"]
        assert other["sellerId"] == OTHER_SELLER_ID

    async def test_duplicate_base_sku_error(self, client: AsyncClient, phone: dict, seller_headers: dict, phone_payload: dict) -> None:
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "PRODUCT_SKU_EXISTS"

    async def test_unknown_category(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["categoryId"] = 999
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "CATEGORY_NOT_FOUND"

    async def test_variant_missing_option(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["variants"][0]["options"] = [{"optionName": "color", "value": "black"}]
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INVALID_VARIANT_COMBINATION"
        assert error["field"] == "variants[0].options"
        assert error["reason"] == "missing_option"

    async def test_variant_unknown_value(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["variants"][1]["options"][0]["value"] = "Purple"
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "variants[1].options[0].value"

    async def test_sub_cent_price_rejected(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["variants"][1]["price"] = 0.004
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "variants[1].price"
        assert response.json()["error"]["reason"] == "not_positive"

    async def test_price_is_rounded_half_up(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["variants"][0]["price"] = "10.005"
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.json()["data"]["product"]["variants"][0]["price"] == 10.01

    async def test_wrong_type_names_field(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["variants"][0]["stock"] = "lots"
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["field"] == "variants[0].stock"

    async def test_malformed_json(self, client: AsyncClient, seller_headers: dict) -> None:
        response = await client.post(
            "/api/products",
            content=b'{"name": ',
            headers={**seller_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error"]["reason"] == "invalid_json"

    async def test_last_default_wins(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["variants"][1]["isDefault"] = True
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        variants = response.json()["data"]["product"]["variants"]
        assert [v["isDefault"] for v in variants] == [False, True]

    async def test_duplicate_variant_combination(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["variants"][1]["options"] = [
            {"optionName": "storage", "value": "128GB"},
            {"optionName": "color", "value": "black"},
        ]
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "VARIANT_OPTION_COMBINATION_EXISTS"
        assert error["details"]["field"] == "variants[1].options"
        listing = await client.get("/api/products", headers=seller_headers)
        assert listing.json()["data"]["pagination"]["totalItems"] == 0

    async def test_attribute_outside_allowed_values(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["attributes"] = [{"key": "color", "name": "Color", "value": "Red"}]
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "attributes[0].value"
        assert response.json()["error"]["reason"] == "not_allowed"

    async def test_new_attribute_key_is_defined(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["attributes"] = [{"key": " Warranty ", "name": "Warranty", "value": "2", "unit": "years"}]
        response = await client.post("/api/products", json=phone_payload, headers=seller_headers)
        attribute = response.json()["data"]["product"]["attributes"][0]
        assert attribute["key"] == "warranty"
        assert attribute["unit"] == "years"

    async def test_failed_create_leaves_nothing(self, client: AsyncClient, seller_headers: dict, phone_payload: dict) -> None:
        phone_payload["attributes"] = [{"key": "color", "name": "Color", "value": "Red"}]
        await client.post("/api/products", json=phone_payload, headers=seller_headers)

        response = await client.get("/api/products", headers=seller_headers)
        assert response.json()["data"]["pagination"]["totalItems"] == 0


class TestGetProduct:
    """Tests for GET /api/products/{id}."""

    async def test_public_read(self, client: AsyncClient, phone: dict) -> None:
        response = await client.get(f"/api/products/{phone['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["product"]["id"] == phone["id"]

    async def test_other_tenant_sees_not_found(self, client: AsyncClient, phone: dict, other_seller_headers: dict) -> None:
        response = await client.get(f"/api/products/{phone['id']}", headers=other_seller_headers)
        assert response.status_code == 404

        response = await client.get(f"/api/products/{phone['id']}", headers={SELLER_HEADER: str(OTHER_SELLER_ID)})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PRODUCT_NOT_FOUND"

    @pytest.mark.parametrize(
        ("raw", "status_code"),
        [
            ("abc", 400),
            ("-5", 400),
            ("0", 404),
            ("999", 404),
            (str(2**63), 404),
            (str(2**64), 400),
        ],
    )
    async def test_path_id_parsing(self, client: AsyncClient, raw: str, status_code: int) -> None:
        response = await client.get(f"/api/products/{raw}")
        assert response.status_code == status_code


class TestUpdateProduct:
    """Tests for PUT /api/products/{id}."""

    async def test_partial_update(self, client: AsyncClient, phone: dict, seller_headers: dict) -> None:
        """Only sent fields change."""
        response = await client.put(
            f"/api/products/{phone['id']}",
            json={"name": "Galaxy Phone Pro", "isPopular": True, "brand": None},
            headers=seller_headers,
        )
        assert response.status_code == 200
        product = response.json()["data"]["product"]
        assert product["name"] == "Galaxy Phone Pro"
        assert product["isPopular"] is True
        assert product["brand"] is None
        assert product["shortDescription"] == phone["shortDescription"]
        assert product["tags"] == phone["tags"]
        assert len(product["variants"]) == 2

    async def test_move_category(self, client: AsyncClient, phone: dict, seller_headers: dict) -> None:
        response = await client.put(f"/api/products/{phone['id']}", json={"categoryId": 3}, headers=seller_headers)
        assert response.json()["data"]["product"]["category"]["name"] == "Laptops"

        response = await client.put(f"/api/products/{phone['id']}", json={"categoryId": 999}, headers=seller_headers)
        assert response.status_code == 404

    async def test_empty_body_rejected(self, client: AsyncClient, phone: dict, seller_headers: dict) -> None:
        response = await client.put(f"/api/products/{phone['id']}", json={}, headers=seller_headers)
        assert response.status_code == 400
        assert response.json()["error"]["reason"] == "empty"

    async def test_base_sku_cannot_change(self, client: AsyncClient, phone: dict, seller_headers: dict) -> None:
        response = await client.put(f"/api/products/{phone['id']}", json={"baseSku": "NEW"}, headers=seller_headers)
        assert response.status_code == 400

    async def test_null_name_rejected(self, client: AsyncClient, phone: dict, seller_headers: dict) -> None:
        response = await client.put(f"/api/products/{phone['id']}", json={"name": None}, headers=seller_headers)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "name"

    async def test_other_seller_forbidden(self, client: AsyncClient, phone: dict, other_seller_headers: dict) -> None:
        response = await client.put(f"/api/products/{phone['id']}", json={"name": "Stolen"}, headers=other_seller_headers)
        assert response.status_code == 403

    async def test_admin_may_update(self, client: AsyncClient, phone: dict, admin_headers: dict) -> None:
        response = await client.put(f"/api/products/{phone['id']}", json={"allowPurchase": False}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["product"]["allowPurchase"] is False


class TestDeleteProduct:
    """Tests for DELETE /api/products/{id}."""

    async def test_soft_delete(self, client: AsyncClient, phone: dict, seller_headers: dict) -> None:
        response = await client.delete(f"/api/products/{phone['id']}", headers=seller_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Product deleted"}

        assert (await client.get(f"/api/products/{phone['id']}")).status_code == 404
        assert (await client.delete(f"/api/products/{phone['id']}", headers=seller_headers)).status_code == 404

    async def test_delete_cascades_to_children(
        self, client: AsyncClient, phone: dict, seller_headers: dict, database: Database
    ) -> None:
        await client.delete(f"/api/products/{phone['id']}", headers=seller_headers)

        async with database.read_session() as session:
            counts = await ProductRepository(session).count_children(phone["id"])
            category = await CategoryRepository(session).get(phone["categoryId"])
        assert counts == {"options": 0, "variants": 0, "attributes": 0, "packageOptions": 0}
        assert category is not None

    async def test_base_sku_reusable_after_delete(
        self,
        client: AsyncClient,
        phone: dict,
        seller_headers: dict,
        create_product: Any,
    ) -> None:
        await client.delete(f"/api/products/{phone['id']}", headers=seller_headers)
        again = await create_product()
        assert again["baseSku"] == phone["baseSku"]
        assert again["id"] != phone["id"]

    async def test_other_seller_forbidden(self, client: AsyncClient, phone: dict, other_seller_headers: dict) -> None:
        response = await client.delete(f"/api/products/{phone['id']}", headers=other_seller_headers)
        assert response.status_code == 403
