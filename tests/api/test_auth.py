"""Tests for login and bearer authentication."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.security import create_access_token

PASSWORD = "correct-horse-battery"


class TestLogin:
    """Tests for POST /api/auth/login."""

    async def test_login(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/auth/login",
            json={"email": "seller.one@example.com", "password": PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["expiresIn"] == 86400
        assert data["user"] == {
            "id": 2,
            "email": "seller.one@example.com",
            "firstName": "Seller",
            "lastName": "Tester",
            "role": "seller",
        }
        assert "passwordHash" not in data["user"]

    async def test_token_authenticates(self, client: AsyncClient, phone_payload: dict) -> None:
        login = await client.post("/api/auth/login", json={"email": "seller.one@example.com", "password": PASSWORD})
        token = login.json()["data"]["token"]

        response = await client.post(
            "/api/products",
            json=phone_payload,
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 201
        assert response.json()["data"]["product"]["sellerId"] == 2

    async def test_email_case_insensitive(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/auth/login",
            json={"email": "  Seller.One@Example.com ", "password": PASSWORD},
        )
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "seller.one@example.com", "password": "wrong-password"},
            {"email": "nobody@example.com", "password": PASSWORD},
            {"email": "inactive.seller@example.com", "password": PASSWORD},
        ],
    )
    async def test_rejected_with_one_message(self, client: AsyncClient, body: dict) -> None:
        """Unknown, wrong and inactive credentials are indistinguishable."""
        response = await client.post("/api/auth/login", json=body)

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize(
        ("body", "field"),
        [({"email": "seller.one@example.com"}, "password"), ({"password": PASSWORD}, "email"), ({"email": " "}, "email")],
    )
    async def test_missing_fields(self, client: AsyncClient, body: dict, field: str) -> None:
        response = await client.post("/api/auth/login", json=body)
        assert response.status_code == 400
        assert response.json()["error"]["field"] == field


class TestBearerAuthentication:
    """Tests for the Authorization header on protected routes."""

    async def test_expired_token(self, client: AsyncClient, phone_payload: dict) -> None:
        token = create_access_token(2, Role.SELLER, expires_in=timedelta(seconds=-30))
        response = await client.post("/api/products", json=phone_payload, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "garbage"])
    async def test_malformed_header(self, client: AsyncClient, phone_payload: dict, header: str) -> None:
        response = await client.post("/api/products", json=phone_payload, headers={"Authorization": header})
        assert response.status_code == 401

    async def test_bad_token_on_public_read(self, client: AsyncClient) -> None:
        """A public route still rejects an invalid token instead of ignoring it."""
        response = await client.get("/api/products", headers={"Authorization": "Bearer not-a-jwt", "X-Seller-ID": "2"})
        assert response.status_code == 401

    async def test_token_signed_with_other_secret(self, client: AsyncClient, phone_payload: dict) -> None:
        token = create_access_token(2, Role.SELLER, secret="another-secret-that-is-also-long-enough")
        response = await client.post("/api/products", json=phone_payload, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
