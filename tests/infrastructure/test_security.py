"""Tests for access tokens and password hashing."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from catalog_service.domain.exceptions import UnauthorizedError
from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.config import settings
from catalog_service.infrastructure.security import (
    ALGORITHM,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


def sign(payload: dict) -> str:
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def future() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=1)


class TestAccessTokens:
    """Tests for token signing and verification."""

    def test_round_trip(self) -> None:
        claims = decode_access_token(create_access_token(2, Role.SELLER))
        assert claims.user_id == 2
        assert claims.role == Role.SELLER
        assert claims.seller_id == 2
        assert not claims.is_admin
        assert claims.expires_at > datetime.now(timezone.utc)

    def test_admin_has_no_seller_scope(self) -> None:
        claims = decode_access_token(create_access_token(1, "admin"))
        assert claims.is_admin
        assert claims.seller_id is None

    def test_expired_token(self) -> None:
        token = create_access_token(2, Role.SELLER, expires_in=timedelta(seconds=-5))
        with pytest.raises(UnauthorizedError, match="expired"):
            decode_access_token(token)

    def test_wrong_secret(self) -> None:
        token = create_access_token(2, Role.SELLER, secret="another-secret-that-is-also-long-enough")
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            decode_access_token(token)

    def test_garbage_token(self) -> None:
        with pytest.raises(UnauthorizedError):
            decode_access_token("not.a.token")

    @pytest.mark.parametrize(
        "payload",
        [
            {"user_id": 2, "exp": future()},
            {"role": "seller", "exp": future()},
            {"user_id": "2", "role": "seller", "exp": future()},
            {"user_id": 0, "role": "seller", "exp": future()},
            {"user_id": 2, "role": "superuser", "exp": future()},
        ],
    )
    def test_invalid_claims(self, payload: dict) -> None:
        """Missing or malformed claims are rejected."""
        with pytest.raises(UnauthorizedError):
            decode_access_token(sign(payload))

    def test_missing_expiry(self) -> None:
        with pytest.raises(UnauthorizedError):
            decode_access_token(sign({"user_id": 2, "role": "seller"}))


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash_never_matches(self) -> None:
        assert not verify_password("anything", "not-a-bcrypt-hash")
