"""Login service.

Exchanges email and password for a signed access token. Every failed
login answers with the same message.
"""

from dataclasses import dataclass
from typing import Any

import structlog

from catalog_service.domain.exceptions import UnauthorizedError, ValidationError
from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.config import settings
from catalog_service.infrastructure.database import Database
from catalog_service.infrastructure.security import create_access_token, verify_password
from catalog_service.infrastructure.users import UserRepository

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


# ============================================================================
# DTOs
# ============================================================================


@dataclass
class LoginResult:
    """Issued token and the authenticated user."""

    token: str
    expires_in: int
    user: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"token": self.token, "expiresIn": self.expires_in, "user": self.user}


class AuthService:
    """Service for password login."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def login(self, email: str | None, password: str | None) -> LoginResult:
        """Authenticate a user.

        Args:
            email: Login email, matched case-insensitively.
            password: Plain-text password.

        Returns:
            Token and user profile.

        Raises:
            ValidationError: If email or password is missing.
            UnauthorizedError: On unknown email, wrong password or an
                inactive account.
        """
        if not email or not email.strip():
            raise ValidationError(field="email", reason="required", message="email is required")
        if not password:
            raise ValidationError(field="password", reason="required", message="password is required")

        async with self.database.read_session() as session:
            user = await UserRepository(session).get_by_email(email)

        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            logger.info("Login rejected", email=email.strip().lower())
            raise UnauthorizedError(INVALID_CREDENTIALS)

        expires_in = settings.jwt_expires_minutes * 60
        token = create_access_token(user.id, Role(user.role))
        logger.info("Login succeeded", user_id=user.id, role=user.role)
        return LoginResult(
            token=token,
            expires_in=expires_in,
            user={
                "id": user.id,
                "email": user.email,
                "firstName": user.first_name,
                "lastName": user.last_name,
                "role": user.role,
            },
        )
