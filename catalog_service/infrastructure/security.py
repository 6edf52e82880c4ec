"""Access tokens and password hashing.

Tokens are HS256 JWTs carrying ``user_id``, ``role`` and ``exp``.
Passwords are stored as bcrypt hashes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from catalog_service.domain.exceptions import UnauthorizedError
from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.config import settings

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["user_id", "role", "exp"]


@dataclass(frozen=True)
class TokenClaims:
    """Verified identity of a caller.

    Attributes:
        user_id: Authenticated user.
        role: Caller role.
        expires_at: Token expiry.
    """

    user_id: int
    role: Role
    expires_at: datetime

    @property
    def seller_id(self) -> int | None:
        """Tenant id when the caller is a seller."""
        return self.user_id if self.role == Role.SELLER else None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def create_access_token(
    user_id: int,
    role: Role | str,
    expires_in: timedelta | None = None,
    secret: str | None = None,
) -> str:
    """Sign an access token.

    Args:
        user_id: Subject user id.
        role: Subject role.
        expires_in: Lifetime; defaults to the configured expiry.
        secret: Signing secret; defaults to ``JWT_SECRET``.

    Returns:
        Encoded JWT.
    """
    lifetime = expires_in or timedelta(minutes=settings.jwt_expires_minutes)
    payload = {
        "user_id": user_id,
        "role": Role(role).value,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, secret or settings.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str, secret: str | None = None) -> TokenClaims:
    """Verify a token and extract its claims.

    Args:
        token: Encoded JWT.
        secret: Verification secret; defaults to ``JWT_SECRET``.

    Returns:
        Verified claims.

    Raises:
        UnauthorizedError: On bad signature, expiry, or missing/invalid claims.
    """
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[ALGORITHM],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise UnauthorizedError("Invalid token") from exc

    user_id = payload.get("user_id")
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise UnauthorizedError("Invalid token")
    try:
        role = Role(payload.get("role"))
    except ValueError as exc:
        raise UnauthorizedError("Invalid token") from exc

    return TokenClaims(
        user_id=user_id,
        role=role,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
