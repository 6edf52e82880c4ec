"""User lookups for login and tenant resolution."""

from sqlalchemy import and_, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.models import UserModel


class UserRepository:
    """Repository for user accounts."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_email(self, email: str) -> UserModel | None:
        """Get a user by email, case-insensitively."""
        result = await self.session.execute(
            select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def save(self, user: UserModel) -> UserModel:
        """Insert a user and assign its id."""
        self.session.add(user)
        await self.session.flush()
        return user

    async def seller_exists(self, seller_id: int) -> bool:
        """Check that a tenant id names an active seller."""
        result = await self.session.execute(
            select(
                exists().where(
                    and_(
                        UserModel.id == seller_id,
                        UserModel.role == Role.SELLER.value,
                        UserModel.is_active,
                    )
                )
            )
        )
        return bool(result.scalar())
