#!/usr/bin/env python3
"""Seed catalog reference data and demo users.

Applies ``seeds/NNN_*.sql`` in lexicographic order, then creates demo
users with bcrypt password hashes. Run after ``alembic upgrade head``.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --password secret123
    python scripts/seed_catalog.py --skip-users
"""

import argparse
import asyncio
from pathlib import Path

import structlog
from sqlalchemy import text

from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.database import async_session_factory, engine
from catalog_service.infrastructure.logging import configure_logging
from catalog_service.infrastructure.models import UserModel
from catalog_service.infrastructure.security import hash_password
from catalog_service.infrastructure.users import UserRepository

logger = structlog.get_logger()

SEEDS_DIR = Path(__file__).resolve().parent.parent / "seeds"

# (email, first name, last name, role); ids follow insertion order on a fresh database
DEMO_USERS = [
    ("admin@ecommerce.com", "Admin", "User", Role.ADMIN),
    ("john.seller@example.com", "John", "Seller", Role.SELLER),
    ("jane.merchant@example.com", "Jane", "Merchant", Role.SELLER),
    ("bob.store@example.com", "Bob", "Store", Role.SELLER),
    ("alice.j@example.com", "Alice", "Johnson", Role.CUSTOMER),
]


def split_statements(sql: str) -> list[str]:
    """Split a seed file into statements, dropping comment-only chunks."""
    statements = []
    for chunk in sql.split(";"):
        lines = [line for line in chunk.splitlines() if not line.strip().startswith("--")]
        statement = "\n".join(lines).strip()
        if statement:
            statements.append(statement)
    return statements


async def apply_seed_files() -> int:
    """Run every seed file in one transaction per file.

    Returns:
        Number of files applied.
    """
    files = sorted(SEEDS_DIR.glob("[0-9][0-9][0-9]_*.sql"))
    for path in files:
        async with engine.begin() as conn:
            for statement in split_statements(path.read_text(encoding="utf-8")):
                await conn.execute(text(statement))
        logger.info("Seed applied", file=path.name)
    return len(files)


async def create_users(password: str) -> int:
    """Create demo users that do not exist yet.

    Returns:
        Number of users created.
    """
    created = 0
    async with async_session_factory() as session:
        async with session.begin():
            users = UserRepository(session)
            for email, first_name, last_name, role in DEMO_USERS:
                if await users.get_by_email(email) is not None:
                    continue
                user = await users.save(
                    UserModel(
                        email=email,
                        password_hash=hash_password(password),
                        first_name=first_name,
                        last_name=last_name,
                        role=role.value,
                        is_active=True,
                    )
                )
                logger.info("User created", user_id=user.id, email=email, role=role.value)
                created += 1
    return created


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed catalog reference data and demo users")
    parser.add_argument(
        "--password",
        default="password123",
        help="Password for every demo user (default: password123)",
    )
    parser.add_argument(
        "--skip-users",
        action="store_true",
        help="Only apply the SQL seed files",
    )
    args = parser.parse_args()

    configure_logging()
    files = await apply_seed_files()
    users = 0 if args.skip_users else await create_users(args.password)
    logger.info("Seeding complete", seed_files=files, users_created=users)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
