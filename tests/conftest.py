"""Shared fixtures.

Every test gets a fresh in-memory SQLite database with the schema
created from the ORM models and a small seed: users, categories and
attribute definitions. The API client talks to the app in-process and
runs with caching disabled unless a test swaps in a fake Redis client.
"""

import fnmatch
import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from copy import deepcopy
from typing import Any

# Settings are read on import
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catalog_service.catalog.models import AttributeDefinition, Category
from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.cache import CacheService, get_cache_service
from catalog_service.infrastructure.database import Base, Database, get_database
from catalog_service.infrastructure.models import UserModel
from catalog_service.infrastructure.security import create_access_token, hash_password
from catalog_service.main import app

PASSWORD = "correct-horse-battery"

ADMIN_ID = 1
SELLER_ID = 2
OTHER_SELLER_ID = 3
CUSTOMER_ID = 4
INACTIVE_SELLER_ID = 5

USERS = [
    (ADMIN_ID, "admin@example.com", Role.ADMIN, True),
    (SELLER_ID, "seller.one@example.com", Role.SELLER, True),
    (OTHER_SELLER_ID, "seller.two@example.com", Role.SELLER, True),
    (CUSTOMER_ID, "customer@example.com", Role.CUSTOMER, True),
    (INACTIVE_SELLER_ID, "inactive.seller@example.com", Role.SELLER, False),
]

# (id, name, parent id)
CATEGORIES = [
    (1, "Electronics", None),
    (2, "Smartphones", 1),
    (3, "Laptops", 1),
    (4, "Fashion", None),
]

PHONE_PAYLOAD: dict[str, Any] = {
    "name": "Galaxy Phone",
    "categoryId": 2,
    "baseSku": "PHONE-001",
    "brand": "Samsung",
    "shortDescription": "A flagship phone",
    "tags": ["android", "5g"],
    "options": [
        {
            "name": "Color",
            "displayName": "Color",
            "position": 0,
            "values": [
                {"value": "Black", "displayName": "Black", "colorCode": "#000000"},
                {"value": "White", "displayName": "White", "colorCode": "#FFFFFF"},
            ],
        },
        {
            "name": "Storage",
            "displayName": "Storage",
            "position": 1,
            "values": [
                {"value": "128GB", "displayName": "128 GB"},
                {"value": "256GB", "displayName": "256 GB"},
            ],
        },
    ],
    "variants": [
        {
            "sku": "PHONE-001-BLK-128",
            "price": 799.99,
            "stock": 10,
            "isDefault": True,
            "images": ["https://img.example.com/phone-black.jpg"],
            "options": [
                {"optionName": "color", "value": "black"},
                {"optionName": "storage", "value": "128gb"},
            ],
        },
        {
            "sku": "PHONE-001-WHT-256",
            "price": 899.99,
            "stock": 0,
            "images": ["https://img.example.com/phone-white.jpg"],
            "options": [
                {"optionName": "Color", "value": "White"},
                {"optionName": "Storage", "value": "256GB"},
            ],
        },
    ],
    "attributes": [{"key": "material", "name": "Material", "value": "Glass"}],
    "packageOptions": [{"name": "Twin pack", "price": 1500, "quantity": 2}],
}


class FakeRedis:
    """In-memory stand-in for the ``redis.asyncio`` client calls the cache makes."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match: str = "*", count: int | None = None) -> AsyncGenerator[str, None]:
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self) -> None:
        self.closed = True


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt hash of PASSWORD, computed once."""
    return hash_password(PASSWORD)


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory database with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def database(
    session_factory: async_sessionmaker[AsyncSession],
    password_hash: str,
) -> Database:
    """Database handle over the seeded in-memory engine."""
    database = Database(session_factory, timeout_seconds=10)
    async with database.unit_of_work() as session:
        session.add_all(
            [
                UserModel(
                    id=user_id,
                    email=email,
                    password_hash=password_hash,
                    first_name=email.split("@")[0].split(".")[0].title(),
                    last_name="Tester",
                    role=role.value,
                    is_active=active,
                )
                for user_id, email, role, active in USERS
            ]
        )
        session.add_all(
            [Category(id=cid, name=name, parent_id=parent) for cid, name, parent in CATEGORIES]
        )
        session.add_all(
            [
                AttributeDefinition(id=1, key="color", name="Color", allowed_values=["Black", "White"]),
                AttributeDefinition(id=2, key="material", name="Material", allowed_values=[]),
                AttributeDefinition(id=3, key="screen_size", name="Screen Size", unit="inches", allowed_values=[]),
            ]
        )
    return database


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """API client bound to the test database with caching disabled."""
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_cache_service] = lambda: CacheService(None)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def cached_client(
    database: Database,
    fake_redis: FakeRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """API client whose cache is backed by ``fake_redis``."""
    cache = CacheService(fake_redis, ttl_seconds=60)
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_cache_service] = lambda: cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================================
# Auth Fixtures
# ============================================================================


def bearer(user_id: int, role: Role) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return bearer(ADMIN_ID, Role.ADMIN)


@pytest.fixture
def seller_headers() -> dict[str, str]:
    return bearer(SELLER_ID, Role.SELLER)


@pytest.fixture
def other_seller_headers() -> dict[str, str]:
    return bearer(OTHER_SELLER_ID, Role.SELLER)


@pytest.fixture
def customer_headers() -> dict[str, str]:
    return bearer(CUSTOMER_ID, Role.CUSTOMER)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def phone_payload() -> dict[str, Any]:
    """A fresh copy of the sample phone create body."""
    return deepcopy(PHONE_PAYLOAD)


ProductFactory = Callable[..., Awaitable[dict[str, Any]]]


@pytest.fixture
def create_product(client: AsyncClient, seller_headers: dict[str, str]) -> ProductFactory:
    """Create a product through the API and return its detail projection.

    Keyword arguments override top-level fields of the phone payload.
    """

    async def factory(headers: dict[str, str] | None = None, **overrides: Any) -> dict[str, Any]:
        payload = deepcopy(PHONE_PAYLOAD)
        payload.update(overrides)
        response = await client.post("/api/products", json=payload, headers=headers or seller_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]["product"]

    return factory


@pytest.fixture
async def phone(create_product: ProductFactory) -> dict[str, Any]:
    """The sample phone, owned by SELLER_ID."""
    return await create_product()


def simple_payload(name: str, base_sku: str, category_id: int, price: Any, stock: int = 5, **extra: Any) -> dict[str, Any]:
    """Create body with one single-value option and one variant."""
    return {
        "name": name,
        "categoryId": category_id,
        "baseSku": base_sku,
        "options": [
            {"name": "size", "displayName": "Size", "values": [{"value": "one", "displayName": "One Size"}]}
        ],
        "variants": [
            {"sku": f"{base_sku}-1", "price": price, "stock": stock, "options": [{"optionName": "size", "value": "one"}]}
        ],
        **extra,
    }


@pytest.fixture
def simple_product() -> Callable[..., dict[str, Any]]:
    """Builder for minimal create bodies; see ``simple_payload``."""
    return simple_payload
