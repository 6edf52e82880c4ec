"""Redis caching for catalog reads.

Values are JSON documents with a short TTL. Redis failures are logged
and treated as cache misses, so the database stays the source of truth.
"""

import hashlib
import json
from typing import Any

import structlog
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from catalog_service.infrastructure.config import settings

logger = structlog.get_logger()

KEY_PREFIX = "catalog"


def product_key(product_id: int) -> str:
    """Key of a product's detail projection."""
    return f"{KEY_PREFIX}:product:{product_id}"


def seller_namespace(seller_id: int | None) -> str:
    """Key prefix of everything cached for one seller scope."""
    scope = "all" if seller_id is None else str(seller_id)
    return f"{KEY_PREFIX}:seller:{scope}"


def filters_key(seller_id: int | None) -> str:
    """Key of a seller's filter facets."""
    return f"{seller_namespace(seller_id)}:filters"


def query_key(seller_id: int | None, kind: str, *parts: object) -> str:
    """Key of a listing or search result, hashed over its parameters."""
    digest = hashlib.sha256("|".join(str(p) for p in parts).encode("utf-8")).hexdigest()[:32]
    return f"{seller_namespace(seller_id)}:{kind}:{digest}"


class CacheService:
    """Service for caching catalog responses in Redis.

    Example usage:
        cache = get_cache_service()
        cached = await cache.get_json(product_key(42))
        if cached is None:
            ...
            await cache.set_json(product_key(42), data)
    """

    def __init__(self, client: Any | None, ttl_seconds: int = 60) -> None:
        """Initialize the cache service.

        Args:
            client: ``redis.asyncio`` client, or None to disable caching.
            ttl_seconds: Expiry of every cached value.
        """
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def get_json(self, key: str) -> Any | None:
        """Read a cached JSON value.

        Returns:
            The decoded value, or None on a miss or any cache failure.
        """
        if self.client is None:
            return None
        try:
            raw = await self.client.get(key)
        except RedisError as exc:
            logger.warning("Cache read failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry", key=key)
            return None

    async def set_json(self, key: str, value: Any) -> bool:
        """Store a JSON value with the configured TTL.

        Returns:
            True if stored.
        """
        if self.client is None:
            return False
        try:
            await self.client.set(key, json.dumps(value), ex=self.ttl_seconds)
            return True
        except RedisError as exc:
            logger.warning("Cache write failed", key=key, error=str(exc))
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern.

        Returns:
            Number of keys deleted.
        """
        if self.client is None:
            return 0
        deleted = 0
        try:
            batch: list[str] = []
            async for key in self.client.scan_iter(match=pattern, count=200):
                batch.append(key)
                if len(batch) >= 200:
                    deleted += await self.client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self.client.delete(*batch)
        except RedisError as exc:
            logger.warning("Cache sweep failed", pattern=pattern, error=str(exc))
        return deleted

    async def invalidate_product(self, product_id: int | None, seller_id: int | None) -> None:
        """Drop cached entries affected by a write to a product.

        Removes the product detail, everything cached for the owning
        seller and everything cached for unscoped admin reads.
        """
        if self.client is None:
            return
        keys = [] if product_id is None else [product_key(product_id)]
        if keys:
            try:
                await self.client.delete(*keys)
            except RedisError as exc:
                logger.warning("Cache delete failed", keys=keys, error=str(exc))
        await self.delete_pattern(f"{seller_namespace(seller_id)}:*")
        if seller_id is not None:
            await self.delete_pattern(f"{seller_namespace(None)}:*")
        logger.debug("Cache invalidated", product_id=product_id, seller_id=seller_id)

    async def close(self) -> None:
        """Close the underlying connection pool."""
        if self.client is not None:
            try:
                await self.client.aclose()
            except RedisError as exc:
                logger.warning("Cache close failed", error=str(exc))


_cache_service: CacheService | None = None


def get_cache_service() -> CacheService:
    """Get the process-wide cache service."""
    global _cache_service
    if _cache_service is None:
        client = None
        if settings.cache_enabled:
            client = aioredis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
        _cache_service = CacheService(client, ttl_seconds=settings.cache_ttl_seconds)
    return _cache_service
