"""Catalog query service.

Read side of the catalog: product detail, listing, scored search and
filter facets. Every read is tenant scoped and never sees soft-deleted
products. Detail and facet responses are read through the cache.
"""

import time
from collections.abc import Sequence
from typing import Any

import structlog

from catalog_service.catalog.filters import (
    PaginatedResult,
    PaginationParams,
    ProductFilter,
)
from catalog_service.catalog.models import Category
from catalog_service.catalog.projections import money, product_detail, product_preview
from catalog_service.catalog.repository import CategoryRepository, ProductRepository
from catalog_service.catalog.search import (
    DEFAULT_WEIGHTS,
    SearchWeights,
    format_search_time,
    matched_fields,
    normalize_query,
    relevance,
)
from catalog_service.catalog.taxonomy import build_tree
from catalog_service.domain.exceptions import (
    InvalidVariantCombinationError,
    NoMatchingVariantError,
    ProductNotFoundError,
    VariantNotFoundError,
)
from catalog_service.domain.value_objects import normalize_name
from catalog_service.infrastructure.cache import CacheService, filters_key, product_key, query_key
from catalog_service.infrastructure.database import Database

logger = structlog.get_logger()


class ProductQueryService:
    """Service for catalog reads.

    Example usage:
        service = ProductQueryService(get_database(), get_cache_service())
        page = await service.list_products(
            ProductFilter(seller_id=2, brands=["Apple"]),
            PaginationParams.clamped(page=1, page_size=20),
        )
    """

    def __init__(
        self,
        database: Database,
        cache: CacheService,
        weights: SearchWeights = DEFAULT_WEIGHTS,
    ) -> None:
        """Initialize service.

        Args:
            database: Session provider.
            cache: Read-through cache.
            weights: Search field weights.
        """
        self.database = database
        self.cache = cache
        self.weights = weights

    async def get_product(self, product_id: int, seller_id: int | None = None) -> dict[str, Any]:
        """Get the detail projection of a live product.

        Args:
            product_id: Product ID.
            seller_id: Tenant scope; products of other sellers are reported missing.

        Returns:
            Detail projection.

        Raises:
            ProductNotFoundError: If missing, soft-deleted or out of scope.
        """
        key = product_key(product_id)
        data = await self.cache.get_json(key)
        if data is None:
            async with self.database.read_session() as session:
                product = await ProductRepository(session).get(product_id, with_graph=True)
                if product is None:
                    raise ProductNotFoundError(product_id)
                data = product_detail(product)
            await self.cache.set_json(key, data)

        if seller_id is not None and data["sellerId"] != seller_id:
            raise ProductNotFoundError(product_id)
        return data

    async def get_variant(self, product_id: int, variant_id: int, seller_id: int | None = None) -> dict[str, Any]:
        """Get one variant of a product in scope."""
        product = await self.get_product(product_id, seller_id)
        for variant in product["variants"]:
            if variant["id"] == variant_id:
                return variant
        raise VariantNotFoundError(variant_id)

    async def find_variant(
        self,
        product_id: int,
        requested: dict[str, str],
        seller_id: int | None = None,
    ) -> dict[str, Any]:
        """Find the first variant, by id, that sits at the requested coordinates.

        Options left out of ``requested`` match any value.

        Args:
            product_id: Product ID.
            requested: Option name to value; names and values are normalized.
            seller_id: Tenant scope.

        Raises:
            InvalidVariantCombinationError: If nothing is requested, the
                product has no options or an option name is unknown.
            NoMatchingVariantError: If no variant matches.
        """
        if not requested:
            raise InvalidVariantCombinationError(
                field="options",
                reason="required",
                message="At least one option must be given as a query parameter",
            )
        product = await self.get_product(product_id, seller_id)
        available = {o["optionName"]: [v["value"] for v in o["values"]] for o in product["options"]}
        if not available:
            raise InvalidVariantCombinationError(
                field="options",
                reason="no_options",
                message="Product has no options to select",
            )

        wanted = {normalize_name(name): normalize_name(value) for name, value in requested.items()}
        for name in wanted:
            if name not in available:
                raise InvalidVariantCombinationError(
                    field=name,
                    reason="unknown_option",
                    message=f"Option '{name}' is not defined on this product",
                )

        for variant in sorted(product["variants"], key=lambda v: v["id"]):
            selected = {s["optionName"]: s["value"] for s in variant["selectedOptions"]}
            if all(selected.get(name) == value for name, value in wanted.items()):
                return variant
        raise NoMatchingVariantError(wanted, available)

    async def list_options(self, product_id: int, seller_id: int | None = None) -> list[dict[str, Any]]:
        """Options of a product with per-value variant counts."""
        product = await self.get_product(product_id, seller_id)
        return product["options"]

    async def list_attributes(self, product_id: int, seller_id: int | None = None) -> list[dict[str, Any]]:
        product = await self.get_product(product_id, seller_id)
        return product["attributes"]

    async def list_products(
        self,
        filters: ProductFilter,
        pagination: PaginationParams,
    ) -> PaginatedResult[dict[str, Any]]:
        """List products with filters and pagination.

        Args:
            filters: Filter parameters.
            pagination: Pagination parameters.

        Returns:
            Paginated listing projections.
        """
        key = query_key(
            filters.seller_id,
            "list",
            filters.cache_key(),
            pagination.page,
            pagination.page_size,
            pagination.sort_by.value,
            pagination.sort_order.value,
        )
        cached = await self.cache.get_json(key)
        if cached is not None:
            return PaginatedResult(
                items=cached["items"],
                total=cached["total"],
                page=pagination.page,
                page_size=pagination.page_size,
            )

        async with self.database.read_session() as session:
            repository = ProductRepository(session)
            total = await repository.count(filters)
            products = await repository.find_page(filters, pagination) if total else []
            items = [product_preview(p) for p in products]

        await self.cache.set_json(key, {"items": items, "total": total})
        return PaginatedResult(
            items=items,
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def search_products(
        self,
        query: str,
        filters: ProductFilter,
        pagination: PaginationParams,
    ) -> dict[str, Any]:
        """Rank products by weighted text match.

        Args:
            query: Raw query text (already checked to be non-empty).
            filters: Filter parameters.
            pagination: Page and size; results are ordered by relevance.

        Returns:
            Search payload with results, pagination and elapsed time.
        """
        started = time.perf_counter()
        term = normalize_query(query)

        result: PaginatedResult[dict[str, Any]]
        if not term or filters.unmatchable:
            result = PaginatedResult(items=[], total=0, page=pagination.page, page_size=pagination.page_size)
        else:
            key = query_key(
                filters.seller_id,
                "search",
                term,
                filters.cache_key(),
                pagination.page,
                pagination.page_size,
            )
            cached = await self.cache.get_json(key)
            if cached is not None:
                items, total = cached["items"], cached["total"]
            else:
                async with self.database.read_session() as session:
                    ranked, total = await ProductRepository(session).search(
                        term, filters, pagination, self.weights
                    )
                    items = []
                    for product, score in ranked:
                        hit = product_preview(product)
                        hit["relevanceScore"] = relevance(score, self.weights)
                        hit["matchedFields"] = matched_fields(product, term)
                        items.append(hit)
                await self.cache.set_json(key, {"items": items, "total": total})
            result = PaginatedResult(items=items, total=total, page=pagination.page, page_size=pagination.page_size)

        elapsed = time.perf_counter() - started
        logger.debug("Search executed", query=term, total=result.total, elapsed_ms=round(elapsed * 1000, 2))
        return {
            "query": query,
            "results": result.items,
            "pagination": result.pagination(),
            "searchTime": format_search_time(elapsed),
        }

    async def get_filters(self, seller_id: int | None) -> dict[str, Any]:
        """Aggregate filter facets for a seller.

        Args:
            seller_id: Tenant scope; None aggregates all sellers.

        Returns:
            Facets: categories, brands, attributes, price range,
            variant types and stock status.
        """
        key = filters_key(seller_id)
        cached = await self.cache.get_json(key)
        if cached is not None:
            return cached

        async with self.database.read_session() as session:
            products = ProductRepository(session)
            categories = await CategoryRepository(session).list_all()
            category_counts = await products.count_by_category(seller_id)
            brand_counts = await products.count_by_brand(seller_id)
            attribute_counts = await products.count_by_attribute(seller_id)
            low, high, priced = await products.price_range(seller_id)
            type_counts = await products.variant_type_counts(seller_id)
            value_counts = await products.variant_value_counts(seller_id)
            in_stock, total = await products.stock_counts(seller_id)

        facets = {
            "categories": self._category_facet(categories, category_counts),
            "brands": [{"brand": brand, "productCount": count} for brand, count in brand_counts],
            "attributes": [
                {
                    "key": definition.key,
                    "name": definition.name,
                    "unit": definition.unit,
                    "productCount": count,
                    "allowedValues": list(definition.allowed_values or []) or None,
                }
                for definition, count in attribute_counts
            ],
            "priceRange": {
                "min": money(low) if low is not None else None,
                "max": money(high) if high is not None else None,
                "productCount": priced,
            },
            "variantTypes": [
                {
                    "name": name,
                    "displayName": display_name,
                    "productCount": count,
                    "values": [
                        {"value": value, "displayName": value_display, "productCount": value_count}
                        for option_name, value, value_display, value_count in value_counts
                        if option_name == name
                    ],
                }
                for name, display_name, count in type_counts
            ],
            "stockStatus": {
                "inStock": in_stock,
                "outOfStock": total - in_stock,
                "totalProducts": total,
            },
        }
        await self.cache.set_json(key, facets)
        return facets

    @staticmethod
    def _category_facet(categories: Sequence[Category], counts: dict[int, int]) -> list[dict[str, Any]]:
        return [node.to_dict() for node in build_tree(categories, counts)]

