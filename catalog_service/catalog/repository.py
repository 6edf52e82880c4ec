"""Repositories for catalog database operations.

Every repository works on a session handed in by the caller, so one
unit of work spans all repository calls of a mutation. Product reads go
through ``live_products()``, which always excludes soft-deleted rows.
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Select,
    and_,
    case,
    delete,
    exists,
    func,
    literal,
    or_,
    select,
    update,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from catalog_service.catalog.filters import PaginationParams, ProductFilter, SortField, SortOrder
from catalog_service.catalog.models import (
    AttributeDefinition,
    Category,
    PackageOption,
    Product,
    ProductAttribute,
    ProductOption,
    ProductOptionValue,
    ProductTag,
    ProductVariant,
    VariantOptionValue,
)
from catalog_service.catalog.search import SearchWeights, escape_like


def live_products(include_deleted: bool = False) -> Select[tuple[Product]]:
    """Base product query.

    Args:
        include_deleted: Also return soft-deleted rows. Only
            administrative maintenance code passes True.

    Returns:
        Select over products.
    """
    query = select(Product)
    if not include_deleted:
        query = query.where(Product.deleted_at.is_(None))
    return query


def product_graph_options() -> list[Any]:
    """Loader options for the full detail projection.

    Options reached through a variant's selections are the same objects
    as ``Product.options``, so that path loads their values too.
    """
    return [
        selectinload(Product.category).selectinload(Category.parent),
        selectinload(Product.options).selectinload(ProductOption.values),
        selectinload(Product.variants)
        .selectinload(ProductVariant.selections)
        .selectinload(VariantOptionValue.option)
        .selectinload(ProductOption.values),
        selectinload(Product.variants)
        .selectinload(ProductVariant.selections)
        .selectinload(VariantOptionValue.option_value),
        selectinload(Product.attributes).selectinload(ProductAttribute.definition),
        selectinload(Product.package_options),
    ]


def product_preview_options() -> list[Any]:
    """Loader options for the listing projection."""
    return [
        selectinload(Product.category).selectinload(Category.parent),
        selectinload(Product.options).selectinload(ProductOption.values),
        selectinload(Product.variants),
    ]


# ============================================================================
# Categories and Attribute Definitions
# ============================================================================


class CategoryRepository:
    """Repository for categories."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, category_id: int) -> Category | None:
        """Get category by ID with its parent loaded."""
        query = (
            select(Category)
            .where(Category.id == category_id)
            .options(selectinload(Category.parent))
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_all(self) -> Sequence[Category]:
        """Get all categories ordered by name."""
        result = await self.session.execute(select(Category).order_by(Category.name, Category.id))
        return result.scalars().all()

    async def save(self, category: Category) -> Category:
        """Insert a category and assign its id."""
        self.session.add(category)
        await self.session.flush()
        return category

    async def is_referenced(self, category_id: int) -> bool:
        """Check for live products or subcategories pointing at a category."""
        product_ref = exists().where(
            and_(Product.category_id == category_id, Product.deleted_at.is_(None))
        )
        child_ref = exists().where(Category.parent_id == category_id)
        result = await self.session.execute(select(or_(product_ref, child_ref)))
        return bool(result.scalar())

    async def has_any_product(self, category_id: int) -> bool:
        """Check for any product row, live or soft-deleted."""
        result = await self.session.execute(
            select(exists().where(Product.category_id == category_id))
        )
        return bool(result.scalar())

    async def delete(self, category: Category) -> None:
        """Hard-delete a category."""
        await self.session.delete(category)
        await self.session.flush()


class AttributeDefinitionRepository:
    """Repository for catalog-wide attribute definitions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_keys(self, keys: list[str]) -> dict[str, AttributeDefinition]:
        """Get definitions by normalized key."""
        if not keys:
            return {}
        result = await self.session.execute(
            select(AttributeDefinition).where(AttributeDefinition.key.in_(keys))
        )
        return {d.key: d for d in result.scalars().all()}

    async def save(self, definition: AttributeDefinition) -> AttributeDefinition:
        """Insert a definition and assign its id."""
        self.session.add(definition)
        await self.session.flush()
        return definition


# ============================================================================
# Products
# ============================================================================


class ProductRepository:
    """Repository for Product database operations.

    Handles all database interactions for products including
    filtering, sorting, scoring and pagination.

    Example usage:
        async with database.unit_of_work() as session:
            repo = ProductRepository(session)
            product = await repo.get(42, seller_id=7)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def save(self, product: Product) -> Product:
        """Save a product to database.

        Args:
            product: Product to save.

        Returns:
            Saved product with its id assigned.
        """
        self.session.add(product)
        await self.session.flush()
        return product

    async def get(
        self,
        product_id: int,
        seller_id: int | None = None,
        with_graph: bool = False,
        for_update: bool = False,
    ) -> Product | None:
        """Get a live product by ID.

        Args:
            product_id: Product ID.
            seller_id: When set, products of other sellers are not returned.
            with_graph: Eagerly load the full detail graph.
            for_update: Lock the row for the rest of the transaction.

        Returns:
            Product if found, None otherwise.
        """
        query = live_products().where(Product.id == product_id)
        if seller_id is not None:
            query = query.where(Product.seller_id == seller_id)
        if with_graph:
            query = query.options(*product_graph_options())
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def base_sku_exists(self, seller_id: int, base_sku: str) -> bool:
        """Check whether a seller already has a live product with the SKU."""
        query = select(
            exists().where(
                and_(
                    Product.seller_id == seller_id,
                    Product.base_sku == base_sku,
                    Product.deleted_at.is_(None),
                )
            )
        )
        result = await self.session.execute(query)
        return bool(result.scalar())

    async def touch(self, product: Product) -> None:
        """Bump ``updated_at`` after a child row changed."""
        product.updated_at = datetime.now(timezone.utc)
        await self.session.flush()

    async def soft_delete(self, product_id: int) -> bool:
        """Mark a product deleted and remove all of its child rows.

        The ``deleted_at IS NULL`` guard makes concurrent deletes of the
        same product race on one row update; only the winner cascades.

        Args:
            product_id: Product to delete.

        Returns:
            True if this call deleted the product, False if it was
            already gone.
        """
        now = datetime.now(timezone.utc)
        result = await self.session.execute(
            update(Product)
            .where(and_(Product.id == product_id, Product.deleted_at.is_(None)))
            .values(deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False

        variant_ids = select(ProductVariant.id).where(ProductVariant.product_id == product_id)
        option_ids = select(ProductOption.id).where(ProductOption.product_id == product_id)

        await self.session.execute(
            delete(VariantOptionValue).where(VariantOptionValue.variant_id.in_(variant_ids))
        )
        await self.session.execute(delete(ProductVariant).where(ProductVariant.product_id == product_id))
        await self.session.execute(
            delete(ProductOptionValue).where(ProductOptionValue.option_id.in_(option_ids))
        )
        await self.session.execute(delete(ProductOption).where(ProductOption.product_id == product_id))
        await self.session.execute(delete(ProductAttribute).where(ProductAttribute.product_id == product_id))
        await self.session.execute(delete(PackageOption).where(PackageOption.product_id == product_id))
        return True

    async def count_children(self, product_id: int) -> dict[str, int]:
        """Count rows that belong to a product, regardless of its state."""
        counts: dict[str, int] = {}
        for name, model in (
            ("options", ProductOption),
            ("variants", ProductVariant),
            ("attributes", ProductAttribute),
            ("packageOptions", PackageOption),
        ):
            result = await self.session.execute(
                select(func.count()).select_from(model).where(model.product_id == product_id)
            )
            counts[name] = result.scalar_one()
        return counts

    # ------------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------------

    def _build_conditions(self, filters: ProductFilter) -> list[Any]:
        """Build WHERE conditions from a filter."""
        conditions: list[Any] = [Product.deleted_at.is_(None)]

        if filters.seller_id is not None:
            conditions.append(Product.seller_id == filters.seller_id)
        if filters.category_ids:
            conditions.append(Product.category_id.in_(filters.category_ids))
        if filters.brands:
            conditions.append(Product.brand.in_(filters.brands))
        if filters.is_popular is not None:
            conditions.append(Product.is_popular == filters.is_popular)
        if filters.min_price is not None:
            conditions.append(
                exists().where(
                    and_(
                        ProductVariant.product_id == Product.id,
                        ProductVariant.price >= filters.min_price,
                    )
                )
            )
        if filters.max_price is not None:
            conditions.append(
                exists().where(
                    and_(
                        ProductVariant.product_id == Product.id,
                        ProductVariant.price <= filters.max_price,
                    )
                )
            )
        return conditions

    def _get_sort_columns(self, pagination: PaginationParams) -> list[Any]:
        """Get ORDER BY columns with the id as a stable tie-breaker."""
        column = Product.name if pagination.sort_by == SortField.NAME else Product.created_at
        if pagination.sort_order == SortOrder.ASC:
            return [column.asc(), Product.id.asc()]
        return [column.desc(), Product.id.desc()]

    async def find_page(
        self,
        filters: ProductFilter,
        pagination: PaginationParams,
    ) -> Sequence[Product]:
        """Find products with filtering, sorting, and pagination.

        Args:
            filters: Filter parameters.
            pagination: Page, size and sort.

        Returns:
            Products of the page with the listing graph loaded.
        """
        query = (
            select(Product)
            .where(and_(*self._build_conditions(filters)))
            .order_by(*self._get_sort_columns(pagination))
            .limit(pagination.limit)
            .offset(pagination.offset)
            .options(*product_preview_options())
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count(self, filters: ProductFilter) -> int:
        """Count products matching filters."""
        query = select(func.count(Product.id)).where(and_(*self._build_conditions(filters)))
        result = await self.session.execute(query)
        return result.scalar_one()

    # ------------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------------

    def _score_expression(self, term: str, weights: SearchWeights) -> Any:
        """Weighted match score of a product against a lowercased term."""
        pattern = f"%{escape_like(term)}%"

        def contains(column: Any) -> Any:
            return func.lower(func.coalesce(column, "")).like(pattern, escape="\\")

        # Each tag row is matched on its own
        tag_match = exists().where(
            and_(ProductTag.product_id == Product.id, contains(ProductTag.tag))
        )

        return (
            case((func.lower(Product.name) == term, weights.name_exact), else_=0)
            + case((contains(Product.name), weights.name), else_=0)
            + case((contains(Product.brand), weights.brand), else_=0)
            + case((tag_match, weights.tags), else_=0)
            + case((contains(Product.short_description), weights.short_description), else_=0)
            + case((contains(Product.long_description), weights.long_description), else_=0)
        )

    async def search(
        self,
        term: str,
        filters: ProductFilter,
        pagination: PaginationParams,
        weights: SearchWeights,
    ) -> tuple[list[tuple[Product, int]], int]:
        """Score products against a search term.

        Args:
            term: Lowercased, trimmed search term.
            filters: Filter parameters.
            pagination: Page and size; ordering is by score.
            weights: Per-field weights.

        Returns:
            ((product, raw score) pairs of the page, total matches).
        """
        score = self._score_expression(term, weights).label("score")
        conditions = self._build_conditions(filters)

        scored = (
            select(Product.id.label("product_id"), score)
            .where(and_(*conditions))
            .subquery()
        )
        matching = select(scored.c.product_id, scored.c.score).where(scored.c.score > literal(0))

        total_result = await self.session.execute(
            select(func.count()).select_from(matching.subquery())
        )
        total = total_result.scalar_one()
        if total == 0:
            return [], 0

        page_result = await self.session.execute(
            matching.order_by(scored.c.score.desc(), scored.c.product_id.desc())
            .limit(pagination.limit)
            .offset(pagination.offset)
        )
        ranked = [(row.product_id, int(row.score)) for row in page_result]
        if not ranked:
            return [], total

        products_result = await self.session.execute(
            select(Product)
            .where(Product.id.in_([product_id for product_id, _ in ranked]))
            .options(*product_preview_options())
        )
        by_id = {p.id: p for p in products_result.scalars().all()}
        return [(by_id[pid], s) for pid, s in ranked if pid in by_id], total

    # ------------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------------

    def _scope(self, seller_id: int | None) -> list[Any]:
        conditions: list[Any] = [Product.deleted_at.is_(None)]
        if seller_id is not None:
            conditions.append(Product.seller_id == seller_id)
        return conditions

    async def count_by_category(self, seller_id: int | None) -> dict[int, int]:
        """Product counts per directly assigned category."""
        query = (
            select(Product.category_id, func.count(Product.id))
            .where(and_(*self._scope(seller_id)))
            .group_by(Product.category_id)
        )
        result = await self.session.execute(query)
        return {category_id: count for category_id, count in result.all()}

    async def count_by_brand(self, seller_id: int | None) -> list[tuple[str | None, int]]:
        """Product counts per brand; products without a brand group under None."""
        query = (
            select(Product.brand, func.count(Product.id))
            .where(and_(*self._scope(seller_id)))
            .group_by(Product.brand)
            .order_by(Product.brand)
        )
        result = await self.session.execute(query)
        return [(brand, count) for brand, count in result.all()]

    async def count_by_attribute(self, seller_id: int | None) -> list[tuple[AttributeDefinition, int]]:
        """Product counts per attribute definition in use."""
        query = (
            select(AttributeDefinition, func.count(func.distinct(ProductAttribute.product_id)))
            .join(ProductAttribute, ProductAttribute.attribute_definition_id == AttributeDefinition.id)
            .join(Product, Product.id == ProductAttribute.product_id)
            .where(and_(*self._scope(seller_id)))
            .group_by(AttributeDefinition.id)
            .order_by(AttributeDefinition.key)
        )
        result = await self.session.execute(query)
        return [(definition, count) for definition, count in result.all()]

    async def price_range(self, seller_id: int | None) -> tuple[Decimal | None, Decimal | None, int]:
        """Lowest and highest variant price and the number of priced products."""
        query = (
            select(
                func.min(ProductVariant.price),
                func.max(ProductVariant.price),
                func.count(func.distinct(Product.id)),
            )
            .join(Product, Product.id == ProductVariant.product_id)
            .where(and_(*self._scope(seller_id)))
        )
        result = await self.session.execute(query)
        low, high, count = result.one()
        return low, high, count

    async def variant_type_counts(self, seller_id: int | None) -> list[tuple[str, str, int]]:
        """Product counts per option name: (name, display name, count)."""
        query = (
            select(
                ProductOption.name,
                func.min(ProductOption.display_name),
                func.count(func.distinct(Product.id)),
            )
            .join(Product, Product.id == ProductOption.product_id)
            .where(and_(*self._scope(seller_id)))
            .group_by(ProductOption.name)
            .order_by(ProductOption.name)
        )
        result = await self.session.execute(query)
        return [(name, display, count) for name, display, count in result.all()]

    async def variant_value_counts(self, seller_id: int | None) -> list[tuple[str, str, str, int]]:
        """Product counts per (option name, value): (name, value, display name, count)."""
        query = (
            select(
                ProductOption.name,
                ProductOptionValue.value,
                func.min(ProductOptionValue.display_name),
                func.count(func.distinct(Product.id)),
            )
            .join(ProductOption, ProductOption.id == ProductOptionValue.option_id)
            .join(Product, Product.id == ProductOption.product_id)
            .where(and_(*self._scope(seller_id)))
            .group_by(ProductOption.name, ProductOptionValue.value)
            .order_by(ProductOption.name, ProductOptionValue.value)
        )
        result = await self.session.execute(query)
        return [(name, value, display, count) for name, value, display, count in result.all()]

    async def stock_counts(self, seller_id: int | None) -> tuple[int, int]:
        """Count (in stock, total) products.

        A product is in stock when it allows purchase and at least one of
        its purchasable variants has stock.
        """
        purchasable = exists().where(
            and_(
                ProductVariant.product_id == Product.id,
                ProductVariant.allow_purchase,
                ProductVariant.stock > 0,
            )
        )
        in_stock = func.sum(
            case((and_(Product.allow_purchase, purchasable), 1), else_=0)
        )
        query = select(in_stock, func.count(Product.id)).where(and_(*self._scope(seller_id)))
        result = await self.session.execute(query)
        in_stock_count, total = result.one()
        return int(in_stock_count or 0), int(total or 0)


# ============================================================================
# Options and Values
# ============================================================================


class OptionRepository:
    """Repository for product options and their values."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, product_id: int, option_id: int, with_values: bool = False) -> ProductOption | None:
        """Get an option that belongs to a product."""
        query = select(ProductOption).where(
            and_(ProductOption.id == option_id, ProductOption.product_id == product_id)
        )
        if with_values:
            query = query.options(selectinload(ProductOption.values)).execution_options(
                populate_existing=True
            )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, product_id: int, option_ids: list[int]) -> dict[int, ProductOption]:
        """Get options of a product by id."""
        result = await self.session.execute(
            select(ProductOption).where(
                and_(ProductOption.product_id == product_id, ProductOption.id.in_(option_ids))
            )
        )
        return {o.id: o for o in result.scalars().all()}

    async def list_for_product(self, product_id: int) -> Sequence[ProductOption]:
        """Get a product's options with values."""
        result = await self.session.execute(
            select(ProductOption)
            .where(ProductOption.product_id == product_id)
            .options(selectinload(ProductOption.values))
            .order_by(ProductOption.position, ProductOption.id)
        )
        return result.scalars().all()

    async def name_exists(self, product_id: int, name: str) -> bool:
        """Check for an option with the normalized name on a product."""
        result = await self.session.execute(
            select(exists().where(and_(ProductOption.product_id == product_id, ProductOption.name == name)))
        )
        return bool(result.scalar())

    async def save(self, item: ProductOption | ProductOptionValue) -> Any:
        """Insert or update an option or value."""
        self.session.add(item)
        await self.session.flush()
        return item

    async def save_all(self, items: Sequence[ProductOption | ProductOptionValue]) -> None:
        """Insert several options or values."""
        self.session.add_all(items)
        await self.session.flush()

    async def count_variants_using_option(self, option_id: int) -> int:
        """Count variants whose selections point at the option."""
        result = await self.session.execute(
            select(func.count(func.distinct(VariantOptionValue.variant_id))).where(
                VariantOptionValue.option_id == option_id
            )
        )
        return result.scalar_one()

    async def delete_option(self, option: ProductOption) -> None:
        """Delete an option and its values."""
        await self.session.execute(
            delete(ProductOptionValue).where(ProductOptionValue.option_id == option.id)
        )
        await self.session.execute(delete(ProductOption).where(ProductOption.id == option.id))

    async def get_value(self, option_id: int, value_id: int) -> ProductOptionValue | None:
        """Get a value that belongs to an option."""
        result = await self.session.execute(
            select(ProductOptionValue).where(
                and_(ProductOptionValue.id == value_id, ProductOptionValue.option_id == option_id)
            )
        )
        return result.scalar_one_or_none()

    async def get_values(self, option_id: int, value_ids: list[int]) -> dict[int, ProductOptionValue]:
        """Get values of an option by id."""
        result = await self.session.execute(
            select(ProductOptionValue).where(
                and_(ProductOptionValue.option_id == option_id, ProductOptionValue.id.in_(value_ids))
            )
        )
        return {v.id: v for v in result.scalars().all()}

    async def existing_values(self, option_id: int) -> set[str]:
        """Normalized values already stored on an option."""
        result = await self.session.execute(
            select(ProductOptionValue.value).where(ProductOptionValue.option_id == option_id)
        )
        return set(result.scalars().all())

    async def count_variants_using_value(self, value_id: int) -> int:
        """Count variants that select the value."""
        result = await self.session.execute(
            select(func.count(func.distinct(VariantOptionValue.variant_id))).where(
                VariantOptionValue.option_value_id == value_id
            )
        )
        return result.scalar_one()

    async def value_usage(self, option_id: int) -> dict[int, int]:
        """Variant count per value of an option."""
        result = await self.session.execute(
            select(VariantOptionValue.option_value_id, func.count(VariantOptionValue.variant_id))
            .where(VariantOptionValue.option_id == option_id)
            .group_by(VariantOptionValue.option_value_id)
        )
        return {value_id: count for value_id, count in result.all()}

    async def delete_value(self, value: ProductOptionValue) -> None:
        """Delete a value."""
        await self.session.execute(delete(ProductOptionValue).where(ProductOptionValue.id == value.id))


# ============================================================================
# Variants
# ============================================================================


class VariantRepository:
    """Repository for variants and their selected options."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def save(self, variant: ProductVariant) -> ProductVariant:
        """Insert a variant and assign its id."""
        self.session.add(variant)
        await self.session.flush()
        return variant

    async def get(self, product_id: int, variant_id: int) -> ProductVariant | None:
        """Get a variant that belongs to a product."""
        result = await self.session.execute(
            select(ProductVariant).where(
                and_(ProductVariant.id == variant_id, ProductVariant.product_id == product_id)
            )
        )
        return result.scalar_one_or_none()

    async def get_with_selections(self, variant_id: int) -> ProductVariant | None:
        """Get a variant with selected options and values loaded."""
        result = await self.session.execute(
            select(ProductVariant)
            .where(ProductVariant.id == variant_id)
            .options(
                selectinload(ProductVariant.selections).selectinload(VariantOptionValue.option),
                selectinload(ProductVariant.selections).selectinload(VariantOptionValue.option_value),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_with_selections(self, product_id: int) -> Sequence[ProductVariant]:
        """Get a product's variants with selected options and values loaded."""
        result = await self.session.execute(
            select(ProductVariant)
            .where(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.id)
            .options(
                selectinload(ProductVariant.selections).selectinload(VariantOptionValue.option),
                selectinload(ProductVariant.selections).selectinload(VariantOptionValue.option_value),
            )
        )
        return result.scalars().all()

    async def sku_exists(self, product_id: int, sku: str, exclude_id: int | None = None) -> bool:
        """Check for a variant with the SKU on a product.

        Args:
            product_id: Product to look in.
            sku: Trimmed SKU.
            exclude_id: Variant ignored by the check (the one being renamed).
        """
        condition = and_(ProductVariant.product_id == product_id, ProductVariant.sku == sku)
        if exclude_id is not None:
            condition = and_(condition, ProductVariant.id != exclude_id)
        result = await self.session.execute(select(exists().where(condition)))
        return bool(result.scalar())

    async def combinations(self, product_id: int) -> dict[int, frozenset[tuple[str, str]]]:
        """Option coordinates of every variant: {variant id: {(option, value)}}."""
        result = await self.session.execute(
            select(VariantOptionValue.variant_id, ProductOption.name, ProductOptionValue.value)
            .join(ProductVariant, ProductVariant.id == VariantOptionValue.variant_id)
            .join(ProductOption, ProductOption.id == VariantOptionValue.option_id)
            .join(ProductOptionValue, ProductOptionValue.id == VariantOptionValue.option_value_id)
            .where(ProductVariant.product_id == product_id)
        )
        pairs: dict[int, set[tuple[str, str]]] = {}
        for variant_id, option_name, value in result.all():
            pairs.setdefault(variant_id, set()).add((option_name, value))
        return {variant_id: frozenset(items) for variant_id, items in pairs.items()}

    async def count(self, product_id: int) -> int:
        """Count a product's variants."""
        result = await self.session.execute(
            select(func.count()).select_from(ProductVariant).where(ProductVariant.product_id == product_id)
        )
        return result.scalar_one()

    async def clear_default(self, product_id: int) -> None:
        """Unset ``is_default`` on every variant of a product."""
        await self.session.execute(
            update(ProductVariant)
            .where(and_(ProductVariant.product_id == product_id, ProductVariant.is_default))
            .values(is_default=False)
            .execution_options(synchronize_session=False)
        )

    async def add_selections(self, selections: list[VariantOptionValue]) -> None:
        """Insert selected-option rows."""
        self.session.add_all(selections)
        await self.session.flush()

    async def delete(self, variant: ProductVariant) -> None:
        """Delete a variant and its selected options."""
        await self.session.execute(
            delete(VariantOptionValue).where(VariantOptionValue.variant_id == variant.id)
        )
        await self.session.execute(delete(ProductVariant).where(ProductVariant.id == variant.id))


# ============================================================================
# Product Attributes
# ============================================================================


class ProductAttributeRepository:
    """Repository for attribute values attached to products."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _with_definition(self) -> Select[tuple[ProductAttribute]]:
        return select(ProductAttribute).options(selectinload(ProductAttribute.definition))

    async def get(self, product_id: int, attribute_id: int) -> ProductAttribute | None:
        """Get an attribute that belongs to a product."""
        result = await self.session.execute(
            self._with_definition().where(
                and_(ProductAttribute.id == attribute_id, ProductAttribute.product_id == product_id)
            )
        )
        return result.scalar_one_or_none()

    async def get_many(self, product_id: int, attribute_ids: list[int]) -> dict[int, ProductAttribute]:
        """Get attributes of a product by id."""
        result = await self.session.execute(
            self._with_definition().where(
                and_(ProductAttribute.product_id == product_id, ProductAttribute.id.in_(attribute_ids))
            )
        )
        return {a.id: a for a in result.scalars().all()}

    async def definition_used(self, product_id: int, definition_id: int) -> bool:
        """Check whether the product already has a value for a definition."""
        result = await self.session.execute(
            select(
                exists().where(
                    and_(
                        ProductAttribute.product_id == product_id,
                        ProductAttribute.attribute_definition_id == definition_id,
                    )
                )
            )
        )
        return bool(result.scalar())

    async def save(self, attribute: ProductAttribute) -> ProductAttribute:
        """Insert or update an attribute."""
        self.session.add(attribute)
        await self.session.flush()
        return attribute

    async def save_all(self, attributes: Sequence[ProductAttribute]) -> None:
        """Insert or update several attributes."""
        self.session.add_all(attributes)
        await self.session.flush()

    async def delete(self, attribute: ProductAttribute) -> None:
        """Delete an attribute; its definition stays."""
        await self.session.execute(delete(ProductAttribute).where(ProductAttribute.id == attribute.id))
