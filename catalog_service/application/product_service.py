"""Product mutation service.

The single write path for products and variants. Each operation runs in
one unit of work: every insert, update and delete of an operation
commits together or not at all. Cache entries are invalidated after the
commit.
"""

from collections import Counter
from typing import Any

import structlog
from catalog_service.application.access import load_owned_product
from catalog_service.application.attribute_service import resolve_definitions
from catalog_service.catalog.models import (
    PackageOption,
    Product,
    ProductAttribute,
    ProductOption,
    ProductOptionValue,
    ProductVariant,
    VariantOptionValue,
)
from catalog_service.catalog.projections import product_detail, variant_detail
from catalog_service.catalog.repository import (
    CategoryRepository,
    OptionRepository,
    ProductRepository,
    VariantRepository,
)
from catalog_service.domain.entities import (
    OptionDraft,
    OptionIndex,
    OptionValueDraft,
    ProductDraft,
    ProductPatch,
    VariantDraft,
    VariantPatch,
    apply_last_default,
    ensure_distinct_combinations,
)
from catalog_service.domain.exceptions import (
    BaseSkuExistsError,
    CategoryNotFoundError,
    LastVariantError,
    ProductNotFoundError,
    SellerNotFoundError,
    ValidationError,
    VariantNotFoundError,
    VariantSkuExistsError,
)
from catalog_service.domain.state_machines import ProductStatus, validate_product_transition
from catalog_service.domain.validators import (
    validate_product_draft,
    validate_product_patch,
    validate_variant_draft,
    validate_variant_patch,
)
from catalog_service.domain.value_objects import Price, is_present, normalize_name
from catalog_service.infrastructure.cache import CacheService
from catalog_service.infrastructure.database import Database
from catalog_service.infrastructure.security import TokenClaims
from catalog_service.infrastructure.users import UserRepository

logger = structlog.get_logger()


def _clean(value: str | None) -> str | None:
    """Trim optional text; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def _tag_set(tags: list[str]) -> list[str]:
    """Trimmed tags without case-insensitive repeats, first spelling kept."""
    seen: set[str] = set()
    unique: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag.lower() not in seen:
            seen.add(tag.lower())
            unique.append(tag)
    return unique


class ProductMutationService:
    """Service for product and variant writes.

    Example usage:
        service = ProductMutationService(get_database(), get_cache_service())
        product = await service.create_product(draft)
    """

    def __init__(
        self,
        database: Database,
        cache: CacheService,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            database: Unit-of-work provider.
            cache: Cache to invalidate after writes.
            request_id: Request correlation id for logs.
        """
        self.database = database
        self.cache = cache
        self.request_id = request_id

    # ------------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------------

    async def create_product(self, draft: ProductDraft) -> dict[str, Any]:
        """Create a product with all options, values, variants, attributes
        and package options in one transaction.

        Args:
            draft: Submitted product graph; ``seller_id`` is already resolved.

        Returns:
            Detail projection of the stored product.

        Raises:
            ValidationError: On invalid fields or option combinations.
            NotFoundError: If the category or seller does not exist.
            ConflictError: If the seller already uses the base SKU.
        """
        validate_product_draft(draft)

        # First pass: index options/values by normalized name, then
        # resolve every variant's selections against the index.
        index = OptionIndex.from_drafts(draft.options)
        resolved = [
            index.resolve(variant.selections, f"variants[{i}].options")
            for i, variant in enumerate(draft.variants)
        ]
        ensure_distinct_combinations(draft.variants)
        apply_last_default(draft.variants)

        base_sku = draft.base_sku.strip()
        async with self.database.unit_of_work() as session:
            if not await UserRepository(session).seller_exists(draft.seller_id):
                raise SellerNotFoundError(draft.seller_id)
            if await CategoryRepository(session).get(draft.category_id) is None:
                raise CategoryNotFoundError(draft.category_id)

            products = ProductRepository(session)
            if await products.base_sku_exists(draft.seller_id, base_sku):
                raise BaseSkuExistsError(base_sku)

            definitions = await resolve_definitions(session, draft.attributes)

            product = await products.save(
                Product(
                    seller_id=draft.seller_id,
                    category_id=draft.category_id,
                    name=draft.name.strip(),
                    base_sku=base_sku,
                    brand=_clean(draft.brand),
                    short_description=_clean(draft.short_description),
                    long_description=_clean(draft.long_description),
                    tags=_tag_set(draft.tags),
                    is_popular=draft.is_popular,
                    allow_purchase=draft.allow_purchase,
                )
            )
            status = ProductStatus.CREATED

            # Second pass: insert rows and map drafts to assigned ids.
            options = OptionRepository(session)
            option_rows = {id(o): self._option_row(product.id, o) for o in draft.options}
            await options.save_all(list(option_rows.values()))

            value_rows: dict[int, ProductOptionValue] = {}
            for option in draft.options:
                for value in option.values:
                    value_rows[id(value)] = self._value_row(option_rows[id(option)].id, value)
            await options.save_all(list(value_rows.values()))

            variants = VariantRepository(session)
            variant_rows = [self._variant_row(product.id, v) for v in draft.variants]
            session.add_all(variant_rows)
            await session.flush()

            await variants.add_selections(
                [
                    VariantOptionValue(
                        variant_id=row.id,
                        option_id=option_rows[id(option)].id,
                        option_value_id=value_rows[id(value)].id,
                    )
                    for row, pairs in zip(variant_rows, resolved)
                    for option, value in pairs
                ]
            )

            session.add_all(
                [
                    ProductAttribute(
                        product_id=product.id,
                        attribute_definition_id=definitions[normalize_name(a.key)].id,
                        value=a.value.strip(),
                        sort_order=a.sort_order,
                    )
                    for a in draft.attributes
                ]
            )
            session.add_all(
                [
                    PackageOption(
                        product_id=product.id,
                        name=p.name.strip(),
                        description=_clean(p.description),
                        price=Price(p.price).amount,
                        quantity=p.quantity,
                    )
                    for p in draft.package_options
                ]
            )
            await session.flush()

            validate_product_transition(product.id, status, ProductStatus.ACTIVE)
            stored = await products.get(product.id, with_graph=True)
            if stored is None:
                raise ProductNotFoundError(product.id)
            data = product_detail(stored)

        await self.cache.invalidate_product(data["id"], draft.seller_id)
        logger.info(
            "Product created",
            product_id=data["id"],
            seller_id=draft.seller_id,
            option_count=len(draft.options),
            variant_count=len(draft.variants),
            request_id=self.request_id,
        )
        return data

    @staticmethod
    def _option_row(product_id: int, option: OptionDraft) -> ProductOption:
        return ProductOption(
            product_id=product_id,
            name=normalize_name(option.name),
            display_name=option.display_name.strip(),
            position=option.position,
        )

    @staticmethod
    def _value_row(option_id: int, value: OptionValueDraft) -> ProductOptionValue:
        return ProductOptionValue(
            option_id=option_id,
            value=normalize_name(value.value),
            display_name=value.display_name.strip(),
            color_code=value.color_code,
            position=value.position,
        )

    @staticmethod
    def _variant_row(product_id: int, variant: VariantDraft) -> ProductVariant:
        return ProductVariant(
            product_id=product_id,
            sku=variant.sku.strip(),
            price=Price(variant.price).amount,
            stock=variant.stock,
            images=[url.strip() for url in variant.images],
            is_default=variant.is_default,
            is_popular=variant.is_popular,
            allow_purchase=variant.allow_purchase,
        )

    # ------------------------------------------------------------------------
    # Update / Delete
    # ------------------------------------------------------------------------

    async def update_product(
        self,
        product_id: int,
        patch: ProductPatch,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Patch a product's scalar fields.

        The option matrix is not touched. A category change must point
        at an existing category.

        Returns:
            Detail projection after the update.
        """
        validate_product_patch(patch)

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            if is_present(patch.category_id) and patch.category_id != product.category_id:
                if await CategoryRepository(session).get(patch.category_id) is None:
                    raise CategoryNotFoundError(patch.category_id)
                product.category_id = patch.category_id

            if is_present(patch.name):
                product.name = patch.name.strip()
            if is_present(patch.brand):
                product.brand = _clean(patch.brand)
            if is_present(patch.short_description):
                product.short_description = _clean(patch.short_description)
            if is_present(patch.long_description):
                product.long_description = _clean(patch.long_description)
            if is_present(patch.tags):
                product.tags = _tag_set(patch.tags)
            if is_present(patch.is_popular):
                product.is_popular = patch.is_popular
            if is_present(patch.allow_purchase):
                product.allow_purchase = patch.allow_purchase

            products = ProductRepository(session)
            await products.touch(product)
            seller_id = product.seller_id
            stored = await products.get(product_id, with_graph=True)
            if stored is None:
                raise ProductNotFoundError(product_id)
            data = product_detail(stored)

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info("Product updated", product_id=product_id, request_id=self.request_id)
        return data

    async def delete_product(self, product_id: int, caller: TokenClaims) -> None:
        """Soft-delete a product and hard-delete all of its child rows.

        Raises:
            ProductNotFoundError: If missing or already deleted.
            ForbiddenError: If a seller does not own the product.
        """
        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            validate_product_transition(
                product_id,
                ProductStatus.from_deleted_at(product.deleted_at),
                ProductStatus.DELETED,
            )
            seller_id = product.seller_id
            if not await ProductRepository(session).soft_delete(product_id):
                raise ProductNotFoundError(product_id)

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Product deleted",
            product_id=product_id,
            seller_id=seller_id,
            actor_id=caller.user_id,
            request_id=self.request_id,
        )

    # ------------------------------------------------------------------------
    # Variants
    # ------------------------------------------------------------------------

    async def add_variant(
        self,
        product_id: int,
        draft: VariantDraft,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Add a variant to an existing product.

        The selections must cover the product's current options exactly.
        A new default variant clears the previous default.

        Returns:
            Variant projection.
        """
        validate_variant_draft("", draft)

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            index: OptionIndex[ProductOption, ProductOptionValue] = OptionIndex()
            for option in await OptionRepository(session).list_for_product(product_id):
                index.add_option(option.name, option)
                for value in option.values:
                    index.add_value(option.name, value.value, value)
            if not len(index):
                raise ValidationError(
                    field="options",
                    reason="no_options",
                    message="Product has no options to select",
                )
            pairs = index.resolve(draft.selections, "options")
            variants = VariantRepository(session)
            ensure_distinct_combinations(
                [draft],
                taken=set((await variants.combinations(product_id)).values()),
                field_path="",
            )
            sku = draft.sku.strip()
            if await variants.sku_exists(product_id, sku):
                raise VariantSkuExistsError(sku)
            if draft.is_default:
                await variants.clear_default(product_id)

            row = await variants.save(self._variant_row(product_id, draft))
            await variants.add_selections(
                [
                    VariantOptionValue(variant_id=row.id, option_id=option.id, option_value_id=value.id)
                    for option, value in pairs
                ]
            )
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            stored = await variants.get_with_selections(row.id)
            if stored is None:
                raise VariantNotFoundError(row.id)
            data = variant_detail(stored)

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info("Variant added", product_id=product_id, variant_id=data["id"], request_id=self.request_id)
        return data

    async def delete_variant(self, product_id: int, variant_id: int, caller: TokenClaims) -> None:
        """Delete a variant; a product always keeps at least one.

        Raises:
            VariantNotFoundError: If the variant is not on the product.
            LastVariantError: If it is the product's only variant.
        """
        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            variants = VariantRepository(session)
            variant = await variants.get(product_id, variant_id)
            if variant is None:
                raise VariantNotFoundError(variant_id)
            if await variants.count(product_id) <= 1:
                raise LastVariantError(variant_id)
            await variants.delete(variant)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info("Variant deleted", product_id=product_id, variant_id=variant_id, request_id=self.request_id)

    async def update_variant(
        self,
        product_id: int,
        patch: VariantPatch,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Patch one variant's scalar fields.

        Returns:
            Variant projection after the update.
        """
        validate_variant_patch("", patch)
        updated = await self._apply_variant_patches(product_id, [patch], caller, "")
        data = updated[0]
        logger.info("Variant updated", product_id=product_id, variant_id=data["id"], request_id=self.request_id)
        return data

    async def bulk_update_variants(
        self,
        product_id: int,
        patches: list[VariantPatch],
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Patch several variants of a product atomically.

        Patches apply in request order, so when more than one sets
        ``isDefault`` the last one is the default afterwards.

        Returns:
            ``updatedCount`` and projections of the distinct variants touched.
        """
        if not patches:
            raise ValidationError(field="variants", reason="required", message="variants must not be empty")
        for i, patch in enumerate(patches):
            validate_variant_patch(f"variants[{i}]", patch)
        updated = await self._apply_variant_patches(product_id, patches, caller, "variants")
        logger.info(
            "Variants bulk updated",
            product_id=product_id,
            updated_count=len(updated),
            request_id=self.request_id,
        )
        return {"updatedCount": len(updated), "variants": updated}

    async def _apply_variant_patches(
        self,
        product_id: int,
        patches: list[VariantPatch],
        caller: TokenClaims,
        prefix: str,
    ) -> list[dict[str, Any]]:
        """Apply patches to the loaded variants in one unit of work.

        Raises:
            VariantNotFoundError: If a patch addresses a variant of another product.
            VariantSkuExistsError: If two variants would share a SKU.
        """
        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            loaded = {v.id: v for v in await VariantRepository(session).list_with_selections(product_id)}
            for patch in patches:
                if patch.variant_id not in loaded:
                    raise VariantNotFoundError(patch.variant_id)

            for patch in patches:
                variant = loaded[patch.variant_id]
                if is_present(patch.sku):
                    variant.sku = patch.sku.strip()
                if is_present(patch.price):
                    variant.price = Price(patch.price).amount
                if is_present(patch.images):
                    variant.images = [url.strip() for url in patch.images]
                if is_present(patch.is_popular):
                    variant.is_popular = patch.is_popular
                if is_present(patch.allow_purchase):
                    variant.allow_purchase = patch.allow_purchase
                if is_present(patch.is_default):
                    if patch.is_default:
                        for other in loaded.values():
                            other.is_default = False
                    variant.is_default = patch.is_default

            skus = Counter(v.sku for v in loaded.values())
            for i, patch in enumerate(patches):
                sku = loaded[patch.variant_id].sku
                if is_present(patch.sku) and skus[sku] > 1:
                    raise VariantSkuExistsError(sku, field=f"{prefix}[{i}].sku" if prefix else "sku")

            await session.flush()
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            touched = list(dict.fromkeys(p.variant_id for p in patches))
            data = [variant_detail(loaded[variant_id]) for variant_id in touched]

        await self.cache.invalidate_product(product_id, seller_id)
        return data
