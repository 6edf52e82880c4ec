"""Option and option value mutation service.

Options and values are edited after a product exists. Every call runs
in one unit of work: a bulk call with one bad row persists nothing.
Values referenced by a variant cannot be removed.
"""

from collections import Counter
from typing import Any

import structlog

from catalog_service.application.access import load_owned_product
from catalog_service.catalog.models import ProductOption, ProductOptionValue
from catalog_service.catalog.projections import option_detail, option_value_detail
from catalog_service.catalog.repository import OptionRepository, ProductRepository
from catalog_service.domain.entities import (
    OptionDraft,
    OptionIndex,
    OptionPatch,
    OptionValueDraft,
    OptionValuePatch,
)
from catalog_service.domain.exceptions import (
    OptionInUseError,
    OptionNameExistsError,
    OptionNotFoundError,
    OptionValueExistsError,
    OptionValueInUseError,
    OptionValueNotFoundError,
    ValidationError,
)
from catalog_service.domain.validators import (
    validate_option_draft,
    validate_option_patch,
    validate_value_draft,
    validate_value_patch,
)
from catalog_service.domain.value_objects import is_present, normalize_name
from catalog_service.infrastructure.cache import CacheService
from catalog_service.infrastructure.database import Database
from catalog_service.infrastructure.security import TokenClaims

logger = structlog.get_logger()


def _apply_option_patch(option: ProductOption, patch: OptionPatch) -> None:
    if is_present(patch.display_name) and patch.display_name:
        option.display_name = patch.display_name.strip()
    if is_present(patch.position):
        option.position = patch.position


def _apply_value_patch(value: ProductOptionValue, patch: OptionValuePatch) -> None:
    if is_present(patch.display_name) and patch.display_name:
        value.display_name = patch.display_name.strip()
    if is_present(patch.color_code) and patch.color_code != "":
        value.color_code = patch.color_code
    if is_present(patch.position):
        value.position = patch.position


def _require_items(field: str, items: list[Any]) -> None:
    if not items:
        raise ValidationError(field=field, reason="required", message=f"{field} must not be empty")


def _value_row(option_id: int, draft: OptionValueDraft) -> ProductOptionValue:
    return ProductOptionValue(
        option_id=option_id,
        value=normalize_name(draft.value),
        display_name=draft.display_name.strip(),
        color_code=draft.color_code,
        position=draft.position,
    )


class OptionMutationService:
    """Service for option and value writes.

    Example usage:
        service = OptionMutationService(get_database(), get_cache_service())
        option = await service.create_option(product_id, draft, caller)
    """

    def __init__(
        self,
        database: Database,
        cache: CacheService,
        request_id: str | None = None,
    ) -> None:
        self.database = database
        self.cache = cache
        self.request_id = request_id

    # ------------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------------

    async def create_option(
        self,
        product_id: int,
        draft: OptionDraft,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Add an option, with optional initial values, to a product.

        Existing variants keep their selections; they have no value for
        the new option until they are extended.

        Raises:
            OptionNameExistsError: If the normalized name is taken.
        """
        validate_option_draft("", draft)
        index = OptionIndex.from_drafts([draft])
        name = index.option_names[0]

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            if await options.name_exists(product_id, name):
                raise OptionNameExistsError(name)

            option = await options.save(
                ProductOption(
                    product_id=product_id,
                    name=name,
                    display_name=draft.display_name.strip(),
                    position=draft.position,
                )
            )
            await options.save_all([_value_row(option.id, v) for v in draft.values])
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            stored = await options.get(product_id, option.id, with_values=True)
            if stored is None:
                raise OptionNotFoundError(option.id)
            data = option_detail(stored)

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Option created",
            product_id=product_id,
            option_id=data["optionId"],
            value_count=len(draft.values),
            request_id=self.request_id,
        )
        return data

    async def update_option(
        self,
        product_id: int,
        patch: OptionPatch,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Patch an option's display name and position. The name never changes."""
        validate_option_patch("", patch)

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            option = await options.get(product_id, patch.option_id, with_values=True)
            if option is None:
                raise OptionNotFoundError(patch.option_id)
            _apply_option_patch(option, patch)
            await options.save(option)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            data = option_detail(option, Counter(await options.value_usage(option.id)))

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info("Option updated", product_id=product_id, option_id=patch.option_id, request_id=self.request_id)
        return data

    async def delete_option(self, product_id: int, option_id: int, caller: TokenClaims) -> None:
        """Delete an option and its values.

        Raises:
            OptionInUseError: If any variant selects a value of the option.
        """
        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            option = await options.get(product_id, option_id)
            if option is None:
                raise OptionNotFoundError(option_id)
            used_by = await options.count_variants_using_option(option_id)
            if used_by:
                raise OptionInUseError(option_id, used_by)
            await options.delete_option(option)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info("Option deleted", product_id=product_id, option_id=option_id, request_id=self.request_id)

    async def bulk_update_options(
        self,
        product_id: int,
        patches: list[OptionPatch],
        caller: TokenClaims,
    ) -> int:
        """Patch several options atomically.

        Repeated ids are applied in order, so the last patch wins.

        Returns:
            Number of distinct options touched.

        Raises:
            OptionNotFoundError: If any id is not an option of the product.
        """
        _require_items("options", patches)
        for i, patch in enumerate(patches):
            validate_option_patch(f"options[{i}]", patch, require_field=False)
        option_ids = list(dict.fromkeys(p.option_id for p in patches))

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            found = await options.get_many(product_id, option_ids)
            for option_id in option_ids:
                if option_id not in found:
                    raise OptionNotFoundError(option_id)
            for patch in patches:
                _apply_option_patch(found[patch.option_id], patch)
            await options.save_all(list(found.values()))
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Options bulk updated",
            product_id=product_id,
            updated_count=len(option_ids),
            request_id=self.request_id,
        )
        return len(option_ids)

    # ------------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------------

    async def add_value(
        self,
        product_id: int,
        option_id: int,
        draft: OptionValueDraft,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Add one value to an option.

        Raises:
            OptionValueExistsError: If the normalized value is taken.
        """
        values = await self.bulk_add_values(product_id, option_id, [draft], caller, field="")
        return values[0]

    async def bulk_add_values(
        self,
        product_id: int,
        option_id: int,
        drafts: list[OptionValueDraft],
        caller: TokenClaims,
        field: str = "values",
    ) -> list[dict[str, Any]]:
        """Add several values to an option atomically.

        Duplicates within the batch and collisions with stored values
        are both rejected; nothing is inserted in either case.

        Returns:
            Projections of the inserted values.
        """
        _require_items(field or "values", drafts)
        batch: set[str] = set()
        for i, draft in enumerate(drafts):
            prefix = f"{field}[{i}]" if field else ""
            validate_value_draft(prefix, draft)
            key = normalize_name(draft.value)
            if key in batch:
                raise OptionValueExistsError(key)
            batch.add(key)

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            if await options.get(product_id, option_id) is None:
                raise OptionNotFoundError(option_id)
            taken = await options.existing_values(option_id)
            for key in batch:
                if key in taken:
                    raise OptionValueExistsError(key)

            rows = [_value_row(option_id, d) for d in drafts]
            await options.save_all(rows)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            data = [option_value_detail(row) for row in rows]

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Option values added",
            product_id=product_id,
            option_id=option_id,
            value_count=len(rows),
            request_id=self.request_id,
        )
        return data

    async def update_value(
        self,
        product_id: int,
        option_id: int,
        patch: OptionValuePatch,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Patch a value's display name, color code and position.

        Raises:
            ValidationError: If no field is supplied.
        """
        validate_value_patch("", patch)

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            if await options.get(product_id, option_id) is None:
                raise OptionNotFoundError(option_id)
            value = await options.get_value(option_id, patch.value_id)
            if value is None:
                raise OptionValueNotFoundError(patch.value_id)
            _apply_value_patch(value, patch)
            await options.save(value)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            data = option_value_detail(value, await options.count_variants_using_value(value.id))

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info("Option value updated", product_id=product_id, value_id=patch.value_id, request_id=self.request_id)
        return data

    async def bulk_update_values(
        self,
        product_id: int,
        option_id: int,
        patches: list[OptionValuePatch],
        caller: TokenClaims,
    ) -> int:
        """Patch several values of one option atomically.

        Returns:
            Number of distinct values touched.

        Raises:
            OptionValueNotFoundError: If any id is not a value of the option.
        """
        _require_items("values", patches)
        for i, patch in enumerate(patches):
            validate_value_patch(f"values[{i}]", patch, require_field=False)
        value_ids = list(dict.fromkeys(p.value_id for p in patches))

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            if await options.get(product_id, option_id) is None:
                raise OptionNotFoundError(option_id)
            found = await options.get_values(option_id, value_ids)
            for value_id in value_ids:
                if value_id not in found:
                    raise OptionValueNotFoundError(value_id)
            for patch in patches:
                _apply_value_patch(found[patch.value_id], patch)
            await options.save_all(list(found.values()))
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Option values bulk updated",
            product_id=product_id,
            option_id=option_id,
            updated_count=len(value_ids),
            request_id=self.request_id,
        )
        return len(value_ids)

    async def delete_value(
        self,
        product_id: int,
        option_id: int,
        value_id: int,
        caller: TokenClaims,
    ) -> None:
        """Delete a value.

        Raises:
            OptionValueInUseError: If any variant selects the value.
        """
        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            options = OptionRepository(session)
            if await options.get(product_id, option_id) is None:
                raise OptionNotFoundError(option_id)
            value = await options.get_value(option_id, value_id)
            if value is None:
                raise OptionValueNotFoundError(value_id)
            used_by = await options.count_variants_using_value(value_id)
            if used_by:
                raise OptionValueInUseError(value_id, used_by)
            await options.delete_value(value)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info("Option value deleted", product_id=product_id, value_id=value_id, request_id=self.request_id)
