"""Product attribute mutation service.

Attributes are values of catalog-wide definitions. Adding an attribute
with an unknown key creates the definition; deleting one never removes
the definition.
"""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_service.application.access import load_owned_product
from catalog_service.catalog.models import AttributeDefinition, ProductAttribute
from catalog_service.catalog.projections import attribute_detail
from catalog_service.catalog.repository import (
    AttributeDefinitionRepository,
    ProductAttributeRepository,
    ProductRepository,
)
from catalog_service.domain.entities import AttributeDraft, AttributePatch
from catalog_service.domain.exceptions import (
    ProductAttributeExistsError,
    ProductAttributeNotFoundError,
    ValidationError,
)
from catalog_service.domain.validators import validate_attribute_draft, validate_attribute_patch
from catalog_service.domain.value_objects import is_present, normalize_name
from catalog_service.infrastructure.cache import CacheService
from catalog_service.infrastructure.database import Database
from catalog_service.infrastructure.security import TokenClaims

logger = structlog.get_logger()


def _check_allowed(field: str, definition: AttributeDefinition, value: str) -> None:
    allowed = definition.allowed_values or []
    if allowed and value.strip() not in allowed:
        raise ValidationError(
            field=field,
            reason="not_allowed",
            message=f"Value is not allowed for attribute '{definition.key}'",
            details={"allowedValues": allowed},
        )


async def resolve_definitions(
    session: AsyncSession,
    attributes: list[AttributeDraft],
    prefix: str = "attributes",
) -> dict[str, AttributeDefinition]:
    """Find or create the definitions for submitted attribute keys.

    Args:
        session: Session of the caller's unit of work.
        attributes: Submitted attributes.
        prefix: Field path prefix for errors; empty for a single attribute.

    Returns:
        Definitions by normalized key.

    Raises:
        ValidationError: If a value is outside a definition's allowed values.
    """
    repository = AttributeDefinitionRepository(session)
    keys = [normalize_name(a.key) for a in attributes]
    definitions = await repository.get_by_keys(keys)

    for i, attribute in enumerate(attributes):
        key = keys[i]
        definition = definitions.get(key)
        if definition is None:
            definition = await repository.save(
                AttributeDefinition(
                    key=key,
                    name=attribute.name.strip(),
                    unit=(attribute.unit or "").strip() or None,
                    allowed_values=[],
                )
            )
            definitions[key] = definition
        field = f"{prefix}[{i}].value" if prefix else "value"
        _check_allowed(field, definition, attribute.value)
    return definitions


def _apply_patch(attribute: ProductAttribute, patch: AttributePatch, field: str) -> None:
    if is_present(patch.value):
        _check_allowed(field, attribute.definition, patch.value)
        attribute.value = patch.value.strip()
    if is_present(patch.sort_order):
        attribute.sort_order = patch.sort_order


class AttributeMutationService:
    """Service for product attribute writes.

    Example usage:
        service = AttributeMutationService(get_database(), get_cache_service())
        attribute = await service.add_attribute(product_id, draft, caller)
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

    async def add_attribute(
        self,
        product_id: int,
        draft: AttributeDraft,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Attach an attribute value to a product.

        Raises:
            ProductAttributeExistsError: If the product already has the key.
        """
        validate_attribute_draft("", draft)

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            definitions = await resolve_definitions(session, [draft], prefix="")
            definition = definitions[normalize_name(draft.key)]

            attributes = ProductAttributeRepository(session)
            if await attributes.definition_used(product_id, definition.id):
                raise ProductAttributeExistsError(definition.key)
            row = await attributes.save(
                ProductAttribute(
                    product_id=product_id,
                    definition=definition,
                    value=draft.value.strip(),
                    sort_order=draft.sort_order,
                )
            )
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            data = attribute_detail(row)

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Product attribute added",
            product_id=product_id,
            attribute_id=data["id"],
            key=data["key"],
            request_id=self.request_id,
        )
        return data

    async def update_attribute(
        self,
        product_id: int,
        patch: AttributePatch,
        caller: TokenClaims,
    ) -> dict[str, Any]:
        """Patch an attribute's value and sort order."""
        validate_attribute_patch("", patch)

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            attributes = ProductAttributeRepository(session)
            attribute = await attributes.get(product_id, patch.attribute_id)
            if attribute is None:
                raise ProductAttributeNotFoundError(patch.attribute_id)
            _apply_patch(attribute, patch, "value")
            await attributes.save(attribute)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            data = attribute_detail(attribute)

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Product attribute updated",
            product_id=product_id,
            attribute_id=patch.attribute_id,
            request_id=self.request_id,
        )
        return data

    async def bulk_update_attributes(
        self,
        product_id: int,
        patches: list[AttributePatch],
        caller: TokenClaims,
    ) -> list[dict[str, Any]]:
        """Patch several attributes of a product atomically.

        Returns:
            Projections of the distinct attributes touched, in request order.

        Raises:
            ProductAttributeNotFoundError: If any id is not on the product.
        """
        if not patches:
            raise ValidationError(field="attributes", reason="required", message="attributes must not be empty")
        for i, patch in enumerate(patches):
            validate_attribute_patch(f"attributes[{i}]", patch)
        attribute_ids = list(dict.fromkeys(p.attribute_id for p in patches))

        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            attributes = ProductAttributeRepository(session)
            found = await attributes.get_many(product_id, attribute_ids)
            for attribute_id in attribute_ids:
                if attribute_id not in found:
                    raise ProductAttributeNotFoundError(attribute_id)
            for i, patch in enumerate(patches):
                _apply_patch(found[patch.attribute_id], patch, f"attributes[{i}].value")
            await attributes.save_all(list(found.values()))
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id
            data = [attribute_detail(found[attribute_id]) for attribute_id in attribute_ids]

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Product attributes bulk updated",
            product_id=product_id,
            updated_count=len(attribute_ids),
            request_id=self.request_id,
        )
        return data

    async def delete_attribute(self, product_id: int, attribute_id: int, caller: TokenClaims) -> None:
        """Remove an attribute from a product."""
        async with self.database.unit_of_work() as session:
            product = await load_owned_product(session, product_id, caller)
            attributes = ProductAttributeRepository(session)
            attribute = await attributes.get(product_id, attribute_id)
            if attribute is None:
                raise ProductAttributeNotFoundError(attribute_id)
            await attributes.delete(attribute)
            await ProductRepository(session).touch(product)
            seller_id = product.seller_id

        await self.cache.invalidate_product(product_id, seller_id)
        logger.info(
            "Product attribute deleted",
            product_id=product_id,
            attribute_id=attribute_id,
            request_id=self.request_id,
        )
