"""API schemas for the catalog service.

Pydantic models for request parsing. JSON keys are camelCase. Request
models convert into domain drafts and patches; a patch field the client
did not send stays ``ABSENT`` so "keep existing" and "set to zero or
empty" remain distinct.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog_service.domain.entities import (
    AttributeDraft,
    AttributePatch,
    OptionDraft,
    OptionPatch,
    OptionValueDraft,
    OptionValuePatch,
    PackageOptionDraft,
    ProductDraft,
    ProductPatch,
    SelectionDraft,
    VariantDraft,
    VariantPatch,
)
from catalog_service.domain.value_objects import ABSENT


class CamelModel(BaseModel):
    """Base model reading and writing camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def field_or_absent(self, name: str) -> Any:
        """Field value if the client sent it, else ``ABSENT``."""
        return getattr(self, name) if name in self.model_fields_set else ABSENT


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorBody(CamelModel):
    """Error details."""

    code: str = Field(..., description="Machine-readable error code")
    field: str | None = Field(default=None, description="Offending field path")
    reason: str | None = Field(default=None, description="Machine-safe reason code")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error context")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class ErrorResponse(CamelModel):
    """Standard error envelope.

    All API errors follow this format for consistency.
    """

    success: bool = False
    message: str = Field(..., description="Human-readable error message")
    error: ErrorBody


# ============================================================================
# Auth Schemas
# ============================================================================


class LoginRequest(CamelModel):
    """Login credentials; presence is checked by the login service."""

    email: str | None = None
    password: str | None = None


# ============================================================================
# Product Schemas
# ============================================================================


class OptionValueInput(CamelModel):
    """An option value in a create request."""

    value: str
    display_name: str
    color_code: str | None = None
    position: int = 0

    def to_draft(self) -> OptionValueDraft:
        return OptionValueDraft(
            value=self.value,
            display_name=self.display_name,
            color_code=self.color_code,
            position=self.position,
        )


class OptionInput(CamelModel):
    """An option with its values."""

    name: str
    display_name: str
    position: int = 0
    values: list[OptionValueInput] = Field(default_factory=list)

    def to_draft(self) -> OptionDraft:
        return OptionDraft(
            name=self.name,
            display_name=self.display_name,
            position=self.position,
            values=[v.to_draft() for v in self.values],
        )


class SelectionInput(CamelModel):
    """A variant's value for one option, by name."""

    option_name: str
    value: str


class VariantInput(CamelModel):
    """A variant in a create-product or add-variant request."""

    sku: str
    price: Decimal
    stock: int = 0
    images: list[str] = Field(default_factory=list)
    is_default: bool = False
    is_popular: bool = False
    allow_purchase: bool = True
    options: list[SelectionInput] = Field(default_factory=list)

    def to_draft(self) -> VariantDraft:
        return VariantDraft(
            sku=self.sku,
            price=self.price,
            stock=self.stock,
            images=list(self.images),
            is_default=self.is_default,
            is_popular=self.is_popular,
            allow_purchase=self.allow_purchase,
            selections=[SelectionDraft(option_name=s.option_name, value=s.value) for s in self.options],
        )


class AttributeInput(CamelModel):
    """A product attribute."""

    key: str
    name: str
    value: str
    unit: str | None = None
    sort_order: int = 0

    def to_draft(self) -> AttributeDraft:
        return AttributeDraft(
            key=self.key,
            name=self.name,
            value=self.value,
            unit=self.unit,
            sort_order=self.sort_order,
        )


class PackageOptionInput(CamelModel):
    """A package or bundle offered with a product."""

    name: str
    description: str | None = None
    price: Decimal
    quantity: int

    def to_draft(self) -> PackageOptionDraft:
        return PackageOptionDraft(
            name=self.name,
            description=self.description,
            price=self.price,
            quantity=self.quantity,
        )


class ProductCreateRequest(CamelModel):
    """Request to create a product with its full option/variant graph."""

    name: str
    category_id: int
    base_sku: str
    seller_id: int | None = Field(default=None, description="Owning seller; admins only")
    brand: str | None = None
    short_description: str | None = None
    long_description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_popular: bool = False
    allow_purchase: bool = True
    options: list[OptionInput] = Field(default_factory=list)
    variants: list[VariantInput] = Field(default_factory=list)
    attributes: list[AttributeInput] = Field(default_factory=list)
    package_options: list[PackageOptionInput] = Field(default_factory=list)

    def to_draft(self, seller_id: int) -> ProductDraft:
        """Convert to a draft owned by ``seller_id``."""
        return ProductDraft(
            seller_id=seller_id,
            category_id=self.category_id,
            name=self.name,
            base_sku=self.base_sku,
            brand=self.brand,
            short_description=self.short_description,
            long_description=self.long_description,
            tags=list(self.tags),
            is_popular=self.is_popular,
            allow_purchase=self.allow_purchase,
            options=[o.to_draft() for o in self.options],
            variants=[v.to_draft() for v in self.variants],
            attributes=[a.to_draft() for a in self.attributes],
            package_options=[p.to_draft() for p in self.package_options],
        )


class ProductUpdateRequest(CamelModel):
    """Partial product update; ``baseSku`` cannot change."""

    name: str | None = None
    category_id: int | None = None
    brand: str | None = None
    short_description: str | None = None
    long_description: str | None = None
    tags: list[str] | None = None
    is_popular: bool | None = None
    allow_purchase: bool | None = None

    def to_patch(self) -> ProductPatch:
        return ProductPatch(
            name=self.field_or_absent("name"),
            category_id=self.field_or_absent("category_id"),
            brand=self.field_or_absent("brand"),
            short_description=self.field_or_absent("short_description"),
            long_description=self.field_or_absent("long_description"),
            tags=self.field_or_absent("tags"),
            is_popular=self.field_or_absent("is_popular"),
            allow_purchase=self.field_or_absent("allow_purchase"),
        )


# ============================================================================
# Variant Schemas
# ============================================================================


class VariantUpdateRequest(CamelModel):
    """Partial variant update. Stock and option selections are not accepted."""

    sku: str | None = None
    price: Decimal | None = None
    images: list[str] | None = None
    is_default: bool | None = None
    is_popular: bool | None = None
    allow_purchase: bool | None = None

    def to_patch(self, variant_id: int) -> VariantPatch:
        return VariantPatch(
            variant_id=variant_id,
            sku=self.field_or_absent("sku"),
            price=self.field_or_absent("price"),
            images=self.field_or_absent("images"),
            is_default=self.field_or_absent("is_default"),
            is_popular=self.field_or_absent("is_popular"),
            allow_purchase=self.field_or_absent("allow_purchase"),
        )


class VariantBulkUpdateItem(VariantUpdateRequest):
    """One row of a bulk variant update, addressed by ``id``."""

    id: int

    def to_patch(self, variant_id: int | None = None) -> VariantPatch:
        return super().to_patch(self.id)


class VariantBulkUpdateRequest(CamelModel):
    """Bulk variant update."""

    variants: list[VariantBulkUpdateItem] = Field(default_factory=list)


# ============================================================================
# Attribute Schemas
# ============================================================================


class AttributeCreateRequest(AttributeInput):
    """Request to attach one attribute to a product."""


class AttributeUpdateRequest(CamelModel):
    """Partial attribute update; the key cannot change."""

    value: str | None = None
    sort_order: int | None = None

    def to_patch(self, attribute_id: int) -> AttributePatch:
        return AttributePatch(
            attribute_id=attribute_id,
            value=self.field_or_absent("value"),
            sort_order=ABSENT if self.sort_order is None else self.sort_order,
        )


class AttributeBulkUpdateItem(AttributeUpdateRequest):
    """One row of a bulk attribute update."""

    attribute_id: int

    def to_patch(self, attribute_id: int | None = None) -> AttributePatch:
        return super().to_patch(self.attribute_id)


class AttributeBulkUpdateRequest(CamelModel):
    """Bulk attribute update."""

    attributes: list[AttributeBulkUpdateItem] = Field(default_factory=list)


# ============================================================================
# Option Schemas
# ============================================================================


class OptionCreateRequest(OptionInput):
    """Request to add an option to a product; values are optional."""


class OptionUpdateRequest(CamelModel):
    """Partial option update. ``position: null`` is treated as not sent."""

    display_name: str | None = None
    position: int | None = None

    def to_patch(self, option_id: int) -> OptionPatch:
        return OptionPatch(
            option_id=option_id,
            display_name=self.field_or_absent("display_name"),
            position=ABSENT if self.position is None else self.position,
        )


class OptionBulkUpdateItem(OptionUpdateRequest):
    """One row of a bulk option update."""

    option_id: int

    def to_patch(self, option_id: int | None = None) -> OptionPatch:
        return super().to_patch(self.option_id)


class OptionBulkUpdateRequest(CamelModel):
    """Bulk option update."""

    options: list[OptionBulkUpdateItem] = Field(default_factory=list)


class OptionValueCreateRequest(OptionValueInput):
    """Request to add one value to an option."""


class OptionValueBulkCreateRequest(CamelModel):
    """Request to add several values to an option."""

    values: list[OptionValueInput] = Field(default_factory=list)


class OptionValueUpdateRequest(CamelModel):
    """Partial value update; at least one field must be sent."""

    display_name: str | None = None
    color_code: str | None = None
    position: int | None = None

    def to_patch(self, value_id: int) -> OptionValuePatch:
        return OptionValuePatch(
            value_id=value_id,
            display_name=self.field_or_absent("display_name"),
            color_code=self.field_or_absent("color_code"),
            position=ABSENT if self.position is None else self.position,
        )


class OptionValueBulkUpdateItem(OptionValueUpdateRequest):
    """One row of a bulk value update."""

    value_id: int

    def to_patch(self, value_id: int | None = None) -> OptionValuePatch:
        return super().to_patch(self.value_id)


class OptionValueBulkUpdateRequest(CamelModel):
    """Bulk value update."""

    values: list[OptionValueBulkUpdateItem] = Field(default_factory=list)


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryCreateRequest(CamelModel):
    """Request to create a category."""

    name: str
    parent_id: int | None = None


class CategoryUpdateRequest(CamelModel):
    """Partial category update; ``parentId: null`` moves it to the root."""

    name: str | None = None
    parent_id: int | None = None
