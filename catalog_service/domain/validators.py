"""Field validation for catalog mutations.

Each check raises ``ValidationError`` naming the offending field path
(for example ``variants[1].price``) and a reason code.
"""

from decimal import Decimal

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
    VariantDraft,
    VariantPatch,
)
from catalog_service.domain.exceptions import ValidationError
from catalog_service.domain.value_objects import ColorCode, Price, is_present

UINT64_MAX = 2**64 - 1

PRODUCT_NAME = (3, 200)
BASE_SKU = (1, 100)
BRAND = (0, 100)
SHORT_DESCRIPTION = (0, 500)
LONG_DESCRIPTION = (0, 5000)
TAG = (1, 50)
MAX_TAGS = 20
OPTION_NAME = (2, 50)
OPTION_DISPLAY_NAME = (3, 100)
VALUE = (1, 100)
VALUE_DISPLAY_NAME = (1, 100)
VARIANT_SKU = (1, 100)
IMAGE_URL = (1, 2048)
MAX_IMAGES = 20
ATTRIBUTE_KEY = (1, 100)
ATTRIBUTE_NAME = (1, 100)
ATTRIBUTE_VALUE = (1, 255)
ATTRIBUTE_UNIT = (0, 50)
PACKAGE_NAME = (1, 100)
PACKAGE_DESCRIPTION = (0, 500)
CATEGORY_NAME = (2, 100)


# ============================================================================
# Primitives
# ============================================================================


def check_length(field: str, value: str, bounds: tuple[int, int], strip: bool = True) -> None:
    """Check a string's length in characters.

    Args:
        field: Field path for errors.
        value: String to check.
        bounds: Inclusive (min, max) length.
        strip: Measure after trimming whitespace.

    Raises:
        ValidationError: If the length falls outside bounds.
    """
    low, high = bounds
    length = len(value.strip() if strip else value)
    if length < low:
        reason = "required" if length == 0 else "too_short"
        raise ValidationError(field=field, reason=reason, message=f"{field} must be at least {low} characters")
    if length > high:
        raise ValidationError(field=field, reason="too_long", message=f"{field} must be at most {high} characters")


def check_optional_length(field: str, value: str | None, bounds: tuple[int, int]) -> None:
    """Check a string's length when it is supplied."""
    if value is not None:
        check_length(field, value, bounds)


def check_price(field: str, amount: Decimal) -> Price:
    """Check that an amount is finite and at least one cent after rounding.

    Returns:
        The price quantized to two decimal places.
    """
    try:
        price = Price.parse(amount)
    except ValueError as exc:
        raise ValidationError(field=field, reason="invalid_number", message=f"{field} must be a finite number") from exc
    if not price.is_positive():
        raise ValidationError(field=field, reason="not_positive", message=f"{field} must be greater than 0")
    return price


def check_positive_int(field: str, value: int) -> None:
    """Check that an integer is greater than zero."""
    if isinstance(value, bool) or value <= 0:
        raise ValidationError(field=field, reason="not_positive", message=f"{field} must be greater than 0")


def check_non_negative_int(field: str, value: int) -> None:
    """Check that an integer is zero or more."""
    if isinstance(value, bool) or value < 0:
        raise ValidationError(field=field, reason="negative", message=f"{field} must not be negative")


def check_color_code(field: str, value: str | None) -> None:
    """Check an optional ``#RRGGBB`` color code."""
    if value is not None and not ColorCode.is_valid(value):
        raise ValidationError(
            field=field,
            reason="invalid_format",
            message=f"{field} must be '#' followed by 6 hex digits",
        )


def parse_positive_int(field: str, raw: str | None, zero_is_missing: bool = False) -> int:
    """Parse an identifier from a header, path or query string.

    Args:
        field: Field name for errors.
        raw: Raw text, trimmed before parsing.
        zero_is_missing: Return 0 instead of raising for "0", so callers
            can answer NotFound.

    Returns:
        Parsed integer.

    Raises:
        ValidationError: If the text is empty, not a decimal integer,
            negative, zero (unless allowed) or above the uint64 range.
    """
    text = (raw or "").strip()
    if not text:
        raise ValidationError(field=field, reason="required", message=f"{field} is required")
    if not text.isascii() or not text.isdigit():
        raise ValidationError(field=field, reason="invalid_integer", message=f"{field} must be a positive integer")
    value = int(text)
    if value > UINT64_MAX:
        raise ValidationError(field=field, reason="out_of_range", message=f"{field} is out of range")
    if value == 0 and not zero_is_missing:
        raise ValidationError(field=field, reason="not_positive", message=f"{field} must be a positive integer")
    return value


# ============================================================================
# Create Product
# ============================================================================


def validate_option_draft(prefix: str, option: OptionDraft) -> None:
    """Validate an option and its values."""
    check_length(_join(prefix, "name"), option.name, OPTION_NAME)
    check_length(_join(prefix, "displayName"), option.display_name, OPTION_DISPLAY_NAME)
    for j, value in enumerate(option.values):
        validate_value_draft(_join(prefix, f"values[{j}]"), value)


def validate_value_draft(prefix: str, value: OptionValueDraft) -> None:
    """Validate a single option value."""
    check_length(_join(prefix, "value"), value.value, VALUE)
    check_length(_join(prefix, "displayName"), value.display_name, VALUE_DISPLAY_NAME)
    check_color_code(_join(prefix, "colorCode"), value.color_code)


def validate_variant_draft(prefix: str, variant: VariantDraft) -> None:
    """Validate a variant's scalar fields (selections are resolved separately)."""
    check_length(_join(prefix, "sku"), variant.sku, VARIANT_SKU)
    check_price(_join(prefix, "price"), variant.price)
    check_non_negative_int(_join(prefix, "stock"), variant.stock)
    check_images(_join(prefix, "images"), variant.images)


def validate_attribute_draft(prefix: str, attribute: AttributeDraft) -> None:
    """Validate a product attribute."""
    check_length(_join(prefix, "key"), attribute.key, ATTRIBUTE_KEY)
    check_length(_join(prefix, "name"), attribute.name, ATTRIBUTE_NAME)
    check_length(_join(prefix, "value"), attribute.value, ATTRIBUTE_VALUE)
    check_optional_length(_join(prefix, "unit"), attribute.unit, ATTRIBUTE_UNIT)
    check_non_negative_int(_join(prefix, "sortOrder"), attribute.sort_order)


def validate_package_option_draft(prefix: str, package: PackageOptionDraft) -> None:
    """Validate a package option."""
    check_length(_join(prefix, "name"), package.name, PACKAGE_NAME)
    check_optional_length(_join(prefix, "description"), package.description, PACKAGE_DESCRIPTION)
    check_price(_join(prefix, "price"), package.price)
    check_positive_int(_join(prefix, "quantity"), package.quantity)


def validate_tags(field: str, tags: list[str]) -> None:
    """Validate the tag set."""
    if len(tags) > MAX_TAGS:
        raise ValidationError(field=field, reason="too_many", message=f"At most {MAX_TAGS} tags")
    for i, tag in enumerate(tags):
        check_length(f"{field}[{i}]", tag, TAG)


def validate_product_draft(draft: ProductDraft) -> None:
    """Validate the shape of a create-product graph.

    Referential checks (category existence, option/value resolution,
    uniqueness against stored rows) happen in the mutation service.

    Raises:
        ValidationError: On the first failing field.
    """
    check_length("name", draft.name, PRODUCT_NAME)
    check_length("baseSku", draft.base_sku, BASE_SKU)
    check_positive_int("categoryId", draft.category_id)
    check_optional_length("brand", draft.brand, BRAND)
    check_optional_length("shortDescription", draft.short_description, SHORT_DESCRIPTION)
    check_optional_length("longDescription", draft.long_description, LONG_DESCRIPTION)
    validate_tags("tags", draft.tags)

    if not draft.options:
        raise ValidationError(field="options", reason="required", message="At least one option is required")
    for i, option in enumerate(draft.options):
        validate_option_draft(f"options[{i}]", option)
        if not option.values:
            raise ValidationError(
                field=f"options[{i}].values",
                reason="required",
                message="Each option needs at least one value",
            )

    if not draft.variants:
        raise ValidationError(field="variants", reason="required", message="At least one variant is required")
    skus: set[str] = set()
    for i, variant in enumerate(draft.variants):
        validate_variant_draft(f"variants[{i}]", variant)
        sku = variant.sku.strip()
        if sku in skus:
            raise ValidationError(field=f"variants[{i}].sku", reason="duplicate", message=f"Duplicate variant SKU '{sku}'")
        skus.add(sku)

    keys: set[str] = set()
    for i, attribute in enumerate(draft.attributes):
        validate_attribute_draft(f"attributes[{i}]", attribute)
        key = attribute.key.strip().lower()
        if key in keys:
            raise ValidationError(field=f"attributes[{i}].key", reason="duplicate", message=f"Duplicate attribute '{key}'")
        keys.add(key)

    for i, package in enumerate(draft.package_options):
        validate_package_option_draft(f"packageOptions[{i}]", package)


# ============================================================================
# Patches
# ============================================================================


def validate_product_patch(patch: ProductPatch) -> None:
    """Validate a product update; at least one field must be present."""
    supplied = [name for name, value in vars(patch).items() if is_present(value)]
    if not supplied:
        raise ValidationError(field="body", reason="empty", message="At least one field must be provided")
    for field, value in (
        ("name", patch.name),
        ("categoryId", patch.category_id),
        ("tags", patch.tags),
        ("isPopular", patch.is_popular),
        ("allowPurchase", patch.allow_purchase),
    ):
        if value is None:
            raise ValidationError(field=field, reason="null", message=f"{field} cannot be null")
    if is_present(patch.name):
        check_length("name", patch.name, PRODUCT_NAME)
    if is_present(patch.category_id):
        check_positive_int("categoryId", patch.category_id)
    if is_present(patch.brand):
        check_optional_length("brand", patch.brand, BRAND)
    if is_present(patch.short_description):
        check_optional_length("shortDescription", patch.short_description, SHORT_DESCRIPTION)
    if is_present(patch.long_description):
        check_optional_length("longDescription", patch.long_description, LONG_DESCRIPTION)
    if is_present(patch.tags):
        validate_tags("tags", patch.tags)


def validate_option_patch(prefix: str, patch: OptionPatch, require_field: bool = True) -> None:
    """Validate an option patch.

    An empty ``displayName`` means "keep existing" and is not checked.
    """
    if require_field and not (is_present(patch.display_name) or is_present(patch.position)):
        raise ValidationError(field=prefix or "body", reason="empty", message="At least one field must be provided")
    if is_present(patch.display_name) and patch.display_name:
        check_length(_join(prefix, "displayName"), patch.display_name, OPTION_DISPLAY_NAME)
    if is_present(patch.position):
        check_non_negative_int(_join(prefix, "position"), patch.position)


def validate_value_patch(prefix: str, patch: OptionValuePatch, require_field: bool = True) -> None:
    """Validate an option value patch.

    Empty ``displayName`` and ``colorCode`` keep the stored values.
    """
    present = [is_present(patch.display_name), is_present(patch.color_code), is_present(patch.position)]
    if require_field and not any(present):
        raise ValidationError(field=prefix or "body", reason="empty", message="At least one field must be provided")
    if is_present(patch.display_name) and patch.display_name:
        check_length(_join(prefix, "displayName"), patch.display_name, VALUE_DISPLAY_NAME)
    if is_present(patch.color_code) and patch.color_code:
        check_color_code(_join(prefix, "colorCode"), patch.color_code)
    if is_present(patch.position):
        check_non_negative_int(_join(prefix, "position"), patch.position)


def check_images(field: str, images: list[str]) -> None:
    """Check a variant's image URL list."""
    if len(images) > MAX_IMAGES:
        raise ValidationError(field=field, reason="too_many", message=f"At most {MAX_IMAGES} images")
    for k, url in enumerate(images):
        check_length(f"{field}[{k}]", url, IMAGE_URL)


def validate_variant_patch(prefix: str, patch: VariantPatch, require_field: bool = True) -> None:
    """Validate a variant patch; stock and selections are not patchable."""
    fields = {
        "sku": patch.sku,
        "price": patch.price,
        "images": patch.images,
        "isDefault": patch.is_default,
        "isPopular": patch.is_popular,
        "allowPurchase": patch.allow_purchase,
    }
    if require_field and not any(is_present(v) for v in fields.values()):
        raise ValidationError(field=prefix or "body", reason="empty", message="At least one field must be provided")
    for name, value in fields.items():
        if value is None:
            raise ValidationError(field=_join(prefix, name), reason="null", message=f"{name} cannot be null")
    if is_present(patch.sku):
        check_length(_join(prefix, "sku"), patch.sku, VARIANT_SKU)
    if is_present(patch.price):
        check_price(_join(prefix, "price"), patch.price)
    if is_present(patch.images):
        check_images(_join(prefix, "images"), patch.images)


def validate_attribute_patch(prefix: str, patch: AttributePatch, require_field: bool = True) -> None:
    """Validate an attribute patch."""
    if require_field and not (is_present(patch.value) or is_present(patch.sort_order)):
        raise ValidationError(field=prefix or "body", reason="empty", message="At least one field must be provided")
    if is_present(patch.value):
        if patch.value is None:
            raise ValidationError(field=_join(prefix, "value"), reason="null", message="value cannot be null")
        check_length(_join(prefix, "value"), patch.value, ATTRIBUTE_VALUE)
    if is_present(patch.sort_order):
        check_non_negative_int(_join(prefix, "sortOrder"), patch.sort_order)


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name
