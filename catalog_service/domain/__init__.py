"""Domain layer: errors, value objects, lifecycle and create-graph drafts."""

from catalog_service.domain.entities import (
    AttributeDraft,
    AttributePatch,
    OptionDraft,
    OptionIndex,
    OptionPatch,
    OptionValueDraft,
    OptionValuePatch,
    PackageOptionDraft,
    ProductDraft,
    ProductPatch,
    SelectionDraft,
    VariantDraft,
    VariantPatch,
    apply_last_default,
    combination_key,
    ensure_distinct_combinations,
)
from catalog_service.domain.state_machines import ProductStatus, validate_product_transition
from catalog_service.domain.value_objects import (
    ABSENT,
    ColorCode,
    Price,
    Role,
    is_present,
    normalize_name,
)

__all__ = [
    # Drafts
    "AttributeDraft",
    "AttributePatch",
    "OptionDraft",
    "OptionIndex",
    "OptionPatch",
    "OptionValueDraft",
    "OptionValuePatch",
    "PackageOptionDraft",
    "ProductDraft",
    "ProductPatch",
    "SelectionDraft",
    "VariantDraft",
    "VariantPatch",
    "apply_last_default",
    "combination_key",
    "ensure_distinct_combinations",
    # Lifecycle
    "ProductStatus",
    "validate_product_transition",
    # Value objects
    "ABSENT",
    "ColorCode",
    "Price",
    "Role",
    "is_present",
    "normalize_name",
]
