"""Domain exceptions.

All catalog errors derive from ``DomainError``. Each taxonomy class
carries the HTTP status and machine-safe error code that the API layer
renders into the error envelope; messages never contain SQL or paths.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Taxonomy
# ============================================================================


class ValidationError(DomainError):
    """Raised when input fails shape or semantic validation."""

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        reason: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error.

        Args:
            field: Offending field path (e.g. "variants[1].price").
            reason: Machine-safe reason code (e.g. "too_short").
            message: Optional human-readable message.
            details: Optional extra context.
        """
        self.field = field
        self.reason = reason
        super().__init__(
            message or f"Invalid value for '{field}': {reason}",
            details={"field": field, "reason": reason, **(details or {})},
        )


class UnauthorizedError(DomainError):
    """Raised when the caller is not authenticated."""

    status_code = 401
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class ForbiddenError(DomainError):
    """Raised when the caller is authenticated but not permitted."""

    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "You do not have permission to perform this action") -> None:
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when an addressed entity does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any = None) -> None:
        """Initialize not found error.

        Args:
            entity: Entity type (e.g. "Product").
            entity_id: Identifier that was looked up.
        """
        self.entity = entity
        self.entity_id = entity_id
        details: dict[str, Any] = {"entity": entity}
        if entity_id is not None:
            details["id"] = entity_id
        super().__init__(f"{entity} not found", details=details)


class ConflictError(DomainError):
    """Raised on uniqueness or in-use violations."""

    status_code = 409
    error_code = "CONFLICT"


class InternalError(DomainError):
    """Raised when storage or another dependency fails."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "An internal error occurred") -> None:
        super().__init__(message)


# ============================================================================
# Not Found Errors
# ============================================================================


class ProductNotFoundError(NotFoundError):
    """Raised when a product does not exist, is soft-deleted or is out of scope."""

    error_code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: int) -> None:
        super().__init__("Product", product_id)


class OptionNotFoundError(NotFoundError):
    """Raised when an option does not exist on the addressed product."""

    error_code = "PRODUCT_OPTION_NOT_FOUND"

    def __init__(self, option_id: int) -> None:
        super().__init__("Product option", option_id)


class OptionValueNotFoundError(NotFoundError):
    """Raised when a value does not exist on the addressed option."""

    error_code = "PRODUCT_OPTION_VALUE_NOT_FOUND"

    def __init__(self, value_id: int) -> None:
        super().__init__("Product option value", value_id)


class VariantNotFoundError(NotFoundError):
    """Raised when a variant does not exist on the addressed product."""

    error_code = "VARIANT_NOT_FOUND"

    def __init__(self, variant_id: int) -> None:
        super().__init__("Variant", variant_id)


class NoMatchingVariantError(NotFoundError):
    """Raised when no variant sits at the requested option coordinates."""

    error_code = "VARIANT_NOT_FOUND"

    def __init__(self, requested: dict[str, str], available: dict[str, list[str]]) -> None:
        super().__init__("Variant")
        self.details.update({"requestedOptions": requested, "availableOptions": available})


class ProductAttributeNotFoundError(NotFoundError):
    """Raised when an attribute does not exist on the addressed product."""

    error_code = "PRODUCT_ATTRIBUTE_NOT_FOUND"

    def __init__(self, attribute_id: int) -> None:
        super().__init__("Product attribute", attribute_id)


class CategoryNotFoundError(NotFoundError):
    """Raised when a referenced category does not exist."""

    error_code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: int) -> None:
        super().__init__("Category", category_id)


class SellerNotFoundError(NotFoundError):
    """Raised when a tenant id does not name an active seller."""

    error_code = "SELLER_NOT_FOUND"

    def __init__(self, seller_id: int) -> None:
        super().__init__("Seller", seller_id)


# ============================================================================
# Conflict Errors
# ============================================================================


class BaseSkuExistsError(ConflictError):
    """Raised when a seller already has a product with the base SKU."""

    error_code = "PRODUCT_SKU_EXISTS"

    def __init__(self, base_sku: str) -> None:
        super().__init__(
            f"A product with SKU '{base_sku}' already exists",
            details={"field": "baseSku", "baseSku": base_sku},
        )


class VariantSkuExistsError(ConflictError):
    """Raised when a product already has a variant with the SKU."""

    error_code = "VARIANT_SKU_EXISTS"

    def __init__(self, sku: str, field: str = "sku") -> None:
        super().__init__(
            f"A variant with SKU '{sku}' already exists on this product",
            details={"field": field, "sku": sku},
        )


class OptionNameExistsError(ConflictError):
    """Raised when a normalized option name collides within a product."""

    error_code = "PRODUCT_OPTION_NAME_EXISTS"

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Option '{name}' already exists on this product",
            details={"field": "name", "name": name},
        )


class OptionValueExistsError(ConflictError):
    """Raised when a normalized value collides within an option."""

    error_code = "PRODUCT_OPTION_VALUE_EXISTS"

    def __init__(self, value: str) -> None:
        super().__init__(
            f"Value '{value}' already exists on this option",
            details={"field": "value", "value": value},
        )


class VariantCombinationExistsError(ConflictError):
    """Raised when two variants of a product select the same option values."""

    error_code = "VARIANT_OPTION_COMBINATION_EXISTS"

    def __init__(self, field: str, combination: dict[str, str]) -> None:
        super().__init__(
            "A variant with the same option combination already exists",
            details={"field": field, "options": combination},
        )


class ProductAttributeExistsError(ConflictError):
    """Raised when a product already carries an attribute with the key."""

    error_code = "PRODUCT_ATTRIBUTE_EXISTS"

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Attribute '{key}' already exists on this product",
            details={"field": "key", "key": key},
        )


class OptionInUseError(ConflictError):
    """Raised when deleting an option whose values are selected by variants."""

    error_code = "PRODUCT_OPTION_IN_USE"

    def __init__(self, option_id: int, variant_count: int) -> None:
        super().__init__(
            "Option is used by existing variants",
            details={"optionId": option_id, "variantCount": variant_count},
        )


class CategoryInUseError(ConflictError):
    """Raised when deleting a category that products or subcategories reference."""

    error_code = "CATEGORY_IN_USE"

    def __init__(self, category_id: int) -> None:
        super().__init__(
            "Category is referenced by products or subcategories",
            details={"categoryId": category_id},
        )


# ============================================================================
# Variant Matrix Errors
# ============================================================================


class OptionValueInUseError(ValidationError):
    """Raised when deleting a value that a variant selects."""

    error_code = "PRODUCT_OPTION_VALUE_IN_USE"

    def __init__(self, value_id: int, variant_count: int) -> None:
        super().__init__(
            field="valueId",
            reason="in_use",
            message="Option value is used by existing variants",
            details={"valueId": value_id, "variantCount": variant_count},
        )


class InvalidVariantCombinationError(ValidationError):
    """Raised when a variant's selections do not cover the product's options."""

    error_code = "INVALID_VARIANT_COMBINATION"


class LastVariantError(ValidationError):
    """Raised when deleting a product's only remaining variant."""

    error_code = "LAST_VARIANT"

    def __init__(self, variant_id: int) -> None:
        super().__init__(
            field="variantId",
            reason="last_variant",
            message="A product must keep at least one variant",
            details={"variantId": variant_id},
        )


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(DomainError):
    """Raised when an invalid lifecycle transition is attempted."""

    status_code = 409
    error_code = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            entity_type: Type of entity (e.g., "Product").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )
