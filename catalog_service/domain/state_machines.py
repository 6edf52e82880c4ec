"""Product lifecycle state machine.

Products are created whole, stay mutable while active and end in a
soft-deleted state that has no way back.
"""

from datetime import datetime
from enum import Enum

from catalog_service.domain.exceptions import InvalidStateTransitionError


class ProductStatus(str, Enum):
    """Product lifecycle states.

    State diagram:
        CREATED ──► ACTIVE ──► DELETED
    """

    CREATED = "created"
    ACTIVE = "active"
    DELETED = "deleted"

    @classmethod
    def from_deleted_at(cls, deleted_at: datetime | None) -> "ProductStatus":
        """Derive the status of a persisted product.

        Args:
            deleted_at: Soft-delete marker.

        Returns:
            DELETED when the marker is set, ACTIVE otherwise.
        """
        return cls.DELETED if deleted_at is not None else cls.ACTIVE

    def can_transition_to(self, target: "ProductStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _PRODUCT_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["ProductStatus"]:
        """Get list of valid target states."""
        return list(_PRODUCT_TRANSITIONS.get(self, set()))

    def is_mutable(self) -> bool:
        """Check if options, values and variants may be changed."""
        return self in {ProductStatus.CREATED, ProductStatus.ACTIVE}

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state."""
        return len(_PRODUCT_TRANSITIONS.get(self, set())) == 0


_PRODUCT_TRANSITIONS: dict[ProductStatus, set[ProductStatus]] = {
    ProductStatus.CREATED: {ProductStatus.ACTIVE},
    ProductStatus.ACTIVE: {ProductStatus.DELETED},
    ProductStatus.DELETED: set(),  # Terminal state
}


def validate_product_transition(
    product_id: int,
    current_status: ProductStatus,
    target_status: ProductStatus,
) -> None:
    """Validate and raise if product state transition is invalid.

    Args:
        product_id: Product identifier for error message.
        current_status: Current product status.
        target_status: Target product status.

    Raises:
        InvalidStateTransitionError: If transition is not valid.
    """
    if not current_status.can_transition_to(target_status):
        raise InvalidStateTransitionError(
            entity_type="Product",
            entity_id=product_id,
            current_state=current_status.value,
            target_state=target_status.value,
            allowed_transitions=[s.value for s in current_status.allowed_transitions()],
        )
