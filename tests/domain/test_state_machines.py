"""Tests for the product lifecycle state machine."""

from datetime import datetime, timezone

import pytest

from catalog_service.domain import ProductStatus, validate_product_transition
from catalog_service.domain.exceptions import InvalidStateTransitionError


class TestProductStatus:
    """Tests for ProductStatus transitions."""

    def test_created_can_activate(self) -> None:
        assert ProductStatus.CREATED.can_transition_to(ProductStatus.ACTIVE)
        assert not ProductStatus.CREATED.can_transition_to(ProductStatus.DELETED)

    def test_active_can_only_be_deleted(self) -> None:
        assert ProductStatus.ACTIVE.allowed_transitions() == [ProductStatus.DELETED]

    def test_deleted_is_terminal(self) -> None:
        """Deleted products cannot come back."""
        assert ProductStatus.DELETED.is_terminal()
        assert not ProductStatus.DELETED.can_transition_to(ProductStatus.ACTIVE)
        assert not ProductStatus.DELETED.is_mutable()

    def test_live_states_are_mutable(self) -> None:
        assert ProductStatus.CREATED.is_mutable()
        assert ProductStatus.ACTIVE.is_mutable()

    def test_from_deleted_at(self) -> None:
        """Status of a stored product follows its soft-delete marker."""
        assert ProductStatus.from_deleted_at(None) == ProductStatus.ACTIVE
        assert ProductStatus.from_deleted_at(datetime.now(timezone.utc)) == ProductStatus.DELETED


class TestValidateProductTransition:
    def test_valid_transition_passes(self) -> None:
        validate_product_transition(1, ProductStatus.ACTIVE, ProductStatus.DELETED)

    def test_invalid_transition_raises(self) -> None:
        """Deleting twice is rejected with the allowed targets listed."""
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_product_transition(7, ProductStatus.DELETED, ProductStatus.DELETED)
        assert exc_info.value.status_code == 409
        assert exc_info.value.details["entity_id"] == 7
        assert exc_info.value.details["allowed_transitions"] == []
