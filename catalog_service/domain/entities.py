"""Domain entities for catalog mutations.

Drafts describe a product graph before it is persisted. Cross references
inside a draft are string keyed (``optionName`` and ``value``), so
``OptionIndex`` resolves them in a separate pass once every option and
value has been indexed.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Generic, TypeVar

from catalog_service.domain.exceptions import (
    InvalidVariantCombinationError,
    ValidationError,
    VariantCombinationExistsError,
)
from catalog_service.domain.value_objects import ABSENT, normalize_name

O = TypeVar("O")
V = TypeVar("V")


# ============================================================================
# Drafts
# ============================================================================


@dataclass
class OptionValueDraft:
    """A value submitted for an option."""

    value: str
    display_name: str
    color_code: str | None = None
    position: int = 0


@dataclass
class OptionDraft:
    """An option axis and its values."""

    name: str
    display_name: str
    position: int = 0
    values: list[OptionValueDraft] = field(default_factory=list)


@dataclass
class SelectionDraft:
    """A variant's choice on one option, by name."""

    option_name: str
    value: str


@dataclass
class VariantDraft:
    """A purchasable variant with its option coordinates."""

    sku: str
    price: Decimal
    selections: list[SelectionDraft] = field(default_factory=list)
    stock: int = 0
    images: list[str] = field(default_factory=list)
    is_default: bool = False
    is_popular: bool = False
    allow_purchase: bool = True


@dataclass
class AttributeDraft:
    """A descriptive attribute attached to a product."""

    key: str
    name: str
    value: str
    unit: str | None = None
    sort_order: int = 0


@dataclass
class PackageOptionDraft:
    """A bundle or package offered with a product."""

    name: str
    price: Decimal
    quantity: int
    description: str | None = None


@dataclass
class ProductDraft:
    """The full graph submitted to create a product."""

    seller_id: int
    category_id: int
    name: str
    base_sku: str
    brand: str | None = None
    short_description: str | None = None
    long_description: str | None = None
    tags: list[str] = field(default_factory=list)
    is_popular: bool = False
    allow_purchase: bool = True
    options: list[OptionDraft] = field(default_factory=list)
    variants: list[VariantDraft] = field(default_factory=list)
    attributes: list[AttributeDraft] = field(default_factory=list)
    package_options: list[PackageOptionDraft] = field(default_factory=list)


@dataclass
class ProductPatch:
    """Scalar fields of a product update; ``ABSENT`` keeps the stored value."""

    name: Any = ABSENT
    category_id: Any = ABSENT
    brand: Any = ABSENT
    short_description: Any = ABSENT
    long_description: Any = ABSENT
    tags: Any = ABSENT
    is_popular: Any = ABSENT
    allow_purchase: Any = ABSENT


@dataclass
class VariantPatch:
    """Partial update of a variant's scalar fields.

    Selections are not patchable; a variant keeps its coordinates.
    """

    variant_id: int
    sku: Any = ABSENT
    price: Any = ABSENT
    images: Any = ABSENT
    is_default: Any = ABSENT
    is_popular: Any = ABSENT
    allow_purchase: Any = ABSENT


@dataclass
class AttributePatch:
    """Partial update of a product attribute."""

    attribute_id: int
    value: Any = ABSENT
    sort_order: Any = ABSENT


@dataclass
class OptionPatch:
    """Partial update of an option.

    An empty ``display_name`` keeps the stored value; ``position`` of 0 is
    applied as 0.
    """

    option_id: int
    display_name: Any = ABSENT
    position: Any = ABSENT


@dataclass
class OptionValuePatch:
    """Partial update of an option value."""

    value_id: int
    display_name: Any = ABSENT
    color_code: Any = ABSENT
    position: Any = ABSENT


# ============================================================================
# Option Index
# ============================================================================


class OptionIndex(Generic[O, V]):
    """Index of a product's options and values by normalized name.

    The index is generic over what it stores, so the same resolution is
    used for drafts during create and for persisted rows when a variant
    is added later.

    Example usage:
        index = OptionIndex.from_drafts(draft.options)
        for i, variant in enumerate(draft.variants):
            pairs = index.resolve(variant.selections, f"variants[{i}]")
    """

    def __init__(self) -> None:
        self._options: dict[str, O] = {}
        self._values: dict[tuple[str, str], V] = {}

    def __len__(self) -> int:
        return len(self._options)

    @property
    def option_names(self) -> list[str]:
        """Normalized option names in insertion order."""
        return list(self._options)

    def add_option(self, name: str, option: O, field_path: str = "name") -> str:
        """Index an option.

        Args:
            name: Raw option name.
            option: Object stored under the normalized name.
            field_path: Field reported on duplicates.

        Returns:
            The normalized name.

        Raises:
            ValidationError: If the normalized name is already indexed.
        """
        key = normalize_name(name)
        if key in self._options:
            raise ValidationError(
                field=field_path,
                reason="duplicate",
                message=f"Duplicate option name '{key}'",
            )
        self._options[key] = option
        return key

    def add_value(self, option_name: str, value: str, item: V, field_path: str = "value") -> str:
        """Index a value under an already indexed option.

        Raises:
            ValidationError: If the normalized value repeats within the option.
        """
        option_key = normalize_name(option_name)
        value_key = normalize_name(value)
        if (option_key, value_key) in self._values:
            raise ValidationError(
                field=field_path,
                reason="duplicate",
                message=f"Duplicate value '{value_key}' for option '{option_key}'",
            )
        self._values[(option_key, value_key)] = item
        return value_key

    def resolve(
        self,
        selections: list[SelectionDraft],
        field_path: str = "options",
    ) -> list[tuple[O, V]]:
        """Resolve a variant's selections to indexed options and values.

        Every indexed option must be selected exactly once and every
        selected value must belong to its option.

        Args:
            selections: Submitted option-name/value pairs.
            field_path: Prefix for reported fields.

        Returns:
            (option, value) pairs in the order submitted.

        Raises:
            InvalidVariantCombinationError: On missing, extra, repeated or unknown selections.
        """
        if not selections:
            raise InvalidVariantCombinationError(
                field=field_path,
                reason="required",
                message="Variant must select a value for every product option",
            )

        seen: set[str] = set()
        pairs: list[tuple[O, V]] = []
        for i, selection in enumerate(selections):
            option_key = normalize_name(selection.option_name)
            value_key = normalize_name(selection.value)
            item_path = f"{field_path}[{i}]"

            if option_key not in self._options:
                raise InvalidVariantCombinationError(
                    field=f"{item_path}.optionName",
                    reason="unknown_option",
                    message=f"Option '{option_key}' is not defined on this product",
                )
            if option_key in seen:
                raise InvalidVariantCombinationError(
                    field=f"{item_path}.optionName",
                    reason="duplicate",
                    message=f"Option '{option_key}' is selected more than once",
                )
            value = self._values.get((option_key, value_key))
            if value is None:
                raise InvalidVariantCombinationError(
                    field=f"{item_path}.value",
                    reason="unknown_value",
                    message=f"Value '{value_key}' is not defined for option '{option_key}'",
                )
            seen.add(option_key)
            pairs.append((self._options[option_key], value))

        missing = [name for name in self._options if name not in seen]
        if missing:
            raise InvalidVariantCombinationError(
                field=field_path,
                reason="missing_option",
                message=f"Variant is missing a selection for: {', '.join(missing)}",
                details={"missing": missing},
            )
        return pairs

    @classmethod
    def from_drafts(
        cls, options: list[OptionDraft]
    ) -> "OptionIndex[OptionDraft, OptionValueDraft]":
        """Build an index over submitted option drafts.

        Args:
            options: Option drafts from a create request.

        Returns:
            Index keyed by normalized names.

        Raises:
            ValidationError: On duplicate option names or values.
        """
        index: OptionIndex[OptionDraft, OptionValueDraft] = OptionIndex()
        for i, option in enumerate(options):
            index.add_option(option.name, option, f"options[{i}].name")
            for j, value in enumerate(option.values):
                index.add_value(option.name, value.value, value, f"options[{i}].values[{j}].value")
        return index


Combination = frozenset[tuple[str, str]]


def combination_key(pairs: list[tuple[str, str]]) -> Combination:
    """Point in option space from (option name, value) pairs, normalized."""
    return frozenset((normalize_name(option), normalize_name(value)) for option, value in pairs)


def ensure_distinct_combinations(
    variants: list[VariantDraft],
    taken: set[Combination] | None = None,
    field_path: str = "variants",
) -> None:
    """Check that no two variants sit at the same option coordinates.

    Args:
        variants: Variants whose selections already resolved.
        taken: Coordinates of variants already stored on the product.
        field_path: Prefix for the reported field.

    Raises:
        VariantCombinationExistsError: On the first repeated combination.
    """
    seen = set(taken or ())
    for i, variant in enumerate(variants):
        key = combination_key([(s.option_name, s.value) for s in variant.selections])
        if key in seen:
            raise VariantCombinationExistsError(
                field=f"{field_path}[{i}].options" if field_path else "options",
                combination=dict(sorted(key)),
            )
        seen.add(key)


def apply_last_default(variants: list[VariantDraft]) -> int | None:
    """Keep ``is_default`` only on the last variant that requested it.

    Args:
        variants: Variants in submitted order.

    Returns:
        Position of the default variant, or None if none asked for it.
    """
    default_at: int | None = None
    for i, variant in enumerate(variants):
        if variant.is_default:
            if default_at is not None:
                variants[default_at].is_default = False
            default_at = i
    return default_at
