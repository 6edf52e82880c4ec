"""Tests for field validation."""

from decimal import Decimal

import pytest

from catalog_service.domain import (
    ABSENT,
    AttributeDraft,
    OptionDraft,
    OptionPatch,
    OptionValueDraft,
    OptionValuePatch,
    PackageOptionDraft,
    ProductDraft,
    ProductPatch,
    SelectionDraft,
    VariantDraft,
)
from catalog_service.domain.exceptions import ValidationError
from catalog_service.domain.validators import (
    check_length,
    check_price,
    parse_positive_int,
    validate_option_patch,
    validate_product_draft,
    validate_product_patch,
    validate_value_patch,
)


def make_draft() -> ProductDraft:
    return ProductDraft(
        seller_id=2,
        category_id=1,
        name="Cotton Shirt",
        base_sku="SHIRT-1",
        options=[
            OptionDraft(
                name="size",
                display_name="Size",
                values=[OptionValueDraft(value="m", display_name="M")],
            )
        ],
        variants=[
            VariantDraft(
                sku="SHIRT-1-M",
                price=Decimal("19.99"),
                selections=[SelectionDraft(option_name="size", value="m")],
            )
        ],
    )


def assert_invalid(draft: ProductDraft, field: str, reason: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_product_draft(draft)
    assert exc_info.value.field == field
    assert exc_info.value.reason == reason


class TestPrimitives:
    """Tests for primitive checks."""

    def test_length_reasons(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            check_length("name", "   ", (3, 10))
        assert exc_info.value.reason == "required"

        with pytest.raises(ValidationError) as exc_info:
            check_length("name", "ab", (3, 10))
        assert exc_info.value.reason == "too_short"

        with pytest.raises(ValidationError) as exc_info:
            check_length("name", "x" * 11, (3, 10))
        assert exc_info.value.reason == "too_long"

    def test_length_counts_characters(self) -> None:
        """Multi-byte characters count once."""
        check_length("name", "ééé", (3, 3))

    def test_check_price_returns_quantized(self) -> None:
        assert check_price("price", Decimal("10.005")).amount == Decimal("10.01")

    def test_check_price_rejects_sub_cent(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            check_price("variants[0].price", Decimal("0.004"))
        assert exc_info.value.reason == "not_positive"


class TestParsePositiveInt:
    """Tests for identifier parsing."""

    def test_parses_trimmed_digits(self) -> None:
        assert parse_positive_int("id", " 42 ") == 42

    @pytest.mark.parametrize(
        ("raw", "reason"),
        [
            ("", "required"),
            (None, "required"),
            ("abc", "invalid_integer"),
            ("-1", "invalid_integer"),
            ("1.5", "invalid_integer"),
            ("0", "not_positive"),
            (str(2**64), "out_of_range"),
        ],
    )
    def test_rejects(self, raw: str | None, reason: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_positive_int("id", raw)
        assert exc_info.value.reason == reason

    def test_zero_can_mean_missing(self) -> None:
        assert parse_positive_int("id", "0", zero_is_missing=True) == 0

    def test_uint64_max_accepted(self) -> None:
        assert parse_positive_int("id", str(2**64 - 1)) == 2**64 - 1


class TestValidateProductDraft:
    """Tests for the create-product graph."""

    def test_valid_draft_passes(self) -> None:
        validate_product_draft(make_draft())

    def test_name_too_short(self) -> None:
        draft = make_draft()
        draft.name = "ab"
        assert_invalid(draft, "name", "too_short")

    def test_options_required(self) -> None:
        draft = make_draft()
        draft.options = []
        assert_invalid(draft, "options", "required")

    def test_option_needs_values(self) -> None:
        draft = make_draft()
        draft.options[0].values = []
        assert_invalid(draft, "options[0].values", "required")

    def test_option_display_name_length(self) -> None:
        draft = make_draft()
        draft.options[0].display_name = "Sz"
        assert_invalid(draft, "options[0].displayName", "too_short")

    def test_bad_color_code(self) -> None:
        draft = make_draft()
        draft.options[0].values[0].color_code = "red"
        assert_invalid(draft, "options[0].values[0].colorCode", "invalid_format")

    def test_variants_required(self) -> None:
        draft = make_draft()
        draft.variants = []
        assert_invalid(draft, "variants", "required")

    def test_variant_price_must_be_positive(self) -> None:
        draft = make_draft()
        draft.variants.append(
            VariantDraft(sku="SHIRT-1-L", price=Decimal("0"), selections=draft.variants[0].selections)
        )
        assert_invalid(draft, "variants[1].price", "not_positive")

    def test_negative_stock(self) -> None:
        draft = make_draft()
        draft.variants[0].stock = -1
        assert_invalid(draft, "variants[0].stock", "negative")

    def test_duplicate_variant_sku(self) -> None:
        draft = make_draft()
        draft.variants.append(
            VariantDraft(sku=" SHIRT-1-M ", price=Decimal("5"), selections=draft.variants[0].selections)
        )
        assert_invalid(draft, "variants[1].sku", "duplicate")

    def test_image_url_limit(self) -> None:
        draft = make_draft()
        draft.variants[0].images = ["https://img.example.com/" + "a" * 2048]
        assert_invalid(draft, "variants[0].images[0]", "too_long")

    def test_too_many_images(self) -> None:
        draft = make_draft()
        draft.variants[0].images = [f"https://img.example.com/{i}.jpg" for i in range(21)]
        assert_invalid(draft, "variants[0].images", "too_many")

    def test_too_many_tags(self) -> None:
        draft = make_draft()
        draft.tags = [f"tag{i}" for i in range(21)]
        assert_invalid(draft, "tags", "too_many")

    def test_duplicate_attribute_key(self) -> None:
        draft = make_draft()
        draft.attributes = [
            AttributeDraft(key="material", name="Material", value="Cotton"),
            AttributeDraft(key="Material", name="Material", value="Wool"),
        ]
        assert_invalid(draft, "attributes[1].key", "duplicate")

    def test_package_quantity_positive(self) -> None:
        draft = make_draft()
        draft.package_options = [PackageOptionDraft(name="Pack", price=Decimal("10"), quantity=0)]
        assert_invalid(draft, "packageOptions[0].quantity", "not_positive")


class TestValidatePatches:
    """Tests for partial updates."""

    def test_empty_product_patch_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_product_patch(ProductPatch())
        assert exc_info.value.reason == "empty"

    def test_null_name_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_product_patch(ProductPatch(name=None))
        assert exc_info.value.field == "name"
        assert exc_info.value.reason == "null"

    def test_null_brand_allowed(self) -> None:
        """Clearing an optional text field is a valid patch."""
        validate_product_patch(ProductPatch(brand=None))

    def test_false_flag_is_a_value(self) -> None:
        validate_product_patch(ProductPatch(is_popular=False))

    def test_option_patch_position_zero(self) -> None:
        validate_option_patch("", OptionPatch(option_id=1, position=0))

    def test_option_patch_empty_display_name_kept(self) -> None:
        """An empty display name means keep the stored one."""
        validate_option_patch("", OptionPatch(option_id=1, display_name="", position=ABSENT))

    def test_option_patch_requires_a_field(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_option_patch("", OptionPatch(option_id=1))
        assert exc_info.value.field == "body"

    def test_bulk_row_may_be_empty(self) -> None:
        validate_option_patch("options[0]", OptionPatch(option_id=1), require_field=False)

    def test_value_patch_bad_color(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_value_patch("", OptionValuePatch(value_id=1, color_code="#12345"))
        assert exc_info.value.field == "colorCode"

    def test_value_patch_negative_position(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_value_patch("values[2]", OptionValuePatch(value_id=1, position=-1))
        assert exc_info.value.field == "values[2].position"
