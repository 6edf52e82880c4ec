"""Tests for domain value objects."""

from decimal import Decimal

import pytest

from catalog_service.domain import ABSENT, ColorCode, Price, Role, is_present, normalize_name


class TestPrice:
    """Tests for Price value object."""

    def test_quantizes_to_cents(self) -> None:
        """Amounts are stored with two decimal places."""
        assert Price(Decimal("19.9")).amount == Decimal("19.90")

    def test_rounds_half_up(self) -> None:
        """Half a cent rounds away from zero."""
        assert Price(Decimal("9.995")).amount == Decimal("10.00")
        assert Price(Decimal("0.005")).amount == Decimal("0.01")

    def test_parse_from_float_and_string(self) -> None:
        """JSON numbers and numeric strings are accepted."""
        assert Price.parse(799.99).amount == Decimal("799.99")
        assert Price.parse("12").amount == Decimal("12.00")

    @pytest.mark.parametrize("raw", ["abc", True, Decimal("Infinity"), Decimal("NaN")])
    def test_parse_rejects_non_numbers(self, raw: object) -> None:
        """Booleans, text and non-finite amounts are rejected."""
        with pytest.raises(ValueError):
            Price.parse(raw)

    def test_is_positive_after_rounding(self) -> None:
        """A price rounding down to zero is not positive."""
        assert Price(Decimal("0.01")).is_positive()
        assert not Price(Decimal("0.004")).is_positive()
        assert not Price(Decimal("0")).is_positive()

    def test_string_and_float_forms(self) -> None:
        price = Price(Decimal("5"))
        assert str(price) == "5.00"
        assert price.to_float() == 5.0


class TestColorCode:
    """Tests for ColorCode value object."""

    def test_valid_codes(self) -> None:
        assert ColorCode("#1a2B3c").value == "#1a2B3c"
        assert ColorCode.is_valid("#FFFFFF")

    @pytest.mark.parametrize("raw", ["FFFFFF", "#FFF", "#GGGGGG", "#FFFFFFF", ""])
    def test_invalid_codes(self, raw: str) -> None:
        """Anything but '#' and six hex digits is rejected."""
        assert not ColorCode.is_valid(raw)
        with pytest.raises(ValueError):
            ColorCode(raw)


class TestNames:
    """Tests for name normalization."""

    def test_normalize_trims_and_lowercases(self) -> None:
        assert normalize_name("  Color ") == "color"
        assert normalize_name("128GB") == "128gb"


class TestAbsent:
    """Tests for the absent patch marker."""

    def test_absent_is_falsy_singleton(self) -> None:
        assert not ABSENT
        assert type(ABSENT)() is ABSENT
        assert repr(ABSENT) == "ABSENT"

    def test_zero_and_empty_are_present(self) -> None:
        """Zero, empty string and None all count as supplied values."""
        assert is_present(0)
        assert is_present("")
        assert is_present(None)
        assert not is_present(ABSENT)


class TestRole:
    def test_role_values(self) -> None:
        assert Role("seller") is Role.SELLER
        assert [r.value for r in Role] == ["customer", "seller", "admin"]
