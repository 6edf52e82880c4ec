"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Self

CENT = Decimal("0.01")
COLOR_CODE_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


# ============================================================================
# Absent / Present
# ============================================================================


class _Absent:
    """Marker for a patch field that was not supplied.

    A field set to ``ABSENT`` preserves the stored value, while any other
    value (including ``0`` or ``""``) is a present value.
    """

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Any = _Absent()


def is_present(value: object) -> bool:
    """Check whether a patch field carries a value."""
    return value is not ABSENT


# ============================================================================
# Roles
# ============================================================================


class Role(str, Enum):
    """Caller roles carried in access tokens."""

    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


# ============================================================================
# Names
# ============================================================================


def normalize_name(raw: str) -> str:
    """Normalize an option name, option value or attribute key.

    Args:
        raw: Submitted string.

    Returns:
        Lowercased string with surrounding whitespace removed.
    """
    return raw.strip().lower()


# ============================================================================
# Price
# ============================================================================


@dataclass(frozen=True)
class Price:
    """Fixed-precision price with two decimal places.

    Amounts are quantized with half-away-from-zero rounding at
    construction, so ``Price(Decimal("9.995")).amount == Decimal("10.00")``.

    Attributes:
        amount: Decimal amount in major currency units.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        """Quantize the amount to cents."""
        object.__setattr__(self, "amount", self.amount.quantize(CENT, rounding=ROUND_HALF_UP))

    @classmethod
    def parse(cls, raw: Any) -> Self:
        """Create a price from a JSON number, string or Decimal.

        Args:
            raw: Submitted amount.

        Returns:
            Price instance.

        Raises:
            ValueError: If the amount is not a finite number.
        """
        if isinstance(raw, bool):
            raise ValueError("price must be a number")
        try:
            amount = raw if isinstance(raw, Decimal) else Decimal(str(raw))
        except (InvalidOperation, ValueError) as exc:
            raise ValueError("price must be a number") from exc
        if not amount.is_finite():
            raise ValueError("price must be finite")
        return cls(amount=amount)

    def is_positive(self) -> bool:
        """Check whether the quantized price is at least one cent."""
        return self.amount >= CENT

    def to_float(self) -> float:
        """JSON representation with two decimal places."""
        return float(self.amount)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


# ============================================================================
# Color Code
# ============================================================================


@dataclass(frozen=True)
class ColorCode:
    """Hex color swatch for an option value (``#`` followed by 6 hex digits)."""

    value: str

    def __post_init__(self) -> None:
        if not COLOR_CODE_PATTERN.fullmatch(self.value):
            raise ValueError(f"Invalid color code: {self.value!r}")

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check a raw string against the color code format."""
        return bool(COLOR_CODE_PATTERN.fullmatch(value))

    def __str__(self) -> str:
        return self.value
