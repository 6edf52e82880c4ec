"""Weighted text matching for product search.

Scoring is a plain substring match per field; each field that contains
the lowercased term adds its weight, and an exact name match adds a
bonus on top. Ties are broken by newest product first.
"""

from dataclasses import dataclass
from typing import Protocol


class Searchable(Protocol):
    name: str
    brand: str | None
    tags: list[str]
    short_description: str | None
    long_description: str | None


@dataclass(frozen=True)
class SearchWeights:
    """Per-field weights; name outranks brand, tags and descriptions."""

    name_exact: int = 50
    name: int = 100
    brand: int = 40
    tags: int = 30
    short_description: int = 20
    long_description: int = 10

    @property
    def maximum(self) -> int:
        """Highest possible score."""
        return (
            self.name_exact
            + self.name
            + self.brand
            + self.tags
            + self.short_description
            + self.long_description
        )


DEFAULT_WEIGHTS = SearchWeights()


def normalize_query(raw: str) -> str:
    """Trim and lowercase a search query."""
    return raw.strip().lower()


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally (escape char ``\\``)."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def matched_fields(product: Searchable, term: str) -> list[str]:
    """List the response field names that contain the term.

    Args:
        product: Product row.
        term: Normalized query.

    Returns:
        Field names in weight order.
    """
    fields: list[str] = []
    if term in product.name.lower():
        fields.append("name")
    if product.brand and term in product.brand.lower():
        fields.append("brand")
    if any(term in tag.lower() for tag in product.tags or []):
        fields.append("tags")
    if product.short_description and term in product.short_description.lower():
        fields.append("shortDescription")
    if product.long_description and term in product.long_description.lower():
        fields.append("longDescription")
    return fields


def relevance(score: int, weights: SearchWeights = DEFAULT_WEIGHTS) -> float:
    """Scale a raw score into [0, 1]."""
    return round(score / weights.maximum, 4) if weights.maximum else 0.0


def format_search_time(seconds: float) -> str:
    """Human-readable duration, e.g. ``"12.35ms"``."""
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    return f"{seconds:.2f}s"
