"""Filter, sort and pagination parameters for catalog reads."""

import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
DEFAULT_SEARCH_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class SortField(str, Enum):
    """Listing sort columns."""

    CREATED_AT = "created_at"
    NAME = "name"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass
class ProductFilter:
    """Filter parameters for product listing and search.

    Attributes:
        seller_id: Tenant scope; None only for unscoped admin reads.
        category_ids: Match any of these categories.
        brands: Match any of these brands.
        min_price: Some variant priced at or above this amount.
        max_price: Some variant priced at or below this amount.
        is_popular: Match the product's popular flag.
        unmatchable: A filter value could not be read; nothing matches.
    """

    seller_id: int | None = None
    category_ids: list[int] = field(default_factory=list)
    brands: list[str] = field(default_factory=list)
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    is_popular: bool | None = None
    unmatchable: bool = False

    def cache_key(self) -> str:
        """Stable text form used in cache keys."""
        return "|".join(
            [
                ",".join(str(c) for c in sorted(self.category_ids)),
                ",".join(sorted(self.brands)),
                "" if self.min_price is None else str(self.min_price),
                "" if self.max_price is None else str(self.max_price),
                "" if self.is_popular is None else str(self.is_popular).lower(),
            ]
        )


@dataclass
class PaginationParams:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        page_size: Items per page.
        sort_by: Sort field.
        sort_order: Sort order (asc/desc).
    """

    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    @classmethod
    def clamped(
        cls,
        page: int | None,
        page_size: int | None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        sort_by: SortField = SortField.CREATED_AT,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> "PaginationParams":
        """Build pagination with out-of-range values clamped.

        A page below 1 becomes 1; a page size below 1 becomes the default
        and one above ``MAX_PAGE_SIZE`` becomes the maximum.
        """
        if page is None or page < 1:
            page = 1
        if page_size is None or page_size < 1:
            page_size = default_page_size
        page_size = min(page_size, MAX_PAGE_SIZE)
        return cls(page=page, page_size=page_size, sort_by=sort_by, sort_order=sort_order)

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: List of items.
        total: Total count.
        page: Current page.
        page_size: Items per page.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1

    def pagination(self) -> dict[str, int | bool]:
        """Pagination block of list responses."""
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total,
            "itemsPerPage": self.page_size,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }
