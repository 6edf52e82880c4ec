"""Product catalog.

ORM models, repositories and the read-side query service: product
detail, listing, search and filter facets.
"""

from catalog_service.catalog.filters import (
    PaginatedResult,
    PaginationParams,
    ProductFilter,
    SortField,
    SortOrder,
)
from catalog_service.catalog.models import (
    AttributeDefinition,
    Category,
    PackageOption,
    Product,
    ProductAttribute,
    ProductOption,
    ProductOptionValue,
    ProductTag,
    ProductVariant,
    VariantOptionValue,
)
from catalog_service.catalog.service import ProductQueryService
from catalog_service.catalog.taxonomy import CategoryNode, build_tree

__all__ = [
    # Models
    "AttributeDefinition",
    "Category",
    "PackageOption",
    "Product",
    "ProductAttribute",
    "ProductOption",
    "ProductOptionValue",
    "ProductTag",
    "ProductVariant",
    "VariantOptionValue",
    # Taxonomy
    "CategoryNode",
    "build_tree",
    # Query service
    "PaginatedResult",
    "PaginationParams",
    "ProductFilter",
    "ProductQueryService",
    "SortField",
    "SortOrder",
]
