"""Product API endpoints.

Provides endpoints for creating, reading, searching, updating and
deleting products, and for reading, adding, updating and removing
variants. Variant routes with a fixed segment are declared before the
routes with an id segment at the same position.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from catalog_service.api.dependencies import (
    OptionalScope,
    ProductId,
    SellerOrAdmin,
    SellerScope,
    VariantId,
    get_product_service,
    get_query_service,
    listing_query,
    search_query,
)
from catalog_service.api.responses import EnvelopeResponse, created, success
from catalog_service.api.schemas import (
    ErrorResponse,
    ProductCreateRequest,
    ProductUpdateRequest,
    VariantBulkUpdateRequest,
    VariantInput,
    VariantUpdateRequest,
)
from catalog_service.application.product_service import ProductMutationService
from catalog_service.catalog.filters import PaginationParams, ProductFilter
from catalog_service.catalog.service import ProductQueryService
from catalog_service.domain.exceptions import ValidationError
from catalog_service.domain.value_objects import Role
from catalog_service.infrastructure.security import TokenClaims

router = APIRouter(
    prefix="/api/products",
    tags=["Products"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)

QueryService = Annotated[ProductQueryService, Depends(get_query_service)]
MutationService = Annotated[ProductMutationService, Depends(get_product_service)]
ListingQuery = Annotated[tuple[ProductFilter, PaginationParams], Depends(listing_query)]
SearchQuery = Annotated[tuple[ProductFilter, PaginationParams], Depends(search_query)]


def owner_for_create(caller: TokenClaims, request: ProductCreateRequest) -> int:
    """Seller that will own a new product.

    Sellers always create for themselves; admins must name the seller.
    """
    if caller.role == Role.SELLER:
        return caller.user_id
    if request.seller_id is None:
        raise ValidationError(field="sellerId", reason="required", message="sellerId is required for admin requests")
    if request.seller_id <= 0:
        raise ValidationError(field="sellerId", reason="not_positive", message="sellerId must be a positive integer")
    return request.seller_id


# ============================================================================
# Reads
# ============================================================================


@router.get("/search", summary="Search products")
async def search_products(
    query: SearchQuery,
    service: QueryService,
    q: Annotated[str | None, Query()] = None,
) -> EnvelopeResponse:
    """Rank a seller's products by weighted text match.

    A missing or empty ``q`` is rejected; a whitespace-only ``q``
    returns no results.
    """
    if not q:
        raise ValidationError(field="q", reason="required", message="Search query 'q' is required")
    filters, pagination = query
    return success(await service.search_products(q, filters, pagination))


@router.get("/filters", summary="Get filter facets")
async def get_filters(seller_id: SellerScope, service: QueryService) -> EnvelopeResponse:
    """Aggregate categories, brands, attributes, price range, variant
    types and stock status over the seller's products."""
    return success({"filters": await service.get_filters(seller_id)})


@router.get("", summary="List products")
async def list_products(query: ListingQuery, service: QueryService) -> EnvelopeResponse:
    """List a seller's products with filters, sorting and pagination."""
    filters, pagination = query
    result = await service.list_products(filters, pagination)
    return success({"products": result.items, "pagination": result.pagination()})


@router.get("/{product_id}", summary="Get product details")
async def get_product(
    product_id: ProductId,
    seller_id: OptionalScope,
    service: QueryService,
) -> EnvelopeResponse:
    """Get the full product with options, variants, attributes and
    package options."""
    return success({"product": await service.get_product(product_id, seller_id)})


# ============================================================================
# Writes
# ============================================================================


@router.post("", status_code=201, summary="Create product")
async def create_product(
    caller: SellerOrAdmin,
    request: ProductCreateRequest,
    service: MutationService,
) -> EnvelopeResponse:
    """Create a product together with its options, values, variants,
    attributes and package options."""
    draft = request.to_draft(owner_for_create(caller, request))
    return created({"product": await service.create_product(draft)}, "Product created")


@router.put("/{product_id}", summary="Update product")
async def update_product(
    caller: SellerOrAdmin,
    product_id: ProductId,
    request: ProductUpdateRequest,
    service: MutationService,
) -> EnvelopeResponse:
    product = await service.update_product(product_id, request.to_patch(), caller)
    return success({"product": product}, "Product updated")


@router.delete("/{product_id}", summary="Delete product")
async def delete_product(
    caller: SellerOrAdmin,
    product_id: ProductId,
    service: MutationService,
) -> EnvelopeResponse:
    """Soft-delete a product and remove its options, variants,
    attributes and package options."""
    await service.delete_product(product_id, caller)
    return success(message="Product deleted")


@router.get("/{product_id}/variants/find", summary="Find variant by options")
async def find_variant(
    request: Request,
    product_id: ProductId,
    seller_id: OptionalScope,
    service: QueryService,
) -> EnvelopeResponse:
    """Find the variant at the option values given as query parameters,
    e.g. ``?color=black&storage=128gb``."""
    requested = dict(request.query_params.items())
    return success({"variant": await service.find_variant(product_id, requested, seller_id)})


@router.get("/{product_id}/variants/{variant_id}", summary="Get variant")
async def get_variant(
    product_id: ProductId,
    variant_id: VariantId,
    seller_id: OptionalScope,
    service: QueryService,
) -> EnvelopeResponse:
    return success({"variant": await service.get_variant(product_id, variant_id, seller_id)})


@router.post("/{product_id}/variants", status_code=201, summary="Add variant")
async def add_variant(
    caller: SellerOrAdmin,
    product_id: ProductId,
    request: VariantInput,
    service: MutationService,
) -> EnvelopeResponse:
    variant = await service.add_variant(product_id, request.to_draft(), caller)
    return created({"variant": variant}, "Variant created")


@router.delete("/{product_id}/variants/{variant_id}", summary="Delete variant")
async def delete_variant(
    caller: SellerOrAdmin,
    product_id: ProductId,
    variant_id: VariantId,
    service: MutationService,
) -> EnvelopeResponse:
    await service.delete_variant(product_id, variant_id, caller)
    return success(message="Variant deleted")


@router.put("/{product_id}/variants/bulk", summary="Bulk update variants")
async def bulk_update_variants(
    caller: SellerOrAdmin,
    product_id: ProductId,
    request: VariantBulkUpdateRequest,
    service: MutationService,
) -> EnvelopeResponse:
    """Update several variants at once; either every row is applied or
    none is."""
    patches = [item.to_patch() for item in request.variants]
    result = await service.bulk_update_variants(product_id, patches, caller)
    return success(result, "Variants updated")


@router.put("/{product_id}/variants/{variant_id}", summary="Update variant")
async def update_variant(
    caller: SellerOrAdmin,
    product_id: ProductId,
    variant_id: VariantId,
    request: VariantUpdateRequest,
    service: MutationService,
) -> EnvelopeResponse:
    """Update a variant's SKU, price, images and flags. Stock and option
    selections are not changed here."""
    variant = await service.update_variant(product_id, request.to_patch(variant_id), caller)
    return success({"variant": variant}, "Variant updated")
