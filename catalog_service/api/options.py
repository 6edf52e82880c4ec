"""Product option and option value endpoints.

Bulk routes are declared before the routes with an id segment at the
same position.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from catalog_service.api.dependencies import (
    OptionalScope,
    OptionId,
    ProductId,
    SellerOnly,
    SellerOrAdmin,
    ValueId,
    get_option_service,
    get_query_service,
)
from catalog_service.api.responses import EnvelopeResponse, created, success
from catalog_service.api.schemas import (
    ErrorResponse,
    OptionBulkUpdateRequest,
    OptionCreateRequest,
    OptionUpdateRequest,
    OptionValueBulkCreateRequest,
    OptionValueBulkUpdateRequest,
    OptionValueCreateRequest,
    OptionValueUpdateRequest,
)
from catalog_service.application.option_service import OptionMutationService
from catalog_service.catalog.service import ProductQueryService

router = APIRouter(
    prefix="/api/products/{product_id}/options",
    tags=["Options"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

Service = Annotated[OptionMutationService, Depends(get_option_service)]
QueryService = Annotated[ProductQueryService, Depends(get_query_service)]


# ============================================================================
# Options
# ============================================================================


@router.get("", summary="List options")
async def list_options(
    product_id: ProductId,
    seller_id: OptionalScope,
    service: QueryService,
) -> EnvelopeResponse:
    """Get a product's options and values with per-value variant counts."""
    return success({"options": await service.list_options(product_id, seller_id)})


@router.post("", status_code=201, responses={409: {"model": ErrorResponse}}, summary="Create option")
async def create_option(
    caller: SellerOnly,
    product_id: ProductId,
    request: OptionCreateRequest,
    service: Service,
) -> EnvelopeResponse:
    option = await service.create_option(product_id, request.to_draft(), caller)
    return created({"option": option}, "Option created")


@router.put("/bulk-update", summary="Bulk update options")
async def bulk_update_options(
    caller: SellerOnly,
    product_id: ProductId,
    request: OptionBulkUpdateRequest,
    service: Service,
) -> EnvelopeResponse:
    """Update display names and positions of several options at once.

    Either every row is applied or none is.
    """
    patches = [item.to_patch() for item in request.options]
    count = await service.bulk_update_options(product_id, patches, caller)
    return success({"updatedCount": count}, "Options updated")


@router.put("/{option_id}", summary="Update option")
async def update_option(
    caller: SellerOnly,
    product_id: ProductId,
    option_id: OptionId,
    request: OptionUpdateRequest,
    service: Service,
) -> EnvelopeResponse:
    option = await service.update_option(product_id, request.to_patch(option_id), caller)
    return success({"option": option}, "Option updated")


@router.delete("/{option_id}", responses={409: {"model": ErrorResponse}}, summary="Delete option")
async def delete_option(
    caller: SellerOrAdmin,
    product_id: ProductId,
    option_id: OptionId,
    service: Service,
) -> EnvelopeResponse:
    """Delete an option and its values unless a variant uses it."""
    await service.delete_option(product_id, option_id, caller)
    return success(message="Option deleted")


# ============================================================================
# Values
# ============================================================================


@router.post(
    "/{option_id}/values",
    status_code=201,
    responses={409: {"model": ErrorResponse}},
    summary="Add option value",
)
async def add_value(
    caller: SellerOrAdmin,
    product_id: ProductId,
    option_id: OptionId,
    request: OptionValueCreateRequest,
    service: Service,
) -> EnvelopeResponse:
    value = await service.add_value(product_id, option_id, request.to_draft(), caller)
    return created({"optionValue": value}, "Option value created")


@router.post(
    "/{option_id}/values/bulk",
    status_code=201,
    responses={409: {"model": ErrorResponse}},
    summary="Bulk add option values",
)
async def bulk_add_values(
    caller: SellerOrAdmin,
    product_id: ProductId,
    option_id: OptionId,
    request: OptionValueBulkCreateRequest,
    service: Service,
) -> EnvelopeResponse:
    """Add several values; duplicates in the batch or against stored
    values reject the whole batch."""
    values = await service.bulk_add_values(product_id, option_id, [v.to_draft() for v in request.values], caller)
    return created({"optionValues": values}, "Option values created")


@router.put("/{option_id}/values/bulk-update", summary="Bulk update option values")
async def bulk_update_values(
    caller: SellerOrAdmin,
    product_id: ProductId,
    option_id: OptionId,
    request: OptionValueBulkUpdateRequest,
    service: Service,
) -> EnvelopeResponse:
    patches = [item.to_patch() for item in request.values]
    count = await service.bulk_update_values(product_id, option_id, patches, caller)
    return success({"updatedCount": count}, "Option values updated")


@router.put("/{option_id}/values/{value_id}", summary="Update option value")
async def update_value(
    caller: SellerOnly,
    product_id: ProductId,
    option_id: OptionId,
    value_id: ValueId,
    request: OptionValueUpdateRequest,
    service: Service,
) -> EnvelopeResponse:
    value = await service.update_value(product_id, option_id, request.to_patch(value_id), caller)
    return success({"optionValue": value}, "Option value updated")


@router.delete("/{option_id}/values/{value_id}", summary="Delete option value")
async def delete_value(
    caller: SellerOnly,
    product_id: ProductId,
    option_id: OptionId,
    value_id: ValueId,
    service: Service,
) -> EnvelopeResponse:
    """Delete a value unless a variant selects it."""
    await service.delete_value(product_id, option_id, value_id, caller)
    return success(message="Option value deleted")
