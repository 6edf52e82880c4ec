"""Product attribute endpoints.

The bulk route is declared before the route with an id segment at the
same position.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from catalog_service.api.dependencies import (
    AttributeId,
    OptionalScope,
    ProductId,
    SellerOrAdmin,
    get_attribute_service,
    get_query_service,
)
from catalog_service.api.responses import EnvelopeResponse, created, success
from catalog_service.api.schemas import (
    AttributeBulkUpdateRequest,
    AttributeCreateRequest,
    AttributeUpdateRequest,
    ErrorResponse,
)
from catalog_service.application.attribute_service import AttributeMutationService
from catalog_service.catalog.service import ProductQueryService

router = APIRouter(
    prefix="/api/products/{product_id}/attributes",
    tags=["Attributes"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

Service = Annotated[AttributeMutationService, Depends(get_attribute_service)]
QueryService = Annotated[ProductQueryService, Depends(get_query_service)]


@router.get("", summary="List attributes")
async def list_attributes(
    product_id: ProductId,
    seller_id: OptionalScope,
    service: QueryService,
) -> EnvelopeResponse:
    return success({"attributes": await service.list_attributes(product_id, seller_id)})


@router.post("", status_code=201, responses={409: {"model": ErrorResponse}}, summary="Add attribute")
async def add_attribute(
    caller: SellerOrAdmin,
    product_id: ProductId,
    request: AttributeCreateRequest,
    service: Service,
) -> EnvelopeResponse:
    """Attach an attribute; an unknown key creates its definition."""
    attribute = await service.add_attribute(product_id, request.to_draft(), caller)
    return created({"attribute": attribute}, "Attribute created")


@router.put("/bulk", summary="Bulk update attributes")
async def bulk_update_attributes(
    caller: SellerOrAdmin,
    product_id: ProductId,
    request: AttributeBulkUpdateRequest,
    service: Service,
) -> EnvelopeResponse:
    patches = [item.to_patch() for item in request.attributes]
    attributes = await service.bulk_update_attributes(product_id, patches, caller)
    return success({"updatedCount": len(attributes), "attributes": attributes}, "Attributes updated")


@router.put("/{attribute_id}", summary="Update attribute")
async def update_attribute(
    caller: SellerOrAdmin,
    product_id: ProductId,
    attribute_id: AttributeId,
    request: AttributeUpdateRequest,
    service: Service,
) -> EnvelopeResponse:
    attribute = await service.update_attribute(product_id, request.to_patch(attribute_id), caller)
    return success({"attribute": attribute}, "Attribute updated")


@router.delete("/{attribute_id}", summary="Delete attribute")
async def delete_attribute(
    caller: SellerOrAdmin,
    product_id: ProductId,
    attribute_id: AttributeId,
    service: Service,
) -> EnvelopeResponse:
    """Remove an attribute from a product; the definition stays."""
    await service.delete_attribute(product_id, attribute_id, caller)
    return success(message="Attribute deleted")
