"""Category endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from catalog_service.api.dependencies import AdminOnly, CategoryId, get_category_service
from catalog_service.api.responses import EnvelopeResponse, created, success
from catalog_service.api.schemas import CategoryCreateRequest, CategoryUpdateRequest, ErrorResponse
from catalog_service.application.category_service import CategoryService

router = APIRouter(prefix="/api/categories", tags=["Categories"])

Service = Annotated[CategoryService, Depends(get_category_service)]


@router.get("", summary="List categories")
async def list_categories(service: Service) -> EnvelopeResponse:
    """Get the category tree."""
    return success({"categories": await service.list_tree()})


@router.post(
    "",
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Create category",
)
async def create_category(
    caller: AdminOnly,
    request: CategoryCreateRequest,
    service: Service,
) -> EnvelopeResponse:
    category = await service.create_category(request.name, request.parent_id)
    return created({"category": category}, "Category created")


@router.get("/{category_id}", responses={404: {"model": ErrorResponse}}, summary="Get category")
async def get_category(category_id: CategoryId, service: Service) -> EnvelopeResponse:
    """Get a category with its subcategories."""
    return success({"category": await service.get_category(category_id)})


@router.put(
    "/{category_id}",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update category",
)
async def update_category(
    caller: AdminOnly,
    category_id: CategoryId,
    request: CategoryUpdateRequest,
    service: Service,
) -> EnvelopeResponse:
    category = await service.update_category(
        category_id,
        name=request.field_or_absent("name"),
        parent_id=request.field_or_absent("parent_id"),
    )
    return success({"category": category}, "Category updated")


@router.delete(
    "/{category_id}",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Delete category",
)
async def delete_category(
    caller: AdminOnly,
    category_id: CategoryId,
    service: Service,
) -> EnvelopeResponse:
    """Delete a category no product or subcategory references."""
    await service.delete_category(category_id)
    return success(message="Category deleted")
