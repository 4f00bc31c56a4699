"""Category API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from storefront.api.auth import AdminDep
from storefront.api.deps import CategoryServiceDep
from storefront.api.schemas import (
    CategoryCreateRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    ErrorResponse,
    MessageResponse,
)
from storefront.catalog.entities import Category

router = APIRouter(prefix="/api/categories", tags=["Categories"])


def category_to_response(category: Category) -> CategoryResponse:
    """Convert Category entity to response schema."""
    return CategoryResponse(
        id=category.id,
        name=category.name,
        slug=category.slug,
        description=category.description,
        image_url=category.image_url,
        parent_category=category.parent_category_id,
        active=category.active,
        order=category.order,
    )


@router.get("", response_model=list[CategoryResponse], summary="List categories")
async def list_categories(
    service: CategoryServiceDep,
    active: Annotated[str | None, Query(description="Only 'true' filters to active categories")] = None,
) -> list[CategoryResponse]:
    """List categories in display order."""
    categories = await service.list_categories(active=True if active == "true" else None)
    return [category_to_response(c) for c in categories]


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get category",
)
async def get_category(category_id: str, service: CategoryServiceDep) -> CategoryResponse:
    """Get a category by ID."""
    return category_to_response(await service.get_category(category_id))


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Create category",
)
async def create_category(
    payload: CategoryCreateRequest,
    _: AdminDep,
    service: CategoryServiceDep,
) -> CategoryResponse:
    """Create a category. Rejected if the slug is already used."""
    category = await service.create_category(
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        image_url=payload.image_url,
        parent_category_id=payload.parent_category,
        active=payload.active,
        order=payload.order,
    )
    return category_to_response(category)


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update category",
)
async def update_category(
    category_id: str,
    payload: CategoryUpdateRequest,
    _: AdminDep,
    service: CategoryServiceDep,
) -> CategoryResponse:
    """Apply the supplied fields to a category."""
    changes = payload.model_dump(exclude_unset=True)
    if "parent_category" in changes:
        changes["parent_category_id"] = changes.pop("parent_category")
    return category_to_response(await service.update_category(category_id, changes))


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Delete category",
)
async def delete_category(
    category_id: str,
    _: AdminDep,
    service: CategoryServiceDep,
) -> MessageResponse:
    """Delete a category, subject to the configured delete policy."""
    await service.delete_category(category_id)
    return MessageResponse(message="Category removed")
