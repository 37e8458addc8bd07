"""Category API Routes

Anyone may browse categories; changing them is reserved for administrators.
"""

from fastapi import APIRouter, HTTPException, Query, status

from .dependencies import CategoryServiceDep, PrincipalDep
from .schemas import (
    CategoryCreateRequest,
    CategoryListResponse,
    CategoryResponse,
    CategoryUpdateRequest,
    category_to_response,
)

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


# ========== Public Endpoints ==========


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    categories: CategoryServiceDep,
    active_only: bool = Query(False, description="Hide deactivated categories"),
):
    """List categories by name"""
    found = await categories.list_categories(active_only=active_only)
    return CategoryListResponse(
        categories=[category_to_response(c) for c in found],
        total=len(found),
    )


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, categories: CategoryServiceDep):
    """Get a category with the number of tasks filed under it"""
    category = await categories.get_category(category_id)
    return category_to_response(category, task_count=await categories.task_count(category_id))


# ========== Admin Endpoints ==========


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreateRequest,
    principal: PrincipalDep,
    categories: CategoryServiceDep,
):
    """Create a category (ADMIN)"""
    try:
        category = await categories.create_category(
            principal, name=request.name, description=request.description
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return category_to_response(category, task_count=0)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    principal: PrincipalDep,
    categories: CategoryServiceDep,
):
    """Rename or re-describe an active category (ADMIN)"""
    try:
        category = await categories.update_category(
            category_id, principal, **request.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return category_to_response(category)


@router.put("/{category_id}/deactivate", response_model=CategoryResponse)
async def deactivate_category(
    category_id: str,
    principal: PrincipalDep,
    categories: CategoryServiceDep,
):
    """Stop offering a category for new tasks (ADMIN)"""
    category = await categories.deactivate_category(category_id, principal)
    return category_to_response(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    principal: PrincipalDep,
    categories: CategoryServiceDep,
):
    """Delete a category no task uses (ADMIN)"""
    await categories.delete_category(category_id, principal)
