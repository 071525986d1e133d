"""
Category routes
Reads are public, changes need an administrator
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_category_service
from src.core.auth import get_current_admin
from src.core.responses import success_response
from src.models import User
from src.models.engine import get_db
from src.schemas import CategoryCreateRequest, CategoryUpdateRequest
from src.service.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
async def list_categories(
    db: AsyncSession = Depends(get_db),
    category_service: CategoryService = Depends(get_category_service),
):
    return success_response(await category_service.list_categories(db))


@router.get("/{category_id}")
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    category_service: CategoryService = Depends(get_category_service),
):
    return success_response(await category_service.get_category(db, category_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreateRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.create_category(db, body)
    return success_response(category, "Category created successfully")


@router.put("/{category_id}")
async def update_category(
    category_id: int,
    body: CategoryUpdateRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    category_service: CategoryService = Depends(get_category_service),
):
    category = await category_service.update_category(db, category_id, body)
    return success_response(category, "Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    category_service: CategoryService = Depends(get_category_service),
):
    await category_service.delete_category(db, category_id)
    return success_response(None, "Category deleted successfully")
