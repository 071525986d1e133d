"""
Category service
Listing categories with post counts, admin-managed create, update and delete
"""

import logging
from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, ErrorCode, NotFoundError
from src.models import Category, Post
from src.schemas import CategoryCreateRequest, CategoryUpdateRequest
from src.service.dto import category_dto

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, config: Any):
        self.config = config

    async def _get_or_404(self, session: AsyncSession, category_id: int) -> Category:
        category = await session.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def _ensure_unique_name(self, session: AsyncSession, name: str, exclude_id: int = None) -> None:
        query = select(Category.id).where(func.lower(Category.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        if await session.scalar(query):
            raise ConflictError("Category with this name already exists")

    async def list_categories(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """All categories with their post counts, by name"""
        post_counts = (
            select(Post.category_id, func.count(Post.id).label("post_count"))
            .group_by(Post.category_id)
            .subquery()
        )
        rows = await session.execute(
            select(Category, func.coalesce(post_counts.c.post_count, 0))
            .outerjoin(post_counts, post_counts.c.category_id == Category.id)
            .order_by(Category.name)
        )
        return [category_dto(category, count) for category, count in rows.all()]

    async def get_category(self, session: AsyncSession, category_id: int) -> Dict[str, Any]:
        category = await self._get_or_404(session, category_id)
        post_count = await session.scalar(
            select(func.count(Post.id)).where(Post.category_id == category_id)
        )
        return category_dto(category, post_count)

    async def create_category(self, session: AsyncSession, data: CategoryCreateRequest) -> Dict[str, Any]:
        await self._ensure_unique_name(session, data.name)
        category = Category(name=data.name, description=data.description)
        session.add(category)
        await session.commit()
        await session.refresh(category)
        logger.info(f"Category created: {category.name}")
        return category_dto(category, 0)

    async def update_category(
        self, session: AsyncSession, category_id: int, data: CategoryUpdateRequest
    ) -> Dict[str, Any]:
        category = await self._get_or_404(session, category_id)
        if data.name is not None and data.name != category.name:
            await self._ensure_unique_name(session, data.name, exclude_id=category_id)
            category.name = data.name
        if data.description is not None:
            category.description = data.description
        await session.commit()
        return await self.get_category(session, category_id)

    async def delete_category(self, session: AsyncSession, category_id: int) -> None:
        """
        Raises:
            ConflictError: Posts still reference the category
        """
        category = await self._get_or_404(session, category_id)
        in_use = await session.scalar(
            select(func.count(Post.id)).where(Post.category_id == category_id)
        )
        if in_use:
            raise ConflictError(
                f"Category is used by {in_use} posts", code=ErrorCode.CONFLICT
            )
        await session.delete(category)
        await session.commit()
        logger.info(f"Category deleted: {category_id}")
