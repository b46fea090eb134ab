"""
Content categories, managed by the platform super admin.
"""

import logging
import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import utcnow
from heritage.exceptions import BadRequestError, NotFoundError
from heritage.models.content import Content
from heritage.models.family import Category
from heritage.schemas.content import CategoryCreateRequest, CategoryResponse

logger = logging.getLogger(__name__)


class CategoryService:

    async def list_categories(self, db: AsyncSession) -> List[CategoryResponse]:
        result = await db.execute(select(Category).order_by(Category.name))
        return [CategoryResponse.model_validate(c) for c in result.scalars().all()]

    async def create_category(self, db: AsyncSession, request: CategoryCreateRequest) -> CategoryResponse:
        name = request.name.strip()
        existing = await db.execute(
            select(Category.id).where(func.lower(Category.name) == name.lower())
        )
        if existing.scalar_one_or_none() is not None:
            raise BadRequestError(
                message=f"A category named '{name}' already exists",
                context={"name": name},
            )

        category = Category(
            name=name,
            description=request.description,
            icon=request.icon,
            created_at=utcnow(),
        )
        db.add(category)
        await db.flush()
        logger.info("Category created: %s (%s)", category.name, category.id)
        return CategoryResponse.model_validate(category)

    async def delete_category(self, db: AsyncSession, category_id: uuid.UUID) -> None:
        category = await db.get(Category, category_id)
        if category is None:
            raise NotFoundError(resource="category", resource_id=str(category_id))

        in_use = await db.execute(
            select(func.count(Content.id)).where(Content.category_id == category_id)
        )
        if in_use.scalar():
            raise BadRequestError(
                message="This category still has contents and cannot be deleted",
                context={"category_id": str(category_id)},
            )

        await db.delete(category)
        await db.flush()
        logger.info("Category deleted: %s", category_id)


# ── Singleton Instance ────────────────────────────────────────────────────
category_service = CategoryService()
