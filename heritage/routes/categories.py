"""
Category routes. Reading is open to any authenticated user; changes need
the platform super admin.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.content import CategoryCreateRequest, CategoryResponse
from heritage.security import get_current_user, require_superadmin
from heritage.services.category_service import category_service

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryResponse], responses=error_responses(401))
async def list_categories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[CategoryResponse]:
    return await category_service.list_categories(db)


@router.post(
    "",
    status_code=201,
    response_model=CategoryResponse,
    responses=error_responses(400, 401, 403),
)
async def create_category(
    request: CategoryCreateRequest,
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> CategoryResponse:
    return await category_service.create_category(db, request)


@router.delete("/{category_id}", status_code=204, responses=error_responses(400, 401, 403, 404))
async def delete_category(
    category_id: UUID,
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await category_service.delete_category(db, category_id)
    return Response(status_code=204)
