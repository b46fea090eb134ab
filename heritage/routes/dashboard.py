"""
Personal dashboard, platform statistics and the super admin listings.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.enums import ContentType
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.content import ContentResponse
from heritage.schemas.dashboard import PlatformStatisticsResponse, UserDashboardResponse
from heritage.schemas.family import FamilyResponse
from heritage.security import get_current_user, require_superadmin
from heritage.services.content_service import content_service
from heritage.services.dashboard_service import dashboard_service
from heritage.services.family_service import family_service

router = APIRouter(tags=["Dashboard"])


@router.get(
    "/dashboard/me",
    response_model=UserDashboardResponse,
    responses=error_responses(401),
    summary="Counters for the caller",
)
async def my_dashboard(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserDashboardResponse:
    return await dashboard_service.user_dashboard(db, current_user)


@router.get(
    "/admin/statistics",
    response_model=PlatformStatisticsResponse,
    responses=error_responses(401, 403),
    summary="Platform-wide counters (super admin)",
)
async def platform_statistics(
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> PlatformStatisticsResponse:
    return await dashboard_service.platform_statistics(db)


@router.get(
    "/admin/families",
    response_model=List[FamilyResponse],
    responses=error_responses(401, 403),
    summary="Every family on the platform (super admin)",
)
async def all_families(
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> List[FamilyResponse]:
    return await family_service.list_all_families(db)


@router.get(
    "/admin/contents",
    response_model=List[ContentResponse],
    responses=error_responses(401, 403),
    summary="Platform contents, optionally of one type (super admin)",
)
async def platform_contents(
    content_type: Optional[ContentType] = Query(default=None, alias="type"),
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> List[ContentResponse]:
    return await content_service.list_platform_contents(db, content_type)
