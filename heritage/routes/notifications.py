"""
Notifications addressed to the caller.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.common import CountResponse
from heritage.schemas.notification import NotificationResponse
from heritage.security import get_current_user
from heritage.services.notification_service import notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse], responses=error_responses(401))
async def list_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await notification_service.list_for_user(db, current_user.id)


@router.get("/unread", response_model=List[NotificationResponse], responses=error_responses(401))
async def list_unread_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await notification_service.list_for_user(db, current_user.id, unread_only=True)


@router.get("/unread/count", response_model=CountResponse, responses=error_responses(401))
async def count_unread_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=await notification_service.count_unread(db, current_user.id))


@router.put(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    responses=error_responses(401, 404),
    summary="Mark one of the caller's notifications as read",
)
async def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await notification_service.mark_as_read(db, notification_id, current_user.id)
