"""
User profile routes.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.family import MembershipResponse
from heritage.schemas.user import UserResponse, UserUpdateRequest
from heritage.security import get_current_user
from heritage.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.put(
    "/me",
    response_model=UserResponse,
    responses=error_responses(400, 401),
    summary="Update the caller's own profile",
)
async def update_me(
    request: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.update_profile(db, current_user, request)


@router.get(
    "/by-email/{email}",
    response_model=UserResponse,
    responses=error_responses(401, 404),
    summary="Look a user up by email",
)
async def get_user_by_email(
    email: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.get_by_email(db, email)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses=error_responses(401, 404),
    summary="Get a user profile",
)
async def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    return await user_service.get_user(db, user_id)


@router.get(
    "/{user_id}/families/{family_id}",
    response_model=MembershipResponse,
    responses=error_responses(401, 404),
    summary="A user's membership in one family",
)
async def get_user_membership(
    user_id: UUID,
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MembershipResponse:
    return await user_service.get_membership_in_family(db, current_user, user_id, family_id)
