"""
Heritage Numérique Backend — Authentication Routes
===================================================

What:  Registration (optionally through an invitation code), login,
       login-with-code and the current user profile.
How:   Unauthenticated except /auth/me. Each call returns an AuthResponse
       carrying a fresh Bearer token.

Invitation Code Flow:
    1. A family admin creates an invitation → 8-character code
    2. The invitee either registers with the code (new account) or logs in
       with it (existing account)
    3. The code is single use: the invitation becomes ACCEPTED and a READER
       membership is created in the inviting family
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.auth import AuthResponse, LoginRequest, LoginWithCodeRequest, RegisterRequest
from heritage.schemas.user import UserResponse
from heritage.security import get_current_user
from heritage.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    responses=error_responses(400, 404),
    summary="Create an account",
    description=(
        "Registers a new member. With `invitation_code`, the account joins the "
        "inviting family as READER and the invitation is consumed."
    ),
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db, request)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses=error_responses(401),
    summary="Log in with email and password",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db, request)


@router.post(
    "/login-with-code",
    response_model=AuthResponse,
    responses=error_responses(400, 401, 404),
    summary="Log in and join a family with an invitation code",
)
async def login_with_code(
    request: LoginWithCodeRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    """
    The credentials are checked before the code, so a wrong password never
    reveals whether a code exists.
    """
    return await auth_service.login_with_code(db, request)


@router.get(
    "/me",
    response_model=UserResponse,
    responses=error_responses(401),
    summary="Current user profile",
)
async def me(current_user: User = Depends(get_current_user)) -> User:
    return current_user
