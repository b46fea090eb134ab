"""
Heritage Numérique Backend — Authentication Service
====================================================

What:  Registration, login, login-with-invitation-code, and the startup
       super admin bootstrap.
How:   Passwords are checked with argon2 (heritage.security); successful
       calls return an AuthResponse carrying a fresh JWT.

Registration Flow (with invitation code):
    ┌──────────────┐    ┌────────────────┐    ┌─────────────┐    ┌──────────────┐
    │ Email unique │───▶│ Code redeemable│───▶│ Create user │───▶│ READER member│
    │   (400)      │    │ (404/400)      │    │             │    │ + ACCEPTED   │
    └──────────────┘    └────────────────┘    └─────────────┘    └──────────────┘

    The code is validated before the user row exists, so a bad code never
    leaves a half-registered account behind (the request rolls back anyway).
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.config import settings
from heritage.database import utcnow
from heritage.exceptions import BadRequestError, UnauthorizedError
from heritage.models.enums import UserRole
from heritage.models.user import User
from heritage.schemas.auth import AuthResponse, LoginRequest, LoginWithCodeRequest, RegisterRequest
from heritage.security import create_access_token, hash_password, verify_password
from heritage.services.invitation_service import invitation_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    def build_auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            access_token=create_access_token(user),
            expires_in=settings.jwt_expiration_seconds,
            user_id=user.id,
            email=user.email,
            last_name=user.last_name,
            first_name=user.first_name,
            role=user.role,
        )

    async def register(self, db: AsyncSession, request: RegisterRequest) -> AuthResponse:
        email = request.email.lower()
        if await self.get_user_by_email(db, email) is not None:
            raise BadRequestError(
                message="An account with this email already exists",
                context={"field": "email"},
            )

        invitation = None
        if request.invitation_code:
            invitation = await invitation_service.find_redeemable_by_code(
                db, request.invitation_code, email
            )

        now = utcnow()
        user = User(
            email=email,
            password_hash=hash_password(request.password),
            last_name=request.last_name,
            first_name=request.first_name,
            phone=request.phone,
            ethnicity=request.ethnicity,
            role=UserRole.MEMBER.value,
            active=True,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        await db.flush()
        logger.info("User registered: %s", user.id)

        if invitation is not None:
            await invitation_service.redeem_for_new_user(db, invitation, user)

        return self.build_auth_response(user)

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        The same message for unknown email, wrong password and inactive
        account, so responses never reveal which accounts exist.
        """
        user = await self.get_user_by_email(db, email)
        if user is None or not verify_password(user.password_hash, password):
            raise UnauthorizedError(message=INVALID_CREDENTIALS)
        if not user.active:
            raise UnauthorizedError(message=INVALID_CREDENTIALS)
        return user

    async def login(self, db: AsyncSession, request: LoginRequest) -> AuthResponse:
        user = await self.authenticate(db, request.email, request.password)
        logger.info("User logged in: %s", user.id)
        return self.build_auth_response(user)

    async def login_with_code(self, db: AsyncSession, request: LoginWithCodeRequest) -> AuthResponse:
        user = await self.authenticate(db, request.email, request.password)
        await invitation_service.redeem_code(db, user, request.code)
        return self.build_auth_response(user)

    async def ensure_superadmin(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Create the platform super admin, or promote an existing account.
        Called once from the application lifespan when both settings are set.
        """
        email = email.strip().lower()
        user = await self.get_user_by_email(db, email)
        if user is None:
            now = utcnow()
            user = User(
                email=email,
                password_hash=hash_password(password),
                last_name="Administrator",
                first_name="Platform",
                role=UserRole.ADMIN.value,
                active=True,
                created_at=now,
                updated_at=now,
            )
            db.add(user)
            logger.info("Super admin account created: %s", email)
        elif user.role != UserRole.ADMIN:
            user.role = UserRole.ADMIN.value
            logger.info("Existing account promoted to super admin: %s", email)
        await db.flush()
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
