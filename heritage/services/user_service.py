"""
User profile lookups and self-service updates.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.exceptions import NotFoundError
from heritage.models.family import FamilyMembership
from heritage.models.user import User
from heritage.schemas.family import MembershipResponse
from heritage.schemas.user import UserUpdateRequest
from heritage.services.family_service import membership_response
from heritage.services.permissions import require_member_or_superadmin

logger = logging.getLogger(__name__)


class UserService:

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def get_by_email(self, db: AsyncSession, email: str) -> User:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=email)
        return user

    async def get_membership_in_family(
        self,
        db: AsyncSession,
        caller: User,
        user_id: uuid.UUID,
        family_id: uuid.UUID,
    ) -> MembershipResponse:
        await require_member_or_superadmin(db, caller, family_id)
        result = await db.execute(
            select(FamilyMembership, User)
            .join(User, User.id == FamilyMembership.user_id)
            .where(
                FamilyMembership.user_id == user_id,
                FamilyMembership.family_id == family_id,
            )
        )
        row = result.first()
        if row is None:
            raise NotFoundError(resource="membership", resource_id=str(user_id))
        membership, user = row
        return membership_response(membership, user)

    async def update_profile(self, db: AsyncSession, user: User, request: UserUpdateRequest) -> User:
        changes = request.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(user, field, value)
        if changes:
            await db.flush()
            logger.info("User %s updated fields: %s", user.id, ", ".join(sorted(changes)))
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
