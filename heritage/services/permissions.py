"""
Heritage Numérique Backend — Family Permission Checks
======================================================

What:  Membership lookups and role gates shared by every family-scoped
       service.
How:   Each check loads the caller's FamilyMembership and raises:
           not a member          → UnauthorizedError (401)
           member, role too low  → PermissionDeniedError (403)

Role Matrix:
    READER  read family resources
    EDITOR  + create contents, quizzes and tree members
    ADMIN   + invite, manage roles and members, request publication, delete
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.exceptions import PermissionDeniedError, UnauthorizedError
from heritage.models.enums import FamilyRole
from heritage.models.family import FamilyMembership
from heritage.models.user import User

logger = logging.getLogger(__name__)


async def get_membership(
    db: AsyncSession, user_id: uuid.UUID, family_id: uuid.UUID
) -> Optional[FamilyMembership]:
    result = await db.execute(
        select(FamilyMembership).where(
            FamilyMembership.user_id == user_id,
            FamilyMembership.family_id == family_id,
        )
    )
    return result.scalar_one_or_none()


async def require_member(db: AsyncSession, user: User, family_id: uuid.UUID) -> FamilyMembership:
    membership = await get_membership(db, user.id, family_id)
    if membership is None:
        logger.warning("User %s is not a member of family %s", user.id, family_id)
        raise UnauthorizedError(
            message="You are not a member of this family",
            context={"family_id": str(family_id)},
        )
    return membership


async def require_writer(db: AsyncSession, user: User, family_id: uuid.UUID) -> FamilyMembership:
    """ADMIN or EDITOR."""
    membership = await require_member(db, user, family_id)
    if not membership.family_role.can_write:
        logger.warning("Write access denied for user %s in family %s", user.id, family_id)
        raise PermissionDeniedError(
            message="Readers cannot create or modify family content",
            context={"family_id": str(family_id), "role": membership.role},
        )
    return membership


async def require_family_admin(db: AsyncSession, user: User, family_id: uuid.UUID) -> FamilyMembership:
    membership = await require_member(db, user, family_id)
    if not membership.family_role.is_admin:
        logger.warning("Admin access denied for user %s in family %s", user.id, family_id)
        raise PermissionDeniedError(
            message="Only a family administrator can perform this action",
            context={"family_id": str(family_id), "role": membership.role},
        )
    return membership


async def is_family_admin(db: AsyncSession, user: User, family_id: Optional[uuid.UUID]) -> bool:
    if family_id is None:
        return False
    membership = await get_membership(db, user.id, family_id)
    return membership is not None and membership.role == FamilyRole.ADMIN


async def require_member_or_superadmin(
    db: AsyncSession, user: User, family_id: uuid.UUID
) -> Optional[FamilyMembership]:
    """Super admins may read any family; returns None for them when not a member."""
    membership = await get_membership(db, user.id, family_id)
    if membership is None and not user.is_superadmin:
        logger.warning("User %s is not a member of family %s", user.id, family_id)
        raise UnauthorizedError(
            message="You are not a member of this family",
            context={"family_id": str(family_id)},
        )
    return membership
