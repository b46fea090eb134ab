"""
Heritage Numérique Backend — Family Service
============================================

What:  Family lifecycle, membership management, the family dashboard and
       per-member contribution counters.
How:   Every operation first resolves the caller's membership through
       heritage.services.permissions; role changes and removals are ADMIN
       only and an admin can never demote or remove themselves, so a
       family always keeps at least its acting admin.
"""

import logging
import uuid
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import utcnow
from heritage.exceptions import BadRequestError, NotFoundError
from heritage.models.content import Content
from heritage.models.enums import ContentStatus, ContentType, FamilyRole, InvitationStatus
from heritage.models.family import Family, FamilyMembership
from heritage.models.genealogy import GenealogyTree
from heritage.models.invitation import Invitation
from heritage.models.quiz import Quiz
from heritage.models.user import User
from heritage.schemas.family import (
    AddMemberRequest,
    FamilyCreateRequest,
    FamilyDashboardResponse,
    FamilyResponse,
    FamilyUpdateRequest,
    MemberContribution,
    MembershipResponse,
)
from heritage.services.notification_service import notification_service
from heritage.services.permissions import (
    require_family_admin,
    require_member,
    require_member_or_superadmin,
)

logger = logging.getLogger(__name__)


def membership_response(membership: FamilyMembership, user: User) -> MembershipResponse:
    return MembershipResponse(
        id=membership.id,
        family_id=membership.family_id,
        user_id=user.id,
        role=membership.role,
        kinship=membership.kinship,
        joined_at=membership.joined_at,
        email=user.email,
        last_name=user.last_name,
        first_name=user.first_name,
    )


async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return result.scalar() or 0


class FamilyService:

    async def get_family(self, db: AsyncSession, family_id: uuid.UUID) -> Family:
        family = await db.get(Family, family_id)
        if family is None:
            raise NotFoundError(resource="family", resource_id=str(family_id))
        return family

    async def _to_response(self, db: AsyncSession, family: Family) -> FamilyResponse:
        member_count = await _count(
            db,
            select(func.count(FamilyMembership.id)).where(FamilyMembership.family_id == family.id),
        )
        creator = await db.get(User, family.creator_id)
        response = FamilyResponse.model_validate(family)
        response.member_count = member_count
        response.creator_name = creator.full_name if creator else None
        return response

    # ── Families ──────────────────────────────────────────────────────────

    async def create_family(
        self, db: AsyncSession, creator: User, request: FamilyCreateRequest
    ) -> FamilyResponse:
        now = utcnow()
        family = Family(
            name=request.name,
            description=request.description,
            ethnicity=request.ethnicity,
            region=request.region,
            creator_id=creator.id,
            created_at=now,
            updated_at=now,
        )
        db.add(family)
        await db.flush()

        db.add(
            FamilyMembership(
                user_id=creator.id,
                family_id=family.id,
                role=FamilyRole.ADMIN.value,
                kinship="Founder",
                joined_at=now,
            )
        )
        await db.flush()
        logger.info("Family created: %s by user %s", family.id, creator.id)

        response = FamilyResponse.model_validate(family)
        response.member_count = 1
        response.creator_name = creator.full_name
        return response

    async def list_user_families(self, db: AsyncSession, user: User) -> List[FamilyResponse]:
        result = await db.execute(
            select(Family)
            .join(FamilyMembership, FamilyMembership.family_id == Family.id)
            .where(FamilyMembership.user_id == user.id)
            .order_by(Family.created_at.desc())
        )
        return [await self._to_response(db, family) for family in result.scalars().all()]

    async def list_all_families(self, db: AsyncSession) -> List[FamilyResponse]:
        """Every family on the platform, newest first (super admin view)."""
        result = await db.execute(select(Family).order_by(Family.created_at.desc()))
        return [await self._to_response(db, family) for family in result.scalars().all()]

    async def get_family_for_user(
        self, db: AsyncSession, user: User, family_id: uuid.UUID
    ) -> FamilyResponse:
        family = await self.get_family(db, family_id)
        await require_member_or_superadmin(db, user, family_id)
        return await self._to_response(db, family)

    async def update_family(
        self, db: AsyncSession, user: User, family_id: uuid.UUID, request: FamilyUpdateRequest
    ) -> FamilyResponse:
        family = await self.get_family(db, family_id)
        await require_family_admin(db, user, family_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(family, field, value)
        await db.flush()
        return await self._to_response(db, family)

    # ── Members ───────────────────────────────────────────────────────────

    async def list_members(
        self, db: AsyncSession, user: User, family_id: uuid.UUID
    ) -> List[MembershipResponse]:
        await self.get_family(db, family_id)
        await require_member(db, user, family_id)
        result = await db.execute(
            select(FamilyMembership, User)
            .join(User, User.id == FamilyMembership.user_id)
            .where(FamilyMembership.family_id == family_id)
            .order_by(FamilyMembership.joined_at)
        )
        return [membership_response(m, u) for m, u in result.all()]

    async def _get_membership_with_user(self, db: AsyncSession, membership_id: uuid.UUID):
        result = await db.execute(
            select(FamilyMembership, User)
            .join(User, User.id == FamilyMembership.user_id)
            .where(FamilyMembership.id == membership_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError(resource="membership", resource_id=str(membership_id))
        return row

    async def get_member(
        self, db: AsyncSession, user: User, membership_id: uuid.UUID
    ) -> MembershipResponse:
        membership, member = await self._get_membership_with_user(db, membership_id)
        await require_member(db, user, membership.family_id)
        return membership_response(membership, member)

    async def add_member(
        self, db: AsyncSession, user: User, family_id: uuid.UUID, request: AddMemberRequest
    ) -> MembershipResponse:
        """Manual addition of an already registered account by the family admin."""
        await self.get_family(db, family_id)
        await require_family_admin(db, user, family_id)

        result = await db.execute(select(User).where(User.email == request.email.lower()))
        new_member = result.scalar_one_or_none()
        if new_member is None:
            raise NotFoundError(resource="user", resource_id=request.email)

        existing = await db.execute(
            select(FamilyMembership.id).where(
                FamilyMembership.user_id == new_member.id,
                FamilyMembership.family_id == family_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise BadRequestError(message="This user is already a member of the family")

        membership = FamilyMembership(
            user_id=new_member.id,
            family_id=family_id,
            role=request.role.value,
            kinship=request.kinship,
            joined_at=utcnow(),
        )
        db.add(membership)
        await db.flush()
        logger.info("User %s added to family %s as %s", new_member.id, family_id, membership.role)
        return membership_response(membership, new_member)

    async def _target_membership(
        self, db: AsyncSession, family_id: uuid.UUID, membership_id: uuid.UUID
    ) -> FamilyMembership:
        membership = await db.get(FamilyMembership, membership_id)
        if membership is None or membership.family_id != family_id:
            raise NotFoundError(resource="membership", resource_id=str(membership_id))
        return membership

    async def change_role(
        self,
        db: AsyncSession,
        user: User,
        family_id: uuid.UUID,
        membership_id: uuid.UUID,
        new_role: FamilyRole,
    ) -> MembershipResponse:
        await require_family_admin(db, user, family_id)
        membership = await self._target_membership(db, family_id, membership_id)
        if membership.user_id == user.id:
            raise BadRequestError(message="You cannot change your own role")

        old_role = membership.role
        membership.role = new_role.value
        await db.flush()
        logger.info(
            "Membership %s role changed %s → %s by user %s",
            membership.id,
            old_role,
            membership.role,
            user.id,
        )
        member = await db.get(User, membership.user_id)
        return membership_response(membership, member)

    async def remove_member(
        self, db: AsyncSession, user: User, family_id: uuid.UUID, membership_id: uuid.UUID
    ) -> None:
        await require_family_admin(db, user, family_id)
        membership = await self._target_membership(db, family_id, membership_id)
        if membership.user_id == user.id:
            raise BadRequestError(message="You cannot remove yourself from the family")
        await db.delete(membership)
        await db.flush()
        logger.info("Membership %s removed from family %s by user %s", membership_id, family_id, user.id)

    # ── Dashboard ─────────────────────────────────────────────────────────

    async def get_dashboard(
        self, db: AsyncSession, user: User, family_id: uuid.UUID
    ) -> FamilyDashboardResponse:
        family = await self.get_family(db, family_id)
        await require_member(db, user, family_id)

        return FamilyDashboardResponse(
            family_id=family.id,
            family_name=family.name,
            member_count=await _count(
                db,
                select(func.count(FamilyMembership.id)).where(FamilyMembership.family_id == family_id),
            ),
            pending_invitations=await _count(
                db,
                select(func.count(Invitation.id)).where(
                    Invitation.family_id == family_id,
                    Invitation.status == InvitationStatus.PENDING.value,
                    Invitation.expires_at > utcnow(),
                ),
            ),
            private_contents=await _count(
                db,
                select(func.count(Content.id)).where(
                    Content.family_id == family_id,
                    Content.status != ContentStatus.PUBLISHED.value,
                ),
            ),
            public_contents=await _count(
                db,
                select(func.count(Content.id)).where(
                    Content.family_id == family_id,
                    Content.status == ContentStatus.PUBLISHED.value,
                ),
            ),
            active_quizzes=await _count(
                db,
                select(func.count(Quiz.id)).where(Quiz.family_id == family_id, Quiz.active.is_(True)),
            ),
            unread_notifications=await notification_service.count_unread(db, user.id),
            tree_count=await _count(
                db,
                select(func.count(GenealogyTree.id)).where(GenealogyTree.family_id == family_id),
            ),
        )

    async def get_contributions(
        self, db: AsyncSession, user: User, family_id: uuid.UUID
    ) -> List[MemberContribution]:
        await self.get_family(db, family_id)
        await require_member(db, user, family_id)

        members = await db.execute(
            select(FamilyMembership, User)
            .join(User, User.id == FamilyMembership.user_id)
            .where(FamilyMembership.family_id == family_id)
            .order_by(FamilyMembership.joined_at)
        )

        content_counts = await db.execute(
            select(Content.author_id, Content.content_type, func.count(Content.id))
            .where(Content.family_id == family_id)
            .group_by(Content.author_id, Content.content_type)
        )
        by_author: Dict[uuid.UUID, Dict[str, int]] = {}
        for author_id, content_type, count in content_counts.all():
            by_author.setdefault(author_id, {})[content_type] = count

        quiz_counts = await db.execute(
            select(Quiz.creator_id, func.count(Quiz.id))
            .where(Quiz.family_id == family_id)
            .group_by(Quiz.creator_id)
        )
        quizzes_by_creator = dict(quiz_counts.all())

        contributions = []
        for membership, member in members.all():
            counts = by_author.get(member.id, {})
            contributions.append(
                MemberContribution(
                    user_id=member.id,
                    last_name=member.last_name,
                    first_name=member.first_name,
                    role=membership.role,
                    tales=counts.get(ContentType.TALE.value, 0),
                    crafts=counts.get(ContentType.CRAFT.value, 0),
                    proverbs=counts.get(ContentType.PROVERB.value, 0),
                    riddles=counts.get(ContentType.RIDDLE.value, 0),
                    total_contents=sum(counts.values()),
                    quizzes_created=quizzes_by_creator.get(member.id, 0),
                )
            )
        return contributions


# ── Singleton Instance ────────────────────────────────────────────────────
family_service = FamilyService()
