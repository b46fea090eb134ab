"""
Personal dashboard and platform-wide statistics. The family dashboard lives
in FamilyService.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import utcnow
from heritage.models.content import Content
from heritage.models.enums import ContentStatus, InvitationStatus
from heritage.models.family import Category, Family, FamilyMembership
from heritage.models.invitation import Invitation
from heritage.models.notification import Notification
from heritage.models.quiz import Quiz, QuizResult
from heritage.models.user import User
from heritage.schemas.dashboard import PlatformStatisticsResponse, UserDashboardResponse
from heritage.services.notification_service import notification_service

logger = logging.getLogger(__name__)


async def _scalar(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return result.scalar() or 0


class DashboardService:

    async def user_dashboard(self, db: AsyncSession, user: User) -> UserDashboardResponse:
        return UserDashboardResponse(
            user_id=user.id,
            family_count=await _scalar(
                db, select(func.count(FamilyMembership.id)).where(FamilyMembership.user_id == user.id)
            ),
            contents_authored=await _scalar(
                db, select(func.count(Content.id)).where(Content.author_id == user.id)
            ),
            quiz_results=await _scalar(
                db, select(func.count(QuizResult.id)).where(QuizResult.user_id == user.id)
            ),
            unread_notifications=await notification_service.count_unread(db, user.id),
            pending_invitations=await _scalar(
                db,
                select(func.count(Invitation.id)).where(
                    Invitation.invitee_email == user.email.lower(),
                    Invitation.status == InvitationStatus.PENDING.value,
                    Invitation.expires_at > utcnow(),
                ),
            ),
        )

    async def platform_statistics(self, db: AsyncSession) -> PlatformStatisticsResponse:
        return PlatformStatisticsResponse(
            users=await _scalar(db, select(func.count(User.id))),
            families=await _scalar(db, select(func.count(Family.id))),
            contents=await _scalar(db, select(func.count(Content.id))),
            published_contents=await _scalar(
                db,
                select(func.count(Content.id)).where(Content.status == ContentStatus.PUBLISHED.value),
            ),
            quizzes=await _scalar(db, select(func.count(Quiz.id))),
            categories=await _scalar(db, select(func.count(Category.id))),
            pending_invitations=await _scalar(
                db,
                select(func.count(Invitation.id)).where(
                    Invitation.status == InvitationStatus.PENDING.value,
                    Invitation.expires_at > utcnow(),
                ),
            ),
            notifications=await _scalar(db, select(func.count(Notification.id))),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
dashboard_service = DashboardService()
