"""
Heritage Numérique Backend — Notification Service
==================================================

What:  Creates, lists and marks notifications; helpers for the four
       business events (invitation, acceptance, publication, new quiz).
How:   Every notification is persisted first, then dispatched by channel:
           IN_APP  stored only, read through /notifications
           EMAIL   logged; invitation codes are mailed by EmailService
           SMS     logged (no outbound SMS transport is configured)
Who:   Called by InvitationService, ContentService, QuizService and the
       notification routes.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.config import settings
from heritage.database import utcnow
from heritage.exceptions import NotFoundError
from heritage.models.enums import NotificationChannel, NotificationType
from heritage.models.notification import Notification
from heritage.models.user import User

logger = logging.getLogger(__name__)


class NotificationService:

    async def send(
        self,
        db: AsyncSession,
        recipient_id: uuid.UUID,
        type: NotificationType,
        title: str,
        message: str,
        channel: NotificationChannel = NotificationChannel.IN_APP,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            recipient_id=recipient_id,
            type=type.value,
            title=title,
            message=message,
            channel=channel.value,
            read=False,
            sent_at=utcnow(),
            link=link,
            extra=metadata,
        )
        db.add(notification)
        await db.flush()

        self._dispatch(notification)
        return notification

    def _dispatch(self, notification: Notification) -> None:
        if notification.channel == NotificationChannel.EMAIL:
            logger.info(
                "EMAIL notification to %s: %s",
                notification.recipient_id,
                notification.title,
            )
        elif notification.channel == NotificationChannel.SMS:
            logger.info(
                "SMS notification to %s: %s",
                notification.recipient_id,
                notification.title,
            )
        else:
            logger.debug("In-app notification %s stored", notification.id)

    # ── Business event helpers ────────────────────────────────────────────

    async def notify_invitation(
        self,
        db: AsyncSession,
        recipient: User,
        family_name: str,
        sender_name: str,
        code: str,
        invitation_id: uuid.UUID,
    ) -> Notification:
        return await self.send(
            db,
            recipient_id=recipient.id,
            type=NotificationType.INVITATION,
            title=f"Invitation to join {family_name}",
            message=(
                f"{sender_name} invited you to join the family {family_name}. "
                f"Your invitation code is {code}."
            ),
            link=f"{settings.api_prefix}/invitations/{invitation_id}/accept",
            metadata={"invitation_id": str(invitation_id), "code": code},
        )

    async def notify_invitation_accepted(
        self,
        db: AsyncSession,
        sender_id: uuid.UUID,
        member_name: str,
        family_name: str,
    ) -> Notification:
        return await self.send(
            db,
            recipient_id=sender_id,
            type=NotificationType.ACCEPTANCE,
            title="Invitation accepted",
            message=f"{member_name} accepted your invitation and joined {family_name}.",
        )

    async def notify_content_published(
        self,
        db: AsyncSession,
        recipient_id: uuid.UUID,
        content_id: uuid.UUID,
        content_title: str,
    ) -> Notification:
        return await self.send(
            db,
            recipient_id=recipient_id,
            type=NotificationType.CONTENT_PUBLISHED,
            title="Content published",
            message=f'"{content_title}" has been approved and is now public.',
            link=f"{settings.api_prefix}/contents/{content_id}",
            metadata={"content_id": str(content_id)},
        )

    async def notify_quiz_created(
        self,
        db: AsyncSession,
        recipient_id: uuid.UUID,
        quiz_id: uuid.UUID,
        quiz_title: str,
        family_name: str,
    ) -> Notification:
        return await self.send(
            db,
            recipient_id=recipient_id,
            type=NotificationType.QUIZ_CREATED,
            title="New family quiz",
            message=f'A new quiz "{quiz_title}" is available in {family_name}.',
            link=f"{settings.api_prefix}/quizzes/{quiz_id}",
            metadata={"quiz_id": str(quiz_id)},
        )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_for_user(
        self, db: AsyncSession, user_id: uuid.UUID, unread_only: bool = False
    ) -> List[Notification]:
        query = select(Notification).where(Notification.recipient_id == user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        result = await db.execute(query.order_by(Notification.sent_at.desc()))
        return list(result.scalars().all())

    async def count_unread(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == user_id,
                Notification.read.is_(False),
            )
        )
        return result.scalar() or 0

    async def mark_as_read(
        self, db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID
    ) -> Notification:
        """
        Someone else's notification answers 404, the same as a missing one,
        so ids cannot be probed.
        """
        notification = await db.get(Notification, notification_id)
        if notification is None or notification.recipient_id != user_id:
            raise NotFoundError(resource="notification", resource_id=str(notification_id))

        if not notification.read:
            notification.read = True
            notification.read_at = utcnow()
            await db.flush()
        return notification


# ── Singleton Instance ────────────────────────────────────────────────────
notification_service = NotificationService()
