"""
Heritage Numérique Backend — Invitation Service
================================================

What:  Issues invitation codes and redeems them into family memberships.
How:   Codes are drawn from A-Z0-9 with `secrets`; every redemption path
       (register with code, login with code, redeem while logged in,
       accept by id) goes through the same checks and ends in
       `_complete_redemption`, which flips the invitation to ACCEPTED.

Redemption Checks (in order):
    1. Code exists                                   else 404
    2. Status is PENDING                             else 400 "already used"
    3. expires_at is in the future                   else 400 "expired"
    4. Invitee email matches the redeeming account   else 400 / 401

Because step 2 requires PENDING and redemption sets ACCEPTED in the same
transaction, a code grants membership at most once.
"""

import logging
import secrets
import string
import uuid
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.config import settings
from heritage.database import as_utc, utcnow
from heritage.exceptions import (
    BadRequestError,
    DatabaseError,
    NotFoundError,
    UnauthorizedError,
)
from heritage.models.enums import FamilyRole, InvitationStatus, NotificationType
from heritage.models.family import Family, FamilyMembership
from heritage.models.invitation import Invitation
from heritage.models.user import User
from heritage.schemas.invitation import InvitationCreateRequest, InvitationResponse
from heritage.services.email_service import email_service
from heritage.services.notification_service import notification_service
from heritage.services.permissions import get_membership, require_family_admin

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10


class InvitationService:

    # ── Codes ─────────────────────────────────────────────────────────────

    def generate_code(self, length: Optional[int] = None) -> str:
        length = length or settings.invitation_code_length
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))

    async def _unique_code(self, db: AsyncSession) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = self.generate_code()
            existing = await db.execute(select(Invitation.id).where(Invitation.code == code))
            if existing.scalar_one_or_none() is None:
                return code
        logger.error("Could not generate a unique invitation code in %d attempts", MAX_CODE_ATTEMPTS)
        raise DatabaseError(message="Could not generate a unique invitation code. Please try again.")

    # ── Creation ──────────────────────────────────────────────────────────

    async def create_invitation(
        self, db: AsyncSession, sender: User, request: InvitationCreateRequest
    ) -> InvitationResponse:
        """
        Only the family ADMIN can invite. The code is mailed to the invitee
        when SMTP is configured; a registered invitee also gets an in-app
        notification, otherwise the sender keeps a copy of the code.
        """
        await require_family_admin(db, sender, request.family_id)
        family = await db.get(Family, request.family_id)
        if family is None:
            raise NotFoundError(resource="family", resource_id=str(request.family_id))

        invitee_email = request.invitee_email.lower()
        invitee = (
            await db.execute(select(User).where(User.email == invitee_email))
        ).scalar_one_or_none()

        if invitee is not None and await get_membership(db, invitee.id, family.id) is not None:
            raise BadRequestError(message="This person is already a member of the family")

        invitation = Invitation(
            family_id=family.id,
            sender_id=sender.id,
            invited_user_id=invitee.id if invitee else None,
            invitee_name=request.invitee_name,
            invitee_email=invitee_email,
            invitee_phone=request.invitee_phone,
            kinship=request.kinship,
            code=await self._unique_code(db),
            status=InvitationStatus.PENDING.value,
            expires_at=utcnow() + timedelta(hours=settings.invitation_expiry_hours),
            created_at=utcnow(),
        )
        db.add(invitation)
        await db.flush()

        if invitee is not None:
            await notification_service.notify_invitation(
                db,
                recipient=invitee,
                family_name=family.name,
                sender_name=sender.full_name,
                code=invitation.code,
                invitation_id=invitation.id,
            )
        else:
            await notification_service.send(
                db,
                recipient_id=sender.id,
                type=NotificationType.INVITATION,
                title=f"Invitation sent to {invitee_email}",
                message=(
                    f"{request.invitee_name} was invited to {family.name} "
                    f"with code {invitation.code}."
                ),
                metadata={"invitation_id": str(invitation.id), "invitee_email": invitee_email},
            )

        await email_service.send_invitation(
            to_email=invitee_email,
            invitee_name=request.invitee_name,
            family_name=family.name,
            sender_name=sender.full_name,
            code=invitation.code,
            expires_at=invitation.expires_at,
        )

        logger.info(
            "Invitation %s created for family %s by %s", invitation.id, family.id, sender.id
        )
        return self._to_response(invitation, family_name=family.name, sender_name=sender.full_name)

    # ── Listings ──────────────────────────────────────────────────────────

    async def list_for_family(
        self, db: AsyncSession, user: User, family_id: uuid.UUID
    ) -> List[InvitationResponse]:
        await require_family_admin(db, user, family_id)
        result = await db.execute(
            select(Invitation, Family.name, User)
            .join(Family, Family.id == Invitation.family_id)
            .join(User, User.id == Invitation.sender_id)
            .where(Invitation.family_id == family_id)
            .order_by(Invitation.created_at.desc())
        )
        return [
            self._to_response(inv, family_name=name, sender_name=sender.full_name)
            for inv, name, sender in result.all()
        ]

    async def list_sent(self, db: AsyncSession, user: User) -> List[InvitationResponse]:
        result = await db.execute(
            select(Invitation, Family.name)
            .join(Family, Family.id == Invitation.family_id)
            .where(Invitation.sender_id == user.id)
            .order_by(Invitation.created_at.desc())
        )
        return [
            self._to_response(inv, family_name=name, sender_name=user.full_name)
            for inv, name in result.all()
        ]

    async def list_pending_for_user(self, db: AsyncSession, user: User) -> List[InvitationResponse]:
        result = await db.execute(
            select(Invitation, Family.name, User)
            .join(Family, Family.id == Invitation.family_id)
            .join(User, User.id == Invitation.sender_id)
            .where(
                Invitation.invitee_email == user.email.lower(),
                Invitation.status == InvitationStatus.PENDING.value,
                Invitation.expires_at > utcnow(),
            )
            .order_by(Invitation.created_at.desc())
        )
        return [
            self._to_response(inv, family_name=name, sender_name=sender.full_name)
            for inv, name, sender in result.all()
        ]

    # ── Redemption ────────────────────────────────────────────────────────

    def _check_redeemable(self, invitation: Invitation) -> None:
        if invitation.status != InvitationStatus.PENDING:
            raise BadRequestError(
                message="This invitation has already been used or is no longer valid",
                context={"status": invitation.status},
            )
        if as_utc(invitation.expires_at) <= utcnow():
            raise BadRequestError(message="This invitation has expired")

    async def find_redeemable_by_code(self, db: AsyncSession, code: str, email: str) -> Invitation:
        """Checks 1-4 for a code presented together with an email."""
        result = await db.execute(select(Invitation).where(Invitation.code == code.strip().upper()))
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise NotFoundError(resource="invitation", resource_id=code)

        self._check_redeemable(invitation)
        if invitation.invitee_email.lower() != email.lower():
            raise BadRequestError(message="This invitation was issued for a different email address")
        return invitation

    async def _complete_redemption(
        self,
        db: AsyncSession,
        invitation: Invitation,
        user: User,
        notify_sender: bool = True,
    ) -> FamilyMembership:
        membership = await get_membership(db, user.id, invitation.family_id)
        if membership is None:
            membership = FamilyMembership(
                user_id=user.id,
                family_id=invitation.family_id,
                role=FamilyRole.READER.value,
                kinship=invitation.kinship,
                joined_at=utcnow(),
            )
            db.add(membership)

        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.used_at = utcnow()
        invitation.invited_user_id = user.id
        await db.flush()

        if notify_sender:
            family = await db.get(Family, invitation.family_id)
            await notification_service.notify_invitation_accepted(
                db,
                sender_id=invitation.sender_id,
                member_name=user.full_name,
                family_name=family.name if family else "",
            )

        logger.info(
            "Invitation %s redeemed by user %s into family %s",
            invitation.id,
            user.id,
            invitation.family_id,
        )
        return membership

    async def redeem_for_new_user(self, db: AsyncSession, invitation: Invitation, user: User) -> FamilyMembership:
        """Registration with a code; the invitation was validated before the user was created."""
        return await self._complete_redemption(db, invitation, user, notify_sender=True)

    async def redeem_code(self, db: AsyncSession, user: User, code: str) -> FamilyMembership:
        """Login-with-code and /invitations/redeem for an existing account."""
        invitation = await self.find_redeemable_by_code(db, code, user.email)
        if await get_membership(db, user.id, invitation.family_id) is not None:
            raise BadRequestError(message="You are already a member of this family")
        return await self._complete_redemption(db, invitation, user)

    async def accept(self, db: AsyncSession, user: User, invitation_id: uuid.UUID) -> InvitationResponse:
        invitation = await self._get_addressed_to(db, user, invitation_id)
        self._check_redeemable(invitation)
        await self._complete_redemption(db, invitation, user)
        return self._to_response(invitation)

    async def decline(self, db: AsyncSession, user: User, invitation_id: uuid.UUID) -> InvitationResponse:
        invitation = await self._get_addressed_to(db, user, invitation_id)
        if invitation.status != InvitationStatus.PENDING:
            raise BadRequestError(message="Only a pending invitation can be declined")

        membership = await get_membership(db, user.id, invitation.family_id)
        if membership is not None and membership.role != FamilyRole.ADMIN:
            await db.delete(membership)

        invitation.status = InvitationStatus.DECLINED.value
        invitation.used_at = utcnow()
        await db.flush()
        logger.info("Invitation %s declined by user %s", invitation.id, user.id)
        return self._to_response(invitation)

    async def _get_addressed_to(
        self, db: AsyncSession, user: User, invitation_id: uuid.UUID
    ) -> Invitation:
        invitation = await db.get(Invitation, invitation_id)
        if invitation is None:
            raise NotFoundError(resource="invitation", resource_id=str(invitation_id))
        if invitation.invitee_email.lower() != user.email.lower():
            raise UnauthorizedError(message="This invitation is not addressed to you")
        return invitation

    # ── Maintenance ───────────────────────────────────────────────────────

    async def expire_old_invitations(self, db: AsyncSession) -> int:
        """Mark every PENDING invitation past expires_at as EXPIRED. Returns the count."""
        result = await db.execute(
            update(Invitation)
            .where(
                Invitation.status == InvitationStatus.PENDING.value,
                Invitation.expires_at <= utcnow(),
            )
            .values(status=InvitationStatus.EXPIRED.value)
        )
        expired = result.rowcount or 0
        if expired:
            logger.info("Expired %d pending invitations", expired)
        return expired

    # ── Mapping ───────────────────────────────────────────────────────────

    @staticmethod
    def _to_response(
        invitation: Invitation,
        family_name: Optional[str] = None,
        sender_name: Optional[str] = None,
    ) -> InvitationResponse:
        response = InvitationResponse.model_validate(invitation)
        response.family_name = family_name
        response.sender_name = sender_name
        return response


# ── Singleton Instance ────────────────────────────────────────────────────
invitation_service = InvitationService()
