"""
Heritage Numérique Backend — Invitation Model
==============================================

What:  ORM model for `invitations`: code-based, time-limited, single-use
       entry tickets into a family.

Status machine:
    PENDING ──accept / register-with-code / login-with-code──▶ ACCEPTED
    PENDING ──decline──▶ DECLINED
    PENDING ──expires_at passed──▶ EXPIRED
    Only PENDING invitations can ever be redeemed; every transition is final.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from heritage.database import Base, utcnow
from heritage.models.enums import InvitationStatus


class Invitation(Base):
    __tablename__ = "invitations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    # Linked once the invitee has an account
    invited_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    invitee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    invitee_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    invitee_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    kinship: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvitationStatus.PENDING.value
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Invitation(code='{self.code}', family_id={self.family_id}, status='{self.status}')>"
