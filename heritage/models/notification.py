"""
Heritage Numérique Backend — Notification Model
================================================

What:  ORM model for `notifications`. Every notification is persisted
       regardless of channel; EMAIL and SMS are additionally dispatched
       (currently logged) by NotificationService.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from heritage.database import Base, utcnow
from heritage.models.enums import NotificationChannel


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    channel: Mapped[str] = mapped_column(
        String(10), nullable=False, default=NotificationChannel.IN_APP.value
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # "metadata" is reserved on declarative classes
    extra: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("idx_notifications_recipient_read", "recipient_id", "read"),
    )
