"""
Heritage Numérique Backend — Content and Publication Request Models
====================================================================

What:  ORM models for `contents` and `publication_requests`.

Content Lifecycle:
    DRAFT (private to the family)
      → publication request by the family ADMIN (PENDING)
      → approved by the platform super admin → PUBLISHED (public catalogue)
      → or rejected (content stays DRAFT, request REJECTED with a comment)
    ARCHIVED hides a content from the family's working set.

    One table holds every content type; `content_type` discriminates and the
    type-specific columns (proverb_*, riddle_*) are NULL for other types.
    family_id is NULL for platform content published directly by the
    super admin.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from heritage.database import Base, utcnow
from heritage.models.enums import ContentStatus, PublicationStatus


class Content(Base):
    __tablename__ = "contents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    family_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("families.id", ondelete="CASCADE"), nullable=True, index=True
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # ── Media ─────────────────────────────────────────────────────────────
    # Public URLs under settings.uploads_url_prefix
    file_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # seconds

    # ── Context ───────────────────────────────────────────────────────────
    event_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ContentStatus.DRAFT.value
    )

    # ── Proverb ───────────────────────────────────────────────────────────
    proverb_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    proverb_meaning: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    proverb_origin: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Riddle ────────────────────────────────────────────────────────────
    riddle_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    riddle_answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_contents_status_type", "status", "content_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<Content(id={self.id}, type='{self.content_type}', status='{self.status}', "
            f"title='{self.title}')>"
        )


class PublicationRequest(Base):
    __tablename__ = "publication_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    content_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    reviewer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PublicationStatus.PENDING.value
    )
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
