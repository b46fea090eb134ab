"""
Heritage Numérique Backend — Genealogy Models
==============================================

What:  ORM models for `genealogy_trees` and `tree_members`.

Table Design:
    - One tree per family, created lazily the first time it is viewed or a
      member is added.
    - tree_members.father_id / mother_id reference other rows of the same
      table. The hierarchy is rebuilt in memory from these flat rows.
    - linked_user_id optionally ties a tree member to a registered account.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from heritage.database import Base, utcnow


class GenealogyTree(Base):
    __tablename__ = "genealogy_trees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    family_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True, unique=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    creator_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class TreeMember(Base):
    __tablename__ = "tree_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tree_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("genealogy_trees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    gender: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)

    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    birth_place: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    death_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    death_place: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ── Parent links (self-referential) ───────────────────────────────────
    father_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tree_members.id", ondelete="SET NULL"), nullable=True, index=True
    )
    mother_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tree_members.id", ondelete="SET NULL"), nullable=True, index=True
    )

    linked_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    biography: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    relationship: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def full_name(self) -> str:
        if self.first_name:
            return f"{self.last_name} {self.first_name}"
        return self.last_name

    def __repr__(self) -> str:
        return f"<TreeMember(id={self.id}, name='{self.full_name}')>"
