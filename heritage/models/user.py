"""
Heritage Numérique Backend — User Model
========================================

What:  ORM model for the `users` table: platform accounts.
How:   Emails are stored lowercased and are unique; passwords only ever as
       argon2 hashes. `role` is the platform-wide role (member or super
       admin); family-level roles live on FamilyMembership.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from heritage.database import Base, utcnow
from heritage.models.enums import UserRole


class User(Base):
    """A registered person. May belong to any number of families."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # ── Identity ──────────────────────────────────────────────────────────
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    ethnicity: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # ── Access ────────────────────────────────────────────────────────────
    role: Mapped[str] = mapped_column(String(30), nullable=False, default=UserRole.MEMBER.value)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}".strip()

    @property
    def is_superadmin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
