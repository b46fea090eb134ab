"""
Heritage Numérique Backend — Family Schemas
============================================

What:  Families, memberships, the family dashboard and per-member
       contribution counters.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from heritage.models.enums import FamilyRole


class FamilyCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    ethnicity: Optional[str] = Field(default=None, max_length=100)
    region: Optional[str] = Field(default=None, max_length=100)


class FamilyUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    ethnicity: Optional[str] = Field(default=None, max_length=100)
    region: Optional[str] = Field(default=None, max_length=100)


class FamilyResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    ethnicity: Optional[str] = None
    region: Optional[str] = None
    creator_id: uuid.UUID
    creator_name: Optional[str] = None
    member_count: int = 0
    created_at: datetime

    model_config = {"from_attributes": True}


class MembershipResponse(BaseModel):
    """A membership flattened with the member's user fields."""
    id: uuid.UUID
    family_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    kinship: Optional[str] = None
    joined_at: datetime
    email: str
    last_name: str
    first_name: str


class AddMemberRequest(BaseModel):
    email: EmailStr
    role: FamilyRole = FamilyRole.READER
    kinship: Optional[str] = Field(default=None, max_length=100)


class RoleUpdateRequest(BaseModel):
    role: FamilyRole


class FamilyDashboardResponse(BaseModel):
    family_id: uuid.UUID
    family_name: str
    member_count: int
    pending_invitations: int
    private_contents: int
    public_contents: int
    active_quizzes: int
    unread_notifications: int
    tree_count: int


class MemberContribution(BaseModel):
    user_id: uuid.UUID
    last_name: str
    first_name: str
    role: str
    tales: int = 0
    crafts: int = 0
    proverbs: int = 0
    riddles: int = 0
    total_contents: int = 0
    quizzes_created: int = 0
