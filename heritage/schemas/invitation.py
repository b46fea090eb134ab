"""
Invitation schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class InvitationCreateRequest(BaseModel):
    family_id: uuid.UUID
    invitee_name: str = Field(min_length=1, max_length=200)
    invitee_email: EmailStr
    invitee_phone: Optional[str] = Field(default=None, max_length=30)
    kinship: Optional[str] = Field(default=None, max_length=100)


class InvitationResponse(BaseModel):
    id: uuid.UUID
    family_id: uuid.UUID
    family_name: Optional[str] = None
    sender_id: uuid.UUID
    sender_name: Optional[str] = None
    invited_user_id: Optional[uuid.UUID] = None
    invitee_name: str
    invitee_email: str
    invitee_phone: Optional[str] = None
    kinship: Optional[str] = None
    code: str
    status: str
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class RedeemRequest(BaseModel):
    code: str = Field(min_length=1, max_length=32)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()
