"""
User profile schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    last_name: str
    first_name: str
    phone: Optional[str] = None
    ethnicity: Optional[str] = None
    role: str
    active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Compact user reference embedded in results and listings."""
    id: uuid.UUID
    last_name: str
    first_name: str

    model_config = {"from_attributes": True}


class UserUpdateRequest(BaseModel):
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    ethnicity: Optional[str] = Field(default=None, max_length=100)
