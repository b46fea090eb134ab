"""
Heritage Numérique Backend — Authentication Schemas
====================================================

What:  Request bodies for register / login / login-with-code and the
       token response returned by all three.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    """
    What:  Self-registration body.
    When an `invitation_code` is present the new account joins the inviting
    family as a READER in the same transaction.
    """
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    last_name: str = Field(min_length=1, max_length=100)
    first_name: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=30)
    ethnicity: Optional[str] = Field(default=None, max_length=100)
    invitation_code: Optional[str] = Field(default=None, max_length=32)

    @field_validator("last_name", "first_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("invitation_code")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class LoginWithCodeRequest(LoginRequest):
    code: str = Field(min_length=1, max_length=32)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user_id: uuid.UUID
    email: str
    last_name: str
    first_name: str
    role: str
