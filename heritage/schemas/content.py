"""
Heritage Numérique Backend — Content Schemas
=============================================

What:  Categories, contents, publication requests, the public catalogue
       view and translations.

Public Catalogue Shape:
    PublicContentResponse flattens the author (name, email, family role,
    kinship) and family name onto each item, so the anonymous catalogue
    needs no follow-up lookups. Missing role/kinship become "UNKNOWN" /
    "Not specified".
"""

import uuid
from datetime import date, datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from heritage.models.enums import ContentStatus, ContentType
from heritage.schemas.quiz import QuizDetailResponse

UNKNOWN_ROLE = "UNKNOWN"
UNSPECIFIED_KINSHIP = "Not specified"


# ══════════════════════════════════════════════════════════════════════════
# Categories
# ══════════════════════════════════════════════════════════════════════════


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    icon: Optional[str] = Field(default=None, max_length=100)


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Contents
# ══════════════════════════════════════════════════════════════════════════


class _ContentFields(BaseModel):
    category_id: uuid.UUID
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    content_type: ContentType
    file_url: Optional[str] = Field(default=None, max_length=500)
    photo_url: Optional[str] = Field(default=None, max_length=500)
    duration: Optional[int] = Field(default=None, ge=0)
    event_date: Optional[date] = None
    location: Optional[str] = Field(default=None, max_length=255)
    region: Optional[str] = Field(default=None, max_length=100)
    proverb_text: Optional[str] = None
    proverb_meaning: Optional[str] = None
    proverb_origin: Optional[str] = Field(default=None, max_length=255)
    riddle_text: Optional[str] = None
    riddle_answer: Optional[str] = None


class ContentCreateRequest(_ContentFields):
    family_id: uuid.UUID
    status: ContentStatus = ContentStatus.DRAFT


class PublicContentCreateRequest(_ContentFields):
    """Platform content created by the super admin; always PUBLISHED."""


class ContentUpdateRequest(BaseModel):
    """Partial edit: only the fields present in the body are changed."""
    category_id: Optional[uuid.UUID] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    file_url: Optional[str] = Field(default=None, max_length=500)
    photo_url: Optional[str] = Field(default=None, max_length=500)
    duration: Optional[int] = Field(default=None, ge=0)
    event_date: Optional[date] = None
    location: Optional[str] = Field(default=None, max_length=255)
    region: Optional[str] = Field(default=None, max_length=100)
    proverb_text: Optional[str] = None
    proverb_meaning: Optional[str] = None
    proverb_origin: Optional[str] = Field(default=None, max_length=255)
    riddle_text: Optional[str] = None
    riddle_answer: Optional[str] = None


class ContentResponse(BaseModel):
    id: uuid.UUID
    family_id: Optional[uuid.UUID] = None
    author_id: uuid.UUID
    category_id: uuid.UUID
    title: str
    description: Optional[str] = None
    content_type: str
    file_url: Optional[str] = None
    photo_url: Optional[str] = None
    file_size: Optional[int] = None
    duration: Optional[int] = None
    event_date: Optional[date] = None
    location: Optional[str] = None
    region: Optional[str] = None
    status: str
    proverb_text: Optional[str] = None
    proverb_meaning: Optional[str] = None
    proverb_origin: Optional[str] = None
    riddle_text: Optional[str] = None
    riddle_answer: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PublicContentResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    content_type: str
    file_url: Optional[str] = None
    photo_url: Optional[str] = None
    duration: Optional[int] = None
    event_date: Optional[date] = None
    location: Optional[str] = None
    region: Optional[str] = None
    proverb_text: Optional[str] = None
    proverb_meaning: Optional[str] = None
    proverb_origin: Optional[str] = None
    riddle_text: Optional[str] = None
    riddle_answer: Optional[str] = None
    category_name: Optional[str] = None
    family_id: Optional[uuid.UUID] = None
    family_name: Optional[str] = None
    author_name: str
    author_email: str
    author_role: str = UNKNOWN_ROLE
    author_kinship: str = UNSPECIFIED_KINSHIP
    created_at: datetime
    quiz: Optional[QuizDetailResponse] = None


# ══════════════════════════════════════════════════════════════════════════
# Publication Workflow
# ══════════════════════════════════════════════════════════════════════════


class PublicationRequestResponse(BaseModel):
    id: uuid.UUID
    content_id: uuid.UUID
    content_title: Optional[str] = None
    requester_id: uuid.UUID
    reviewer_id: Optional[uuid.UUID] = None
    status: str
    comment: Optional[str] = None
    requested_at: datetime
    processed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RejectRequest(BaseModel):
    comment: str = Field(min_length=1, max_length=2000)


# ══════════════════════════════════════════════════════════════════════════
# Translations
# ══════════════════════════════════════════════════════════════════════════


class ContentTranslationResponse(BaseModel):
    """Title and description keyed by language code (fr, en, bm)."""
    content_id: uuid.UUID
    title: Dict[str, str] = Field(default_factory=dict)
    description: Dict[str, str] = Field(default_factory=dict)
