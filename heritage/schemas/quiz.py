"""
Heritage Numérique Backend — Quiz Schemas
==========================================

What:  Quiz, question, proposition and result schemas.

Answer Visibility:
    Propositions are returned in two shapes. PropositionResponse (with
    is_correct) goes back only to the author who just created it.
    PropositionPublic (without is_correct) is what players see.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from heritage.models.enums import QuestionType, QuizDifficulty
from heritage.schemas.user import UserSummary


class QuizCreateRequest(BaseModel):
    family_id: uuid.UUID
    content_id: Optional[uuid.UUID] = None
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    difficulty: QuizDifficulty = QuizDifficulty.MEDIUM
    time_limit: Optional[int] = Field(default=None, ge=1, description="Seconds")


class PublicQuizCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    difficulty: QuizDifficulty = QuizDifficulty.MEDIUM
    time_limit: Optional[int] = Field(default=None, ge=1)


class QuizResponse(BaseModel):
    id: uuid.UUID
    family_id: Optional[uuid.UUID] = None
    content_id: Optional[uuid.UUID] = None
    creator_id: uuid.UUID
    title: str
    description: Optional[str] = None
    difficulty: str
    time_limit: Optional[int] = None
    active: bool
    created_at: datetime
    question_count: int = 0

    model_config = {"from_attributes": True}


class PropositionCreateRequest(BaseModel):
    text: str = Field(min_length=1)
    is_correct: bool = False
    order: int = Field(default=0, ge=0)


class PropositionResponse(BaseModel):
    id: uuid.UUID
    question_id: uuid.UUID
    text: str
    is_correct: bool
    order: int

    model_config = {"from_attributes": True}


class PropositionPublic(BaseModel):
    id: uuid.UUID
    text: str
    order: int

    model_config = {"from_attributes": True}


class QuestionCreateRequest(BaseModel):
    text: str = Field(min_length=1)
    question_type: QuestionType = QuestionType.MCQ
    order: int = Field(default=0, ge=0)
    points: int = Field(default=1, ge=1, le=100)
    propositions: List[PropositionCreateRequest] = Field(default_factory=list)


class QuestionCreatedResponse(BaseModel):
    id: uuid.UUID
    quiz_id: uuid.UUID
    text: str
    question_type: str
    order: int
    points: int
    propositions: List[PropositionResponse] = Field(default_factory=list)


class QuestionResponse(BaseModel):
    id: uuid.UUID
    quiz_id: uuid.UUID
    text: str
    question_type: str
    order: int
    points: int
    propositions: List[PropositionPublic] = Field(default_factory=list)


class QuizDetailResponse(QuizResponse):
    questions: List[QuestionResponse] = Field(default_factory=list)


class AnswerSubmission(BaseModel):
    """
    answers maps question id → chosen proposition id. Unanswered questions
    simply score zero.
    """
    answers: Dict[uuid.UUID, uuid.UUID] = Field(default_factory=dict)
    elapsed_time: Optional[int] = Field(default=None, ge=0, description="Seconds")


class QuizResultResponse(BaseModel):
    id: uuid.UUID
    quiz_id: uuid.UUID
    user_id: uuid.UUID
    score: int
    max_score: int
    elapsed_time: Optional[int] = None
    taken_at: datetime
    user: Optional[UserSummary] = None
