"""
Heritage Numérique Backend — Quiz Routes
=========================================

What:  Family and public quizzes, their questions and propositions,
       answer submission and results.

Scoring:
    score     = sum of points of the questions answered with a correct proposition
    max_score = sum of points of every question of the quiz
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.quiz import (
    AnswerSubmission,
    PropositionCreateRequest,
    PropositionResponse,
    PublicQuizCreateRequest,
    QuestionCreatedResponse,
    QuestionCreateRequest,
    QuestionResponse,
    QuizCreateRequest,
    QuizResponse,
    QuizResultResponse,
)
from heritage.security import get_current_user
from heritage.services.quiz_service import quiz_service

router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


@router.post(
    "",
    status_code=201,
    response_model=QuizResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Create a family quiz (EDITOR or ADMIN)",
)
async def create_quiz(
    request: QuizCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuizResponse:
    return await quiz_service.create_quiz(db, current_user, request)


@router.post(
    "/public/{content_id}",
    status_code=201,
    response_model=QuizResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Attach a public quiz to a published content",
)
async def create_public_quiz(
    content_id: UUID,
    request: PublicQuizCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuizResponse:
    return await quiz_service.create_public_quiz(db, current_user, content_id, request)


@router.get(
    "/public",
    response_model=List[QuizResponse],
    responses=error_responses(401),
    summary="Public quizzes attached to published contents",
)
async def list_public_quizzes(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[QuizResponse]:
    return await quiz_service.list_public_quizzes(db)


@router.get(
    "/family/{family_id}",
    response_model=List[QuizResponse],
    responses=error_responses(401),
    summary="Active quizzes of a family",
)
async def list_family_quizzes(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[QuizResponse]:
    return await quiz_service.list_family_quizzes(db, current_user, family_id)


@router.get(
    "/family/{family_id}/members/{user_id}/results",
    response_model=List[QuizResultResponse],
    responses=error_responses(401),
    summary="One member's results on the family's quizzes",
)
async def member_results(
    family_id: UUID,
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[QuizResultResponse]:
    return await quiz_service.member_results(db, current_user, family_id, user_id)


@router.post(
    "/questions/{question_id}/propositions",
    status_code=201,
    response_model=PropositionResponse,
    responses=error_responses(401, 403, 404),
    summary="Add a proposition to a question",
)
async def add_proposition(
    question_id: UUID,
    request: PropositionCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PropositionResponse:
    return await quiz_service.add_proposition(db, current_user, question_id, request)


@router.get(
    "/{quiz_id}",
    response_model=QuizResponse,
    responses=error_responses(401, 404),
)
async def get_quiz(
    quiz_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuizResponse:
    return await quiz_service.get_quiz(db, current_user, quiz_id)


@router.post(
    "/{quiz_id}/questions",
    status_code=201,
    response_model=QuestionCreatedResponse,
    responses=error_responses(401, 403, 404),
    summary="Add a question, optionally with its propositions",
)
async def add_question(
    quiz_id: UUID,
    request: QuestionCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionCreatedResponse:
    return await quiz_service.add_question(db, current_user, quiz_id, request)


@router.get(
    "/{quiz_id}/questions",
    response_model=List[QuestionResponse],
    responses=error_responses(401, 404),
    summary="Questions with propositions, answers hidden",
)
async def list_questions(
    quiz_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[QuestionResponse]:
    return await quiz_service.list_questions(db, current_user, quiz_id)


@router.post(
    "/{quiz_id}/answers",
    status_code=201,
    response_model=QuizResultResponse,
    responses=error_responses(400, 401, 404),
    summary="Submit answers and get the score",
)
async def submit_answers(
    quiz_id: UUID,
    submission: AnswerSubmission,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuizResultResponse:
    return await quiz_service.submit_answers(db, current_user, quiz_id, submission)


@router.get(
    "/{quiz_id}/results",
    response_model=List[QuizResultResponse],
    responses=error_responses(401, 404),
)
async def list_results(
    quiz_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[QuizResultResponse]:
    return await quiz_service.list_results(db, current_user, quiz_id)
