"""
Heritage Numérique Backend — Quiz Service
==========================================

What:  Family and public quizzes, their questions and propositions,
       answer scoring and result history.

Access Rules:
    read / answer   public quiz (family_id NULL): any authenticated user
                    family quiz: members of that family (or super admin)
    create          family quiz: ADMIN or EDITOR of the family
                    public quiz: super admin, or ADMIN of the content's family,
                    and only on a PUBLISHED content
    edit questions  super admin, the quiz creator, or the family ADMIN

Scoring:
    score     = Σ points of questions answered with a correct proposition
    max_score = Σ points of all questions of the quiz
    A proposition id that does not belong to the answered question scores 0.
"""

import logging
import uuid
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import utcnow
from heritage.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from heritage.models.content import Content
from heritage.models.enums import ContentStatus
from heritage.models.family import Family, FamilyMembership
from heritage.models.quiz import Proposition, Question, Quiz, QuizResult
from heritage.models.user import User
from heritage.schemas.quiz import (
    AnswerSubmission,
    PropositionCreateRequest,
    PropositionPublic,
    PropositionResponse,
    PublicQuizCreateRequest,
    QuestionCreatedResponse,
    QuestionCreateRequest,
    QuestionResponse,
    QuizCreateRequest,
    QuizDetailResponse,
    QuizResponse,
    QuizResultResponse,
)
from heritage.schemas.user import UserSummary
from heritage.services.notification_service import notification_service
from heritage.services.permissions import (
    is_family_admin,
    require_member,
    require_member_or_superadmin,
    require_writer,
)

logger = logging.getLogger(__name__)


class QuizService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_quiz_or_404(self, db: AsyncSession, quiz_id: uuid.UUID) -> Quiz:
        quiz = await db.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundError(resource="quiz", resource_id=str(quiz_id))
        return quiz

    async def _question_count(self, db: AsyncSession, quiz_id: uuid.UUID) -> int:
        result = await db.execute(select(func.count(Question.id)).where(Question.quiz_id == quiz_id))
        return result.scalar() or 0

    async def _to_response(self, db: AsyncSession, quiz: Quiz) -> QuizResponse:
        response = QuizResponse.model_validate(quiz)
        response.question_count = await self._question_count(db, quiz.id)
        return response

    async def _require_read_access(self, db: AsyncSession, user: User, quiz: Quiz) -> None:
        if quiz.family_id is not None:
            await require_member_or_superadmin(db, user, quiz.family_id)

    async def _require_manage_access(self, db: AsyncSession, user: User, quiz: Quiz) -> None:
        if user.is_superadmin or quiz.creator_id == user.id:
            return
        if await is_family_admin(db, user, quiz.family_id):
            return
        logger.warning("Quiz %s edit denied for user %s", quiz.id, user.id)
        raise PermissionDeniedError(
            message="Only the quiz creator, a family administrator or a platform administrator can edit this quiz"
        )

    # ── Creation ──────────────────────────────────────────────────────────

    async def create_quiz(self, db: AsyncSession, user: User, request: QuizCreateRequest) -> QuizResponse:
        await require_writer(db, user, request.family_id)
        family = await db.get(Family, request.family_id)
        if family is None:
            raise NotFoundError(resource="family", resource_id=str(request.family_id))

        if request.content_id is not None:
            content = await db.get(Content, request.content_id)
            if content is None:
                raise NotFoundError(resource="content", resource_id=str(request.content_id))
            if content.family_id != request.family_id:
                raise BadRequestError(message="The content does not belong to this family")

        quiz = Quiz(
            family_id=request.family_id,
            content_id=request.content_id,
            creator_id=user.id,
            title=request.title,
            description=request.description,
            difficulty=request.difficulty.value,
            time_limit=request.time_limit,
            active=True,
            created_at=utcnow(),
        )
        db.add(quiz)
        await db.flush()

        members = await db.execute(
            select(FamilyMembership.user_id).where(
                FamilyMembership.family_id == request.family_id,
                FamilyMembership.user_id != user.id,
            )
        )
        for member_id in members.scalars().all():
            await notification_service.notify_quiz_created(
                db,
                recipient_id=member_id,
                quiz_id=quiz.id,
                quiz_title=quiz.title,
                family_name=family.name,
            )

        logger.info("Quiz %s created in family %s by user %s", quiz.id, family.id, user.id)
        return await self._to_response(db, quiz)

    async def create_public_quiz(
        self,
        db: AsyncSession,
        user: User,
        content_id: uuid.UUID,
        request: PublicQuizCreateRequest,
    ) -> QuizResponse:
        content = await db.get(Content, content_id)
        if content is None:
            raise NotFoundError(resource="content", resource_id=str(content_id))
        if content.status != ContentStatus.PUBLISHED:
            raise BadRequestError(message="A public quiz can only be attached to a published content")
        if not user.is_superadmin and not await is_family_admin(db, user, content.family_id):
            logger.warning("Public quiz creation denied for user %s on content %s", user.id, content_id)
            raise PermissionDeniedError(
                message="Only a platform administrator or the family administrator can create this quiz"
            )

        quiz = Quiz(
            family_id=None,
            content_id=content.id,
            creator_id=user.id,
            title=request.title,
            description=request.description,
            difficulty=request.difficulty.value,
            time_limit=request.time_limit,
            active=True,
            created_at=utcnow(),
        )
        db.add(quiz)
        await db.flush()
        logger.info("Public quiz %s created for content %s", quiz.id, content.id)
        return await self._to_response(db, quiz)

    async def add_question(
        self,
        db: AsyncSession,
        user: User,
        quiz_id: uuid.UUID,
        request: QuestionCreateRequest,
    ) -> QuestionCreatedResponse:
        quiz = await self.get_quiz_or_404(db, quiz_id)
        await self._require_manage_access(db, user, quiz)

        question = Question(
            quiz_id=quiz.id,
            text=request.text,
            question_type=request.question_type.value,
            order=request.order,
            points=request.points,
        )
        db.add(question)
        await db.flush()

        propositions = []
        for item in request.propositions:
            proposition = Proposition(
                question_id=question.id,
                text=item.text,
                is_correct=item.is_correct,
                order=item.order,
            )
            db.add(proposition)
            propositions.append(proposition)
        await db.flush()

        return QuestionCreatedResponse(
            id=question.id,
            quiz_id=question.quiz_id,
            text=question.text,
            question_type=question.question_type,
            order=question.order,
            points=question.points,
            propositions=[PropositionResponse.model_validate(p) for p in propositions],
        )

    async def add_proposition(
        self,
        db: AsyncSession,
        user: User,
        question_id: uuid.UUID,
        request: PropositionCreateRequest,
    ) -> PropositionResponse:
        question = await db.get(Question, question_id)
        if question is None:
            raise NotFoundError(resource="question", resource_id=str(question_id))
        quiz = await self.get_quiz_or_404(db, question.quiz_id)
        await self._require_manage_access(db, user, quiz)

        proposition = Proposition(
            question_id=question.id,
            text=request.text,
            is_correct=request.is_correct,
            order=request.order,
        )
        db.add(proposition)
        await db.flush()
        return PropositionResponse.model_validate(proposition)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def list_family_quizzes(
        self, db: AsyncSession, user: User, family_id: uuid.UUID
    ) -> List[QuizResponse]:
        await require_member_or_superadmin(db, user, family_id)
        result = await db.execute(
            select(Quiz)
            .where(Quiz.family_id == family_id, Quiz.active.is_(True))
            .order_by(Quiz.created_at.desc())
        )
        return [await self._to_response(db, quiz) for quiz in result.scalars().all()]

    async def list_public_quizzes(self, db: AsyncSession) -> List[QuizResponse]:
        """Active public quizzes whose content is still published."""
        result = await db.execute(
            select(Quiz)
            .join(Content, Content.id == Quiz.content_id)
            .where(
                Quiz.family_id.is_(None),
                Quiz.active.is_(True),
                Content.status == ContentStatus.PUBLISHED.value,
            )
            .order_by(Quiz.created_at.desc())
        )
        return [await self._to_response(db, quiz) for quiz in result.scalars().all()]

    async def get_quiz(self, db: AsyncSession, user: User, quiz_id: uuid.UUID) -> QuizResponse:
        quiz = await self.get_quiz_or_404(db, quiz_id)
        await self._require_read_access(db, user, quiz)
        return await self._to_response(db, quiz)

    async def _load_questions(self, db: AsyncSession, quiz_id: uuid.UUID) -> List[QuestionResponse]:
        questions = (
            await db.execute(
                select(Question).where(Question.quiz_id == quiz_id).order_by(Question.order, Question.id)
            )
        ).scalars().all()
        if not questions:
            return []

        propositions = (
            await db.execute(
                select(Proposition)
                .where(Proposition.question_id.in_([q.id for q in questions]))
                .order_by(Proposition.order, Proposition.id)
            )
        ).scalars().all()
        by_question: Dict[uuid.UUID, List[PropositionPublic]] = {}
        for proposition in propositions:
            by_question.setdefault(proposition.question_id, []).append(
                PropositionPublic.model_validate(proposition)
            )

        return [
            QuestionResponse(
                id=q.id,
                quiz_id=q.quiz_id,
                text=q.text,
                question_type=q.question_type,
                order=q.order,
                points=q.points,
                propositions=by_question.get(q.id, []),
            )
            for q in questions
        ]

    async def list_questions(
        self, db: AsyncSession, user: User, quiz_id: uuid.UUID
    ) -> List[QuestionResponse]:
        quiz = await self.get_quiz_or_404(db, quiz_id)
        await self._require_read_access(db, user, quiz)
        return await self._load_questions(db, quiz.id)

    async def get_quiz_detail(self, db: AsyncSession, quiz: Quiz) -> QuizDetailResponse:
        """Quiz with questions and propositions (answers hidden). No access check."""
        questions = await self._load_questions(db, quiz.id)
        detail = QuizDetailResponse.model_validate(quiz)
        detail.questions = questions
        detail.question_count = len(questions)
        return detail

    async def find_quiz_for_content(self, db: AsyncSession, content_id: uuid.UUID) -> Optional[Quiz]:
        result = await db.execute(
            select(Quiz)
            .where(Quiz.content_id == content_id, Quiz.active.is_(True))
            .order_by(Quiz.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    # ── Answers & Results ─────────────────────────────────────────────────

    async def submit_answers(
        self,
        db: AsyncSession,
        user: User,
        quiz_id: uuid.UUID,
        submission: AnswerSubmission,
    ) -> QuizResultResponse:
        quiz = await self.get_quiz_or_404(db, quiz_id)
        if quiz.family_id is not None:
            await require_member(db, user, quiz.family_id)
        if not quiz.active:
            raise BadRequestError(message="This quiz is no longer active")

        questions = (
            await db.execute(select(Question).where(Question.quiz_id == quiz.id))
        ).scalars().all()
        points_by_question = {q.id: q.points for q in questions}

        correct_rows = await db.execute(
            select(Proposition.id, Proposition.question_id).where(
                Proposition.question_id.in_(list(points_by_question)),
                Proposition.is_correct.is_(True),
            )
        )
        correct = {(question_id, proposition_id) for proposition_id, question_id in correct_rows.all()}

        score = sum(
            points_by_question[question_id]
            for question_id, proposition_id in submission.answers.items()
            if question_id in points_by_question and (question_id, proposition_id) in correct
        )
        max_score = sum(points_by_question.values())

        result = QuizResult(
            quiz_id=quiz.id,
            user_id=user.id,
            score=score,
            max_score=max_score,
            elapsed_time=submission.elapsed_time,
            taken_at=utcnow(),
        )
        db.add(result)
        await db.flush()
        logger.info("User %s scored %d/%d on quiz %s", user.id, score, max_score, quiz.id)

        response = QuizResultResponse.model_validate(result, from_attributes=True)
        response.user = UserSummary.model_validate(user)
        return response

    async def _results(self, db: AsyncSession, *criteria) -> List[QuizResultResponse]:
        rows = await db.execute(
            select(QuizResult, User)
            .join(User, User.id == QuizResult.user_id)
            .where(*criteria)
            .order_by(QuizResult.taken_at.desc())
        )
        responses = []
        for result, player in rows.all():
            response = QuizResultResponse.model_validate(result, from_attributes=True)
            response.user = UserSummary.model_validate(player)
            responses.append(response)
        return responses

    async def list_results(
        self, db: AsyncSession, user: User, quiz_id: uuid.UUID
    ) -> List[QuizResultResponse]:
        quiz = await self.get_quiz_or_404(db, quiz_id)
        await self._require_read_access(db, user, quiz)
        return await self._results(db, QuizResult.quiz_id == quiz.id)

    async def member_results(
        self,
        db: AsyncSession,
        user: User,
        family_id: uuid.UUID,
        member_id: uuid.UUID,
    ) -> List[QuizResultResponse]:
        await require_member_or_superadmin(db, user, family_id)
        family_quizzes = select(Quiz.id).where(Quiz.family_id == family_id)
        return await self._results(
            db,
            QuizResult.user_id == member_id,
            QuizResult.quiz_id.in_(family_quizzes),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
quiz_service = QuizService()
