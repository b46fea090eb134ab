"""
Heritage Numérique Backend — Content Service
=============================================

What:  Family contents (tales, crafts, proverbs, riddles), the publication
       workflow, the anonymous public catalogue and content translations.
How:   Creation is gated by family role (READER cannot write); media go
       through FileService; publication moves a content from the family's
       private space to the public catalogue only after a super admin
       approves a PublicationRequest.

Publication Workflow:
    ┌───────────┐  request (family ADMIN)  ┌──────────┐  approve (super admin)  ┌───────────┐
    │   DRAFT   │─────────────────────────▶│ PENDING  │────────────────────────▶│ PUBLISHED │
    └───────────┘                          │ request  │                         └───────────┘
                                           └────┬─────┘
                                                │ reject (super admin, with comment)
                                                ▼
                                           request REJECTED, content stays DRAFT

    At most one PENDING request exists per content.

Media Routing (multipart creation):
    TALE     audio or video → tales/   photo → images/
    CRAFT    video          → videos/  photo → images/
    PROVERB  photo          → images/
    RIDDLE   photo          → images/
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import utcnow
from heritage.exceptions import BadRequestError, NotFoundError, PermissionDeniedError, ValidationError
from heritage.models.content import Content, PublicationRequest
from heritage.models.enums import ContentStatus, ContentType, Language, PublicationStatus
from heritage.models.family import Category, Family, FamilyMembership
from heritage.models.user import User
from heritage.schemas.content import (
    UNKNOWN_ROLE,
    UNSPECIFIED_KINSHIP,
    ContentCreateRequest,
    ContentResponse,
    ContentTranslationResponse,
    ContentUpdateRequest,
    PublicationRequestResponse,
    PublicContentCreateRequest,
    PublicContentResponse,
)
from heritage.services.file_service import (
    AUDIO,
    IMAGE,
    IMAGES_DIR,
    TALES_DIR,
    VIDEO,
    VIDEOS_DIR,
    MediaUpload,
    StoredFile,
    file_service,
)
from heritage.services.notification_service import notification_service
from heritage.services.permissions import (
    is_family_admin,
    require_family_admin,
    require_member,
    require_writer,
)
from heritage.services.quiz_service import quiz_service
from heritage.services.translation_service import SOURCE_LANGUAGE, translation_service

logger = logging.getLogger(__name__)

# content type → (allowed kinds, storage subdirectory) for the main media file
MAIN_MEDIA = {
    ContentType.TALE: ((AUDIO, VIDEO), TALES_DIR),
    ContentType.CRAFT: ((VIDEO,), VIDEOS_DIR),
}


class ContentService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def get_content_or_404(self, db: AsyncSession, content_id: uuid.UUID) -> Content:
        content = await db.get(Content, content_id)
        if content is None:
            raise NotFoundError(resource="content", resource_id=str(content_id))
        return content

    async def _require_category(self, db: AsyncSession, category_id: uuid.UUID) -> Category:
        category = await db.get(Category, category_id)
        if category is None:
            raise NotFoundError(resource="category", resource_id=str(category_id))
        return category

    # ── Creation ──────────────────────────────────────────────────────────

    async def _insert(
        self,
        db: AsyncSession,
        author: User,
        family_id: Optional[uuid.UUID],
        fields: Dict[str, Any],
        status: ContentStatus,
    ) -> Content:
        now = utcnow()
        content = Content(
            family_id=family_id,
            author_id=author.id,
            status=status.value,
            created_at=now,
            updated_at=now,
            **fields,
        )
        db.add(content)
        await db.flush()
        logger.info(
            "Content %s (%s) created by user %s in family %s",
            content.id,
            content.content_type,
            author.id,
            family_id,
        )
        return content

    async def create_content(
        self, db: AsyncSession, user: User, request: ContentCreateRequest
    ) -> ContentResponse:
        """JSON creation. A requested PUBLISHED status still needs the review workflow."""
        await require_writer(db, user, request.family_id)
        await self._require_category(db, request.category_id)

        status = request.status
        if status == ContentStatus.PUBLISHED:
            raise BadRequestError(
                message="Contents are published through a publication request, not at creation"
            )

        fields = request.model_dump(exclude={"family_id", "status"})
        fields["content_type"] = request.content_type.value
        content = await self._insert(db, user, request.family_id, fields, status)
        return ContentResponse.model_validate(content)

    async def create_with_media(
        self,
        db: AsyncSession,
        user: User,
        family_id: uuid.UUID,
        content_type: ContentType,
        fields: Dict[str, Any],
        media: Optional[MediaUpload] = None,
        photo: Optional[MediaUpload] = None,
    ) -> ContentResponse:
        """
        Multipart creation shared by /contents/tales, /crafts, /proverbs and
        /riddles. Files are validated and written before the row is inserted;
        if the insert fails they are removed again.
        """
        await require_writer(db, user, family_id)
        await self._require_category(db, fields["category_id"])

        # a tale told in text rather than recorded
        tale_text = fields.pop("tale_text", None)
        if content_type == ContentType.TALE and media is None and tale_text:
            fields["description"] = tale_text

        stored: List[StoredFile] = []
        try:
            if media is not None:
                if content_type not in MAIN_MEDIA:
                    raise ValidationError(
                        message=f"A {content_type.value.lower()} does not accept a media file",
                        field="file",
                    )
                kinds, subdir = MAIN_MEDIA[content_type]
                main = await file_service.store_upload(media, kinds, subdir)
                stored.append(main)
                fields["file_url"] = main.url
                fields["file_size"] = main.size

            if photo is not None:
                image = await file_service.store_upload(photo, (IMAGE,), IMAGES_DIR)
                stored.append(image)
                fields["photo_url"] = image.url

            fields["content_type"] = content_type.value
            content = await self._insert(db, user, family_id, fields, ContentStatus.DRAFT)
        except Exception:
            for item in stored:
                await file_service.cleanup_file(item.absolute_path)
            raise

        return ContentResponse.model_validate(content)

    async def create_public_content(
        self, db: AsyncSession, admin: User, request: PublicContentCreateRequest
    ) -> ContentResponse:
        """Platform content by the super admin: no family, published immediately."""
        await self._require_category(db, request.category_id)
        fields = request.model_dump()
        fields["content_type"] = request.content_type.value
        content = await self._insert(db, admin, None, fields, ContentStatus.PUBLISHED)
        return ContentResponse.model_validate(content)

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_content(self, db: AsyncSession, user: User, content_id: uuid.UUID) -> ContentResponse:
        content = await self.get_content_or_404(db, content_id)
        if content.status != ContentStatus.PUBLISHED and not user.is_superadmin:
            if content.family_id is None:
                raise NotFoundError(resource="content", resource_id=str(content_id))
            await require_member(db, user, content.family_id)
        return ContentResponse.model_validate(content)

    async def list_family_contents(
        self,
        db: AsyncSession,
        user: User,
        family_id: uuid.UUID,
        content_type: Optional[ContentType] = None,
        status: Optional[ContentStatus] = None,
        private_only: bool = False,
    ) -> List[ContentResponse]:
        await require_member(db, user, family_id)
        query = select(Content).where(Content.family_id == family_id)
        if content_type is not None:
            query = query.where(Content.content_type == content_type.value)
        if status is not None:
            query = query.where(Content.status == status.value)
        if private_only:
            query = query.where(Content.status != ContentStatus.PUBLISHED.value)
        result = await db.execute(query.order_by(Content.created_at.desc()))
        return [ContentResponse.model_validate(c) for c in result.scalars().all()]

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def archive(self, db: AsyncSession, user: User, content_id: uuid.UUID) -> ContentResponse:
        content = await self.get_content_or_404(db, content_id)
        if content.author_id != user.id and not await is_family_admin(db, user, content.family_id):
            if content.family_id is not None:
                await require_member(db, user, content.family_id)
            raise PermissionDeniedError(message="Only the author or a family administrator can archive this content")

        content.status = ContentStatus.ARCHIVED.value
        await db.flush()
        logger.info("Content %s archived by user %s", content.id, user.id)
        return ContentResponse.model_validate(content)

    async def update_content(
        self, db: AsyncSession, user: User, content_id: uuid.UUID, request: ContentUpdateRequest
    ) -> ContentResponse:
        """
        Partial edit. Platform content (no family) is edited by the super
        admin only; family content by the super admin, a family ADMIN, or
        its author while they can still write in the family.
        """
        content = await self.get_content_or_404(db, content_id)
        if not user.is_superadmin:
            if content.family_id is None:
                raise PermissionDeniedError(message="Only a platform administrator can edit platform content")
            if content.author_id == user.id:
                await require_writer(db, user, content.family_id)
            else:
                await require_family_admin(db, user, content.family_id)

        changes = request.model_dump(exclude_unset=True)
        for required in ("title", "category_id"):
            if required in changes and changes[required] is None:
                raise ValidationError(message=f"{required} cannot be null", field=required)
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError(message="Title cannot be blank", field="title")
        if "category_id" in changes:
            await self._require_category(db, changes["category_id"])

        for attribute, value in changes.items():
            setattr(content, attribute, value)
        content.updated_at = utcnow()
        await db.flush()
        logger.info("Content %s updated by user %s (%s)", content.id, user.id, ", ".join(sorted(changes)))
        return ContentResponse.model_validate(content)

    async def list_platform_contents(
        self, db: AsyncSession, content_type: Optional[ContentType] = None
    ) -> List[ContentResponse]:
        """Contents created by the super admin outside any family."""
        query = select(Content).where(Content.family_id.is_(None))
        if content_type is not None:
            query = query.where(Content.content_type == content_type.value)
        result = await db.execute(query.order_by(Content.created_at.desc()))
        return [ContentResponse.model_validate(c) for c in result.scalars().all()]

    async def delete(self, db: AsyncSession, user: User, content_id: uuid.UUID) -> None:
        content = await self.get_content_or_404(db, content_id)
        if not user.is_superadmin:
            if content.family_id is None:
                raise PermissionDeniedError(message="Only a platform administrator can delete platform content")
            await require_family_admin(db, user, content.family_id)

        await db.delete(content)
        await db.flush()
        logger.info("Content %s deleted by user %s", content_id, user.id)

    # ── Publication Workflow ──────────────────────────────────────────────

    async def request_publication(
        self, db: AsyncSession, user: User, content_id: uuid.UUID
    ) -> PublicationRequestResponse:
        content = await self.get_content_or_404(db, content_id)
        if not user.is_superadmin:
            if content.family_id is None:
                raise PermissionDeniedError(message="Only a platform administrator can manage platform content")
            await require_family_admin(db, user, content.family_id)

        if content.status == ContentStatus.PUBLISHED:
            raise BadRequestError(message="This content is already published")

        pending = await db.execute(
            select(PublicationRequest.id).where(
                PublicationRequest.content_id == content.id,
                PublicationRequest.status == PublicationStatus.PENDING.value,
            )
        )
        if pending.scalar_one_or_none() is not None:
            raise BadRequestError(message="A publication request is already pending for this content")

        request = PublicationRequest(
            content_id=content.id,
            requester_id=user.id,
            status=PublicationStatus.PENDING.value,
            requested_at=utcnow(),
        )
        db.add(request)
        await db.flush()
        logger.info("Publication requested for content %s by user %s", content.id, user.id)
        return self._request_response(request, content.title)

    async def list_family_requests(
        self, db: AsyncSession, user: User, family_id: uuid.UUID
    ) -> List[PublicationRequestResponse]:
        await require_member(db, user, family_id)
        result = await db.execute(
            select(PublicationRequest, Content.title)
            .join(Content, Content.id == PublicationRequest.content_id)
            .where(Content.family_id == family_id)
            .order_by(PublicationRequest.requested_at.desc())
        )
        return [self._request_response(r, title) for r, title in result.all()]

    async def list_pending_requests(self, db: AsyncSession) -> List[PublicationRequestResponse]:
        result = await db.execute(
            select(PublicationRequest, Content.title)
            .join(Content, Content.id == PublicationRequest.content_id)
            .where(PublicationRequest.status == PublicationStatus.PENDING.value)
            .order_by(PublicationRequest.requested_at)
        )
        return [self._request_response(r, title) for r, title in result.all()]

    async def _pending_request_or_error(self, db: AsyncSession, request_id: uuid.UUID) -> PublicationRequest:
        request = await db.get(PublicationRequest, request_id)
        if request is None:
            raise NotFoundError(resource="publication request", resource_id=str(request_id))
        if request.status != PublicationStatus.PENDING:
            raise BadRequestError(
                message="This publication request has already been processed",
                context={"status": request.status},
            )
        return request

    async def approve(
        self, db: AsyncSession, reviewer: User, request_id: uuid.UUID
    ) -> PublicationRequestResponse:
        request = await self._pending_request_or_error(db, request_id)
        content = await self.get_content_or_404(db, request.content_id)

        request.status = PublicationStatus.APPROVED.value
        request.reviewer_id = reviewer.id
        request.processed_at = utcnow()
        content.status = ContentStatus.PUBLISHED.value
        await db.flush()

        await notification_service.notify_content_published(
            db,
            recipient_id=request.requester_id,
            content_id=content.id,
            content_title=content.title,
        )
        logger.info("Content %s published (request %s) by %s", content.id, request.id, reviewer.id)
        return self._request_response(request, content.title)

    async def reject(
        self, db: AsyncSession, reviewer: User, request_id: uuid.UUID, comment: str
    ) -> PublicationRequestResponse:
        request = await self._pending_request_or_error(db, request_id)
        content = await self.get_content_or_404(db, request.content_id)

        request.status = PublicationStatus.REJECTED.value
        request.reviewer_id = reviewer.id
        request.comment = comment
        request.processed_at = utcnow()
        await db.flush()
        logger.info("Publication request %s rejected by %s", request.id, reviewer.id)
        return self._request_response(request, content.title)

    @staticmethod
    def _request_response(request: PublicationRequest, title: Optional[str]) -> PublicationRequestResponse:
        response = PublicationRequestResponse.model_validate(request)
        response.content_title = title
        return response

    # ── Public Catalogue ──────────────────────────────────────────────────

    async def list_public(self, db: AsyncSession, content_type: ContentType) -> List[PublicContentResponse]:
        """
        Every PUBLISHED content of one type, newest first, with author,
        family and category flattened in. Tales also embed their quiz.
        """
        rows = await db.execute(
            select(Content, User, Family.name, Category.name, FamilyMembership)
            .join(User, User.id == Content.author_id)
            .outerjoin(Family, Family.id == Content.family_id)
            .outerjoin(Category, Category.id == Content.category_id)
            .outerjoin(
                FamilyMembership,
                (FamilyMembership.family_id == Content.family_id)
                & (FamilyMembership.user_id == Content.author_id),
            )
            .where(
                Content.content_type == content_type.value,
                Content.status == ContentStatus.PUBLISHED.value,
            )
            .order_by(Content.created_at.desc())
        )

        items = []
        for content, author, family_name, category_name, membership in rows.all():
            item = PublicContentResponse(
                id=content.id,
                title=content.title,
                description=content.description,
                content_type=content.content_type,
                file_url=content.file_url,
                photo_url=content.photo_url,
                duration=content.duration,
                event_date=content.event_date,
                location=content.location,
                region=content.region,
                proverb_text=content.proverb_text,
                proverb_meaning=content.proverb_meaning,
                proverb_origin=content.proverb_origin,
                riddle_text=content.riddle_text,
                riddle_answer=content.riddle_answer,
                category_name=category_name,
                family_id=content.family_id,
                family_name=family_name,
                author_name=author.full_name,
                author_email=author.email,
                author_role=membership.role if membership else UNKNOWN_ROLE,
                author_kinship=(membership.kinship if membership and membership.kinship else UNSPECIFIED_KINSHIP),
                created_at=content.created_at,
            )
            if content_type == ContentType.TALE:
                quiz = await quiz_service.find_quiz_for_content(db, content.id)
                if quiz is not None:
                    item.quiz = await quiz_service.get_quiz_detail(db, quiz)
            items.append(item)
        return items

    async def translate_content(
        self, db: AsyncSession, content_id: uuid.UUID, language: Optional[Language] = None
    ) -> ContentTranslationResponse:
        """
        Translate title and description of a PUBLISHED content into one
        language, or into fr/en/bm when `language` is None.
        """
        content = await self.get_content_or_404(db, content_id)
        if content.status != ContentStatus.PUBLISHED:
            raise NotFoundError(resource="content", resource_id=str(content_id))

        response = ContentTranslationResponse(content_id=content.id)
        if language is None:
            response.title = await translation_service.translate_all(content.title)
            response.description = await translation_service.translate_all(content.description)
            return response

        for attribute in ("title", "description"):
            text = getattr(content, attribute)
            if text:
                translated = await translation_service.translate(text, SOURCE_LANGUAGE, language.value)
                setattr(response, attribute, {language.value: translated})
        return response


# ── Singleton Instance ────────────────────────────────────────────────────
content_service = ContentService()
