"""
Heritage Numérique Backend — Content Routes
============================================

What:  Content creation (JSON and multipart per content type), reading,
       archiving, deletion and the publication workflow.

Multipart Creation:
    POST /contents/tales      file (audio/video, optional), photo, tale_text
    POST /contents/crafts     video (optional), photo
    POST /contents/proverbs   proverb_text, proverb_meaning, proverb_origin, photo
    POST /contents/riddles    riddle_text, riddle_answer, photo

    Every form also takes family_id, category_id, title, description,
    location and region. Media are validated and stored by FileService.

Editing:
    PUT /contents/{id}    partial update; platform content by the super admin only

Publication Workflow:
    POST /contents/{id}/publication-requests          family ADMIN
    GET  /publication-requests/pending                super admin
    POST /publication-requests/{id}/approve           super admin
    POST /publication-requests/{id}/reject            super admin
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.exceptions import ValidationError
from heritage.models.enums import ContentType
from heritage.models.user import User
from heritage.routes import error_responses, read_upload
from heritage.schemas.content import (
    ContentCreateRequest,
    ContentResponse,
    ContentUpdateRequest,
    PublicationRequestResponse,
    PublicContentCreateRequest,
    RejectRequest,
)
from heritage.security import get_current_user, require_superadmin
from heritage.services.content_service import content_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Contents"])

_WRITE_ERRORS = error_responses(400, 401, 403, 404)


def _common_fields(
    category_id: UUID,
    title: str,
    description: Optional[str],
    location: Optional[str],
    region: Optional[str],
    **extra: Any,
) -> Dict[str, Any]:
    title = title.strip()
    if not title:
        raise ValidationError(message="Title cannot be blank", field="title")
    fields = {
        "category_id": category_id,
        "title": title,
        "description": description,
        "location": location,
        "region": region,
    }
    fields.update(extra)
    return fields


# ── JSON Creation ─────────────────────────────────────────────────────────


@router.post(
    "/contents",
    status_code=201,
    response_model=ContentResponse,
    responses=_WRITE_ERRORS,
    summary="Create a family content from JSON",
)
async def create_content(
    request: ContentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    return await content_service.create_content(db, current_user, request)


@router.post(
    "/contents/public",
    status_code=201,
    response_model=ContentResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Publish platform content directly (super admin)",
)
async def create_public_content(
    request: PublicContentCreateRequest,
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    return await content_service.create_public_content(db, admin, request)


# ── Multipart Creation ────────────────────────────────────────────────────


@router.post(
    "/contents/tales",
    status_code=201,
    response_model=ContentResponse,
    responses=_WRITE_ERRORS,
    summary="Create a tale (audio or video recording, or text)",
)
async def create_tale(
    family_id: UUID = Form(...),
    category_id: UUID = Form(...),
    title: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(default=None),
    tale_text: Optional[str] = Form(default=None),
    location: Optional[str] = Form(default=None),
    region: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None, description="Audio or video recording"),
    photo: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    fields = _common_fields(category_id, title, description, location, region, tale_text=tale_text)
    return await content_service.create_with_media(
        db,
        current_user,
        family_id,
        ContentType.TALE,
        fields,
        media=await read_upload(file),
        photo=await read_upload(photo),
    )


@router.post(
    "/contents/crafts",
    status_code=201,
    response_model=ContentResponse,
    responses=_WRITE_ERRORS,
    summary="Create a craft (photo and optional video)",
)
async def create_craft(
    family_id: UUID = Form(...),
    category_id: UUID = Form(...),
    title: str = Form(..., min_length=1, max_length=255),
    description: Optional[str] = Form(default=None),
    location: Optional[str] = Form(default=None),
    region: Optional[str] = Form(default=None),
    video: Optional[UploadFile] = File(default=None),
    photo: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    fields = _common_fields(category_id, title, description, location, region)
    return await content_service.create_with_media(
        db,
        current_user,
        family_id,
        ContentType.CRAFT,
        fields,
        media=await read_upload(video),
        photo=await read_upload(photo),
    )


@router.post(
    "/contents/proverbs",
    status_code=201,
    response_model=ContentResponse,
    responses=_WRITE_ERRORS,
    summary="Create a proverb",
)
async def create_proverb(
    family_id: UUID = Form(...),
    category_id: UUID = Form(...),
    title: str = Form(..., min_length=1, max_length=255),
    proverb_text: str = Form(..., min_length=1),
    proverb_meaning: Optional[str] = Form(default=None),
    proverb_origin: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    location: Optional[str] = Form(default=None),
    region: Optional[str] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    fields = _common_fields(
        category_id,
        title,
        description,
        location,
        region,
        proverb_text=proverb_text,
        proverb_meaning=proverb_meaning,
        proverb_origin=proverb_origin,
    )
    return await content_service.create_with_media(
        db, current_user, family_id, ContentType.PROVERB, fields, photo=await read_upload(photo)
    )


@router.post(
    "/contents/riddles",
    status_code=201,
    response_model=ContentResponse,
    responses=_WRITE_ERRORS,
    summary="Create a riddle",
)
async def create_riddle(
    family_id: UUID = Form(...),
    category_id: UUID = Form(...),
    title: str = Form(..., min_length=1, max_length=255),
    riddle_text: str = Form(..., min_length=1),
    riddle_answer: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    location: Optional[str] = Form(default=None),
    region: Optional[str] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    fields = _common_fields(
        category_id,
        title,
        description,
        location,
        region,
        riddle_text=riddle_text,
        riddle_answer=riddle_answer,
    )
    return await content_service.create_with_media(
        db, current_user, family_id, ContentType.RIDDLE, fields, photo=await read_upload(photo)
    )


# ── Reading and Lifecycle ─────────────────────────────────────────────────


@router.get(
    "/contents/{content_id}",
    response_model=ContentResponse,
    responses=error_responses(401, 404),
    summary="Get a content",
    description="Published contents are visible to every signed-in user; others to family members only.",
)
async def get_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    return await content_service.get_content(db, current_user, content_id)


@router.put(
    "/contents/{content_id}",
    response_model=ContentResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Edit a content",
    description="Platform content: super admin only. Family content: its author (EDITOR or ADMIN) or a family ADMIN.",
)
async def update_content(
    content_id: UUID,
    request: ContentUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    return await content_service.update_content(db, current_user, content_id, request)


@router.post(
    "/contents/{content_id}/archive",
    response_model=ContentResponse,
    responses=error_responses(401, 403, 404),
    summary="Archive a content (author or family ADMIN)",
)
async def archive_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ContentResponse:
    return await content_service.archive(db, current_user, content_id)


@router.delete(
    "/contents/{content_id}",
    status_code=204,
    responses=error_responses(401, 403, 404),
    summary="Delete a content (family ADMIN or super admin)",
)
async def delete_content(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await content_service.delete(db, current_user, content_id)
    return Response(status_code=204)


# ── Publication Workflow ──────────────────────────────────────────────────


@router.post(
    "/contents/{content_id}/publication-requests",
    status_code=201,
    response_model=PublicationRequestResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Ask the platform to publish a family content (family ADMIN)",
)
async def request_publication(
    content_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> PublicationRequestResponse:
    return await content_service.request_publication(db, current_user, content_id)


@router.get(
    "/publication-requests/pending",
    response_model=List[PublicationRequestResponse],
    responses=error_responses(401, 403),
    summary="Requests awaiting review (super admin)",
)
async def list_pending_requests(
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> List[PublicationRequestResponse]:
    return await content_service.list_pending_requests(db)


@router.post(
    "/publication-requests/{request_id}/approve",
    response_model=PublicationRequestResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Approve and publish (super admin)",
)
async def approve_request(
    request_id: UUID,
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> PublicationRequestResponse:
    return await content_service.approve(db, admin, request_id)


@router.post(
    "/publication-requests/{request_id}/reject",
    response_model=PublicationRequestResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Reject with a comment (super admin)",
)
async def reject_request(
    request_id: UUID,
    body: RejectRequest,
    admin: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db_session),
) -> PublicationRequestResponse:
    return await content_service.reject(db, admin, request_id, body.comment)
