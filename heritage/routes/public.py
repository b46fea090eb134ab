"""
Heritage Numérique Backend — Public Catalogue Routes
=====================================================

What:  Anonymous listings of PUBLISHED contents per type and on-demand
       translations.
How:   No authentication dependency. Each item carries its author's name,
       family role and kinship plus the family name; tales embed their quiz.

Translation:
    GET /public/contents/{id}/translations          → fr, en and bm
    GET /public/contents/{id}/translations?lang=en  → one language
    Bambara comes from the local glossary; fr/en from the provider, which
    may answer 503 while its circuit breaker is open.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.enums import ContentType, Language
from heritage.routes import error_responses
from heritage.schemas.content import ContentTranslationResponse, PublicContentResponse
from heritage.services.content_service import content_service

router = APIRouter(prefix="/public", tags=["Public catalogue"])


@router.get("/tales", response_model=List[PublicContentResponse], summary="Published tales with their quiz")
async def public_tales(db: AsyncSession = Depends(get_db_session)) -> List[PublicContentResponse]:
    return await content_service.list_public(db, ContentType.TALE)


@router.get("/crafts", response_model=List[PublicContentResponse], summary="Published crafts")
async def public_crafts(db: AsyncSession = Depends(get_db_session)) -> List[PublicContentResponse]:
    return await content_service.list_public(db, ContentType.CRAFT)


@router.get("/proverbs", response_model=List[PublicContentResponse], summary="Published proverbs")
async def public_proverbs(db: AsyncSession = Depends(get_db_session)) -> List[PublicContentResponse]:
    return await content_service.list_public(db, ContentType.PROVERB)


@router.get("/riddles", response_model=List[PublicContentResponse], summary="Published riddles")
async def public_riddles(db: AsyncSession = Depends(get_db_session)) -> List[PublicContentResponse]:
    return await content_service.list_public(db, ContentType.RIDDLE)


@router.get(
    "/contents/{content_id}/translations",
    response_model=ContentTranslationResponse,
    responses=error_responses(404, 503),
    summary="Translate a published content's title and description",
)
async def translate_content(
    content_id: UUID,
    lang: Optional[Language] = Query(default=None, description="fr, en or bm; omit for all three"),
    db: AsyncSession = Depends(get_db_session),
) -> ContentTranslationResponse:
    return await content_service.translate_content(db, content_id, lang)
