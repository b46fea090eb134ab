"""
Heritage Numérique Backend — Family Routes
===========================================

What:  Family lifecycle, membership management, dashboard, contributions,
       and the family-scoped views of contents and publication requests.

Access:
    members only  → read routes (members, dashboard, contents, requests)
    ADMIN only    → update family, add / remove members, change roles
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.enums import ContentStatus, ContentType
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.content import ContentResponse, PublicationRequestResponse
from heritage.schemas.family import (
    AddMemberRequest,
    FamilyCreateRequest,
    FamilyDashboardResponse,
    FamilyResponse,
    FamilyUpdateRequest,
    MemberContribution,
    MembershipResponse,
    RoleUpdateRequest,
)
from heritage.security import get_current_user
from heritage.services.content_service import content_service
from heritage.services.family_service import family_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/families", tags=["Families"])


@router.post(
    "",
    status_code=201,
    response_model=FamilyResponse,
    responses=error_responses(400, 401),
    summary="Create a family",
    description="The creator becomes the family's first ADMIN member.",
)
async def create_family(
    request: FamilyCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FamilyResponse:
    return await family_service.create_family(db, current_user, request)


@router.get(
    "/mine",
    response_model=List[FamilyResponse],
    responses=error_responses(401),
    summary="Families the caller belongs to",
)
async def list_my_families(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[FamilyResponse]:
    return await family_service.list_user_families(db, current_user)


@router.get(
    "/members/{membership_id}",
    response_model=MembershipResponse,
    responses=error_responses(401, 404),
    summary="One membership with its user",
)
async def get_member(
    membership_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MembershipResponse:
    return await family_service.get_member(db, current_user, membership_id)


@router.get(
    "/{family_id}",
    response_model=FamilyResponse,
    responses=error_responses(401, 404),
    summary="Family details (members or super admin)",
)
async def get_family(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FamilyResponse:
    return await family_service.get_family_for_user(db, current_user, family_id)


@router.put(
    "/{family_id}",
    response_model=FamilyResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Update a family (ADMIN)",
)
async def update_family(
    family_id: UUID,
    request: FamilyUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FamilyResponse:
    return await family_service.update_family(db, current_user, family_id, request)


# ── Members ───────────────────────────────────────────────────────────────


@router.get(
    "/{family_id}/members",
    response_model=List[MembershipResponse],
    responses=error_responses(401, 404),
    summary="List family members",
)
async def list_members(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MembershipResponse]:
    return await family_service.list_members(db, current_user, family_id)


@router.post(
    "/{family_id}/members",
    status_code=201,
    response_model=MembershipResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Add a registered user to the family (ADMIN)",
)
async def add_member(
    family_id: UUID,
    request: AddMemberRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MembershipResponse:
    return await family_service.add_member(db, current_user, family_id, request)


@router.put(
    "/{family_id}/members/{membership_id}/role",
    response_model=MembershipResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Change a member's family role (ADMIN)",
)
async def change_member_role(
    family_id: UUID,
    membership_id: UUID,
    request: RoleUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MembershipResponse:
    return await family_service.change_role(db, current_user, family_id, membership_id, request.role)


@router.delete(
    "/{family_id}/members/{membership_id}",
    status_code=204,
    responses=error_responses(400, 401, 403, 404),
    summary="Remove a member (ADMIN)",
)
async def remove_member(
    family_id: UUID,
    membership_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await family_service.remove_member(db, current_user, family_id, membership_id)
    return Response(status_code=204)


# ── Dashboard ─────────────────────────────────────────────────────────────


@router.get(
    "/{family_id}/dashboard",
    response_model=FamilyDashboardResponse,
    responses=error_responses(401, 404),
    summary="Family counters",
)
async def family_dashboard(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FamilyDashboardResponse:
    return await family_service.get_dashboard(db, current_user, family_id)


@router.get(
    "/{family_id}/contributions",
    response_model=List[MemberContribution],
    responses=error_responses(401, 404),
    summary="Per-member contribution counts",
)
async def family_contributions(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[MemberContribution]:
    return await family_service.get_contributions(db, current_user, family_id)


# ── Family Contents ───────────────────────────────────────────────────────


@router.get(
    "/{family_id}/contents",
    response_model=List[ContentResponse],
    responses=error_responses(401),
    summary="Family contents, optionally filtered by type and status",
)
async def list_family_contents(
    family_id: UUID,
    content_type: Optional[ContentType] = Query(default=None, alias="type"),
    status: Optional[ContentStatus] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ContentResponse]:
    return await content_service.list_family_contents(
        db, current_user, family_id, content_type=content_type, status=status
    )


@router.get(
    "/{family_id}/contents/private",
    response_model=List[ContentResponse],
    responses=error_responses(401),
    summary="Family contents not (yet) published",
)
async def list_private_contents(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[ContentResponse]:
    return await content_service.list_family_contents(db, current_user, family_id, private_only=True)


@router.get(
    "/{family_id}/publication-requests",
    response_model=List[PublicationRequestResponse],
    responses=error_responses(401),
    summary="Publication requests of the family's contents",
)
async def list_family_publication_requests(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[PublicationRequestResponse]:
    return await content_service.list_family_requests(db, current_user, family_id)
