"""
Heritage Numérique Backend — Invitation Routes
===============================================

What:  Create, list, accept, decline and redeem family invitations.

Invitation States:
    PENDING → ACCEPTED   (accept, redeem, register / login with the code)
    PENDING → DECLINED   (decline)
    PENDING → EXPIRED    (background sweep once expires_at has passed)
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.user import User
from heritage.routes import error_responses
from heritage.schemas.family import MembershipResponse
from heritage.schemas.invitation import InvitationCreateRequest, InvitationResponse, RedeemRequest
from heritage.security import get_current_user
from heritage.services.family_service import membership_response
from heritage.services.invitation_service import invitation_service

router = APIRouter(prefix="/invitations", tags=["Invitations"])


@router.post(
    "",
    status_code=201,
    response_model=InvitationResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Invite someone into a family (ADMIN)",
)
async def create_invitation(
    request: InvitationCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvitationResponse:
    return await invitation_service.create_invitation(db, current_user, request)


@router.get(
    "/family/{family_id}",
    response_model=List[InvitationResponse],
    responses=error_responses(401, 403),
    summary="Every invitation of a family (ADMIN)",
)
async def list_family_invitations(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[InvitationResponse]:
    return await invitation_service.list_for_family(db, current_user, family_id)


@router.get(
    "/sent",
    response_model=List[InvitationResponse],
    responses=error_responses(401),
    summary="Invitations sent by the caller",
)
async def list_sent_invitations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[InvitationResponse]:
    return await invitation_service.list_sent(db, current_user)


@router.get(
    "/pending",
    response_model=List[InvitationResponse],
    responses=error_responses(401),
    summary="Pending, unexpired invitations addressed to the caller",
)
async def list_pending_invitations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[InvitationResponse]:
    return await invitation_service.list_pending_for_user(db, current_user)


@router.post(
    "/redeem",
    response_model=MembershipResponse,
    responses=error_responses(400, 401, 404),
    summary="Join a family with an invitation code",
)
async def redeem_invitation(
    request: RedeemRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MembershipResponse:
    membership = await invitation_service.redeem_code(db, current_user, request.code)
    return membership_response(membership, current_user)


@router.post(
    "/{invitation_id}/accept",
    response_model=InvitationResponse,
    responses=error_responses(400, 401, 404),
    summary="Accept an invitation addressed to the caller",
)
async def accept_invitation(
    invitation_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvitationResponse:
    return await invitation_service.accept(db, current_user, invitation_id)


@router.post(
    "/{invitation_id}/decline",
    response_model=InvitationResponse,
    responses=error_responses(400, 401, 404),
    summary="Decline an invitation addressed to the caller",
)
async def decline_invitation(
    invitation_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> InvitationResponse:
    return await invitation_service.decline(db, current_user, invitation_id)
