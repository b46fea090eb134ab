"""
Heritage Numérique Backend — Genealogy Routes
==============================================

What:  The family tree (flat and hierarchical views) and its members.

    GET    /genealogy/family/{id}             tree + members by birth date
    GET    /genealogy/family/{id}/hierarchy   nested nodes with layout positions
    POST   /genealogy/members                 multipart, EDITOR or ADMIN
    GET    /genealogy/members/{id}
    GET    /genealogy/members/{id}/relatives  father, mother, member, others
    DELETE /genealogy/members/{id}            family ADMIN
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import get_db_session
from heritage.models.enums import Gender
from heritage.models.user import User
from heritage.routes import error_responses, read_upload
from heritage.schemas.genealogy import (
    HierarchyResponse,
    TreeMemberCreateRequest,
    TreeMemberResponse,
    TreeResponse,
)
from heritage.security import get_current_user
from heritage.services.genealogy_service import genealogy_service

router = APIRouter(prefix="/genealogy", tags=["Genealogy"])


@router.get(
    "/family/{family_id}",
    response_model=TreeResponse,
    responses=error_responses(401, 404),
    summary="A family's tree with its members",
)
async def get_family_tree(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TreeResponse:
    return await genealogy_service.get_family_tree(db, current_user, family_id)


@router.get(
    "/family/{family_id}/hierarchy",
    response_model=HierarchyResponse,
    responses=error_responses(401, 404),
    summary="Hierarchical view of a family's tree",
)
async def get_family_hierarchy(
    family_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> HierarchyResponse:
    return await genealogy_service.get_hierarchy(db, current_user, family_id)


@router.post(
    "/members",
    status_code=201,
    response_model=TreeMemberResponse,
    responses=error_responses(400, 401, 403, 404),
    summary="Add a member to the family tree",
)
async def add_tree_member(
    family_id: UUID = Form(...),
    full_name: str = Form(..., min_length=1, max_length=201),
    birth_date: str = Form(..., min_length=1, description="YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY, MM/DD/YYYY or YYYY/MM/DD"),
    birth_place: Optional[str] = Form(default=None),
    relationship: Optional[str] = Form(default=None),
    gender: Optional[Gender] = Form(default=None),
    biography: Optional[str] = Form(default=None),
    parent1_id: Optional[UUID] = Form(default=None, description="Father"),
    parent2_id: Optional[UUID] = Form(default=None, description="Mother"),
    photo: Optional[UploadFile] = File(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TreeMemberResponse:
    request = TreeMemberCreateRequest(
        family_id=family_id,
        full_name=full_name,
        birth_date=birth_date,
        birth_place=birth_place,
        relationship=relationship,
        gender=gender,
        biography=biography,
        parent1_id=parent1_id,
        parent2_id=parent2_id,
    )
    return await genealogy_service.add_member(db, current_user, request, photo=await read_upload(photo))


@router.get(
    "/members/{member_id}",
    response_model=TreeMemberResponse,
    responses=error_responses(401, 404),
)
async def get_tree_member(
    member_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TreeMemberResponse:
    return await genealogy_service.get_member(db, current_user, member_id)


@router.get(
    "/members/{member_id}/relatives",
    response_model=List[TreeMemberResponse],
    responses=error_responses(401, 404),
    summary="Everyone related to a tree member",
)
async def get_relatives(
    member_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TreeMemberResponse]:
    return await genealogy_service.get_relatives(db, current_user, member_id)


@router.delete(
    "/members/{member_id}",
    status_code=204,
    responses=error_responses(401, 403, 404),
)
async def delete_tree_member(
    member_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await genealogy_service.delete_member(db, current_user, member_id)
    return Response(status_code=204)
