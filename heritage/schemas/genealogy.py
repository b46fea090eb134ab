"""
Heritage Numérique Backend — Genealogy Schemas
===============================================

What:  Flat tree members, the tree itself, and the recursive node shape of
       the hierarchical view.

Layout Coordinates:
    x  horizontal slot; siblings are one unit apart and children are
       centred under their parent by subtree width (may be fractional)
    y  generation depth, equal to `level`
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from heritage.models.enums import Gender


class TreeMemberResponse(BaseModel):
    id: uuid.UUID
    tree_id: uuid.UUID
    last_name: str
    first_name: str
    full_name: str
    gender: Optional[str] = None
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    death_date: Optional[date] = None
    death_place: Optional[str] = None
    father_id: Optional[uuid.UUID] = None
    mother_id: Optional[uuid.UUID] = None
    linked_user_id: Optional[uuid.UUID] = None
    biography: Optional[str] = None
    photo_url: Optional[str] = None
    relationship: Optional[str] = None

    model_config = {"from_attributes": True}


class TreeResponse(BaseModel):
    id: uuid.UUID
    family_id: uuid.UUID
    name: str
    description: Optional[str] = None
    creator_id: Optional[uuid.UUID] = None
    created_at: datetime
    members: List[TreeMemberResponse] = Field(default_factory=list)


class TreeNode(BaseModel):
    id: uuid.UUID
    full_name: str
    gender: Optional[str] = None
    birth_date: Optional[date] = None
    death_date: Optional[date] = None
    photo_url: Optional[str] = None
    relationship: Optional[str] = None
    father_id: Optional[uuid.UUID] = None
    mother_id: Optional[uuid.UUID] = None
    level: int = 0
    x: float = 0.0
    y: float = 0.0
    children: List["TreeNode"] = Field(default_factory=list)


class HierarchyResponse(BaseModel):
    tree_id: uuid.UUID
    family_id: uuid.UUID
    name: str
    roots: List[TreeNode] = Field(default_factory=list)
    main_root_id: Optional[uuid.UUID] = None
    generation_count: int = 0
    member_count: int = 0


class TreeMemberCreateRequest(BaseModel):
    """
    Form fields of POST /genealogy/members. birth_date stays a string here;
    the service accepts several day/month orders.
    """
    family_id: uuid.UUID
    full_name: str = Field(min_length=1, max_length=201)
    birth_date: str = Field(min_length=1)
    birth_place: Optional[str] = Field(default=None, max_length=255)
    relationship: Optional[str] = Field(default=None, max_length=100)
    gender: Optional[Gender] = None
    biography: Optional[str] = None
    parent1_id: Optional[uuid.UUID] = None
    parent2_id: Optional[uuid.UUID] = None
