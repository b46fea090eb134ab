"""
Heritage Numérique Backend — Genealogy Service
===============================================

What:  The family tree (one per family, created lazily), its members, the
       hierarchical layout view and the relatives of a member.
How:   Members are stored flat with father_id / mother_id. Every view loads
       the whole tree once and works in memory, so the hierarchy and
       relatives computations are plain functions over a member list.

Hierarchy Build:
    1. roots     = members with neither father nor mother
                   (none at all → the oldest member)
    2. children  = members whose father or mother is the node
    3. level     = depth below the root
    4. layout    = siblings one unit apart, children centred under the
                   parent by subtree width, y = level

    A member reachable twice from one path (a malformed cycle) is not
    expanded again, so the build always terminates.

Relatives Order:
    father, mother, the member itself, then everyone else reachable through
    parents, children and siblings, oldest first.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from heritage.database import utcnow
from heritage.exceptions import NotFoundError, ValidationError
from heritage.models.enums import FamilyRole
from heritage.models.family import Family, FamilyMembership
from heritage.models.genealogy import GenealogyTree, TreeMember
from heritage.models.user import User
from heritage.schemas.genealogy import (
    HierarchyResponse,
    TreeMemberCreateRequest,
    TreeMemberResponse,
    TreeNode,
    TreeResponse,
)
from heritage.services.file_service import IMAGE, IMAGES_DIR, MediaUpload, file_service
from heritage.services.permissions import require_family_admin, require_member, require_writer

logger = logging.getLogger(__name__)

BIRTH_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%d/%Y", "%Y/%m/%d")


# ── Pure Helpers ──────────────────────────────────────────────────────────


def parse_birth_date(value: str) -> date:
    """Accepts YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY, MM/DD/YYYY or YYYY/MM/DD."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(message="Birth date is required", field="birth_date")
    for fmt in BIRTH_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError(
        message="Unsupported date format. Use YYYY-MM-DD, DD/MM/YYYY, DD-MM-YYYY, MM/DD/YYYY or YYYY/MM/DD",
        field="birth_date",
        context={"value": text},
    )


def split_full_name(full_name: str):
    """'Diarra Amadou Sékou' → ('Diarra', 'Amadou Sékou'); a single word is the last name."""
    parts = full_name.strip().split(" ", 1)
    if len(parts) == 2:
        return parts[0], parts[1].strip()
    return parts[0], ""


def by_birth_date(member: TreeMember):
    # unknown birth dates sort last
    return (member.birth_date is None, member.birth_date or date.min)


def _children_index(members: Iterable[TreeMember]) -> Dict[uuid.UUID, List[TreeMember]]:
    index: Dict[uuid.UUID, List[TreeMember]] = {}
    for member in members:
        for parent_id in {member.father_id, member.mother_id} - {None}:
            index.setdefault(parent_id, []).append(member)
    return index


def find_roots(members: Sequence[TreeMember]) -> List[TreeMember]:
    roots = [m for m in members if m.father_id is None and m.mother_id is None]
    if not roots and members:
        roots = [min(members, key=by_birth_date)]
    return roots


def _build_node(
    member: TreeMember,
    children_of: Dict[uuid.UUID, List[TreeMember]],
    level: int,
    path: Set[uuid.UUID],
) -> TreeNode:
    node = TreeNode(
        id=member.id,
        full_name=member.full_name,
        gender=member.gender,
        birth_date=member.birth_date,
        death_date=member.death_date,
        photo_url=member.photo_url,
        relationship=member.relationship,
        father_id=member.father_id,
        mother_id=member.mother_id,
        level=level,
        y=float(level),
    )
    path.add(member.id)
    for child in children_of.get(member.id, []):
        if child.id in path:
            logger.warning("Cycle in genealogy tree at member %s, branch skipped", child.id)
            continue
        node.children.append(_build_node(child, children_of, level + 1, path))
    path.discard(member.id)
    return node


def build_hierarchy(members: Sequence[TreeMember]) -> List[TreeNode]:
    """Root nodes with nested children, levels and layout positions."""
    ordered = sorted(members, key=by_birth_date)
    children_of = _children_index(ordered)
    roots = [_build_node(root, children_of, 0, set()) for root in find_roots(ordered)]
    calculate_positions(roots, 0, 0.0)
    return roots


def subtree_width(nodes: Sequence[TreeNode]) -> float:
    if not nodes:
        return 1.0
    width = 0.0
    for node in nodes:
        width += subtree_width(node.children) if node.children else 1.0
    return max(width, float(len(nodes)))


def calculate_positions(nodes: Sequence[TreeNode], level: int, start_x: float) -> None:
    current_x = start_x
    for node in nodes:
        node.x = current_x
        node.y = float(level)
        if node.children:
            child_start = current_x - subtree_width(node.children) / 2.0 + 0.5
            calculate_positions(node.children, level + 1, child_start)
        current_x += 1.0


def max_level(nodes: Iterable[TreeNode]) -> int:
    deepest = 0
    for node in nodes:
        deepest = max(deepest, node.level, max_level(node.children))
    return deepest


def collect_relatives(reference: TreeMember, members: Sequence[TreeMember]) -> List[TreeMember]:
    """
    Everyone connected to `reference` through parents, children or siblings
    (transitively), in display order.
    """
    by_id = {m.id: m for m in members}
    children_of = _children_index(members)
    visited: Set[uuid.UUID] = set()
    stack = [reference]

    while stack:
        member = stack.pop()
        if member is None or member.id in visited:
            continue
        visited.add(member.id)

        parents = [by_id.get(pid) for pid in (member.father_id, member.mother_id) if pid is not None]
        stack.extend(parents)
        stack.extend(children_of.get(member.id, []))
        for parent in parents:
            if parent is not None:
                stack.extend(children_of.get(parent.id, []))

    ordered: List[TreeMember] = []
    for parent_id in (reference.father_id, reference.mother_id):
        if parent_id is not None and parent_id in visited and parent_id in by_id:
            if by_id[parent_id] not in ordered:
                ordered.append(by_id[parent_id])
    ordered.append(reference)

    leading = {m.id for m in ordered}
    others = [by_id[mid] for mid in visited if mid not in leading]
    ordered.extend(sorted(others, key=lambda m: (by_birth_date(m), m.full_name)))
    return ordered


# ── Service ───────────────────────────────────────────────────────────────


class GenealogyService:

    async def _family_or_404(self, db: AsyncSession, family_id: uuid.UUID) -> Family:
        family = await db.get(Family, family_id)
        if family is None:
            raise NotFoundError(resource="family", resource_id=str(family_id))
        return family

    async def get_or_create_tree(self, db: AsyncSession, family: Family) -> GenealogyTree:
        result = await db.execute(
            select(GenealogyTree)
            .where(GenealogyTree.family_id == family.id)
            .order_by(GenealogyTree.created_at)
            .limit(1)
        )
        tree = result.scalar_one_or_none()
        if tree is not None:
            return tree

        admin = await db.execute(
            select(FamilyMembership.user_id)
            .where(
                FamilyMembership.family_id == family.id,
                FamilyMembership.role == FamilyRole.ADMIN.value,
            )
            .order_by(FamilyMembership.joined_at)
            .limit(1)
        )
        now = utcnow()
        tree = GenealogyTree(
            family_id=family.id,
            name=f"Family tree of {family.name}",
            description=f"Genealogy of the {family.name} family",
            creator_id=admin.scalar_one_or_none(),
            created_at=now,
            updated_at=now,
        )
        db.add(tree)
        await db.flush()
        logger.info("Genealogy tree %s created for family %s", tree.id, family.id)
        return tree

    async def _tree_members(self, db: AsyncSession, tree_id: uuid.UUID) -> List[TreeMember]:
        result = await db.execute(select(TreeMember).where(TreeMember.tree_id == tree_id))
        return sorted(result.scalars().all(), key=by_birth_date)

    async def _member_with_tree(self, db: AsyncSession, member_id: uuid.UUID):
        member = await db.get(TreeMember, member_id)
        if member is None:
            raise NotFoundError(resource="tree member", resource_id=str(member_id))
        tree = await db.get(GenealogyTree, member.tree_id)
        return member, tree

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_family_tree(self, db: AsyncSession, user: User, family_id: uuid.UUID) -> TreeResponse:
        family = await self._family_or_404(db, family_id)
        await require_member(db, user, family_id)
        tree = await self.get_or_create_tree(db, family)
        members = await self._tree_members(db, tree.id)
        return TreeResponse(
            id=tree.id,
            family_id=tree.family_id,
            name=tree.name,
            description=tree.description,
            creator_id=tree.creator_id,
            created_at=tree.created_at,
            members=[TreeMemberResponse.model_validate(m) for m in members],
        )

    async def get_hierarchy(self, db: AsyncSession, user: User, family_id: uuid.UUID) -> HierarchyResponse:
        family = await self._family_or_404(db, family_id)
        await require_member(db, user, family_id)
        tree = await self.get_or_create_tree(db, family)
        members = await self._tree_members(db, tree.id)

        roots = build_hierarchy(members)
        return HierarchyResponse(
            tree_id=tree.id,
            family_id=family.id,
            name=tree.name,
            roots=roots,
            main_root_id=roots[0].id if roots else None,
            generation_count=max_level(roots) + 1 if roots else 0,
            member_count=len(members),
        )

    async def get_member(self, db: AsyncSession, user: User, member_id: uuid.UUID) -> TreeMemberResponse:
        member, tree = await self._member_with_tree(db, member_id)
        await require_member(db, user, tree.family_id)
        return TreeMemberResponse.model_validate(member)

    async def get_relatives(
        self, db: AsyncSession, user: User, member_id: uuid.UUID
    ) -> List[TreeMemberResponse]:
        member, tree = await self._member_with_tree(db, member_id)
        await require_member(db, user, tree.family_id)
        members = await self._tree_members(db, tree.id)
        return [TreeMemberResponse.model_validate(m) for m in collect_relatives(member, members)]

    # ── Writes ────────────────────────────────────────────────────────────

    async def _parent_in_tree(
        self, db: AsyncSession, tree_id: uuid.UUID, parent_id: Optional[uuid.UUID], label: str
    ) -> Optional[uuid.UUID]:
        if parent_id is None:
            return None
        parent = await db.get(TreeMember, parent_id)
        if parent is None or parent.tree_id != tree_id:
            raise NotFoundError(resource=label, resource_id=str(parent_id))
        return parent.id

    async def add_member(
        self,
        db: AsyncSession,
        user: User,
        request: TreeMemberCreateRequest,
        photo: Optional[MediaUpload] = None,
    ) -> TreeMemberResponse:
        family = await self._family_or_404(db, request.family_id)
        await require_writer(db, user, family.id)

        birth_date = parse_birth_date(request.birth_date)
        last_name, first_name = split_full_name(request.full_name)
        tree = await self.get_or_create_tree(db, family)
        father_id = await self._parent_in_tree(db, tree.id, request.parent1_id, "parent 1")
        mother_id = await self._parent_in_tree(db, tree.id, request.parent2_id, "parent 2")

        stored = None
        if photo is not None:
            stored = await file_service.store_upload(photo, (IMAGE,), IMAGES_DIR)

        now = utcnow()
        member = TreeMember(
            tree_id=tree.id,
            last_name=last_name,
            first_name=first_name,
            gender=request.gender.value if request.gender else None,
            birth_date=birth_date,
            birth_place=request.birth_place,
            biography=request.biography,
            relationship=request.relationship,
            father_id=father_id,
            mother_id=mother_id,
            photo_url=stored.url if stored else None,
            created_at=now,
            updated_at=now,
        )
        db.add(member)
        try:
            await db.flush()
        except Exception:
            if stored is not None:
                await file_service.cleanup_file(stored.absolute_path)
            raise

        logger.info("Tree member %s added to tree %s by user %s", member.id, tree.id, user.id)
        return TreeMemberResponse.model_validate(member)

    async def delete_member(self, db: AsyncSession, user: User, member_id: uuid.UUID) -> None:
        member, tree = await self._member_with_tree(db, member_id)
        await require_family_admin(db, user, tree.family_id)

        await db.execute(
            update(TreeMember).where(TreeMember.father_id == member.id).values(father_id=None)
        )
        await db.execute(
            update(TreeMember).where(TreeMember.mother_id == member.id).values(mother_id=None)
        )
        await db.delete(member)
        await db.flush()
        logger.info("Tree member %s deleted by user %s", member_id, user.id)


# ── Singleton Instance ────────────────────────────────────────────────────
genealogy_service = GenealogyService()
