"""
Heritage Numérique Backend — Family Permission Unit Tests
==========================================================

What:  The role gates every family-scoped service relies on.

    not a member           → UnauthorizedError (401)
    member, role too low   → PermissionDeniedError (403)
"""

import uuid

import pytest

from heritage.exceptions import PermissionDeniedError, UnauthorizedError
from heritage.models.enums import FamilyRole, UserRole
from heritage.models.family import FamilyMembership
from heritage.models.user import User
from heritage.services.permissions import (
    is_family_admin,
    require_family_admin,
    require_member,
    require_member_or_superadmin,
    require_writer,
)

FAMILY_ID = uuid.uuid4()


def _user(role=UserRole.MEMBER):
    return User(id=uuid.uuid4(), email="member@example.com", role=role.value)


def _membership(user, role: FamilyRole):
    return FamilyMembership(id=uuid.uuid4(), user_id=user.id, family_id=FAMILY_ID, role=role.value)


def _returns(session, membership):
    session.execute.return_value.scalar_one_or_none.return_value = membership


class TestRoleGates:

    @pytest.mark.asyncio
    async def test_non_member_is_unauthorized(self, mock_db_session):
        _returns(mock_db_session, None)
        with pytest.raises(UnauthorizedError) as exc_info:
            await require_member(mock_db_session, _user(), FAMILY_ID)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_reader_cannot_write(self, mock_db_session):
        user = _user()
        _returns(mock_db_session, _membership(user, FamilyRole.READER))
        with pytest.raises(PermissionDeniedError) as exc_info:
            await require_writer(mock_db_session, user, FAMILY_ID)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [FamilyRole.EDITOR, FamilyRole.ADMIN])
    async def test_editor_and_admin_can_write(self, mock_db_session, role):
        user = _user()
        membership = _membership(user, role)
        _returns(mock_db_session, membership)
        assert await require_writer(mock_db_session, user, FAMILY_ID) is membership

    @pytest.mark.asyncio
    async def test_editor_is_not_admin(self, mock_db_session):
        user = _user()
        _returns(mock_db_session, _membership(user, FamilyRole.EDITOR))
        with pytest.raises(PermissionDeniedError):
            await require_family_admin(mock_db_session, user, FAMILY_ID)
        assert await is_family_admin(mock_db_session, user, FAMILY_ID) is False

    @pytest.mark.asyncio
    async def test_no_family_is_never_admin(self, mock_db_session):
        assert await is_family_admin(mock_db_session, _user(), None) is False
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_superadmin_reads_any_family(self, mock_db_session):
        _returns(mock_db_session, None)
        assert await require_member_or_superadmin(mock_db_session, _user(UserRole.ADMIN), FAMILY_ID) is None

    @pytest.mark.asyncio
    async def test_member_or_superadmin_rejects_outsider(self, mock_db_session):
        _returns(mock_db_session, None)
        with pytest.raises(UnauthorizedError):
            await require_member_or_superadmin(mock_db_session, _user(), FAMILY_ID)


class TestFamilyRole:

    def test_capabilities(self):
        assert FamilyRole.ADMIN.can_write and FamilyRole.ADMIN.is_admin
        assert FamilyRole.EDITOR.can_write and not FamilyRole.EDITOR.is_admin
        assert not FamilyRole.READER.can_write and not FamilyRole.READER.is_admin
        assert FamilyRole.ADMIN.can_invite
        assert not FamilyRole.EDITOR.can_manage_roles
