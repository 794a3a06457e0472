"""
Tests for the role registry (role_service), driven directly against a session.

These tests verify:
  - create then get returns the same name and an assigned id
  - Role names are unique on create and on rename
  - Unknown ids and names raise RoleNotFoundError
  - Deleting a role strips it from every user holding it
  - Implicit creation on first reference is idempotent
"""

import pytest
from sqlalchemy import select

from app.exceptions import DuplicateError, NotFoundError, RoleNotFoundError
from app.models.role import RoleName
from app.models.user import user_roles
from app.schemas.user import UserCreateRequest
from app.services import role_service, user_service


class TestCreateRole:

    @pytest.mark.parametrize("name", list(RoleName))
    async def test_create_then_get(self, db_session, name):
        """Every role kind round-trips through the registry with an id."""
        created = await role_service.create_role(db_session, name)
        fetched = await role_service.get_role(db_session, created.id)

        assert fetched.id is not None
        assert fetched.name == name

    async def test_duplicate_name_rejected(self, db_session):
        await role_service.create_role(db_session, RoleName.ADMIN)

        with pytest.raises(DuplicateError) as exc_info:
            await role_service.create_role(db_session, RoleName.ADMIN)

        assert exc_info.value.field == "name"
        assert "ADMIN" in exc_info.value.detail


class TestReadRole:

    async def test_get_missing_role(self, db_session):
        with pytest.raises(RoleNotFoundError) as exc_info:
            await role_service.get_role(db_session, 42)
        assert "42" in exc_info.value.detail

    async def test_get_by_name_missing_names_the_role(self, db_session):
        with pytest.raises(RoleNotFoundError) as exc_info:
            await role_service.get_role_by_name(db_session, RoleName.STUDENT)
        assert exc_info.value.detail == "Role not found: STUDENT"

    async def test_role_not_found_is_a_not_found_error(self, db_session):
        with pytest.raises(NotFoundError):
            await role_service.get_role(db_session, 1)

    async def test_list_roles_ordered_by_id(self, db_session):
        await role_service.create_role(db_session, RoleName.STUDENT)
        await role_service.create_role(db_session, RoleName.ADMIN)

        roles = await role_service.list_roles(db_session)

        assert [role.name for role in roles] == [RoleName.STUDENT, RoleName.ADMIN]
        assert roles[0].id < roles[1].id

    async def test_list_roles_empty_registry(self, db_session):
        assert await role_service.list_roles(db_session) == []


class TestUpdateRole:

    async def test_rename_to_free_name(self, db_session):
        role = await role_service.create_role(db_session, RoleName.INSTRUCTOR)

        renamed = await role_service.update_role(db_session, role.id, RoleName.STUDENT)

        assert renamed.id == role.id
        assert renamed.name == RoleName.STUDENT

    async def test_rename_to_own_name_is_noop(self, db_session):
        role = await role_service.create_role(db_session, RoleName.ADMIN)

        same = await role_service.update_role(db_session, role.id, RoleName.ADMIN)

        assert same.name == RoleName.ADMIN

    async def test_rename_to_taken_name_rejected(self, db_session):
        await role_service.create_role(db_session, RoleName.ADMIN)
        instructor = await role_service.create_role(db_session, RoleName.INSTRUCTOR)

        with pytest.raises(DuplicateError) as exc_info:
            await role_service.update_role(db_session, instructor.id, RoleName.ADMIN)

        assert exc_info.value.field == "name"
        # The rejected rename left the role untouched
        assert (await role_service.get_role(db_session, instructor.id)).name == RoleName.INSTRUCTOR

    async def test_update_missing_role(self, db_session):
        with pytest.raises(RoleNotFoundError):
            await role_service.update_role(db_session, 99, RoleName.ADMIN)


class TestDeleteRole:

    async def test_delete_then_get_fails(self, db_session):
        role = await role_service.create_role(db_session, RoleName.ADMIN)

        await role_service.delete_role(db_session, role.id)

        with pytest.raises(RoleNotFoundError):
            await role_service.get_role(db_session, role.id)

    async def test_delete_missing_role(self, db_session):
        with pytest.raises(RoleNotFoundError):
            await role_service.delete_role(db_session, 7)

    async def test_delete_strips_role_from_holders(self, db_session):
        """Users holding a deleted role keep their other roles and lose that one."""
        roles = {role.name: role for role in await role_service.ensure_roles(db_session)}
        user = await user_service.create_user(
            db_session,
            UserCreateRequest(
                full_name="Holder",
                username="holder",
                email="holder@example.com",
                password="HolderPass123!",
                roles={RoleName.ADMIN, RoleName.INSTRUCTOR},
            ),
        )

        await role_service.delete_role(db_session, roles[RoleName.INSTRUCTOR].id)

        assert {role.name for role in user.roles} == {RoleName.ADMIN}
        result = await db_session.execute(
            select(user_roles.c.role_id).where(user_roles.c.user_id == user.id)
        )
        assert set(result.scalars().all()) == {roles[RoleName.ADMIN].id}


class TestImplicitCreation:

    async def test_get_or_create_is_idempotent(self, db_session):
        first = await role_service.get_or_create_role(db_session, RoleName.STUDENT)
        second = await role_service.get_or_create_role(db_session, RoleName.STUDENT)

        assert first.id == second.id
        assert len(await role_service.list_roles(db_session)) == 1

    async def test_ensure_roles_provisions_every_kind(self, db_session):
        await role_service.ensure_roles(db_session)
        await role_service.ensure_roles(db_session)

        names = [role.name for role in await role_service.list_roles(db_session)]
        assert sorted(names) == sorted(RoleName)

    async def test_resolve_roles_fails_on_unprovisioned_name(self, db_session):
        await role_service.create_role(db_session, RoleName.ADMIN)

        with pytest.raises(RoleNotFoundError) as exc_info:
            await role_service.resolve_roles(db_session, [RoleName.ADMIN, RoleName.INSTRUCTOR])

        assert exc_info.value.name == "INSTRUCTOR"
