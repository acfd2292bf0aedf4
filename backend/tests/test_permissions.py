import logging

import pytest

from class_management.permissions import (
    PERMISSIONS,
    Allow,
    CallerIdentity,
    Deny,
    Permission,
    Role,
    can_view_user,
    decide,
    decide_owner_or_admin,
    has_permission,
    is_admin,
    required_roles,
    visible_roles,
)


def caller(role, user_id=1):
    return CallerIdentity(id=user_id, email=f"{role}@example.com", role=Role(role))


@pytest.mark.parametrize("permission", list(Permission))
@pytest.mark.parametrize("role", list(Role))
def test_has_permission_matches_table(role, permission):
    assert has_permission(role, permission) == (role in PERMISSIONS[permission])


def test_every_permission_has_an_entry():
    assert set(PERMISSIONS) == set(Permission)


@pytest.mark.parametrize("permission", list(Permission))
def test_superadmin_holds_every_permission(permission):
    assert Role.SUPERADMIN in PERMISSIONS[permission]


def test_string_role_and_permission_names_are_accepted():
    assert has_permission("teacher", "VIEW_STUDENTS")
    assert not has_permission("student", "VIEW_STUDENTS")


def test_unknown_permission_denies_and_logs(caplog):
    with caplog.at_level(logging.ERROR, logger="class_management.permissions"):
        assert not has_permission(Role.SUPERADMIN, "LAUNCH_ROCKETS")
    assert "Unknown permission" in caplog.text


def test_permission_missing_from_injected_table_denies():
    table = {Permission.VIEW_CLASSES: frozenset({Role.SUPERADMIN})}
    assert not has_permission(Role.SUPERADMIN, Permission.VIEW_STUDENTS, table)
    assert has_permission(Role.SUPERADMIN, Permission.VIEW_CLASSES, table)


def test_unknown_role_denies():
    assert not has_permission("janitor", Permission.VIEW_CLASSES)


def test_table_is_read_only():
    with pytest.raises(TypeError):
        PERMISSIONS[Permission.VIEW_STUDENTS] = frozenset(Role)


def test_required_roles_follow_role_order():
    assert required_roles(Permission.VIEW_STUDENTS) == (Role.SUPERADMIN, Role.ADMIN, Role.TEACHER)
    assert required_roles(Permission.MANAGE_ROLES) == (Role.SUPERADMIN,)


def test_visible_roles():
    assert visible_roles(Role.SUPERADMIN) == frozenset(Role)
    assert visible_roles(Role.ADMIN) == {Role.TEACHER, Role.STUDENT}
    assert visible_roles(Role.TEACHER) == {Role.STUDENT}
    assert visible_roles(Role.STUDENT) == frozenset()


def test_only_superadmin_sees_other_admins():
    assert can_view_user(caller(Role.SUPERADMIN), 2, Role.ADMIN)
    assert not can_view_user(caller(Role.ADMIN), 2, Role.ADMIN)
    assert can_view_user(caller(Role.ADMIN, user_id=2), 2, Role.ADMIN)


def test_is_admin():
    assert is_admin(Role.SUPERADMIN)
    assert is_admin("admin")
    assert not is_admin(Role.TEACHER)


class TestDecide:
    def test_non_holder_is_denied_with_payload(self):
        decision = decide(caller(Role.STUDENT), Permission.CREATE_CLASSES)
        assert isinstance(decision, Deny)
        assert not decision.allowed
        assert decision.required_roles == (Role.SUPERADMIN, Role.ADMIN)
        assert decision.current_role == Role.STUDENT
        assert decision.permission == Permission.CREATE_CLASSES

    def test_holder_without_owner_is_allowed(self):
        assert isinstance(decide(caller(Role.TEACHER), Permission.VIEW_CLASSES), Allow)

    def test_owner_is_allowed(self):
        decision = decide(caller(Role.TEACHER, user_id=7), Permission.UPDATE_LESSON_PLANS, resource_owner_id=7)
        assert decision.allowed

    def test_non_owner_is_denied(self):
        decision = decide(caller(Role.TEACHER, user_id=7), Permission.UPDATE_LESSON_PLANS, resource_owner_id=8)
        assert isinstance(decision, Deny)
        assert decision.reason == "You can only manage your own resources"
        assert decision.current_role == Role.TEACHER

    def test_scoped_resource_without_owner_belongs_to_nobody(self):
        decision = decide(caller(Role.TEACHER), Permission.UPDATE_CLASSES, None, ownership_scoped=True)
        assert isinstance(decision, Deny)

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.SUPERADMIN])
    def test_admins_bypass_ownership(self, role):
        decision = decide(caller(role), Permission.UPDATE_LESSON_PLANS, resource_owner_id=99, ownership_scoped=True)
        assert isinstance(decision, Allow)

    def test_injected_table_is_used(self):
        table = {Permission.VIEW_CLASSES: frozenset({Role.SUPERADMIN})}
        decision = decide(caller(Role.ADMIN), Permission.VIEW_CLASSES, table=table)
        assert isinstance(decision, Deny)
        assert decision.required_roles == (Role.SUPERADMIN,)


class TestOwnerOrAdmin:
    def test_owner_passes_regardless_of_table(self):
        assert decide_owner_or_admin(caller(Role.STUDENT, user_id=3), 3).allowed

    def test_admin_passes(self):
        assert decide_owner_or_admin(caller(Role.ADMIN, user_id=1), 3).allowed

    def test_other_user_is_denied(self):
        decision = decide_owner_or_admin(caller(Role.TEACHER, user_id=1), 3)
        assert isinstance(decision, Deny)
        assert decision.required_roles == (Role.SUPERADMIN, Role.ADMIN)

    def test_missing_owner_is_denied(self):
        assert not decide_owner_or_admin(caller(Role.STUDENT), None).allowed
