"""Roles, the permission table and the access decision.

The table is a closed, read-only mapping built at import time. ``decide`` is
a pure function over (caller, permission, resource owner) so it can be
exercised without an HTTP request.
"""
import enum
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping


logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"

    def __str__(self) -> str:
        return self.value


class Permission(str, enum.Enum):
    VIEW_STUDENTS = "VIEW_STUDENTS"
    CREATE_STUDENTS = "CREATE_STUDENTS"
    UPDATE_STUDENTS = "UPDATE_STUDENTS"
    DELETE_STUDENTS = "DELETE_STUDENTS"

    VIEW_TEACHERS = "VIEW_TEACHERS"
    CREATE_TEACHERS = "CREATE_TEACHERS"
    UPDATE_TEACHERS = "UPDATE_TEACHERS"
    DELETE_TEACHERS = "DELETE_TEACHERS"

    VIEW_CLASSES = "VIEW_CLASSES"
    CREATE_CLASSES = "CREATE_CLASSES"
    UPDATE_CLASSES = "UPDATE_CLASSES"
    DELETE_CLASSES = "DELETE_CLASSES"

    VIEW_ENROLLMENTS = "VIEW_ENROLLMENTS"
    CREATE_ENROLLMENTS = "CREATE_ENROLLMENTS"
    UPDATE_ENROLLMENTS = "UPDATE_ENROLLMENTS"
    DELETE_ENROLLMENTS = "DELETE_ENROLLMENTS"

    VIEW_USERS = "VIEW_USERS"
    CREATE_USERS = "CREATE_USERS"
    UPDATE_USERS = "UPDATE_USERS"
    DELETE_USERS = "DELETE_USERS"

    VIEW_MESSAGES = "VIEW_MESSAGES"
    CREATE_MESSAGES = "CREATE_MESSAGES"
    DELETE_MESSAGES = "DELETE_MESSAGES"

    VIEW_ANALYTICS = "VIEW_ANALYTICS"

    VIEW_SCHOOLS = "VIEW_SCHOOLS"
    MANAGE_SCHOOLS = "MANAGE_SCHOOLS"
    VIEW_BRANCHES = "VIEW_BRANCHES"
    MANAGE_BRANCHES = "MANAGE_BRANCHES"

    VIEW_LESSON_PLANS = "VIEW_LESSON_PLANS"
    CREATE_LESSON_PLANS = "CREATE_LESSON_PLANS"
    UPDATE_LESSON_PLANS = "UPDATE_LESSON_PLANS"
    DELETE_LESSON_PLANS = "DELETE_LESSON_PLANS"

    VIEW_ALL_USERS = "VIEW_ALL_USERS"
    VIEW_ADMINS = "VIEW_ADMINS"
    MANAGE_ROLES = "MANAGE_ROLES"
    VIEW_SYSTEM_STATS = "VIEW_SYSTEM_STATS"

    def __str__(self) -> str:
        return self.value


SUPERADMIN_ONLY = frozenset({Role.SUPERADMIN})
ADMINS = frozenset({Role.SUPERADMIN, Role.ADMIN})
STAFF = frozenset({Role.SUPERADMIN, Role.ADMIN, Role.TEACHER})
EVERYONE = frozenset(Role)

PERMISSIONS: Mapping[Permission, frozenset[Role]] = MappingProxyType(
    {
        Permission.VIEW_STUDENTS: STAFF,
        Permission.CREATE_STUDENTS: ADMINS,
        Permission.UPDATE_STUDENTS: ADMINS,
        Permission.DELETE_STUDENTS: ADMINS,
        Permission.VIEW_TEACHERS: STAFF,
        Permission.CREATE_TEACHERS: ADMINS,
        Permission.UPDATE_TEACHERS: ADMINS,
        Permission.DELETE_TEACHERS: ADMINS,
        Permission.VIEW_CLASSES: EVERYONE,
        Permission.CREATE_CLASSES: ADMINS,
        # teachers only for classes they own
        Permission.UPDATE_CLASSES: STAFF,
        Permission.DELETE_CLASSES: ADMINS,
        # students only see their own
        Permission.VIEW_ENROLLMENTS: EVERYONE,
        Permission.CREATE_ENROLLMENTS: STAFF,
        Permission.UPDATE_ENROLLMENTS: ADMINS,
        Permission.DELETE_ENROLLMENTS: STAFF,
        Permission.VIEW_USERS: ADMINS,
        Permission.CREATE_USERS: ADMINS,
        Permission.UPDATE_USERS: ADMINS,
        Permission.DELETE_USERS: ADMINS,
        Permission.VIEW_MESSAGES: EVERYONE,
        Permission.CREATE_MESSAGES: EVERYONE,
        # plus the sender of the message
        Permission.DELETE_MESSAGES: ADMINS,
        Permission.VIEW_ANALYTICS: STAFF,
        Permission.VIEW_SCHOOLS: STAFF,
        Permission.MANAGE_SCHOOLS: ADMINS,
        Permission.VIEW_BRANCHES: STAFF,
        Permission.MANAGE_BRANCHES: ADMINS,
        Permission.VIEW_LESSON_PLANS: STAFF,
        Permission.CREATE_LESSON_PLANS: STAFF,
        Permission.UPDATE_LESSON_PLANS: STAFF,
        Permission.DELETE_LESSON_PLANS: STAFF,
        Permission.VIEW_ALL_USERS: STAFF,
        Permission.VIEW_ADMINS: SUPERADMIN_ONLY,
        Permission.MANAGE_ROLES: SUPERADMIN_ONLY,
        Permission.VIEW_SYSTEM_STATS: SUPERADMIN_ONLY,
    }
)

VISIBLE_ROLES: Mapping[Role, frozenset[Role]] = MappingProxyType(
    {
        Role.SUPERADMIN: EVERYONE,
        Role.ADMIN: frozenset({Role.TEACHER, Role.STUDENT}),
        Role.TEACHER: frozenset({Role.STUDENT}),
        Role.STUDENT: frozenset(),
    }
)


@dataclass(frozen=True)
class CallerIdentity:
    id: int
    email: str
    role: Role
    phone_verified: bool = False
    user: Any = None

    @classmethod
    def from_user(cls, user: Any) -> "CallerIdentity":
        return cls(
            id=user.id,
            email=user.email,
            role=Role(user.role),
            phone_verified=bool(user.phone_verified),
            user=user,
        )


@dataclass(frozen=True)
class Allow:
    allowed = True


@dataclass(frozen=True)
class Deny:
    reason: str
    required_roles: tuple[Role, ...] = ()
    current_role: Role | None = None
    permission: Permission | None = None
    allowed = False


Decision = Allow | Deny


def to_role(value: Any) -> Role | None:
    try:
        return Role(value)
    except ValueError:
        return None


def _lookup(permission: Any, table: Mapping[Permission, frozenset[Role]]) -> frozenset[Role] | None:
    try:
        key = Permission(permission)
    except ValueError:
        key = None
    roles = table.get(key) if key is not None else None
    if roles is None:
        logger.error(f"Unknown permission: {permission!r}")
    return roles


def has_permission(
    role: Any, permission: Any, table: Mapping[Permission, frozenset[Role]] = PERMISSIONS
) -> bool:
    """True when ``role`` is in the role set for ``permission``. Unknown permissions deny."""
    roles = _lookup(permission, table)
    if roles is None:
        return False
    return to_role(role) in roles


def required_roles(permission: Any, table: Mapping[Permission, frozenset[Role]] = PERMISSIONS) -> tuple[Role, ...]:
    roles = table.get(to_permission(permission), frozenset())
    return tuple(role for role in Role if role in roles)


def to_permission(value: Any) -> Permission | None:
    try:
        return Permission(value)
    except ValueError:
        return None


def is_admin(role: Any) -> bool:
    return to_role(role) in ADMINS


def visible_roles(role: Any) -> frozenset[Role]:
    return VISIBLE_ROLES.get(to_role(role), frozenset())


def can_view_user(caller: CallerIdentity, target_id: int, target_role: Any) -> bool:
    return caller.id == target_id or to_role(target_role) in visible_roles(caller.role)


def decide(
    caller: CallerIdentity,
    permission: Any,
    resource_owner_id: int | None = None,
    table: Mapping[Permission, frozenset[Role]] = PERMISSIONS,
    *,
    ownership_scoped: bool = False,
) -> Decision:
    """Decide whether ``caller`` may perform ``permission``.

    Ownership applies to non-admin holders when ``ownership_scoped`` is set or a
    ``resource_owner_id`` is given: the caller must be the owner. A resource
    without an owner is owned by nobody.
    """
    if not has_permission(caller.role, permission, table):
        return Deny(
            reason="You do not have permission to perform this action",
            required_roles=required_roles(permission, table),
            current_role=caller.role,
            permission=to_permission(permission),
        )
    if is_admin(caller.role):
        return Allow()
    if (ownership_scoped or resource_owner_id is not None) and resource_owner_id != caller.id:
        return Deny(
            reason="You can only manage your own resources",
            required_roles=required_roles(permission, table),
            current_role=caller.role,
            permission=to_permission(permission),
        )
    return Allow()


def decide_owner_or_admin(caller: CallerIdentity, owner_id: int | None) -> Decision:
    if is_admin(caller.role):
        return Allow()
    if owner_id is not None and owner_id == caller.id:
        return Allow()
    return Deny(
        reason="You can only access your own resources or you must be an admin",
        required_roles=tuple(role for role in Role if role in ADMINS),
        current_role=caller.role,
    )
