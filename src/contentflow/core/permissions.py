"""Role to permission mapping."""
from typing import Iterable, Union

from .models.user import UserRole

RoleLike = Union[UserRole, str]

CONTENT_VIEW = "content:view"
CONTENT_CREATE = "content:create"
CONTENT_EDIT = "content:edit"
CONTENT_DELETE = "content:delete"
CONTENT_PUBLISH = "content:publish"
CONTENT_COMMENT = "content:comment"
CONTENT_VERSION = "content:version"
CONTENT_VERSION_RESTORE = "content:version_restore"

APPROVAL_VIEW = "approval:view"
APPROVAL_CREATE = "approval:create"
APPROVAL_APPROVE = "approval:approve"
APPROVAL_REJECT = "approval:reject"

USER_VIEW = "user:view"
USER_CREATE = "user:create"
USER_EDIT = "user:edit"
USER_DELETE = "user:delete"
USER_ROLE_MANAGE = "user:role_manage"

PROJECT_VIEW = "project:view"
PROJECT_MANAGE = "project:manage"

SETTINGS_VIEW = "settings:view"
SETTINGS_EDIT = "settings:edit"
ANALYTICS_VIEW = "analytics:view"

_CONTRIBUTOR = {
    CONTENT_VIEW,
    CONTENT_CREATE,
    CONTENT_EDIT,
    CONTENT_COMMENT,
    CONTENT_VERSION,
    PROJECT_VIEW,
    PROJECT_MANAGE,
}

_MODERATOR = _CONTRIBUTOR | {
    CONTENT_DELETE,
    CONTENT_PUBLISH,
    CONTENT_VERSION_RESTORE,
    APPROVAL_VIEW,
    APPROVAL_CREATE,
    APPROVAL_APPROVE,
    APPROVAL_REJECT,
    USER_VIEW,
}

ROLE_PERMISSIONS: dict[UserRole, frozenset[str]] = {
    UserRole.VIEWER: frozenset({CONTENT_VIEW, CONTENT_COMMENT, PROJECT_VIEW}),
    UserRole.CONTRIBUTOR: frozenset(_CONTRIBUTOR),
    UserRole.MODERATOR: frozenset(_MODERATOR),
    UserRole.ADMIN: frozenset(
        _MODERATOR
        | {
            USER_CREATE,
            USER_EDIT,
            USER_DELETE,
            USER_ROLE_MANAGE,
            SETTINGS_VIEW,
            SETTINGS_EDIT,
            ANALYTICS_VIEW,
        }
    ),
}

ROLE_LEVELS: dict[UserRole, int] = {
    UserRole.VIEWER: 0,
    UserRole.CONTRIBUTOR: 1,
    UserRole.MODERATOR: 2,
    UserRole.ADMIN: 3,
}


def _as_role(role: RoleLike) -> UserRole:
    return role if isinstance(role, UserRole) else UserRole(role)


def permissions_for(role: RoleLike) -> frozenset[str]:
    return ROLE_PERMISSIONS.get(_as_role(role), frozenset())


def has_permission(role: RoleLike, permission: str) -> bool:
    return permission in permissions_for(role)


def has_any_permission(role: RoleLike, permissions: Iterable[str]) -> bool:
    granted = permissions_for(role)
    return any(permission in granted for permission in permissions)


def has_all_permissions(role: RoleLike, permissions: Iterable[str]) -> bool:
    granted = permissions_for(role)
    return all(permission in granted for permission in permissions)


def role_level(role: RoleLike) -> int:
    return ROLE_LEVELS[_as_role(role)]


def is_role_at_least(role: RoleLike, minimum: RoleLike) -> bool:
    """Check ``role`` against the viewer < contributor < moderator < admin ladder."""
    return role_level(role) >= role_level(minimum)
