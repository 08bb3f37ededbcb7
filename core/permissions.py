# core/permissions.py

"""
Resource/action RBAC.

Permissions are "resource:action" strings. "*" grants everything and
"resource:*" grants every action on one resource.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel

from core.cache import cache_get, cache_set
from core.config import settings
from core.logging_config import logger
from core.roles import (
    ADMINISTRATOR,
    ALL_ROLES,
    CLIENT,
    CLIENT_COMPANY_ADMIN,
    DISPATCHER,
    FIELD_AGENT,
    FIELD_ENGINEER,
    MANAGER,
    OPERATIONS_DIRECTOR,
    PROJECT_MANAGER,
    ROLE_DISPLAY_NAMES,
    ROLE_LEVELS,
    get_primary_role,
    normalize_roles,
)


# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
ROLE_PERMISSIONS: Dict[str, List[str]] = {

    # Global access across every company
    OPERATIONS_DIRECTOR: ["*"],

    # =====================================================
    # SERVICE COMPANY ROLES
    # =====================================================
    ADMINISTRATOR: [
        "work_orders:*",
        "users:*",
        "companies:read",
        "reports:*",
        "messages:*",
        "documents:*",
        "time_entries:*",
        "budgets:*",
        "payments:*",
        "onboarding:*",
        "audit:read",
    ],

    PROJECT_MANAGER: [
        "work_orders:*",
        "users:read", "users:update",
        "reports:read",
        "messages:*",
        "documents:*",
        "budgets:read",
        "onboarding:read",
    ],

    MANAGER: [
        "work_orders:*",
        "users:read", "users:update",
        "reports:read",
        "messages:*",
        "documents:*",
        "time_entries:read",
        "budgets:read",
    ],

    DISPATCHER: [
        "work_orders:read", "work_orders:update", "work_orders:assign",
        "users:read",
        "messages:*",
        "documents:read",
    ],

    FIELD_ENGINEER: [
        "work_orders:read", "work_orders:update",
        "messages:*",
        "documents:*",
        "time_entries:*",
        "budgets:read",
    ],

    FIELD_AGENT: [
        "work_orders:read", "work_orders:update",
        "messages:*",
        "documents:read", "documents:create",
        "time_entries:*",
    ],

    # =====================================================
    # CLIENT COMPANY ROLES
    # =====================================================
    CLIENT_COMPANY_ADMIN: [
        "work_orders:create", "work_orders:read",
        "users:read",
        "messages:*",
        "documents:read",
    ],

    CLIENT: [
        "work_orders:create", "work_orders:read",
        "messages:*",
    ],
}


class PermissionCheck(BaseModel):
    granted: bool
    reason: str
    bypass_used: bool = False
    applied_role: str


def permission_matches(granted: str, required: str) -> bool:
    """True when the granted permission string covers `required`."""
    if granted == "*" or granted == required:
        return True

    g_resource, _, g_action = granted.partition(":")
    r_resource, _, _ = required.partition(":")
    return g_action == "*" and g_resource == r_resource


def role_has_permission(role: str, permission: str) -> bool:
    return any(permission_matches(p, permission) for p in ROLE_PERMISSIONS.get(role, []))


def get_role_permissions(role: str) -> List[str]:
    return list(ROLE_PERMISSIONS.get(role, []))


def _cache_key(roles: List[str], active_role: Optional[str], impersonating: bool, permission: str) -> str:
    return f"rbac:{','.join(sorted(roles))}:{active_role or '-'}:{int(impersonating)}:{permission}"


def check_permission(user, resource: str, action: str) -> PermissionCheck:
    """
    Decide whether `user` may perform `action` on `resource`.

    `user` is anything with `roles`, `active_role` and `is_impersonating`
    attributes (normally `CurrentUser`). The decision is made for the
    user's primary role; an operations director who is not impersonating
    bypasses the table entirely.
    """
    permission = f"{resource}:{action}"
    roles = normalize_roles(getattr(user, "roles", None))
    active_role = getattr(user, "active_role", None)
    impersonating = bool(getattr(user, "is_impersonating", False))

    key = _cache_key(roles, active_role, impersonating, permission)
    cached = cache_get(key)
    if cached is not None:
        return cached

    role = get_primary_role(roles, active_role)

    if OPERATIONS_DIRECTOR in roles and not impersonating:
        result = PermissionCheck(
            granted=True,
            reason="Operations Director global bypass",
            bypass_used=True,
            applied_role=OPERATIONS_DIRECTOR,
        )
    elif role_has_permission(role, permission):
        result = PermissionCheck(
            granted=True,
            reason=f"Role '{role}' grants '{permission}'",
            applied_role=role,
        )
    else:
        result = PermissionCheck(
            granted=False,
            reason=f"Role '{role}' lacks '{permission}'",
            applied_role=role,
        )

    cache_set(key, result, settings.PERMISSION_CACHE_TTL_SECONDS)
    logger.debug(f"RBAC {permission} for roles={roles}: {result.reason}")
    return result


def generate_permission_report(user) -> dict:
    """Snapshot of the role table plus the given user's effective grants."""
    roles = normalize_roles(getattr(user, "roles", None))
    primary = get_primary_role(roles, getattr(user, "active_role", None))

    return {
        "user_id": getattr(user, "id", None),
        "roles": roles,
        "primary_role": primary,
        "effective_permissions": ["*"] if OPERATIONS_DIRECTOR in roles else get_role_permissions(primary),
        "role_table": [
            {
                "role": role,
                "name": ROLE_DISPLAY_NAMES[role],
                "level": ROLE_LEVELS[role],
                "permissions": get_role_permissions(role),
            }
            for role in ALL_ROLES
        ],
    }
