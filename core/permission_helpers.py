from fastapi import Depends, HTTPException
from typing import Callable, Iterable

from dependencies.auth import get_current_user, CurrentUser
from core.permissions import check_permission


# -----------------------------------------------------
# Permission evaluation
# -----------------------------------------------------
def has_permission(user: CurrentUser, permission: str) -> bool:
    resource, _, action = permission.partition(":")
    return check_permission(user, resource, action or "*").granted


def require_permission(user: CurrentUser, permission: str):
    if not has_permission(user, permission):
        raise HTTPException(
            status_code=403,
            detail=f"Insufficient permissions: '{permission}' required",
        )


# -----------------------------------------------------
# FastAPI dependency wrapper
# -----------------------------------------------------
def requires_permission(permission: str):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_permission("work_orders:create"))])
    """

    def dependency(current_user: CurrentUser = Depends(get_current_user)):
        require_permission(current_user, permission)
        return current_user

    return dependency


# ============================================================
# ROLE PREDICATE GUARDS
# ============================================================

def require_predicate(user: CurrentUser, predicate: Callable[[Iterable[str]], bool], detail: str):
    """Raise 403 with `detail` unless `predicate(user.roles)` holds."""
    if not predicate(user.roles):
        raise HTTPException(status_code=403, detail=detail)


def requires_predicate(predicate: Callable[[Iterable[str]], bool], detail: str):
    def dependency(current_user: CurrentUser = Depends(get_current_user)):
        require_predicate(current_user, predicate, detail)
        return current_user

    return dependency
