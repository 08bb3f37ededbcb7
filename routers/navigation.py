# routers/navigation.py

from fastapi import APIRouter, Depends, HTTPException

from dependencies.auth import CurrentUser, get_authenticated_user, get_current_user
from core.errors import handle_supabase_error, require_client
from core.logging_config import logger
from core.navigation import get_navigation, get_switchable_roles, validate_role_switch
from core.cache import cache_delete_prefix
from core.supabase_client import get_supabase_client
from models.user import ActiveRoleUpdate

router = APIRouter(
    prefix="/navigation",
    tags=["Navigation"],
)


def count_unread_messages(client, user_id: str) -> int:
    result = (
        client.table("messages")
        .select("id", count="exact")
        .eq("recipient_id", user_id)
        .eq("is_read", False)
        .execute()
    )
    if result.count is not None:
        return result.count
    return len(result.data or [])


# -----------------------------------------------------
# GET /navigation
# -----------------------------------------------------
@router.get("/")
def navigation(current_user: CurrentUser = Depends(get_current_user)):
    """
    Bottom navigation for the effective user (impersonation aware).
    The Messages entry carries the unread count as its badge.
    """
    client = require_client(get_supabase_client())

    try:
        unread = count_unread_messages(client, current_user.id)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to count unread messages")

    items = get_navigation(current_user.roles, unread, current_user.active_role)
    return {
        "primary_role": current_user.primary_role,
        "is_impersonating": current_user.is_impersonating,
        "items": [item.model_dump() for item in items],
    }


# -----------------------------------------------------
# Permanent role switcher
# -----------------------------------------------------
@router.get("/role-switcher")
def role_switcher(current_user: CurrentUser = Depends(get_authenticated_user)):
    options = get_switchable_roles(current_user.roles)
    return {
        "available": bool(options),
        "current_role": current_user.primary_role,
        "options": options,
    }


@router.put("/active-role")
def switch_active_role(
    payload: ActiveRoleUpdate,
    current_user: CurrentUser = Depends(get_authenticated_user),
):
    """
    Persist which of operations_director / administrator a dual-role user
    acts as.
    """
    try:
        validate_role_switch(current_user.roles, payload.role)
    except ValueError as e:
        raise HTTPException(403, str(e))

    client = require_client(get_supabase_client())

    try:
        client.table("users").update({"active_role": payload.role}).eq("id", current_user.id).execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to switch role")

    cache_delete_prefix("rbac:")
    logger.info(f"User {current_user.id} switched active role to {payload.role}")

    return {
        "success": True,
        "active_role": payload.role,
        "items": [item.model_dump() for item in get_navigation(payload.role)],
    }
