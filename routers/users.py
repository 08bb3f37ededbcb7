# routers/users.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from dependencies.auth import get_current_user, CurrentUser
from core.audit import log_audit
from core.cache import cache_delete_prefix
from core.logging_config import logger
from core.roles import (
    ADMINISTRATOR,
    ALL_ROLES,
    CLIENT,
    CLIENT_COMPANY,
    FIELD_AGENT,
    OPERATIONS_DIRECTOR,
    can_delete_role,
    can_manage_users,
    can_onboard_admins,
    get_primary_role,
    get_roles_for_company_type,
    has_role,
    is_operations_director,
    normalize_roles,
)
from core.supabase_client import get_supabase_client
from core.utils import sanitize, utcnow_iso
from models.user import CONTACT_FIELDS, STATUS_FIELDS, UserOnboard, UserSummary, UserUpdate

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)

PUBLIC_USER_FIELDS = "id, first_name, last_name, roles, company_id"
ADMIN_ONLY_ROLES = {OPERATIONS_DIRECTOR, ADMINISTRATOR}


def fetch_user(client, user_id: str) -> dict:
    result = client.table("users").select("*").eq("id", user_id).limit(1).execute()
    if not result.data:
        raise HTTPException(404, "User not found")
    return result.data[0]


def allowed_roles_for_company(company_type: str) -> list:
    roles = get_roles_for_company_type(company_type)
    if company_type == CLIENT_COMPANY:
        roles.append(CLIENT)
    return roles


# ============================================================
# Reads
# ============================================================
@router.get("/me")
def get_me(current_user: CurrentUser = Depends(get_current_user)):
    return current_user.model_dump()


@router.get("/")
def list_users(
    company_id: Optional[str] = Query(None, description="Operations Directors only: filter by company"),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Team managers get full rows; everyone else gets names and roles only.
    Results are scoped to the caller's company except for operations
    directors.
    """
    client = get_supabase_client()
    full_view = can_manage_users(current_user.roles)
    actor_is_od = is_operations_director(current_user.roles)
    if not actor_is_od and not current_user.company_id:
        return []

    try:
        query = client.table("users").select("*" if full_view else PUBLIC_USER_FIELDS)

        if not actor_is_od:
            query = query.eq("company_id", current_user.company_id)
        elif company_id:
            query = query.eq("company_id", company_id)

        result = query.order("last_name").execute()
    except Exception as e:
        logger.error(f"Failed to list users: {e}")
        raise HTTPException(500, f"Failed to list users: {str(e)}")

    rows = result.data or []
    if full_view:
        return rows
    return [UserSummary(**{k: r.get(k) for k in UserSummary.model_fields}).model_dump() for r in rows]


@router.get("/field-agents")
def list_field_agents(current_user: CurrentUser = Depends(get_current_user)):
    """Agents available for assignment."""
    client = get_supabase_client()
    actor_is_od = is_operations_director(current_user.roles)
    if not actor_is_od and not current_user.company_id:
        return []

    try:
        query = (
            client.table("users")
            .select(PUBLIC_USER_FIELDS + ", email, phone, skills")
            .contains("roles", [FIELD_AGENT])
            .eq("is_active", True)
        )
        if not actor_is_od:
            query = query.eq("company_id", current_user.company_id)
        result = query.order("last_name").execute()
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list field agents: {e}")
        raise HTTPException(500, f"Failed to list field agents: {str(e)}")


@router.get("/role/{role}")
def list_users_by_role(role: str, current_user: CurrentUser = Depends(get_current_user)):
    if role not in ALL_ROLES:
        raise HTTPException(400, f"Unknown role: {role}")
    if not (can_manage_users(current_user.roles) or is_operations_director(current_user.roles)):
        raise HTTPException(403, "Insufficient permissions")

    client = get_supabase_client()

    try:
        result = client.table("users").select("*").contains("roles", [role]).order("last_name").execute()
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list users with role {role}: {e}")
        raise HTTPException(500, f"Failed to list users: {str(e)}")


# ============================================================
# Onboarding (Supabase Auth + profile row)
# ============================================================
@router.post("/onboard")
def onboard_user(payload: UserOnboard, current_user: CurrentUser = Depends(get_current_user)):
    """
    Add a team member.

    **Permissions:**
    - Operations Director: any role, any company
    - Administrator: non-administrator roles in their own company
    """
    roles = normalize_roles(payload.roles)
    if not roles or len(roles) != len(payload.roles):
        raise HTTPException(400, f"Invalid roles: {payload.roles}")

    actor_is_od = is_operations_director(current_user.roles)
    if ADMIN_ONLY_ROLES.intersection(roles) and not can_onboard_admins(current_user.roles):
        raise HTTPException(403, "Only Operations Directors can onboard administrators")
    if not actor_is_od and not has_role(current_user.roles, ADMINISTRATOR):
        raise HTTPException(403, "Only administrators can onboard users and assign roles")

    client = get_supabase_client()

    company_id = payload.company_id or current_user.company_id
    if not actor_is_od and company_id != current_user.company_id:
        raise HTTPException(403, "Administrators can only onboard users into their own company")

    if OPERATIONS_DIRECTOR in roles:
        company_id = None
    else:
        if not company_id:
            raise HTTPException(400, "company_id is required")
        company = client.table("companies").select("id, type").eq("id", company_id).limit(1).execute()
        if not company.data:
            raise HTTPException(400, f"Company {company_id} does not exist")
        allowed = allowed_roles_for_company(company.data[0]["type"])
        invalid = [r for r in roles if r not in allowed]
        if invalid:
            raise HTTPException(400, f"Roles {invalid} are not valid for {company.data[0]['type']} companies")

    create_payload = {
        "email": payload.email,
        "email_confirm": bool(payload.password),
        "user_metadata": {"first_name": payload.first_name, "last_name": payload.last_name},
    }
    if payload.password:
        create_payload["password"] = payload.password

    try:
        user_resp = client.auth.admin.create_user(create_payload)
    except Exception as e:
        raise HTTPException(500, f"Supabase user creation failed: {e}")

    new_user_id = getattr(user_resp.user, "id", None)
    if not new_user_id:
        raise HTTPException(500, "Supabase did not return a user id")

    if not payload.password:
        try:
            client.auth.admin.invite_user_by_email(payload.email)
        except Exception as e:
            if "already registered" not in str(e).lower():
                raise HTTPException(500, f"Failed to send invite email: {e}")

    profile = sanitize({
        "id": new_user_id,
        "email": payload.email,
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "phone": payload.phone,
        "company_id": company_id,
        "is_active": True,
        "is_suspended": False,
    })
    profile["roles"] = roles
    profile["skills"] = payload.skills or []

    try:
        result = client.table("users").insert(profile, returning="representation").execute()
    except Exception as e:
        logger.error(f"Failed to create profile for {new_user_id}: {e}")
        raise HTTPException(500, f"Failed to create user profile: {str(e)}")

    log_audit("user_action", new_user_id, "created", current_user.id, new_state={"roles": roles, "company_id": company_id})
    logger.info(f"User {new_user_id} onboarded by {current_user.id} with roles {roles}")
    return {"success": True, "data": result.data[0] if result.data else profile}


# ============================================================
# Update
# ============================================================
@router.patch("/{user_id}")
def update_user(user_id: str, payload: UserUpdate, current_user: CurrentUser = Depends(get_current_user)):
    """
    - Nobody changes their own roles or status
    - Roles: administrators and operations directors
    - Status (active/suspended): team managers
    - Contact info: team managers, or the user themselves
    """
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(400, "No fields to update")

    is_self = user_id == current_user.id
    actor_roles = current_user.roles
    touching_roles = "roles" in updates
    touching_status = bool(STATUS_FIELDS.intersection(updates))
    touching_contact = bool(CONTACT_FIELDS.intersection(updates))

    if is_self and (touching_roles or touching_status):
        raise HTTPException(403, "You cannot change your own roles or status")

    if touching_roles:
        if not (has_role(actor_roles, ADMINISTRATOR) or is_operations_director(actor_roles)):
            raise HTTPException(403, "Only administrators can assign roles")
        new_roles = normalize_roles(updates["roles"])
        if not new_roles or len(new_roles) != len(updates["roles"]):
            raise HTTPException(400, f"Invalid roles: {updates['roles']}")
        if ADMIN_ONLY_ROLES.intersection(new_roles) and not can_onboard_admins(actor_roles):
            raise HTTPException(403, "Only Operations Directors can grant administrator roles")
        updates["roles"] = new_roles

    if touching_status and not can_manage_users(actor_roles):
        raise HTTPException(403, "Insufficient permissions to change user status")

    if touching_contact and not (is_self or can_manage_users(actor_roles)):
        raise HTTPException(403, "Insufficient permissions to update this user")

    client = get_supabase_client()
    existing = fetch_user(client, user_id)

    if not is_self and not is_operations_director(actor_roles) and existing.get("company_id") != current_user.company_id:
        raise HTTPException(403, "You can only manage users in your own company")

    clean = sanitize({k: v for k, v in updates.items() if k != "roles"})
    if "roles" in updates:
        clean["roles"] = updates["roles"]
    clean["updated_at"] = utcnow_iso()

    try:
        result = client.table("users").update(clean).eq("id", user_id).execute()
    except Exception as e:
        logger.error(f"Failed to update user {user_id}: {e}")
        raise HTTPException(500, f"Failed to update user: {str(e)}")

    if touching_roles:
        cache_delete_prefix("rbac:")

    log_audit(
        "user_action", user_id, "updated", current_user.id,
        previous_state={k: existing.get(k) for k in updates},
        new_state=clean,
    )
    return result.data[0] if result.data else {**existing, **clean}


# ============================================================
# Delete
# ============================================================
@router.delete("/{user_id}")
def delete_user(user_id: str, current_user: CurrentUser = Depends(get_current_user)):
    if user_id == current_user.id:
        raise HTTPException(400, "You cannot delete your own account.")

    if not can_manage_users(current_user.roles):
        raise HTTPException(403, "Insufficient permissions to delete users")

    client = get_supabase_client()
    target = fetch_user(client, user_id)
    target_role = get_primary_role(target.get("roles"))

    if not can_delete_role(current_user.roles, target_role):
        raise HTTPException(403, f"You do not have permission to delete a {target_role.replace('_', ' ')}")

    try:
        client.table("users").delete().eq("id", user_id).execute()
        client.auth.admin.delete_user(user_id)
    except Exception as e:
        logger.error(f"Failed to delete user {user_id}: {e}")
        raise HTTPException(500, f"Supabase delete error: {e}")

    log_audit("user_action", user_id, "deleted", current_user.id, previous_state=target)
    return {"success": True, "data": {"user_id": user_id}}
