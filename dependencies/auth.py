from typing import Optional, List
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from core.errors import require_client
from core.logging_config import logger
from core.roles import (
    get_primary_role,
    has_any_role,
    is_operations_director,
    is_valid_role_for_company_type,
    normalize_roles,
)
from core.supabase_client import get_supabase_client
from services.impersonation import impersonation_service


bearer_scheme = HTTPBearer()

USER_SELECT = "*, company:companies(id, name, type)"


# ============================================================
# Current User Model
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: str
    roles: List[str]
    primary_role: str

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    active_role: Optional[str] = None
    company_id: Optional[str] = None
    company_type: Optional[str] = None
    is_active: bool = True

    # Set when an operations director is acting as a test user
    is_impersonating: bool = False
    original_user_id: Optional[str] = None
    original_roles: Optional[List[str]] = None


def user_from_row(row: dict, **extra) -> CurrentUser:
    """Build a CurrentUser from a `users` row (optionally with embedded company)."""
    roles = normalize_roles(row.get("roles"))
    company = row.get("company") or {}
    return CurrentUser(
        id=row["id"],
        email=row.get("email") or "",
        roles=roles,
        primary_role=get_primary_role(roles, row.get("active_role")),
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        phone=row.get("phone"),
        active_role=row.get("active_role"),
        company_id=row.get("company_id"),
        company_type=company.get("type"),
        is_active=row.get("is_active", True) is not False,
        **extra,
    )


def fetch_user_row(client: Client, user_id: str) -> Optional[dict]:
    result = (
        client.table("users")
        .select(USER_SELECT)
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


# ============================================================
# AUTH DECODING (Supabase: validates JWT + loads profile)
# ============================================================
def get_authenticated_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:
    """
    The real, logged-in identity. Never affected by impersonation.
    """
    token = credentials.credentials

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    client: Client = require_client(get_supabase_client())

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
    except Exception as e:
        logger.debug(f"Token validation failed: {e}")
        raise unauthorized

    if not auth_resp or not auth_resp.user:
        raise unauthorized

    # ---------------------------------------------------------
    # Load profile row
    # ---------------------------------------------------------
    row = fetch_user_row(client, auth_resp.user.id)
    if not row:
        raise unauthorized

    if row.get("is_active") is False or row.get("is_suspended"):
        raise HTTPException(status_code=403, detail="Account is inactive or suspended")

    return user_from_row(row)


# ============================================================
# EFFECTIVE USER (applies impersonation)
# ============================================================
def get_current_user(
    user: CurrentUser = Depends(get_authenticated_user),
) -> CurrentUser:
    """
    The identity requests act as. While an operations director has an
    active impersonation session this is the impersonated test user.
    """
    context = impersonation_service.get_context(user.id)
    if not context:
        return user

    client = require_client(get_supabase_client())
    row = fetch_user_row(client, context.impersonated_user_id)
    if not row:
        logger.warning(
            f"Impersonated user {context.impersonated_user_id} no longer exists; "
            f"ending session for {user.id}"
        )
        impersonation_service.stop(user.id)
        return user

    return user_from_row(
        row,
        is_impersonating=True,
        original_user_id=user.id,
        original_roles=list(user.roles),
    )


# ============================================================
# ROLE CHECKER (basic role list guard)
# ============================================================
def requires_role(allowed_roles: list[str]):
    def checker(current_user: CurrentUser = Depends(get_current_user)):
        if not has_any_role(current_user.roles, allowed_roles):
            raise HTTPException(
                status_code=403,
                detail=f"Requires one of: {allowed_roles}",
            )
        return current_user
    return checker


# ============================================================
# HEADER-BASED ROLE TESTING
# ============================================================
class RoleTestingState(BaseModel):
    is_testing: bool
    original_role: str
    effective_role: str
    company_type: Optional[str] = None


def get_role_testing_state(
    user: CurrentUser = Depends(get_authenticated_user),
    x_testing_role: Optional[str] = Header(None),
    x_testing_company_type: Optional[str] = Header(None),
) -> RoleTestingState:
    """
    Read X-Testing-Role / X-Testing-Company-Type. Only honoured for
    operations directors and only when the role fits the company type.
    """
    original_role = user.primary_role

    testing = (
        x_testing_role
        and x_testing_company_type
        and is_operations_director(user.roles)
        and is_valid_role_for_company_type(x_testing_role, x_testing_company_type)
    )

    if not testing:
        return RoleTestingState(is_testing=False, original_role=original_role, effective_role=original_role)

    return RoleTestingState(
        is_testing=True,
        original_role=original_role,
        effective_role=x_testing_role,
        company_type=x_testing_company_type,
    )
