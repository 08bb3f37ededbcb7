# routers/companies.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from dependencies.auth import get_current_user, CurrentUser
from core.audit import log_audit
from core.logging_config import logger
from core.permission_helpers import requires_predicate
from core.roles import ADMINISTRATOR, can_manage_companies, has_role, is_operations_director
from core.supabase_client import get_supabase_client
from core.utils import sanitize, utcnow_iso
from models.company import CompanyCreate, CompanyRead, CompanyUpdate
from models.enums import CompanyType
from services.team_reports import ACTIVE_ORDER_STATUSES

router = APIRouter(
    prefix="/companies",
    tags=["Companies"],
)

requires_company_manager = requires_predicate(
    can_manage_companies, "Only Operations Directors can manage companies"
)


def fetch_company(client, company_id: str) -> dict:
    result = client.table("companies").select("*").eq("id", company_id).limit(1).execute()
    if not result.data:
        raise HTTPException(404, "Company not found")
    return result.data[0]


def ensure_can_read_company(user: CurrentUser, company_id: str):
    """Operations directors read any company; administrators only their own."""
    if is_operations_director(user.roles):
        return
    if has_role(user.roles, ADMINISTRATOR) and user.company_id == company_id:
        return
    raise HTTPException(403, "Not authorized to view this company")


# -----------------------------------------------------
# LIST
# -----------------------------------------------------
@router.get("/", response_model=List[CompanyRead])
def list_companies(
    type: Optional[CompanyType] = Query(None, description="Filter by company type"),
    current_user: CurrentUser = Depends(get_current_user),
):
    client = get_supabase_client()

    if not is_operations_director(current_user.roles):
        if not has_role(current_user.roles, ADMINISTRATOR) or not current_user.company_id:
            raise HTTPException(403, "Not authorized to list companies")
        return [fetch_company(client, current_user.company_id)]

    try:
        query = client.table("companies").select("*")
        if type:
            query = query.eq("type", str(type))
        result = query.order("name").execute()
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list companies: {e}")
        raise HTTPException(500, f"Failed to list companies: {str(e)}")


# -----------------------------------------------------
# CREATE
# -----------------------------------------------------
@router.post("/", response_model=CompanyRead)
def create_company(
    payload: CompanyCreate,
    current_user: CurrentUser = Depends(requires_company_manager),
):
    client = get_supabase_client()
    data = sanitize(payload.model_dump(mode="json"))

    existing = client.table("companies").select("id").eq("name", data["name"]).limit(1).execute()
    if existing.data:
        raise HTTPException(400, f"Company '{data['name']}' already exists")

    data["is_active"] = True

    try:
        result = client.table("companies").insert(data, returning="representation").execute()
    except Exception as e:
        logger.error(f"Failed to create company: {e}")
        raise HTTPException(500, f"Failed to create company: {str(e)}")

    if not result.data:
        raise HTTPException(500, "Insert returned no data")

    company = result.data[0]
    log_audit("company", company["id"], "created", current_user.id, new_state=company)
    return company


# -----------------------------------------------------
# READ
# -----------------------------------------------------
@router.get("/{company_id}", response_model=CompanyRead)
def get_company(company_id: str, current_user: CurrentUser = Depends(get_current_user)):
    ensure_can_read_company(current_user, company_id)
    return fetch_company(get_supabase_client(), company_id)


@router.get("/{company_id}/stats")
def company_stats(company_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """Headcount and work order totals for one company."""
    ensure_can_read_company(current_user, company_id)
    client = get_supabase_client()
    company = fetch_company(client, company_id)

    try:
        users = client.table("users").select("id, roles, is_active").eq("company_id", company_id).execute().data or []
        orders = client.table("work_orders").select("id, status").eq("company_id", company_id).execute().data or []
    except Exception as e:
        logger.error(f"Failed to load stats for company {company_id}: {e}")
        raise HTTPException(500, f"Failed to load company stats: {str(e)}")

    return {
        "company_id": company_id,
        "name": company.get("name"),
        "type": company.get("type"),
        "total_users": len(users),
        "active_users": sum(1 for u in users if u.get("is_active", True)),
        "total_work_orders": len(orders),
        "active_work_orders": sum(1 for o in orders if o.get("status") in ACTIVE_ORDER_STATUSES),
        "completed_work_orders": sum(1 for o in orders if o.get("status") == "completed"),
    }


# -----------------------------------------------------
# UPDATE
# -----------------------------------------------------
@router.patch("/{company_id}", response_model=CompanyRead)
def update_company(
    company_id: str,
    payload: CompanyUpdate,
    current_user: CurrentUser = Depends(requires_company_manager),
):
    updates = payload.model_dump(exclude_unset=True, mode="json")
    if not updates:
        raise HTTPException(400, "No fields to update")

    client = get_supabase_client()
    existing = fetch_company(client, company_id)

    updates = sanitize(updates)
    updates["updated_at"] = utcnow_iso()

    try:
        result = client.table("companies").update(updates).eq("id", company_id).execute()
    except Exception as e:
        logger.error(f"Failed to update company {company_id}: {e}")
        raise HTTPException(500, f"Failed to update company: {str(e)}")

    log_audit("company", company_id, "updated", current_user.id, previous_state=existing, new_state=updates)
    return result.data[0] if result.data else {**existing, **updates}


# -----------------------------------------------------
# DELETE
# -----------------------------------------------------
@router.delete("/{company_id}")
def delete_company(company_id: str, current_user: CurrentUser = Depends(requires_company_manager)):
    """Companies with users still attached cannot be deleted."""
    client = get_supabase_client()
    existing = fetch_company(client, company_id)

    members = client.table("users").select("id", count="exact").eq("company_id", company_id).execute()
    if members.count:
        raise HTTPException(400, f"Company still has {members.count} user(s); reassign or remove them first")

    try:
        client.table("companies").delete().eq("id", company_id).execute()
    except Exception as e:
        logger.error(f"Failed to delete company {company_id}: {e}")
        raise HTTPException(500, f"Failed to delete company: {str(e)}")

    log_audit("company", company_id, "deleted", current_user.id, previous_state=existing)
    return {"success": True, "deleted_id": company_id}
