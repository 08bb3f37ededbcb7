# routers/operations.py

from collections import Counter, defaultdict
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from dependencies.auth import CurrentUser, fetch_user_row, user_from_row
from core.logging_config import logger
from core.permission_helpers import requires_predicate
from core.permissions import generate_permission_report
from core.roles import ADMINISTRATOR, is_operations_director, normalize_roles
from core.supabase_client import get_supabase_client
from core.utils import parse_timestamp, utcnow
from services.budget import calculate_budget

router = APIRouter(
    prefix="/operations",
    tags=["Operations"],
)

requires_operations_director = requires_predicate(
    is_operations_director, "Operations Director access required"
)


def fetch_rows(client, table: str, columns: str = "*") -> list:
    try:
        return client.table(table).select(columns).execute().data or []
    except Exception as e:
        raise HTTPException(500, f"Fetch failed for table '{table}': {e}")


# ============================================================
# Platform stats
# ============================================================
@router.get("/stats")
def operations_stats(current_user: CurrentUser = Depends(requires_operations_director)):
    client = get_supabase_client()

    companies = fetch_rows(client, "companies", "id, type")
    users = fetch_rows(client, "users", "id, roles, is_active")
    orders = fetch_rows(client, "work_orders", "id, status")

    role_counts = Counter(r for u in users for r in normalize_roles(u.get("roles")))

    return {
        "companies": {
            "total": len(companies),
            "by_type": dict(Counter(c.get("type") or "unknown" for c in companies)),
        },
        "users": {
            "total": len(users),
            "active": sum(1 for u in users if u.get("is_active", True)),
            "by_role": dict(role_counts),
        },
        "work_orders": {
            "total": len(orders),
            "by_status": dict(Counter(o.get("status") or "unknown" for o in orders)),
        },
    }


@router.get("/admins")
def list_admins(current_user: CurrentUser = Depends(requires_operations_director)):
    """Administrators across all companies, with their company name."""
    client = get_supabase_client()

    try:
        result = (
            client.table("users")
            .select("id, email, first_name, last_name, is_active, created_at, company:companies(id, name, type)")
            .contains("roles", [ADMINISTRATOR])
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list administrators: {e}")
        raise HTTPException(500, f"Failed to list administrators: {str(e)}")


@router.get("/recent-users")
def recent_users(
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(requires_operations_director),
):
    client = get_supabase_client()

    try:
        result = (
            client.table("users")
            .select("id, email, first_name, last_name, roles, company_id, created_at")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list recent users: {e}")
        raise HTTPException(500, f"Failed to list recent users: {str(e)}")


# ============================================================
# Budget summary
# ============================================================
@router.get("/budget-summary")
def budget_summary(current_user: CurrentUser = Depends(requires_operations_director)):
    """
    Total earned across completed work orders, plus what was earned on
    orders due today.
    """
    client = get_supabase_client()

    try:
        completed = (
            client.table("work_orders")
            .select("id, budget_type, budget_amount, devices_installed, due_date, company_id")
            .eq("status", "completed")
            .execute()
        ).data or []

        hourly_ids = [o["id"] for o in completed if o.get("budget_type") == "hourly"]
        entries = []
        if hourly_ids:
            entries = (
                client.table("time_entries")
                .select("work_order_id, start_time, end_time, break_duration")
                .in_("work_order_id", hourly_ids)
                .execute()
            ).data or []
    except Exception as e:
        logger.error(f"Failed to build budget summary: {e}")
        raise HTTPException(500, f"Failed to build budget summary: {str(e)}")

    entries_by_order = defaultdict(list)
    for entry in entries:
        entries_by_order[entry.get("work_order_id")].append(entry)

    today = utcnow().date()
    total_earned = 0.0
    todays_earnings = 0.0
    by_type = defaultdict(float)

    for order in completed:
        amount = calculate_budget(order, entries_by_order.get(order["id"], []))
        total_earned += amount
        by_type[order.get("budget_type") or "none"] += amount

        due = parse_timestamp(order.get("due_date"))
        if due and due.date() == today:
            todays_earnings += amount

    return {
        "total_earned": round(total_earned, 2),
        "todays_earnings": round(todays_earnings, 2),
        "completed_orders": len(completed),
        "by_budget_type": {k: round(v, 2) for k, v in by_type.items()},
    }


# ============================================================
# RBAC report
# ============================================================
@router.get("/permission-report")
def permission_report(
    user_id: Optional[str] = Query(None, description="Report on another user instead of yourself"),
    current_user: CurrentUser = Depends(requires_operations_director),
):
    if not user_id or user_id == current_user.id:
        return generate_permission_report(current_user)

    row = fetch_user_row(get_supabase_client(), user_id)
    if not row:
        raise HTTPException(404, "User not found")
    return generate_permission_report(user_from_row(row))
