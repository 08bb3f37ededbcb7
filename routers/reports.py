# routers/reports.py

from fastapi import APIRouter, HTTPException, Depends

from dependencies.auth import CurrentUser
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.roles import is_operations_director
from core.supabase_client import get_supabase_client
from services.team_reports import build_team_report

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)


# ============================================================
# TEAM REPORT
# ============================================================
@router.get(
    "/team",
    summary="Team performance report",
)
def get_team_report(
    current_user: CurrentUser = Depends(requires_permission("reports:read")),
):
    """
    Agent performance, work order breakdown, time tracking totals,
    completion rates and six months of created/completed trends.

    Operations directors see the whole platform; everyone else sees
    their own company.
    """
    client = get_supabase_client()
    actor_is_od = is_operations_director(current_user.roles)
    company_id = None if actor_is_od else current_user.company_id
    if not actor_is_od and not company_id:
        return build_team_report([], [], [])

    try:
        users_q = client.table("users").select("id, first_name, last_name, roles, company_id")
        orders_q = client.table("work_orders").select(
            "id, status, assignee_id, company_id, created_at, completed_at, due_date"
        )
        if company_id:
            users_q = users_q.eq("company_id", company_id)
            orders_q = orders_q.eq("company_id", company_id)

        users = users_q.execute().data or []
        orders = orders_q.execute().data or []

        user_ids = [u["id"] for u in users]
        entries = []
        if user_ids:
            entries = (
                client.table("time_entries")
                .select("user_id, work_order_id, start_time, end_time, break_duration, is_active")
                .in_("user_id", user_ids)
                .execute()
            ).data or []
    except Exception as e:
        logger.error(f"Failed to build team report: {e}")
        raise HTTPException(500, f"Failed to build team report: {str(e)}")

    return build_team_report(users, orders, entries)
