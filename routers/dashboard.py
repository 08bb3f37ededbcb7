# routers/dashboard.py

from fastapi import APIRouter, Depends, HTTPException
from typing import Optional

from dependencies.auth import get_current_user, CurrentUser
from core.logging_config import logger
from core.roles import is_operations_director
from core.supabase_client import get_supabase_client
from services.heartbeat import Heartbeat, build_heartbeat, can_view_heartbeat
from services.team_reports import dashboard_stats

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


def scoped_rows(client, table: str, columns: str, user: CurrentUser) -> list:
    """
    Whole platform for operations directors, the user's company otherwise.
    Users without a company see nothing.
    """
    query = client.table(table).select(columns)
    if not is_operations_director(user.roles):
        if not user.company_id:
            return []
        query = query.eq("company_id", user.company_id)
    return query.execute().data or []


@router.get("/stats")
def get_dashboard_stats(current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()

    try:
        users = scoped_rows(client, "users", "id, roles", current_user)
        orders = scoped_rows(client, "work_orders", "id, status", current_user)
    except Exception as e:
        logger.error(f"Failed to load dashboard stats: {e}")
        raise HTTPException(500, f"Failed to load dashboard stats: {str(e)}")

    return dashboard_stats(users, orders)


@router.get("/heartbeat", response_model=Optional[Heartbeat])
def get_heartbeat(current_user: CurrentUser = Depends(get_current_user)):
    """
    Health score of the active work order pipeline (0-100). Returns
    null for roles that do not get a heartbeat.
    """
    if not can_view_heartbeat(current_user.roles):
        return None

    client = get_supabase_client()

    try:
        orders = scoped_rows(client, "work_orders", "id, status, priority, created_at", current_user)
    except Exception as e:
        logger.error(f"Failed to load heartbeat: {e}")
        raise HTTPException(500, f"Failed to load heartbeat: {str(e)}")

    return build_heartbeat(current_user.roles, orders)
