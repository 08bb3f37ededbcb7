# routers/issues.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from dependencies.auth import get_current_user, CurrentUser
from core.audit import log_audit
from core.logging_config import logger
from core.roles import can_manage_work_orders, is_admin_team, is_operations_director
from core.supabase_client import get_supabase_client
from core.utils import utcnow_iso
from models.work_order import IssueCreate, IssueResolve
from services.work_orders import ensure_can_view, fetch_work_order

router = APIRouter(tags=["Work Order Issues"])


@router.get("/work-orders/{work_order_id}/issues")
def list_work_order_issues(work_order_id: str, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)
    ensure_can_view(current_user, work_order)

    try:
        result = (
            client.table("work_order_issues")
            .select("*")
            .eq("work_order_id", work_order_id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list issues for {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to list issues: {str(e)}")


@router.post("/work-orders/{work_order_id}/issues")
def report_issue(
    work_order_id: str,
    payload: IssueCreate,
    current_user: CurrentUser = Depends(get_current_user),
):
    """Anyone who can see the work order can flag a blocking issue."""
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)
    ensure_can_view(current_user, work_order)

    data = {
        "work_order_id": work_order_id,
        "reason": str(payload.reason),
        "explanation": payload.explanation.strip(),
        "created_by_id": current_user.id,
        "status": "open",
    }

    try:
        result = client.table("work_order_issues").insert(data, returning="representation").execute()
    except Exception as e:
        logger.error(f"Failed to report issue: {e}")
        raise HTTPException(500, f"Failed to report issue: {str(e)}")

    issue = result.data[0]
    log_audit("issue", issue["id"], "created", current_user.id, new_state=issue)
    return issue


@router.get("/issues")
def list_all_issues(
    status: Optional[str] = Query(None, description="open or resolved"),
    current_user: CurrentUser = Depends(get_current_user),
):
    roles = current_user.roles
    if not (is_operations_director(roles) or is_admin_team(roles) or can_manage_work_orders(roles)):
        raise HTTPException(403, "Insufficient permissions to view all issues")

    client = get_supabase_client()

    try:
        query = client.table("work_order_issues").select("*")
        if status:
            query = query.eq("status", status)
        result = query.order("created_at", desc=True).execute()
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list issues: {e}")
        raise HTTPException(500, f"Failed to list issues: {str(e)}")


@router.patch("/issues/{issue_id}/resolve")
def resolve_issue(
    issue_id: str,
    payload: IssueResolve,
    current_user: CurrentUser = Depends(get_current_user),
):
    roles = current_user.roles
    if not (is_operations_director(roles) or can_manage_work_orders(roles)):
        raise HTTPException(403, "Only dispatch roles can resolve issues")

    client = get_supabase_client()
    existing = client.table("work_order_issues").select("*").eq("id", issue_id).limit(1).execute()
    if not existing.data:
        raise HTTPException(404, "Issue not found")

    updates = {
        "status": "resolved",
        "resolved_at": utcnow_iso(),
        "resolution": payload.resolution,
        "updated_at": utcnow_iso(),
    }

    try:
        result = client.table("work_order_issues").update(updates).eq("id", issue_id).execute()
    except Exception as e:
        logger.error(f"Failed to resolve issue {issue_id}: {e}")
        raise HTTPException(500, f"Failed to resolve issue: {str(e)}")

    log_audit("issue", issue_id, "resolved", current_user.id, previous_state=existing.data[0], new_state=updates, reason=payload.resolution)
    return result.data[0] if result.data else {**existing.data[0], **updates}
