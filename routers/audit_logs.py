# routers/audit_logs.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from dependencies.auth import CurrentUser
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.supabase_client import get_supabase_client

router = APIRouter(
    prefix="/audit-logs",
    tags=["Audit"],
)


@router.get("/")
def list_audit_logs(
    entity_type: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    performed_by: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    current_user: CurrentUser = Depends(requires_permission("audit:read")),
):
    client = get_supabase_client()

    try:
        query = client.table("audit_logs").select("*")
        if entity_type:
            query = query.eq("entity_type", entity_type)
        if entity_id:
            query = query.eq("entity_id", entity_id)
        if performed_by:
            query = query.eq("performed_by", performed_by)

        result = query.order("created_at", desc=True).limit(limit).execute()
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list audit logs: {e}")
        raise HTTPException(500, f"Failed to list audit logs: {str(e)}")
