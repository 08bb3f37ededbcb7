# routers/time_entries.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from dependencies.auth import get_current_user, CurrentUser
from core.logging_config import logger
from core.roles import can_manage_users, is_operations_director
from core.supabase_client import get_supabase_client
from core.utils import utcnow_iso
from models.time_entry import TimeEntryEnd, TimeEntryRead, TimeEntryStart
from services.time_tracking import get_active_entry, start_time_entry, with_duration
from services.work_orders import ensure_can_view, fetch_work_order

router = APIRouter(
    prefix="/time-entries",
    tags=["Time Tracking"],
)


@router.post("/start", response_model=TimeEntryRead)
def clock_in(payload: TimeEntryStart, current_user: CurrentUser = Depends(get_current_user)):
    """Start tracking time. A running entry is ended first."""
    client = get_supabase_client()

    if payload.work_order_id:
        ensure_can_view(current_user, fetch_work_order(client, payload.work_order_id))

    try:
        entry = start_time_entry(client, current_user.id, payload.work_order_id, payload.notes)
    except Exception as e:
        logger.error(f"Failed to start time entry: {e}")
        raise HTTPException(500, f"Failed to start time entry: {str(e)}")

    return with_duration(entry)


@router.post("/{entry_id}/end", response_model=TimeEntryRead)
def clock_out(
    entry_id: str,
    payload: Optional[TimeEntryEnd] = None,
    current_user: CurrentUser = Depends(get_current_user),
):
    client = get_supabase_client()

    existing = client.table("time_entries").select("*").eq("id", entry_id).limit(1).execute()
    if not existing.data:
        raise HTTPException(404, "Time entry not found")

    entry = existing.data[0]
    if entry["user_id"] != current_user.id:
        raise HTTPException(403, "You can only end your own time entries")
    if not entry.get("is_active"):
        raise HTTPException(400, "Time entry already ended")

    updates = {"end_time": utcnow_iso(), "is_active": False, "updated_at": utcnow_iso()}
    if payload and payload.break_duration is not None:
        updates["break_duration"] = payload.break_duration
    if payload and payload.notes:
        updates["notes"] = payload.notes.strip()

    try:
        result = client.table("time_entries").update(updates).eq("id", entry_id).execute()
    except Exception as e:
        logger.error(f"Failed to end time entry {entry_id}: {e}")
        raise HTTPException(500, f"Failed to end time entry: {str(e)}")

    return with_duration(result.data[0] if result.data else {**entry, **updates})


@router.get("/active", response_model=Optional[TimeEntryRead])
def active_entry(current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    entry = get_active_entry(client, current_user.id)
    return with_duration(entry) if entry else None


@router.get("/", response_model=List[TimeEntryRead])
def my_time_entries(
    limit: int = Query(50, ge=1, le=500),
    current_user: CurrentUser = Depends(get_current_user),
):
    client = get_supabase_client()

    try:
        result = (
            client.table("time_entries")
            .select("*")
            .eq("user_id", current_user.id)
            .order("start_time", desc=True)
            .limit(limit)
            .execute()
        )
        return [with_duration(e) for e in result.data or []]
    except Exception as e:
        logger.error(f"Failed to list time entries: {e}")
        raise HTTPException(500, f"Failed to list time entries: {str(e)}")


@router.get("/work-order/{work_order_id}", response_model=List[TimeEntryRead])
def work_order_time_entries(work_order_id: str, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    ensure_can_view(current_user, fetch_work_order(client, work_order_id))

    try:
        result = (
            client.table("time_entries")
            .select("*")
            .eq("work_order_id", work_order_id)
            .order("start_time", desc=True)
            .execute()
        )
        return [with_duration(e) for e in result.data or []]
    except Exception as e:
        logger.error(f"Failed to list time entries for {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to list time entries: {str(e)}")


@router.get("/user/{user_id}", response_model=List[TimeEntryRead])
def user_time_entries(user_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """A user's own entries, or anyone's for team managers."""
    if user_id != current_user.id and not (
        can_manage_users(current_user.roles) or is_operations_director(current_user.roles)
    ):
        raise HTTPException(403, "You can only view your own time entries")

    client = get_supabase_client()

    try:
        result = (
            client.table("time_entries")
            .select("*")
            .eq("user_id", user_id)
            .order("start_time", desc=True)
            .execute()
        )
        return [with_duration(e) for e in result.data or []]
    except Exception as e:
        logger.error(f"Failed to list time entries for user {user_id}: {e}")
        raise HTTPException(500, f"Failed to list time entries: {str(e)}")
