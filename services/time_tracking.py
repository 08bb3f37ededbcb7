# services/time_tracking.py

"""
Clock-in / clock-out helpers shared by the time entry and work order
routers. Each helper takes the Supabase client so callers control which
client (and which test double) is used.
"""

from typing import Optional

from core.logging_config import logger
from core.utils import parse_timestamp, utcnow, utcnow_iso


def with_duration(entry: dict) -> dict:
    """Attach `duration_minutes` (net of breaks) to a time entry row."""
    start = parse_timestamp(entry.get("start_time"))
    end = parse_timestamp(entry.get("end_time")) or (utcnow() if entry.get("is_active") else None)

    duration = None
    if start and end:
        minutes = (end - start).total_seconds() / 60 - (entry.get("break_duration") or 0)
        duration = max(0, int(minutes))

    return {**entry, "duration_minutes": duration}


def get_active_entry(client, user_id: str) -> Optional[dict]:
    result = (
        client.table("time_entries")
        .select("*")
        .eq("user_id", user_id)
        .eq("is_active", True)
        .order("start_time", desc=True)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def end_active_time_entry(client, user_id: str, break_duration: Optional[int] = None) -> Optional[dict]:
    """Close the user's running entry, if any. Returns the closed row."""
    active = get_active_entry(client, user_id)
    if not active:
        return None

    updates = {"end_time": utcnow_iso(), "is_active": False, "updated_at": utcnow_iso()}
    if break_duration is not None:
        updates["break_duration"] = break_duration

    result = (
        client.table("time_entries")
        .update(updates)
        .eq("id", active["id"])
        .execute()
    )
    logger.info(f"Time entry {active['id']} ended for user {user_id}")
    return result.data[0] if result.data else {**active, **updates}


def start_time_entry(client, user_id: str, work_order_id: Optional[str] = None, notes: Optional[str] = None) -> dict:
    """Start a new entry. A user has at most one running entry, so any open one is closed first."""
    end_active_time_entry(client, user_id)

    entry = {
        "user_id": user_id,
        "work_order_id": work_order_id,
        "start_time": utcnow_iso(),
        "notes": notes,
        "is_active": True,
        "break_duration": 0,
    }
    result = client.table("time_entries").insert(entry, returning="representation").execute()
    logger.info(f"Time entry started for user {user_id} (work order {work_order_id or '-'})")
    return result.data[0] if result.data else entry
