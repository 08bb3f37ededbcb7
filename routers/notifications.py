# routers/notifications.py

from fastapi import APIRouter, Depends, HTTPException, Query

from dependencies.auth import get_current_user, CurrentUser
from core.audit import log_audit
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from core.utils import utcnow_iso

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


def fetch_own_notification(client, notification_id: str, user: CurrentUser) -> dict:
    result = client.table("notifications").select("*").eq("id", notification_id).limit(1).execute()
    if not result.data:
        raise HTTPException(404, "Notification not found")

    notification = result.data[0]
    if notification.get("user_id") != user.id:
        raise HTTPException(403, "Not your notification")
    return notification


@router.get("/")
def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(get_current_user),
):
    client = get_supabase_client()

    try:
        result = (
            client.table("notifications")
            .select("*")
            .eq("user_id", current_user.id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list notifications: {e}")
        raise HTTPException(500, f"Failed to list notifications: {str(e)}")


@router.get("/unread")
def unread_notifications(current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()

    try:
        result = (
            client.table("notifications")
            .select("*")
            .eq("user_id", current_user.id)
            .eq("is_read", False)
            .order("created_at", desc=True)
            .execute()
        )
        rows = result.data or []
        return {"count": len(rows), "notifications": rows}
    except Exception as e:
        logger.error(f"Failed to list unread notifications: {e}")
        raise HTTPException(500, f"Failed to list unread notifications: {str(e)}")


@router.patch("/{notification_id}/read")
def mark_notification_read(notification_id: str, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    notification = fetch_own_notification(client, notification_id, current_user)

    updates = {"is_read": True, "read_at": utcnow_iso()}

    try:
        result = client.table("notifications").update(updates).eq("id", notification_id).execute()
    except Exception as e:
        logger.error(f"Failed to mark notification {notification_id} read: {e}")
        raise HTTPException(500, f"Failed to update notification: {str(e)}")

    return result.data[0] if result.data else {**notification, **updates}


@router.post("/{notification_id}/confirm")
def confirm_notification(notification_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """
    Acknowledge an assignment notification. A linked work order that is
    still `scheduled` and still assigned to the caller moves to `confirmed`.
    """
    client = get_supabase_client()
    notification = fetch_own_notification(client, notification_id, current_user)

    now = utcnow_iso()
    updates = {"is_confirmed": True, "confirmed_at": now, "is_read": True, "read_at": now}
    work_order_confirmed = False

    try:
        result = client.table("notifications").update(updates).eq("id", notification_id).execute()

        work_order_id = notification.get("work_order_id")
        if work_order_id:
            order = (
                client.table("work_orders")
                .select("id, status, assignee_id")
                .eq("id", work_order_id)
                .limit(1)
                .execute()
            ).data or []
            if (
                order
                and order[0].get("status") == "scheduled"
                and order[0].get("assignee_id") == current_user.id
            ):
                client.table("work_orders").update(
                    {"status": "confirmed", "confirmed_at": now, "updated_at": now}
                ).eq("id", work_order_id).execute()
                work_order_confirmed = True
    except Exception as e:
        logger.error(f"Failed to confirm notification {notification_id}: {e}")
        raise HTTPException(500, f"Failed to confirm notification: {str(e)}")

    if work_order_confirmed:
        log_audit(
            "work_order",
            work_order_id,
            "confirmed",
            current_user.id,
            previous_state={"status": "scheduled"},
            new_state={"status": "confirmed"},
            metadata={"notification_id": notification_id},
        )

    notification = result.data[0] if result.data else {**notification, **updates}
    return {"notification": notification, "work_order_confirmed": work_order_confirmed}
