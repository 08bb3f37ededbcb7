# routers/messages.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from dependencies.auth import get_current_user, CurrentUser
from core.supabase_client import get_supabase_client
from core.logging_config import logger
from core.roles import can_manage_users, is_operations_director
from core.utils import utcnow_iso
from models.message import MessageCreate, MessageRead
from services.work_orders import ensure_can_view, fetch_work_order

router = APIRouter(
    prefix="/messages",
    tags=["Messages"],
)


def can_broadcast(user: CurrentUser) -> bool:
    return can_manage_users(user.roles) or is_operations_director(user.roles)


@router.post("/", response_model=MessageRead)
def send_message(
    payload: MessageCreate,
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Send a message.

    - `recipient_id` set → direct message
    - `recipient_id` null → broadcast (team managers only)
    - `work_order_id` set → message lands on the work order thread
    """
    client = get_supabase_client()

    if payload.work_order_id:
        ensure_can_view(current_user, fetch_work_order(client, payload.work_order_id))
        message_type = "work_order"
    elif payload.recipient_id is None:
        if not can_broadcast(current_user):
            raise HTTPException(403, "Only managers can send broadcast messages")
        message_type = "broadcast"
    else:
        message_type = "direct"

    if payload.recipient_id == current_user.id:
        raise HTTPException(400, "Cannot send a message to yourself")

    message_data = {
        "sender_id": current_user.id,
        "recipient_id": payload.recipient_id,
        "work_order_id": payload.work_order_id,
        "subject": payload.subject.strip() if payload.subject else None,
        "content": payload.content.strip(),
        "priority": str(payload.priority),
        "message_type": message_type,
        "is_read": False,
    }

    try:
        result = (
            client.table("messages")
            .insert(message_data, returning="representation")
            .execute()
        )
    except Exception as e:
        logger.error(f"Failed to send message: {e}")
        raise HTTPException(500, f"Failed to send message: {str(e)}")

    logger.info(f"User {current_user.id} sent {message_type} message to {payload.recipient_id or 'everyone'}")
    return result.data[0]


@router.get("/", response_model=List[MessageRead])
def list_messages(
    unread_only: bool = Query(False, description="Filter to unread messages only"),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Inbox: messages addressed to the current user plus broadcasts.
    """
    client = get_supabase_client()

    try:
        direct = (
            client.table("messages")
            .select("*")
            .eq("recipient_id", current_user.id)
            .order("created_at", desc=True)
            .execute()
        ).data or []

        broadcasts = (
            client.table("messages")
            .select("*")
            .is_("recipient_id", "null")
            .eq("message_type", "broadcast")
            .order("created_at", desc=True)
            .execute()
        ).data or []
    except Exception as e:
        logger.error(f"Failed to list messages: {e}")
        raise HTTPException(500, f"Failed to list messages: {str(e)}")

    # Deduplicate by id, newest first
    messages = {m["id"]: m for m in direct + broadcasts if m.get("id")}
    inbox = sorted(messages.values(), key=lambda m: m.get("created_at") or "", reverse=True)

    if unread_only:
        inbox = [m for m in inbox if not m.get("is_read")]

    return inbox


@router.get("/sent", response_model=List[MessageRead])
def list_sent_messages(current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()

    try:
        result = (
            client.table("messages")
            .select("*")
            .eq("sender_id", current_user.id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list sent messages: {e}")
        raise HTTPException(500, f"Failed to list sent messages: {str(e)}")


@router.get("/unread-count")
def unread_count(current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()

    try:
        result = (
            client.table("messages")
            .select("id")
            .eq("recipient_id", current_user.id)
            .eq("is_read", False)
            .execute()
        )
        return {"unread": len(result.data or [])}
    except Exception as e:
        logger.error(f"Failed to count unread messages: {e}")
        raise HTTPException(500, f"Failed to count unread messages: {str(e)}")


@router.get("/work-order/{work_order_id}", response_model=List[MessageRead])
def work_order_messages(work_order_id: str, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    ensure_can_view(current_user, fetch_work_order(client, work_order_id))

    try:
        result = (
            client.table("messages")
            .select("*")
            .eq("work_order_id", work_order_id)
            .order("created_at")
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list work order messages: {e}")
        raise HTTPException(500, f"Failed to list work order messages: {str(e)}")


@router.patch("/{message_id}/read", response_model=MessageRead)
def mark_message_read(message_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """Only the recipient can mark a message as read."""
    client = get_supabase_client()

    existing = client.table("messages").select("*").eq("id", message_id).limit(1).execute()
    if not existing.data:
        raise HTTPException(404, "Message not found")

    message = existing.data[0]
    if message.get("recipient_id") != current_user.id:
        raise HTTPException(403, "Only the recipient can mark this message as read")

    updates = {"is_read": True, "read_at": utcnow_iso()}

    try:
        result = client.table("messages").update(updates).eq("id", message_id).execute()
    except Exception as e:
        logger.error(f"Failed to mark message {message_id} as read: {e}")
        raise HTTPException(500, f"Failed to update message: {str(e)}")

    return result.data[0] if result.data else {**message, **updates}
