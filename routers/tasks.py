# routers/tasks.py

from fastapi import APIRouter, Depends, HTTPException

from dependencies.auth import get_current_user, CurrentUser
from core.audit import log_audit
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from core.utils import sanitize, utcnow_iso
from models.enums import TaskCategory
from models.work_order import TaskCreate, TaskUpdate
from services.work_orders import (
    can_modify_work_order,
    can_work_tasks,
    ensure_can_view,
    fetch_work_order,
)

router = APIRouter(tags=["Work Order Tasks"])

CATEGORY_ORDER = {c: i for i, c in enumerate(TaskCategory.list())}


def sort_tasks(tasks: list) -> list:
    return sorted(tasks, key=lambda t: (CATEGORY_ORDER.get(t.get("category"), 99), t.get("order_index") or 0))


def fetch_task(client, task_id: str) -> dict:
    result = client.table("work_order_tasks").select("*").eq("id", task_id).limit(1).execute()
    if not result.data:
        raise HTTPException(404, "Task not found")
    return result.data[0]


# -----------------------------------------------------
# Tasks on a work order
# -----------------------------------------------------
@router.get("/work-orders/{work_order_id}/tasks")
def list_tasks(work_order_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """Tasks grouped pre_visit → on_site → post_site, then by order_index."""
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)
    ensure_can_view(current_user, work_order)

    try:
        result = client.table("work_order_tasks").select("*").eq("work_order_id", work_order_id).execute()
        return sort_tasks(result.data or [])
    except Exception as e:
        logger.error(f"Failed to list tasks for {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to list tasks: {str(e)}")


@router.post("/work-orders/{work_order_id}/tasks")
def create_task(
    work_order_id: str,
    payload: TaskCreate,
    current_user: CurrentUser = Depends(get_current_user),
):
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    if not can_modify_work_order(current_user, work_order):
        raise HTTPException(403, "Not authorized to add tasks to this work order")

    data = sanitize(payload.model_dump(mode="json"))
    data.update({"work_order_id": work_order_id, "is_completed": False})

    try:
        result = client.table("work_order_tasks").insert(data, returning="representation").execute()
    except Exception as e:
        logger.error(f"Failed to create task: {e}")
        raise HTTPException(500, f"Failed to create task: {str(e)}")

    task = result.data[0]
    log_audit("work_order", work_order_id, "task_created", current_user.id, new_state=task)
    return task


# -----------------------------------------------------
# Single task
# -----------------------------------------------------
@router.patch("/tasks/{task_id}")
def update_task(task_id: str, payload: TaskUpdate, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    task = fetch_task(client, task_id)
    work_order = fetch_work_order(client, task["work_order_id"])

    if not can_work_tasks(current_user, work_order):
        raise HTTPException(403, "Only the assignee or a manager can update tasks")

    updates = sanitize(payload.model_dump(exclude_unset=True, mode="json"))
    if not updates:
        raise HTTPException(400, "No fields to update")
    updates["updated_at"] = utcnow_iso()

    try:
        result = client.table("work_order_tasks").update(updates).eq("id", task_id).execute()
    except Exception as e:
        logger.error(f"Failed to update task {task_id}: {e}")
        raise HTTPException(500, f"Failed to update task: {str(e)}")

    log_audit(
        "work_order",
        task["work_order_id"],
        "task_updated",
        current_user.id,
        previous_state={k: task.get(k) for k in updates if k != "updated_at"},
        new_state={"task_id": task_id, **updates},
    )
    return result.data[0] if result.data else {**task, **updates}


@router.post("/tasks/{task_id}/complete")
def complete_task(task_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """Mark a task done. Assignee or user-management roles only."""
    client = get_supabase_client()
    task = fetch_task(client, task_id)
    work_order = fetch_work_order(client, task["work_order_id"])

    if not can_work_tasks(current_user, work_order):
        raise HTTPException(403, "Only the assignee or a manager can complete tasks")

    updates = {
        "is_completed": True,
        "completed_by_id": current_user.id,
        "completed_at": utcnow_iso(),
        "updated_at": utcnow_iso(),
    }

    try:
        result = client.table("work_order_tasks").update(updates).eq("id", task_id).execute()
    except Exception as e:
        logger.error(f"Failed to complete task {task_id}: {e}")
        raise HTTPException(500, f"Failed to complete task: {str(e)}")

    log_audit("work_order", task["work_order_id"], "task_completed", current_user.id, new_state={"task_id": task_id})
    return result.data[0] if result.data else {**task, **updates}


@router.delete("/tasks/{task_id}")
def delete_task(task_id: str, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    task = fetch_task(client, task_id)
    work_order = fetch_work_order(client, task["work_order_id"])

    if not can_modify_work_order(current_user, work_order):
        raise HTTPException(403, "Not authorized to delete this task")

    try:
        client.table("work_order_tasks").delete().eq("id", task_id).execute()
    except Exception as e:
        logger.error(f"Failed to delete task {task_id}: {e}")
        raise HTTPException(500, f"Failed to delete task: {str(e)}")

    log_audit("work_order", task["work_order_id"], "task_deleted", current_user.id, previous_state=task)
    return {"success": True, "deleted_id": task_id}
