# routers/work_orders.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from dependencies.auth import get_current_user, requires_role, CurrentUser
from core.audit import log_audit
from core.logging_config import logger
from core.roles import (
    ADMINISTRATOR,
    CLIENT,
    DISPATCHER,
    MANAGER,
    USER_MANAGEMENT_ROLES,
    can_manage_users,
    can_manage_work_orders,
    can_self_assign,
    can_view_all_orders,
    can_view_budgets,
    has_any_role,
    has_role,
    is_client,
    is_operations_director,
    FIELD_AGENT,
    FIELD_ENGINEER,
)
from core.supabase_client import get_supabase_client
from core.utils import sanitize, utcnow_iso
from models.work_order import (
    AssignmentUpdate,
    BudgetUpdate,
    IncompleteTasksError,
    PaymentStatusUpdate,
    WorkOrderCreate,
    WorkOrderUpdate,
    WorkStatusUpdate,
)
from services.budget import calculate_budget, logged_hours
from services.documents import count_documents
from services.time_tracking import end_active_time_entry, start_time_entry
from services.work_orders import (
    can_modify_work_order,
    ensure_can_view,
    fetch_work_order,
    incomplete_task_titles,
    is_assignee_or_manager,
)

router = APIRouter(
    prefix="/work-orders",
    tags=["Work Orders"],
)

ASSIGNER_ROLES = [ADMINISTRATOR, MANAGER, DISPATCHER, CLIENT]
BUDGET_EDITOR_EXCLUDED = {FIELD_AGENT, FIELD_ENGINEER}
# PATCH fields only dispatch roles and the operations director may touch
DISPATCH_ONLY_FIELDS = {"documents_required", "status", "devices_installed"}


# ============================================================
# Create / list / read
# ============================================================
@router.post("/")
def create_work_order(
    payload: WorkOrderCreate,
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Create a work order.

    **Permissions:** team managers, clients, operations directors.

    New orders start as `pending`. Orders created by client users cannot
    pick an assignee or point of contact.
    """
    roles = current_user.roles
    if not (can_manage_users(roles) or is_client(roles) or is_operations_director(roles)):
        raise HTTPException(403, "Insufficient permissions")

    company_id = payload.company_id or current_user.company_id
    if not company_id:
        raise HTTPException(400, "company_id is required")

    client_created = is_client(roles)
    data = sanitize(payload.model_dump(mode="json"))
    data.update({
        "company_id": company_id,
        "status": "pending",
        "work_status": "not_started",
        "created_by_id": current_user.id,
        "is_client_created": client_created,
    })
    if client_created:
        data["assignee_id"] = None
        data["point_of_contact"] = None
    if data.get("budget_type"):
        data["budget_created_by_id"] = current_user.id
        data["budget_created_at"] = utcnow_iso()

    client = get_supabase_client()

    try:
        result = client.table("work_orders").insert(data, returning="representation").execute()
        work_order = result.data[0]
    except Exception as e:
        logger.error(f"Failed to create work order: {e}")
        raise HTTPException(500, f"Failed to create work order: {str(e)}")

    log_audit("work_order", work_order["id"], "created", current_user.id, new_state=work_order)
    logger.info(f"Work order {work_order['id']} created by {current_user.id}")
    return work_order


@router.get("/")
def list_work_orders(
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    assignee_id: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Dispatch roles (and operations directors) see every order; clients see
    their company's orders; everyone else sees orders assigned to them.
    """
    client = get_supabase_client()
    roles = current_user.roles

    try:
        query = client.table("work_orders").select("*")

        if is_operations_director(roles) or can_view_all_orders(roles):
            if assignee_id:
                query = query.eq("assignee_id", assignee_id)
        elif is_client(roles):
            if current_user.company_id:
                query = query.eq("company_id", current_user.company_id)
            else:
                query = query.eq("created_by_id", current_user.id)
        else:
            query = query.eq("assignee_id", current_user.id)

        if status:
            query = query.eq("status", status)
        if priority:
            query = query.eq("priority", priority)

        result = query.order("created_at", desc=True).execute()
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list work orders: {e}")
        raise HTTPException(500, f"Failed to list work orders: {str(e)}")


@router.get("/assigned")
def list_assigned_work_orders(current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()

    try:
        result = (
            client.table("work_orders")
            .select("*")
            .eq("assignee_id", current_user.id)
            .order("due_date")
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.error(f"Failed to list assigned work orders: {e}")
        raise HTTPException(500, f"Failed to list assigned work orders: {str(e)}")


@router.get("/{work_order_id}")
def get_work_order(work_order_id: str, current_user: CurrentUser = Depends(get_current_user)):
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)
    ensure_can_view(current_user, work_order)

    if not can_view_budgets(current_user.roles) and not is_operations_director(current_user.roles):
        for field in ("budget_type", "budget_amount", "payment_status"):
            work_order.pop(field, None)

    return work_order


# ============================================================
# Update / delete
# ============================================================
@router.patch("/{work_order_id}")
def update_work_order(
    work_order_id: str,
    payload: WorkOrderUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    if not can_modify_work_order(current_user, work_order):
        raise HTTPException(403, "Not authorized to update this work order")

    updates = sanitize(payload.model_dump(exclude_unset=True, mode="json"))
    if not updates:
        raise HTTPException(400, "No fields to update")

    restricted = sorted(DISPATCH_ONLY_FIELDS & updates.keys())
    if restricted and not (
        can_manage_work_orders(current_user.roles) or is_operations_director(current_user.roles)
    ):
        raise HTTPException(403, f"Not authorized to change {', '.join(restricted)}")

    if updates.get("status") == "completed":
        raise HTTPException(400, "Use the status endpoint to complete a work order")

    if updates.get("documents_required") is not None:
        uploaded = count_documents(client, "work_order", work_order_id)
        if updates["documents_required"] < uploaded:
            raise HTTPException(
                400,
                f"documents_required cannot be lower than the {uploaded} documents already uploaded",
            )

    updates["updated_at"] = utcnow_iso()

    try:
        result = client.table("work_orders").update(updates).eq("id", work_order_id).execute()
    except Exception as e:
        logger.error(f"Failed to update work order {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to update work order: {str(e)}")

    updated = result.data[0] if result.data else {**work_order, **updates}
    log_audit("work_order", work_order_id, "updated", current_user.id, previous_state=work_order, new_state=updates)
    return updated


@router.delete("/{work_order_id}")
def delete_work_order(
    work_order_id: str,
    current_user: CurrentUser = Depends(requires_role(sorted(USER_MANAGEMENT_ROLES))),
):
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    try:
        client.table("work_orders").delete().eq("id", work_order_id).execute()
    except Exception as e:
        logger.error(f"Failed to delete work order {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to delete work order: {str(e)}")

    log_audit("work_order", work_order_id, "deleted", current_user.id, previous_state=work_order)
    return {"success": True, "deleted_id": work_order_id}


# ============================================================
# Lifecycle
# ============================================================
@router.post("/{work_order_id}/confirm")
def confirm_work_order(work_order_id: str, current_user: CurrentUser = Depends(get_current_user)):
    """
    Confirm a scheduled work order.

    **Permissions:** the assigned field agent, or dispatch roles.
    """
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    can_confirm = (
        has_role(current_user.roles, FIELD_AGENT) and work_order.get("assignee_id") == current_user.id
    ) or can_manage_work_orders(current_user.roles)

    if not can_confirm:
        raise HTTPException(
            403,
            "Only assigned field agents, administrators, managers, or dispatchers can confirm work orders",
        )

    if work_order.get("status") != "scheduled":
        raise HTTPException(400, "Only scheduled work orders can be confirmed")

    updates = {"status": "confirmed", "confirmed_at": utcnow_iso(), "updated_at": utcnow_iso()}

    try:
        result = client.table("work_orders").update(updates).eq("id", work_order_id).execute()
    except Exception as e:
        logger.error(f"Failed to confirm work order {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to confirm work order: {str(e)}")

    log_audit("work_order", work_order_id, "confirmed", current_user.id, previous_state={"status": "scheduled"}, new_state=updates)
    return result.data[0] if result.data else {**work_order, **updates}


@router.patch("/{work_order_id}/status")
def update_work_status(
    work_order_id: str,
    payload: WorkStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Move a work order through the on-site workflow.

    - `checked_in` starts a time entry and marks the order in progress
    - `checked_out` ends the running time entry
    - `completed` requires every task done and every required document
      uploaded
    """
    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    if not is_assignee_or_manager(current_user, work_order):
        raise HTTPException(403, "Not authorized to update this work order")

    work_status = str(payload.work_status)
    now = utcnow_iso()
    updates = {"work_status": work_status, "updated_at": now}

    try:
        if work_status == "checked_in":
            updates["checked_in_at"] = now
            if work_order.get("status") in ("pending", "scheduled", "confirmed"):
                updates["status"] = "in_progress"
            start_time_entry(client, current_user.id, work_order_id)

        elif work_status == "checked_out":
            updates["checked_out_at"] = now
            end_active_time_entry(client, current_user.id)

        elif work_status == "completed":
            tasks = (
                client.table("work_order_tasks")
                .select("id, title, is_completed")
                .eq("work_order_id", work_order_id)
                .execute()
            ).data or []
            incomplete = incomplete_task_titles(tasks)
            if incomplete:
                raise HTTPException(
                    400,
                    IncompleteTasksError(
                        message=f"Cannot mark work order as complete. {len(incomplete)} task(s) still incomplete.",
                        incomplete_tasks=incomplete,
                    ).model_dump(),
                )

            required = int(work_order.get("documents_required") or 0)
            if required:
                uploaded = count_documents(client, "work_order", work_order_id)
                if uploaded < required:
                    raise HTTPException(
                        400,
                        f"Cannot mark work order as complete. {uploaded} of {required} required documents uploaded.",
                    )

            updates["status"] = "completed"
            updates["completed_at"] = now

        result = client.table("work_orders").update(updates).eq("id", work_order_id).execute()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to update work status for {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to update work order status: {str(e)}")

    log_audit(
        "work_order", work_order_id, "status_changed", current_user.id,
        previous_state={"work_status": work_order.get("work_status"), "status": work_order.get("status")},
        new_state=updates,
    )
    return result.data[0] if result.data else {**work_order, **updates}


@router.patch("/{work_order_id}/assign")
def assign_work_order(
    work_order_id: str,
    payload: AssignmentUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Assign a field agent. Pending orders become `scheduled` so the agent
    can confirm them; the agent gets a confirmation notification.

    **Permissions:** administrator, manager, dispatcher, client, or a
    field engineer assigning themselves.
    """
    self_assign = payload.assignee_id == current_user.id and can_self_assign(current_user.roles)
    if not (has_any_role(current_user.roles, ASSIGNER_ROLES) or self_assign):
        raise HTTPException(403, "Access denied. Management or client role required.")

    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    updates = {"assignee_id": payload.assignee_id, "updated_at": utcnow_iso()}
    if work_order.get("status") == "pending":
        updates["status"] = "scheduled"

    try:
        result = client.table("work_orders").update(updates).eq("id", work_order_id).execute()
        client.table("notifications").insert({
            "user_id": payload.assignee_id,
            "work_order_id": work_order_id,
            "type": "work_order_confirmation",
            "title": "New work order assigned",
            "message": f"You have been assigned to '{work_order.get('title')}'. Please confirm.",
            "is_read": False,
            "is_confirmed": False,
        }).execute()
    except Exception as e:
        logger.error(f"Failed to assign work order {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to assign work order: {str(e)}")

    log_audit(
        "assignment", work_order_id, "assigned", current_user.id,
        previous_state={"assignee_id": work_order.get("assignee_id")},
        new_state=updates,
    )
    return result.data[0] if result.data else {**work_order, **updates}


# ============================================================
# Payments & budgets
# ============================================================
@router.patch("/{work_order_id}/payment-status")
def update_payment_status(
    work_order_id: str,
    payload: PaymentStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    if not has_role(current_user.roles, ADMINISTRATOR):
        raise HTTPException(403, "Only administrators can update payment status")

    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    if work_order.get("status") != "completed":
        raise HTTPException(400, "Payment status can only be updated for completed work orders")

    updates = {
        "payment_status": str(payload.payment_status),
        "payment_updated_by_id": current_user.id,
        "payment_updated_at": utcnow_iso(),
    }

    try:
        result = client.table("work_orders").update(updates).eq("id", work_order_id).execute()
    except Exception as e:
        logger.error(f"Failed to update payment status for {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to update payment status: {str(e)}")

    log_audit(
        "work_order", work_order_id, "payment_updated", current_user.id,
        previous_state={"payment_status": work_order.get("payment_status")},
        new_state=updates,
    )
    return result.data[0] if result.data else {**work_order, **updates}


@router.put("/{work_order_id}/budget")
def set_budget(
    work_order_id: str,
    payload: BudgetUpdate,
    current_user: CurrentUser = Depends(get_current_user),
):
    roles = current_user.roles
    field_only = not can_manage_users(roles) and has_any_role(roles, BUDGET_EDITOR_EXCLUDED)
    if not can_view_budgets(roles) or field_only:
        raise HTTPException(403, "Insufficient permissions to set budgets")

    if str(payload.budget_type) == "per_device" and payload.devices_installed is None:
        raise HTTPException(400, "devices_installed is required for per_device budgets")

    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    updates = {
        "budget_type": str(payload.budget_type),
        "budget_amount": payload.budget_amount,
        "budget_created_by_id": current_user.id,
        "budget_created_at": utcnow_iso(),
    }
    if payload.devices_installed is not None:
        updates["devices_installed"] = payload.devices_installed

    try:
        result = client.table("work_orders").update(updates).eq("id", work_order_id).execute()
    except Exception as e:
        logger.error(f"Failed to set budget for {work_order_id}: {e}")
        raise HTTPException(500, f"Failed to set budget: {str(e)}")

    log_audit("work_order", work_order_id, "budget_set", current_user.id, new_state=updates)
    return result.data[0] if result.data else {**work_order, **updates}


@router.get("/{work_order_id}/budget-calculation")
def budget_calculation(work_order_id: str, current_user: CurrentUser = Depends(get_current_user)):
    if not can_view_budgets(current_user.roles):
        raise HTTPException(403, "Insufficient permissions to view budgets")

    client = get_supabase_client()
    work_order = fetch_work_order(client, work_order_id)

    entries = []
    if work_order.get("budget_type") == "hourly":
        entries = (
            client.table("time_entries")
            .select("*")
            .eq("work_order_id", work_order_id)
            .execute()
        ).data or []

    return {
        "work_order_id": work_order_id,
        "budget_type": work_order.get("budget_type"),
        "budget_amount": work_order.get("budget_amount"),
        "devices_installed": work_order.get("devices_installed"),
        "hours_logged": round(logged_hours(entries), 2),
        "total": calculate_budget(work_order, entries),
    }
