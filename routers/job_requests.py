# routers/job_requests.py

from fastapi import APIRouter, Depends, HTTPException
from typing import List

from dependencies.auth import CurrentUser
from core.audit import log_audit
from core.logging_config import logger
from core.permission_helpers import requires_predicate
from core.roles import (
    ADMINISTRATOR,
    CLIENT,
    DISPATCHER,
    MANAGER,
    has_any_role,
    is_client,
    is_operations_director,
)
from core.supabase_client import get_supabase_client
from core.utils import full_name, sanitize, utcnow_iso
from models.enums import AssignmentRequestStatus, AssignmentResponse, NotificationType
from models.job_request import (
    AssignmentRequestCreate,
    AssignmentRequestRead,
    AssignmentRequestResponse,
    JobNetworkOrder,
)
from services.job_requests import (
    agent_track_record,
    annotate_request_status,
    is_assignable_agent,
    is_open_for_requests,
    owns_work_order,
)
from services.work_orders import fetch_work_order

router = APIRouter(tags=["Job Network"])

JOB_NETWORK_ROLES = [ADMINISTRATOR, MANAGER, DISPATCHER, CLIENT]


def can_use_job_network(roles) -> bool:
    return is_operations_director(roles) or has_any_role(roles, JOB_NETWORK_ROLES)


def can_answer_requests(roles) -> bool:
    return is_operations_director(roles) or is_client(roles)


requires_job_network = requires_predicate(
    can_use_job_network, "Access denied. Management or client role required."
)
requires_client = requires_predicate(can_answer_requests, "Access denied. Client role required.")


# -----------------------------------------------------
# Helpers
# -----------------------------------------------------
def get_pending_request(client, request_id: str) -> dict:
    result = client.table("assignment_requests").select("*").eq("id", request_id).limit(1).execute()
    if not result.data:
        raise HTTPException(404, "Assignment request not found")

    request_row = result.data[0]
    if request_row.get("status") != AssignmentRequestStatus.pending:
        raise HTTPException(400, f"Request already {request_row.get('status')}")
    return request_row


def notify(client, user_id: str, work_order_id: str, kind: NotificationType, title: str, message: str):
    if not user_id:
        return
    client.table("notifications").insert({
        "user_id": user_id,
        "work_order_id": work_order_id,
        "type": str(kind),
        "title": title,
        "message": message,
        "is_read": False,
        "is_confirmed": False,
    }).execute()


# ============================================================
# Management side
# ============================================================
@router.get("/job-network/work-orders", response_model=List[JobNetworkOrder])
def list_job_network_orders(current_user: CurrentUser = Depends(requires_job_network)):
    """
    Client-created orders that are still pending and unassigned.

    Clients only see their own company's orders. Each order carries
    `request_status` (`pending_request` or `request_sent`) and the agents
    already proposed for it.
    """
    client = get_supabase_client()
    client_view = is_client(current_user.roles) and not is_operations_director(current_user.roles)
    if client_view and not current_user.company_id:
        return []

    try:
        query = (
            client.table("work_orders")
            .select("*")
            .eq("is_client_created", True)
            .eq("status", "pending")
            .is_("assignee_id", "null")
        )
        if client_view:
            query = query.eq("company_id", current_user.company_id)
        orders = query.order("created_at", desc=True).execute().data or []

        pending = []
        if orders:
            pending = (
                client.table("assignment_requests")
                .select("work_order_id, agent_id")
                .in_("work_order_id", [o["id"] for o in orders])
                .eq("status", str(AssignmentRequestStatus.pending))
                .execute()
            ).data or []
    except Exception as e:
        logger.error(f"Failed to list job network orders: {e}")
        raise HTTPException(500, f"Failed to list job network orders: {str(e)}")

    return annotate_request_status(orders, pending)


@router.post("/job-network/request-assignment", response_model=AssignmentRequestRead)
def request_assignment(
    payload: AssignmentRequestCreate,
    current_user: CurrentUser = Depends(requires_job_network),
):
    """
    Propose a field agent for a job network order. The order's creator is
    notified and decides through `POST /client/respond-request`.
    """
    client = get_supabase_client()
    work_order = fetch_work_order(client, payload.work_order_id)

    if is_client(current_user.roles) and not is_operations_director(current_user.roles):
        if not owns_work_order(current_user, work_order):
            raise HTTPException(403, "You can only request assignments for your own work orders")

    if not is_open_for_requests(work_order):
        raise HTTPException(400, "Work order is not open for assignment requests")

    agent_rows = (
        client.table("users")
        .select("id, first_name, last_name, roles, is_active")
        .eq("id", payload.agent_id)
        .limit(1)
        .execute()
    ).data or []
    if not agent_rows:
        raise HTTPException(404, "Agent not found")
    agent = agent_rows[0]
    if not is_assignable_agent(agent.get("roles")) or agent.get("is_active") is False:
        raise HTTPException(400, "Only active field agents or field engineers can be requested")

    duplicate = (
        client.table("assignment_requests")
        .select("id")
        .eq("work_order_id", payload.work_order_id)
        .eq("agent_id", payload.agent_id)
        .eq("status", str(AssignmentRequestStatus.pending))
        .execute()
    ).data or []
    if duplicate:
        raise HTTPException(409, "This agent has already been requested for the work order")

    record = sanitize({
        "work_order_id": payload.work_order_id,
        "agent_id": payload.agent_id,
        "requested_by_id": current_user.id,
        "notes": payload.notes,
        "status": str(AssignmentRequestStatus.pending),
        "requested_at": utcnow_iso(),
    })

    try:
        result = client.table("assignment_requests").insert(record, returning="representation").execute()
        notify(
            client,
            work_order.get("created_by_id"),
            payload.work_order_id,
            NotificationType.general,
            "Assignment request",
            f"{full_name(agent)} was proposed for '{work_order.get('title')}'.",
        )
    except Exception as e:
        logger.error(f"Failed to request assignment for {payload.work_order_id}: {e}")
        raise HTTPException(500, f"Failed to request assignment: {str(e)}")

    if not result.data:
        raise HTTPException(500, "Insert returned no data")

    request_row = result.data[0]
    log_audit(
        "assignment",
        payload.work_order_id,
        "assignment_requested",
        current_user.id,
        new_state={"request_id": request_row["id"], "agent_id": payload.agent_id},
        reason=record.get("notes"),
    )
    logger.info(f"Agent {payload.agent_id} requested for work order {payload.work_order_id} by {current_user.id}")
    return request_row


# ============================================================
# Client side
# ============================================================
@router.get("/client/assignment-requests", response_model=List[AssignmentRequestRead])
def list_client_assignment_requests(current_user: CurrentUser = Depends(requires_client)):
    """Pending requests on the caller's orders, with each agent's track record."""
    client = get_supabase_client()

    try:
        orders_q = (
            client.table("work_orders")
            .select("id, title, description, location, due_date, company_id, created_by_id")
            .eq("is_client_created", True)
        )
        if not is_operations_director(current_user.roles):
            if current_user.company_id:
                orders_q = orders_q.eq("company_id", current_user.company_id)
            else:
                orders_q = orders_q.eq("created_by_id", current_user.id)
        orders = orders_q.execute().data or []
        if not orders:
            return []

        requests = (
            client.table("assignment_requests")
            .select("*")
            .in_("work_order_id", [o["id"] for o in orders])
            .eq("status", str(AssignmentRequestStatus.pending))
            .order("requested_at")
            .execute()
        ).data or []
        if not requests:
            return []

        agent_ids = sorted({r["agent_id"] for r in requests})
        agents = (
            client.table("users")
            .select("id, first_name, last_name, skills")
            .in_("id", agent_ids)
            .execute()
        ).data or []
        history = (
            client.table("work_orders")
            .select("assignee_id, status, completed_at, due_date")
            .in_("assignee_id", agent_ids)
            .eq("status", "completed")
            .execute()
        ).data or []
    except Exception as e:
        logger.error(f"Failed to list assignment requests: {e}")
        raise HTTPException(500, f"Failed to list assignment requests: {str(e)}")

    orders_by_id = {o["id"]: o for o in orders}
    agents_by_id = {a["id"]: a for a in agents}

    return [
        {
            **r,
            "work_order": orders_by_id.get(r["work_order_id"]),
            "requested_agent": agents_by_id.get(r["agent_id"]),
            "track_record": agent_track_record(r["agent_id"], history),
        }
        for r in requests
    ]


@router.post("/client/respond-request")
def respond_to_assignment_request(
    payload: AssignmentRequestResponse,
    current_user: CurrentUser = Depends(requires_client),
):
    """
    Accept or decline a proposed agent.

    Accepting assigns the agent, moves a pending order to `scheduled`,
    sends the agent a confirmation notification and declines the other
    open proposals for the same order.
    """
    client = get_supabase_client()
    request_row = get_pending_request(client, payload.request_id)
    work_order_id = request_row["work_order_id"]
    work_order = fetch_work_order(client, work_order_id)

    if not (is_operations_director(current_user.roles) or owns_work_order(current_user, work_order)):
        raise HTTPException(403, "You can only respond to requests for your own work orders")

    accepted = payload.action == AssignmentResponse.accept
    if accepted and work_order.get("assignee_id"):
        raise HTTPException(400, "Work order already has an assignee")

    now = utcnow_iso()
    status = (AssignmentRequestStatus.accepted if accepted else AssignmentRequestStatus.declined).value
    notes = (payload.notes or "").strip() or None
    updates = {
        "status": status,
        "client_notes": notes,
        "responded_by_id": current_user.id,
        "responded_at": now,
    }
    order_updates = {}

    try:
        result = client.table("assignment_requests").update(updates).eq("id", payload.request_id).execute()

        if accepted:
            order_updates = {"assignee_id": request_row["agent_id"], "updated_at": now}
            if work_order.get("status") == "pending":
                order_updates["status"] = "scheduled"
            client.table("work_orders").update(order_updates).eq("id", work_order_id).execute()

            client.table("assignment_requests").update({
                "status": str(AssignmentRequestStatus.declined),
                "client_notes": "Another agent was accepted",
                "responded_by_id": current_user.id,
                "responded_at": now,
            }).eq("work_order_id", work_order_id).eq("status", str(AssignmentRequestStatus.pending)).execute()

            notify(
                client,
                request_row["agent_id"],
                work_order_id,
                NotificationType.work_order_confirmation,
                "New work order assigned",
                f"You have been assigned to '{work_order.get('title')}'. Please confirm.",
            )

        notify(
            client,
            request_row.get("requested_by_id"),
            work_order_id,
            NotificationType.general,
            f"Assignment request {status}",
            f"The client {status} your request for '{work_order.get('title')}'.",
        )
    except Exception as e:
        logger.error(f"Failed to respond to assignment request {payload.request_id}: {e}")
        raise HTTPException(500, f"Failed to respond to request: {str(e)}")

    log_audit(
        "assignment",
        work_order_id,
        f"request_{status}",
        current_user.id,
        previous_state={"assignee_id": work_order.get("assignee_id"), "status": work_order.get("status")},
        new_state={"request_id": payload.request_id, **order_updates},
        reason=notes,
    )

    request_row = result.data[0] if result.data else {**request_row, **updates}
    return {"request": request_row, "work_order_assigned": accepted}
