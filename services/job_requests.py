# services/job_requests.py

"""
Job network: client-created work orders that management staffs by
proposing an agent, which the owning client then accepts or declines.
"""

from typing import Dict, Iterable, List

from core.roles import FIELD_AGENT, FIELD_ENGINEER, RolesInput, has_any_role, is_client
from core.utils import parse_timestamp

# Order-level request state shown to clients
PENDING_REQUEST = "pending_request"
REQUEST_SENT = "request_sent"

ASSIGNABLE_ROLES = {FIELD_AGENT, FIELD_ENGINEER}


def is_assignable_agent(roles: RolesInput) -> bool:
    return has_any_role(roles, ASSIGNABLE_ROLES)


def is_open_for_requests(work_order: dict) -> bool:
    return (
        bool(work_order.get("is_client_created"))
        and not work_order.get("assignee_id")
        and work_order.get("status") == "pending"
    )


def owns_work_order(user, work_order: dict) -> bool:
    """Creator of the order, or a client user of the order's company."""
    if work_order.get("created_by_id") == user.id:
        return True
    same_company = bool(user.company_id) and work_order.get("company_id") == user.company_id
    return same_company and is_client(user.roles)


def annotate_request_status(orders: List[dict], pending_requests: Iterable[dict]) -> List[dict]:
    proposed: Dict[str, List[str]] = {}
    for request in pending_requests:
        proposed.setdefault(request["work_order_id"], []).append(request["agent_id"])

    return [
        {
            **order,
            "pending_agent_ids": proposed.get(order["id"], []),
            "request_status": REQUEST_SENT if order["id"] in proposed else PENDING_REQUEST,
        }
        for order in orders
    ]


def agent_track_record(agent_id: str, orders: Iterable[dict]) -> dict:
    """Completed orders for an agent, and how many of those beat their due date."""
    completed = [o for o in orders if o.get("assignee_id") == agent_id and o.get("status") == "completed"]

    on_time = 0
    for order in completed:
        done_at = parse_timestamp(order.get("completed_at"))
        due = parse_timestamp(order.get("due_date"))
        if done_at and (due is None or done_at <= due):
            on_time += 1

    return {"completed_orders": len(completed), "on_time_orders": on_time}
