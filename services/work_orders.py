# services/work_orders.py

from typing import List

from fastapi import HTTPException

from core.roles import (
    can_manage_users,
    can_manage_work_orders,
    can_view_all_orders,
    is_client,
    is_operations_director,
)


def fetch_work_order(client, work_order_id: str) -> dict:
    result = (
        client.table("work_orders")
        .select("*")
        .eq("id", work_order_id)
        .limit(1)
        .execute()
    )
    if not result.data:
        raise HTTPException(404, "Work order not found")
    return result.data[0]


def can_view_work_order(user, work_order: dict) -> bool:
    if is_operations_director(user.roles) or can_view_all_orders(user.roles):
        return True
    if user.id in (work_order.get("assignee_id"), work_order.get("created_by_id")):
        return True
    same_company = bool(user.company_id) and work_order.get("company_id") == user.company_id
    return same_company and (can_manage_users(user.roles) or is_client(user.roles))


def can_modify_work_order(user, work_order: dict) -> bool:
    if is_operations_director(user.roles) or can_manage_work_orders(user.roles):
        return True
    return user.id in (work_order.get("assignee_id"), work_order.get("created_by_id"))


def is_assignee_or_manager(user, work_order: dict) -> bool:
    return can_manage_work_orders(user.roles) or work_order.get("assignee_id") == user.id


def can_work_tasks(user, work_order: dict) -> bool:
    """Task edits and completion: user managers (incl. the director) or the assignee."""
    return can_manage_users(user.roles) or work_order.get("assignee_id") == user.id


def ensure_can_view(user, work_order: dict):
    if not can_view_work_order(user, work_order):
        raise HTTPException(403, "You do not have access to this work order")


def incomplete_task_titles(tasks: List[dict]) -> List[str]:
    return [t.get("title") for t in tasks if not t.get("is_completed")]
