# services/heartbeat.py

"""
Project "heartbeat": a 0-100 health score over a set of work orders.

Each active order starts at 100 and loses points for urgency, for being
stuck in an early status, and for age. The heartbeat is the rounded mean.
"""

import math
from datetime import datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel

from core.roles import RolesInput, is_admin_team, is_operations_director
from core.utils import parse_timestamp, utcnow

INACTIVE_STATUSES = {"completed", "cancelled", "closed"}
URGENT_PRIORITIES = {"urgent", "critical"}
IN_PROGRESS_STATUSES = {"in_progress", "assigned"}
PENDING_STATUSES = {"pending", "new"}

URGENT_PENALTY = 40
IN_PROGRESS_PENALTY = 10
PENDING_PENALTY = 20
STALE_AFTER_DAYS = 7
STALE_PENALTY_PER_DAY = 2
MAX_STALE_PENALTY = 30


class Heartbeat(BaseModel):
    percentage: int
    variant: str
    active_orders: int
    total_orders: int


def can_view_heartbeat(roles: RolesInput) -> bool:
    return is_operations_director(roles) or is_admin_team(roles)


def score_work_order(order: dict, now: Optional[datetime] = None) -> int:
    now = now or utcnow()
    score = 100

    if order.get("priority") in URGENT_PRIORITIES:
        score -= URGENT_PENALTY

    status = order.get("status")
    if status in IN_PROGRESS_STATUSES:
        score -= IN_PROGRESS_PENALTY
    elif status in PENDING_STATUSES:
        score -= PENDING_PENALTY

    created_at = parse_timestamp(order.get("created_at"))
    if created_at:
        days_old = (now - created_at).days
        if days_old > STALE_AFTER_DAYS:
            score -= min(MAX_STALE_PENALTY, days_old * STALE_PENALTY_PER_DAY)

    return max(0, score)


def active_work_orders(orders: Iterable[dict]) -> List[dict]:
    return [o for o in orders if o.get("status") not in INACTIVE_STATUSES]


def calculate_heartbeat(orders: Iterable[dict], now: Optional[datetime] = None) -> int:
    active = active_work_orders(orders)
    if not active:
        return 100
    scores = [score_work_order(o, now) for o in active]
    # Halves round up (92.5 -> 93)
    return math.floor(sum(scores) / len(scores) + 0.5)


def build_heartbeat(roles: RolesInput, orders: List[dict], now: Optional[datetime] = None) -> Optional[Heartbeat]:
    """Heartbeat for the given viewer, or None when they may not see it."""
    if not can_view_heartbeat(roles):
        return None

    return Heartbeat(
        percentage=calculate_heartbeat(orders, now),
        variant="global" if is_operations_director(roles) else "company",
        active_orders=len(active_work_orders(orders)),
        total_orders=len(orders),
    )
