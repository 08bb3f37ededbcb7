# services/team_reports.py

"""
Aggregations behind the team report and dashboard stats. Pure functions
over rows already fetched from Supabase.
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from core.roles import ADMINISTRATOR, FIELD_AGENT, FIELD_ENGINEER, MANAGER, normalize_roles
from core.utils import full_name, parse_timestamp, utcnow
from services.budget import entry_hours

ACTIVE_ORDER_STATUSES = {"in_progress", "confirmed", "scheduled"}
TREND_MONTHS = 6


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def dashboard_stats(users: List[dict], orders: List[dict]) -> Dict[str, int]:
    role_counts = Counter(r for u in users for r in normalize_roles(u.get("roles")))
    return {
        "total_users": len(users),
        "active_orders": sum(1 for o in orders if o.get("status") in ACTIVE_ORDER_STATUSES),
        "completed_orders": sum(1 for o in orders if o.get("status") == "completed"),
        "total_orders": len(orders),
        "administrators": role_counts[ADMINISTRATOR],
        "managers": role_counts[MANAGER],
        "field_agents": role_counts[FIELD_AGENT],
    }


def agent_performance(users: List[dict], orders: List[dict], entries: List[dict]) -> List[dict]:
    agents = [
        u for u in users
        if {FIELD_AGENT, FIELD_ENGINEER}.intersection(normalize_roles(u.get("roles")))
    ]
    rows = []
    for agent in agents:
        assigned = [o for o in orders if o.get("assignee_id") == agent["id"]]
        completed = [o for o in assigned if o.get("status") == "completed"]
        hours = sum(entry_hours(e) for e in entries if e.get("user_id") == agent["id"])
        rows.append({
            "user_id": agent["id"],
            "name": full_name(agent),
            "assigned_orders": len(assigned),
            "completed_orders": len(completed),
            "completion_rate": _rate(len(completed), len(assigned)),
            "hours_logged": round(hours, 1),
        })
    return sorted(rows, key=lambda r: (-r["completed_orders"], r["name"]))


def work_order_stats(orders: List[dict]) -> Dict[str, int]:
    stats = dict(Counter(o.get("status") or "unknown" for o in orders))
    stats["total"] = len(orders)
    return stats


def time_tracking_stats(entries: List[dict]) -> dict:
    finished = [e for e in entries if e.get("end_time")]
    total_hours = sum(entry_hours(e) for e in finished)
    return {
        "total_entries": len(entries),
        "active_entries": sum(1 for e in entries if e.get("is_active")),
        "total_hours": round(total_hours, 1),
        "average_hours_per_entry": round(total_hours / len(finished), 2) if finished else 0.0,
    }


def completion_rates(orders: List[dict]) -> dict:
    completed = [o for o in orders if o.get("status") == "completed"]
    with_due = [o for o in completed if o.get("due_date") and o.get("completed_at")]
    on_time = [
        o for o in with_due
        if parse_timestamp(o["completed_at"]) <= parse_timestamp(o["due_date"])
    ]
    return {
        "overall": _rate(len(completed), len(orders)),
        "on_time": _rate(len(on_time), len(with_due)),
        "cancelled": _rate(sum(1 for o in orders if o.get("status") == "cancelled"), len(orders)),
    }


def _month_keys(now: datetime, months: int) -> List[str]:
    keys = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def monthly_trends(orders: List[dict], now: Optional[datetime] = None, months: int = TREND_MONTHS) -> List[dict]:
    now = now or utcnow()
    buckets = {key: {"month": key, "created": 0, "completed": 0} for key in _month_keys(now, months)}

    for order in orders:
        created = parse_timestamp(order.get("created_at"))
        if created and created.strftime("%Y-%m") in buckets:
            buckets[created.strftime("%Y-%m")]["created"] += 1
        done = parse_timestamp(order.get("completed_at"))
        if done and done.strftime("%Y-%m") in buckets:
            buckets[done.strftime("%Y-%m")]["completed"] += 1

    return list(buckets.values())


def build_team_report(users: List[dict], orders: List[dict], entries: List[dict], now: Optional[datetime] = None) -> dict:
    return {
        "agent_performance": agent_performance(users, orders, entries),
        "work_order_stats": work_order_stats(orders),
        "time_tracking": time_tracking_stats(entries),
        "completion_rates": completion_rates(orders),
        "monthly_trends": monthly_trends(orders, now),
        "generated_at": (now or utcnow()).isoformat(),
    }
