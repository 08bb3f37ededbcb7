# services/budget.py

from typing import Iterable, Optional

from core.utils import parse_timestamp

BUDGET_TYPES = ["fixed", "hourly", "per_device"]


def entry_hours(entry: dict) -> float:
    """Hours worked in a finished time entry, net of breaks. Open entries count as 0."""
    start = parse_timestamp(entry.get("start_time"))
    end = parse_timestamp(entry.get("end_time"))
    if not start or not end:
        return 0.0

    minutes = (end - start).total_seconds() / 60 - (entry.get("break_duration") or 0)
    return max(0.0, minutes / 60)


def logged_hours(time_entries: Iterable[dict]) -> float:
    return sum(entry_hours(e) for e in time_entries)


def calculate_budget(work_order: dict, time_entries: Optional[Iterable[dict]] = None) -> float:
    """
    Amount earned for a work order:
      fixed      → budget_amount
      hourly     → budget_amount × logged hours
      per_device → budget_amount × devices_installed
    Orders without a budget earn 0.
    """
    budget_type = work_order.get("budget_type")
    amount = float(work_order.get("budget_amount") or 0)

    if budget_type == "hourly":
        total = amount * logged_hours(time_entries or [])
    elif budget_type == "per_device":
        total = amount * int(work_order.get("devices_installed") or 0)
    elif budget_type == "fixed":
        total = amount
    else:
        total = 0.0

    return round(total, 2)
