# tests/test_budget.py

"""
Tests for work order budget calculation.
"""

from services.budget import calculate_budget, entry_hours, logged_hours

TWO_HOURS_WITH_BREAK = {
    "start_time": "2026-02-01T08:00:00Z",
    "end_time": "2026-02-01T10:00:00Z",
    "break_duration": 30,
}
ONE_HOUR = {"start_time": "2026-02-01T13:00:00+00:00", "end_time": "2026-02-01T14:00:00+00:00"}
RUNNING = {"start_time": "2026-02-01T15:00:00Z", "end_time": None, "is_active": True}


def test_entry_hours_net_of_breaks():
    assert entry_hours(TWO_HOURS_WITH_BREAK) == 1.5
    assert entry_hours(RUNNING) == 0.0
    assert logged_hours([TWO_HOURS_WITH_BREAK, ONE_HOUR, RUNNING]) == 2.5


def test_fixed_budget():
    assert calculate_budget({"budget_type": "fixed", "budget_amount": 500}) == 500.0


def test_hourly_budget_uses_logged_time():
    order = {"budget_type": "hourly", "budget_amount": 40}
    assert calculate_budget(order, [TWO_HOURS_WITH_BREAK, ONE_HOUR]) == 100.0
    assert calculate_budget(order, []) == 0.0


def test_per_device_budget():
    order = {"budget_type": "per_device", "budget_amount": 12.5, "devices_installed": 7}
    assert calculate_budget(order) == 87.5


def test_missing_budget_earns_nothing():
    assert calculate_budget({}) == 0.0
    assert calculate_budget({"budget_type": "per_device", "budget_amount": 10}) == 0.0


def test_budget_is_rounded_to_cents():
    order = {"budget_type": "hourly", "budget_amount": 33.333}
    assert calculate_budget(order, [ONE_HOUR]) == 33.33
