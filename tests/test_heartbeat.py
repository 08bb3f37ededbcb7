# tests/test_heartbeat.py

"""
Tests for the work order heartbeat score.
"""

from datetime import datetime, timezone
from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

from services.heartbeat import build_heartbeat, calculate_heartbeat, score_work_order

NOW = datetime(2026, 1, 15, tzinfo=timezone.utc)


def test_no_active_orders_is_full_health():
    assert calculate_heartbeat([], NOW) == 100
    assert calculate_heartbeat([{"status": "completed"}, {"status": "cancelled"}], NOW) == 100


def test_urgent_in_progress_order():
    order = {"priority": "urgent", "status": "in_progress", "created_at": "2026-01-14T00:00:00Z"}
    assert score_work_order(order, NOW) == 50


def test_stale_pending_order():
    order = {"priority": "low", "status": "pending", "created_at": "2026-01-05T00:00:00Z"}
    # 10 days old: -20 pending, -20 age
    assert score_work_order(order, NOW) == 60


def test_age_penalty_starts_after_a_week_and_is_capped():
    week_old = {"status": "scheduled", "created_at": "2026-01-08T00:00:00Z"}
    eight_days = {"status": "scheduled", "created_at": "2026-01-07T00:00:00Z"}
    ancient = {"status": "scheduled", "created_at": "2025-06-01T00:00:00Z"}

    assert score_work_order(week_old, NOW) == 100
    assert score_work_order(eight_days, NOW) == 84
    assert score_work_order(ancient, NOW) == 70


def test_heartbeat_averages_active_orders():
    orders = [
        {"priority": "critical", "status": "assigned", "created_at": "2026-01-14T00:00:00Z"},
        {"priority": "low", "status": "new", "created_at": "2026-01-05T00:00:00Z"},
        {"priority": "urgent", "status": "completed", "created_at": "2025-01-01T00:00:00Z"},
    ]
    assert calculate_heartbeat(orders, NOW) == 55


def test_heartbeat_rounds_half_up():
    recent = "2026-01-14T00:00:00Z"
    orders = [
        {"status": "in_progress", "created_at": recent},
        {"status": "scheduled", "created_at": recent},
        {"status": "scheduled", "created_at": recent},
        {"status": "pending", "created_at": recent},
    ]
    # 92.5 on average
    assert calculate_heartbeat(orders, NOW) == 93


def test_heartbeat_visibility_and_variant():
    orders = [{"status": "scheduled", "created_at": "2026-01-14T00:00:00Z"}]

    director = build_heartbeat(["operations_director"], orders, NOW)
    admin = build_heartbeat(["administrator"], orders, NOW)

    assert director.variant == "global"
    assert admin.variant == "company"
    assert admin.active_orders == 1
    assert build_heartbeat(["field_agent"], orders, NOW) is None
    assert build_heartbeat(["dispatcher"], orders, NOW) is None


def test_heartbeat_endpoint_null_for_field_agent(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.get("/dashboard/heartbeat")

    assert response.status_code == 200
    assert response.json() is None


def test_heartbeat_endpoint_scoped_to_company(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[
        {"id": "wo-1", "status": "completed", "priority": "high", "created_at": "2026-01-01T00:00:00Z"},
    ])

    with patch("routers.dashboard.get_supabase_client", return_value=mock_supabase_client):
        response = client.get("/dashboard/heartbeat")

    assert response.status_code == 200
    assert response.json()["percentage"] == 100
    assert response.json()["variant"] == "company"
    mock_supabase_client.query.eq.assert_called_with("company_id", "company-1")
