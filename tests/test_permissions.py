# tests/test_permissions.py

"""
Tests for permission checks and access control.
"""

from fastapi.testclient import TestClient
from unittest.mock import patch

from conftest import make_user
from core.cache import cache_get
from core.permissions import (
    check_permission,
    generate_permission_report,
    permission_matches,
    role_has_permission,
)


def test_permission_wildcards():
    assert permission_matches("*", "work_orders:delete")
    assert permission_matches("work_orders:*", "work_orders:assign")
    assert permission_matches("users:read", "users:read")
    assert not permission_matches("users:read", "users:update")
    assert not permission_matches("work_orders:*", "users:read")


def test_role_table():
    assert role_has_permission("administrator", "payments:update")
    assert role_has_permission("dispatcher", "work_orders:assign")
    assert not role_has_permission("dispatcher", "work_orders:delete")
    assert not role_has_permission("client", "users:read")
    assert not role_has_permission("field_agent", "audit:read")


def test_director_bypass():
    director = make_user("director", ["operations_director"], company_id=None)

    result = check_permission(director, "anything", "delete")

    assert result.granted is True
    assert result.bypass_used is True
    assert result.reason == "Operations Director global bypass"


def test_director_does_not_bypass_while_impersonating():
    director = make_user("director", ["operations_director"], is_impersonating=True)

    result = check_permission(director, "audit", "read")

    assert result.granted is True
    assert result.bypass_used is False


def test_primary_role_decides():
    # Highest role (manager) lacks payments:update even though nothing else grants it
    user = make_user("multi", ["field_agent", "manager"])

    assert check_permission(user, "payments", "update").granted is False
    assert check_permission(user, "work_orders", "delete").granted is True
    assert check_permission(user, "work_orders", "delete").applied_role == "manager"


def test_decisions_are_cached():
    user = make_user("dispatcher", ["dispatcher"])

    first = check_permission(user, "work_orders", "assign")

    cached = cache_get("rbac:dispatcher:-:0:work_orders:assign")
    assert cached is not None
    assert cached.granted == first.granted


def test_permission_report_lists_every_role():
    report = generate_permission_report(make_user("admin", ["administrator"]))

    assert report["primary_role"] == "administrator"
    assert "audit:read" in report["effective_permissions"]
    assert len(report["role_table"]) == 9


def test_audit_logs_require_audit_permission(client: TestClient, login, dispatcher_user):
    login(dispatcher_user)

    response = client.get("/audit-logs/")

    assert response.status_code == 403
    assert "audit:read" in response.json()["detail"]


def test_audit_logs_filters(client: TestClient, login, admin_user, mock_supabase_client):
    login(admin_user)
    mock_supabase_client.query.execute.return_value.data = [{"id": "log-1", "entity_type": "work_order"}]

    with patch("routers.audit_logs.get_supabase_client", return_value=mock_supabase_client):
        response = client.get("/audit-logs/?entity_type=work_order&entity_id=wo-1")

    assert response.status_code == 200
    assert response.json()[0]["id"] == "log-1"
    mock_supabase_client.query.eq.assert_any_call("entity_type", "work_order")
    mock_supabase_client.query.eq.assert_any_call("entity_id", "wo-1")


def test_team_report_forbidden_for_field_agents(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.get("/reports/team")

    assert response.status_code == 403
