# tests/test_notifications.py

from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

NOTIFICATION = {
    "id": "n1",
    "user_id": "agent",
    "type": "work_order_confirmation",
    "work_order_id": "wo-1",
    "is_read": False,
}


def patched(mock_client):
    return patch("routers.notifications.get_supabase_client", return_value=mock_client)


def test_unread_count(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[NOTIFICATION, {**NOTIFICATION, "id": "n2"}])

    with patched(mock_supabase_client):
        response = client.get("/notifications/unread")

    assert response.status_code == 200
    assert response.json()["count"] == 2
    mock_supabase_client.query.eq.assert_any_call("is_read", False)


def test_mark_read_not_owner(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[NOTIFICATION])

    with patched(mock_supabase_client):
        response = client.patch("/notifications/n1/read")

    assert response.status_code == 403


def test_confirm_moves_scheduled_order_to_confirmed(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[NOTIFICATION]),
        Mock(data=[{**NOTIFICATION, "is_confirmed": True}]),
        Mock(data=[{"id": "wo-1", "status": "scheduled", "assignee_id": "agent"}]),
        Mock(data=[{"id": "wo-1", "status": "confirmed"}]),
    ]

    with patched(mock_supabase_client), patch("routers.notifications.log_audit") as audit:
        response = client.post("/notifications/n1/confirm")

    assert response.status_code == 200
    assert response.json()["work_order_confirmed"] is True
    assert mock_supabase_client.query.update.call_args[0][0]["status"] == "confirmed"
    audit.assert_called_once()
    assert audit.call_args[0][:4] == ("work_order", "wo-1", "confirmed", "agent")


def test_confirm_after_reassignment_leaves_order_alone(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[NOTIFICATION]),
        Mock(data=[{**NOTIFICATION, "is_confirmed": True}]),
        Mock(data=[{"id": "wo-1", "status": "scheduled", "assignee_id": "new-agent"}]),
    ]

    with patched(mock_supabase_client), patch("routers.notifications.log_audit") as audit:
        response = client.post("/notifications/n1/confirm")

    assert response.status_code == 200
    assert response.json()["work_order_confirmed"] is False
    assert mock_supabase_client.query.update.call_count == 1
    audit.assert_not_called()


def test_confirm_leaves_progressed_order_alone(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[NOTIFICATION]),
        Mock(data=[{**NOTIFICATION, "is_confirmed": True}]),
        Mock(data=[{"id": "wo-1", "status": "in_progress"}]),
    ]

    with patched(mock_supabase_client):
        response = client.post("/notifications/n1/confirm")

    assert response.status_code == 200
    assert response.json()["work_order_confirmed"] is False
    assert mock_supabase_client.query.update.call_count == 1
