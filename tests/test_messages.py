# tests/test_messages.py

from fastapi.testclient import TestClient
from unittest.mock import Mock, patch


def patched(mock_client):
    return patch("routers.messages.get_supabase_client", return_value=mock_client)


def test_direct_message(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[{
        "id": "m1", "sender_id": "agent", "recipient_id": "manager", "content": "On site",
    }])

    with patched(mock_supabase_client):
        response = client.post("/messages/", json={"recipient_id": "manager", "content": "  On site "})

    assert response.status_code == 200
    inserted = mock_supabase_client.query.insert.call_args[0][0]
    assert inserted["message_type"] == "direct"
    assert inserted["content"] == "On site"
    assert inserted["priority"] == "normal"


def test_agent_cannot_broadcast(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.post("/messages/", json={"content": "Hello all"})

    assert response.status_code == 403


def test_manager_broadcasts(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[{
        "id": "m2", "sender_id": "manager", "content": "Team meeting at 9", "message_type": "broadcast",
    }])

    with patched(mock_supabase_client):
        response = client.post("/messages/", json={"content": "Team meeting at 9", "priority": "high"})

    assert response.status_code == 200
    assert response.json()["message_type"] == "broadcast"


def test_cannot_message_self(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.post("/messages/", json={"recipient_id": "agent", "content": "hi"})

    assert response.status_code == 400


def test_inbox_merges_direct_and_broadcast(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[{"id": "m1", "sender_id": "manager", "recipient_id": "agent", "content": "a",
                    "is_read": True, "created_at": "2026-02-01T08:00:00Z"}]),
        Mock(data=[{"id": "m2", "sender_id": "manager", "content": "b",
                    "is_read": False, "created_at": "2026-02-02T08:00:00Z"}]),
    ]

    with patched(mock_supabase_client):
        response = client.get("/messages/")

    assert response.status_code == 200
    assert [m["id"] for m in response.json()] == ["m2", "m1"]


def test_only_recipient_marks_read(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[{
        "id": "m1", "sender_id": "agent", "recipient_id": "manager", "content": "x",
    }])

    with patched(mock_supabase_client):
        response = client.patch("/messages/m1/read")

    assert response.status_code == 403
