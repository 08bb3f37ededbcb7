# tests/test_time_entries.py

"""
Tests for clock-in / clock-out.
"""

from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

from services.time_tracking import start_time_entry, with_duration

RUNNING = {
    "id": "te-1",
    "user_id": "agent",
    "work_order_id": None,
    "start_time": "2026-02-01T08:00:00Z",
    "end_time": None,
    "is_active": True,
    "break_duration": 0,
}


def test_duration_subtracts_breaks():
    entry = {"start_time": "2026-02-01T08:00:00Z", "end_time": "2026-02-01T10:00:00Z", "break_duration": 15}
    assert with_duration(entry)["duration_minutes"] == 105


def test_duration_none_without_end_for_closed_entry():
    assert with_duration({"start_time": "2026-02-01T08:00:00Z", "is_active": False})["duration_minutes"] is None


def test_start_ends_running_entry_first(mock_supabase_client):
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[RUNNING]),                 # running entry found
        Mock(data=[{**RUNNING, "is_active": False}]),
        Mock(data=[{"id": "te-2", "is_active": True}]),
    ]

    entry = start_time_entry(mock_supabase_client, "agent", "wo-1")

    assert entry["id"] == "te-2"
    closed = mock_supabase_client.query.update.call_args[0][0]
    assert closed["is_active"] is False
    mock_supabase_client.query.eq.assert_any_call("id", "te-1")


def test_clock_in_endpoint(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[]),
        Mock(data=[{**RUNNING, "id": "te-3", "notes": "Travel"}]),
    ]

    with patch("routers.time_entries.get_supabase_client", return_value=mock_supabase_client):
        response = client.post("/time-entries/start", json={"notes": "Travel"})

    assert response.status_code == 200
    assert response.json()["id"] == "te-3"
    assert response.json()["is_active"] is True


def test_cannot_end_someone_elses_entry(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[RUNNING])

    with patch("routers.time_entries.get_supabase_client", return_value=mock_supabase_client):
        response = client.post("/time-entries/te-1/end")

    assert response.status_code == 403


def test_end_entry_with_break(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[RUNNING]),
        Mock(data=[{**RUNNING, "is_active": False, "end_time": "2026-02-01T12:00:00Z", "break_duration": 30}]),
    ]

    with patch("routers.time_entries.get_supabase_client", return_value=mock_supabase_client):
        response = client.post("/time-entries/te-1/end", json={"break_duration": 30})

    assert response.status_code == 200
    assert response.json()["duration_minutes"] == 210
    assert mock_supabase_client.query.update.call_args[0][0]["break_duration"] == 30


def test_end_already_ended(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[{**RUNNING, "is_active": False}])

    with patch("routers.time_entries.get_supabase_client", return_value=mock_supabase_client):
        response = client.post("/time-entries/te-1/end")

    assert response.status_code == 400


def test_agents_cannot_read_others_entries(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.get("/time-entries/user/someone-else")

    assert response.status_code == 403
