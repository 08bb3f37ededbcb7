# tests/test_job_requests.py

"""
Tests for the job network: proposing agents for client-created work
orders and the client's accept/decline response.
"""

from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

from services.job_requests import agent_track_record, annotate_request_status

OPEN_ORDER = {
    "id": "wo-9",
    "title": "Mount ceiling projector",
    "company_id": "client-co",
    "status": "pending",
    "assignee_id": None,
    "created_by_id": "customer",
    "is_client_created": True,
}

AGENT = {"id": "agent", "first_name": "Ana", "last_name": "Lee", "roles": ["field_agent"], "is_active": True}

REQUEST = {
    "id": "req-1",
    "work_order_id": "wo-9",
    "agent_id": "agent",
    "requested_by_id": "dispatcher",
    "status": "pending",
    "notes": "Ana has done three installs on site",
}


def patched(mock_client):
    return patch("routers.job_requests.get_supabase_client", return_value=mock_client)


def test_annotate_request_status():
    orders = [{"id": "wo-1"}, {"id": "wo-2"}]
    pending = [{"work_order_id": "wo-1", "agent_id": "a1"}, {"work_order_id": "wo-1", "agent_id": "a2"}]

    annotated = annotate_request_status(orders, pending)

    assert annotated[0]["request_status"] == "request_sent"
    assert annotated[0]["pending_agent_ids"] == ["a1", "a2"]
    assert annotated[1]["request_status"] == "pending_request"
    assert annotated[1]["pending_agent_ids"] == []


def test_agent_track_record():
    orders = [
        {"assignee_id": "a1", "status": "completed", "completed_at": "2026-01-10T00:00:00Z", "due_date": "2026-01-12T00:00:00Z"},
        {"assignee_id": "a1", "status": "completed", "completed_at": "2026-01-15T00:00:00Z", "due_date": "2026-01-12T00:00:00Z"},
        {"assignee_id": "a1", "status": "completed", "completed_at": "2026-01-15T00:00:00Z"},
        {"assignee_id": "a2", "status": "completed", "completed_at": "2026-01-15T00:00:00Z"},
        {"assignee_id": "a1", "status": "in_progress"},
    ]

    assert agent_track_record("a1", orders) == {"completed_orders": 3, "on_time_orders": 2}


def test_field_agent_cannot_browse_job_network(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.get("/job-network/work-orders")

    assert response.status_code == 403


def test_job_network_lists_open_client_orders(client: TestClient, login, dispatcher_user, mock_supabase_client):
    login(dispatcher_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[OPEN_ORDER, {**OPEN_ORDER, "id": "wo-10"}]),
        Mock(data=[{"work_order_id": "wo-9", "agent_id": "agent"}]),
    ]

    with patched(mock_supabase_client):
        response = client.get("/job-network/work-orders")

    assert response.status_code == 200
    statuses = {o["id"]: o["request_status"] for o in response.json()}
    assert statuses == {"wo-9": "request_sent", "wo-10": "pending_request"}
    mock_supabase_client.query.eq.assert_any_call("is_client_created", True)
    mock_supabase_client.query.is_.assert_called_with("assignee_id", "null")


def test_client_sees_only_own_company_orders(client: TestClient, login, client_user, mock_supabase_client):
    login(client_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[])

    with patched(mock_supabase_client):
        response = client.get("/job-network/work-orders")

    assert response.status_code == 200
    assert response.json() == []
    mock_supabase_client.query.eq.assert_any_call("company_id", "client-co")


def test_request_assignment(client: TestClient, login, dispatcher_user, mock_supabase_client):
    login(dispatcher_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[OPEN_ORDER]),
        Mock(data=[AGENT]),
        Mock(data=[]),
        Mock(data=[REQUEST]),
        Mock(data=[{"id": "n-1"}]),
    ]

    with patched(mock_supabase_client), patch("routers.job_requests.log_audit") as audit:
        response = client.post(
            "/job-network/request-assignment",
            json={"work_order_id": "wo-9", "agent_id": "agent", "notes": " Ana has done three installs on site "},
        )

    assert response.status_code == 200
    assert response.json()["status"] == "pending"

    record = mock_supabase_client.query.insert.call_args_list[0][0][0]
    assert record["requested_by_id"] == "dispatcher"
    assert record["notes"] == "Ana has done three installs on site"

    notification = mock_supabase_client.query.insert.call_args_list[1][0][0]
    assert notification["user_id"] == "customer"
    assert "Ana Lee" in notification["message"]
    assert audit.call_args[0][:4] == ("assignment", "wo-9", "assignment_requested", "dispatcher")


def test_request_for_assigned_order_rejected(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[{**OPEN_ORDER, "assignee_id": "someone"}])

    with patched(mock_supabase_client):
        response = client.post("/job-network/request-assignment", json={"work_order_id": "wo-9", "agent_id": "agent"})

    assert response.status_code == 400
    mock_supabase_client.query.insert.assert_not_called()


def test_request_for_non_agent_rejected(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[OPEN_ORDER]),
        Mock(data=[{**AGENT, "roles": ["dispatcher"]}]),
    ]

    with patched(mock_supabase_client):
        response = client.post("/job-network/request-assignment", json={"work_order_id": "wo-9", "agent_id": "agent"})

    assert response.status_code == 400


def test_duplicate_request_conflicts(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[OPEN_ORDER]),
        Mock(data=[AGENT]),
        Mock(data=[{"id": "req-0"}]),
    ]

    with patched(mock_supabase_client):
        response = client.post("/job-network/request-assignment", json={"work_order_id": "wo-9", "agent_id": "agent"})

    assert response.status_code == 409
    mock_supabase_client.query.insert.assert_not_called()


def test_client_lists_pending_requests(client: TestClient, login, client_user, mock_supabase_client):
    login(client_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[OPEN_ORDER]),
        Mock(data=[REQUEST]),
        Mock(data=[AGENT]),
        Mock(data=[
            {"assignee_id": "agent", "status": "completed", "completed_at": "2026-01-10T00:00:00Z", "due_date": "2026-01-12T00:00:00Z"},
        ]),
    ]

    with patched(mock_supabase_client):
        response = client.get("/client/assignment-requests")

    assert response.status_code == 200
    request = response.json()[0]
    assert request["work_order"]["title"] == "Mount ceiling projector"
    assert request["requested_agent"]["first_name"] == "Ana"
    assert request["track_record"] == {"completed_orders": 1, "on_time_orders": 1}


def test_manager_cannot_list_client_requests(client: TestClient, login, manager_user):
    login(manager_user)

    response = client.get("/client/assignment-requests")

    assert response.status_code == 403


def test_client_accepts_request(client: TestClient, login, client_user, mock_supabase_client):
    login(client_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[REQUEST]),
        Mock(data=[OPEN_ORDER]),
        Mock(data=[{**REQUEST, "status": "accepted"}]),
        Mock(data=[]),
        Mock(data=[]),
        Mock(data=[]),
        Mock(data=[]),
    ]

    with patched(mock_supabase_client), patch("routers.job_requests.log_audit") as audit:
        response = client.post("/client/respond-request", json={"request_id": "req-1", "action": "accept"})

    assert response.status_code == 200
    assert response.json()["work_order_assigned"] is True

    updates = [c[0][0] for c in mock_supabase_client.query.update.call_args_list]
    assert updates[0]["status"] == "accepted"
    assert updates[1]["assignee_id"] == "agent"
    assert updates[1]["status"] == "scheduled"
    assert updates[2]["status"] == "declined"

    notifications = [c[0][0] for c in mock_supabase_client.query.insert.call_args_list]
    assert notifications[0]["user_id"] == "agent"
    assert notifications[0]["type"] == "work_order_confirmation"
    assert notifications[1]["user_id"] == "dispatcher"
    assert audit.call_args[0][2] == "request_accepted"


def test_client_declines_request(client: TestClient, login, client_user, mock_supabase_client):
    login(client_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[REQUEST]),
        Mock(data=[OPEN_ORDER]),
        Mock(data=[{**REQUEST, "status": "declined"}]),
        Mock(data=[]),
    ]

    with patched(mock_supabase_client), patch("routers.job_requests.log_audit"):
        response = client.post(
            "/client/respond-request",
            json={"request_id": "req-1", "action": "decline", "notes": "Prefer a certified installer"},
        )

    assert response.status_code == 200
    assert response.json()["work_order_assigned"] is False
    assert mock_supabase_client.query.update.call_count == 1
    assert mock_supabase_client.query.update.call_args[0][0]["client_notes"] == "Prefer a certified installer"


def test_other_client_cannot_respond(client: TestClient, login, mock_supabase_client):
    from conftest import make_user
    login(make_user("rival", ["client"], company_id="rival-co", company_type="client"))
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[REQUEST]),
        Mock(data=[OPEN_ORDER]),
    ]

    with patched(mock_supabase_client):
        response = client.post("/client/respond-request", json={"request_id": "req-1", "action": "accept"})

    assert response.status_code == 403
    mock_supabase_client.query.update.assert_not_called()


def test_answered_request_cannot_be_reopened(client: TestClient, login, client_user, mock_supabase_client):
    login(client_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[{**REQUEST, "status": "declined"}])

    with patched(mock_supabase_client):
        response = client.post("/client/respond-request", json={"request_id": "req-1", "action": "accept"})

    assert response.status_code == 400


def test_unknown_response_action(client: TestClient, login, client_user):
    login(client_user)

    response = client.post("/client/respond-request", json={"request_id": "req-1", "action": "maybe"})

    assert response.status_code == 422
