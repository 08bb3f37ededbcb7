# tests/test_tasks_issues.py

"""
Tests for work order tasks and blocking issues.
"""

from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

from routers.tasks import sort_tasks

WORK_ORDER = {"id": "wo-1", "company_id": "company-1", "assignee_id": "agent", "created_by_id": "manager"}


def test_tasks_sorted_by_category_then_index():
    tasks = [
        {"id": "c", "category": "post_site", "order_index": 0},
        {"id": "b", "category": "on_site", "order_index": 2},
        {"id": "a", "category": "pre_visit", "order_index": 1},
        {"id": "d", "category": "on_site", "order_index": 1},
    ]

    assert [t["id"] for t in sort_tasks(tasks)] == ["a", "d", "b", "c"]


def test_list_tasks(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[WORK_ORDER]),
        Mock(data=[
            {"id": "t2", "category": "on_site", "order_index": 0},
            {"id": "t1", "category": "pre_visit", "order_index": 0},
        ]),
    ]

    with patch("routers.tasks.get_supabase_client", return_value=mock_supabase_client):
        response = client.get("/work-orders/wo-1/tasks")

    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == ["t1", "t2"]


def test_unrelated_user_cannot_complete_task(client: TestClient, login, mock_supabase_client):
    from conftest import make_user
    login(make_user("other-agent", ["field_agent"]))
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[{"id": "t1", "work_order_id": "wo-1"}]),
        Mock(data=[WORK_ORDER]),
    ]

    with patch("routers.tasks.get_supabase_client", return_value=mock_supabase_client):
        response = client.post("/tasks/t1/complete")

    assert response.status_code == 403


def test_project_manager_completes_task(client: TestClient, login, mock_supabase_client):
    from conftest import make_user
    login(make_user("pm", ["project_manager"]))
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[{"id": "t1", "work_order_id": "wo-1"}]),
        Mock(data=[WORK_ORDER]),
        Mock(data=[{"id": "t1", "work_order_id": "wo-1", "is_completed": True}]),
    ]

    with patch("routers.tasks.get_supabase_client", return_value=mock_supabase_client), \
            patch("routers.tasks.log_audit") as audit:
        response = client.post("/tasks/t1/complete")

    assert response.status_code == 200
    assert mock_supabase_client.query.update.call_args[0][0]["completed_by_id"] == "pm"
    assert audit.call_args[0][:4] == ("work_order", "wo-1", "task_completed", "pm")


def test_dispatcher_cannot_update_task(client: TestClient, login, dispatcher_user, mock_supabase_client):
    login(dispatcher_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[{"id": "t1", "work_order_id": "wo-1"}]),
        Mock(data=[WORK_ORDER]),
    ]

    with patch("routers.tasks.get_supabase_client", return_value=mock_supabase_client):
        response = client.patch("/tasks/t1", json={"title": "Swap meter"})

    assert response.status_code == 403


def test_task_mutations_are_audited(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    task = {"id": "t1", "work_order_id": "wo-1", "title": "Survey"}
    mock_supabase_client.query.execute.side_effect = [
        # create
        Mock(data=[WORK_ORDER]),
        Mock(data=[task]),
        # update
        Mock(data=[task]),
        Mock(data=[WORK_ORDER]),
        Mock(data=[{**task, "title": "Site survey"}]),
        # delete
        Mock(data=[task]),
        Mock(data=[WORK_ORDER]),
        Mock(data=[]),
    ]

    with patch("routers.tasks.get_supabase_client", return_value=mock_supabase_client), \
            patch("routers.tasks.log_audit") as audit:
        created = client.post("/work-orders/wo-1/tasks", json={"title": "Survey", "category": "pre_visit"})
        updated = client.patch("/tasks/t1", json={"title": "Site survey"})
        deleted = client.delete("/tasks/t1")

    assert [r.status_code for r in (created, updated, deleted)] == [200, 200, 200]
    actions = [c[0][2] for c in audit.call_args_list]
    assert actions == ["task_created", "task_updated", "task_deleted"]
    assert all(c[0][3] == "manager" for c in audit.call_args_list)


def test_report_issue(client: TestClient, login, agent_user, mock_supabase_client):
    login(agent_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[WORK_ORDER]),
        Mock(data=[{"id": "i1", "status": "open"}]),
    ]

    with patch("routers.issues.get_supabase_client", return_value=mock_supabase_client):
        response = client.post(
            "/work-orders/wo-1/issues",
            json={"reason": "Access", "explanation": " Gate locked "},
        )

    assert response.status_code == 200
    inserted = mock_supabase_client.query.insert.call_args[0][0]
    assert inserted["reason"] == "Access"
    assert inserted["explanation"] == "Gate locked"
    assert inserted["status"] == "open"


def test_unknown_issue_reason(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.post("/work-orders/wo-1/issues", json={"reason": "Weather", "explanation": "Rain"})

    assert response.status_code == 422


def test_field_agent_cannot_resolve(client: TestClient, login, agent_user):
    login(agent_user)

    response = client.patch("/issues/i1/resolve", json={"resolution": "done"})

    assert response.status_code == 403


def test_dispatcher_resolves(client: TestClient, login, dispatcher_user, mock_supabase_client):
    login(dispatcher_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[{"id": "i1", "status": "open"}]),
        Mock(data=[{"id": "i1", "status": "resolved"}]),
    ]

    with patch("routers.issues.get_supabase_client", return_value=mock_supabase_client):
        response = client.patch("/issues/i1/resolve", json={"resolution": "Rescheduled"})

    assert response.status_code == 200
    assert mock_supabase_client.query.update.call_args[0][0]["status"] == "resolved"
