# tests/test_onboarding.py

"""
Tests for public onboarding applications and their review.
"""

from fastapi.testclient import TestClient
from unittest.mock import Mock, patch

APPLICATION = {
    "name": "Sam Rivera",
    "email": "sam.rivera@fieldops.io",
    "phone": "555-0111",
    "skills": ["fiber splicing", "low voltage"],
}

PENDING = {
    "id": "req-1",
    "name": "Sam Rivera",
    "email": "sam.rivera@fieldops.io",
    "skills": [],
    "status": "pending",
}


def patched(mock_client):
    return patch("routers.onboarding.get_supabase_client", return_value=mock_client)


def test_public_submission(client: TestClient, mock_supabase_client):
    mock_supabase_client.query.execute.return_value = Mock(data=[{"id": "req-1"}])

    with patched(mock_supabase_client), \
         patch("routers.onboarding.send_webhook_message") as webhook, \
         patch("routers.onboarding.send_email") as email:
        response = client.post("/onboarding-requests/", json=APPLICATION)

    assert response.status_code == 200
    assert response.json() == {"status": "success", "request_id": "req-1"}

    inserted = mock_supabase_client.query.insert.call_args[0][0]
    assert inserted["status"] == "pending"
    assert inserted["skills"] == ["fiber splicing", "low voltage"]
    assert "fiber splicing" in webhook.call_args[0][0]
    assert email.call_args.kwargs["recipients"] == ["sam.rivera@fieldops.io"]


def test_submission_rate_limited(client: TestClient, mock_supabase_client):
    mock_supabase_client.query.execute.return_value = Mock(data=[{"id": "req-1"}])

    with patched(mock_supabase_client), \
         patch("routers.onboarding.send_webhook_message"), \
         patch("routers.onboarding.send_email"):
        statuses = [client.post("/onboarding-requests/", json=APPLICATION).status_code for _ in range(6)]

    assert statuses == [200] * 5 + [429]


def test_applicant_email_failure_does_not_fail_request(client: TestClient, mock_supabase_client):
    mock_supabase_client.query.execute.return_value = Mock(data=[{"id": "req-2"}])

    with patched(mock_supabase_client), \
         patch("routers.onboarding.send_webhook_message"), \
         patch("routers.onboarding.send_email", side_effect=RuntimeError("smtp down")):
        response = client.post("/onboarding-requests/", json=APPLICATION)

    assert response.status_code == 200


def test_field_agent_cannot_review(client: TestClient, login, agent_user):
    login(agent_user)

    assert client.get("/onboarding-requests/").status_code == 403
    assert client.post("/onboarding-requests/req-1/approve").status_code == 403


def test_list_filters_by_status(client: TestClient, login, manager_user, mock_supabase_client):
    login(manager_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[PENDING])

    with patched(mock_supabase_client):
        response = client.get("/onboarding-requests/?status=pending")

    assert response.status_code == 200
    mock_supabase_client.query.eq.assert_called_with("status", "pending")


def test_approve(client: TestClient, login, admin_user, mock_supabase_client):
    login(admin_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[PENDING]),
        Mock(data=[{**PENDING, "status": "approved", "reviewed_by": "admin"}]),
    ]

    with patched(mock_supabase_client), patch("routers.onboarding.send_email") as email:
        response = client.post("/onboarding-requests/req-1/approve")

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    updates = mock_supabase_client.query.update.call_args[0][0]
    assert updates["reviewed_by"] == "admin"
    assert "Approved" in email.call_args.kwargs["subject"]


def test_cannot_review_twice(client: TestClient, login, admin_user, mock_supabase_client):
    login(admin_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[{**PENDING, "status": "approved"}])

    with patched(mock_supabase_client):
        response = client.post("/onboarding-requests/req-1/approve")

    assert response.status_code == 400


def test_reject_requires_reason(client: TestClient, login, admin_user):
    login(admin_user)

    response = client.post("/onboarding-requests/req-1/reject", json={"reason": ""})

    assert response.status_code == 422


def test_reject(client: TestClient, login, director_user, mock_supabase_client):
    login(director_user)
    mock_supabase_client.query.execute.side_effect = [
        Mock(data=[PENDING]),
        Mock(data=[{**PENDING, "status": "rejected", "rejection_reason": "No openings"}]),
    ]

    with patched(mock_supabase_client), patch("routers.onboarding.send_email") as email:
        response = client.post("/onboarding-requests/req-1/reject", json={"reason": " No openings "})

    assert response.status_code == 200
    assert mock_supabase_client.query.update.call_args[0][0]["rejection_reason"] == "No openings"
    assert "No openings" in email.call_args.kwargs["body"]


def test_missing_request(client: TestClient, login, admin_user, mock_supabase_client):
    login(admin_user)
    mock_supabase_client.query.execute.return_value = Mock(data=[])

    with patched(mock_supabase_client):
        response = client.post("/onboarding-requests/nope/approve")

    assert response.status_code == 404
