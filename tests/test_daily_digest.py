# tests/test_daily_digest.py

from datetime import datetime, timezone
from unittest.mock import Mock, patch

from core.scheduler import run_daily_digest
from jobs.operations_daily_job import build_daily_digest, format_daily_email

NOW = datetime(2026, 3, 10, 7, 0, tzinfo=timezone.utc)


def digest_client():
    mock_client = Mock()
    query = Mock()
    for method in ("select", "eq"):
        getattr(query, method).return_value = query
    query.execute.side_effect = [
        Mock(data=[
            {"id": "u1", "roles": ["field_agent"], "created_at": "2026-03-09T12:00:00Z"},
            {"id": "u2", "roles": ["administrator"], "created_at": "2025-12-01T12:00:00Z"},
        ]),
        Mock(data=[
            {"id": "w1", "title": "Rack install", "status": "pending", "priority": "high",
             "created_at": "2026-03-09T20:00:00Z"},
            {"id": "w2", "title": "Camera swap", "status": "completed",
             "created_at": "2026-03-01T08:00:00Z", "completed_at": "2026-03-10T06:00:00Z"},
        ]),
        Mock(data=[{"id": "req-1"}, {"id": "req-2"}]),
    ]
    mock_client.table.return_value = query
    return mock_client


def test_build_daily_digest():
    digest = build_daily_digest(digest_client(), NOW)

    assert digest["new_users"] == 1
    assert [o["id"] for o in digest["new_work_orders"]] == ["w1"]
    assert [o["id"] for o in digest["completed_work_orders"]] == ["w2"]
    assert digest["pending_onboarding_requests"] == 2
    assert digest["stats"]["total_orders"] == 2
    assert isinstance(digest["heartbeat"], int)


def test_format_daily_email():
    body = format_daily_email(build_daily_digest(digest_client(), NOW))

    assert "Rack install [high]" in body
    assert "Onboarding requests awaiting review: 2" in body


def test_failed_digest_sends_alert():
    with patch("core.scheduler.operations_daily_job.run", side_effect=RuntimeError("Supabase not configured")), \
         patch("core.scheduler.send_email") as send_email:
        run_daily_digest()

    assert send_email.call_args.kwargs["subject"] == "[FieldOps Pro] Daily Digest Failed"
    assert "Supabase not configured" in send_email.call_args.kwargs["body"]
