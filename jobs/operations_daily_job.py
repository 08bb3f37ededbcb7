# jobs/operations_daily_job.py

from datetime import datetime, timedelta
from typing import Optional

from core.config import settings
from core.logging_config import logger
from core.notifications import send_email
from core.roles import OPERATIONS_DIRECTOR
from core.supabase_client import get_supabase_client
from core.utils import parse_timestamp, utcnow
from services.heartbeat import build_heartbeat
from services.team_reports import dashboard_stats


def _fetch(client, table: str, columns: str) -> list:
    return client.table(table).select(columns).execute().data or []


def _within(row: dict, field: str, since: datetime) -> bool:
    ts = parse_timestamp(row.get(field))
    return ts is not None and ts >= since


def build_daily_digest(client, now: Optional[datetime] = None) -> dict:
    """Platform snapshot for the last 24 hours."""
    now = now or utcnow()
    since = now - timedelta(hours=24)

    users = _fetch(client, "users", "id, roles, created_at")
    orders = _fetch(client, "work_orders", "id, title, status, priority, created_at, completed_at")
    pending_requests = (
        client.table("onboarding_requests")
        .select("id")
        .eq("status", "pending")
        .execute()
    ).data or []

    heartbeat = build_heartbeat([OPERATIONS_DIRECTOR], orders, now)

    return {
        "generated_at": now.isoformat(),
        "stats": dashboard_stats(users, orders),
        "heartbeat": heartbeat.percentage if heartbeat else None,
        "new_users": sum(1 for u in users if _within(u, "created_at", since)),
        "new_work_orders": [o for o in orders if _within(o, "created_at", since)],
        "completed_work_orders": [o for o in orders if _within(o, "completed_at", since)],
        "pending_onboarding_requests": len(pending_requests),
    }


def format_daily_email(digest: dict) -> str:
    stats = digest["stats"]
    lines = [
        f"FieldOps Pro daily digest ({digest['generated_at']})",
        "",
        f"Heartbeat: {digest['heartbeat']}%",
        f"Active work orders: {stats['active_orders']} of {stats['total_orders']}",
        f"Completed (all time): {stats['completed_orders']}",
        f"Team size: {stats['total_users']} "
        f"({stats['administrators']} admins, {stats['managers']} managers, {stats['field_agents']} field agents)",
        "",
        f"New users (24h): {digest['new_users']}",
        f"New work orders (24h): {len(digest['new_work_orders'])}",
    ]
    lines += [f"  - {o.get('title') or o['id']} [{o.get('priority') or 'n/a'}]" for o in digest["new_work_orders"]]
    lines.append(f"Completed work orders (24h): {len(digest['completed_work_orders'])}")
    lines += [f"  - {o.get('title') or o['id']}" for o in digest["completed_work_orders"]]
    lines += ["", f"Onboarding requests awaiting review: {digest['pending_onboarding_requests']}"]
    return "\n".join(lines)


def run():
    """
    Entry point for the daily operations digest. Called by the
    scheduler, or directly as a cron job.
    """
    client = get_supabase_client()
    if not client:
        raise RuntimeError("Supabase not configured")

    digest = build_daily_digest(client)
    body = format_daily_email(digest)

    recipients = [settings.OPERATIONS_REPORT_EMAIL] if settings.OPERATIONS_REPORT_EMAIL else None
    sent = send_email(
        subject="FieldOps Pro - Daily Operations Digest",
        body=body,
        recipients=recipients,
    )
    logger.info(f"Daily digest built (heartbeat={digest['heartbeat']}, sent={sent})")
    return digest


if __name__ == "__main__":
    run()
