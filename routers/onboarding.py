# routers/onboarding.py

from fastapi import APIRouter, HTTPException, Depends, Query, Request
from typing import List, Optional

from dependencies.auth import CurrentUser
from core.audit import log_audit
from core.config import settings
from core.logging_config import logger
from core.notifications import send_email, send_webhook_message
from core.permission_helpers import requires_predicate
from core.rate_limiter import require_rate_limit
from core.roles import is_admin_team, is_operations_director
from core.supabase_client import get_supabase_client
from core.utils import sanitize, utcnow_iso
from models.enums import OnboardingStatus
from models.onboarding import OnboardingRejection, OnboardingRequestCreate, OnboardingRequestRead


router = APIRouter(
    prefix="/onboarding-requests",
    tags=["Onboarding"],
)


def can_review_onboarding(roles) -> bool:
    return is_operations_director(roles) or is_admin_team(roles)


requires_reviewer = requires_predicate(
    can_review_onboarding, "Only the admin team can review onboarding requests"
)


# -----------------------------------------------------
# Helper: get a request that is still awaiting review
# -----------------------------------------------------
def get_pending_request(client, request_id: str) -> dict:
    try:
        result = (
            client.table("onboarding_requests")
            .select("*")
            .eq("id", request_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise HTTPException(500, f"Supabase query error: {e}")

    if not result.data:
        raise HTTPException(404, "Onboarding request not found")

    request_row = result.data[0]
    if request_row.get("status") != OnboardingStatus.pending:
        raise HTTPException(400, f"Request already {request_row.get('status')}")

    return request_row


def notify_applicant(email: str, subject: str, body: str):
    try:
        send_email(subject=subject, body=body, recipients=[email])
    except Exception as e:
        logger.warning(f"Applicant email to {email} failed: {e}")


# -----------------------------------------------------
# PUBLIC: submit application
# -----------------------------------------------------
@router.post("/", summary="Public: Apply to join the field team")
def submit_onboarding_request(payload: OnboardingRequestCreate, request: Request):
    require_rate_limit(
        request,
        max_requests=settings.ONBOARDING_RATE_LIMIT,
        window_seconds=settings.ONBOARDING_RATE_WINDOW_SECONDS,
        scope="onboarding",
    )

    client = get_supabase_client()

    request_data = sanitize({
        "name": payload.name,
        "email": payload.email,
        "phone": payload.phone,
        "company": payload.company,
        "resume_url": payload.resume_url,
        "motivation": payload.motivation,
    })
    request_data["skills"] = payload.skills
    request_data["status"] = str(OnboardingStatus.pending)
    request_data["created_at"] = utcnow_iso()

    try:
        result = (
            client.table("onboarding_requests")
            .insert(request_data, returning="representation")
            .execute()
        )
    except Exception as e:
        raise HTTPException(500, f"Supabase insert error: {e}")

    created = result.data[0]

    send_webhook_message(
        f"New onboarding request from {payload.name} <{payload.email}>"
        f" (skills: {', '.join(payload.skills) or 'none listed'})"
    )

    notify_applicant(
        payload.email,
        "FieldOps Pro - Application Received",
        f"Hi {payload.name},\n\n"
        "Thanks for applying to join our field team. "
        "We will review your application and get back to you shortly.\n\n"
        "FieldOps Pro Team",
    )

    return {"status": "success", "request_id": created["id"]}


# -----------------------------------------------------
# ADMIN: list
# -----------------------------------------------------
@router.get("/", response_model=List[OnboardingRequestRead])
def list_onboarding_requests(
    status: Optional[OnboardingStatus] = Query(None),
    current_user: CurrentUser = Depends(requires_reviewer),
):
    client = get_supabase_client()

    try:
        query = client.table("onboarding_requests").select("*")
        if status:
            query = query.eq("status", str(status))
        result = query.order("created_at", desc=True).execute()
        return result.data or []
    except Exception as e:
        raise HTTPException(500, f"Supabase query error: {e}")


# -----------------------------------------------------
# ADMIN: approve
# -----------------------------------------------------
@router.post("/{request_id}/approve", response_model=OnboardingRequestRead)
def approve_onboarding_request(
    request_id: str,
    current_user: CurrentUser = Depends(requires_reviewer),
):
    client = get_supabase_client()
    existing = get_pending_request(client, request_id)

    updates = {
        "status": str(OnboardingStatus.approved),
        "reviewed_by": current_user.id,
        "reviewed_at": utcnow_iso(),
    }

    try:
        result = client.table("onboarding_requests").update(updates).eq("id", request_id).execute()
    except Exception as e:
        raise HTTPException(500, f"Supabase update error: {e}")

    log_audit("onboarding_request", request_id, "approved", current_user.id, previous_state=existing, new_state=updates)

    notify_applicant(
        existing["email"],
        "FieldOps Pro - Application Approved",
        f"Hi {existing.get('name')},\n\n"
        "Good news: your application has been approved. "
        "You will receive an invitation to set up your account shortly.\n\n"
        "FieldOps Pro Team",
    )

    return result.data[0] if result.data else {**existing, **updates}


# -----------------------------------------------------
# ADMIN: reject
# -----------------------------------------------------
@router.post("/{request_id}/reject", response_model=OnboardingRequestRead)
def reject_onboarding_request(
    request_id: str,
    payload: OnboardingRejection,
    current_user: CurrentUser = Depends(requires_reviewer),
):
    client = get_supabase_client()
    existing = get_pending_request(client, request_id)

    updates = {
        "status": str(OnboardingStatus.rejected),
        "reviewed_by": current_user.id,
        "reviewed_at": utcnow_iso(),
        "rejection_reason": payload.reason.strip(),
    }

    try:
        result = client.table("onboarding_requests").update(updates).eq("id", request_id).execute()
    except Exception as e:
        raise HTTPException(500, f"Supabase update error: {e}")

    log_audit(
        "onboarding_request", request_id, "rejected", current_user.id,
        previous_state=existing, new_state=updates, reason=updates["rejection_reason"],
    )

    notify_applicant(
        existing["email"],
        "FieldOps Pro - Application Update",
        f"Hi {existing.get('name')},\n\n"
        "Thank you for your interest. Unfortunately we are unable to move "
        f"forward with your application at this time.\n\nReason: {updates['rejection_reason']}\n\n"
        "FieldOps Pro Team",
    )

    return result.data[0] if result.data else {**existing, **updates}
