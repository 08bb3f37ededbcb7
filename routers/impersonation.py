# routers/impersonation.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from dependencies.auth import (
    CurrentUser,
    RoleTestingState,
    get_authenticated_user,
    get_role_testing_state,
)
from core.audit import log_audit
from core.logging_config import logger
from core.roles import (
    ALL_ROLES,
    can_perform_action,
    get_roles_for_company_type,
    is_operations_director,
)
from models.enums import CompanyType
from models.impersonation import ImpersonationStart, ImpersonationStatus, TestRolesRead
from services.impersonation import get_redirect_url, impersonation_service

router = APIRouter(
    prefix="/impersonation",
    tags=["Role Testing"],
)


def require_operations_director(user: CurrentUser = Depends(get_authenticated_user)) -> CurrentUser:
    if not is_operations_director(user.roles):
        raise HTTPException(403, "Only Operations Directors can use role testing")
    return user


def _status_for(user: CurrentUser) -> ImpersonationStatus:
    context = impersonation_service.get_context(user.id)
    if not context:
        return ImpersonationStatus(is_impersonating=False, original_user_id=user.id)

    return ImpersonationStatus(
        is_impersonating=True,
        original_user_id=user.id,
        impersonated_user_id=context.impersonated_user_id,
        impersonated_role=context.impersonated_role,
        company_type=context.company_type,
        company_id=context.company_id,
        started_at=context.started_at,
        redirect_url=get_redirect_url(context.impersonated_role),
    )


# ============================================================
# POST /impersonation/start
# ============================================================
@router.post("/start", response_model=ImpersonationStatus)
def start_impersonation(
    payload: ImpersonationStart,
    current_user: CurrentUser = Depends(require_operations_director),
):
    """
    Act as the seeded test user for `role` in the test company of
    `company_type`. Any existing session is replaced.

    **Permissions:** Operations Director only.
    """
    context = impersonation_service.start(current_user, payload.role, str(payload.company_type))

    log_audit(
        entity_type="user_action",
        entity_id=current_user.id,
        action="impersonation_started",
        performed_by=current_user.id,
        new_state=context.model_dump(mode="json"),
    )

    return _status_for(current_user)


# ============================================================
# POST /impersonation/stop
# ============================================================
@router.post("/stop")
def stop_impersonation(current_user: CurrentUser = Depends(require_operations_director)):
    stopped = impersonation_service.stop(current_user.id)

    if stopped:
        log_audit(
            entity_type="user_action",
            entity_id=current_user.id,
            action="impersonation_stopped",
            performed_by=current_user.id,
        )

    return {"success": True, "was_impersonating": stopped, "redirect_url": "/operations-dashboard"}


# ============================================================
# GET /impersonation/status
# ============================================================
@router.get("/status", response_model=ImpersonationStatus)
def impersonation_status(current_user: CurrentUser = Depends(get_authenticated_user)):
    """Current session for the logged-in user (never fails for non-directors)."""
    return _status_for(current_user)


@router.get("/active", response_model=List[ImpersonationStatus])
def list_active_impersonations(current_user: CurrentUser = Depends(require_operations_director)):
    return [
        ImpersonationStatus(
            is_impersonating=True,
            original_user_id=ctx.original_user_id,
            impersonated_user_id=ctx.impersonated_user_id,
            impersonated_role=ctx.impersonated_role,
            company_type=ctx.company_type,
            company_id=ctx.company_id,
            started_at=ctx.started_at,
            redirect_url=get_redirect_url(ctx.impersonated_role),
        )
        for ctx in impersonation_service.list_active()
    ]


@router.get("/roles", response_model=TestRolesRead)
def list_test_roles(
    company_type: CompanyType = Query(..., description="service or client"),
    current_user: CurrentUser = Depends(require_operations_director),
):
    return TestRolesRead(company_type=str(company_type), roles=get_roles_for_company_type(str(company_type)))


# ============================================================
# GET /impersonation/testing-state (header-based role testing)
# ============================================================
@router.get("/testing-state")
def testing_state(state: RoleTestingState = Depends(get_role_testing_state)):
    """
    Echo the role-testing headers as the server understands them, plus
    which role-gated actions the effective role could perform.
    """
    actions = {
        role: can_perform_action(role, state.effective_role, state.is_testing, state.original_role)
        for role in ALL_ROLES
    }
    logger.debug(f"Role testing state: {state.model_dump()}")
    return {**state.model_dump(), "can_act_as": actions}
