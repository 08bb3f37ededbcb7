# services/impersonation.py

"""
Role testing for operations directors.

An operations director "becomes" a seeded test user of a given role in
the test service or test client company. While a session is active,
`dependencies.auth.get_current_user` resolves to that test user.

Sessions are kept in memory, keyed by the operations director's user id.
"""

from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Optional

from fastapi import HTTPException
from pydantic import BaseModel

from core.config import settings
from core.errors import require_client
from core.logging_config import logger
from core.roles import (
    ADMINISTRATOR,
    CLIENT_COMPANY,
    CLIENT_COMPANY_ADMIN,
    DISPATCHER,
    FIELD_AGENT,
    FIELD_ENGINEER,
    MANAGER,
    PROJECT_MANAGER,
    SERVICE_COMPANY,
    get_roles_for_company_type,
    is_operations_director,
    is_valid_role_for_company_type,
)
from core.supabase_client import get_supabase_client


# First names of the seeded test users, per role
TEST_USER_FIRST_NAMES = {
    ADMINISTRATOR: "TestAdmin",
    CLIENT_COMPANY_ADMIN: "TestAdmin",
    PROJECT_MANAGER: "TestProj",
    MANAGER: "TestMan",
    DISPATCHER: "TestDisp",
    FIELD_ENGINEER: "TestEng",
    FIELD_AGENT: "TestAge",
}

# Last name encodes the company type
TEST_USER_LAST_NAMES = {
    SERVICE_COMPANY: "Service",
    CLIENT_COMPANY: "Client",
}

ROLE_REDIRECTS = {
    ADMINISTRATOR: "/admin-dashboard",
    PROJECT_MANAGER: "/project-manager-dashboard",
    MANAGER: "/manager-dashboard",
    DISPATCHER: "/dispatcher-dashboard",
    FIELD_ENGINEER: "/mywork",
    FIELD_AGENT: "/mywork",
    CLIENT_COMPANY_ADMIN: "/dashboard",
}
DEFAULT_REDIRECT = "/dashboard"


class ImpersonationContext(BaseModel):
    original_user_id: str
    original_roles: List[str]
    impersonated_user_id: str
    impersonated_role: str
    company_type: str
    company_id: str
    started_at: datetime


def get_redirect_url(role: str) -> str:
    return ROLE_REDIRECTS.get(role, DEFAULT_REDIRECT)


def get_test_company_name(company_type: str) -> str:
    if company_type == SERVICE_COMPANY:
        return settings.TEST_SERVICE_COMPANY_NAME
    return settings.TEST_CLIENT_COMPANY_NAME


# ============================================================
# Test fixtures lookup (Supabase)
# ============================================================
def find_test_company(company_type: str) -> Optional[dict]:
    client = require_client(get_supabase_client())
    result = (
        client.table("companies")
        .select("*")
        .eq("type", company_type)
        .eq("name", get_test_company_name(company_type))
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def find_test_user(role: str, company_type: str, company_id: str) -> Optional[dict]:
    first_name = TEST_USER_FIRST_NAMES.get(role)
    if not first_name:
        return None

    client = require_client(get_supabase_client())
    result = (
        client.table("users")
        .select("*")
        .eq("company_id", company_id)
        .eq("first_name", first_name)
        .eq("last_name", TEST_USER_LAST_NAMES[company_type])
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


# ============================================================
# Session store
# ============================================================
class ImpersonationService:

    def __init__(self):
        self._sessions: Dict[str, ImpersonationContext] = {}
        self._lock = Lock()

    def start(self, original_user, role: str, company_type: str) -> ImpersonationContext:
        """
        Begin impersonating the test user for `role` in the test company
        of `company_type`. Replaces any session the caller already has.
        """
        if not is_operations_director(original_user.roles):
            raise HTTPException(403, "Only Operations Directors can use role testing")

        if company_type not in (SERVICE_COMPANY, CLIENT_COMPANY):
            raise HTTPException(400, f"Invalid company type: {company_type}")

        if not is_valid_role_for_company_type(role, company_type):
            valid = get_roles_for_company_type(company_type)
            raise HTTPException(400, f"Role '{role}' is not valid for {company_type} companies. Valid roles: {valid}")

        company = find_test_company(company_type)
        if not company:
            raise HTTPException(404, f"Test company '{get_test_company_name(company_type)}' not found")

        test_user = find_test_user(role, company_type, company["id"])
        if not test_user:
            raise HTTPException(404, f"No test user found for role '{role}' in {company['name']}")

        context = ImpersonationContext(
            original_user_id=original_user.id,
            original_roles=list(original_user.roles),
            impersonated_user_id=test_user["id"],
            impersonated_role=role,
            company_type=company_type,
            company_id=company["id"],
            started_at=datetime.now(timezone.utc),
        )

        with self._lock:
            self._sessions[original_user.id] = context

        logger.info(
            f"Impersonation started: {original_user.id} → {test_user['id']} "
            f"({role} @ {company['name']})"
        )
        return context

    def stop(self, original_user_id: str) -> bool:
        with self._lock:
            context = self._sessions.pop(original_user_id, None)

        if context:
            logger.info(f"Impersonation stopped for {original_user_id}")
        return context is not None

    def get_context(self, original_user_id: str) -> Optional[ImpersonationContext]:
        with self._lock:
            return self._sessions.get(original_user_id)

    def is_impersonating(self, original_user_id: str) -> bool:
        return self.get_context(original_user_id) is not None

    def get_effective_user_id(self, original_user_id: str) -> str:
        context = self.get_context(original_user_id)
        return context.impersonated_user_id if context else original_user_id

    def list_active(self) -> List[ImpersonationContext]:
        with self._lock:
            return list(self._sessions.values())

    def clear(self):
        with self._lock:
            self._sessions.clear()


impersonation_service = ImpersonationService()
