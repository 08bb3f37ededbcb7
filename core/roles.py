# core/roles.py

"""
Role catalogue, hierarchy, and role predicates.

Users hold a list of roles (`users.roles`). Everything that needs "the"
role of a user goes through `get_primary_role`.
"""

from typing import Iterable, List, Optional, Union


# ============================================
# ROLE NAMES
# ============================================
OPERATIONS_DIRECTOR = "operations_director"
ADMINISTRATOR = "administrator"
PROJECT_MANAGER = "project_manager"
MANAGER = "manager"
DISPATCHER = "dispatcher"
FIELD_ENGINEER = "field_engineer"
FIELD_AGENT = "field_agent"
CLIENT_COMPANY_ADMIN = "client_company_admin"
CLIENT = "client"

DEFAULT_ROLE = FIELD_AGENT

SERVICE_COMPANY = "service"
CLIENT_COMPANY = "client"
COMPANY_TYPES = [SERVICE_COMPANY, CLIENT_COMPANY]


# ============================================
# HIERARCHY
# ============================================
# Authority levels used by RBAC and primary-role resolution
ROLE_LEVELS = {
    OPERATIONS_DIRECTOR: 1000,
    ADMINISTRATOR: 900,
    PROJECT_MANAGER: 850,
    MANAGER: 800,
    DISPATCHER: 700,
    FIELD_ENGINEER: 600,
    FIELD_AGENT: 500,
    CLIENT_COMPANY_ADMIN: 400,
    CLIENT: 100,
}

ALL_ROLES = sorted(ROLE_LEVELS, key=ROLE_LEVELS.get, reverse=True)

# Coarse levels used by role testing ("can this tested role do X?")
TESTING_HIERARCHY = {
    OPERATIONS_DIRECTOR: 10,
    ADMINISTRATOR: 8,
    PROJECT_MANAGER: 7,
    MANAGER: 6,
    DISPATCHER: 4,
    FIELD_ENGINEER: 3,
    FIELD_AGENT: 2,
    CLIENT_COMPANY_ADMIN: 1,
    CLIENT: 1,
}

ROLE_DISPLAY_NAMES = {
    OPERATIONS_DIRECTOR: "Operations Director",
    ADMINISTRATOR: "Administrator",
    PROJECT_MANAGER: "Project Manager",
    MANAGER: "Manager",
    DISPATCHER: "Dispatcher",
    FIELD_ENGINEER: "Field Engineer",
    FIELD_AGENT: "Field Agent",
    CLIENT_COMPANY_ADMIN: "Client Company Admin",
    CLIENT: "Client",
}


# ============================================
# COMPANY-TYPE SCOPED ROLES
# ============================================
SERVICE_COMPANY_ROLES = [
    ADMINISTRATOR,
    PROJECT_MANAGER,
    MANAGER,
    DISPATCHER,
    FIELD_ENGINEER,
    FIELD_AGENT,
]

CLIENT_COMPANY_ROLES = [
    CLIENT_COMPANY_ADMIN,
    PROJECT_MANAGER,
    MANAGER,
    DISPATCHER,
]

CLIENT_ROLES = {CLIENT, CLIENT_COMPANY_ADMIN}


# ============================================
# PREDICATE ROLE SETS
# ============================================
USER_MANAGEMENT_ROLES = {OPERATIONS_DIRECTOR, ADMINISTRATOR, PROJECT_MANAGER, MANAGER}
WORK_ORDER_MANAGEMENT_ROLES = {ADMINISTRATOR, MANAGER, DISPATCHER}
BUDGET_VIEW_ROLES = {OPERATIONS_DIRECTOR, ADMINISTRATOR, PROJECT_MANAGER, MANAGER, FIELD_ENGINEER}
ADMIN_TEAM_ROLES = {ADMINISTRATOR, PROJECT_MANAGER, MANAGER, FIELD_ENGINEER}

# Which roles may delete a user whose highest role is the key
ROLE_DELETERS = {
    OPERATIONS_DIRECTOR: set(),
    ADMINISTRATOR: {OPERATIONS_DIRECTOR},
    PROJECT_MANAGER: {OPERATIONS_DIRECTOR, ADMINISTRATOR},
    MANAGER: {OPERATIONS_DIRECTOR, ADMINISTRATOR, PROJECT_MANAGER},
    DISPATCHER: {OPERATIONS_DIRECTOR, ADMINISTRATOR, PROJECT_MANAGER, MANAGER},
    FIELD_ENGINEER: {OPERATIONS_DIRECTOR, ADMINISTRATOR, PROJECT_MANAGER, MANAGER},
    FIELD_AGENT: {OPERATIONS_DIRECTOR, ADMINISTRATOR, PROJECT_MANAGER, MANAGER},
    CLIENT_COMPANY_ADMIN: {OPERATIONS_DIRECTOR, ADMINISTRATOR},
    CLIENT: {OPERATIONS_DIRECTOR, ADMINISTRATOR, PROJECT_MANAGER, MANAGER},
}


RolesInput = Union[None, str, Iterable[str]]


# ============================================
# RESOLUTION
# ============================================
def normalize_roles(roles: RolesInput) -> List[str]:
    """
    Coerce a stored roles value into a clean list.

    Accepts a list, a single role string, or None. Unknown roles and
    duplicates are dropped; order is preserved.
    """
    if roles is None:
        return []
    if isinstance(roles, str):
        roles = [roles]

    result = []
    for role in roles:
        if role in ROLE_LEVELS and role not in result:
            result.append(role)
    return result


def get_primary_role(roles: RolesInput, active_role: Optional[str] = None) -> str:
    """
    The role a user acts under.

    An explicitly chosen `active_role` wins when the user holds it;
    otherwise the held role with the highest authority level.
    """
    held = normalize_roles(roles)
    if active_role and active_role in held:
        return active_role
    if not held:
        return DEFAULT_ROLE
    return max(held, key=lambda r: ROLE_LEVELS[r])


def get_role_level(role: Optional[str]) -> int:
    return ROLE_LEVELS.get(role, 0)


def compare_roles(role_a: str, role_b: str) -> int:
    """Positive when role_a outranks role_b."""
    return get_role_level(role_a) - get_role_level(role_b)


def get_role_hierarchy() -> List[dict]:
    return [
        {"role": role, "name": ROLE_DISPLAY_NAMES[role], "level": ROLE_LEVELS[role]}
        for role in ALL_ROLES
    ]


def get_roles_for_company_type(company_type: str) -> List[str]:
    if company_type == SERVICE_COMPANY:
        return list(SERVICE_COMPANY_ROLES)
    if company_type == CLIENT_COMPANY:
        return list(CLIENT_COMPANY_ROLES)
    raise ValueError(f"Unknown company type: {company_type}")


def is_valid_role_for_company_type(role: str, company_type: str) -> bool:
    try:
        return role in get_roles_for_company_type(company_type)
    except ValueError:
        return False


# ============================================
# ROLE TESTING
# ============================================
def can_perform_action(
    required_role: str,
    effective_role: str,
    is_testing: bool = False,
    original_role: Optional[str] = None,
) -> bool:
    """
    Whether the effective role may perform an action gated at `required_role`.

    An operations director outside of testing mode may do anything. While
    testing, the tested role's own level is what counts.
    """
    if original_role == OPERATIONS_DIRECTOR and not is_testing:
        return True
    return TESTING_HIERARCHY.get(effective_role, 0) >= TESTING_HIERARCHY.get(required_role, 0)


# ============================================
# PREDICATES
# ============================================
def has_role(roles: RolesInput, role: str) -> bool:
    return role in normalize_roles(roles)


def has_any_role(roles: RolesInput, candidates: Iterable[str]) -> bool:
    held = set(normalize_roles(roles))
    return bool(held.intersection(candidates))


def is_operations_director(roles: RolesInput) -> bool:
    return has_role(roles, OPERATIONS_DIRECTOR)


def is_client(roles: RolesInput) -> bool:
    return has_any_role(roles, CLIENT_ROLES)


def can_manage_users(roles: RolesInput) -> bool:
    return has_any_role(roles, USER_MANAGEMENT_ROLES)


def can_manage_work_orders(roles: RolesInput) -> bool:
    return has_any_role(roles, WORK_ORDER_MANAGEMENT_ROLES)


def can_view_all_orders(roles: RolesInput) -> bool:
    return has_any_role(roles, WORK_ORDER_MANAGEMENT_ROLES)


def can_view_budgets(roles: RolesInput) -> bool:
    return has_any_role(roles, BUDGET_VIEW_ROLES)


def is_admin_team(roles: RolesInput) -> bool:
    return has_any_role(roles, ADMIN_TEAM_ROLES)


def can_self_assign(roles: RolesInput) -> bool:
    return has_role(roles, FIELD_ENGINEER)


def can_manage_companies(roles: RolesInput) -> bool:
    return is_operations_director(roles)


def can_onboard_admins(roles: RolesInput) -> bool:
    return is_operations_director(roles)


def can_delete_role(actor_roles: RolesInput, target_role: str) -> bool:
    """Whether someone holding `actor_roles` may delete a user whose top role is `target_role`."""
    return has_any_role(actor_roles, ROLE_DELETERS.get(target_role, set()))
