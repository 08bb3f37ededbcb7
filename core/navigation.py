# core/navigation.py

"""
Role → bottom navigation mapping and the permanent role switcher.
"""

from typing import List, Optional
from pydantic import BaseModel

from core.roles import (
    ADMINISTRATOR,
    CLIENT,
    CLIENT_COMPANY_ADMIN,
    DISPATCHER,
    FIELD_AGENT,
    FIELD_ENGINEER,
    MANAGER,
    OPERATIONS_DIRECTOR,
    PROJECT_MANAGER,
    RolesInput,
    get_primary_role,
    normalize_roles,
)

APPROVE_ACTION = "open_things_to_approve"
SWITCHABLE_ROLES = [OPERATIONS_DIRECTOR, ADMINISTRATOR]


class NavItem(BaseModel):
    label: str
    route: str
    icon: str
    badge: Optional[int] = None
    action: Optional[str] = None


# (label, route, icon); the Approve entry opens a panel instead of navigating
DASHBOARD = ("Dashboard", "/dashboard", "home")
APPROVE = ("Approve", "#", "check-circle")
MESSAGES = ("Messages", "/messages", "message-square")
SETTINGS = ("Settings", "/settings", "settings")
SEARCH = ("Search", "/search", "search")
WORK_ORDERS = ("Work Orders", "/work-orders", "clipboard-list")
TEAM = ("Team", "/team", "users")
JOB_NETWORK = ("Job Network", "/job-network", "network")
TALENT = ("Talent", "/talent-network", "user-search")
CALENDAR = ("Calendar", "/calendar", "calendar")
MY_WORK = ("My Work", "/mywork", "briefcase")

CLIENT_NAV = [
    DASHBOARD,
    WORK_ORDERS,
    ("Create", "/work-orders/create", "plus-circle"),
    TALENT,
    SETTINGS,
]

ROLE_NAVIGATION = {
    OPERATIONS_DIRECTOR: [
        ("Dashboard", "/operations-dashboard", "home"),
        ("Companies", "/operations/companies", "building"),
        APPROVE,
        SEARCH,
        SETTINGS,
    ],
    ADMINISTRATOR: [DASHBOARD, TEAM, WORK_ORDERS, JOB_NETWORK, ("Reports", "/reports", "bar-chart"), APPROVE, MESSAGES],
    PROJECT_MANAGER: [DASHBOARD, ("Projects", "/projects", "folder"), JOB_NETWORK, TALENT, APPROVE, MESSAGES],
    MANAGER: [DASHBOARD, TEAM, WORK_ORDERS, CALENDAR, APPROVE, MESSAGES],
    DISPATCHER: [DASHBOARD, WORK_ORDERS, CALENDAR, APPROVE, MESSAGES],
    FIELD_ENGINEER: [DASHBOARD, MY_WORK, ("My Team", "/my-team", "users"), APPROVE, MESSAGES],
    FIELD_AGENT: [MY_WORK, MESSAGES, SETTINGS],
    CLIENT: CLIENT_NAV,
    CLIENT_COMPANY_ADMIN: CLIENT_NAV,
}

DEFAULT_NAVIGATION = [DASHBOARD, SEARCH, ("Profile", "/profile", "user")]


def _to_item(entry: tuple, unread_count: int) -> NavItem:
    label, route, icon = entry
    item = NavItem(label=label, route=route, icon=icon)
    if entry is APPROVE:
        item.action = APPROVE_ACTION
    if entry is MESSAGES and unread_count > 0:
        item.badge = unread_count
    return item


def get_navigation_for_role(role: Optional[str], unread_count: int = 0) -> List[NavItem]:
    entries = ROLE_NAVIGATION.get(role, DEFAULT_NAVIGATION)
    return [_to_item(entry, unread_count) for entry in entries]


def get_navigation(roles: RolesInput, unread_count: int = 0, active_role: Optional[str] = None) -> List[NavItem]:
    """
    Navigation for a user. Multi-role users get the navigation of their
    primary role.
    """
    if isinstance(roles, str):
        role = roles
    else:
        held = normalize_roles(roles)
        role = get_primary_role(held, active_role) if held else None
    return get_navigation_for_role(role, unread_count)


# ============================================================
# PERMANENT ROLE SWITCHER
# ============================================================
def can_switch_roles(roles: RolesInput) -> bool:
    """Only users holding both operations_director and administrator."""
    held = normalize_roles(roles)
    return all(r in held for r in SWITCHABLE_ROLES)


def get_switchable_roles(roles: RolesInput) -> List[str]:
    return list(SWITCHABLE_ROLES) if can_switch_roles(roles) else []


def validate_role_switch(roles: RolesInput, target_role: str) -> None:
    """Raise ValueError unless the switch from `roles` to `target_role` is allowed."""
    if not can_switch_roles(roles):
        raise ValueError("Role switching requires both operations_director and administrator roles")
    if target_role not in SWITCHABLE_ROLES:
        raise ValueError(f"Can only switch between {SWITCHABLE_ROLES}")
