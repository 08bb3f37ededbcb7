# -------------------------
# Work Order Models
# -------------------------
from .work_order import (
    WorkOrderBase,
    WorkOrderCreate,
    WorkOrderRead,
    WorkOrderUpdate,
    TaskCreate,
    TaskUpdate,
    IssueCreate,
    IssueResolve,
)

# -------------------------
# Enums
# -------------------------
from .enums import (
    CompanyType,
    WorkOrderStatus,
    WorkOrderPriority,
    WorkStatus,
    BudgetType,
    PaymentStatus,
)

# -------------------------
# Document Models
# -------------------------
from .document import DocumentRead, DocumentStatus

# -------------------------
# Time Tracking / Messaging
# -------------------------
from .time_entry import TimeEntryStart, TimeEntryEnd, TimeEntryRead
from .message import MessageCreate, MessageRead

# -------------------------
# Team & Companies
# -------------------------
from .user import UserRead, UserSummary, UserOnboard, UserUpdate
from .company import CompanyCreate, CompanyRead, CompanyUpdate
from .onboarding import OnboardingRequestCreate, OnboardingRequestRead

__all__ = [
    # work orders
    "WorkOrderBase",
    "WorkOrderCreate",
    "WorkOrderRead",
    "WorkOrderUpdate",
    "TaskCreate",
    "TaskUpdate",
    "IssueCreate",
    "IssueResolve",

    # enums
    "CompanyType",
    "WorkOrderStatus",
    "WorkOrderPriority",
    "WorkStatus",
    "BudgetType",
    "PaymentStatus",

    # documents
    "DocumentRead",
    "DocumentStatus",

    # time / messages
    "TimeEntryStart",
    "TimeEntryEnd",
    "TimeEntryRead",
    "MessageCreate",
    "MessageRead",

    # users / companies / onboarding
    "UserRead",
    "UserSummary",
    "UserOnboard",
    "UserUpdate",
    "CompanyCreate",
    "CompanyRead",
    "CompanyUpdate",
    "OnboardingRequestCreate",
    "OnboardingRequestRead",
]
