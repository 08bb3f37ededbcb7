from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# COMPANY TYPE
# -----------------------------------------------------
class CompanyType(BaseStrEnum):
    service = "service"
    client = "client"


# -----------------------------------------------------
# WORK ORDER STATUS
# -----------------------------------------------------
class WorkOrderStatus(BaseStrEnum):
    """Lifecycle of a work order."""

    scheduled = "scheduled"
    confirmed = "confirmed"
    in_progress = "in_progress"
    pending = "pending"
    completed = "completed"
    cancelled = "cancelled"


class WorkOrderPriority(BaseStrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# -----------------------------------------------------
# WORK STATUS (field agent progress on site)
# -----------------------------------------------------
class WorkStatus(BaseStrEnum):
    not_started = "not_started"
    in_route = "in_route"
    checked_in = "checked_in"
    checked_out = "checked_out"
    completed = "completed"


# -----------------------------------------------------
# BUDGET / PAYMENT
# -----------------------------------------------------
class BudgetType(BaseStrEnum):
    fixed = "fixed"
    hourly = "hourly"
    per_device = "per_device"


class PaymentStatus(BaseStrEnum):
    pending_payment = "pending_payment"
    payment_approved = "payment_approved"
    payment_received = "payment_received"
    paid = "paid"


# -----------------------------------------------------
# TASKS & ISSUES
# -----------------------------------------------------
class TaskCategory(BaseStrEnum):
    pre_visit = "pre_visit"
    on_site = "on_site"
    post_site = "post_site"


class IssueReason(BaseStrEnum):
    schedule = "Schedule"
    work_scope = "Work Scope"
    access = "Access"
    personal_other = "Personal/Other"


class IssueStatus(BaseStrEnum):
    open = "open"
    resolved = "resolved"


# -----------------------------------------------------
# DOCUMENTS
# -----------------------------------------------------
class DocumentEntityType(BaseStrEnum):
    work_order = "work_order"
    task = "task"


# -----------------------------------------------------
# MESSAGES & NOTIFICATIONS
# -----------------------------------------------------
class MessagePriority(BaseStrEnum):
    normal = "normal"
    high = "high"
    urgent = "urgent"


class MessageType(BaseStrEnum):
    direct = "direct"
    broadcast = "broadcast"
    work_order = "work_order"


class NotificationType(BaseStrEnum):
    work_order_confirmation = "work_order_confirmation"
    general = "general"


# -----------------------------------------------------
# ONBOARDING
# -----------------------------------------------------
class OnboardingStatus(BaseStrEnum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# -----------------------------------------------------
# JOB NETWORK
# -----------------------------------------------------
class AssignmentRequestStatus(BaseStrEnum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class AssignmentResponse(BaseStrEnum):
    accept = "accept"
    decline = "decline"
