# models/work_order.py

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field

from models.enums import (
    BudgetType,
    IssueReason,
    PaymentStatus,
    TaskCategory,
    WorkOrderPriority,
    WorkOrderStatus,
    WorkStatus,
)


# -----------------------------------------------------
# WORK ORDERS
# -----------------------------------------------------
class WorkOrderBase(BaseModel):
    title: str = Field(..., min_length=1, description="Short job title")
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1, description="Site address or description")
    scope_of_work: Optional[str] = None
    required_tools: Optional[str] = None
    point_of_contact: Optional[str] = None
    priority: WorkOrderPriority = WorkOrderPriority.medium
    estimated_hours: Optional[float] = Field(None, ge=0)
    due_date: Optional[datetime] = None
    documents_required: int = Field(0, ge=0, description="Number of documents the field team must upload")


class WorkOrderCreate(WorkOrderBase):
    company_id: Optional[str] = Field(None, description="Defaults to the creator's company")
    assignee_id: Optional[str] = None
    budget_type: Optional[BudgetType] = None
    budget_amount: Optional[float] = Field(None, ge=0)
    devices_installed: Optional[int] = Field(None, ge=0)


class WorkOrderUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    scope_of_work: Optional[str] = None
    required_tools: Optional[str] = None
    point_of_contact: Optional[str] = None
    priority: Optional[WorkOrderPriority] = None
    status: Optional[WorkOrderStatus] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    due_date: Optional[datetime] = None
    documents_required: Optional[int] = Field(None, ge=0)
    devices_installed: Optional[int] = Field(None, ge=0)


class WorkOrderRead(BaseModel):
    id: str
    company_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    priority: Optional[str] = None
    status: str
    work_status: Optional[str] = None
    assignee_id: Optional[str] = None
    created_by_id: Optional[str] = None
    due_date: Optional[datetime] = None
    documents_required: Optional[int] = 0
    is_client_created: Optional[bool] = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "allow"}


class WorkStatusUpdate(BaseModel):
    work_status: WorkStatus


class AssignmentUpdate(BaseModel):
    assignee_id: str


class PaymentStatusUpdate(BaseModel):
    payment_status: PaymentStatus


class BudgetUpdate(BaseModel):
    budget_type: BudgetType
    budget_amount: float = Field(..., ge=0)
    devices_installed: Optional[int] = Field(None, ge=0)


# -----------------------------------------------------
# TASKS
# -----------------------------------------------------
class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: TaskCategory
    order_index: int = 0
    documents_required: int = Field(0, ge=0)


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TaskCategory] = None
    order_index: Optional[int] = None
    documents_required: Optional[int] = Field(None, ge=0)


# -----------------------------------------------------
# ISSUES
# -----------------------------------------------------
class IssueCreate(BaseModel):
    reason: IssueReason
    explanation: str = Field(..., min_length=1)


class IssueResolve(BaseModel):
    resolution: Optional[str] = None


class IncompleteTasksError(BaseModel):
    """400 detail when completing a work order with open tasks."""
    message: str
    incomplete_tasks: List[str]
