# models/job_request.py

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from models.enums import AssignmentRequestStatus, AssignmentResponse
from models.work_order import WorkOrderRead


class AssignmentRequestCreate(BaseModel):
    """Ask the client who owns a work order to approve an agent for it."""
    work_order_id: str
    agent_id: str
    notes: Optional[str] = Field(None, max_length=2000)


class AssignmentRequestResponse(BaseModel):
    request_id: str
    action: AssignmentResponse
    notes: Optional[str] = Field(None, max_length=2000)


class AgentTrackRecord(BaseModel):
    completed_orders: int = 0
    on_time_orders: int = 0


class AssignmentRequestRead(BaseModel):
    id: str
    work_order_id: str
    agent_id: str
    requested_by_id: str
    status: AssignmentRequestStatus
    notes: Optional[str] = None
    client_notes: Optional[str] = None
    responded_by_id: Optional[str] = None
    responded_at: Optional[datetime] = None
    requested_at: Optional[datetime] = None
    work_order: Optional[dict] = None
    requested_agent: Optional[dict] = None
    track_record: Optional[AgentTrackRecord] = None

    model_config = {"from_attributes": True}


class JobNetworkOrder(WorkOrderRead):
    """A client-created order still waiting for an agent."""
    request_status: str
    pending_agent_ids: List[str] = []
