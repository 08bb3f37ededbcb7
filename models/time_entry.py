# models/time_entry.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class TimeEntryStart(BaseModel):
    work_order_id: Optional[str] = None
    notes: Optional[str] = None


class TimeEntryEnd(BaseModel):
    break_duration: Optional[int] = Field(None, ge=0, description="Break minutes to subtract")
    notes: Optional[str] = None


class TimeEntryRead(BaseModel):
    id: str
    user_id: str
    work_order_id: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    break_duration: Optional[int] = 0
    notes: Optional[str] = None
    is_active: bool = False
    duration_minutes: Optional[int] = None

    model_config = {"from_attributes": True}
