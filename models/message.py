# models/message.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from models.enums import MessagePriority


class MessageCreate(BaseModel):
    """Create message model."""
    recipient_id: Optional[str] = Field(None, description="User ID to message (None = broadcast)")
    work_order_id: Optional[str] = Field(None, description="Attach the message to a work order thread")
    subject: Optional[str] = None
    content: str = Field(..., min_length=1)
    priority: MessagePriority = MessagePriority.normal


class MessageRead(BaseModel):
    """Read message model."""
    id: str
    sender_id: str
    recipient_id: Optional[str] = None
    work_order_id: Optional[str] = None
    subject: Optional[str] = None
    content: str
    priority: Optional[str] = "normal"
    message_type: Optional[str] = "direct"
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
