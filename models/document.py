# models/document.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class DocumentRead(BaseModel):
    id: str
    entity_type: str
    entity_id: str
    filename: str
    original_filename: Optional[str] = None
    category: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    s3_key: Optional[str] = None
    uploaded_by_id: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DocumentStatus(BaseModel):
    entity_type: str
    entity_id: str
    documents_required: int
    uploaded: int
    remaining: int
    is_complete: bool
