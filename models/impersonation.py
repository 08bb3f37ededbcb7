# models/impersonation.py

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel

from models.enums import CompanyType


class ImpersonationStart(BaseModel):
    role: str
    company_type: CompanyType


class ImpersonationStatus(BaseModel):
    is_impersonating: bool
    original_user_id: str
    impersonated_user_id: Optional[str] = None
    impersonated_role: Optional[str] = None
    company_type: Optional[str] = None
    company_id: Optional[str] = None
    started_at: Optional[datetime] = None
    redirect_url: Optional[str] = None


class TestRolesRead(BaseModel):
    company_type: str
    roles: List[str]
