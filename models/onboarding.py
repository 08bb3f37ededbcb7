# models/onboarding.py

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from models.enums import OnboardingStatus


class OnboardingRequestCreate(BaseModel):
    """Public application to join a service company's field team."""
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    company: Optional[str] = Field(None, description="Current employer or own business name")
    skills: List[str] = []
    resume_url: Optional[str] = None
    motivation: Optional[str] = Field(None, max_length=4000)


class OnboardingRequestRead(OnboardingRequestCreate):
    id: str
    status: OnboardingStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class OnboardingRejection(BaseModel):
    reason: str = Field(..., min_length=1)
