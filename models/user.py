# models/user.py

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


# ===============================================================
# TEAM MEMBER MODELS (public.users, keyed by auth user id)
# ===============================================================

class UserRead(BaseModel):
    id: str
    email: Optional[EmailStr] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    roles: List[str] = []
    company_id: Optional[str] = None
    is_active: Optional[bool] = True
    is_suspended: Optional[bool] = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Reduced view returned to users who cannot manage the team."""
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    roles: List[str] = []
    company_id: Optional[str] = None


class UserOnboard(BaseModel):
    """
    Used when an administrator (or operations director) adds a team member.
    A Supabase Auth account is created alongside the profile row.
    """
    email: EmailStr
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    roles: List[str] = Field(..., min_length=1)
    company_id: Optional[str] = Field(None, description="Defaults to the onboarding user's company")
    password: Optional[str] = Field(None, min_length=8, description="Omit to send an invite email instead")
    skills: Optional[List[str]] = None


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    roles: Optional[List[str]] = None
    is_active: Optional[bool] = None
    is_suspended: Optional[bool] = None


CONTACT_FIELDS = {"first_name", "last_name", "phone", "address", "city", "state", "zip_code"}
STATUS_FIELDS = {"is_active", "is_suspended"}


class ActiveRoleUpdate(BaseModel):
    role: str
