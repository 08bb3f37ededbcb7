# models/company.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from models.enums import CompanyType


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1)
    type: CompanyType = CompanyType.service
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    description: Optional[str] = None


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CompanyRead(CompanyBase):
    id: str
    is_active: Optional[bool] = True
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
