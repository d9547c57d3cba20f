"""联系人 Schema"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from erp.models.enums import PartnerAccountType


class PartnerBase(BaseModel):
    account_type: PartnerAccountType = PartnerAccountType.INDIVIDUAL
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=50)
    reference: Optional[str] = Field(None, max_length=100)
    job_title: Optional[str] = Field(None, max_length=100)
    street1: Optional[str] = Field(None, max_length=200)
    street2: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    zip: Optional[str] = Field(None, max_length=20)
    comment: Optional[str] = None
    customer_rank: int = Field(0, ge=0)
    supplier_rank: int = Field(0, ge=0)
    parent_id: Optional[int] = None
    company_id: Optional[int] = None
    user_id: Optional[int] = None
    is_active: bool = True


class PartnerCreate(PartnerBase):
    name: str = Field(..., min_length=1, max_length=150)


class PartnerUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=150)
    account_type: PartnerAccountType = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    website: Optional[str] = Field(None, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=50)
    reference: Optional[str] = Field(None, max_length=100)
    job_title: Optional[str] = Field(None, max_length=100)
    street1: Optional[str] = Field(None, max_length=200)
    street2: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    zip: Optional[str] = Field(None, max_length=20)
    comment: Optional[str] = None
    customer_rank: int = Field(None, ge=0)
    supplier_rank: int = Field(None, ge=0)
    parent_id: Optional[int] = None
    company_id: Optional[int] = None
    user_id: Optional[int] = None
    is_active: bool = None


class PartnerResponse(PartnerBase):
    id: int
    name: str
    account_type: str
    email: Optional[str] = None
    customer_rank: Optional[int] = 0
    supplier_rank: Optional[int] = 0
    is_active: Optional[bool] = True
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
