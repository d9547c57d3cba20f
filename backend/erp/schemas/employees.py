"""人事 Schema"""

from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field

from erp.models.enums import EmployeeType, Gender, MaritalStatus


class DepartmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    parent_id: Optional[int] = None
    manager_id: Optional[int] = None
    company_id: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)


class DepartmentUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    parent_id: Optional[int] = None
    manager_id: Optional[int] = None
    company_id: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)


class DepartmentResponse(BaseModel):
    id: int
    name: str
    complete_name: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[int] = None
    manager_id: Optional[int] = None
    company_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    job_title: Optional[str] = Field(None, max_length=100)
    work_email: Optional[EmailStr] = None
    work_phone: Optional[str] = Field(None, max_length=50)
    mobile_phone: Optional[str] = Field(None, max_length=50)
    employee_type: EmployeeType = EmployeeType.EMPLOYEE
    gender: Optional[Gender] = None
    marital: MaritalStatus = MaritalStatus.SINGLE
    birthday: Optional[date] = None
    departure_date: Optional[date] = None
    departure_description: Optional[str] = None
    is_active: bool = True
    department_id: Optional[int] = None
    parent_id: Optional[int] = None
    coach_id: Optional[int] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None


class EmployeeUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=150)
    job_title: Optional[str] = Field(None, max_length=100)
    work_email: Optional[EmailStr] = None
    work_phone: Optional[str] = Field(None, max_length=50)
    mobile_phone: Optional[str] = Field(None, max_length=50)
    employee_type: EmployeeType = None
    gender: Optional[Gender] = None
    marital: MaritalStatus = None
    birthday: Optional[date] = None
    departure_date: Optional[date] = None
    departure_description: Optional[str] = None
    is_active: bool = None
    department_id: Optional[int] = None
    parent_id: Optional[int] = None
    coach_id: Optional[int] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None


class EmployeeResponse(BaseModel):
    id: int
    name: str
    job_title: Optional[str] = None
    work_email: Optional[str] = None
    work_phone: Optional[str] = None
    mobile_phone: Optional[str] = None
    employee_type: str
    gender: Optional[str] = None
    marital: Optional[str] = None
    birthday: Optional[date] = None
    departure_date: Optional[date] = None
    departure_description: Optional[str] = None
    is_active: bool
    department_id: Optional[int] = None
    parent_id: Optional[int] = None
    coach_id: Optional[int] = None
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    creator_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True
