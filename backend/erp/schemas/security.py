"""用户、角色与登录 Schema"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from erp.models.enums import ResourcePermission


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RoleBrief(BaseModel):
    id: int
    name: str
    code: Optional[str] = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    is_active: bool = True
    resource_permission: ResourcePermission = ResourcePermission.GLOBAL
    default_company_id: Optional[int] = None
    role_ids: List[int] = []


class UserUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=100)
    email: EmailStr = None
    password: str = Field(None, min_length=8, max_length=128)
    is_active: bool = None
    resource_permission: ResourcePermission = None
    default_company_id: Optional[int] = None
    role_ids: List[int] = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    is_active: bool
    resource_permission: str
    default_company_id: Optional[int] = None
    roles: List[RoleBrief] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    permissions: List[str] = []
    is_active: bool = True


class RoleUpdate(BaseModel):
    name: str = Field(None, min_length=1, max_length=50)
    code: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
    permissions: List[str] = None
    is_active: bool = None


class RoleResponse(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    permissions: List[str] = []
    is_system: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
