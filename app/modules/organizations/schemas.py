# app/modules/organizations/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime

from app.core.auth.schemas import USER_ROLE_PATTERN
from app.shared.schemas.common import BaseResponse


class OrganizationCreate(BaseModel):
    """Alta de organización junto a su primer administrador"""
    name: str = Field(..., min_length=2, max_length=255)
    slug: str = Field(..., min_length=2, max_length=100, pattern="^[a-z0-9-]+$")
    logo: Optional[str] = None
    thumbnail: Optional[str] = None

    admin_email: str = Field(..., description="Email del administrador inicial")
    admin_password: str = Field(..., min_length=6)
    admin_first_name: str = Field(..., min_length=2)
    admin_last_name: str = Field(..., min_length=2)

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('El nombre no puede estar vacío')
        return v.strip()


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    logo: Optional[str] = None
    thumbnail: Optional[str] = None
    is_active: Optional[bool] = None


class OrganizationItem(BaseModel):
    id: int
    name: str
    slug: str
    logo: Optional[str] = None
    thumbnail: Optional[str] = None
    is_active: bool
    secure_mode_enabled: bool
    users_count: int = 0
    branches_count: int = 0
    created_at: Optional[datetime] = None


class OrganizationResponse(BaseResponse):
    organization: OrganizationItem
    admin_user_id: Optional[int] = None


class UserCreate(BaseModel):
    email: str = Field(..., description="Email del usuario")
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=2)
    last_name: str = Field(..., min_length=2)
    role: str = Field("user", pattern=USER_ROLE_PATTERN)
    branch_id: Optional[int] = None


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=2)
    last_name: Optional[str] = Field(None, min_length=2)
    role: Optional[str] = Field(None, pattern=USER_ROLE_PATTERN)
    branch_id: Optional[int] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=6)


class UserItem(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    organization_id: Optional[int] = None
    branch_id: Optional[int] = None
    is_active: bool

    class Config:
        from_attributes = True


class UserResponse(BaseResponse):
    user: UserItem


class UserListResponse(BaseResponse):
    users: List[UserItem]
    total: int
