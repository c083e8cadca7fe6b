from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

USER_ROLE_PATTERN = "^(user|cash-manager|admin|root)$"

class UserLogin(BaseModel):
    """Schema para login de usuario"""
    email: str = Field(..., description="Email del usuario")
    password: str = Field(..., min_length=6, description="Contraseña del usuario")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "admin@apexmotos.com",
                "password": "admin123"
            }
        }

class UserResponse(BaseModel):
    """Schema para respuesta de usuario"""
    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    organization_id: Optional[int] = None
    organization_name: Optional[str] = None
    organization_slug: Optional[str] = None
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    """Schema para respuesta de token"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class TokenPayload(BaseModel):
    """Schema para payload del token"""
    user_id: int
    email: str
    role: str
    organization_id: Optional[int] = None
    exp: Optional[datetime] = None
