# app/modules/configuration/schemas.py
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from enum import Enum

from app.shared.schemas.common import BaseResponse


class ColorType(str, Enum):
    """Tipos de color de motocicleta"""
    SOLIDO = "SOLIDO"
    BITONO = "BITONO"
    PATRON = "PATRON"


# =====================================================
# SUCURSALES
# =====================================================

class BranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @validator('name')
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('El nombre de la sucursal no puede estar vacío')
        return v.strip()


class BranchUpdate(BranchCreate):
    pass


class BranchOrderItem(BaseModel):
    id: int
    order: int = Field(..., ge=0)


class BranchReorderRequest(BaseModel):
    branches: List[BranchOrderItem] = Field(..., min_length=1)


class BranchItem(BaseModel):
    id: int
    name: str
    order: int

    class Config:
        from_attributes = True


class BranchResponse(BaseResponse):
    branch: Optional[BranchItem] = None


class BranchListResponse(BaseResponse):
    branches: List[BranchItem]


# =====================================================
# MARCAS Y MODELOS
# =====================================================

class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    models: List[str] = Field(default_factory=list, description="Modelos iniciales")

    @validator('name')
    def validate_name(cls, v):
        return v.strip()


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=20)


class ModelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @validator('name')
    def validate_name(cls, v):
        return v.strip()


class ModelItem(BaseModel):
    id: int
    name: str
    is_visible: bool = True
    order: int = 0


class BrandItem(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    models: List[ModelItem] = []


class OrganizationBrandItem(BaseModel):
    association_id: int
    brand_id: int
    name: str
    color: Optional[str] = None
    order: int
    models: List[ModelItem] = []


class BrandResponse(BaseResponse):
    brand: BrandItem


class OrganizationBrandsResponse(BaseResponse):
    brands: List[OrganizationBrandItem]


class BrandAssociateRequest(BaseModel):
    brand_id: int


class BrandReorderRequest(BaseModel):
    association_ids: List[int] = Field(..., min_length=1, description="IDs de asociación en el nuevo orden")


class ModelVisibilityRequest(BaseModel):
    is_visible: bool


# =====================================================
# COLORES
# =====================================================

class ColorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: ColorType = ColorType.SOLIDO
    color_one: str = Field(..., max_length=20)
    color_two: Optional[str] = Field(None, max_length=20)

    @validator('color_two', always=True)
    def validate_color_two(cls, v, values):
        if values.get('type') in (ColorType.BITONO, ColorType.PATRON) and not v:
            raise ValueError('Los colores bitono o patrón requieren un segundo color')
        return v


class ColorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[ColorType] = None
    color_one: Optional[str] = Field(None, max_length=20)
    color_two: Optional[str] = Field(None, max_length=20)
    order: Optional[int] = Field(None, ge=0)


class ColorItem(BaseModel):
    id: int
    name: str
    type: str
    color_one: str
    color_two: Optional[str] = None
    order: int

    class Config:
        from_attributes = True


class ColorResponse(BaseResponse):
    color: ColorItem


class ColorListResponse(BaseResponse):
    colors: List[ColorItem]


# =====================================================
# SEGURIDAD (OTP)
# =====================================================

class SecuritySettingsResponse(BaseResponse):
    secure_mode_enabled: bool
    otp_verified: bool
    otp_auth_url: Optional[str] = None
    otp_secret: Optional[str] = None


class SecureModeToggleRequest(BaseModel):
    enabled: bool


class OTPVerifyRequest(BaseModel):
    token: str = Field(..., min_length=6, max_length=6)


# =====================================================
# ARCHIVOS DE MODELO
# =====================================================

class ModelFileItem(BaseModel):
    id: int
    model_id: int
    name: str
    type: str
    url: Optional[str] = None
    s3_key: str
    s3_key_small: Optional[str] = None
    size_bytes: Optional[int] = None

    class Config:
        from_attributes = True


class ModelFilesResponse(BaseResponse):
    files: List[ModelFileItem]
