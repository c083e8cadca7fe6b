# app/modules/stock/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.shared.schemas.common import BaseResponse, Money


class MotorcycleState(str, Enum):
    STOCK = "STOCK"
    PAUSADO = "PAUSADO"
    RESERVADO = "RESERVADO"
    PROCESANDO = "PROCESANDO"
    VENDIDO = "VENDIDO"
    ELIMINADO = "ELIMINADO"
    EN_TRANSITO = "EN_TRANSITO"


# ==================== REQUESTS ====================

class MotorcycleUnit(BaseModel):
    """Datos propios de cada unidad dentro de un lote"""
    chassis_number: str = Field(..., min_length=1, max_length=100)
    engine_number: Optional[str] = Field(None, max_length=100)
    color_id: Optional[int] = None
    license_plate: Optional[str] = Field(None, max_length=20)
    mileage: int = Field(0, ge=0)
    observations: Optional[str] = None

    @validator('chassis_number')
    def strip_chassis(cls, v):
        v = v.strip().upper()
        if not v:
            raise ValueError('El número de chasis es obligatorio')
        return v


class MotorcycleBatchCreate(BaseModel):
    """Alta de un lote de motos con datos comunes"""
    brand_id: int
    model_id: int
    year: int = Field(..., ge=1900, le=2100)
    displacement: Optional[int] = Field(None, ge=0)
    branch_id: Optional[int] = None
    supplier_id: Optional[int] = None
    cost_price: Optional[Money] = Field(None, ge=0)
    retail_price: Money = Field(..., gt=0)
    wholesale_price: Optional[Money] = Field(None, ge=0)
    currency: str = Field("ARS", min_length=3, max_length=3)
    image_url: Optional[str] = None
    state: MotorcycleState = MotorcycleState.STOCK
    units: List[MotorcycleUnit] = Field(..., min_length=1)

    @validator('currency')
    def upper_currency(cls, v):
        return v.upper()

    @validator('state')
    def initial_state(cls, v):
        if v not in (MotorcycleState.STOCK, MotorcycleState.PAUSADO):
            raise ValueError('Una moto nueva solo puede ingresar en STOCK o PAUSADO')
        return v


class MotorcycleUpdate(BaseModel):
    brand_id: Optional[int] = None
    model_id: Optional[int] = None
    color_id: Optional[int] = None
    branch_id: Optional[int] = None
    supplier_id: Optional[int] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    displacement: Optional[int] = Field(None, ge=0)
    chassis_number: Optional[str] = Field(None, min_length=1, max_length=100)
    engine_number: Optional[str] = Field(None, max_length=100)
    mileage: Optional[int] = Field(None, ge=0)
    license_plate: Optional[str] = Field(None, max_length=20)
    cost_price: Optional[Money] = Field(None, ge=0)
    retail_price: Optional[Money] = Field(None, gt=0)
    wholesale_price: Optional[Money] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    image_url: Optional[str] = None
    observations: Optional[str] = None

    @validator('brand_id', 'model_id', 'year', 'chassis_number', 'retail_price', 'currency', pre=True)
    def not_null(cls, v):
        # Se pueden omitir, pero la columna no admite NULL
        if v is None:
            raise ValueError('no puede ser nulo')
        return v


class StateChangeRequest(BaseModel):
    state: MotorcycleState


# ==================== RESPONSES ====================

class MotorcycleItem(BaseModel):
    id: int
    brand_id: int
    brand_name: Optional[str] = None
    model_id: int
    model_name: Optional[str] = None
    color_id: Optional[int] = None
    color_name: Optional[str] = None
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    supplier_id: Optional[int] = None
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    seller_id: Optional[int] = None
    year: int
    displacement: Optional[int] = None
    chassis_number: str
    engine_number: Optional[str] = None
    mileage: Optional[int] = 0
    license_plate: Optional[str] = None
    cost_price: Optional[Money] = None
    retail_price: Money
    wholesale_price: Optional[Money] = None
    currency: str
    image_url: Optional[str] = None
    state: str
    observations: Optional[str] = None
    sold_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class MotorcycleResponse(BaseResponse):
    motorcycle: MotorcycleItem


class MotorcycleBatchResponse(BaseResponse):
    created: int
    motorcycles: List[MotorcycleItem]


class MotorcycleListResponse(BaseResponse):
    items: List[MotorcycleItem]
    total: int
    page: int
    size: int
    pages: int
