# app/modules/payment_methods/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from enum import Enum

from app.shared.schemas.common import BaseResponse


class CardKind(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"


# =====================================================
# CATÁLOGO GLOBAL
# =====================================================

class PaymentMethodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., min_length=1, max_length=50, description="Identificador único, ej. 'cash'")
    description: Optional[str] = None
    icon_url: Optional[str] = Field(None, max_length=255)

    @validator('type')
    def normalize_type(cls, v):
        return v.strip().lower()


class PaymentMethodItem(BaseModel):
    id: int
    name: str
    type: str
    description: Optional[str] = None
    icon_url: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentCardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CardKind
    issuer: Optional[str] = Field(None, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=255)

    @validator('name')
    def strip_name(cls, v):
        return v.strip()


class PaymentCardItem(BaseModel):
    id: int
    name: str
    type: str
    issuer: Optional[str] = None
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True


class CatalogSyncResponse(BaseResponse):
    created: int
    updated: int
    methods: List[PaymentMethodItem]


# =====================================================
# ORGANIZACIÓN
# =====================================================

class AssociateMethodRequest(BaseModel):
    method_id: int


class AssociateCardRequest(BaseModel):
    card_id: int


class ToggleRequest(BaseModel):
    is_enabled: bool


class OrderItem(BaseModel):
    id: int
    order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    items: List[OrderItem] = Field(..., min_length=1)


class OrganizationMethodItem(BaseModel):
    id: int
    order: int
    is_enabled: bool
    method: PaymentMethodItem

    class Config:
        from_attributes = True


class OrganizationCardItem(BaseModel):
    id: int
    order: int
    is_enabled: bool
    card: PaymentCardItem

    class Config:
        from_attributes = True


class OrganizationMethodsResponse(BaseResponse):
    methods: List[OrganizationMethodItem]


class OrganizationCardsResponse(BaseResponse):
    cards: List[OrganizationCardItem]
