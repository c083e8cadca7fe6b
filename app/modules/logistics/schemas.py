# app/modules/logistics/schemas.py
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.shared.schemas.common import BaseResponse


class TransferStatus(str, Enum):
    REQUESTED = "REQUESTED"
    CONFIRMED = "CONFIRMED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# ==================== PROVEEDORES ====================

class ProviderCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    is_active: bool = True


class ProviderUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class ProviderItem(BaseModel):
    id: int
    name: str
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProviderResponse(BaseResponse):
    provider: ProviderItem


class ProviderListResponse(BaseResponse):
    providers: List[ProviderItem]


# ==================== TRANSFERENCIAS ====================

class TransferCreate(BaseModel):
    motorcycle_id: int
    from_branch_id: int
    to_branch_id: int
    logistic_provider_id: Optional[int] = None
    scheduled_pickup_date: Optional[datetime] = None
    notes: Optional[str] = None

    @model_validator(mode='after')
    def different_branches(self):
        if self.from_branch_id == self.to_branch_id:
            raise ValueError('La sucursal de destino debe ser distinta a la de origen')
        return self


class TransferStatusUpdate(BaseModel):
    status: TransferStatus
    notes: Optional[str] = None


class TransferItem(BaseModel):
    id: int
    motorcycle_id: int
    chassis_number: Optional[str] = None
    motorcycle_label: Optional[str] = None
    from_branch_id: int
    from_branch_name: Optional[str] = None
    to_branch_id: int
    to_branch_name: Optional[str] = None
    logistic_provider_id: Optional[int] = None
    logistic_provider_name: Optional[str] = None
    status: str
    requested_by: int
    confirmed_by: Optional[int] = None
    requested_date: datetime
    scheduled_pickup_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None


class TransferResponse(BaseResponse):
    transfer: TransferItem


class TransferListResponse(BaseResponse):
    transfers: List[TransferItem]
    total: int
