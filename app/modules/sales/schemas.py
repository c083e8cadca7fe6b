# app/modules/sales/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime
from enum import Enum

from app.shared.schemas.common import BaseResponse, Money
from app.modules.current_accounts.schemas import FinancingTerms, CurrentAccountDetail
from app.modules.stock.schemas import MotorcycleItem


class ReservationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# ==================== REQUESTS ====================

class ReservationCreate(BaseModel):
    motorcycle_id: int
    client_id: int
    amount: Money = Field(..., gt=0, description="Seña")
    currency: str = Field("ARS", min_length=3, max_length=3)
    expiration_date: Optional[date] = None
    payment_method: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @validator('currency')
    def upper_currency(cls, v):
        return v.upper()


class SaleCreate(BaseModel):
    """
    Cierre de venta.

    Con `current_account` la venta queda financiada: la cuenta corriente
    se crea en la misma transacción.
    """
    motorcycle_id: int
    client_id: int
    notes: Optional[str] = None
    current_account: Optional[FinancingTerms] = None


# ==================== RESPONSES ====================

class ReservationItem(BaseModel):
    id: int
    motorcycle_id: int
    chassis_number: Optional[str] = None
    client_id: int
    client_name: Optional[str] = None
    created_by_user_id: Optional[int] = None
    amount: Money
    currency: str
    expiration_date: Optional[date] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class ReservationResponse(BaseResponse):
    reservation: ReservationItem


class ReservationListResponse(BaseResponse):
    reservations: List[ReservationItem]
    total: int


class SaleResponse(BaseResponse):
    motorcycle: MotorcycleItem
    current_account: Optional[CurrentAccountDetail] = None


class SaleItem(MotorcycleItem):
    seller_name: Optional[str] = None
    profit: Optional[Money] = None


class SaleListResponse(BaseResponse):
    sales: List[SaleItem]
    total: int
