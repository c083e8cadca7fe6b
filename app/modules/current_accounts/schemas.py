# app/modules/current_accounts/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime
from enum import Enum

from app.shared.schemas.common import BaseResponse, Money


class PaymentFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAID_OFF = "PAID_OFF"
    OVERDUE = "OVERDUE"
    DEFAULTED = "DEFAULTED"
    CANCELLED = "CANCELLED"


class SurplusAction(str, Enum):
    RECALCULATE = "RECALCULATE"
    REDUCE_INSTALLMENTS = "REDUCE_INSTALLMENTS"


# ==================== REQUESTS ====================

class FinancingTerms(BaseModel):
    """Condiciones de financiación (también usadas al cerrar una venta)"""
    total_amount: Money = Field(..., gt=0)
    down_payment: Money = Field(0, ge=0)
    number_of_installments: int = Field(..., ge=1)
    installment_amount: Money = Field(..., ge=0)
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    interest_rate: float = Field(0, ge=0, description="TNA en porcentaje")
    currency: str = Field("ARS", min_length=3, max_length=3)
    start_date: date
    reminder_lead_time_days: int = Field(3, ge=0)
    notes: Optional[str] = None

    @validator('currency')
    def upper_currency(cls, v):
        return v.upper()


class CurrentAccountCreate(FinancingTerms):
    motorcycle_id: int
    client_id: int


class CurrentAccountUpdate(BaseModel):
    notes: Optional[str] = None
    reminder_lead_time_days: Optional[int] = Field(None, ge=0)
    status: Optional[AccountStatus] = None
    interest_rate: Optional[float] = Field(None, ge=0)


class RecordPaymentRequest(BaseModel):
    amount_paid: Money = Field(..., gt=0)
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = Field(None, max_length=100)
    transaction_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    installment_number: Optional[int] = Field(None, ge=1)
    surplus_action: SurplusAction = SurplusAction.RECALCULATE


class SimplePaymentRequest(BaseModel):
    amount_paid: Money = Field(..., gt=0)
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = Field(None, max_length=100)
    transaction_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    is_down_payment: bool = False


# ==================== RESPONSES ====================

class PaymentItem(BaseModel):
    id: int
    current_account_id: Optional[int] = None
    amount_paid: Money
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    transaction_reference: Optional[str] = None
    notes: Optional[str] = None
    installment_number: Optional[int] = None
    installment_version: Optional[str] = None
    is_down_payment: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CurrentAccountItem(BaseModel):
    id: int
    motorcycle_id: int
    motorcycle_label: Optional[str] = None
    chassis_number: Optional[str] = None
    client_id: int
    client_name: Optional[str] = None
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    total_amount: Money
    down_payment: Money
    remaining_amount: Money
    number_of_installments: int
    installment_amount: Money
    payment_frequency: str
    interest_rate: float
    currency: str
    start_date: date
    next_due_date: Optional[date] = None
    end_date: Optional[date] = None
    reminder_lead_time_days: Optional[int] = None
    status: str
    notes: Optional[str] = None
    paid_installments: int = 0
    created_at: Optional[datetime] = None


class CurrentAccountDetail(CurrentAccountItem):
    payments: List[PaymentItem] = []


class CurrentAccountResponse(BaseResponse):
    account: CurrentAccountDetail


class CurrentAccountListResponse(BaseResponse):
    accounts: List[CurrentAccountItem]
    total: int


class ScheduleEntryItem(BaseModel):
    installment_number: int
    capital_at_period_start: Money
    interest_for_period: Money
    amortization: Money
    calculated_installment_amount: Money
    capital_at_period_end: Money
    due_date: Optional[date] = None


class ScheduleResponse(BaseResponse):
    account_id: int
    principal: Money
    periodic_rate: float
    schedule: List[ScheduleEntryItem]


class PaymentOperationResponse(BaseResponse):
    account: CurrentAccountDetail
    payment: Optional[PaymentItem] = None
