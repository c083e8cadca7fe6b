# app/modules/petty_cash/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.shared.schemas.common import BaseResponse, GENERAL_BRANCH, Money


class DepositStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    PENDING_FUNDING = "PENDING_FUNDING"


class WithdrawalStatus(str, Enum):
    PENDING_JUSTIFICATION = "PENDING_JUSTIFICATION"
    PARTIALLY_JUSTIFIED = "PARTIALLY_JUSTIFIED"
    JUSTIFIED = "JUSTIFIED"
    NOT_CLOSED = "NOT_CLOSED"


class MovementType(str, Enum):
    DEBE = "DEBE"
    HABER = "HABER"


# ==================== REQUESTS ====================

class DepositCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount: Money = Field(..., gt=0)
    date: datetime
    reference: Optional[str] = Field(None, max_length=100)
    branch_id: Optional[str] = Field(None, description="ID de sucursal o '__general__'")

    @validator('branch_id')
    def normalize_branch(cls, v):
        if v in (None, "", GENERAL_BRANCH):
            return None
        if not str(v).isdigit():
            raise ValueError('Sucursal inválida')
        return v


class WithdrawalCreate(BaseModel):
    deposit_id: Optional[int] = Field(None, description="Si se omite se usa el último depósito abierto")
    user_id: int
    user_name: str = Field(..., min_length=1, max_length=255)
    amount_given: Money = Field(..., gt=0)
    date: datetime


class SpendCreate(BaseModel):
    withdrawal_id: int
    motive: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)
    amount: Money = Field(..., gt=0)
    date: datetime
    ticket_number: Optional[str] = Field(None, max_length=50)

    @validator('description', always=True)
    def description_for_other(cls, v, values):
        if values.get('motive') == "otros" and not (v and v.strip()):
            raise ValueError("La descripción es requerida cuando el motivo es 'Otros'.")
        return v


class MovementUpdate(BaseModel):
    type: MovementType
    amount: Optional[Money] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=255)
    ticket_number: Optional[str] = Field(None, max_length=50)
    receipt_url: Optional[str] = None


# ==================== RESPONSES ====================

class SpendItem(BaseModel):
    id: int
    withdrawal_id: int
    motive: str
    description: Optional[str] = None
    amount: Money
    date: datetime
    ticket_number: Optional[str] = None
    ticket_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WithdrawalItem(BaseModel):
    id: int
    deposit_id: int
    user_id: int
    user_name: str
    amount_given: Money
    amount_justified: Money
    date: datetime
    status: str
    spends: List[SpendItem] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DepositItem(BaseModel):
    id: int
    branch_id: Optional[int] = None
    description: str
    amount: Money
    date: datetime
    reference: Optional[str] = None
    status: str
    available: Money = 0
    withdrawals: List[WithdrawalItem] = []
    created_at: Optional[datetime] = None


class DepositResponse(BaseResponse):
    deposit: DepositItem


class DepositListResponse(BaseResponse):
    deposits: List[DepositItem]
    total: int


class WithdrawalResponse(BaseResponse):
    withdrawal: WithdrawalItem


class SpendResponse(BaseResponse):
    spend: SpendItem


class MovementItem(BaseModel):
    id: int
    type: MovementType
    amount: Money
    description: Optional[str] = None
    ticket_number: Optional[str] = None
    receipt_url: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    created_at: datetime


class MovementListResponse(BaseResponse):
    movements: List[MovementItem]
    total_debe: Money
    total_haber: Money
    balance: Money
