# app/modules/banking/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime

from app.shared.schemas.common import BaseResponse, Money

WEEK_DAYS = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]


# =====================================================
# BANCOS Y TIPOS DE TARJETA
# =====================================================

class BankCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=255)

    @validator('name')
    def strip_name(cls, v):
        return v.strip()


class BankItem(BaseModel):
    id: int
    name: str
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True


class CardTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., pattern="^(credit|debit)$")
    logo_url: Optional[str] = Field(None, max_length=255)

    @validator('name')
    def strip_name(cls, v):
        return v.strip()


class CardTypeItem(BaseModel):
    id: int
    name: str
    type: str
    logo_url: Optional[str] = None

    class Config:
        from_attributes = True


# =====================================================
# TARJETAS POR BANCO
# =====================================================

class BankCardAssociateRequest(BaseModel):
    bank_id: int
    card_type_ids: List[int] = Field(..., min_length=1)


class BankCardItem(BaseModel):
    id: int
    bank: BankItem
    card_type: CardTypeItem
    is_enabled: bool
    order: int

    class Config:
        from_attributes = True


class BankCardsResponse(BaseResponse):
    created: int = 0
    bank_cards: List[BankCardItem]


class ToggleRequest(BaseModel):
    is_enabled: bool


class OrderItem(BaseModel):
    id: int
    order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    items: List[OrderItem] = Field(..., min_length=1)


# =====================================================
# PROMOCIONES
# =====================================================

class InstallmentPlanInput(BaseModel):
    installments: int = Field(..., ge=1, le=60)
    interest_rate: float = Field(0, ge=0, description="Interés total del plan en porcentaje")
    is_enabled: bool = True


class InstallmentPlanItem(InstallmentPlanInput):
    id: int

    class Config:
        from_attributes = True


class PromotionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    payment_method_id: int
    bank_id: Optional[int] = None
    card_id: Optional[int] = None
    bank_card_id: Optional[int] = None
    discount_rate: Optional[float] = Field(None, ge=0, le=100)
    surcharge_rate: Optional[float] = Field(None, ge=0)
    min_amount: Optional[Money] = Field(None, ge=0)
    max_amount: Optional[Money] = Field(None, ge=0)
    active_days: List[str] = Field(default_factory=list, description="Vacío = todos los días")
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_enabled: bool = True

    @validator('active_days', each_item=True)
    def validate_day(cls, v):
        day = v.strip().lower()
        if day not in WEEK_DAYS:
            raise ValueError(f"Día inválido: {v}. Opciones: {', '.join(WEEK_DAYS)}")
        return day

    @validator('surcharge_rate')
    def discount_or_surcharge(cls, v, values):
        if v and values.get('discount_rate'):
            raise ValueError('Una promoción aplica descuento o recargo, no ambos')
        return v

    @validator('max_amount')
    def validate_amount_range(cls, v, values):
        minimum = values.get('min_amount')
        if v is not None and minimum is not None and v < minimum:
            raise ValueError('El monto máximo no puede ser menor al mínimo')
        return v

    @validator('end_date')
    def validate_dates(cls, v, values):
        start = values.get('start_date')
        if v and start and v < start:
            raise ValueError('La fecha de fin no puede ser anterior a la de inicio')
        return v


class PromotionCreate(PromotionBase):
    installment_plans: List[InstallmentPlanInput] = Field(default_factory=list)


class PromotionUpdate(PromotionBase):
    """Los planes enviados se crean o actualizan por cantidad de cuotas"""
    installment_plans: List[InstallmentPlanInput] = Field(default_factory=list)


class PromotionItem(PromotionBase):
    id: int
    payment_method_name: Optional[str] = None
    bank_name: Optional[str] = None
    card_name: Optional[str] = None
    installment_plans: List[InstallmentPlanItem] = []
    created_at: Optional[datetime] = None


class PromotionResponse(BaseResponse):
    promotion: PromotionItem


class PromotionListResponse(BaseResponse):
    promotions: List[PromotionItem]
    total: int
    day: Optional[str] = None


class PromotionCalculateRequest(BaseModel):
    amount: Money = Field(..., gt=0)
    installments: Optional[int] = Field(None, ge=1)


class PromotionCalculation(BaseResponse):
    promotion_id: int
    original_amount: Money
    final_amount: Money
    discount_amount: Optional[Money] = None
    surcharge_amount: Optional[Money] = None
    total_interest: Optional[Money] = None
    installments: Optional[int] = None
    installment_amount: Optional[Money] = None
