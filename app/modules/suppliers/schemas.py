# app/modules/suppliers/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime

from app.shared.schemas.common import BaseResponse, Money


class SupplierBase(BaseModel):
    # Identificación fiscal
    legal_name: str = Field(..., min_length=1, max_length=255)
    commercial_name: Optional[str] = Field(None, max_length=255)
    tax_identification: str = Field(..., min_length=1, max_length=50, description="CUIT")
    vat_condition: str = Field("Responsable Inscripto", max_length=100)
    voucher_type: str = Field("Factura A", max_length=50)
    gross_income: Optional[str] = Field(None, max_length=100)
    local_tax_registration: Optional[str] = Field(None, max_length=100)

    # Contacto
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_position: Optional[str] = Field(None, max_length=255)
    landline_number: Optional[str] = Field(None, max_length=50)
    mobile_number: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    website: Optional[str] = Field(None, max_length=255)
    legal_address: Optional[str] = None
    commercial_address: Optional[str] = None
    delivery_address: Optional[str] = None

    # Datos bancarios y condiciones de pago
    bank: Optional[str] = Field(None, max_length=255)
    account_type_number: Optional[str] = Field(None, max_length=100)
    cbu: Optional[str] = Field(None, max_length=50)
    bank_alias: Optional[str] = Field(None, max_length=100)
    swift_bic: Optional[str] = Field(None, max_length=50)
    payment_currency: str = Field("ARS", min_length=3, max_length=3)
    payment_methods: List[str] = []
    payment_term_days: Optional[int] = Field(None, ge=0)
    discounts_conditions: Optional[str] = None
    credit_limit: Optional[Money] = Field(None, ge=0)
    return_policy: Optional[str] = None

    # Logística y comercial
    shipping_methods: Optional[str] = None
    shipping_costs: Optional[str] = None
    delivery_times: Optional[str] = None
    transport_conditions: Optional[str] = None
    items_categories: Optional[str] = None
    certifications: Optional[str] = None
    commercial_references: Optional[str] = None

    status: str = "activo"
    notes_observations: Optional[str] = None

    @validator('tax_identification')
    def strip_cuit(cls, v):
        return v.strip()

    @validator('payment_methods', pre=True)
    def default_methods(cls, v):
        return v or []


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    legal_name: Optional[str] = Field(None, min_length=1, max_length=255)
    commercial_name: Optional[str] = Field(None, max_length=255)
    tax_identification: Optional[str] = Field(None, min_length=1, max_length=50)
    vat_condition: Optional[str] = Field(None, max_length=100)
    voucher_type: Optional[str] = Field(None, max_length=50)
    gross_income: Optional[str] = None
    local_tax_registration: Optional[str] = None
    contact_name: Optional[str] = None
    contact_position: Optional[str] = None
    landline_number: Optional[str] = None
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    legal_address: Optional[str] = None
    commercial_address: Optional[str] = None
    delivery_address: Optional[str] = None
    bank: Optional[str] = None
    account_type_number: Optional[str] = None
    cbu: Optional[str] = None
    bank_alias: Optional[str] = None
    swift_bic: Optional[str] = None
    payment_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    payment_methods: Optional[List[str]] = None
    payment_term_days: Optional[int] = Field(None, ge=0)
    discounts_conditions: Optional[str] = None
    credit_limit: Optional[Money] = Field(None, ge=0)
    return_policy: Optional[str] = None
    shipping_methods: Optional[str] = None
    shipping_costs: Optional[str] = None
    delivery_times: Optional[str] = None
    transport_conditions: Optional[str] = None
    items_categories: Optional[str] = None
    certifications: Optional[str] = None
    commercial_references: Optional[str] = None
    status: Optional[str] = None
    notes_observations: Optional[str] = None


class SupplierItem(SupplierBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SupplierSelectItem(BaseModel):
    id: int
    name: str


class SupplierResponse(BaseResponse):
    supplier: SupplierItem


class SupplierListResponse(BaseResponse):
    suppliers: List[SupplierItem]
    total: int
