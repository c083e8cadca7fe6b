# app/modules/clients/schemas.py
from pydantic import BaseModel, Field, validator, model_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.shared.schemas.common import BaseResponse


class ClientType(str, Enum):
    INDIVIDUAL = "Individual"
    LEGAL_ENTITY = "LegalEntity"


class ClientBase(BaseModel):
    type: ClientType = ClientType.INDIVIDUAL
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    tax_id: str = Field(..., min_length=1, max_length=50, description="DNI / CUIT / CUIL")
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    status: str = "active"
    notes: Optional[str] = None
    vat_status: Optional[str] = Field(None, max_length=100)

    @validator('tax_id')
    def strip_tax_id(cls, v):
        return v.strip()


class ClientCreate(ClientBase):

    @model_validator(mode='after')
    def check_names(self):
        if self.type == ClientType.INDIVIDUAL and not (self.first_name and self.last_name):
            raise ValueError('Nombre y apellido son obligatorios para personas físicas')
        if self.type == ClientType.LEGAL_ENTITY and not self.company_name:
            raise ValueError('La razón social es obligatoria para personas jurídicas')
        return self


class ClientUpdate(BaseModel):
    type: Optional[ClientType] = None
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    tax_id: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    vat_status: Optional[str] = Field(None, max_length=100)


class ClientItem(ClientBase):
    id: int
    display_name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ClientResponse(BaseResponse):
    client: ClientItem


class ClientListResponse(BaseResponse):
    clients: List[ClientItem]
    total: int
