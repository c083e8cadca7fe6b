# app/modules/reports/schemas.py
from pydantic import BaseModel, Field, field_serializer
from typing import Any, Dict, List, Optional
from datetime import date
from decimal import Decimal
from enum import Enum

from app.shared.schemas.common import BaseResponse, Money


def decimals_to_numbers(value: Any) -> Any:
    """Los montos sueltos (Decimal) viajan como número en el JSON"""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: decimals_to_numbers(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decimals_to_numbers(v) for v in value]
    return value


class ReportKind(str, Enum):
    SALES = "sales"
    INVENTORY = "inventory"
    CURRENT_ACCOUNTS = "current-accounts"
    RESERVATIONS = "reservations"
    SUPPLIERS = "suppliers"


class ReportFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    branch_id: Optional[str] = None
    status: Optional[str] = None
    seller_id: Optional[int] = None


class ReportGroup(BaseModel):
    """Fila de una agrupación: cantidad y montos por moneda"""
    key: str
    label: str
    count: int = 0
    amounts: Dict[str, Money] = Field(default_factory=dict)
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_serializer("extra", when_used="json")
    def serialize_extra(self, value: Dict[str, Any]) -> Dict[str, Any]:
        return decimals_to_numbers(value)


class ReportResponse(BaseResponse):
    report_type: ReportKind
    title: str
    filters: ReportFilters
    summary: Dict[str, Any]
    groups: Dict[str, List[ReportGroup]]
    details: List[Dict[str, Any]]

    @field_serializer("summary", "details", when_used="json")
    def serialize_amounts(self, value: Any) -> Any:
        return decimals_to_numbers(value)
