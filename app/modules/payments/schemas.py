# app/modules/payments/schemas.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.shared.schemas.common import BaseResponse, Money


# ==================== CHECKOUT PRO ====================

class PreferenceAdditionalInfo(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None


class PreferenceCreate(BaseModel):
    amount: Money = Field(..., gt=0, description="Monto a cobrar")
    description: str = Field(..., min_length=1, max_length=255)
    motorcycle_id: Optional[int] = None
    sale_id: Optional[str] = None
    additional_info: Optional[PreferenceAdditionalInfo] = None


class PreferenceResponse(BaseResponse):
    preference_id: str
    public_key: str
    init_point: Optional[str] = None
    sandbox_init_point: Optional[str] = None


# ==================== OAUTH ====================

class OAuthUrlResponse(BaseResponse):
    auth_url: str


class ConnectionStatusResponse(BaseResponse):
    connected: bool
    email: Optional[str] = None
    mercadopago_user_id: Optional[str] = None
    public_key: Optional[str] = None
    scopes: Optional[str] = None
    expires_at: Optional[datetime] = None
    credential_source: str = "none"


# ==================== POINT SMART ====================

class PointPaymentIntentCreate(BaseModel):
    amount: Money = Field(..., gt=0, description="Monto en pesos")
    description: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1)
    external_reference: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class PointPaymentIntentResponse(BaseResponse):
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    device_id: str
    amount: Money
    status: str
    payment_status: str
    terminal_id: Optional[str] = None
    additional_info: Dict[str, Any] = Field(default_factory=dict)


class ActionStatusResponse(BaseResponse):
    action_id: str
    type: Optional[str] = None
    status: Optional[str] = None
    external_reference: Optional[str] = None
    terminal_id: Optional[str] = None
    notification_created: bool = False
    additional_info: Dict[str, Any] = Field(default_factory=dict)


class CancelledOrderResult(BaseModel):
    order_id: str
    status: str
    success: bool
    error: Optional[str] = None


class CancelDeviceIntentsResponse(BaseResponse):
    device_id: str
    status: str
    results: List[CancelledOrderResult] = Field(default_factory=list)


class OrderStatusResponse(BaseResponse):
    order_id: str
    status: Optional[str] = None
    payment_status: Optional[str] = None
    additional_info: Dict[str, Any] = Field(default_factory=dict)


# ==================== NOTIFICACIONES ====================

class NotificationItem(BaseModel):
    id: int
    type: str
    external_id: Optional[str] = None
    status: str
    amount: Optional[Money] = None
    message: str
    is_read: bool
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationListResponse(BaseResponse):
    notifications: List[NotificationItem]
    total: int


class NotificationResponse(BaseResponse):
    notification: NotificationItem
