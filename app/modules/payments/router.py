# app/modules/payments/router.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from .service import PaymentsService, process_webhook
from .schemas import (
    PreferenceCreate, PreferenceResponse, OAuthUrlResponse, ConnectionStatusResponse,
    PointPaymentIntentCreate, PointPaymentIntentResponse, ActionStatusResponse,
    CancelDeviceIntentsResponse, OrderStatusResponse, NotificationListResponse, NotificationResponse
)

router = APIRouter()


# ==================== CHECKOUT PRO ====================

@router.post("/mercadopago/create-preference", response_model=PreferenceResponse)
async def create_preference(
    data: PreferenceCreate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Crear preferencia de Checkout Pro con las credenciales OAuth de la organización"""
    service = PaymentsService(db, organization_id)
    return await service.create_preference(data)


@router.post("/mercadopago/webhook")
async def mercadopago_webhook(request: Request, db: Session = Depends(get_db)):
    """
    Webhook de MercadoPago (sin autenticación)

    Solo procesa notificaciones de tipo `payment`. Los pagos aprobados se
    registran junto con una notificación para el punto de venta.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="JSON inválido")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="JSON inválido")
    return await process_webhook(db, payload)


# ==================== OAUTH ====================

@router.get("/mercadopago/oauth/connect", response_model=OAuthUrlResponse)
async def oauth_connect(
    force_logout: bool = Query(False, description="Forzar login en MercadoPago"),
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.get_oauth_url(force_logout)


@router.get("/mercadopago/oauth/callback")
async def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db)
):
    redirect_url = await PaymentsService.handle_oauth_callback(db, code, state, error)
    return RedirectResponse(url=redirect_url, status_code=302)


@router.get("/mercadopago/status", response_model=ConnectionStatusResponse)
async def connection_status(
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.get_connection_status()


@router.delete("/mercadopago/oauth", response_model=ConnectionStatusResponse)
async def oauth_disconnect(
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.disconnect()


# ==================== POINT SMART ====================

@router.post("/mercadopago/point/create-payment-intent", response_model=PointPaymentIntentResponse)
async def create_payment_intent(
    data: PointPaymentIntentCreate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Enviar un cobro a un dispositivo Point Smart (mínimo $15)"""
    service = PaymentsService(db, organization_id)
    return await service.create_payment_intent(data)


@router.get("/mercadopago/point/action-status/{action_id}", response_model=ActionStatusResponse)
async def action_status(
    action_id: str,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.get_action_status(action_id)


@router.post("/mercadopago/point/cancel-device-intents/{device_id}", response_model=CancelDeviceIntentsResponse)
async def cancel_device_intents(
    device_id: str,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.cancel_device_intents(device_id)


@router.get("/mercadopago/point/payment-status/{order_id}", response_model=OrderStatusResponse)
async def payment_status(
    order_id: str,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.get_order_status(order_id)


# ==================== NOTIFICACIONES ====================

@router.get("/notifications", response_model=NotificationListResponse)
async def get_notifications(
    only_unread: bool = False,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.get_notifications(only_unread)


@router.patch("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentsService(db, organization_id)
    return await service.mark_notification_read(notification_id)


@router.get("/health")
async def payments_health():
    return {
        "service": "payments",
        "status": "healthy",
        "version": "1.0.0",
        "features": ["Checkout Pro", "OAuth", "Webhook", "Point Smart", "Notificaciones"]
    }
