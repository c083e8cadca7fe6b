# app/modules/payments/service.py
import json
import uuid
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

import httpx
from dateutil import parser as date_parser
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.shared.database.models import MercadoPagoOAuth, PaymentNotification, Payment, Organization
from .mercadopago_client import MercadoPagoClient
from .repository import PaymentsRepository
from .schemas import (
    PreferenceCreate, PreferenceResponse, OAuthUrlResponse, ConnectionStatusResponse,
    PointPaymentIntentCreate, PointPaymentIntentResponse, ActionStatusResponse,
    CancelledOrderResult, CancelDeviceIntentsResponse, OrderStatusResponse,
    NotificationItem, NotificationListResponse, NotificationResponse
)

logger = logging.getLogger(__name__)

POINT_MINIMUM_AMOUNT = Decimal("15.00")
NOTIFICATION_TTL = timedelta(hours=1)
CANCELLABLE_ORDER_STATUSES = ["created", "processing", "pending", "opened"]
NOT_CONFIGURED = "MercadoPago no está configurado para esta organización"

# Estado de acción Point -> mensaje de notificación
ACTION_MESSAGES = {
    "created": "📱 Point Smart: Acción creada - {id}",
    "on_terminal": "🔄 Point Smart: En terminal - {id}",
    "processing": "⚙️ Point Smart: Procesando - {id}",
    "finished": "✅ Point Smart: COMPLETADO - {id}",
    "completed": "✅ Point Smart: COMPLETADO - {id}",
    "canceled": "🚫 Point Smart: CANCELADO - {id}",
    "error": "❌ Point Smart: ERROR - {id}",
    "failed": "❌ Point Smart: ERROR - {id}",
}


def resolve_access_token(global_token: Optional[str], oauth_token: Optional[str]) -> Tuple[Optional[str], str]:
    """
    Elegir credencial de MercadoPago.

    Prioridad: token global de prueba, token OAuth de prueba, token OAuth
    productivo y por último token global productivo.
    """
    if global_token and global_token.startswith("TEST-"):
        return global_token, "global-test"
    if oauth_token and oauth_token.startswith("TEST-"):
        return oauth_token, "oauth-test"
    if oauth_token:
        return oauth_token, "oauth-prod"
    if global_token:
        return global_token, "global-prod"
    return None, "none"


def oauth_redirect_uri() -> str:
    return f"{settings.BASE_URL.rstrip('/')}/api/v1/payments/mercadopago/oauth/callback"


def configuration_redirect(error: Optional[str] = None) -> str:
    base = f"{settings.BASE_URL.rstrip('/')}/configuration"
    if error:
        return str(httpx.URL(base, params={"mp_error": error}))
    return f"{base}?mp_success=true"


def _parse_mp_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


class PaymentsService:
    """Integración MercadoPago por organización"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = PaymentsRepository(db, organization_id)

    def resolve_credentials(self) -> Tuple[Optional[str], str]:
        oauth = self.repository.get_oauth()
        return resolve_access_token(settings.MERCADOPAGO_ACCESS_TOKEN, oauth.access_token if oauth else None)

    def _client(self) -> MercadoPagoClient:
        token, source = self.resolve_credentials()
        if not token:
            raise HTTPException(status_code=400, detail=NOT_CONFIGURED)
        logger.info(f"🔑 Credenciales MercadoPago: {source} ({token[:20]}...)")
        return MercadoPagoClient(token)

    # =====================================================
    # CHECKOUT PRO
    # =====================================================

    async def create_preference(self, data: PreferenceCreate) -> PreferenceResponse:
        oauth = self.repository.get_oauth()
        public_key = (oauth.public_key if oauth else None) or settings.MERCADOPAGO_PUBLIC_KEY
        if not oauth or not oauth.access_token or not public_key:
            raise HTTPException(status_code=400, detail=NOT_CONFIGURED)

        base_url = settings.BASE_URL.rstrip("/")
        info = data.additional_info
        preference = {
            "items": [{
                "id": f"motorcycle-{data.motorcycle_id}" if data.motorcycle_id else "sale-item",
                "title": data.description,
                "description": f"{info.brand} {info.model} {info.year}" if info else data.description,
                "quantity": 1,
                "unit_price": float(data.amount),
            }],
            "purpose": "wallet_purchase",
            "back_urls": {
                "success": f"{base_url}/sales/success",
                "failure": f"{base_url}/sales/failure",
                "pending": f"{base_url}/sales/pending",
            },
            "auto_return": "approved",
            "external_reference": data.sale_id or f"sale-{int(datetime.now().timestamp() * 1000)}",
            "notification_url": f"{base_url}/api/v1/payments/mercadopago/webhook",
            "metadata": {
                "organization_id": self.organization_id,
                "motorcycle_id": data.motorcycle_id,
                "sale_id": data.sale_id,
            },
        }

        result = await MercadoPagoClient(oauth.access_token).create_preference(preference)
        logger.info(f"✅ Preferencia MercadoPago creada: {result.get('id')}")
        return PreferenceResponse(
            success=True,
            message="Preferencia creada",
            preference_id=str(result.get("id")),
            public_key=public_key,
            init_point=result.get("init_point"),
            sandbox_init_point=result.get("sandbox_init_point")
        )

    # =====================================================
    # OAUTH
    # =====================================================

    async def get_oauth_url(self, force_logout: bool = False) -> OAuthUrlResponse:
        if not settings.MERCADOPAGO_CLIENT_ID:
            raise HTTPException(status_code=500, detail="MERCADOPAGO_CLIENT_ID no configurado")

        params = {
            "client_id": settings.MERCADOPAGO_CLIENT_ID,
            "response_type": "code",
            "platform_id": "mp",
            "state": str(self.organization_id),
            "redirect_uri": oauth_redirect_uri(),
        }
        if force_logout:
            params["prompt"] = "login"
            params["max_age"] = "0"

        auth_url = str(httpx.URL(settings.MERCADOPAGO_AUTH_URL, params=params))
        return OAuthUrlResponse(success=True, message="URL de autorización generada", auth_url=auth_url)

    async def get_connection_status(self) -> ConnectionStatusResponse:
        oauth = self.repository.get_oauth()
        _, source = self.resolve_credentials()
        if not oauth:
            return ConnectionStatusResponse(
                success=True, message="MercadoPago no conectado", connected=False, credential_source=source
            )
        return ConnectionStatusResponse(
            success=True,
            message="MercadoPago conectado",
            connected=True,
            email=oauth.email,
            mercadopago_user_id=oauth.mercadopago_user_id,
            public_key=oauth.public_key,
            scopes=oauth.scopes,
            expires_at=oauth.expires_at,
            credential_source=source
        )

    async def disconnect(self) -> ConnectionStatusResponse:
        oauth = self.repository.get_oauth()
        if not oauth:
            raise HTTPException(status_code=404, detail="MercadoPago no está conectado")
        self.repository.delete(oauth)
        logger.info(f"🔌 MercadoPago desconectado de organización {self.organization_id}")
        return ConnectionStatusResponse(success=True, message="MercadoPago desconectado", connected=False)

    @staticmethod
    async def handle_oauth_callback(
        db: Session,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None
    ) -> str:
        """Procesar el callback OAuth y devolver la URL de redirección al frontend"""
        if error:
            logger.error(f"❌ Error en autorización OAuth: {error}")
            return configuration_redirect(error)
        if not code or not state:
            return configuration_redirect("missing_params")

        try:
            organization_id = int(state.split("-")[0])
        except ValueError:
            return configuration_redirect("invalid_state")
        if not db.query(Organization).filter(Organization.id == organization_id).first():
            return configuration_redirect("invalid_state")

        try:
            token_data = await MercadoPagoClient().exchange_code(code, oauth_redirect_uri())
        except HTTPException as e:
            logger.error(f"❌ Error intercambiando código por token: {e.detail}")
            return configuration_redirect("token_exchange_failed")

        try:
            user_info = await MercadoPagoClient(token_data["access_token"]).get_user_info()
        except HTTPException as e:
            logger.error(f"❌ Error obteniendo usuario de MercadoPago: {e.detail}")
            return configuration_redirect("user_info_failed")

        repository = PaymentsRepository(db, organization_id)
        oauth = repository.get_oauth() or MercadoPagoOAuth()
        oauth.mercadopago_user_id = str(user_info.get("id"))
        oauth.access_token = token_data["access_token"]
        oauth.refresh_token = token_data.get("refresh_token")
        oauth.public_key = token_data.get("public_key")
        oauth.email = user_info.get("email")
        oauth.scopes = token_data.get("scope")
        oauth.expires_at = (
            datetime.now() + timedelta(seconds=token_data["expires_in"])
            if token_data.get("expires_in") else None
        )

        try:
            repository.save(oauth)
        except Exception as e:
            db.rollback()
            logger.exception(f"❌ Error guardando credenciales OAuth: {str(e)}")
            return configuration_redirect("internal_error")

        logger.info(f"✅ MercadoPago conectado para organización {organization_id} ({oauth.email})")
        return configuration_redirect()

    # =====================================================
    # POINT SMART
    # =====================================================

    async def create_payment_intent(self, data: PointPaymentIntentCreate) -> PointPaymentIntentResponse:
        if data.amount < POINT_MINIMUM_AMOUNT:
            raise HTTPException(
                status_code=400,
                detail=f"Monto insuficiente. El monto mínimo para Point Smart es ${POINT_MINIMUM_AMOUNT}. Monto recibido: ${data.amount}"
            )

        client = self._client()
        order = {
            "type": "point",
            "external_reference": data.external_reference or f"point-{int(datetime.now().timestamp() * 1000)}",
            "config": {
                "point": {
                    "terminal_id": data.device_id,
                    "print_on_terminal": "no_ticket",
                },
            },
            "transactions": {
                "payments": [{"amount": f"{data.amount:.2f}"}],
            },
        }

        result = await client.create_order(order, idempotency_key=f"po-{uuid.uuid4().hex}")
        payment = ((result.get("transactions") or {}).get("payments") or [{}])[0]
        logger.info(f"✅ Order Point creada: {result.get('id')} en {data.device_id}")

        return PointPaymentIntentResponse(
            success=True,
            message="Intención de pago creada",
            order_id=str(result["id"]) if result.get("id") else None,
            payment_id=str(payment["id"]) if payment.get("id") else None,
            device_id=data.device_id,
            amount=data.amount,
            status=result.get("status") or "created",
            payment_status=payment.get("status") or "pending",
            terminal_id=((result.get("config") or {}).get("point") or {}).get("terminal_id"),
            additional_info=result
        )

    def _notify_action(self, action: Dict[str, Any]) -> bool:
        """Registrar notificación por cambio de estado de una acción Point"""
        action_id = str(action.get("id"))
        status = action.get("status")
        template = ACTION_MESSAGES.get(status)
        if not template:
            return False

        last = self.repository.get_last_notification(action_id, "point")
        if last and last.status == status:
            return False

        self.repository.save(PaymentNotification(
            type="point",
            external_id=action_id,
            status=status,
            amount=0,
            message=template.format(id=action_id),
            payload={
                "source": "point_smart_action_polling",
                "action_type": action.get("type"),
                "terminal_id": ((action.get("config") or {}).get("point") or {}).get("terminal_id"),
                "external_reference": action.get("external_reference"),
            },
            is_read=False,
            expires_at=datetime.now() + NOTIFICATION_TTL
        ))
        return True

    async def get_action_status(self, action_id: str) -> ActionStatusResponse:
        action = await self._client().get_action(action_id)
        created = self._notify_action(action)
        return ActionStatusResponse(
            success=True,
            message="Estado de acción obtenido",
            action_id=str(action.get("id", action_id)),
            type=action.get("type"),
            status=action.get("status"),
            external_reference=action.get("external_reference"),
            terminal_id=((action.get("config") or {}).get("point") or {}).get("terminal_id"),
            notification_created=created,
            additional_info=action
        )

    async def cancel_device_intents(self, device_id: str) -> CancelDeviceIntentsResponse:
        client = self._client()

        orders: Dict[str, Dict[str, Any]] = {}
        for status in CANCELLABLE_ORDER_STATUSES:
            try:
                found = await client.search_orders(device_id, status)
            except HTTPException as e:
                logger.warning(f"⚠️ Error buscando orders {status} de {device_id}: {e.detail}")
                continue
            for order in found.get("results") or []:
                orders.setdefault(str(order["id"]), order)

        if not orders:
            return CancelDeviceIntentsResponse(
                success=True,
                message="No hay orders activas para cancelar en este dispositivo",
                device_id=device_id,
                status="no_active_orders"
            )

        results = []
        for order_id in orders:
            try:
                await client.cancel_order(order_id, idempotency_key=f"cancel-{order_id}-{uuid.uuid4().hex[:12]}")
                results.append(CancelledOrderResult(order_id=order_id, status="cancelled", success=True))
            except HTTPException as e:
                logger.error(f"❌ Error cancelando order {order_id}: {e.detail}")
                results.append(CancelledOrderResult(order_id=order_id, status="error", success=False, error=str(e.detail)))

        cancelled = sum(1 for r in results if r.success)
        return CancelDeviceIntentsResponse(
            success=cancelled == len(results),
            message=f"{cancelled} de {len(results)} orders canceladas",
            device_id=device_id,
            status="cancelled" if cancelled == len(results) else "partial",
            results=results
        )

    async def get_order_status(self, order_id: str) -> OrderStatusResponse:
        order = await self._client().get_order(order_id)
        payments = (order.get("transactions") or {}).get("payments") or [{}]
        return OrderStatusResponse(
            success=True,
            message="Estado de order obtenido",
            order_id=str(order.get("id", order_id)),
            status=order.get("status"),
            payment_status=payments[0].get("status"),
            additional_info=order
        )

    # =====================================================
    # NOTIFICACIONES
    # =====================================================

    async def get_notifications(self, only_unread: bool = False) -> NotificationListResponse:
        notifications = self.repository.get_active_notifications(only_unread)
        return NotificationListResponse(
            success=True,
            message=f"{len(notifications)} notificaciones",
            notifications=[NotificationItem.model_validate(n) for n in notifications],
            total=len(notifications)
        )

    async def mark_notification_read(self, notification_id: int) -> NotificationResponse:
        notification = self.repository.get_notification(notification_id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notificación no encontrada")
        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return NotificationResponse(
            success=True, message="Notificación marcada como leída",
            notification=NotificationItem.model_validate(notification)
        )


# =====================================================
# WEBHOOK
# =====================================================

async def process_webhook(db: Session, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Procesar notificación de MercadoPago.

    Siempre responde con acuse de recibo: los errores se registran en el
    log para que MercadoPago no reintente indefinidamente.
    """
    if payload.get("type") != "payment":
        logger.info(f"📨 Webhook ignorado (tipo {payload.get('type')})")
        return {"received": True, "status": "ignored"}

    payment_id = (payload.get("data") or {}).get("id")
    if not payment_id:
        logger.error("❌ Webhook sin ID de pago")
        return {"received": True, "status": "missing_payment_id"}

    global_token = settings.MERCADOPAGO_ACCESS_TOKEN
    if not global_token:
        logger.error("❌ Webhook recibido sin credenciales globales de MercadoPago")
        return {"received": True, "status": "no_credentials"}

    try:
        payment_data = await MercadoPagoClient(global_token).get_payment(str(payment_id))
    except HTTPException as e:
        logger.error(f"❌ No se pudo consultar el pago {payment_id}: {e.detail}")
        return {"received": True, "status": "payment_not_found"}

    organization_id = (payment_data.get("metadata") or {}).get("organization_id")
    try:
        organization_id = int(organization_id)
    except (TypeError, ValueError):
        logger.error(f"❌ Pago {payment_id} sin organization_id en metadata")
        return {"received": True, "status": "missing_organization"}

    if not db.query(Organization).filter(Organization.id == organization_id).first():
        logger.error(f"❌ Organización {organization_id} del pago {payment_id} no existe")
        return {"received": True, "status": "missing_organization"}

    service = PaymentsService(db, organization_id)
    token, source = service.resolve_credentials()
    if token and token != global_token:
        try:
            payment_data = await MercadoPagoClient(token).get_payment(str(payment_id))
        except HTTPException as e:
            logger.warning(f"⚠️ Consulta con credenciales {source} falló, se usan datos iniciales: {e.detail}")

    status = payment_data.get("status")
    if status == "approved":
        _register_approved_payment(service, payment_data)
    elif status == "pending":
        logger.info(f"⏳ Pago {payment_id} pendiente (organización {organization_id})")
    elif status in ("rejected", "cancelled"):
        logger.warning(f"⚠️ Pago {payment_id} {status} (organización {organization_id})")
    else:
        logger.info(f"📨 Pago {payment_id} con estado {status}")

    return {"received": True, "status": status, "organization_id": organization_id, "credential_source": source}


def _register_approved_payment(service: PaymentsService, payment_data: Dict[str, Any]) -> None:
    reference = str(payment_data["id"])
    if service.repository.find_payment_by_reference(reference):
        logger.info(f"📨 Pago MercadoPago {reference} ya registrado")
        return

    amount = Decimal(str(payment_data.get("transaction_amount") or 0))
    try:
        payment = Payment(
            amount_paid=amount,
            payment_date=_parse_mp_date(payment_data.get("date_approved") or payment_data.get("date_created")),
            payment_method=f"MercadoPago - {payment_data.get('payment_method_id')}",
            transaction_reference=reference,
            notes=json.dumps({
                "mercadopago_payment_id": payment_data.get("id"),
                "mercadopago_status": payment_data.get("status"),
                "mercadopago_status_detail": payment_data.get("status_detail"),
                "payer_email": (payment_data.get("payer") or {}).get("email"),
                "payment_method": payment_data.get("payment_method_id"),
                "installments": payment_data.get("installments"),
                "external_reference": payment_data.get("external_reference"),
                "live_mode": payment_data.get("live_mode"),
            })
        )
        service.repository.add(payment)
        service.repository.add(PaymentNotification(
            type="payment",
            external_id=reference,
            status="approved",
            amount=amount,
            message=f"MercadoPago confirmó su pago de ${amount}",
            payload={"external_reference": payment_data.get("external_reference")},
            is_read=False,
            expires_at=datetime.now() + NOTIFICATION_TTL
        ))
        service.db.commit()
    except Exception as e:
        service.db.rollback()
        logger.exception(f"❌ Error registrando pago aprobado {reference}: {str(e)}")
        return

    logger.info(f"✅ Pago MercadoPago {reference} registrado por ${amount} (organización {service.organization_id})")
