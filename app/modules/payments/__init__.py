# app/modules/payments/__init__.py
"""Módulo de Pagos: integración MercadoPago (Checkout Pro, OAuth, webhook y Point Smart)"""

from .router import router
from .service import PaymentsService, resolve_access_token

__all__ = ["router", "PaymentsService", "resolve_access_token"]
