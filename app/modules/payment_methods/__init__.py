"""
Módulo de Medios de Pago

- Catálogo global de métodos de pago y de tarjetas (root)
- Métodos y tarjetas habilitados por organización, con orden propio
"""

from .router import router
from .service import PaymentMethodsService

__all__ = [
    "router",
    "PaymentMethodsService"
]
