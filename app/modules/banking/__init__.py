"""
Módulo de Bancos y Promociones

- Catálogo global de bancos y tipos de tarjeta (root)
- Tarjetas por banco aceptadas por la organización
- Promociones bancarias: descuento o recargo, días activos y planes de cuotas
"""

from .router import router
from .service import BankingService

__all__ = [
    "router",
    "BankingService"
]
