# app/modules/sales/__init__.py
"""
Módulo de Ventas

- Reservas con seña
- Cierre de venta con financiación opcional en cuenta corriente
"""

from .router import router
from .service import SalesService

__all__ = ["router", "SalesService"]
