# app/modules/petty_cash/__init__.py
"""
Módulo de Caja Chica

- Depósitos (DEBE) por sucursal o caja general
- Retiros contra depósitos abiertos
- Gastos (HABER) con comprobante en S3
"""

from .router import router
from .service import PettyCashService

__all__ = ["router", "PettyCashService"]
