# app/modules/current_accounts/__init__.py
"""
Módulo de Cuentas Corrientes

- Financiación en cuotas con sistema francés
- Pagos de cuotas, pagos libres y anticipos
- Anulación contable de pagos (asientos D/H)
"""

from .router import router
from .service import CurrentAccountsService

__all__ = ["router", "CurrentAccountsService"]
