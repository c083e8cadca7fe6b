# app/modules/reports/__init__.py
"""Módulo de Reportes: ventas, inventario, cuentas corrientes, reservas y proveedores (JSON y PDF)"""

from .router import router
from .service import ReportsService

__all__ = ["router", "ReportsService"]
