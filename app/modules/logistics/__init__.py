# app/modules/logistics/__init__.py
"""Módulo de Logística: proveedores de transporte y transferencias entre sucursales"""

from .router import router
from .service import LogisticsService

__all__ = ["router", "LogisticsService"]
