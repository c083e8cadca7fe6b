# app/modules/suppliers/__init__.py
"""Módulo de Proveedores: datos fiscales, bancarios y logísticos"""

from .router import router
from .service import SuppliersService

__all__ = ["router", "SuppliersService"]
