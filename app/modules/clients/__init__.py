# app/modules/clients/__init__.py
"""Módulo de Clientes: personas físicas y jurídicas de la organización"""

from .router import router
from .service import ClientsService

__all__ = ["router", "ClientsService"]
