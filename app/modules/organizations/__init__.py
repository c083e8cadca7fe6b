# app/modules/organizations/__init__.py
"""
Módulo de Organizaciones - Administración de la plataforma

- Alta y edición de organizaciones (tenants), solo root
- Alta de usuarios por organización y cambio de roles
"""

from .router import router
from .service import OrganizationsService
from .repository import OrganizationsRepository

__all__ = [
    "router",
    "OrganizationsService",
    "OrganizationsRepository"
]
