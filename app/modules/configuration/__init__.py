# app/modules/configuration/__init__.py
"""
Módulo de Configuración de la organización

- Sucursales (alta, edición, baja, reordenamiento)
- Marcas y modelos: catálogo global (root) y asociación por organización
- Colores de motocicletas
- Modo seguro con OTP para operaciones sensibles
- Archivos de modelos (imágenes y fichas técnicas) en S3
"""

from .router import router
from .service import ConfigurationService
from .security import SecurityService
from .model_files import ModelFilesService

__all__ = [
    "router",
    "ConfigurationService",
    "SecurityService",
    "ModelFilesService"
]
