# app/modules/storage/__init__.py
"""Módulo de Almacenamiento: subida genérica de archivos a S3"""

from .router import router

__all__ = ["router"]
