# app/modules/stock/__init__.py
"""
Módulo de Stock de motocicletas

- Alta por lote con validación de chasis
- Estados: STOCK, PAUSADO, RESERVADO, PROCESANDO, VENDIDO, ELIMINADO, EN_TRANSITO
- Búsqueda y filtros paginados
"""

from .router import router
from .service import StockService
from .repository import StockRepository

__all__ = ["router", "StockService", "StockRepository"]
