# app/modules/stock/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from .service import StockService
from .schemas import (
    MotorcycleState, MotorcycleBatchCreate, MotorcycleUpdate, StateChangeRequest,
    MotorcycleResponse, MotorcycleBatchResponse, MotorcycleListResponse
)

router = APIRouter()


@router.post("/motorcycles/batch", response_model=MotorcycleBatchResponse, status_code=201)
async def create_motorcycles_batch(
    data: MotorcycleBatchCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Alta de motos por lote

    Los datos comunes (marca, modelo, año, precios, sucursal, proveedor) se
    aplican a cada unidad de `units` (chasis, motor, color, patente).
    """
    service = StockService(db, organization_id)
    return await service.create_batch(data)


@router.get("/motorcycles", response_model=MotorcycleListResponse)
async def get_motorcycles(
    state: Optional[MotorcycleState] = Query(None),
    branch_id: Optional[str] = Query(None, description="ID de sucursal o '__general__' para motos sin sucursal"),
    brand_id: Optional[int] = Query(None),
    model_id: Optional[int] = Query(None),
    year: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Chasis, motor o patente"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=200),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = StockService(db, organization_id)
    return await service.get_motorcycles(
        state=state.value if state else None,
        branch_id=branch_id,
        brand_id=brand_id,
        model_id=model_id,
        year=year,
        search=search,
        page=page,
        size=size
    )


@router.get("/motorcycles/{motorcycle_id}", response_model=MotorcycleResponse)
async def get_motorcycle(
    motorcycle_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = StockService(db, organization_id)
    return await service.get_motorcycle(motorcycle_id)


@router.put("/motorcycles/{motorcycle_id}", response_model=MotorcycleResponse)
async def update_motorcycle(
    motorcycle_id: int,
    data: MotorcycleUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = StockService(db, organization_id)
    return await service.update_motorcycle(motorcycle_id, data)


@router.patch("/motorcycles/{motorcycle_id}/state", response_model=MotorcycleResponse)
async def change_motorcycle_state(
    motorcycle_id: int,
    data: StateChangeRequest,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Cambiar estado de una moto

    **Transiciones válidas:**
    - STOCK → PAUSADO, PROCESANDO, RESERVADO
    - PAUSADO → STOCK, ELIMINADO
    - RESERVADO → STOCK, PROCESANDO
    - PROCESANDO → STOCK, VENDIDO
    - ELIMINADO → STOCK
    """
    service = StockService(db, organization_id)
    return await service.change_state(motorcycle_id, data.state)


@router.get("/health")
async def stock_health():
    return {
        "service": "stock",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Alta de motos por lote",
            "Máquina de estados",
            "Búsqueda por chasis, motor y patente"
        ]
    }
