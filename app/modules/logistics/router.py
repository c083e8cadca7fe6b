# app/modules/logistics/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from app.modules.stock.schemas import MotorcycleItem
from .service import LogisticsService
from .schemas import (
    TransferStatus, ProviderCreate, ProviderUpdate, ProviderResponse, ProviderListResponse,
    TransferCreate, TransferStatusUpdate, TransferResponse, TransferListResponse
)

router = APIRouter()


# ==================== PROVEEDORES ====================

@router.get("/providers", response_model=ProviderListResponse)
async def get_providers(
    only_active: bool = False,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = LogisticsService(db, organization_id)
    return await service.get_providers(only_active)


@router.post("/providers", response_model=ProviderResponse, status_code=201)
async def create_provider(
    data: ProviderCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = LogisticsService(db, organization_id)
    return await service.create_provider(data)


@router.get("/providers/{provider_id}", response_model=ProviderResponse)
async def get_provider(
    provider_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = LogisticsService(db, organization_id)
    return await service.get_provider(provider_id)


@router.put("/providers/{provider_id}", response_model=ProviderResponse)
async def update_provider(
    provider_id: int,
    data: ProviderUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = LogisticsService(db, organization_id)
    return await service.update_provider(provider_id, data)


@router.delete("/providers/{provider_id}", response_model=ProviderResponse)
async def delete_provider(
    provider_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = LogisticsService(db, organization_id)
    return await service.delete_provider(provider_id)


# ==================== TRANSFERENCIAS ====================

@router.get("/transferable-motorcycles", response_model=List[MotorcycleItem])
async def get_transferable_motorcycles(
    branch_id: Optional[int] = Query(None),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Motos en STOCK con sucursal asignada y sin transferencia activa"""
    service = LogisticsService(db, organization_id)
    return await service.get_transferable_motorcycles(branch_id)


@router.get("/transfers", response_model=TransferListResponse)
async def get_transfers(
    status: Optional[List[TransferStatus]] = Query(None),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = LogisticsService(db, organization_id)
    return await service.get_transfers([s.value for s in status] if status else None)


@router.post("/transfers", response_model=TransferResponse, status_code=201)
async def create_transfer(
    data: TransferCreate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Transferir una moto entre sucursales

    La moto debe estar en STOCK en la sucursal de origen y sin otra
    transferencia activa. Queda EN_TRANSITO.
    """
    service = LogisticsService(db, organization_id)
    return await service.create_transfer(data, current_user)


@router.patch("/transfers/{transfer_id}/status", response_model=TransferResponse)
async def update_transfer_status(
    transfer_id: int,
    data: TransferStatusUpdate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Cambiar estado de una transferencia

    **Transiciones válidas:**
    - REQUESTED → CONFIRMED, CANCELLED
    - CONFIRMED → IN_TRANSIT, CANCELLED
    - IN_TRANSIT → DELIVERED, CANCELLED
    """
    service = LogisticsService(db, organization_id)
    return await service.update_status(transfer_id, data, current_user)


@router.post("/transfers/{transfer_id}/confirm-arrival", response_model=TransferResponse)
async def confirm_arrival(
    transfer_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = LogisticsService(db, organization_id)
    return await service.confirm_arrival(transfer_id, current_user)


@router.get("/health")
async def logistics_health():
    return {
        "service": "logistics",
        "status": "healthy",
        "version": "1.0.0",
        "features": ["Proveedores de logística", "Transferencias entre sucursales"]
    }
