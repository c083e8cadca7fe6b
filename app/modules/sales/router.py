# app/modules/sales/router.py
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from app.config.database import get_db
from app.core.auth.dependencies import require_roles, get_current_organization_id, ALL_ROLES
from app.modules.current_accounts.schemas import FinancingTerms
from .service import SalesService
from .schemas import (
    ReservationStatus, ReservationCreate, SaleCreate, ReservationResponse,
    ReservationListResponse, SaleResponse, SaleListResponse
)

router = APIRouter()


# ==================== RESERVAS ====================

@router.post("/reservations", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    data: ReservationCreate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Reservar una moto

    La moto debe estar en STOCK o PAUSADO; queda RESERVADO a nombre del cliente.
    """
    service = SalesService(db, organization_id)
    return await service.create_reservation(data, current_user)


@router.get("/reservations", response_model=ReservationListResponse)
async def get_reservations(
    status: Optional[ReservationStatus] = Query(None),
    motorcycle_id: Optional[int] = Query(None),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SalesService(db, organization_id)
    return await service.get_reservations(status.value if status else None, motorcycle_id)


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SalesService(db, organization_id)
    return await service.cancel_reservation(reservation_id)


@router.post("/reservations/{reservation_id}/complete", response_model=SaleResponse)
async def complete_reservation(
    reservation_id: int,
    current_account: Optional[FinancingTerms] = Body(None, embed=True),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Cerrar la venta de una moto reservada, con financiación opcional"""
    service = SalesService(db, organization_id)
    return await service.complete_reservation(reservation_id, current_account, current_user)


# ==================== VENTAS ====================

@router.post("/", response_model=SaleResponse, status_code=201)
async def complete_sale(
    data: SaleCreate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Registrar venta

    - La moto debe estar en STOCK, RESERVADO o PROCESANDO
    - **current_account**: condiciones de financiación (opcional)
    """
    service = SalesService(db, organization_id)
    return await service.complete_sale(data, current_user)


@router.get("/", response_model=SaleListResponse)
async def get_sales(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    branch_id: Optional[str] = Query(None, description="ID de sucursal o '__general__'"),
    seller_id: Optional[int] = Query(None),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SalesService(db, organization_id)
    return await service.get_sales(start_date, end_date, branch_id, seller_id)


@router.get("/health")
async def sales_health():
    return {
        "service": "sales",
        "status": "healthy",
        "version": "1.0.0",
        "features": ["Reservas", "Cierre de venta", "Financiación en cuenta corriente"]
    }
