# app/modules/suppliers/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from .service import SuppliersService
from .schemas import (
    SupplierCreate, SupplierUpdate, SupplierSelectItem, SupplierResponse, SupplierListResponse
)

router = APIRouter()


@router.get("/", response_model=SupplierListResponse)
async def get_suppliers(
    status: Optional[str] = Query(None, description="activo / inactivo"),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SuppliersService(db, organization_id)
    return await service.get_suppliers(status)


@router.get("/select", response_model=List[SupplierSelectItem])
async def get_suppliers_for_select(
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SuppliersService(db, organization_id)
    return await service.get_suppliers_for_select()


@router.post("/", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    data: SupplierCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SuppliersService(db, organization_id)
    return await service.create_supplier(data)


@router.get("/health")
async def suppliers_health():
    return {"service": "suppliers", "status": "healthy", "version": "1.0.0"}


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(
    supplier_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SuppliersService(db, organization_id)
    return await service.get_supplier(supplier_id)


@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    data: SupplierUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SuppliersService(db, organization_id)
    return await service.update_supplier(supplier_id, data)


@router.delete("/{supplier_id}", response_model=SupplierResponse)
async def delete_supplier(
    supplier_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = SuppliersService(db, organization_id)
    return await service.delete_supplier(supplier_id)
