# app/modules/clients/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from .service import ClientsService
from .schemas import ClientCreate, ClientUpdate, ClientResponse, ClientListResponse

router = APIRouter()


@router.get("/", response_model=ClientListResponse)
async def get_clients(
    search: Optional[str] = Query(None, description="Nombre, razón social, documento o email"),
    status: Optional[str] = Query(None),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ClientsService(db, organization_id)
    return await service.get_clients(search, status)


@router.post("/", response_model=ClientResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Crear cliente

    - **Individual**: requiere nombre y apellido
    - **LegalEntity**: requiere razón social
    """
    service = ClientsService(db, organization_id)
    return await service.create_client(data)


@router.get("/health")
async def clients_health():
    return {"service": "clients", "status": "healthy", "version": "1.0.0"}


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ClientsService(db, organization_id)
    return await service.get_client(client_id)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ClientsService(db, organization_id)
    return await service.update_client(client_id, data)


@router.delete("/{client_id}", response_model=ClientResponse)
async def delete_client(
    client_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = ClientsService(db, organization_id)
    return await service.delete_client(client_id)
