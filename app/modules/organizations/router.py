# app/modules/organizations/router.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    get_root_user, require_roles, get_current_organization_id, ADMIN_ROLES
)
from .service import OrganizationsService
from .schemas import (
    OrganizationCreate, OrganizationUpdate, OrganizationItem, OrganizationResponse,
    UserCreate, UserUpdate, UserResponse, UserListResponse
)

router = APIRouter()


# =====================================================
# ORGANIZACIONES (solo root)
# =====================================================

@router.get("/", response_model=List[OrganizationItem])
async def get_all_organizations(
    search: Optional[str] = Query(None, description="Buscar por nombre o slug"),
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    """Listado de organizaciones de la plataforma"""
    service = OrganizationsService(db)
    return await service.get_all_organizations(search)


@router.post("/", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    """
    Crear organización con su administrador inicial

    - El slug debe ser único en la plataforma
    - El administrador queda asociado a la organización con rol `admin`
    """
    service = OrganizationsService(db)
    return await service.create_organization(data)


# =====================================================
# USUARIOS DE LA ORGANIZACIÓN ACTUAL
# =====================================================

@router.get("/current/users", response_model=UserListResponse)
async def get_current_organization_users(
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Usuarios de la organización del administrador"""
    service = OrganizationsService(db)
    return await service.get_users(organization_id)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    db: Session = Depends(get_db)
):
    """Actualizar datos, rol, sucursal, estado o contraseña de un usuario"""
    service = OrganizationsService(db)
    return await service.update_user(user_id, data, current_user)


@router.get("/health")
async def organizations_health():
    """Health check del módulo de organizaciones"""
    return {
        "service": "organizations",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Alta de organizaciones con administrador inicial",
            "Gestión de usuarios y roles"
        ]
    }


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: int,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = OrganizationsService(db)
    return await service.get_organization(organization_id)


@router.put("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: int,
    data: OrganizationUpdate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = OrganizationsService(db)
    return await service.update_organization(organization_id, data)


@router.post("/{organization_id}/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    organization_id: int,
    data: UserCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    db: Session = Depends(get_db)
):
    """Crear usuario en una organización (root en cualquiera, admin en la propia)"""
    service = OrganizationsService(db)
    return await service.create_user(organization_id, data, current_user)
