# app/modules/payment_methods/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_root_user, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from .service import PaymentMethodsService
from .schemas import (
    PaymentMethodCreate, PaymentMethodItem, PaymentCardCreate, PaymentCardItem, CatalogSyncResponse,
    AssociateMethodRequest, AssociateCardRequest, ToggleRequest, ReorderRequest,
    OrganizationMethodsResponse, OrganizationCardsResponse
)

router = APIRouter()


# ==================== CATÁLOGO GLOBAL ====================

@router.get("/catalog", response_model=List[PaymentMethodItem])
async def get_all_methods(
    current_user = Depends(require_roles(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    """Todos los métodos de pago del catálogo global"""
    service = PaymentMethodsService(db, None)
    return await service.get_all_methods()


@router.post("/catalog", response_model=PaymentMethodItem, status_code=201)
async def create_method(
    data: PaymentMethodCreate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, None)
    return await service.create_method(data)


@router.post("/catalog/sync", response_model=CatalogSyncResponse)
async def sync_default_methods(
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    """Crear o actualizar los métodos de pago base (efectivo, tarjetas, transferencia...)"""
    service = PaymentMethodsService(db, None)
    return await service.sync_default_methods()


@router.get("/cards/catalog", response_model=List[PaymentCardItem])
async def get_all_cards(
    current_user = Depends(require_roles(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, None)
    return await service.get_all_cards()


@router.post("/cards/catalog", response_model=PaymentCardItem, status_code=201)
async def create_card(
    data: PaymentCardCreate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, None)
    return await service.create_card(data)


# ==================== TARJETAS DE LA ORGANIZACIÓN ====================

@router.get("/cards", response_model=OrganizationCardsResponse)
async def get_organization_cards(
    enabled_only: bool = False,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.get_organization_cards(enabled_only)


@router.get("/cards/available", response_model=List[PaymentCardItem])
async def get_available_cards(
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Tarjetas del catálogo que la organización todavía no acepta"""
    service = PaymentMethodsService(db, organization_id)
    return await service.get_available_cards()


@router.post("/cards", response_model=OrganizationCardsResponse, status_code=201)
async def associate_card(
    data: AssociateCardRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.associate_card(data.card_id)


@router.put("/cards/reorder", response_model=OrganizationCardsResponse)
async def reorder_cards(
    data: ReorderRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.reorder_cards(data)


@router.patch("/cards/{association_id}/toggle", response_model=OrganizationCardsResponse)
async def toggle_card(
    association_id: int,
    data: ToggleRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.toggle_card(association_id, data.is_enabled)


@router.delete("/cards/{association_id}", response_model=OrganizationCardsResponse)
async def remove_card(
    association_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.remove_card(association_id)


# ==================== MÉTODOS DE LA ORGANIZACIÓN ====================

@router.get("/", response_model=OrganizationMethodsResponse)
async def get_organization_methods(
    enabled_only: bool = False,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Métodos de pago de la organización en su orden configurado"""
    service = PaymentMethodsService(db, organization_id)
    return await service.get_organization_methods(enabled_only)


@router.get("/available", response_model=List[PaymentMethodItem])
async def get_available_methods(
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.get_available_methods()


@router.post("/", response_model=OrganizationMethodsResponse, status_code=201)
async def associate_method(
    data: AssociateMethodRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.associate_method(data.method_id)


@router.post("/initialize", response_model=OrganizationMethodsResponse)
async def initialize_methods(
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Asociar el catálogo completo (solo Cuenta Corriente queda habilitada)"""
    service = PaymentMethodsService(db, organization_id)
    return await service.initialize_methods()


@router.put("/reorder", response_model=OrganizationMethodsResponse)
async def reorder_methods(
    data: ReorderRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.reorder_methods(data)


@router.patch("/{association_id}/toggle", response_model=OrganizationMethodsResponse)
async def toggle_method(
    association_id: int,
    data: ToggleRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.toggle_method(association_id, data.is_enabled)


@router.delete("/{association_id}", response_model=OrganizationMethodsResponse)
async def remove_method(
    association_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PaymentMethodsService(db, organization_id)
    return await service.remove_method(association_id)


@router.get("/health")
async def payment_methods_health():
    """Health check del módulo de medios de pago"""
    return {
        "service": "payment-methods",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Catálogo global de métodos de pago y tarjetas",
            "Habilitación y orden por organización"
        ]
    }
