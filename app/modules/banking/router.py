# app/modules/banking/router.py
from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_root_user, get_current_organization_id, ADMIN_ROLES, ALL_ROLES
)
from .service import BankingService
from .schemas import (
    BankCreate, BankItem, CardTypeCreate, CardTypeItem, BankCardAssociateRequest, BankCardsResponse,
    ToggleRequest, ReorderRequest, PromotionCreate, PromotionUpdate, PromotionResponse,
    PromotionListResponse, PromotionCalculateRequest, PromotionCalculation
)

router = APIRouter()


# ==================== CATÁLOGO ====================

@router.get("/banks", response_model=List[BankItem])
async def get_banks(
    current_user = Depends(require_roles(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    service = BankingService(db, None)
    return await service.get_banks()


@router.post("/banks", response_model=BankItem, status_code=201)
async def create_bank(
    data: BankCreate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = BankingService(db, None)
    return await service.create_bank(data)


@router.get("/card-types", response_model=List[CardTypeItem])
async def get_card_types(
    current_user = Depends(require_roles(ALL_ROLES)),
    db: Session = Depends(get_db)
):
    service = BankingService(db, None)
    return await service.get_card_types()


@router.post("/card-types", response_model=CardTypeItem, status_code=201)
async def create_card_type(
    data: CardTypeCreate,
    current_user = Depends(get_root_user),
    db: Session = Depends(get_db)
):
    service = BankingService(db, None)
    return await service.create_card_type(data)


# ==================== TARJETAS POR BANCO ====================

@router.get("/bank-cards", response_model=BankCardsResponse)
async def get_bank_cards(
    bank_id: Optional[int] = None,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.get_bank_cards(bank_id)


@router.post("/bank-cards", response_model=BankCardsResponse, status_code=201)
async def associate_card_types(
    data: BankCardAssociateRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Asociar varios tipos de tarjeta a un banco (los ya asociados se ignoran)"""
    service = BankingService(db, organization_id)
    return await service.associate_card_types(data)


@router.put("/bank-cards/reorder", response_model=BankCardsResponse)
async def reorder_bank_cards(
    data: ReorderRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.reorder_bank_cards(data)


@router.patch("/bank-cards/{bank_card_id}/toggle", response_model=BankCardsResponse)
async def toggle_bank_card(
    bank_card_id: int,
    data: ToggleRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.toggle_bank_card(bank_card_id, data.is_enabled)


@router.delete("/bank-cards/{bank_card_id}", response_model=BankCardsResponse)
async def dissociate_bank_card(
    bank_card_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Desasociar una tarjeta del banco; falla si alguna promoción la usa"""
    service = BankingService(db, organization_id)
    return await service.dissociate_bank_card(bank_card_id)


# ==================== PROMOCIONES ====================

@router.get("/promotions", response_model=PromotionListResponse)
async def list_promotions(
    enabled_only: bool = False,
    on_date: Optional[date] = None,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Promociones bancarias de la organización.

    Con `on_date` devuelve solo las habilitadas, vigentes y activas en ese
    día de la semana (lo que el vendedor puede ofrecer en caja).
    """
    service = BankingService(db, organization_id)
    return await service.list_promotions(enabled_only, on_date)


@router.post("/promotions", response_model=PromotionResponse, status_code=201)
async def create_promotion(
    data: PromotionCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.create_promotion(data)


@router.get("/promotions/{promotion_id}", response_model=PromotionResponse)
async def get_promotion(
    promotion_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.get_promotion(promotion_id)


@router.put("/promotions/{promotion_id}", response_model=PromotionResponse)
async def update_promotion(
    promotion_id: int,
    data: PromotionUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.update_promotion(promotion_id, data)


@router.patch("/promotions/{promotion_id}/toggle", response_model=PromotionResponse)
async def toggle_promotion(
    promotion_id: int,
    data: ToggleRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.toggle_promotion(promotion_id, data.is_enabled)


@router.delete("/promotions/{promotion_id}", response_model=PromotionResponse)
async def delete_promotion(
    promotion_id: int,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.delete_promotion(promotion_id)


@router.post("/promotions/{promotion_id}/calculate", response_model=PromotionCalculation)
async def calculate_promotion(
    promotion_id: int,
    data: PromotionCalculateRequest,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Monto final con descuento o recargo y, si corresponde, el valor de cada cuota"""
    service = BankingService(db, organization_id)
    return await service.calculate(promotion_id, data.amount, data.installments)


@router.patch("/installment-plans/{plan_id}/toggle", response_model=PromotionResponse)
async def toggle_installment_plan(
    plan_id: int,
    data: ToggleRequest,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = BankingService(db, organization_id)
    return await service.toggle_installment_plan(plan_id, data.is_enabled)


@router.get("/health")
async def banking_health():
    """Health check del módulo bancario"""
    return {
        "service": "banking",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Bancos y tipos de tarjeta",
            "Tarjetas aceptadas por banco",
            "Promociones con descuento, recargo y cuotas"
        ]
    }
