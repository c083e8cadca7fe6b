# app/modules/banking/service.py
import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.shared.database.models import Bank, CardType, BankCard, BankingPromotion, InstallmentPlan
from .repository import BankingRepository
from .schemas import (
    WEEK_DAYS, BankCreate, BankItem, CardTypeCreate, CardTypeItem,
    BankCardAssociateRequest, BankCardItem, BankCardsResponse, ReorderRequest,
    InstallmentPlanInput, InstallmentPlanItem, PromotionCreate, PromotionUpdate, PromotionItem,
    PromotionResponse, PromotionListResponse, PromotionCalculation
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
PROMOTION_NOT_FOUND = "Promoción no encontrada"


def week_day_name(day: date) -> str:
    """date -> 'lunes' ... 'domingo'"""
    return WEEK_DAYS[day.weekday()]


def promotion_applies_on(promotion: BankingPromotion, day: date) -> bool:
    """Habilitada, dentro de su vigencia y activa ese día de la semana"""
    if not promotion.is_enabled:
        return False
    if promotion.start_date and day < promotion.start_date:
        return False
    if promotion.end_date and day > promotion.end_date:
        return False
    return not promotion.active_days or week_day_name(day) in promotion.active_days


def _percent_of(amount: Decimal, rate: float) -> Decimal:
    return (amount * Decimal(str(rate)) / 100).quantize(CENTS, rounding=ROUND_HALF_UP)


def apply_promotion(
    amount: Decimal,
    discount_rate: Optional[float],
    surcharge_rate: Optional[float],
    plans: Iterable[InstallmentPlan],
    installments: Optional[int] = None
) -> dict:
    """
    Monto final de una venta con la promoción aplicada.

    Primero el descuento o el recargo; después, si se piden cuotas y la
    promoción tiene ese plan habilitado, el interés total del plan. Sin plan
    para esa cantidad de cuotas el monto queda en un solo pago.
    """
    result = {"original_amount": amount, "final_amount": amount}

    if discount_rate and discount_rate > 0:
        result["discount_amount"] = _percent_of(amount, discount_rate)
        result["final_amount"] = amount - result["discount_amount"]
    elif surcharge_rate and surcharge_rate > 0:
        result["surcharge_amount"] = _percent_of(amount, surcharge_rate)
        result["final_amount"] = amount + result["surcharge_amount"]

    if installments and installments > 1:
        plan = next((p for p in plans if p.installments == installments and p.is_enabled), None)
        if plan:
            if plan.interest_rate and plan.interest_rate > 0:
                result["total_interest"] = _percent_of(result["final_amount"], plan.interest_rate)
                result["final_amount"] += result["total_interest"]
            result["installments"] = installments
            result["installment_amount"] = (result["final_amount"] / installments).quantize(
                CENTS, rounding=ROUND_HALF_UP
            )

    return result


def promotion_to_item(promotion: BankingPromotion) -> PromotionItem:
    return PromotionItem(
        id=promotion.id,
        name=promotion.name,
        description=promotion.description,
        payment_method_id=promotion.payment_method_id,
        payment_method_name=promotion.payment_method.name if promotion.payment_method else None,
        bank_id=promotion.bank_id,
        bank_name=promotion.bank.name if promotion.bank else None,
        card_id=promotion.card_id,
        card_name=promotion.card.name if promotion.card else None,
        bank_card_id=promotion.bank_card_id,
        discount_rate=promotion.discount_rate,
        surcharge_rate=promotion.surcharge_rate,
        min_amount=promotion.min_amount,
        max_amount=promotion.max_amount,
        active_days=promotion.active_days or [],
        start_date=promotion.start_date,
        end_date=promotion.end_date,
        is_enabled=promotion.is_enabled,
        installment_plans=[InstallmentPlanItem.model_validate(p) for p in promotion.installment_plans],
        created_at=promotion.created_at
    )


class BankingService:
    """Bancos, tarjetas por banco y promociones bancarias"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = BankingRepository(db, organization_id)

    # =====================================================
    # CATÁLOGO (root)
    # =====================================================

    async def get_banks(self) -> List[BankItem]:
        return [BankItem.model_validate(b) for b in self.repository.get_banks()]

    async def create_bank(self, data: BankCreate) -> BankItem:
        if self.repository.get_bank_by_name(data.name):
            raise HTTPException(status_code=400, detail=f"El banco '{data.name}' ya existe")

        bank = Bank(name=data.name, logo_url=data.logo_url)
        self.db.add(bank)
        self.db.commit()
        self.db.refresh(bank)
        logger.info(f"🏦 Banco creado: {bank.name}")
        return BankItem.model_validate(bank)

    async def get_card_types(self) -> List[CardTypeItem]:
        return [CardTypeItem.model_validate(c) for c in self.repository.get_card_types()]

    async def create_card_type(self, data: CardTypeCreate) -> CardTypeItem:
        if self.repository.get_card_type_by_name(data.name):
            raise HTTPException(status_code=400, detail=f"Tipo de tarjeta '{data.name}' ya existe.")

        card_type = CardType(name=data.name, type=data.type, logo_url=data.logo_url)
        self.db.add(card_type)
        self.db.commit()
        self.db.refresh(card_type)
        return CardTypeItem.model_validate(card_type)

    # =====================================================
    # TARJETAS POR BANCO
    # =====================================================

    async def get_bank_cards(self, bank_id: Optional[int] = None, created: int = 0,
                             message: Optional[str] = None) -> BankCardsResponse:
        bank_cards = self.repository.get_bank_cards(bank_id)
        return BankCardsResponse(
            success=True,
            message=message or f"{len(bank_cards)} tarjetas asociadas",
            created=created,
            bank_cards=[BankCardItem.model_validate(b) for b in bank_cards]
        )

    async def associate_card_types(self, data: BankCardAssociateRequest) -> BankCardsResponse:
        """
        Asociar uno o varios tipos de tarjeta a un banco.

        Los tipos ya asociados se saltean; si todos lo estaban no es un error.
        """
        if not self.repository.get_bank(data.bank_id):
            raise HTTPException(status_code=404, detail="Banco no encontrado")

        requested = list(dict.fromkeys(data.card_type_ids))
        found = {c.id for c in self.repository.get_card_types_by_ids(requested)}
        missing = [cid for cid in requested if cid not in found]
        if missing:
            raise HTTPException(status_code=404, detail=f"Tipos de tarjeta no encontrados: {missing}")

        existing = set(self.repository.get_associated_card_type_ids(data.bank_id, requested))
        to_create = [cid for cid in requested if cid not in existing]
        if not to_create:
            return await self.get_bank_cards(
                data.bank_id, message="Todos los tipos de tarjeta seleccionados ya estaban asociados."
            )

        try:
            for index, card_type_id in enumerate(to_create):
                self.repository.add(BankCard(
                    bank_id=data.bank_id,
                    card_type_id=card_type_id,
                    is_enabled=True,
                    order=index
                ))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Esta asociación banco-tarjeta ya existe")

        logger.info(f"💳 {len(to_create)} tarjetas asociadas al banco #{data.bank_id} (org {self.organization_id})")
        return await self.get_bank_cards(
            data.bank_id, created=len(to_create),
            message=f"{len(to_create)} tipo(s) de tarjeta asociados correctamente."
        )

    def _get_bank_card(self, bank_card_id: int) -> BankCard:
        bank_card = self.repository.get_bank_card(bank_card_id)
        if not bank_card:
            raise HTTPException(status_code=404, detail="Asociación banco-tarjeta no encontrada")
        return bank_card

    async def toggle_bank_card(self, bank_card_id: int, is_enabled: bool) -> BankCardsResponse:
        bank_card = self._get_bank_card(bank_card_id)
        bank_card.is_enabled = is_enabled
        self.db.commit()
        return await self.get_bank_cards(
            message=f"Tarjeta {'habilitada' if is_enabled else 'deshabilitada'} correctamente"
        )

    async def reorder_bank_cards(self, data: ReorderRequest) -> BankCardsResponse:
        ids = [item.id for item in data.items]
        bank_cards = {b.id: b for b in self.repository.query(BankCard).filter(BankCard.id.in_(ids)).all()}
        if any(bank_card_id not in bank_cards for bank_card_id in ids):
            raise HTTPException(status_code=404, detail="Asociación banco-tarjeta no encontrada")

        for item in data.items:
            bank_cards[item.id].order = item.order
        self.db.commit()
        return await self.get_bank_cards(message="Orden de tarjetas actualizado correctamente")

    async def dissociate_bank_card(self, bank_card_id: int) -> BankCardsResponse:
        bank_card = self._get_bank_card(bank_card_id)
        if self.repository.count_promotions_using_bank_card(bank_card.id):
            raise HTTPException(
                status_code=400,
                detail="No se puede eliminar esta asociación porque está siendo usada en promociones"
            )

        self.repository.delete(bank_card)
        return await self.get_bank_cards(message="Asociación banco-tarjeta eliminada correctamente")

    # =====================================================
    # PROMOCIONES
    # =====================================================

    def _get_promotion(self, promotion_id: int) -> BankingPromotion:
        promotion = self.repository.get(promotion_id)
        if not promotion:
            raise HTTPException(status_code=404, detail=PROMOTION_NOT_FOUND)
        return promotion

    def _check_references(self, data: PromotionCreate) -> None:
        if not self.repository.get_payment_method(data.payment_method_id):
            raise HTTPException(status_code=400, detail="Método de pago no encontrado")
        if data.bank_id and not self.repository.get_bank(data.bank_id):
            raise HTTPException(status_code=400, detail="Banco no encontrado")
        if data.card_id and not self.repository.get_payment_card(data.card_id):
            raise HTTPException(status_code=400, detail="Tarjeta no encontrada")
        if data.bank_card_id and not self.repository.get_bank_card(data.bank_card_id):
            raise HTTPException(status_code=400, detail="Asociación banco-tarjeta no encontrada o no pertenece a tu organización")

        counts = [plan.installments for plan in data.installment_plans]
        if len(counts) != len(set(counts)):
            raise HTTPException(status_code=400, detail="Hay planes de cuotas repetidos")

    @staticmethod
    def _promotion_values(data: PromotionCreate) -> dict:
        return data.dict(exclude={"installment_plans"})

    async def list_promotions(self, enabled_only: bool = False, on_date: Optional[date] = None) -> PromotionListResponse:
        """Con `on_date` solo quedan las promociones vigentes y activas ese día"""
        promotions = self.repository.get_promotions(enabled_only or on_date is not None)
        day = None
        if on_date is not None:
            day = week_day_name(on_date)
            promotions = [p for p in promotions if promotion_applies_on(p, on_date)]

        return PromotionListResponse(
            success=True,
            message=f"{len(promotions)} promociones",
            promotions=[promotion_to_item(p) for p in promotions],
            total=len(promotions),
            day=day
        )

    async def get_promotion(self, promotion_id: int) -> PromotionResponse:
        promotion = self._get_promotion(promotion_id)
        return PromotionResponse(success=True, message="Promoción obtenida", promotion=promotion_to_item(promotion))

    async def create_promotion(self, data: PromotionCreate) -> PromotionResponse:
        self._check_references(data)

        promotion = BankingPromotion(**self._promotion_values(data))
        for plan in data.installment_plans:
            promotion.installment_plans.append(InstallmentPlan(**plan.dict()))
        self.repository.save(promotion)

        logger.info(f"🏷️ Promoción bancaria creada: {promotion.name} (org {self.organization_id})")
        return PromotionResponse(
            success=True,
            message="Promoción bancaria creada correctamente",
            promotion=promotion_to_item(promotion)
        )

    async def update_promotion(self, promotion_id: int, data: PromotionUpdate) -> PromotionResponse:
        """Los planes existentes se actualizan por cantidad de cuotas y los nuevos se agregan"""
        promotion = self._get_promotion(promotion_id)
        self._check_references(data)

        for field, value in self._promotion_values(data).items():
            setattr(promotion, field, value)

        existing = {plan.installments: plan for plan in promotion.installment_plans}
        for plan_data in data.installment_plans:
            plan = existing.get(plan_data.installments)
            if plan:
                plan.interest_rate = plan_data.interest_rate
                plan.is_enabled = plan_data.is_enabled
            else:
                promotion.installment_plans.append(InstallmentPlan(**plan_data.dict()))

        self.db.commit()
        self.db.refresh(promotion)
        return PromotionResponse(
            success=True,
            message="Promoción bancaria actualizada correctamente",
            promotion=promotion_to_item(promotion)
        )

    async def toggle_promotion(self, promotion_id: int, is_enabled: bool) -> PromotionResponse:
        promotion = self._get_promotion(promotion_id)
        promotion.is_enabled = is_enabled
        self.db.commit()
        self.db.refresh(promotion)
        return PromotionResponse(
            success=True,
            message=f"Promoción {'habilitada' if is_enabled else 'deshabilitada'} correctamente",
            promotion=promotion_to_item(promotion)
        )

    async def toggle_installment_plan(self, plan_id: int, is_enabled: bool) -> PromotionResponse:
        plan = self.repository.get_installment_plan(plan_id)
        if not plan:
            raise HTTPException(status_code=404, detail="Plan de cuotas no encontrado")

        plan.is_enabled = is_enabled
        self.db.commit()
        promotion = plan.promotion
        self.db.refresh(promotion)
        return PromotionResponse(
            success=True,
            message=f"Plan de cuotas {'habilitado' if is_enabled else 'deshabilitado'} correctamente",
            promotion=promotion_to_item(promotion)
        )

    async def delete_promotion(self, promotion_id: int) -> PromotionResponse:
        promotion = self._get_promotion(promotion_id)
        item = promotion_to_item(promotion)
        self.repository.delete(promotion)
        logger.info(f"🗑️ Promoción bancaria #{promotion_id} eliminada")
        return PromotionResponse(success=True, message="Promoción bancaria eliminada correctamente", promotion=item)

    async def calculate(self, promotion_id: int, amount: Decimal, installments: Optional[int]) -> PromotionCalculation:
        promotion = self._get_promotion(promotion_id)
        if promotion.min_amount is not None and amount < promotion.min_amount:
            raise HTTPException(status_code=400, detail=f"El monto mínimo para esta promoción es {promotion.min_amount}")
        if promotion.max_amount is not None and amount > promotion.max_amount:
            raise HTTPException(status_code=400, detail=f"El monto máximo para esta promoción es {promotion.max_amount}")

        result = apply_promotion(
            amount, promotion.discount_rate, promotion.surcharge_rate,
            promotion.installment_plans, installments
        )
        return PromotionCalculation(
            success=True,
            message="Monto calculado",
            promotion_id=promotion.id,
            **result
        )
