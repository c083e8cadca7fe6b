# app/modules/banking/repository.py
from sqlalchemy import func
from typing import List, Optional

from app.shared.database.models import (
    Bank, CardType, BankCard, BankingPromotion, InstallmentPlan, PaymentMethod, PaymentCard
)
from app.shared.database.tenant import TenantRepository


class BankingRepository(TenantRepository):
    model = BankingPromotion

    # ==================== CATÁLOGO ====================

    def get_banks(self) -> List[Bank]:
        return self.db.query(Bank).order_by(Bank.name.asc()).all()

    def get_bank(self, bank_id: int) -> Optional[Bank]:
        return self.db.query(Bank).filter(Bank.id == bank_id).first()

    def get_bank_by_name(self, name: str) -> Optional[Bank]:
        return self.db.query(Bank).filter(func.lower(Bank.name) == name.lower()).first()

    def get_card_types(self) -> List[CardType]:
        return self.db.query(CardType).order_by(CardType.name.asc()).all()

    def get_card_types_by_ids(self, ids: List[int]) -> List[CardType]:
        return self.db.query(CardType).filter(CardType.id.in_(ids)).all()

    def get_card_type_by_name(self, name: str) -> Optional[CardType]:
        return self.db.query(CardType).filter(func.lower(CardType.name) == name.lower()).first()

    def get_payment_method(self, method_id: int) -> Optional[PaymentMethod]:
        return self.db.query(PaymentMethod).filter(PaymentMethod.id == method_id).first()

    def get_payment_card(self, card_id: int) -> Optional[PaymentCard]:
        return self.db.query(PaymentCard).filter(PaymentCard.id == card_id).first()

    # ==================== TARJETAS POR BANCO ====================

    def get_bank_cards(self, bank_id: Optional[int] = None) -> List[BankCard]:
        query = self.query(BankCard)
        if bank_id:
            query = query.filter(BankCard.bank_id == bank_id)
        return query.order_by(BankCard.bank_id.asc(), BankCard.order.asc(), BankCard.id.asc()).all()

    def get_bank_card(self, bank_card_id: int) -> Optional[BankCard]:
        return self.get(bank_card_id, BankCard)

    def get_associated_card_type_ids(self, bank_id: int, card_type_ids: List[int]) -> List[int]:
        rows = self.query(BankCard).with_entities(BankCard.card_type_id).filter(
            BankCard.bank_id == bank_id,
            BankCard.card_type_id.in_(card_type_ids)
        ).all()
        return [row[0] for row in rows]

    def count_promotions_using_bank_card(self, bank_card_id: int) -> int:
        return self.query().filter(BankingPromotion.bank_card_id == bank_card_id).count()

    # ==================== PROMOCIONES ====================

    def get_promotions(self, enabled_only: bool = False) -> List[BankingPromotion]:
        query = self.query()
        if enabled_only:
            query = query.filter(BankingPromotion.is_enabled.is_(True))
            return query.order_by(BankingPromotion.name.asc()).all()
        return query.order_by(BankingPromotion.created_at.desc(), BankingPromotion.id.desc()).all()

    def get_installment_plan(self, plan_id: int) -> Optional[InstallmentPlan]:
        return self.db.query(InstallmentPlan).join(BankingPromotion).filter(
            InstallmentPlan.id == plan_id,
            BankingPromotion.organization_id == self.organization_id
        ).first()
