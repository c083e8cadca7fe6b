# app/modules/payment_methods/repository.py
from sqlalchemy import func
from typing import List, Optional

from app.shared.database.models import (
    PaymentMethod, OrganizationPaymentMethod, PaymentCard, OrganizationPaymentCard
)
from app.shared.database.tenant import TenantRepository


class PaymentMethodsRepository(TenantRepository):
    model = OrganizationPaymentMethod

    # ==================== CATÁLOGO ====================

    def get_all_methods(self) -> List[PaymentMethod]:
        return self.db.query(PaymentMethod).order_by(PaymentMethod.name.asc()).all()

    def get_method(self, method_id: int) -> Optional[PaymentMethod]:
        return self.db.query(PaymentMethod).filter(PaymentMethod.id == method_id).first()

    def get_method_by_type(self, method_type: str) -> Optional[PaymentMethod]:
        return self.db.query(PaymentMethod).filter(PaymentMethod.type == method_type).first()

    def get_all_cards(self) -> List[PaymentCard]:
        return self.db.query(PaymentCard).order_by(PaymentCard.name.asc()).all()

    def get_card(self, card_id: int) -> Optional[PaymentCard]:
        return self.db.query(PaymentCard).filter(PaymentCard.id == card_id).first()

    def get_card_by_name(self, name: str) -> Optional[PaymentCard]:
        return self.db.query(PaymentCard).filter(func.lower(PaymentCard.name) == name.lower()).first()

    # ==================== ORGANIZACIÓN ====================

    def get_organization_methods(self, enabled_only: bool = False) -> List[OrganizationPaymentMethod]:
        query = self.query()
        if enabled_only:
            query = query.filter(OrganizationPaymentMethod.is_enabled.is_(True))
        return query.order_by(OrganizationPaymentMethod.order.asc(), OrganizationPaymentMethod.id.asc()).all()

    def get_organization_method_by_method(self, method_id: int) -> Optional[OrganizationPaymentMethod]:
        return self.query().filter(OrganizationPaymentMethod.method_id == method_id).first()

    def get_available_methods(self) -> List[PaymentMethod]:
        associated = self.db.query(OrganizationPaymentMethod.method_id).filter(
            OrganizationPaymentMethod.organization_id == self.organization_id
        )
        return self.db.query(PaymentMethod).filter(~PaymentMethod.id.in_(associated)) \
            .order_by(PaymentMethod.name.asc()).all()

    def get_organization_cards(self, enabled_only: bool = False) -> List[OrganizationPaymentCard]:
        query = self.query(OrganizationPaymentCard)
        if enabled_only:
            query = query.filter(OrganizationPaymentCard.is_enabled.is_(True))
        return query.order_by(OrganizationPaymentCard.order.asc(), OrganizationPaymentCard.id.asc()).all()

    def get_organization_card(self, association_id: int) -> Optional[OrganizationPaymentCard]:
        return self.get(association_id, OrganizationPaymentCard)

    def get_organization_card_by_card(self, card_id: int) -> Optional[OrganizationPaymentCard]:
        return self.query(OrganizationPaymentCard).filter(OrganizationPaymentCard.card_id == card_id).first()

    def get_available_cards(self) -> List[PaymentCard]:
        associated = self.db.query(OrganizationPaymentCard.card_id).filter(
            OrganizationPaymentCard.organization_id == self.organization_id
        )
        return self.db.query(PaymentCard).filter(~PaymentCard.id.in_(associated)) \
            .order_by(PaymentCard.name.asc()).all()

    def next_order(self, model) -> int:
        max_order = self.db.query(func.max(model.order)).filter(
            model.organization_id == self.organization_id
        ).scalar()
        return (max_order if max_order is not None else -1) + 1
