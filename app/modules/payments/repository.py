# app/modules/payments/repository.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy import or_

from app.shared.database.models import MercadoPagoOAuth, PaymentNotification, Payment, Organization
from app.shared.database.tenant import TenantRepository


class PaymentsRepository(TenantRepository):
    model = PaymentNotification

    def get_organization(self) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.id == self.organization_id).first()

    def get_oauth(self) -> Optional[MercadoPagoOAuth]:
        return self.query(MercadoPagoOAuth).first()

    def find_payment_by_reference(self, reference: str) -> Optional[Payment]:
        return self.query(Payment).filter(
            Payment.transaction_reference == reference,
            Payment.payment_method.like("MercadoPago%")
        ).first()

    # ==================== NOTIFICACIONES ====================

    def get_active_notifications(self, only_unread: bool = False) -> List[PaymentNotification]:
        query = self.query().filter(
            or_(PaymentNotification.expires_at.is_(None), PaymentNotification.expires_at > datetime.now())
        )
        if only_unread:
            query = query.filter(PaymentNotification.is_read.is_(False))
        return query.order_by(PaymentNotification.created_at.desc(), PaymentNotification.id.desc()).all()

    def get_notification(self, notification_id: int) -> Optional[PaymentNotification]:
        return self.get(notification_id)

    def get_last_notification(self, external_id: str, notification_type: str) -> Optional[PaymentNotification]:
        return self.query().filter(
            PaymentNotification.external_id == external_id,
            PaymentNotification.type == notification_type
        ).order_by(PaymentNotification.id.desc()).first()
