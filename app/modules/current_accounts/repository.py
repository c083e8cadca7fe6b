# app/modules/current_accounts/repository.py
from datetime import datetime
from typing import List, Optional

from app.shared.database.models import CurrentAccount, Payment, Motorcycle, Client
from app.shared.database.tenant import TenantRepository
from app.shared.schemas.common import GENERAL_BRANCH


class CurrentAccountsRepository(TenantRepository):
    model = CurrentAccount

    def get_by_motorcycle(self, motorcycle_id: int) -> Optional[CurrentAccount]:
        return self.query().filter(CurrentAccount.motorcycle_id == motorcycle_id).first()

    def get_motorcycle(self, motorcycle_id: int) -> Optional[Motorcycle]:
        return self.get(motorcycle_id, Motorcycle)

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.get(client_id, Client)

    def get_payment(self, payment_id: int) -> Optional[Payment]:
        return self.get(payment_id, Payment)

    def count_valid_payments(self, account_id: int) -> int:
        """Pagos vigentes: sin asiento D/H"""
        return self.query(Payment).filter(
            Payment.current_account_id == account_id,
            Payment.installment_version.is_(None)
        ).count()

    def search(
        self,
        status: Optional[str] = None,
        branch_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[CurrentAccount]:
        query = self.query().join(Motorcycle, CurrentAccount.motorcycle_id == Motorcycle.id)

        if status:
            query = query.filter(CurrentAccount.status == status)
        if branch_id == GENERAL_BRANCH:
            query = query.filter(Motorcycle.branch_id.is_(None))
        elif branch_id:
            query = query.filter(Motorcycle.branch_id == int(branch_id))
        if start_date:
            query = query.filter(CurrentAccount.created_at >= start_date)
        if end_date:
            query = query.filter(CurrentAccount.created_at <= end_date)

        return query.order_by(CurrentAccount.created_at.desc(), CurrentAccount.id.desc()).all()
