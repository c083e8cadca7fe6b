# app/modules/petty_cash/repository.py
from datetime import datetime
from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.orm import selectinload
from typing import List, Optional

from app.shared.database.models import (
    Branch, PettyCashDeposit, PettyCashWithdrawal, PettyCashSpend
)
from app.shared.database.tenant import TenantRepository
from app.shared.schemas.common import GENERAL_BRANCH

CENTS = Decimal("0.01")


class PettyCashRepository(TenantRepository):
    model = PettyCashDeposit

    def _by_branch(self, query, branch_id: Optional[str]):
        if branch_id == GENERAL_BRANCH:
            return query.filter(PettyCashDeposit.branch_id.is_(None))
        if branch_id:
            return query.filter(PettyCashDeposit.branch_id == int(branch_id))
        return query

    def get_branch(self, branch_id: int) -> Optional[Branch]:
        return self.get(branch_id, Branch)

    def get_deposits(self, branch_id: Optional[str] = None) -> List[PettyCashDeposit]:
        query = self._by_branch(self.query(), branch_id)
        return query.order_by(PettyCashDeposit.date.desc(), PettyCashDeposit.id.desc()).all()

    def get_latest_open_deposit(self) -> Optional[PettyCashDeposit]:
        return self.query().filter(PettyCashDeposit.status == "OPEN") \
            .order_by(PettyCashDeposit.date.desc(), PettyCashDeposit.id.desc()).first()

    def total_withdrawn(self, deposit_id: int) -> Decimal:
        total = self.db.query(func.coalesce(func.sum(PettyCashWithdrawal.amount_given), 0)).filter(
            PettyCashWithdrawal.organization_id == self.organization_id,
            PettyCashWithdrawal.deposit_id == deposit_id
        ).scalar()
        return Decimal(str(total or 0)).quantize(CENTS)

    def get_withdrawal(self, withdrawal_id: int) -> Optional[PettyCashWithdrawal]:
        return self.get(withdrawal_id, PettyCashWithdrawal)

    def get_spend(self, spend_id: int) -> Optional[PettyCashSpend]:
        return self.get(spend_id, PettyCashSpend)

    def get_spends(self, branch_id: Optional[str] = None) -> List[PettyCashSpend]:
        query = self.query(PettyCashSpend) \
            .join(PettyCashWithdrawal, PettyCashSpend.withdrawal_id == PettyCashWithdrawal.id) \
            .join(PettyCashDeposit, PettyCashWithdrawal.deposit_id == PettyCashDeposit.id)
        return self._by_branch(query, branch_id).all()

    def get_deposits_between(self, start: datetime, end: datetime,
                             branch_id: Optional[str] = None) -> List[PettyCashDeposit]:
        """Depósitos del rango (ambos extremos incluidos) con sus retiros y gastos"""
        query = self.query().options(
            selectinload(PettyCashDeposit.withdrawals).selectinload(PettyCashWithdrawal.spends)
        ).filter(PettyCashDeposit.date >= start, PettyCashDeposit.date <= end)
        return self._by_branch(query, branch_id).order_by(PettyCashDeposit.date.asc(), PettyCashDeposit.id.asc()).all()
