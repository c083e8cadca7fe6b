# app/modules/logistics/repository.py
from sqlalchemy import func, select
from typing import List, Optional

from app.shared.database.models import LogisticProvider, MotorcycleTransfer, Motorcycle, Branch
from app.shared.database.tenant import TenantRepository

ACTIVE_TRANSFER_STATUSES = ["REQUESTED", "CONFIRMED", "IN_TRANSIT"]


class LogisticsRepository(TenantRepository):
    model = MotorcycleTransfer

    # ==================== PROVEEDORES ====================

    def get_providers(self, only_active: bool = False) -> List[LogisticProvider]:
        query = self.query(LogisticProvider)
        if only_active:
            query = query.filter(LogisticProvider.is_active.is_(True))
        return query.order_by(LogisticProvider.name.asc()).all()

    def get_provider(self, provider_id: int) -> Optional[LogisticProvider]:
        return self.get(provider_id, LogisticProvider)

    def get_provider_by_name(self, name: str) -> Optional[LogisticProvider]:
        return self.query(LogisticProvider).filter(func.lower(LogisticProvider.name) == name.strip().lower()).first()

    def count_active_transfers_for_provider(self, provider_id: int) -> int:
        return self.query().filter(
            MotorcycleTransfer.logistic_provider_id == provider_id,
            MotorcycleTransfer.status.in_(ACTIVE_TRANSFER_STATUSES)
        ).count()

    # ==================== TRANSFERENCIAS ====================

    def get_branch(self, branch_id: int) -> Optional[Branch]:
        return self.get(branch_id, Branch)

    def get_motorcycle(self, motorcycle_id: int) -> Optional[Motorcycle]:
        return self.get(motorcycle_id, Motorcycle)

    def get_active_transfer(self, motorcycle_id: int) -> Optional[MotorcycleTransfer]:
        return self.query().filter(
            MotorcycleTransfer.motorcycle_id == motorcycle_id,
            MotorcycleTransfer.status.in_(ACTIVE_TRANSFER_STATUSES)
        ).first()

    def get_transfers(self, statuses: Optional[List[str]] = None) -> List[MotorcycleTransfer]:
        query = self.query()
        if statuses:
            query = query.filter(MotorcycleTransfer.status.in_(statuses))
        return query.order_by(MotorcycleTransfer.requested_date.desc(), MotorcycleTransfer.id.desc()).all()

    def get_transferable_motorcycles(self, branch_id: Optional[int] = None) -> List[Motorcycle]:
        """Motos en STOCK sin transferencia activa"""
        in_transfer = select(MotorcycleTransfer.motorcycle_id).where(
            MotorcycleTransfer.organization_id == self.organization_id,
            MotorcycleTransfer.status.in_(ACTIVE_TRANSFER_STATUSES)
        )
        query = self.query(Motorcycle).filter(
            Motorcycle.state == "STOCK",
            Motorcycle.branch_id.isnot(None),
            ~Motorcycle.id.in_(in_transfer)
        )
        if branch_id:
            query = query.filter(Motorcycle.branch_id == branch_id)
        return query.order_by(Motorcycle.id.asc()).all()
