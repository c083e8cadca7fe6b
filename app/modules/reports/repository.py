# app/modules/reports/repository.py
from datetime import date, datetime, time
from typing import List, Optional

from app.shared.database.models import (
    Motorcycle, CurrentAccount, Reservation, Supplier
)
from app.shared.database.tenant import TenantRepository
from app.shared.schemas.common import GENERAL_BRANCH


def day_start(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min) if value else None


def day_end(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.max) if value else None


class ReportsRepository(TenantRepository):
    model = Motorcycle

    def _filter_branch(self, query, branch_id: Optional[str]):
        if branch_id == GENERAL_BRANCH:
            return query.filter(Motorcycle.branch_id.is_(None))
        if branch_id:
            return query.filter(Motorcycle.branch_id == int(branch_id))
        return query

    def get_sold_motorcycles(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        branch_id: Optional[str] = None,
        seller_id: Optional[int] = None
    ) -> List[Motorcycle]:
        query = self.query().filter(Motorcycle.state == "VENDIDO")
        if start_date:
            query = query.filter(Motorcycle.sold_at >= day_start(start_date))
        if end_date:
            query = query.filter(Motorcycle.sold_at <= day_end(end_date))
        if seller_id:
            query = query.filter(Motorcycle.seller_id == seller_id)
        query = self._filter_branch(query, branch_id)
        return query.order_by(Motorcycle.sold_at.asc(), Motorcycle.id.asc()).all()

    def get_inventory(self, branch_id: Optional[str] = None, state: Optional[str] = None) -> List[Motorcycle]:
        query = self.query().filter(Motorcycle.state != "ELIMINADO")
        if state:
            query = query.filter(Motorcycle.state == state)
        query = self._filter_branch(query, branch_id)
        return query.order_by(Motorcycle.id.asc()).all()

    def get_current_accounts(
        self,
        status: Optional[str] = None,
        branch_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[CurrentAccount]:
        query = self.query(CurrentAccount).join(Motorcycle, CurrentAccount.motorcycle_id == Motorcycle.id)
        if status:
            query = query.filter(CurrentAccount.status == status)
        if start_date:
            query = query.filter(CurrentAccount.created_at >= day_start(start_date))
        if end_date:
            query = query.filter(CurrentAccount.created_at <= day_end(end_date))
        query = self._filter_branch(query, branch_id)
        return query.order_by(CurrentAccount.created_at.desc(), CurrentAccount.id.desc()).all()

    def get_reservations(
        self,
        status: Optional[str] = None,
        branch_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Reservation]:
        query = self.query(Reservation).join(Motorcycle, Reservation.motorcycle_id == Motorcycle.id)
        if status:
            query = query.filter(Reservation.status == status)
        if start_date:
            query = query.filter(Reservation.created_at >= day_start(start_date))
        if end_date:
            query = query.filter(Reservation.created_at <= day_end(end_date))
        query = self._filter_branch(query, branch_id)
        return query.order_by(Reservation.created_at.desc(), Reservation.id.desc()).all()

    def get_suppliers(self, status: Optional[str] = None) -> List[Supplier]:
        query = self.query(Supplier)
        if status:
            query = query.filter(Supplier.status == status)
        return query.order_by(Supplier.legal_name.asc()).all()

    def get_supplied_motorcycles(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Motorcycle]:
        """Motos con proveedor asignado (compras), por fecha de alta"""
        query = self.query().filter(Motorcycle.supplier_id.isnot(None))
        if start_date:
            query = query.filter(Motorcycle.created_at >= day_start(start_date))
        if end_date:
            query = query.filter(Motorcycle.created_at <= day_end(end_date))
        return query.all()
