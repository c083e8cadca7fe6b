# app/modules/sales/repository.py
from datetime import datetime
from typing import List, Optional

from app.shared.database.models import Motorcycle, Reservation, Client
from app.shared.database.tenant import TenantRepository
from app.shared.schemas.common import GENERAL_BRANCH


class SalesRepository(TenantRepository):
    model = Motorcycle

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.get(client_id, Client)

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        return self.get(reservation_id, Reservation)

    def get_active_reservations(self, motorcycle_id: int) -> List[Reservation]:
        return self.query(Reservation).filter(
            Reservation.motorcycle_id == motorcycle_id,
            Reservation.status == "active"
        ).all()

    def get_reservations(self, status: Optional[str] = None, motorcycle_id: Optional[int] = None) -> List[Reservation]:
        query = self.query(Reservation)
        if status:
            query = query.filter(Reservation.status == status)
        if motorcycle_id:
            query = query.filter(Reservation.motorcycle_id == motorcycle_id)
        return query.order_by(Reservation.created_at.desc(), Reservation.id.desc()).all()

    def get_sales(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        branch_id: Optional[str] = None,
        seller_id: Optional[int] = None
    ) -> List[Motorcycle]:
        query = self.query().filter(Motorcycle.state == "VENDIDO")
        if start_date:
            query = query.filter(Motorcycle.sold_at >= start_date)
        if end_date:
            query = query.filter(Motorcycle.sold_at <= end_date)
        if branch_id == GENERAL_BRANCH:
            query = query.filter(Motorcycle.branch_id.is_(None))
        elif branch_id:
            query = query.filter(Motorcycle.branch_id == int(branch_id))
        if seller_id:
            query = query.filter(Motorcycle.seller_id == seller_id)
        return query.order_by(Motorcycle.sold_at.desc(), Motorcycle.id.desc()).all()
