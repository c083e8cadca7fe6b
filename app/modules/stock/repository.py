# app/modules/stock/repository.py
from sqlalchemy import or_
from typing import List, Optional, Tuple

from app.shared.database.models import Motorcycle, Reservation
from app.shared.database.tenant import TenantRepository
from app.shared.schemas.common import GENERAL_BRANCH


class StockRepository(TenantRepository):
    model = Motorcycle

    def get_motorcycle(self, motorcycle_id: int) -> Optional[Motorcycle]:
        return self.get(motorcycle_id)

    def find_existing_chassis(self, chassis_numbers: List[str]) -> List[str]:
        """Chasis ya registrados en la organización"""
        if not chassis_numbers:
            return []
        rows = self.query().with_entities(Motorcycle.chassis_number).filter(
            Motorcycle.chassis_number.in_(chassis_numbers)
        ).all()
        return sorted(r[0] for r in rows)

    def search(
        self,
        state: Optional[str] = None,
        branch_id: Optional[str] = None,
        brand_id: Optional[int] = None,
        model_id: Optional[int] = None,
        year: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        size: int = 20
    ) -> Tuple[List[Motorcycle], int]:
        query = self.query()

        if state:
            query = query.filter(Motorcycle.state == state)
        else:
            query = query.filter(Motorcycle.state != "ELIMINADO")

        if branch_id == GENERAL_BRANCH:
            query = query.filter(Motorcycle.branch_id.is_(None))
        elif branch_id:
            query = query.filter(Motorcycle.branch_id == int(branch_id))

        if brand_id:
            query = query.filter(Motorcycle.brand_id == brand_id)
        if model_id:
            query = query.filter(Motorcycle.model_id == model_id)
        if year:
            query = query.filter(Motorcycle.year == year)

        if search:
            term = f"%{search.strip()}%"
            query = query.filter(or_(
                Motorcycle.chassis_number.ilike(term),
                Motorcycle.engine_number.ilike(term),
                Motorcycle.license_plate.ilike(term)
            ))

        total = query.count()
        items = query.order_by(Motorcycle.created_at.desc(), Motorcycle.id.desc()) \
            .offset((page - 1) * size).limit(size).all()
        return items, total

    def get_active_reservations(self, motorcycle_id: int) -> List[Reservation]:
        return self.query(Reservation).filter(
            Reservation.motorcycle_id == motorcycle_id,
            Reservation.status == "active"
        ).all()
