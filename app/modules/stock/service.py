# app/modules/stock/service.py
import logging
from collections import Counter
from typing import Optional
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.shared.database.models import (
    Motorcycle, Brand, Model, Color, Branch, Supplier
)
from app.shared.database.tenant import is_unique_violation, is_foreign_key_violation
from .repository import StockRepository
from .schemas import (
    MotorcycleState, MotorcycleBatchCreate, MotorcycleUpdate, MotorcycleItem,
    MotorcycleResponse, MotorcycleBatchResponse, MotorcycleListResponse
)

logger = logging.getLogger(__name__)

REFERENCE_ERROR = (
    "Error de referencia: La Marca, Modelo, Color, Sucursal o Proveedor seleccionado no existe."
)

# EN_TRANSITO solo se maneja desde logística
STATE_TRANSITIONS = {
    MotorcycleState.STOCK: {MotorcycleState.PAUSADO, MotorcycleState.PROCESANDO, MotorcycleState.RESERVADO},
    MotorcycleState.PAUSADO: {MotorcycleState.STOCK, MotorcycleState.ELIMINADO},
    MotorcycleState.RESERVADO: {MotorcycleState.STOCK, MotorcycleState.PROCESANDO},
    MotorcycleState.PROCESANDO: {MotorcycleState.STOCK, MotorcycleState.VENDIDO},
    MotorcycleState.VENDIDO: set(),
    MotorcycleState.ELIMINADO: {MotorcycleState.STOCK},
    MotorcycleState.EN_TRANSITO: set(),
}

CLEAR_CLIENT_FROM = {MotorcycleState.RESERVADO, MotorcycleState.PROCESANDO, MotorcycleState.ELIMINADO}


def is_valid_transition(current: str, new: str) -> bool:
    try:
        return MotorcycleState(new) in STATE_TRANSITIONS[MotorcycleState(current)]
    except (ValueError, KeyError):
        return False


def motorcycle_to_item(motorcycle: Motorcycle) -> MotorcycleItem:
    return MotorcycleItem(
        id=motorcycle.id,
        brand_id=motorcycle.brand_id,
        brand_name=motorcycle.brand.name if motorcycle.brand else None,
        model_id=motorcycle.model_id,
        model_name=motorcycle.model.name if motorcycle.model else None,
        color_id=motorcycle.color_id,
        color_name=motorcycle.color.name if motorcycle.color else None,
        branch_id=motorcycle.branch_id,
        branch_name=motorcycle.branch.name if motorcycle.branch else None,
        supplier_id=motorcycle.supplier_id,
        client_id=motorcycle.client_id,
        client_name=motorcycle.client.display_name if motorcycle.client else None,
        seller_id=motorcycle.seller_id,
        year=motorcycle.year,
        displacement=motorcycle.displacement,
        chassis_number=motorcycle.chassis_number,
        engine_number=motorcycle.engine_number,
        mileage=motorcycle.mileage,
        license_plate=motorcycle.license_plate,
        cost_price=motorcycle.cost_price,
        retail_price=motorcycle.retail_price,
        wholesale_price=motorcycle.wholesale_price,
        currency=motorcycle.currency,
        image_url=motorcycle.image_url,
        state=motorcycle.state,
        observations=motorcycle.observations,
        sold_at=motorcycle.sold_at,
        created_at=motorcycle.created_at
    )


class StockService:
    """Inventario de motocicletas de la organización"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = StockRepository(db, organization_id)

    def get_or_404(self, motorcycle_id: int) -> Motorcycle:
        motorcycle = self.repository.get_motorcycle(motorcycle_id)
        if not motorcycle:
            raise HTTPException(status_code=404, detail="Motocicleta no encontrada")
        return motorcycle

    def _check_references(self, brand_id=None, model_id=None, color_ids=(), branch_id=None, supplier_id=None):
        """Marca/modelo son globales; color, sucursal y proveedor deben ser del tenant"""
        if brand_id is not None and not self.db.query(Brand).filter(Brand.id == brand_id).first():
            raise HTTPException(status_code=400, detail=REFERENCE_ERROR)
        if model_id is not None:
            model = self.db.query(Model).filter(Model.id == model_id).first()
            if not model or (brand_id is not None and model.brand_id != brand_id):
                raise HTTPException(status_code=400, detail=REFERENCE_ERROR)
        for color_id in {c for c in color_ids if c is not None}:
            if not self.repository.get(color_id, Color):
                raise HTTPException(status_code=400, detail=REFERENCE_ERROR)
        if branch_id is not None and not self.repository.get(branch_id, Branch):
            raise HTTPException(status_code=400, detail=REFERENCE_ERROR)
        if supplier_id is not None and not self.repository.get(supplier_id, Supplier):
            raise HTTPException(status_code=400, detail=REFERENCE_ERROR)

    def _integrity_error(self, error: IntegrityError) -> HTTPException:
        self.db.rollback()
        if is_unique_violation(error):
            return HTTPException(status_code=400, detail=f"Error de duplicidad: {error.orig}")
        if is_foreign_key_violation(error):
            return HTTPException(status_code=400, detail=REFERENCE_ERROR)
        return HTTPException(status_code=500, detail=f"Error guardando motocicletas: {str(error.orig)}")

    # =====================================================
    # ALTA
    # =====================================================

    async def create_batch(self, data: MotorcycleBatchCreate) -> MotorcycleBatchResponse:
        """
        Alta de un lote de motos.

        Los chasis no pueden repetirse dentro del lote ni existir ya en la
        organización. Todas las unidades se insertan en la misma transacción.
        """
        chassis_numbers = [u.chassis_number for u in data.units]
        repeated = sorted(c for c, n in Counter(chassis_numbers).items() if n > 1)
        if repeated:
            raise HTTPException(
                status_code=400,
                detail=f"Números de chasis repetidos en el lote: {', '.join(repeated)}"
            )

        existing = self.repository.find_existing_chassis(chassis_numbers)
        if existing:
            raise HTTPException(
                status_code=400,
                detail=f"Los siguientes números de chasis ya existen: {', '.join(existing)}"
            )

        self._check_references(
            brand_id=data.brand_id,
            model_id=data.model_id,
            color_ids=[u.color_id for u in data.units],
            branch_id=data.branch_id,
            supplier_id=data.supplier_id
        )

        common = data.dict(exclude={"units", "state"})
        created = []
        try:
            for unit in data.units:
                motorcycle = Motorcycle(**common, **unit.dict(), state=data.state.value)
                self.repository.add(motorcycle)
                created.append(motorcycle)
            self.db.commit()
        except IntegrityError as e:
            raise self._integrity_error(e)

        for motorcycle in created:
            self.db.refresh(motorcycle)

        logger.info(f"🏍️ {len(created)} motos creadas (org {self.organization_id})")
        return MotorcycleBatchResponse(
            success=True,
            message=f"{len(created)} motocicletas creadas",
            created=len(created),
            motorcycles=[motorcycle_to_item(m) for m in created]
        )

    # =====================================================
    # CONSULTAS
    # =====================================================

    async def get_motorcycles(
        self,
        state: Optional[str] = None,
        branch_id: Optional[str] = None,
        brand_id: Optional[int] = None,
        model_id: Optional[int] = None,
        year: Optional[int] = None,
        search: Optional[str] = None,
        page: int = 1,
        size: int = 20
    ) -> MotorcycleListResponse:
        items, total = self.repository.search(
            state=state, branch_id=branch_id, brand_id=brand_id, model_id=model_id,
            year=year, search=search, page=page, size=size
        )
        pages = (total + size - 1) // size if size else 0
        return MotorcycleListResponse(
            success=True,
            message=f"{total} motocicletas",
            items=[motorcycle_to_item(m) for m in items],
            total=total,
            page=page,
            size=size,
            pages=pages
        )

    async def get_motorcycle(self, motorcycle_id: int) -> MotorcycleResponse:
        motorcycle = self.get_or_404(motorcycle_id)
        return MotorcycleResponse(success=True, message="Motocicleta obtenida", motorcycle=motorcycle_to_item(motorcycle))

    # =====================================================
    # MODIFICACIONES
    # =====================================================

    async def update_motorcycle(self, motorcycle_id: int, data: MotorcycleUpdate) -> MotorcycleResponse:
        motorcycle = self.get_or_404(motorcycle_id)
        values = data.dict(exclude_unset=True)

        if values.get("chassis_number") is not None:
            values["chassis_number"] = values["chassis_number"].strip().upper()
            if values["chassis_number"] != motorcycle.chassis_number and \
                    self.repository.find_existing_chassis([values["chassis_number"]]):
                raise HTTPException(
                    status_code=400,
                    detail=f"Los siguientes números de chasis ya existen: {values['chassis_number']}"
                )
        if values.get("currency"):
            values["currency"] = values["currency"].upper()

        brand_or_model_changed = "brand_id" in values or "model_id" in values
        self._check_references(
            brand_id=values.get("brand_id", motorcycle.brand_id) if brand_or_model_changed else None,
            model_id=values.get("model_id", motorcycle.model_id) if brand_or_model_changed else None,
            color_ids=[values.get("color_id")],
            branch_id=values.get("branch_id"),
            supplier_id=values.get("supplier_id")
        )

        for field, value in values.items():
            setattr(motorcycle, field, value)

        try:
            self.db.commit()
        except IntegrityError as e:
            raise self._integrity_error(e)
        self.db.refresh(motorcycle)

        return MotorcycleResponse(success=True, message="Motocicleta actualizada", motorcycle=motorcycle_to_item(motorcycle))

    async def change_state(self, motorcycle_id: int, new_state: MotorcycleState) -> MotorcycleResponse:
        """
        Cambiar estado validando la máquina de estados.

        Volver a STOCK desde RESERVADO/PROCESANDO/ELIMINADO libera el cliente;
        desde RESERVADO además cancela las reservas activas.
        """
        motorcycle = self.get_or_404(motorcycle_id)
        current = motorcycle.state

        if not is_valid_transition(current, new_state.value):
            raise HTTPException(
                status_code=400,
                detail=f"Transición de estado inválida de {current} a {new_state.value}"
            )

        if new_state == MotorcycleState.STOCK and MotorcycleState(current) in CLEAR_CLIENT_FROM:
            motorcycle.client_id = None
            if current == MotorcycleState.RESERVADO.value:
                for reservation in self.repository.get_active_reservations(motorcycle.id):
                    reservation.status = "cancelled"

        motorcycle.state = new_state.value
        self.db.commit()
        self.db.refresh(motorcycle)

        logger.info(f"🔄 Moto #{motorcycle.id}: {current} → {new_state.value}")
        return MotorcycleResponse(
            success=True,
            message=f"Estado actualizado a {new_state.value}",
            motorcycle=motorcycle_to_item(motorcycle)
        )
