# app/modules/logistics/service.py
import logging
from datetime import datetime
from typing import List, Optional
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.shared.database.models import LogisticProvider, MotorcycleTransfer, User
from app.modules.stock.schemas import MotorcycleState, MotorcycleItem
from app.modules.stock.service import motorcycle_to_item
from .repository import LogisticsRepository
from .schemas import (
    TransferStatus, ProviderCreate, ProviderUpdate, ProviderItem, ProviderResponse,
    ProviderListResponse, TransferCreate, TransferStatusUpdate, TransferItem,
    TransferResponse, TransferListResponse
)

logger = logging.getLogger(__name__)

TRANSFER_TRANSITIONS = {
    TransferStatus.REQUESTED: {TransferStatus.CONFIRMED, TransferStatus.CANCELLED},
    TransferStatus.CONFIRMED: {TransferStatus.IN_TRANSIT, TransferStatus.CANCELLED},
    TransferStatus.IN_TRANSIT: {TransferStatus.DELIVERED, TransferStatus.CANCELLED},
    TransferStatus.DELIVERED: set(),
    TransferStatus.CANCELLED: set(),
}

DUPLICATE_PROVIDER = "Ya existe un proveedor de logística con ese nombre."


def transfer_to_item(transfer: MotorcycleTransfer) -> TransferItem:
    motorcycle = transfer.motorcycle
    return TransferItem(
        id=transfer.id,
        motorcycle_id=transfer.motorcycle_id,
        chassis_number=motorcycle.chassis_number if motorcycle else None,
        motorcycle_label=(
            f"{motorcycle.brand.name} {motorcycle.model.name}"
            if motorcycle and motorcycle.brand and motorcycle.model else None
        ),
        from_branch_id=transfer.from_branch_id,
        from_branch_name=transfer.from_branch.name if transfer.from_branch else None,
        to_branch_id=transfer.to_branch_id,
        to_branch_name=transfer.to_branch.name if transfer.to_branch else None,
        logistic_provider_id=transfer.logistic_provider_id,
        logistic_provider_name=transfer.logistic_provider.name if transfer.logistic_provider else None,
        status=transfer.status,
        requested_by=transfer.requested_by,
        confirmed_by=transfer.confirmed_by,
        requested_date=transfer.requested_date,
        scheduled_pickup_date=transfer.scheduled_pickup_date,
        actual_delivery_date=transfer.actual_delivery_date,
        notes=transfer.notes
    )


class LogisticsService:
    """Proveedores de logística y transferencias de motos entre sucursales"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = LogisticsRepository(db, organization_id)

    # =====================================================
    # PROVEEDORES
    # =====================================================

    def _get_provider(self, provider_id: int) -> LogisticProvider:
        provider = self.repository.get_provider(provider_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Proveedor no encontrado.")
        return provider

    async def get_providers(self, only_active: bool = False) -> ProviderListResponse:
        providers = self.repository.get_providers(only_active)
        return ProviderListResponse(
            success=True,
            message=f"{len(providers)} proveedores de logística",
            providers=[ProviderItem.model_validate(p) for p in providers]
        )

    async def get_provider(self, provider_id: int) -> ProviderResponse:
        provider = self._get_provider(provider_id)
        return ProviderResponse(success=True, message="Proveedor obtenido", provider=ProviderItem.model_validate(provider))

    async def create_provider(self, data: ProviderCreate) -> ProviderResponse:
        if self.repository.get_provider_by_name(data.name):
            raise HTTPException(status_code=400, detail=DUPLICATE_PROVIDER)
        try:
            provider = self.repository.save(LogisticProvider(**data.dict()))
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail=DUPLICATE_PROVIDER)

        logger.info(f"🚚 Proveedor de logística creado: {provider.name}")
        return ProviderResponse(success=True, message="Proveedor creado", provider=ProviderItem.model_validate(provider))

    async def update_provider(self, provider_id: int, data: ProviderUpdate) -> ProviderResponse:
        provider = self._get_provider(provider_id)
        values = data.dict(exclude_unset=True)

        if values.get("name"):
            other = self.repository.get_provider_by_name(values["name"])
            if other and other.id != provider.id:
                raise HTTPException(status_code=400, detail=DUPLICATE_PROVIDER)

        for field, value in values.items():
            setattr(provider, field, value)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=400, detail=DUPLICATE_PROVIDER)
        self.db.refresh(provider)

        return ProviderResponse(success=True, message="Proveedor actualizado", provider=ProviderItem.model_validate(provider))

    async def delete_provider(self, provider_id: int) -> ProviderResponse:
        provider = self._get_provider(provider_id)
        if self.repository.count_active_transfers_for_provider(provider.id):
            raise HTTPException(
                status_code=400,
                detail="No se puede eliminar el proveedor porque tiene transferencias activas."
            )
        item = ProviderItem.model_validate(provider)
        self.repository.delete(provider)
        return ProviderResponse(success=True, message="Proveedor eliminado", provider=item)

    # =====================================================
    # TRANSFERENCIAS
    # =====================================================

    def _get_transfer(self, transfer_id: int) -> MotorcycleTransfer:
        transfer = self.repository.get(transfer_id)
        if not transfer:
            raise HTTPException(status_code=404, detail="Transferencia no encontrada.")
        return transfer

    async def get_transferable_motorcycles(self, branch_id: Optional[int] = None) -> List[MotorcycleItem]:
        return [motorcycle_to_item(m) for m in self.repository.get_transferable_motorcycles(branch_id)]

    async def create_transfer(self, data: TransferCreate, current_user: User) -> TransferResponse:
        """
        Enviar una moto a otra sucursal.

        La transferencia arranca EN TRÁNSITO y la moto queda EN_TRANSITO
        hasta que se confirme la llegada o se cancele.
        """
        motorcycle = self.repository.get_motorcycle(data.motorcycle_id)
        if not motorcycle or motorcycle.state != MotorcycleState.STOCK.value:
            raise HTTPException(status_code=400, detail="Motocicleta no encontrada o no disponible para transferencia.")
        if motorcycle.branch_id != data.from_branch_id:
            raise HTTPException(status_code=400, detail="La motocicleta no se encuentra en la sucursal de origen especificada.")
        if not self.repository.get_branch(data.to_branch_id):
            raise HTTPException(status_code=400, detail="Sucursal de destino no encontrada o no pertenece a tu organización.")
        if data.logistic_provider_id:
            self._get_provider(data.logistic_provider_id)
        if self.repository.get_active_transfer(motorcycle.id):
            raise HTTPException(status_code=400, detail="La motocicleta ya tiene una transferencia activa.")

        transfer = MotorcycleTransfer(
            motorcycle_id=motorcycle.id,
            from_branch_id=data.from_branch_id,
            to_branch_id=data.to_branch_id,
            logistic_provider_id=data.logistic_provider_id,
            status=TransferStatus.IN_TRANSIT.value,
            requested_by=current_user.id,
            requested_date=datetime.now(),
            scheduled_pickup_date=data.scheduled_pickup_date,
            notes=data.notes
        )
        self.repository.add(transfer)
        motorcycle.state = MotorcycleState.EN_TRANSITO.value
        self.db.commit()
        self.db.refresh(transfer)

        logger.info(f"🚚 Transferencia #{transfer.id}: moto #{motorcycle.id} {data.from_branch_id} → {data.to_branch_id}")
        return TransferResponse(success=True, message="Transferencia creada", transfer=transfer_to_item(transfer))

    async def update_status(self, transfer_id: int, data: TransferStatusUpdate, current_user: User) -> TransferResponse:
        transfer = self._get_transfer(transfer_id)
        current = TransferStatus(transfer.status)

        if data.status not in TRANSFER_TRANSITIONS[current]:
            raise HTTPException(
                status_code=400,
                detail=f"Transición de estado inválida de {current.value} a {data.status.value}."
            )

        motorcycle = transfer.motorcycle
        transfer.status = data.status.value
        if data.notes:
            transfer.notes = data.notes

        if data.status == TransferStatus.CONFIRMED:
            transfer.confirmed_by = current_user.id
        elif data.status == TransferStatus.DELIVERED:
            transfer.actual_delivery_date = datetime.now()
            motorcycle.branch_id = transfer.to_branch_id
            motorcycle.state = MotorcycleState.STOCK.value
        elif data.status == TransferStatus.CANCELLED:
            if motorcycle.state == MotorcycleState.EN_TRANSITO.value:
                motorcycle.state = MotorcycleState.STOCK.value

        self.db.commit()
        self.db.refresh(transfer)
        logger.info(f"🔄 Transferencia #{transfer.id}: {current.value} → {data.status.value}")
        return TransferResponse(success=True, message=f"Transferencia {data.status.value}", transfer=transfer_to_item(transfer))

    async def confirm_arrival(self, transfer_id: int, current_user: User) -> TransferResponse:
        transfer = self._get_transfer(transfer_id)
        if transfer.status != TransferStatus.IN_TRANSIT.value:
            raise HTTPException(status_code=400, detail="Transferencia no encontrada o no está en tránsito.")
        return await self.update_status(transfer_id, TransferStatusUpdate(status=TransferStatus.DELIVERED), current_user)

    async def get_transfers(self, status: Optional[List[str]] = None) -> TransferListResponse:
        transfers = self.repository.get_transfers(status)
        return TransferListResponse(
            success=True,
            message=f"{len(transfers)} transferencias",
            transfers=[transfer_to_item(t) for t in transfers],
            total=len(transfers)
        )
