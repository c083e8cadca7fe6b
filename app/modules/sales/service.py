# app/modules/sales/service.py
import logging
from datetime import datetime
from typing import Optional
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.shared.database.models import Reservation, User
from app.modules.stock.schemas import MotorcycleState
from app.modules.stock.service import StockService, motorcycle_to_item
from app.modules.current_accounts.service import CurrentAccountsService, account_to_item
from app.modules.current_accounts.schemas import FinancingTerms
from .repository import SalesRepository
from .schemas import (
    ReservationStatus, ReservationCreate, SaleCreate, ReservationItem, ReservationResponse,
    ReservationListResponse, SaleResponse, SaleItem, SaleListResponse
)

logger = logging.getLogger(__name__)

RESERVABLE_STATES = {MotorcycleState.STOCK.value, MotorcycleState.PAUSADO.value}
SELLABLE_STATES = {MotorcycleState.STOCK.value, MotorcycleState.RESERVADO.value, MotorcycleState.PROCESANDO.value}


def reservation_to_item(reservation: Reservation) -> ReservationItem:
    return ReservationItem(
        id=reservation.id,
        motorcycle_id=reservation.motorcycle_id,
        chassis_number=reservation.motorcycle.chassis_number if reservation.motorcycle else None,
        client_id=reservation.client_id,
        client_name=reservation.client.display_name if reservation.client else None,
        created_by_user_id=reservation.created_by_user_id,
        amount=reservation.amount,
        currency=reservation.currency,
        expiration_date=reservation.expiration_date,
        payment_method=reservation.payment_method,
        notes=reservation.notes,
        status=reservation.status,
        created_at=reservation.created_at
    )


class SalesService:
    """Reservas y cierre de ventas"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = SalesRepository(db, organization_id)
        self.stock = StockService(db, organization_id)

    def _get_client(self, client_id: int):
        client = self.repository.get_client(client_id)
        if not client:
            raise HTTPException(status_code=404, detail="No se encontró el cliente especificado")
        return client

    # =====================================================
    # RESERVAS
    # =====================================================

    async def create_reservation(self, data: ReservationCreate, current_user: User) -> ReservationResponse:
        """Reservar una moto disponible: reserva + estado RESERVADO en una transacción"""
        motorcycle = self.stock.get_or_404(data.motorcycle_id)
        if motorcycle.state not in RESERVABLE_STATES:
            raise HTTPException(
                status_code=400,
                detail=f"La motocicleta no está disponible para reserva (Estado actual: {motorcycle.state})"
            )
        client = self._get_client(data.client_id)

        if self.repository.get_active_reservations(motorcycle.id):
            logger.info(f"ℹ️ La moto #{motorcycle.id} ya tenía una reserva activa")

        try:
            reservation = Reservation(
                motorcycle_id=motorcycle.id,
                client_id=client.id,
                created_by_user_id=current_user.id,
                amount=data.amount,
                currency=data.currency,
                expiration_date=data.expiration_date,
                payment_method=data.payment_method,
                notes=data.notes,
                status=ReservationStatus.ACTIVE.value
            )
            self.repository.add(reservation)
            motorcycle.state = MotorcycleState.RESERVADO.value
            motorcycle.client_id = client.id
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception("❌ Error creando reserva")
            raise HTTPException(status_code=500, detail=f"Error al crear la reserva: {str(e)}")

        self.db.refresh(reservation)
        logger.info(f"📌 Reserva #{reservation.id} moto #{motorcycle.id} cliente #{client.id}")
        return ReservationResponse(success=True, message="Reserva creada", reservation=reservation_to_item(reservation))

    async def cancel_reservation(self, reservation_id: int) -> ReservationResponse:
        reservation = self.repository.get_reservation(reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reserva no encontrada")
        if reservation.status != ReservationStatus.ACTIVE.value:
            raise HTTPException(status_code=400, detail=f"La reserva no está activa (estado: {reservation.status})")

        reservation.status = ReservationStatus.CANCELLED.value
        motorcycle = reservation.motorcycle
        if motorcycle.state == MotorcycleState.RESERVADO.value:
            motorcycle.state = MotorcycleState.STOCK.value
            motorcycle.client_id = None
        self.db.commit()
        self.db.refresh(reservation)

        logger.info(f"❎ Reserva #{reservation.id} cancelada")
        return ReservationResponse(success=True, message="Reserva cancelada", reservation=reservation_to_item(reservation))

    async def get_reservations(self, status: Optional[str] = None, motorcycle_id: Optional[int] = None) -> ReservationListResponse:
        reservations = self.repository.get_reservations(status, motorcycle_id)
        return ReservationListResponse(
            success=True,
            message=f"{len(reservations)} reservas",
            reservations=[reservation_to_item(r) for r in reservations],
            total=len(reservations)
        )

    # =====================================================
    # VENTAS
    # =====================================================

    async def complete_sale(self, data: SaleCreate, current_user: User) -> SaleResponse:
        """
        Cerrar la venta de una moto.

        La moto pasa a VENDIDO con vendedor, cliente y fecha; las reservas
        activas se completan y, si viene financiación, se crea la cuenta
        corriente. Todo se confirma en un único commit.
        """
        motorcycle = self.stock.get_or_404(data.motorcycle_id)
        if motorcycle.state not in SELLABLE_STATES:
            raise HTTPException(
                status_code=400,
                detail=f"La motocicleta no está disponible para la venta (Estado actual: {motorcycle.state})"
            )
        client = self._get_client(data.client_id)

        account = None
        try:
            motorcycle.state = MotorcycleState.VENDIDO.value
            motorcycle.seller_id = current_user.id
            motorcycle.client_id = client.id
            motorcycle.sold_at = datetime.now()
            if data.notes:
                motorcycle.observations = data.notes

            for reservation in self.repository.get_active_reservations(motorcycle.id):
                reservation.status = ReservationStatus.COMPLETED.value

            if data.current_account:
                accounts = CurrentAccountsService(self.db, self.organization_id)
                account = accounts.build_account(motorcycle, client, data.current_account)

            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception("❌ Error registrando venta")
            raise HTTPException(status_code=500, detail=f"Error registrando venta: {str(e)}")

        self.db.refresh(motorcycle)
        logger.info(f"🎉 Moto #{motorcycle.id} vendida por usuario #{current_user.id}")

        current_account = None
        if account:
            self.db.refresh(account)
            current_account = account_to_item(account, True)

        return SaleResponse(
            success=True,
            message="Venta registrada exitosamente",
            motorcycle=motorcycle_to_item(motorcycle),
            current_account=current_account
        )

    async def complete_reservation(
        self,
        reservation_id: int,
        financing: Optional[FinancingTerms],
        current_user: User
    ) -> SaleResponse:
        """Convertir una reserva activa en venta"""
        reservation = self.repository.get_reservation(reservation_id)
        if not reservation:
            raise HTTPException(status_code=404, detail="Reserva no encontrada")
        if reservation.status != ReservationStatus.ACTIVE.value:
            raise HTTPException(status_code=400, detail=f"La reserva no está activa (estado: {reservation.status})")

        return await self.complete_sale(
            SaleCreate(
                motorcycle_id=reservation.motorcycle_id,
                client_id=reservation.client_id,
                current_account=financing
            ),
            current_user
        )

    async def get_sales(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        branch_id: Optional[str] = None,
        seller_id: Optional[int] = None
    ) -> SaleListResponse:
        motorcycles = self.repository.get_sales(start_date, end_date, branch_id, seller_id)
        sales = []
        for motorcycle in motorcycles:
            item = motorcycle_to_item(motorcycle)
            sales.append(SaleItem(
                **item.model_dump(),
                seller_name=motorcycle.seller.full_name if motorcycle.seller else None,
                profit=(
                    motorcycle.retail_price - motorcycle.cost_price
                    if motorcycle.cost_price is not None else None
                )
            ))
        return SaleListResponse(success=True, message=f"{len(sales)} ventas", sales=sales, total=len(sales))
