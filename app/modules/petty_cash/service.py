# app/modules/petty_cash/service.py
import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional
from fastapi import HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.config.settings import settings
from app.shared.database.models import PettyCashDeposit, PettyCashWithdrawal, PettyCashSpend
from app.shared.services.s3_service import S3Service, StorageError, timestamped_filename
from app.modules.configuration.security import SecurityService
from .repository import PettyCashRepository
from .schemas import (
    DepositStatus, WithdrawalStatus, MovementType,
    DepositCreate, WithdrawalCreate, SpendCreate, MovementUpdate,
    SpendItem, WithdrawalItem, DepositItem, DepositResponse, DepositListResponse,
    WithdrawalResponse, SpendResponse, MovementItem, MovementListResponse
)

logger = logging.getLogger(__name__)


class PettyCashService:
    """Caja chica: depósitos, retiros y rendición de gastos"""

    def __init__(self, db: Session, organization_id: int, storage: Optional[S3Service] = None):
        self.db = db
        self.organization_id = organization_id
        self.repository = PettyCashRepository(db, organization_id)
        self.storage = storage or S3Service()

    def _deposit_item(self, deposit: PettyCashDeposit) -> DepositItem:
        withdrawn = sum(w.amount_given for w in deposit.withdrawals)
        return DepositItem(
            id=deposit.id,
            branch_id=deposit.branch_id,
            description=deposit.description,
            amount=deposit.amount,
            date=deposit.date,
            reference=deposit.reference,
            status=deposit.status,
            available=deposit.amount - withdrawn,
            withdrawals=[WithdrawalItem.model_validate(w) for w in deposit.withdrawals],
            created_at=deposit.created_at
        )

    def _get_deposit(self, deposit_id: int) -> PettyCashDeposit:
        deposit = self.repository.get(deposit_id)
        if not deposit:
            raise HTTPException(status_code=404, detail="Depósito no encontrado")
        return deposit

    def _get_withdrawal(self, withdrawal_id: int) -> PettyCashWithdrawal:
        withdrawal = self.repository.get_withdrawal(withdrawal_id)
        if not withdrawal:
            raise HTTPException(status_code=404, detail="Retiro no encontrado o no pertenece a la organización.")
        return withdrawal

    def _sync_deposit_status(self, deposit: PettyCashDeposit) -> None:
        """
        CLOSED mientras lo retirado cubra el monto del depósito, OPEN si
        vuelve a quedar saldo (retiro eliminado o monto editado).
        """
        self.db.flush()
        withdrawn = self.repository.total_withdrawn(deposit.id)
        if deposit.status == DepositStatus.OPEN.value and withdrawn >= deposit.amount:
            deposit.status = DepositStatus.CLOSED.value
            logger.info(f"🔒 Depósito #{deposit.id} cerrado")
        elif deposit.status == DepositStatus.CLOSED.value and withdrawn < deposit.amount:
            deposit.status = DepositStatus.OPEN.value
            logger.info(f"🔓 Depósito #{deposit.id} reabierto")

    @staticmethod
    def _justification_status(withdrawal: PettyCashWithdrawal) -> str:
        if withdrawal.amount_justified == withdrawal.amount_given:
            return WithdrawalStatus.JUSTIFIED.value
        if withdrawal.amount_justified > 0:
            return WithdrawalStatus.PARTIALLY_JUSTIFIED.value
        return WithdrawalStatus.PENDING_JUSTIFICATION.value

    # =====================================================
    # DEPÓSITOS
    # =====================================================

    async def create_deposit(self, data: DepositCreate) -> DepositResponse:
        branch_id = int(data.branch_id) if data.branch_id else None
        if branch_id and not self.repository.get_branch(branch_id):
            raise HTTPException(status_code=400, detail="Sucursal no encontrada o no pertenece a tu organización.")

        deposit = self.repository.save(PettyCashDeposit(
            branch_id=branch_id,
            description=data.description,
            amount=data.amount,
            date=data.date,
            reference=data.reference,
            status=DepositStatus.OPEN.value
        ))
        logger.info(f"💵 Depósito de caja chica #{deposit.id}: {deposit.amount}")
        return DepositResponse(success=True, message="Depósito creado", deposit=self._deposit_item(deposit))

    async def get_deposits(self, branch_id: Optional[str] = None) -> DepositListResponse:
        deposits = self.repository.get_deposits(branch_id)
        return DepositListResponse(
            success=True,
            message=f"{len(deposits)} depósitos",
            deposits=[self._deposit_item(d) for d in deposits],
            total=len(deposits)
        )

    async def delete_deposit(self, deposit_id: int, otp_token: Optional[str]) -> DepositResponse:
        SecurityService(self.db, self.organization_id).ensure_operation_allowed(otp_token)

        deposit = self._get_deposit(deposit_id)
        if deposit.withdrawals:
            raise HTTPException(status_code=400, detail="No se puede eliminar un depósito con retiros asociados")

        item = self._deposit_item(deposit)
        self.repository.delete(deposit)
        logger.info(f"🗑️ Depósito #{deposit_id} eliminado")
        return DepositResponse(success=True, message="Depósito eliminado", deposit=item)

    # =====================================================
    # RETIROS
    # =====================================================

    async def create_withdrawal(self, data: WithdrawalCreate) -> WithdrawalResponse:
        if data.deposit_id:
            deposit = self._get_deposit(data.deposit_id)
        else:
            deposit = self.repository.get_latest_open_deposit()
            if not deposit:
                raise HTTPException(status_code=400, detail="No hay depósitos abiertos")

        if deposit.status != DepositStatus.OPEN.value:
            raise HTTPException(status_code=400, detail="El depósito no está abierto")

        available = deposit.amount - self.repository.total_withdrawn(deposit.id)
        if data.amount_given > available:
            raise HTTPException(
                status_code=400,
                detail=f"Fondos insuficientes en el depósito. Disponible: {available}. Solicitado: {data.amount_given}"
            )

        withdrawal = PettyCashWithdrawal(
            deposit_id=deposit.id,
            user_id=data.user_id,
            user_name=data.user_name,
            amount_given=data.amount_given,
            amount_justified=Decimal(0),
            date=data.date,
            status=WithdrawalStatus.PENDING_JUSTIFICATION.value
        )
        self.repository.add(withdrawal)
        self._sync_deposit_status(deposit)

        self.db.commit()
        self.db.refresh(withdrawal)
        logger.info(f"💸 Retiro #{withdrawal.id} de {withdrawal.amount_given} para {withdrawal.user_name}")
        return WithdrawalResponse(success=True, message="Retiro registrado", withdrawal=WithdrawalItem.model_validate(withdrawal))

    async def delete_withdrawal(self, withdrawal_id: int, otp_token: Optional[str]) -> WithdrawalResponse:
        SecurityService(self.db, self.organization_id).ensure_operation_allowed(otp_token)

        withdrawal = self._get_withdrawal(withdrawal_id)
        if withdrawal.spends:
            raise HTTPException(status_code=400, detail="No se puede eliminar un retiro con gastos asociados")

        item = WithdrawalItem.model_validate(withdrawal)
        deposit = withdrawal.deposit
        self.db.delete(withdrawal)
        self._sync_deposit_status(deposit)
        self.db.commit()

        logger.info(f"🗑️ Retiro #{withdrawal_id} eliminado")
        return WithdrawalResponse(success=True, message="Retiro eliminado", withdrawal=item)

    # =====================================================
    # GASTOS
    # =====================================================

    async def _upload_ticket(self, ticket: UploadFile, withdrawal_id: int) -> str:
        if ticket.content_type not in settings.allowed_ticket_formats:
            raise HTTPException(status_code=400, detail="Tipo de archivo no soportado. Solo se permiten JPG, PNG o PDF.")

        content = await ticket.read()
        if len(content) > settings.max_upload_size:
            raise HTTPException(
                status_code=400,
                detail=f"El archivo no debe superar {settings.max_upload_size // (1024*1024)}MB"
            )

        key = (
            f"uploads/tickets/petty-cash/{self.organization_id}/{withdrawal_id}/"
            f"{timestamped_filename(ticket.filename)}"
        )
        try:
            return self.storage.upload_bytes(content, key, ticket.content_type)["url"]
        except StorageError as e:
            raise HTTPException(status_code=502, detail=f"Error al subir el comprobante: {str(e)}")

    async def create_spend(self, data: SpendCreate, ticket: Optional[UploadFile] = None) -> SpendResponse:
        """
        Rendir un gasto contra un retiro.

        El retiro pasa a JUSTIFIED cuando lo rendido iguala lo entregado.
        """
        withdrawal = self._get_withdrawal(data.withdrawal_id)
        if withdrawal.status == WithdrawalStatus.JUSTIFIED.value:
            raise HTTPException(status_code=400, detail="Este retiro ya ha sido completamente justificado.")

        new_justified = withdrawal.amount_justified + data.amount
        if new_justified > withdrawal.amount_given:
            raise HTTPException(status_code=400, detail="El monto justificado excede el monto entregado en el retiro.")

        ticket_url = None
        if ticket and ticket.filename:
            ticket_url = await self._upload_ticket(ticket, withdrawal.id)

        spend = PettyCashSpend(
            withdrawal_id=withdrawal.id,
            motive=data.motive,
            description=data.description or (data.motive if data.motive != "otros" else "Otros"),
            amount=data.amount,
            date=data.date,
            ticket_number=data.ticket_number,
            ticket_url=ticket_url
        )
        self.repository.add(spend)

        withdrawal.amount_justified = new_justified
        withdrawal.status = self._justification_status(withdrawal)
        self._sync_deposit_status(withdrawal.deposit)

        self.db.commit()
        self.db.refresh(spend)
        logger.info(f"🧾 Gasto #{spend.id} rendido en retiro #{withdrawal.id} ({withdrawal.status})")
        return SpendResponse(success=True, message="Gasto registrado", spend=SpendItem.model_validate(spend))

    # =====================================================
    # MOVIMIENTOS
    # =====================================================

    async def get_movements(self, branch_id: Optional[str] = None) -> MovementListResponse:
        """Depósitos (DEBE) y gastos (HABER) ordenados del más reciente al más antiguo"""
        movements = [
            MovementItem(
                id=d.id,
                type=MovementType.DEBE,
                amount=d.amount,
                description=d.description,
                ticket_number=d.reference,
                created_at=d.created_at
            )
            for d in self.repository.get_deposits(branch_id)
        ]
        movements += [
            MovementItem(
                id=s.id,
                type=MovementType.HABER,
                amount=s.amount,
                description=s.description,
                ticket_number=s.ticket_number or s.motive,
                receipt_url=s.ticket_url,
                user_id=s.withdrawal.user_id,
                user_name=s.withdrawal.user_name,
                created_at=s.created_at
            )
            for s in self.repository.get_spends(branch_id)
        ]
        movements.sort(key=lambda m: m.created_at, reverse=True)

        total_debe = sum(m.amount for m in movements if m.type == MovementType.DEBE)
        total_haber = sum(m.amount for m in movements if m.type == MovementType.HABER)
        return MovementListResponse(
            success=True,
            message=f"{len(movements)} movimientos",
            movements=movements,
            total_debe=total_debe,
            total_haber=total_haber,
            balance=total_debe - total_haber
        )

    async def get_activity_deposits(self, from_date: date, to_date: date,
                                    branch_id: Optional[str] = None) -> List[PettyCashDeposit]:
        """Depósitos del período para el PDF de actividad (hasta el final de `to_date`)"""
        if to_date < from_date:
            raise HTTPException(status_code=400, detail="La fecha hasta no puede ser anterior a la fecha desde")

        start = datetime.combine(from_date, time.min)
        end = datetime.combine(to_date, time.max)
        deposits = self.repository.get_deposits_between(start, end, branch_id)
        logger.info(f"🧾 Actividad de caja chica {from_date} a {to_date}: {len(deposits)} depósitos")
        return deposits

    async def update_movement(self, movement_id: int, data: MovementUpdate) -> MovementItem:
        if data.type == MovementType.DEBE:
            deposit = self._get_deposit(movement_id)
            if data.amount is not None:
                if data.amount < self.repository.total_withdrawn(deposit.id):
                    raise HTTPException(status_code=400, detail="El monto no puede ser menor a lo ya retirado")
                deposit.amount = data.amount
                self._sync_deposit_status(deposit)
            if data.description is not None:
                deposit.description = data.description
            if data.ticket_number is not None:
                deposit.reference = data.ticket_number
            self.db.commit()
            self.db.refresh(deposit)
            return MovementItem(
                id=deposit.id, type=MovementType.DEBE, amount=deposit.amount,
                description=deposit.description, ticket_number=deposit.reference,
                created_at=deposit.created_at
            )

        spend = self.repository.get_spend(movement_id)
        if not spend:
            raise HTTPException(status_code=404, detail="Gasto no encontrado")
        withdrawal = spend.withdrawal
        if data.amount is not None:
            new_justified = withdrawal.amount_justified - spend.amount + data.amount
            if new_justified > withdrawal.amount_given:
                raise HTTPException(status_code=400, detail="El monto justificado excede el monto entregado en el retiro.")
            withdrawal.amount_justified = new_justified
            withdrawal.status = self._justification_status(withdrawal)
            spend.amount = data.amount
            self._sync_deposit_status(withdrawal.deposit)
        if data.description is not None:
            spend.description = data.description
        if data.ticket_number is not None:
            spend.ticket_number = data.ticket_number
        if data.receipt_url is not None:
            spend.ticket_url = data.receipt_url
        self.db.commit()
        self.db.refresh(spend)
        return MovementItem(
            id=spend.id, type=MovementType.HABER, amount=spend.amount,
            description=spend.description, ticket_number=spend.ticket_number,
            receipt_url=spend.ticket_url, user_id=withdrawal.user_id,
            user_name=withdrawal.user_name, created_at=spend.created_at
        )
