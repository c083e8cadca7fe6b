# app/modules/current_accounts/service.py
import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.shared.database.models import CurrentAccount, Payment, Motorcycle, Client
from .amortization import (
    french_schedule, calculate_new_installment, calculate_payment_dates,
    calculate_next_due_date, installment_due_date, add_periods, periodic_rate,
    simple_periodic_rate, simulate_payoff, ceil_amount
)
from .repository import CurrentAccountsRepository
from .schemas import (
    AccountStatus, SurplusAction, FinancingTerms, CurrentAccountCreate, CurrentAccountUpdate,
    RecordPaymentRequest, SimplePaymentRequest,
    PaymentItem, CurrentAccountItem, CurrentAccountDetail, CurrentAccountResponse,
    CurrentAccountListResponse, ScheduleEntryItem, ScheduleResponse, PaymentOperationResponse
)

logger = logging.getLogger(__name__)

INSTALLMENT_TOLERANCE = Decimal("0.01")
SURPLUS_TOLERANCE = 1
LAST_INSTALLMENT_TAG = "[INFO_ULTIMA_CUOTA]"


def account_to_item(account: CurrentAccount, with_payments: bool = False):
    motorcycle = account.motorcycle
    paid = [
        p for p in account.payments
        if p.installment_version is None and not p.is_down_payment and p.payment_date is not None
    ]
    values = dict(
        id=account.id,
        motorcycle_id=account.motorcycle_id,
        motorcycle_label=(
            f"{motorcycle.brand.name} {motorcycle.model.name} {motorcycle.year}"
            if motorcycle and motorcycle.brand and motorcycle.model else None
        ),
        chassis_number=motorcycle.chassis_number if motorcycle else None,
        client_id=account.client_id,
        client_name=account.client.display_name if account.client else None,
        branch_id=motorcycle.branch_id if motorcycle else None,
        branch_name=motorcycle.branch.name if motorcycle and motorcycle.branch else None,
        total_amount=account.total_amount,
        down_payment=account.down_payment,
        remaining_amount=account.remaining_amount,
        number_of_installments=account.number_of_installments,
        installment_amount=account.installment_amount,
        payment_frequency=account.payment_frequency,
        interest_rate=account.interest_rate or 0,
        currency=account.currency,
        start_date=account.start_date,
        next_due_date=account.next_due_date,
        end_date=account.end_date,
        reminder_lead_time_days=account.reminder_lead_time_days,
        status=account.status,
        notes=account.notes,
        paid_installments=len(paid),
        created_at=account.created_at
    )
    if with_payments:
        return CurrentAccountDetail(
            **values,
            payments=[PaymentItem.model_validate(p) for p in account.payments]
        )
    return CurrentAccountItem(**values)


class CurrentAccountsService:
    """Cuentas corrientes: financiación en cuotas y registro de pagos"""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = CurrentAccountsRepository(db, organization_id)

    def get_or_404(self, account_id: int) -> CurrentAccount:
        account = self.repository.get(account_id)
        if not account:
            raise HTTPException(status_code=404, detail="Cuenta corriente no encontrada")
        return account

    def _response(self, account: CurrentAccount, message: str) -> CurrentAccountResponse:
        self.db.refresh(account)
        return CurrentAccountResponse(success=True, message=message, account=account_to_item(account, True))

    # =====================================================
    # ALTA
    # =====================================================

    def build_account(self, motorcycle: Motorcycle, client: Client, terms: FinancingTerms) -> CurrentAccount:
        """
        Crear la cuenta sin confirmar la transacción.

        La venta la usa para registrar moto vendida y financiación juntas.
        """
        if terms.down_payment > terms.total_amount:
            raise HTTPException(status_code=400, detail="El pago inicial no puede ser mayor que el monto total.")

        if self.repository.get_by_motorcycle(motorcycle.id):
            raise HTTPException(status_code=400, detail="La motocicleta ya tiene una cuenta corriente asociada.")

        remaining = terms.total_amount - terms.down_payment
        expected = terms.number_of_installments * terms.installment_amount
        if abs(remaining - expected) > INSTALLMENT_TOLERANCE:
            logger.warning(
                f"⚠️ Saldo {remaining} no coincide con cuotas ({terms.number_of_installments} x "
                f"{terms.installment_amount} = {expected}); puede incluir intereses"
            )

        next_due_date, end_date = calculate_payment_dates(
            terms.start_date, terms.number_of_installments, terms.payment_frequency.value
        )

        account = CurrentAccount(
            motorcycle_id=motorcycle.id,
            client_id=client.id,
            total_amount=terms.total_amount,
            down_payment=terms.down_payment,
            remaining_amount=remaining,
            number_of_installments=terms.number_of_installments,
            installment_amount=terms.installment_amount,
            payment_frequency=terms.payment_frequency.value,
            interest_rate=terms.interest_rate,
            currency=terms.currency,
            start_date=terms.start_date,
            next_due_date=next_due_date,
            end_date=end_date,
            reminder_lead_time_days=terms.reminder_lead_time_days,
            status=AccountStatus.ACTIVE.value,
            notes=terms.notes
        )
        self.repository.add(account)
        return account

    async def create_account(self, data: CurrentAccountCreate) -> CurrentAccountResponse:
        motorcycle = self.repository.get_motorcycle(data.motorcycle_id)
        if not motorcycle:
            raise HTTPException(status_code=404, detail="La motocicleta especificada no existe.")
        client = self.repository.get_client(data.client_id)
        if not client:
            raise HTTPException(status_code=404, detail="El cliente especificado no existe.")

        account = self.build_account(motorcycle, client, data)
        self.db.commit()
        logger.info(f"💳 Cuenta corriente creada #{account.id} para moto #{motorcycle.id}")
        return self._response(account, "Cuenta corriente creada")

    # =====================================================
    # CONSULTAS
    # =====================================================

    async def get_accounts(self, status: Optional[str] = None, branch_id: Optional[str] = None) -> CurrentAccountListResponse:
        accounts = self.repository.search(status=status, branch_id=branch_id)
        return CurrentAccountListResponse(
            success=True,
            message=f"{len(accounts)} cuentas corrientes",
            accounts=[account_to_item(a) for a in accounts],
            total=len(accounts)
        )

    async def get_account(self, account_id: int) -> CurrentAccountResponse:
        account = self.get_or_404(account_id)
        return CurrentAccountResponse(success=True, message="Cuenta corriente obtenida", account=account_to_item(account, True))

    async def get_schedule(self, account_id: int) -> ScheduleResponse:
        account = self.get_or_404(account_id)
        principal = account.total_amount - account.down_payment
        schedule = french_schedule(
            principal, account.interest_rate or 0, account.number_of_installments, account.payment_frequency
        )
        entries = []
        for entry in schedule:
            due_date = installment_due_date(
                account.start_date, account.payment_frequency,
                entry.installment_number, account.number_of_installments
            )
            entries.append(ScheduleEntryItem(**entry.to_dict(), due_date=due_date))

        return ScheduleResponse(
            success=True,
            message=f"Plan de {len(entries)} cuotas",
            account_id=account.id,
            principal=principal,
            periodic_rate=float(periodic_rate(account.interest_rate or 0, account.payment_frequency)),
            schedule=entries
        )

    async def update_account(self, account_id: int, data: CurrentAccountUpdate) -> CurrentAccountResponse:
        account = self.get_or_404(account_id)
        values = data.dict(exclude_unset=True)
        if values.get("status"):
            values["status"] = values["status"].value
        for field, value in values.items():
            setattr(account, field, value)
        self.db.commit()
        return self._response(account, "Cuenta corriente actualizada")

    # =====================================================
    # PAGOS
    # =====================================================

    async def record_payment(self, account_id: int, data: RecordPaymentRequest) -> PaymentOperationResponse:
        """
        Registrar el pago de una cuota.

        El capital de referencia sale del plan francés original; el interés
        de la cuota se calcula con la tasa proporcional del período. Si se
        paga más que la cuota, el excedente recalcula la cuota o reduce la
        cantidad de cuotas según `surplus_action`.
        """
        account = self.get_or_404(account_id)
        frequency = account.payment_frequency
        rate_percent = account.interest_rate or 0

        original_plan = french_schedule(
            account.total_amount - account.down_payment, rate_percent,
            account.number_of_installments, frequency
        )

        if data.installment_number is not None:
            paid_count = data.installment_number - 1
        else:
            paid_count = self.repository.count_valid_payments(account.id)
        installment_number = data.installment_number or paid_count + 1

        plan_entry = next((e for e in original_plan if e.installment_number == installment_number), None)
        principal_before = plan_entry.capital_at_period_start if plan_entry else account.remaining_amount

        rate = simple_periodic_rate(rate_percent, frequency)
        interest = ceil_amount(principal_before * rate)
        amortization = max(Decimal(0), data.amount_paid - interest)
        new_balance = max(Decimal(0), principal_before - amortization)

        payment = Payment(
            current_account_id=account.id,
            amount_paid=data.amount_paid,
            payment_date=data.payment_date or datetime.now(),
            payment_method=data.payment_method,
            transaction_reference=data.transaction_reference,
            notes=data.notes,
            installment_number=installment_number
        )
        self.repository.add(payment)

        account.remaining_amount = new_balance
        account.next_due_date = None if new_balance <= 0 else calculate_next_due_date(
            account.start_date, frequency, paid_count + 1, account.number_of_installments
        )
        account.status = AccountStatus.PAID_OFF.value if new_balance <= 0 else AccountStatus.ACTIVE.value

        reference_installment = plan_entry.calculated_installment_amount if plan_entry else account.installment_amount
        if data.amount_paid > reference_installment + SURPLUS_TOLERANCE and new_balance > 0:
            if data.surplus_action == SurplusAction.REDUCE_INSTALLMENTS:
                count, last_amount = simulate_payoff(new_balance, account.installment_amount, rate)
                account.number_of_installments = paid_count + 1 + count
                if last_amount:
                    info = json.dumps({
                        "type": "LAST_INSTALLMENT_INFO",
                        "lastInstallmentAmount": float(last_amount),
                        "originalInstallmentAmount": float(account.installment_amount),
                        "difference": float(last_amount - account.installment_amount),
                        "calculatedAt": datetime.now().isoformat()
                    })
                    account.notes = f"{account.notes or ''}\n{LAST_INSTALLMENT_TAG} {info}"
            else:
                account.installment_amount = calculate_new_installment(
                    new_balance, rate_percent,
                    account.number_of_installments - (paid_count + 1), frequency
                )

        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"💰 Pago cuota {installment_number} cuenta #{account.id}: {data.amount_paid} (saldo {new_balance})")

        self.db.refresh(account)
        return PaymentOperationResponse(
            success=True,
            message="Pago registrado exitosamente.",
            account=account_to_item(account, True),
            payment=PaymentItem.model_validate(payment)
        )

    async def record_simple_payment(self, account_id: int, data: SimplePaymentRequest) -> PaymentOperationResponse:
        """Pago libre (o anticipo): descuenta el saldo sin imputar a una cuota"""
        account = self.get_or_404(account_id)
        if account.status == AccountStatus.PAID_OFF.value:
            raise HTTPException(status_code=400, detail="Esta cuenta corriente ya ha sido saldada.")

        new_remaining = account.remaining_amount - data.amount_paid
        if new_remaining <= 0:
            account.status = AccountStatus.PAID_OFF.value
            account.next_due_date = None
            new_remaining = Decimal(0)
        elif account.next_due_date and not data.is_down_payment:
            account.next_due_date = add_periods(account.next_due_date, account.payment_frequency, 1)
        account.remaining_amount = new_remaining

        payment = Payment(
            current_account_id=account.id,
            amount_paid=data.amount_paid,
            payment_date=data.payment_date or datetime.now(),
            payment_method=data.payment_method,
            transaction_reference=data.transaction_reference,
            notes=data.notes,
            is_down_payment=data.is_down_payment
        )
        self.repository.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        self.db.refresh(account)

        return PaymentOperationResponse(
            success=True,
            message="Pago registrado exitosamente.",
            account=account_to_item(account, True),
            payment=PaymentItem.model_validate(payment)
        )

    def _annul(self, payment: Payment, note: str) -> Payment:
        """Marcar el pago como D y registrar su contrapartida H"""
        payment.installment_version = "D"
        reversal = Payment(
            current_account_id=payment.current_account_id,
            amount_paid=payment.amount_paid,
            payment_date=payment.payment_date or datetime.now(),
            payment_method=payment.payment_method,
            transaction_reference=payment.transaction_reference,
            notes=note,
            installment_number=payment.installment_number,
            installment_version="H",
            is_down_payment=payment.is_down_payment
        )
        self.repository.add(reversal)

        account = payment.current_account
        account.remaining_amount = account.remaining_amount + payment.amount_paid
        if account.status == AccountStatus.PAID_OFF.value and account.remaining_amount > 0:
            account.status = AccountStatus.ACTIVE.value
        return reversal

    def _get_annullable_payment(self, payment_id: int) -> Payment:
        payment = self.repository.get_payment(payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail=f"Pago con ID {payment_id} no encontrado")
        if payment.installment_version in ("D", "H"):
            raise HTTPException(status_code=400, detail=f"El pago {payment_id} ya fue anulado (asientos D/H)")
        if not payment.current_account:
            raise HTTPException(status_code=400, detail=f"El pago {payment_id} no tiene cuenta corriente asociada")
        return payment

    async def undo_payment(self, payment_id: int) -> PaymentOperationResponse:
        payment = self._get_annullable_payment(payment_id)
        note = f"{payment.notes} (Anulación H)" if payment.notes else f"Asiento H por anulación de pago {payment.id}"

        try:
            reversal = self._annul(payment, note)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error anulando pago #{payment_id}")
            raise HTTPException(status_code=500, detail=f"Error anulando pago: {str(e)}")

        account = payment.current_account
        self.db.refresh(account)
        logger.info(f"↩️ Pago #{payment_id} anulado (D/H), saldo cuenta #{account.id}: {account.remaining_amount}")
        return PaymentOperationResponse(
            success=True,
            message=f"Anulación procesada para pago {payment_id} (Asientos D/H generados).",
            account=account_to_item(account, True),
            payment=PaymentItem.model_validate(reversal)
        )

    async def cancel_payment(self, payment_id: int) -> PaymentOperationResponse:
        """
        Anular el pago de una cuota y dejarla pendiente.

        Genera los asientos D/H, una cuota pendiente con el mismo número y
        recalcula el monto de cuota sobre las cuotas que quedan.
        """
        payment = self._get_annullable_payment(payment_id)
        if payment.installment_number is None:
            raise HTTPException(
                status_code=400,
                detail="El pago no está asociado a una cuota y no puede cancelarse de esta forma"
            )

        account = payment.current_account
        try:
            self._annul(payment, f"Anulación de pago ID: {payment.id}. Contrapartida contable.")
            pending = Payment(
                current_account_id=account.id,
                amount_paid=payment.amount_paid,
                payment_date=None,
                payment_method=None,
                notes=f"Cuota pendiente tras anulación de pago ID: {payment.id}.",
                installment_number=payment.installment_number
            )
            self.repository.add(pending)
            self.db.flush()

            valid_count = self.repository.count_valid_payments(account.id)
            remaining_installments = max(0, account.number_of_installments - valid_count)
            if remaining_installments > 0:
                account.installment_amount = calculate_new_installment(
                    account.remaining_amount, account.interest_rate or 0,
                    remaining_installments, account.payment_frequency
                )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error cancelando pago #{payment_id}")
            raise HTTPException(status_code=500, detail=f"Error cancelando pago: {str(e)}")

        self.db.refresh(pending)
        self.db.refresh(account)
        return PaymentOperationResponse(
            success=True,
            message=f"Pago {payment_id} (cuota {payment.installment_number}) cancelado. Monto de cuota recalculado.",
            account=account_to_item(account, True),
            payment=PaymentItem.model_validate(pending)
        )
