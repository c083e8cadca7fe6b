# app/modules/current_accounts/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.config.database import get_db
from app.core.auth.dependencies import (
    require_roles, get_current_organization_id, ADMIN_ROLES, CASH_ROLES, ALL_ROLES
)
from .service import CurrentAccountsService
from .schemas import (
    AccountStatus, CurrentAccountCreate, CurrentAccountUpdate, RecordPaymentRequest,
    SimplePaymentRequest, CurrentAccountResponse, CurrentAccountListResponse,
    ScheduleResponse, PaymentOperationResponse
)

router = APIRouter()


@router.get("/", response_model=CurrentAccountListResponse)
async def get_current_accounts(
    status: Optional[AccountStatus] = Query(None),
    branch_id: Optional[str] = Query(None, description="ID de sucursal o '__general__'"),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = CurrentAccountsService(db, organization_id)
    return await service.get_accounts(status.value if status else None, branch_id)


@router.post("/", response_model=CurrentAccountResponse, status_code=201)
async def create_current_account(
    data: CurrentAccountCreate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = CurrentAccountsService(db, organization_id)
    return await service.create_account(data)


@router.get("/health")
async def current_accounts_health():
    return {
        "service": "current_accounts",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Plan de amortización francés",
            "Pagos de cuotas con excedente",
            "Anulación contable D/H"
        ]
    }


@router.post("/payments/{payment_id}/undo", response_model=PaymentOperationResponse)
async def undo_payment(
    payment_id: int,
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Anular un pago con asientos D/H y devolver el monto al saldo"""
    service = CurrentAccountsService(db, organization_id)
    return await service.undo_payment(payment_id)


@router.post("/payments/{payment_id}/cancel", response_model=PaymentOperationResponse)
async def cancel_payment(
    payment_id: int,
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Anular el pago de una cuota, dejarla pendiente y recalcular la cuota"""
    service = CurrentAccountsService(db, organization_id)
    return await service.cancel_payment(payment_id)


@router.get("/{account_id}", response_model=CurrentAccountResponse)
async def get_current_account(
    account_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = CurrentAccountsService(db, organization_id)
    return await service.get_account(account_id)


@router.put("/{account_id}", response_model=CurrentAccountResponse)
async def update_current_account(
    account_id: int,
    data: CurrentAccountUpdate,
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = CurrentAccountsService(db, organization_id)
    return await service.update_account(account_id, data)


@router.get("/{account_id}/schedule", response_model=ScheduleResponse)
async def get_amortization_schedule(
    account_id: int,
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Plan de amortización (sistema francés) de la cuenta"""
    service = CurrentAccountsService(db, organization_id)
    return await service.get_schedule(account_id)


@router.post("/{account_id}/payments", response_model=PaymentOperationResponse, status_code=201)
async def record_payment(
    account_id: int,
    data: RecordPaymentRequest,
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Registrar pago de cuota

    - **installment_number**: si se omite, se toma la siguiente cuota impaga
    - **surplus_action**: RECALCULATE (nueva cuota) o REDUCE_INSTALLMENTS (menos cuotas)
    """
    service = CurrentAccountsService(db, organization_id)
    return await service.record_payment(account_id, data)


@router.post("/{account_id}/simple-payments", response_model=PaymentOperationResponse, status_code=201)
async def record_simple_payment(
    account_id: int,
    data: SimplePaymentRequest,
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = CurrentAccountsService(db, organization_id)
    return await service.record_simple_payment(account_id, data)
