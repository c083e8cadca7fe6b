# app/modules/petty_cash/router.py
from fastapi import APIRouter, Depends, Form, File, Header, HTTPException, Query, UploadFile
from fastapi.responses import StreamingResponse
from io import BytesIO
from pydantic import ValidationError
from sqlalchemy.orm import Session
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from app.config.database import get_db
from app.shared.database.models import Organization
from app.core.auth.dependencies import (
    require_roles, get_current_organization_id, CASH_ROLES, ALL_ROLES
)
from .service import PettyCashService
from .pdf import build_movements_pdf, movements_filename
from .schemas import (
    DepositCreate, WithdrawalCreate, SpendCreate, MovementUpdate,
    DepositResponse, DepositListResponse, WithdrawalResponse, SpendResponse,
    MovementItem, MovementListResponse
)

router = APIRouter()


# ==================== DEPÓSITOS ====================

@router.get("/deposits", response_model=DepositListResponse)
async def get_deposits(
    branch_id: Optional[str] = Query(None, description="ID de sucursal o '__general__'"),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Depósitos con sus retiros y gastos rendidos"""
    service = PettyCashService(db, organization_id)
    return await service.get_deposits(branch_id)


@router.post("/deposits", response_model=DepositResponse, status_code=201)
async def create_deposit(
    data: DepositCreate,
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PettyCashService(db, organization_id)
    return await service.create_deposit(data)


@router.delete("/deposits/{deposit_id}", response_model=DepositResponse)
async def delete_deposit(
    deposit_id: int,
    otp_token: Optional[str] = Header(None, alias="X-OTP-Token"),
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Eliminar depósito sin retiros

    Con modo seguro activo requiere el código OTP en el header `X-OTP-Token`.
    """
    service = PettyCashService(db, organization_id)
    return await service.delete_deposit(deposit_id, otp_token)


# ==================== RETIROS ====================

@router.post("/withdrawals", response_model=WithdrawalResponse, status_code=201)
async def create_withdrawal(
    data: WithdrawalCreate,
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PettyCashService(db, organization_id)
    return await service.create_withdrawal(data)


@router.delete("/withdrawals/{withdrawal_id}", response_model=WithdrawalResponse)
async def delete_withdrawal(
    withdrawal_id: int,
    otp_token: Optional[str] = Header(None, alias="X-OTP-Token"),
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PettyCashService(db, organization_id)
    return await service.delete_withdrawal(withdrawal_id, otp_token)


# ==================== GASTOS ====================

@router.post("/spends", response_model=SpendResponse, status_code=201)
async def create_spend(
    withdrawal_id: int = Form(...),
    motive: str = Form(..., description="Motivo del gasto"),
    amount: Decimal = Form(..., gt=0),
    date: datetime = Form(...),
    description: Optional[str] = Form(None),
    ticket_number: Optional[str] = Form(None),
    ticket: Optional[UploadFile] = File(None, description="Comprobante JPG, PNG o PDF"),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Rendir gasto de un retiro

    - Form data con los datos del gasto
    - UploadFile opcional con el comprobante (se sube a S3)
    """
    try:
        spend_request = SpendCreate(
            withdrawal_id=withdrawal_id,
            motive=motive,
            description=description,
            amount=amount,
            date=date,
            ticket_number=ticket_number
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.errors()[0]["msg"])

    service = PettyCashService(db, organization_id)
    return await service.create_spend(spend_request, ticket)


# ==================== MOVIMIENTOS ====================

@router.get("/movements", response_model=MovementListResponse)
async def get_movements(
    branch_id: Optional[str] = Query(None, description="ID de sucursal o '__general__'"),
    current_user = Depends(require_roles(ALL_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    service = PettyCashService(db, organization_id)
    return await service.get_movements(branch_id)


@router.get("/movements/pdf")
async def get_movements_pdf(
    from_date: date = Query(..., description="Fecha desde (YYYY-MM-DD)"),
    to_date: date = Query(..., description="Fecha hasta (YYYY-MM-DD), incluida completa"),
    branch_id: Optional[str] = Query(None, description="ID de sucursal o '__general__'"),
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """PDF de actividad: depósitos del período con sus retiros y gastos"""
    service = PettyCashService(db, organization_id)
    deposits = await service.get_activity_deposits(from_date, to_date, branch_id)
    organization = db.get(Organization, organization_id)

    try:
        content = build_movements_pdf(deposits, from_date, to_date, organization.name if organization else "")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error generando PDF: {str(e)}")

    filename = movements_filename(from_date, to_date, empty=not deposits)
    return StreamingResponse(
        BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.put("/movements/{movement_id}", response_model=MovementItem)
async def update_movement(
    movement_id: int,
    data: MovementUpdate,
    current_user = Depends(require_roles(CASH_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Editar un movimiento: DEBE (depósito) o HABER (gasto)"""
    service = PettyCashService(db, organization_id)
    return await service.update_movement(movement_id, data)


@router.get("/health")
async def petty_cash_health():
    return {
        "service": "petty_cash",
        "status": "healthy",
        "version": "1.0.0",
        "features": [
            "Depósitos por sucursal",
            "Retiros con control de fondos",
            "Rendición de gastos con comprobante en S3",
            "Borrado protegido con OTP"
        ]
    }
