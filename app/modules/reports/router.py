# app/modules/reports/router.py
from datetime import date
from io import BytesIO
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.core.auth.dependencies import require_roles, get_current_organization_id, ADMIN_ROLES
from app.shared.database.models import Organization
from .service import ReportsService
from .schemas import ReportKind, ReportFilters, ReportResponse
from .pdf import build_report_pdf

router = APIRouter()


def get_report_filters(
    start_date: Optional[date] = Query(None, description="Fecha desde (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Fecha hasta (YYYY-MM-DD)"),
    branch_id: Optional[str] = Query(None, description="ID de sucursal o __general__"),
    status: Optional[str] = Query(None),
    seller_id: Optional[int] = Query(None)
) -> ReportFilters:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="La fecha desde no puede ser posterior a la fecha hasta")
    if status == "all":
        status = None
    if branch_id == "all":
        branch_id = None
    return ReportFilters(
        start_date=start_date, end_date=end_date, branch_id=branch_id,
        status=status, seller_id=seller_id
    )


@router.get("/health")
async def reports_health():
    return {
        "service": "reports",
        "status": "healthy",
        "version": "1.0.0",
        "reports": [kind.value for kind in ReportKind],
        "formats": ["json", "pdf"]
    }


@router.get("/{kind}", response_model=ReportResponse)
async def get_report(
    kind: ReportKind,
    filters: ReportFilters = Depends(get_report_filters),
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """
    Reporte en JSON

    **Tipos:** sales, inventory, current-accounts, reservations, suppliers.
    Los montos se agrupan por moneda.
    """
    service = ReportsService(db, organization_id)
    return await service.generate(kind, filters)


@router.get("/{kind}/pdf")
async def get_report_pdf(
    kind: ReportKind,
    filters: ReportFilters = Depends(get_report_filters),
    current_user = Depends(require_roles(ADMIN_ROLES)),
    organization_id: int = Depends(get_current_organization_id),
    db: Session = Depends(get_db)
):
    """Mismo reporte renderizado a PDF"""
    service = ReportsService(db, organization_id)
    report = await service.generate(kind, filters)
    organization = db.get(Organization, organization_id)

    try:
        content = build_report_pdf(report, organization.name if organization else "")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error generando PDF: {str(e)}")

    filename = f"reporte-{kind.value}-{date.today().isoformat()}.pdf"
    return StreamingResponse(
        BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
