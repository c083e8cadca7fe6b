# app/modules/reports/pdf.py
"""
Render de reportes a PDF con reportlab (platypus).

Estructura: título, fecha de generación, filtros aplicados, tabla de
resumen, una tabla por agrupación y la tabla de detalle.
"""
from io import BytesIO
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from .schemas import ReportResponse, ReportGroup

HEADER_COLOR = colors.HexColor('#1e3c72')
STRIPE_COLOR = colors.HexColor('#f0f4fa')

SUMMARY_LABELS = {
    "total_sales": "Ventas",
    "total_revenue": "Facturación",
    "total_profit": "Ganancia",
    "average_price": "Precio promedio",
    "total": "Total de unidades",
    "in_stock": "Unidades en stock",
    "sold": "Unidades vendidas",
    "stock_cost_value": "Valor de stock (costo)",
    "stock_retail_value": "Valor de stock (venta)",
    "total_accounts": "Cuentas",
    "total_financed": "Total financiado",
    "total_paid": "Total pagado",
    "total_pending": "Total pendiente",
    "total_reservations": "Reservas",
    "active_reservations": "Activas",
    "completed_reservations": "Completadas",
    "cancelled_reservations": "Canceladas",
    "expired_reservations": "Vencidas",
    "total_amount": "Monto total",
    "conversion_rate": "Tasa de conversión (%)",
    "total_suppliers": "Proveedores",
    "active_suppliers": "Activos",
    "inactive_suppliers": "Inactivos",
    "total_purchases": "Compras",
}

GROUP_LABELS = {
    "by_seller": "Por vendedor",
    "by_branch": "Por sucursal",
    "by_month": "Por mes",
    "by_state": "Por estado",
    "by_brand": "Por marca",
    "by_status": "Por estado",
    "payments_by_month": "Pagos por mes",
    "by_vat_condition": "Por condición de IVA",
    "by_payment_currency": "Por moneda de pago",
}


def format_money(value: Decimal) -> str:
    """1234.5 -> 1.234,50"""
    formatted = f"{value:,.2f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")


def format_value(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, dict):
        if not value:
            return "-"
        return " | ".join(f"{currency} {format_money(amount)}" for currency, amount in value.items())
    if isinstance(value, (Decimal, float)):
        return format_money(value)
    return str(value)


def build_table(rows: List[List[str]], col_widths=None) -> Table:
    table = Table(rows, colWidths=col_widths, repeatRows=1)
    style = [
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]
    for index in range(2, len(rows), 2):
        style.append(('BACKGROUND', (0, index), (-1, index), STRIPE_COLOR))
    table.setStyle(TableStyle(style))
    return table


def _group_rows(groups: List[ReportGroup]) -> List[List[str]]:
    rows = [["Grupo", "Cantidad", "Montos"]]
    for group in groups:
        rows.append([group.label, str(group.count), format_value(group.amounts)])
    return rows


def _detail_rows(details: List[Dict[str, Any]]) -> List[List[str]]:
    headers = list(details[0].keys())
    rows = [[header.replace("_", " ").capitalize() for header in headers]]
    for detail in details:
        rows.append([format_value(detail.get(header)) for header in headers])
    return rows


def build_report_pdf(report: ReportResponse, organization_name: str = "") -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=1.5 * cm,
        rightMargin=1.5 * cm,
        topMargin=1.5 * cm,
        bottomMargin=1.5 * cm,
        title=report.title
    )

    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name='ReportTitle',
        parent=styles['Title'],
        textColor=HEADER_COLOR,
        alignment=TA_CENTER
    ))

    story = [Paragraph(report.title, styles['ReportTitle'])]
    if organization_name:
        story.append(Paragraph(organization_name, styles['Heading3']))
    story.append(Paragraph(f"Generado el {datetime.now().strftime('%d/%m/%Y %H:%M')}", styles['Normal']))

    applied = {k: v for k, v in report.filters.model_dump().items() if v not in (None, "")}
    if applied:
        text = ", ".join(f"{k}: {v}" for k, v in applied.items())
        story.append(Paragraph(f"Filtros: {text}", styles['Normal']))
    story.append(Spacer(1, 0.5 * cm))

    story.append(Paragraph("Resumen", styles['Heading2']))
    summary_rows = [["Concepto", "Valor"]]
    for key, value in report.summary.items():
        summary_rows.append([SUMMARY_LABELS.get(key, key), format_value(value)])
    story.append(build_table(summary_rows, col_widths=[7 * cm, 12 * cm]))

    for name, groups in report.groups.items():
        if not groups:
            continue
        story.append(Spacer(1, 0.4 * cm))
        story.append(Paragraph(GROUP_LABELS.get(name, name), styles['Heading3']))
        story.append(build_table(_group_rows(groups), col_widths=[7 * cm, 3 * cm, 9 * cm]))

    story.append(Spacer(1, 0.5 * cm))
    story.append(Paragraph("Detalle", styles['Heading2']))
    if report.details:
        story.append(build_table(_detail_rows(report.details)))
    else:
        story.append(Paragraph("Sin registros para los filtros seleccionados.", styles['Normal']))

    doc.build(story)
    return buffer.getvalue()
