# app/modules/petty_cash/pdf.py
"""
PDF de actividad de caja chica: cada depósito del período con sus retiros
y, por retiro, la tabla de gastos rendidos.
"""
from io import BytesIO
from datetime import date, datetime
from decimal import Decimal
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer

from app.modules.reports.pdf import HEADER_COLOR, build_table, format_money
from app.shared.database.models import PettyCashDeposit

WITHDRAWAL_STATUS_LABELS = {
    "PENDING_JUSTIFICATION": "Pendiente de Justificación",
    "PARTIALLY_JUSTIFIED": "Parcialmente Justificado",
    "JUSTIFIED": "Justificado",
    "NOT_CLOSED": "No Cerrado",
}

DEPOSIT_STATUS_LABELS = {
    "OPEN": "Abierto",
    "CLOSED": "Cerrado",
    "PENDING_FUNDING": "Pendiente de Fondos",
}


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name='ReportTitle',
        parent=styles['Title'],
        textColor=HEADER_COLOR,
        alignment=TA_CENTER
    ))
    styles.add(ParagraphStyle(name='Subtitle', parent=styles['Heading3'], alignment=TA_CENTER))
    return styles


def _date(value: datetime) -> str:
    return value.strftime('%d/%m/%Y') if value else "-"


def movements_filename(from_date: date, to_date: date, empty: bool) -> str:
    suffix = "_vacio" if empty else ""
    return f"reporte_actividad_caja_chica_{from_date.isoformat()}_a_{to_date.isoformat()}{suffix}.pdf"


def build_movements_pdf(deposits: List[PettyCashDeposit], from_date: date, to_date: date,
                        organization_name: str = "") -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=1.5 * cm,
        rightMargin=1.5 * cm,
        topMargin=1.5 * cm,
        bottomMargin=1.5 * cm,
        title="Reporte Caja Chica"
    )
    styles = _styles()

    story = [
        Paragraph("Reporte Caja Chica", styles['ReportTitle']),
        Paragraph("Movimientos de Depósitos y Retiros", styles['Subtitle']),
    ]
    if organization_name:
        story.append(Paragraph(escape(organization_name), styles['Heading3']))
    story.append(Paragraph(
        f"Período: {from_date.strftime('%d/%m/%Y')} al {to_date.strftime('%d/%m/%Y')} · "
        f"Generado el {datetime.now().strftime('%d/%m/%Y %H:%M')}",
        styles['Normal']
    ))
    story.append(Spacer(1, 0.5 * cm))

    if not deposits:
        story.append(Paragraph("Sin movimientos para el período seleccionado.", styles['Normal']))
        doc.build(story)
        return buffer.getvalue()

    withdrawals = [w for d in deposits for w in d.withdrawals]
    total_deposits = sum((d.amount for d in deposits), Decimal(0))
    total_withdrawals = sum((w.amount_given for w in withdrawals), Decimal(0))
    total_spends = sum((s.amount for w in withdrawals for s in w.spends), Decimal(0))

    story.append(Paragraph("Resumen", styles['Heading2']))
    story.append(build_table([
        ["Concepto", "Total"],
        ["Depósitos", format_money(total_deposits)],
        ["Retiros", format_money(total_withdrawals)],
        ["Gastos", format_money(total_spends)],
    ], col_widths=[8 * cm, 6 * cm]))

    for deposit in deposits:
        story.append(Spacer(1, 0.6 * cm))
        story.append(Paragraph(
            f"Depósito #{deposit.id} · {_date(deposit.date)} · $ {format_money(deposit.amount)} · "
            f"{DEPOSIT_STATUS_LABELS.get(deposit.status, deposit.status)}",
            styles['Heading2']
        ))
        if deposit.reference:
            story.append(Paragraph(f"Referencia: {escape(deposit.reference)}", styles['Normal']))
        story.append(Paragraph(f"Descripción: {escape(deposit.description)}", styles['Normal']))

        if not deposit.withdrawals:
            story.append(Paragraph("Sin retiros registrados para este depósito.", styles['Italic']))
            continue

        for withdrawal in deposit.withdrawals:
            story.append(Spacer(1, 0.3 * cm))
            story.append(Paragraph(
                f"Retiro de {escape(withdrawal.user_name)} · $ {format_money(withdrawal.amount_given)} · "
                f"{_date(withdrawal.date)} · "
                f"{WITHDRAWAL_STATUS_LABELS.get(withdrawal.status, withdrawal.status)} · "
                f"Justificado: $ {format_money(withdrawal.amount_justified)}",
                styles['Heading4']
            ))
            if not withdrawal.spends:
                story.append(Paragraph("Sin gastos registrados para este retiro.", styles['Italic']))
                continue

            rows = [["Fecha", "Motivo", "Descripción", "Monto"]]
            for spend in withdrawal.spends:
                rows.append([_date(spend.date), spend.motive, spend.description or "-", format_money(spend.amount)])
            story.append(build_table(rows, col_widths=[2.5 * cm, 4 * cm, 8 * cm, 3 * cm]))

    doc.build(story)
    return buffer.getvalue()
