# app/modules/reports/service.py
import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional
from sqlalchemy.orm import Session

from app.shared.database.models import Payment
from .repository import ReportsRepository
from .schemas import ReportKind, ReportFilters, ReportGroup, ReportResponse

logger = logging.getLogger(__name__)

NO_BRANCH = "Sin Sucursal"
UNKNOWN_SELLER = "Desconocido"
STOCK_STATES = {"STOCK", "PAUSADO", "RESERVADO", "PROCESANDO", "EN_TRANSITO"}
RESERVATION_STATUSES = ["active", "completed", "cancelled", "expired"]
CENTS = Decimal("0.01")

REPORT_TITLES = {
    ReportKind.SALES: "Reporte de Ventas",
    ReportKind.INVENTORY: "Reporte de Inventario",
    ReportKind.CURRENT_ACCOUNTS: "Reporte de Cuentas Corrientes",
    ReportKind.RESERVATIONS: "Reporte de Reservas",
    ReportKind.SUPPLIERS: "Reporte de Proveedores",
}


def add_amount(amounts: Dict[str, Decimal], currency: Optional[str], value: Optional[Decimal]) -> None:
    if value is None:
        return
    currency = currency or "ARS"
    amounts[currency] = amounts.get(currency, Decimal(0)) + value


class GroupAccumulator:
    """Acumula cantidad y montos por moneda bajo una clave"""

    def __init__(self):
        self._groups: "OrderedDict[str, ReportGroup]" = OrderedDict()

    def add(self, key: Any, label: str, currency: Optional[str] = None, amount: Optional[Decimal] = None) -> ReportGroup:
        key = str(key)
        group = self._groups.get(key)
        if group is None:
            group = ReportGroup(key=key, label=label)
            self._groups[key] = group
        group.count += 1
        add_amount(group.amounts, currency, amount)
        return group

    def ensure(self, key: str, label: str) -> None:
        if key not in self._groups:
            self._groups[key] = ReportGroup(key=key, label=label)

    def result(self, sort: bool = False) -> List[ReportGroup]:
        groups = list(self._groups.values())
        if sort:
            groups.sort(key=lambda g: g.key)
        return groups


def _month_key(value) -> Optional[str]:
    return value.strftime("%Y-%m") if value else None


def _branch_of(motorcycle):
    if motorcycle and motorcycle.branch:
        return motorcycle.branch.id, motorcycle.branch.name
    return "none", NO_BRANCH


def _motorcycle_label(motorcycle) -> str:
    if not motorcycle:
        return ""
    brand = motorcycle.brand.name if motorcycle.brand else ""
    model = motorcycle.model.name if motorcycle.model else ""
    return f"{brand} {model} ({motorcycle.year})".strip()


class ReportsService:
    """
    Reportes de gestión por organización.

    Todos los montos se informan agrupados por moneda: nunca se suman
    importes de monedas distintas.
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.repository = ReportsRepository(db, organization_id)

    async def generate(self, kind: ReportKind, filters: ReportFilters) -> ReportResponse:
        builders: Dict[ReportKind, Callable[[ReportFilters], Dict[str, Any]]] = {
            ReportKind.SALES: self.sales_report,
            ReportKind.INVENTORY: self.inventory_report,
            ReportKind.CURRENT_ACCOUNTS: self.current_accounts_report,
            ReportKind.RESERVATIONS: self.reservations_report,
            ReportKind.SUPPLIERS: self.suppliers_report,
        }
        data = builders[kind](filters)
        logger.info(f"📊 Reporte '{kind.value}' generado para organización {self.organization_id}")
        return ReportResponse(
            success=True,
            message=f"{REPORT_TITLES[kind]} generado",
            report_type=kind,
            title=REPORT_TITLES[kind],
            filters=filters,
            **data
        )

    # ==================== VENTAS ====================

    def sales_report(self, filters: ReportFilters) -> Dict[str, Any]:
        sales = self.repository.get_sold_motorcycles(
            filters.start_date, filters.end_date, filters.branch_id, filters.seller_id
        )

        revenue: Dict[str, Decimal] = {}
        profit: Dict[str, Decimal] = {}
        count_by_currency: Dict[str, int] = {}
        by_seller = GroupAccumulator()
        by_branch = GroupAccumulator()
        by_month = GroupAccumulator()
        details = []

        for sale in sales:
            currency = sale.currency or "ARS"
            sale_profit = sale.retail_price - sale.cost_price if sale.cost_price is not None else None

            add_amount(revenue, currency, sale.retail_price)
            add_amount(profit, currency, sale_profit)
            count_by_currency[currency] = count_by_currency.get(currency, 0) + 1

            seller_key = sale.seller_id or "unknown"
            seller_name = sale.seller.full_name if sale.seller else UNKNOWN_SELLER
            group = by_seller.add(seller_key, seller_name, currency, sale.retail_price)
            if sale_profit is not None:
                add_amount(group.extra.setdefault("profit", {}), currency, sale_profit)

            branch_key, branch_name = _branch_of(sale)
            by_branch.add(branch_key, branch_name, currency, sale.retail_price)

            month = _month_key(sale.sold_at)
            if month:
                by_month.add(month, month, currency, sale.retail_price)

            details.append({
                "fecha": sale.sold_at.strftime("%d/%m/%Y") if sale.sold_at else "",
                "moto": _motorcycle_label(sale),
                "chasis": sale.chassis_number,
                "vendedor": seller_name,
                "sucursal": branch_name,
                "moneda": currency,
                "precio": sale.retail_price,
                "ganancia": sale_profit,
            })

        average = {
            currency: (total / count_by_currency[currency]).quantize(CENTS)
            for currency, total in revenue.items()
        }

        return {
            "summary": {
                "total_sales": len(sales),
                "total_revenue": revenue,
                "total_profit": profit,
                "average_price": average,
            },
            "groups": {
                "by_seller": by_seller.result(),
                "by_branch": by_branch.result(),
                "by_month": by_month.result(sort=True),
            },
            "details": details,
        }

    # ==================== INVENTARIO ====================

    def inventory_report(self, filters: ReportFilters) -> Dict[str, Any]:
        motorcycles = self.repository.get_inventory(filters.branch_id, filters.status)

        by_state = GroupAccumulator()
        by_brand = GroupAccumulator()
        by_branch = GroupAccumulator()
        cost_value: Dict[str, Decimal] = {}
        retail_value: Dict[str, Decimal] = {}
        details = []

        for motorcycle in motorcycles:
            currency = motorcycle.currency or "ARS"
            in_stock = motorcycle.state in STOCK_STATES

            by_state.add(motorcycle.state, motorcycle.state, currency, motorcycle.retail_price)
            brand_name = motorcycle.brand.name if motorcycle.brand else "Sin Marca"
            by_brand.add(motorcycle.brand_id, brand_name, currency, motorcycle.retail_price)
            branch_key, branch_name = _branch_of(motorcycle)
            by_branch.add(branch_key, branch_name, currency, motorcycle.retail_price)

            if in_stock:
                add_amount(cost_value, currency, motorcycle.cost_price)
                add_amount(retail_value, currency, motorcycle.retail_price)
                details.append({
                    "moto": _motorcycle_label(motorcycle),
                    "chasis": motorcycle.chassis_number,
                    "estado": motorcycle.state,
                    "sucursal": branch_name,
                    "moneda": currency,
                    "costo": motorcycle.cost_price,
                    "precio": motorcycle.retail_price,
                })

        return {
            "summary": {
                "total": len(motorcycles),
                "in_stock": len(details),
                "sold": sum(1 for m in motorcycles if m.state == "VENDIDO"),
                "stock_cost_value": cost_value,
                "stock_retail_value": retail_value,
            },
            "groups": {
                "by_state": by_state.result(),
                "by_brand": by_brand.result(),
                "by_branch": by_branch.result(),
            },
            "details": details,
        }

    # ==================== CUENTAS CORRIENTES ====================

    @staticmethod
    def _valid_payments(payments: Iterable[Payment]) -> List[Payment]:
        """Pagos efectivamente cobrados (sin asientos D/H ni cuotas pendientes)"""
        return [p for p in payments if p.installment_version is None and p.payment_date is not None]

    def current_accounts_report(self, filters: ReportFilters) -> Dict[str, Any]:
        accounts = self.repository.get_current_accounts(
            filters.status, filters.branch_id, filters.start_date, filters.end_date
        )

        financed: Dict[str, Decimal] = {}
        paid: Dict[str, Decimal] = {}
        pending: Dict[str, Decimal] = {}
        by_status = GroupAccumulator()
        by_branch = GroupAccumulator()
        payments_by_month = GroupAccumulator()
        details = []

        for account in accounts:
            currency = account.currency or "ARS"
            payments = self._valid_payments(account.payments)
            paid_amount = sum((p.amount_paid for p in payments), Decimal(0))

            add_amount(financed, currency, account.total_amount)
            add_amount(paid, currency, paid_amount)
            add_amount(pending, currency, account.total_amount - paid_amount)

            by_status.add(account.status, account.status, currency, account.total_amount)
            branch_key, branch_name = _branch_of(account.motorcycle)
            by_branch.add(branch_key, branch_name, currency, account.total_amount)

            for payment in payments:
                month = _month_key(payment.payment_date)
                payments_by_month.add(month, month, currency, payment.amount_paid)

            details.append({
                "cuenta": account.id,
                "cliente": account.client.display_name if account.client else "",
                "moto": _motorcycle_label(account.motorcycle),
                "estado": account.status,
                "moneda": currency,
                "financiado": account.total_amount,
                "pagado": paid_amount,
                "saldo": account.remaining_amount,
            })

        return {
            "summary": {
                "total_accounts": len(accounts),
                "total_financed": financed,
                "total_paid": paid,
                "total_pending": pending,
            },
            "groups": {
                "by_status": by_status.result(),
                "by_branch": by_branch.result(),
                "payments_by_month": payments_by_month.result(sort=True),
            },
            "details": details,
        }

    # ==================== RESERVAS ====================

    def reservations_report(self, filters: ReportFilters) -> Dict[str, Any]:
        reservations = self.repository.get_reservations(
            filters.status, filters.branch_id, filters.start_date, filters.end_date
        )

        total_amount: Dict[str, Decimal] = {}
        by_status = GroupAccumulator()
        for status in RESERVATION_STATUSES:
            by_status.ensure(status, status)
        by_branch = GroupAccumulator()
        details = []

        for reservation in reservations:
            currency = reservation.currency or "ARS"
            add_amount(total_amount, currency, reservation.amount)
            by_status.add(reservation.status, reservation.status, currency, reservation.amount)

            branch_key, branch_name = _branch_of(reservation.motorcycle)
            group = by_branch.add(branch_key, branch_name, currency, reservation.amount)
            group.extra[reservation.status] = group.extra.get(reservation.status, 0) + 1

            details.append({
                "fecha": reservation.created_at.strftime("%d/%m/%Y") if reservation.created_at else "",
                "moto": _motorcycle_label(reservation.motorcycle),
                "cliente": reservation.client.display_name if reservation.client else "",
                "estado": reservation.status,
                "moneda": currency,
                "monto": reservation.amount,
            })

        counts = {g.key: g.count for g in by_status.result()}
        total = len(reservations)
        completed = counts.get("completed", 0)

        return {
            "summary": {
                "total_reservations": total,
                "active_reservations": counts.get("active", 0),
                "completed_reservations": completed,
                "cancelled_reservations": counts.get("cancelled", 0),
                "expired_reservations": counts.get("expired", 0),
                "total_amount": total_amount,
                "conversion_rate": round(completed / total * 100, 2) if total else 0,
            },
            "groups": {
                "by_status": by_status.result(),
                "by_branch": by_branch.result(),
            },
            "details": details,
        }

    # ==================== PROVEEDORES ====================

    def suppliers_report(self, filters: ReportFilters) -> Dict[str, Any]:
        suppliers = self.repository.get_suppliers(filters.status)
        motorcycles = self.repository.get_supplied_motorcycles(filters.start_date, filters.end_date)

        purchases_by_supplier: Dict[int, Dict[str, Decimal]] = {}
        count_by_supplier: Dict[int, int] = {}
        for motorcycle in motorcycles:
            count_by_supplier[motorcycle.supplier_id] = count_by_supplier.get(motorcycle.supplier_id, 0) + 1
            add_amount(
                purchases_by_supplier.setdefault(motorcycle.supplier_id, {}),
                motorcycle.currency, motorcycle.cost_price
            )

        total_purchases: Dict[str, Decimal] = {}
        by_status = GroupAccumulator()
        by_vat = GroupAccumulator()
        by_currency = GroupAccumulator()
        details = []

        for supplier in suppliers:
            purchases = purchases_by_supplier.get(supplier.id, {})
            for currency, amount in purchases.items():
                add_amount(total_purchases, currency, amount)

            by_status.add(supplier.status, supplier.status)
            by_vat.add(supplier.vat_condition, supplier.vat_condition)
            by_currency.add(supplier.payment_currency, supplier.payment_currency)

            details.append({
                "proveedor": supplier.commercial_name or supplier.legal_name,
                "cuit": supplier.tax_identification,
                "estado": supplier.status,
                "condicion_iva": supplier.vat_condition,
                "motos": count_by_supplier.get(supplier.id, 0),
                "compras": purchases,
            })

        return {
            "summary": {
                "total_suppliers": len(suppliers),
                "active_suppliers": sum(1 for s in suppliers if s.status == "activo"),
                "inactive_suppliers": sum(1 for s in suppliers if s.status == "inactivo"),
                "total_purchases": total_purchases,
            },
            "groups": {
                "by_status": by_status.result(),
                "by_vat_condition": by_vat.result(),
                "by_payment_currency": by_currency.result(),
            },
            "details": details,
        }
