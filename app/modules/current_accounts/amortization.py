# app/modules/current_accounts/amortization.py
"""
Cálculos de financiación en cuotas (sistema francés).

Los montos se redondean hacia arriba a unidades enteras en cada cuota e
interés, igual que en los planes que se entregan al cliente. Todo se opera
en Decimal; las tasas (columna Float) se convierten al entrar.
"""
import logging
import math
from dataclasses import dataclass, asdict
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

PERIODS_PER_YEAR = {
    "WEEKLY": 52,
    "BIWEEKLY": 26,
    "MONTHLY": 12,
    "QUARTERLY": 4,
    "ANNUALLY": 1,
}

PERIOD_DELTAS = {
    "WEEKLY": relativedelta(weeks=1),
    "BIWEEKLY": relativedelta(weeks=2),
    "MONTHLY": relativedelta(months=1),
    "QUARTERLY": relativedelta(months=3),
    "ANNUALLY": relativedelta(years=1),
}

MAX_SIMULATED_INSTALLMENTS = 100

Number = Union[Decimal, int, float, None]


def to_decimal(value: Number) -> Decimal:
    """Decimal desde columnas Float o valores de request (los float pasan por str)"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def ceil_amount(value: Decimal) -> Decimal:
    return Decimal(math.ceil(value))


@dataclass
class ScheduleEntry:
    installment_number: int
    capital_at_period_start: Decimal
    interest_for_period: Decimal
    amortization: Decimal
    calculated_installment_amount: Decimal
    capital_at_period_end: Decimal

    def to_dict(self):
        return asdict(self)


def get_periods_per_year(frequency: str) -> int:
    periods = PERIODS_PER_YEAR.get(frequency)
    if periods is None:
        logger.warning(f"⚠️ Frecuencia desconocida '{frequency}', se usa mensual")
        return 12
    return periods


def periodic_rate(annual_rate_percent: Number, frequency: str) -> Decimal:
    """Tasa efectiva del período equivalente a la TNA"""
    annual = to_decimal(annual_rate_percent)
    if annual <= 0:
        return Decimal(0)
    return (1 + annual / 100) ** (Decimal(1) / get_periods_per_year(frequency)) - 1


def simple_periodic_rate(annual_rate_percent: Number, frequency: str) -> Decimal:
    """TNA proporcional al período (usada al imputar pagos)"""
    return to_decimal(annual_rate_percent) / 100 / get_periods_per_year(frequency)


def add_periods(start: date, frequency: str, count: int) -> date:
    delta = PERIOD_DELTAS.get(frequency, PERIOD_DELTAS["MONTHLY"])
    return start + delta * count


def installment_due_date(start: date, frequency: str, number: int, total_installments: int) -> date:
    """La cuota k vence en start + k períodos; un plan de una sola cuota vence en start"""
    if total_installments == 1:
        return start
    return add_periods(start, frequency, number)


def calculate_payment_dates(start: date, number_of_installments: int, frequency: str) -> Tuple[Optional[date], Optional[date]]:
    """(vencimiento de la primera cuota, vencimiento de la última)"""
    if number_of_installments <= 0:
        return None, None
    return (
        installment_due_date(start, frequency, 1, number_of_installments),
        installment_due_date(start, frequency, number_of_installments, number_of_installments)
    )


def calculate_next_due_date(start: date, frequency: str, paid_count: int, total_installments: int) -> Optional[date]:
    """Vencimiento de la cuota siguiente a las `paid_count` ya cubiertas"""
    if paid_count >= total_installments:
        return None
    return installment_due_date(start, frequency, paid_count + 1, total_installments)


def calculate_new_installment(
    remaining_amount: Number,
    annual_rate_percent: Number,
    remaining_installments: int,
    frequency: str
) -> Decimal:
    """Cuota fija para amortizar el saldo en las cuotas restantes"""
    remaining = to_decimal(remaining_amount)
    if remaining <= 0 or remaining_installments <= 0:
        return Decimal(0)
    rate = periodic_rate(annual_rate_percent, frequency)
    if rate == 0:
        return ceil_amount(remaining / remaining_installments)
    factor = (1 + rate) ** remaining_installments
    return ceil_amount(remaining * rate * factor / (factor - 1))


def french_schedule(
    principal: Number,
    annual_rate_percent: Number,
    number_of_installments: int,
    frequency: str
) -> List[ScheduleEntry]:
    """
    Plan de amortización francés.

    La última cuota amortiza todo el capital pendiente, por lo que su monto
    puede diferir de la cuota fija.
    """
    capital = to_decimal(principal)
    if capital <= 0 or number_of_installments <= 0 or to_decimal(annual_rate_percent) < 0:
        return []

    rate = periodic_rate(annual_rate_percent, frequency)
    schedule = []

    if rate == 0:
        installment = ceil_amount(capital / number_of_installments)
        for number in range(1, number_of_installments + 1):
            amortization = capital if number == number_of_installments else installment
            capital_end = max(Decimal(0), capital - amortization)
            schedule.append(ScheduleEntry(
                installment_number=number,
                capital_at_period_start=capital,
                interest_for_period=Decimal(0),
                amortization=amortization,
                calculated_installment_amount=amortization,
                capital_at_period_end=capital_end
            ))
            capital = capital_end
        return schedule

    fixed_installment = calculate_new_installment(capital, annual_rate_percent, number_of_installments, frequency)

    for number in range(1, number_of_installments + 1):
        interest = ceil_amount(capital * rate)
        amortization = fixed_installment - interest
        installment = fixed_installment

        if number == number_of_installments:
            amortization = capital
            installment = ceil_amount(capital + interest)

        amortization = max(Decimal(0), min(amortization, capital))
        capital_end = max(Decimal(0), capital - amortization)
        schedule.append(ScheduleEntry(
            installment_number=number,
            capital_at_period_start=capital,
            interest_for_period=interest,
            amortization=amortization,
            calculated_installment_amount=installment,
            capital_at_period_end=capital_end
        ))
        capital = capital_end

    return schedule


def simulate_payoff(balance: Number, installment_amount: Number, rate: Number) -> Tuple[int, Decimal]:
    """
    Cuántas cuotas de monto fijo hacen falta para cancelar el saldo.

    Devuelve (cantidad de cuotas, monto de la última cuota). El monto es 0
    si se alcanzó el tope de iteraciones sin cancelar.
    """
    balance = to_decimal(balance)
    installment_amount = to_decimal(installment_amount)
    rate = to_decimal(rate)
    count = 0
    last_amount = Decimal(0)
    while balance > 0:
        interest = ceil_amount(balance * rate)
        amortization = min(balance, installment_amount - interest)
        if amortization < balance:
            balance -= amortization
        else:
            last_amount = amortization + interest
            balance = Decimal(0)
        count += 1
        if count > MAX_SIMULATED_INSTALLMENTS:
            break
    return count, last_amount
