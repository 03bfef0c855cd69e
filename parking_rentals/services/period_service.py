"""
Calcolo dei periodi di fatturazione e delle scadenze dei contratti.

Funzioni pure (nessun accesso al DB): lavorano su qualunque oggetto con gli
attributi di ``Contract`` (start_date, end_date, is_open_ended,
months_paid_count, is_settled, id).
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from parking_rentals.parsers.months_covered_parser import month_label
from parking_rentals.services.dto.month_set import MonthSet, YearMonth, month_range
from parking_rentals.services.exceptions import InvalidDate

PRINT_DATE_FORMAT = "%d/%m/%Y"


class DueStatus(str, Enum):
    SETTLED = "settled"
    EXPIRED = "expired"
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    UPCOMING = "upcoming"
    UNKNOWN = "unknown"


# Posizione nell'ordinamento per scadenza: attivi, poi sconosciuti,
# poi scaduti, infine i saldati
_SORT_RANK = {
    DueStatus.OVERDUE: 0,
    DueStatus.DUE_TODAY: 0,
    DueStatus.UPCOMING: 0,
    DueStatus.UNKNOWN: 1,
    DueStatus.EXPIRED: 2,
    DueStatus.SETTLED: 3,
}


@dataclass(frozen=True)
class BillingPeriod:
    month: YearMonth
    start: date
    end: date

    @property
    def label(self) -> str:
        return month_label(self.month)

    @property
    def period_text(self) -> str:
        return f"{self.start.strftime(PRINT_DATE_FORMAT)} - {self.end.strftime(PRINT_DATE_FORMAT)}"


def add_months(start: date, months: int) -> date:
    """Stesso giorno del mese ``months`` mesi dopo (limitato alla fine del mese)."""
    return start + relativedelta(months=months)


def months_between_inclusive(start: date, end: date) -> int:
    """Mesi di calendario da ``start`` a ``end`` inclusi, minimo 1."""
    diff = (end.year - start.year) * 12 + (end.month - start.month) + 1
    return max(1, diff)


def billing_interval(anchor_day: int, year: int, month: int) -> Tuple[date, date]:
    """
    Intervallo coperto dal pagamento di un mese.

    - start: giorno di ancoraggio nel mese richiesto (limitato alla sua lunghezza)
    - end: giorno prima dell'ancoraggio del mese successivo
    """
    if not 1 <= anchor_day <= 31:
        raise InvalidDate(f"Giorno di ancoraggio non valido: {anchor_day}")
    try:
        first_day = date(year, month, 1)
    except (TypeError, ValueError) as exc:
        raise InvalidDate(f"Mese non valido: {month}/{year}") from exc

    start = first_day + relativedelta(day=anchor_day)
    end = first_day + relativedelta(months=1, day=anchor_day) - timedelta(days=1)
    return start, end


def payment_periods(start_date: Optional[date], month_set: MonthSet) -> List[BillingPeriod]:
    """Periodi effettivi (date) per ogni mese dell'insieme, ancorati a ``start_date``."""
    if start_date is None:
        return []
    periods: List[BillingPeriod] = []
    for ym in month_set:
        start, end = billing_interval(start_date.day, ym.year, ym.month)
        periods.append(BillingPeriod(month=ym, start=start, end=end))
    return periods


def format_period_range_for_invoice(periods: List[BillingPeriod]) -> str:
    """``Từ 20/07/2025 tới 19/08/2026`` (primo inizio, ultima fine)."""
    if not periods:
        return ""
    first, last = periods[0], periods[-1]
    return (
        f"Từ {first.start.strftime(PRINT_DATE_FORMAT)} "
        f"tới {last.end.strftime(PRINT_DATE_FORMAT)}"
    )


def next_due_date(contract: Any) -> Optional[date]:
    """Data inizio + (mesi pagati + 1) mesi, mantenendo il giorno di ancoraggio."""
    start_date = _as_date(getattr(contract, "start_date", None))
    if start_date is None:
        return None
    months_paid = contract.months_paid_count or 0
    return add_months(start_date, months_paid + 1)


def due_status(contract: Any, today: date) -> DueStatus:
    """Classificazione della prossima scadenza (guida visualizzazione e ordinamento)."""
    if contract.is_settled:
        return DueStatus.SETTLED

    due = next_due_date(contract)
    if due is None:
        return DueStatus.UNKNOWN

    if not contract.is_open_ended:
        end_date = _as_date(getattr(contract, "end_date", None))
        if end_date is None:
            return DueStatus.UNKNOWN
        if due > end_date:
            return DueStatus.EXPIRED

    today = _as_date(today)

    if due < today:
        return DueStatus.OVERDUE
    if due == today:
        return DueStatus.DUE_TODAY
    return DueStatus.UPCOMING


def due_sort_key(contract: Any, today: date) -> Tuple[int, date, int]:
    status = due_status(contract, today)
    rank = _SORT_RANK[status]
    due = next_due_date(contract) if rank == 0 else None
    return rank, due or date.max, contract.id or 0


def sort_by_due(contracts: List[Any], today: date) -> List[Any]:
    return sorted(contracts, key=lambda c: due_sort_key(c, today))


def selectable_months(contract: Any, today: date) -> List[YearMonth]:
    """
    Mesi proposti nella selezione di un nuovo pagamento.

    - a termine: dal mese di inizio al mese di fine
    - aperto: dal più recente tra inizio contratto e gennaio dell'anno
      precedente, fino a dicembre dell'anno successivo
    """
    start_date = _as_date(getattr(contract, "start_date", None))
    if start_date is None:
        return []

    first = YearMonth.from_date(start_date)
    if contract.is_open_ended:
        first = max(first, YearMonth(today.year - 1, 1))
        last = YearMonth(today.year + 1, 12)
    else:
        end_date = _as_date(getattr(contract, "end_date", None))
        if end_date is None:
            return []
        last = YearMonth.from_date(end_date)
    return month_range(first, last)


def _as_date(value: Any) -> Optional[date]:
    """Solo la parte data (l'orario non conta nei confronti)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None
