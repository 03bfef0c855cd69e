"""
Servizi per la reportistica (riepilogo dashboard).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Optional

from parking_rentals.models.payment_record import (
    ENTRY_PAYMENT,
    METHOD_BANK_TRANSFER,
    METHOD_CASH,
    REFUND_PENDING,
)
from parking_rentals.services import settings_service
from parking_rentals.services.period_service import DueStatus, due_status, next_due_date
from parking_rentals.services.unit_of_work import UnitOfWork


@dataclass
class DashboardSummary:
    total_contracts: int = 0
    settled_contracts: int = 0
    contracts_with_debt: int = 0
    total_debt: int = 0
    total_revenue: int = 0
    revenue_cash: int = 0
    revenue_bank_transfer: int = 0
    revenue_this_month: int = 0
    revenue_this_year: int = 0
    pending_refunds_count: int = 0
    pending_refunds_amount: int = 0
    due_soon_count: int = 0
    due_status_counts: Dict[str, int] = field(default_factory=dict)


def get_dashboard_summary(today: Optional[date] = None) -> DashboardSummary:
    """
    Totali per la dashboard.

    Gli incassi sommano gli importi netti per data di pagamento (i rimborsi
    sottraggono); la ripartizione contanti/bonifico considera solo i
    pagamenti ordinari.
    """
    today = today or date.today()
    due_soon_limit = today + timedelta(days=settings_service.get_due_soon_days())
    summary = DashboardSummary(due_status_counts={s.value: 0 for s in DueStatus})

    with UnitOfWork() as uow:
        contracts = uow.contracts.list_ordered()
        payments = uow.payments.list_all_ordered()

    for contract in contracts:
        summary.total_contracts += 1
        if contract.is_settled:
            summary.settled_contracts += 1
        if (contract.amount_owed or 0) > 0:
            summary.contracts_with_debt += 1
            summary.total_debt += contract.amount_owed

        status = due_status(contract, today)
        summary.due_status_counts[status.value] += 1
        if status in (DueStatus.DUE_TODAY, DueStatus.UPCOMING):
            due = next_due_date(contract)
            if due is not None and due <= due_soon_limit:
                summary.due_soon_count += 1

    for payment in payments:
        amount = payment.amount_paid or 0
        summary.total_revenue += amount

        if payment.entry_type == ENTRY_PAYMENT:
            if payment.payment_method == METHOD_CASH:
                summary.revenue_cash += amount
            elif payment.payment_method == METHOD_BANK_TRANSFER:
                summary.revenue_bank_transfer += amount

        if payment.payment_date.year == today.year:
            summary.revenue_this_year += amount
            if payment.payment_date.month == today.month:
                summary.revenue_this_month += amount

        if amount < 0 and payment.refund_status == REFUND_PENDING:
            summary.pending_refunds_count += 1
            summary.pending_refunds_amount += -amount

    return summary
