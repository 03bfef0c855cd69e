"""
Gestione della variazione di tariffa mensile di un contratto.

Il dovuto è sempre calcolato alla tariffa attuale su tutti i mesi del
contratto, quindi i mesi già pagati alla vecchia tariffa vengono
ri-prezzati:
- aumento: una registrazione di maggiorazione a importo 0 (la differenza
  sui mesi pagati diventa debito)
- diminuzione: un rimborso in attesa pari alla differenza sui mesi pagati
Nessuna registrazione se nessun mese risulta pagato alla vecchia tariffa.

La tariffa di ogni mese si ricava dallo storico: l'ultimo pagamento
ordinario che lo copre, o l'ultimo rimborso di rettifica che lo ha
ri-prezzato. Una maggiorazione non cambia la tariffa dei mesi finché il
cliente non paga la differenza con un nuovo pagamento su quei mesi.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, Optional

from parking_rentals.models import Contract, PaymentRecord
from parking_rentals.models.payment_record import (
    ENTRY_PAYMENT,
    ENTRY_REFUND,
    ENTRY_SURCHARGE,
    METHOD_PRICE_ADJUSTMENT,
    METHOD_REFUND,
    REFUND_NOT_APPLICABLE,
    REFUND_PENDING,
)
from parking_rentals.parsers.months_covered_parser import (
    format_as_single_range,
    format_months_covered,
    parse_months_covered,
)
from parking_rentals.services.dto.month_set import MonthSet, YearMonth
from parking_rentals.services.exceptions import InvalidAmount
from parking_rentals.services.formatting_service import format_vnd
from parking_rentals.services.logging import log_structured_event
from parking_rentals.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def rates_by_month(history: Iterable[Any]) -> Dict[YearMonth, Optional[int]]:
    """
    Ultima tariffa registrata per ogni mese pagato, scorrendo lo storico
    in ordine (data, id). ``None`` se il pagamento non riporta la tariffa.
    """
    rates: Dict[YearMonth, Optional[int]] = {}
    for record in history:
        entry_type = record.entry_type or ENTRY_PAYMENT
        if entry_type == ENTRY_PAYMENT:
            months = parse_months_covered(record.months_covered)
        elif entry_type == ENTRY_REFUND and record.adjusted_months:
            months = parse_months_covered(record.adjusted_months)
        else:
            continue
        for month in months:
            if entry_type == ENTRY_REFUND and month not in rates:
                continue
            rates[month] = record.rate_applied
    return rates


def months_at_rate(history: Iterable[Any], rate: int) -> MonthSet:
    """Mesi pagati la cui ultima tariffa è ``rate`` (tariffa assente = ``rate``)."""
    return MonthSet(
        frozenset(
            month
            for month, applied in rates_by_month(history).items()
            if applied is None or int(applied) == rate
        )
    )


def apply_rate_change(
    uow: UnitOfWork,
    contract: Contract,
    old_rate: int,
    new_rate: int,
    today: Optional[date] = None,
) -> Optional[PaymentRecord]:
    """
    Registra la rettifica per il passaggio da ``old_rate`` a ``new_rate``.

    Non esegue commit né riconciliazione: li fa il chiamante nella
    stessa Unit of Work dopo aver aggiornato la tariffa del contratto.
    """
    if new_rate is None or int(new_rate) < 0:
        raise InvalidAmount(f"Tariffa mensile non valida: {new_rate}")

    old_rate = int(old_rate or 0)
    new_rate = int(new_rate)
    difference = new_rate - old_rate
    if difference == 0:
        return None

    uow.flush()
    affected_months = months_at_rate(uow.payments.list_by_contract(contract.id), old_rate)
    affected = len(affected_months)
    if affected == 0:
        logger.debug("Contratto %s: nessun mese pagato a %s", contract.id, old_rate)
        return None

    today = today or date.today()
    period = format_as_single_range(affected_months)
    # Le rettifiche coprono solo il mese amministrativo corrente
    marker = format_months_covered(MonthSet.of(YearMonth.from_date(today)))

    if difference > 0:
        record = PaymentRecord(
            contract=contract,
            payment_date=today,
            amount_paid=0,
            months_covered=marker,
            adjusted_months=format_months_covered(affected_months),
            payment_method=METHOD_PRICE_ADJUSTMENT,
            entry_type=ENTRY_SURCHARGE,
            refund_status=REFUND_NOT_APPLICABLE,
            rate_applied=new_rate,
            notes=(
                f"Tăng giá từ {format_vnd(old_rate)} lên {format_vnd(new_rate)} "
                f"cho {affected} tháng đã thanh toán ({period}). "
                f"Cần thu thêm {format_vnd(difference * affected)}."
            ),
        )
    else:
        refund_amount = abs(difference) * affected
        record = PaymentRecord(
            contract=contract,
            payment_date=today,
            amount_paid=-refund_amount,
            months_covered=marker,
            adjusted_months=format_months_covered(affected_months),
            payment_method=METHOD_REFUND,
            entry_type=ENTRY_REFUND,
            refund_status=REFUND_PENDING,
            rate_applied=new_rate,
            notes=(
                f"Giảm giá từ {format_vnd(old_rate)} xuống {format_vnd(new_rate)} "
                f"cho {affected} tháng đã thanh toán ({period}). "
                f"Hoàn lại {format_vnd(refund_amount)}."
            ),
        )

    uow.payments.add(record)

    log_structured_event(
        "rate_changed",
        contract_id=contract.id,
        old_rate=old_rate,
        new_rate=new_rate,
        affected_months=affected,
        entry_type=record.entry_type,
        amount=record.amount_paid,
    )
    return record
