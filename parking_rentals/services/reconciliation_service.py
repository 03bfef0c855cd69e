"""
Riconciliazione contratto/pagamenti.

``reconcile`` è la sola funzione autorevole per i campi derivati di un
contratto: li ricalcola sempre dall'intero storico (mai in modo
incrementale), così modifiche e cancellazioni si correggono da sole.

Algoritmo:
1. copertura = unione dei mesi di tutte le registrazioni (le rettifiche
   coprono solo il mese corrente in cui sono state registrate)
2. netto pagato = somma degli importi (i rimborsi sottraggono)
3. dovuto teorico alla tariffa attuale (a termine: mesi inizio..fine,
   aperto: mesi inizio..oggi; minimo 1 mese)
4. debito = max(0, dovuto - netto pagato)
5. saldato = debito == 0
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Optional

from parking_rentals.models import Contract, PaymentRecord
from parking_rentals.models.payment_record import (
    ENTRY_REFUND,
    METHOD_REFUND,
    REFUND_PENDING,
)
from parking_rentals.parsers.months_covered_parser import (
    format_months_covered,
    parse_months_covered,
)
from parking_rentals.services.dto.month_set import MonthSet
from parking_rentals.services.exceptions import ContractNotFound
from parking_rentals.services import settings_service
from parking_rentals.services.formatting_service import format_vnd
from parking_rentals.services.logging import log_structured_event
from parking_rentals.services.period_service import months_between_inclusive
from parking_rentals.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    amount_owed: int
    coverage: MonthSet
    months_paid_count: int
    settled: bool
    liability: int
    net_paid: int

    @property
    def credit(self) -> int:
        """Eccedenza pagata oltre il dovuto (il debito resta a zero)."""
        return max(0, self.net_paid - self.liability)

    @property
    def coverage_text(self) -> str:
        return format_months_covered(self.coverage)


def contract_liability(contract: Any, today: date) -> int:
    """Dovuto teorico complessivo alla tariffa mensile attuale."""
    rate = int(contract.monthly_rate or 0)
    if contract.start_date is None:
        return 0
    if contract.is_open_ended or contract.end_date is None:
        months = months_between_inclusive(contract.start_date, today)
    else:
        months = months_between_inclusive(contract.start_date, contract.end_date)
    return rate * months


def coverage_from_history(payments: Iterable[Any]) -> MonthSet:
    """Unione dei mesi coperti da tutte le registrazioni dello storico."""
    return MonthSet.union_all(parse_months_covered(p.months_covered) for p in payments)


def reconcile(contract: Any, payments: Iterable[Any], today: Optional[date] = None) -> ReconciliationResult:
    """Ricalcolo puro dei campi derivati di un contratto dal suo storico completo."""
    today = today or date.today()
    history = list(payments)

    coverage = coverage_from_history(history)
    net_paid = sum(int(p.amount_paid or 0) for p in history)
    liability = contract_liability(contract, today)
    amount_owed = max(0, liability - net_paid)

    return ReconciliationResult(
        amount_owed=amount_owed,
        coverage=coverage,
        months_paid_count=len(coverage),
        settled=amount_owed == 0,
        liability=liability,
        net_paid=net_paid,
    )


def apply_result(contract: Contract, result: ReconciliationResult) -> None:
    """Scrive i campi derivati sul contratto (i quattro campi sempre insieme)."""
    contract.months_paid_count = result.months_paid_count
    contract.months_paid_details = result.coverage_text
    contract.amount_owed = result.amount_owed
    contract.is_settled = result.settled


def reconcile_contract(uow: UnitOfWork, contract: Contract, today: Optional[date] = None) -> ReconciliationResult:
    """
    Riconcilia un contratto nella transazione corrente.

    Esegue prima un flush: lo storico letto deve includere le modifiche
    appena fatte nella stessa Unit of Work.
    """
    uow.flush()
    payments: List[PaymentRecord] = uow.payments.list_by_contract(contract.id)
    result = reconcile(contract, payments, today)

    previous_owed = contract.amount_owed
    apply_result(contract, result)

    if previous_owed != result.amount_owed:
        logger.debug(
            "Debito contratto %s: %s -> %s", contract.id, previous_owed, result.amount_owed
        )
    return result


def refund_overpayment(
    uow: UnitOfWork, contract: Contract, result: ReconciliationResult, today: Optional[date] = None
) -> Optional[PaymentRecord]:
    """
    Registra un rimborso in attesa per l'eccedenza di un contratto a termine.

    Attivo solo con ``AUTO_REFUND_OVERPAYMENT``; per i contratti aperti
    l'eccedenza resta come credito sui mesi futuri.
    """
    if result.credit <= 0 or contract.is_open_ended:
        return None
    if not settings_service.auto_refund_overpayment_enabled():
        return None

    record = PaymentRecord(
        contract=contract,
        payment_date=today or date.today(),
        amount_paid=-result.credit,
        months_covered="",
        payment_method=METHOD_REFUND,
        entry_type=ENTRY_REFUND,
        refund_status=REFUND_PENDING,
        rate_applied=contract.monthly_rate,
        notes=f"Hoàn tiền thừa {format_vnd(result.credit)}",
    )
    uow.payments.add(record)
    log_structured_event(
        "overpayment_refunded", contract_id=contract.id, amount=record.amount_paid
    )
    return record


def sync_contract(uow: UnitOfWork, contract: Contract, today: Optional[date] = None) -> ReconciliationResult:
    """Pipeline comune dopo ogni mutazione: riconcilia e gestisce l'eccedenza."""
    result = reconcile_contract(uow, contract, today)
    if refund_overpayment(uow, contract, result, today) is not None:
        result = reconcile_contract(uow, contract, today)
    return result


def recalculate_contract(contract_id: int, today: Optional[date] = None) -> ReconciliationResult:
    """Ricalcola e salva i campi derivati di un singolo contratto."""
    with UnitOfWork() as uow:
        contract = uow.contracts.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        result = sync_contract(uow, contract, today)
        uow.commit()

    log_structured_event(
        "contract_recalculated",
        contract_id=contract_id,
        amount_owed=result.amount_owed,
        months_paid_count=result.months_paid_count,
    )
    return result


def recalculate_all(today: Optional[date] = None) -> int:
    """
    Ricalcola tutti i contratti (es. a inizio mese per i contratti aperti).

    Restituisce il numero di contratti il cui debito è cambiato.
    """
    changed = 0
    with UnitOfWork() as uow:
        for contract in uow.contracts.list_ordered():
            previous_owed = contract.amount_owed
            result = sync_contract(uow, contract, today)
            if previous_owed != result.amount_owed:
                changed += 1
        uow.commit()

    log_structured_event("contracts_recalculated", changed_count=changed)
    logger.info("Ricalcolo completato: %s contratti aggiornati", changed)
    return changed
