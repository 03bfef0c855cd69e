"""
Servizi per la gestione dei pagamenti di un contratto (PaymentRecord).

Ogni operazione segue la stessa pipeline nella Unit of Work:
validazione -> modifica -> flush -> riconciliazione dallo storico
completo -> commit. Un errore del database annulla tutto (StoreFailure).
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional, Tuple, Union

from parking_rentals.models import PaymentRecord
from parking_rentals.models.payment_record import (
    ENTRY_PAYMENT,
    ENTRY_REFUND,
    METHOD_REFUND,
    REFUND_FULFILLED,
    REFUND_NOT_APPLICABLE,
    REFUND_PENDING,
)
from parking_rentals.parsers.months_covered_parser import (
    format_months_covered,
    parse_months_covered,
)
from parking_rentals.services import settings_service
from parking_rentals.services.dto.month_set import MonthSet, YearMonth
from parking_rentals.services.exceptions import (
    ContractNotFound,
    EmptyMonthSelection,
    InvalidAmount,
    InvalidDate,
    PaymentNotFound,
    ValidationError,
)
from parking_rentals.services.formatting_service import parse_input_date
from parking_rentals.services.logging import log_structured_event
from parking_rentals.services.reconciliation_service import (
    ReconciliationResult,
    sync_contract,
)
from parking_rentals.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

MonthsInput = Union[MonthSet, str, Iterable[Any], None]


def list_payments_by_contract(contract_id: int) -> List[PaymentRecord]:
    """Restituisce lo storico pagamenti di un contratto (data crescente)."""
    with UnitOfWork() as uow:
        if uow.contracts.get_by_id(contract_id) is None:
            raise ContractNotFound(contract_id)
        return uow.payments.list_by_contract(contract_id)


def get_payment(payment_id: int) -> PaymentRecord:
    with UnitOfWork() as uow:
        payment = uow.payments.get_by_id(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)
        return payment


def add_payment(
    contract_id: int,
    payment_date: Any,
    amount: Any,
    months: MonthsInput,
    method: Optional[str] = None,
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> Tuple[PaymentRecord, ReconciliationResult]:
    """
    Registra un pagamento (o un rimborso se l'importo è negativo) e
    riconcilia il contratto.
    """
    paid_on = validate_payment_date(payment_date)
    amount_value = validate_amount(amount)
    month_set = validate_months(months)

    with UnitOfWork() as uow:
        contract = uow.contracts.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)

        entry_type, refund_status = _classify(amount_value, ENTRY_PAYMENT)
        payment = PaymentRecord(
            contract=contract,
            payment_date=paid_on,
            amount_paid=amount_value,
            months_covered=format_months_covered(month_set),
            payment_method=_resolve_method(method, amount_value, contract.payment_method),
            entry_type=entry_type,
            refund_status=refund_status,
            rate_applied=contract.monthly_rate,
            notes=(notes or "").strip() or None,
        )
        uow.payments.add(payment)

        result = sync_contract(uow, contract, today)
        uow.commit()

    log_structured_event(
        "payment_added",
        contract_id=contract_id,
        payment_id=payment.id,
        amount=amount_value,
        months=len(month_set),
        amount_owed=result.amount_owed,
    )
    return payment, result


def edit_payment(
    payment_id: int,
    payment_date: Any = None,
    amount: Any = None,
    months: MonthsInput = None,
    method: Optional[str] = None,
    notes: Optional[str] = None,
    today: Optional[date] = None,
) -> Tuple[PaymentRecord, ReconciliationResult]:
    """
    Modifica un pagamento esistente; i campi a None restano invariati.
    """
    paid_on = validate_payment_date(payment_date) if payment_date is not None else None
    amount_value = validate_amount(amount) if amount is not None else None
    month_set = validate_months(months) if months is not None else None

    with UnitOfWork() as uow:
        payment = uow.payments.get_by_id(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)

        if paid_on is not None:
            payment.payment_date = paid_on
        if amount_value is not None:
            payment.amount_paid = amount_value
            payment.entry_type, payment.refund_status = _classify(
                amount_value, payment.entry_type, payment.refund_status
            )
        if month_set is not None:
            payment.months_covered = format_months_covered(month_set)
        if method is not None and method.strip():
            payment.payment_method = method.strip()
        if notes is not None:
            payment.notes = notes.strip() or None

        contract = payment.contract
        result = sync_contract(uow, contract, today)
        uow.commit()

    log_structured_event(
        "payment_edited",
        contract_id=contract.id,
        payment_id=payment_id,
        amount=payment.amount_paid,
        amount_owed=result.amount_owed,
    )
    return payment, result


def delete_payment(payment_id: int, today: Optional[date] = None) -> ReconciliationResult:
    """
    Cancella un pagamento e riconcilia il contratto: i mesi coperti solo
    da questo pagamento tornano da pagare.
    """
    with UnitOfWork() as uow:
        payment = uow.payments.get_by_id(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)

        contract = payment.contract
        uow.payments.delete(payment)

        result = sync_contract(uow, contract, today)
        uow.commit()

    log_structured_event(
        "payment_deleted",
        contract_id=contract.id,
        payment_id=payment_id,
        amount_owed=result.amount_owed,
    )
    return result


def mark_refund_fulfilled(payment_id: int) -> PaymentRecord:
    """
    Segna come eseguito un rimborso in attesa.

    Il saldo non cambia: il rimborso era già conteggiato quando è stato
    registrato. Ripetere l'operazione non ha effetti.
    """
    with UnitOfWork() as uow:
        payment = uow.payments.get_by_id(payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)
        if not payment.is_refund:
            raise ValidationError(f"Il pagamento {payment_id} non è un rimborso")

        if payment.refund_status != REFUND_FULFILLED:
            payment.refund_status = REFUND_FULFILLED
            uow.commit()
            log_structured_event(
                "refund_fulfilled",
                contract_id=payment.contract_id,
                payment_id=payment_id,
                amount=payment.amount_paid,
            )
        return payment


def list_pending_refunds() -> List[PaymentRecord]:
    with UnitOfWork() as uow:
        return uow.payments.list_pending_refunds()


# ---------------------------------------------------------------------------
# Validazione input
# ---------------------------------------------------------------------------

def validate_payment_date(value: Any) -> date:
    paid_on = parse_input_date(value)
    if paid_on is None:
        raise InvalidDate(f"Data pagamento non valida: {value!r}")
    return paid_on


def validate_amount(value: Any) -> int:
    """Importo intero (VND); negativo per i rimborsi."""
    if isinstance(value, bool) or value in (None, ""):
        raise InvalidAmount(f"Importo non valido: {value!r}")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Importo non valido: {value!r}") from None
    if not number.is_finite() or number != number.to_integral_value():
        raise InvalidAmount(f"Importo non valido: {value!r}")
    return int(number)


def validate_months(value: MonthsInput) -> MonthSet:
    """
    Accetta un MonthSet, il testo dei mesi coperti o un elenco di
    ``YearMonth`` / ``"YYYY-MM"`` / ``(anno, mese)``.
    """
    if isinstance(value, MonthSet):
        month_set = value
    elif value is None:
        month_set = MonthSet()
    elif isinstance(value, str):
        month_set = parse_months_covered(value)
    else:
        month_set = MonthSet(frozenset(_coerce_year_month(item) for item in value))

    if len(month_set) == 0:
        raise EmptyMonthSelection("Selezionare almeno un mese da pagare")
    return month_set


def _coerce_year_month(item: Any) -> YearMonth:
    try:
        if isinstance(item, YearMonth):
            return item
        if isinstance(item, str):
            year_text, month_text = item.strip().split("-", 1)
            return YearMonth(int(year_text), int(month_text))
        year, month = item
        return YearMonth(int(year), int(month))
    except (TypeError, ValueError) as exc:
        raise InvalidDate(f"Mese non valido: {item!r}") from exc


def _classify(
    amount: int, entry_type: Optional[str], refund_status: Optional[str] = None
) -> Tuple[str, str]:
    """Tipo registrazione e stato rimborso coerenti con il segno dell'importo."""
    if amount < 0:
        if refund_status in (REFUND_PENDING, REFUND_FULFILLED):
            return ENTRY_REFUND, refund_status
        return ENTRY_REFUND, REFUND_PENDING
    if entry_type == ENTRY_REFUND:
        return ENTRY_PAYMENT, REFUND_NOT_APPLICABLE
    return entry_type or ENTRY_PAYMENT, REFUND_NOT_APPLICABLE


def _resolve_method(method: Optional[str], amount: int, contract_method: Optional[str]) -> str:
    if method and method.strip():
        return method.strip()
    if amount < 0:
        return METHOD_REFUND
    return contract_method or settings_service.get_default_payment_method()
