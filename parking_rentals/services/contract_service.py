"""
Servizi per la gestione dei contratti di noleggio (Contract).

Creazione, modifica (incluso il cambio tariffa), cancellazione, ricerca e
dettaglio. Come per i pagamenti, ogni scrittura termina con la
riconciliazione del contratto nella stessa Unit of Work.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from parking_rentals.models import Contract
from parking_rentals.parsers.months_covered_parser import (
    format_as_single_range,
    format_range_for_invoice,
    month_label,
)
from parking_rentals.services import settings_service
from parking_rentals.services.dto.contract_filters import ContractSearchFilters
from parking_rentals.services.exceptions import (
    ContractNotFound,
    InvalidAmount,
    InvalidDate,
    ValidationError,
)
from parking_rentals.services.formatting_service import parse_input_date
from parking_rentals.services.logging import log_structured_event
from parking_rentals.services.period_service import (
    DueStatus,
    due_status,
    format_period_range_for_invoice,
    next_due_date,
    payment_periods,
    selectable_months,
    sort_by_due,
)
from parking_rentals.services.rate_change_service import apply_rate_change
from parking_rentals.services.reconciliation_service import (
    ReconciliationResult,
    coverage_from_history,
    reconcile,
    sync_contract,
)
from parking_rentals.services.settings_service import parse_bool
from parking_rentals.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("owner_name", "address", "phone_number", "vehicle_model", "plate_number", "parking_area", "notes")
_REQUIRED_FIELDS = {
    "owner_name": "Tên chủ xe",
    "vehicle_model": "Loại xe",
    "plate_number": "Biển số xe",
}

_REMINDER_STATUSES = {
    "overdue": {DueStatus.OVERDUE},
    "today": {DueStatus.DUE_TODAY},
    "upcoming": {DueStatus.UPCOMING},
}


# ---------------------------------------------------------------------------
# Letture
# ---------------------------------------------------------------------------

def get_contract(contract_id: int) -> Contract:
    with UnitOfWork() as uow:
        contract = uow.contracts.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        return contract


def list_contracts(
    filters: Optional[ContractSearchFilters] = None,
    today: Optional[date] = None,
) -> List[Contract]:
    """
    Elenco contratti filtrato e ordinato per scadenza.

    Ordine: attivi per prossima scadenza, poi senza data, poi scaduti,
    infine i saldati.
    """
    filters = filters or ContractSearchFilters()
    today = today or date.today()

    with UnitOfWork() as uow:
        contracts = uow.contracts.list_ordered()

    result = [c for c in contracts if filters.matches_text(c)]

    if filters.status == "paid":
        result = [c for c in result if c.is_settled]
    elif filters.status == "unpaid":
        result = [c for c in result if not c.is_settled]

    if filters.reminder:
        wanted = _REMINDER_STATUSES[filters.reminder]
        result = [c for c in result if due_status(c, today) in wanted]

    return sort_by_due(result, today)


def get_contract_detail(contract_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Dettaglio contratto per la UI: storico pagamenti con periodi effettivi,
    stato scadenza e risultato della riconciliazione (senza scritture).
    """
    today = today or date.today()
    with UnitOfWork() as uow:
        contract = uow.contracts.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        payments = uow.payments.list_by_contract(contract_id)

    reconciliation = reconcile(contract, payments, today)

    payment_rows = []
    for payment in payments:
        month_set = coverage_from_history([payment]) if not payment.is_adjustment else None
        periods = payment_periods(contract.start_date, month_set) if month_set else []
        payment_rows.append(
            {
                "payment": payment,
                "period_label": format_as_single_range(month_set) if month_set else "",
                "invoice_months": format_range_for_invoice(month_set) if month_set else "",
                "invoice_period": format_period_range_for_invoice(periods),
                "periods": periods,
            }
        )

    return {
        "contract": contract,
        "payments": payment_rows,
        "reconciliation": reconciliation,
        "due_status": due_status(contract, today),
        "next_due_date": next_due_date(contract),
    }


def month_options(contract_id: int, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Mesi selezionabili per un nuovo pagamento, con l'indicazione dei già pagati."""
    today = today or date.today()
    with UnitOfWork() as uow:
        contract = uow.contracts.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        coverage = coverage_from_history(uow.payments.list_by_contract(contract_id))

    return [
        {"key": ym.key, "label": month_label(ym), "paid": ym in coverage}
        for ym in selectable_months(contract, today)
    ]


# ---------------------------------------------------------------------------
# Scritture
# ---------------------------------------------------------------------------

def create_contract(data: Mapping[str, Any], today: Optional[date] = None) -> Tuple[Contract, ReconciliationResult]:
    """Crea un contratto e ne calcola subito il debito (nessun pagamento)."""
    fields = validate_contract_data(data)

    with UnitOfWork() as uow:
        contract = Contract(**fields)
        uow.contracts.add(contract)

        result = sync_contract(uow, contract, today)
        uow.commit()

    log_structured_event(
        "contract_created",
        contract_id=contract.id,
        monthly_rate=contract.monthly_rate,
        amount_owed=result.amount_owed,
    )
    return contract, result


def update_contract(
    contract_id: int, data: Mapping[str, Any], today: Optional[date] = None
) -> Tuple[Contract, ReconciliationResult]:
    """
    Aggiorna un contratto. Se cambia la tariffa mensile registra la
    rettifica sui mesi già pagati prima di riconciliare.
    """
    with UnitOfWork() as uow:
        contract = uow.contracts.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)

        fields = validate_contract_data(data, current=contract)
        old_rate = contract.monthly_rate or 0
        new_rate = fields["monthly_rate"]

        for name, value in fields.items():
            setattr(contract, name, value)

        if new_rate != old_rate:
            apply_rate_change(uow, contract, old_rate, new_rate, today)

        result = sync_contract(uow, contract, today)
        uow.commit()

    log_structured_event(
        "contract_updated",
        contract_id=contract_id,
        rate_changed=new_rate != old_rate,
        amount_owed=result.amount_owed,
    )
    return contract, result


def delete_contract(contract_id: int) -> None:
    """Cancella il contratto e, in cascata, tutto il suo storico pagamenti."""
    with UnitOfWork() as uow:
        contract = uow.contracts.get_by_id(contract_id)
        if contract is None:
            raise ContractNotFound(contract_id)
        uow.contracts.delete(contract)
        uow.commit()

    log_structured_event("contract_deleted", contract_id=contract_id)


# ---------------------------------------------------------------------------
# Validazione
# ---------------------------------------------------------------------------

def validate_contract_data(data: Mapping[str, Any], current: Optional[Contract] = None) -> Dict[str, Any]:
    """
    Normalizza e valida i dati di un contratto.

    Con ``current`` (modifica) i campi assenti mantengono il valore attuale.
    Solleva ValidationError (o sottoclassi) senza toccare il database.
    """

    def _pick(name: str, default: Any = None) -> Any:
        if name in data:
            return data[name]
        return getattr(current, name) if current is not None else default

    fields: Dict[str, Any] = {}
    for name in _TEXT_FIELDS:
        value = _pick(name)
        fields[name] = str(value).strip() if value not in (None, "") else None

    missing = [label for name, label in _REQUIRED_FIELDS.items() if not fields[name]]
    if missing:
        raise ValidationError("Campi obbligatori mancanti: " + ", ".join(missing))
    fields["parking_area"] = fields["parking_area"] or "1"

    start_date = parse_input_date(_pick("start_date"))
    if start_date is None:
        raise InvalidDate("Data di inizio contratto mancante o non valida")

    is_open_ended = parse_bool(_pick("is_open_ended", False))
    end_date = None
    if not is_open_ended:
        end_date = parse_input_date(_pick("end_date"))
        if end_date is None:
            raise InvalidDate("Data di fine obbligatoria per i contratti a termine")
        if start_date >= end_date:
            raise InvalidDate("La data di fine deve essere successiva alla data di inizio")

    fields["start_date"] = start_date
    fields["end_date"] = end_date
    fields["is_open_ended"] = is_open_ended
    fields["monthly_rate"] = _validate_rate(_pick("monthly_rate", 0))

    method = _pick("payment_method")
    fields["payment_method"] = (
        str(method).strip() if method else settings_service.get_default_payment_method()
    )
    return fields


def _validate_rate(value: Any) -> int:
    if isinstance(value, bool) or value in (None, ""):
        raise InvalidAmount(f"Tariffa mensile non valida: {value!r}")
    try:
        rate = int(str(value).strip())
    except ValueError:
        raise InvalidAmount(f"Tariffa mensile non valida: {value!r}") from None
    if rate < 0:
        raise InvalidAmount("La tariffa mensile non può essere negativa")
    return rate
