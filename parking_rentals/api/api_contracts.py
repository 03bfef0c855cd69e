"""
API JSON per i contratti (Contract).

Endpoint principali:

GET    /api/contracts/                 elenco filtrato e ordinato per scadenza
POST   /api/contracts/                 crea un contratto
GET    /api/contracts/<id>             dettaglio con storico pagamenti e periodi
PUT    /api/contracts/<id>             modifica (cambio tariffa incluso)
DELETE /api/contracts/<id>             cancella contratto e pagamenti
POST   /api/contracts/<id>/recalculate ricalcola il debito
GET    /api/contracts/<id>/months      mesi selezionabili per un pagamento
POST   /api/contracts/recalculate-all  ricalcola tutti i contratti
"""

from __future__ import annotations

from datetime import date

from flask import Blueprint, request, jsonify

from parking_rentals.api.serializers import (
    contract_to_dict,
    payment_to_dict,
    period_to_dict,
    result_to_dict,
)
from parking_rentals.services import contract_service, reconciliation_service
from parking_rentals.services.dto.contract_filters import ContractSearchFilters
from parking_rentals.services.period_service import due_status, next_due_date

api_contracts_bp = Blueprint("api_contracts", __name__)


def _ok(payload, message: str = "", status: int = 200):
    return jsonify({"success": True, "message": message, "payload": payload}), status


@api_contracts_bp.route("/", methods=["GET"])
def api_list_contracts():
    """
    Elenco contratti.

    Query string: ``search`` (senza accenti), ``status`` (paid/unpaid),
    ``reminder`` (overdue/today/upcoming).
    """
    filters = ContractSearchFilters.from_query_args(request.args)
    today = date.today()
    contracts = contract_service.list_contracts(filters, today)

    payload = []
    for contract in contracts:
        row = contract_to_dict(contract)
        due = next_due_date(contract)
        row["next_due_date"] = due.isoformat() if due else None
        row["due_status"] = due_status(contract, today).value
        payload.append(row)
    return _ok(payload)


@api_contracts_bp.route("/", methods=["POST"])
def api_create_contract():
    data = request.get_json(silent=True) or {}
    contract, result = contract_service.create_contract(data)
    return _ok(
        {"contract": contract_to_dict(contract), "reconciliation": result_to_dict(result)},
        message="Contratto creato.",
        status=201,
    )


@api_contracts_bp.route("/<int:contract_id>", methods=["GET"])
def api_contract_detail(contract_id: int):
    detail = contract_service.get_contract_detail(contract_id)
    due = detail["next_due_date"]
    payload = {
        "contract": contract_to_dict(detail["contract"]),
        "reconciliation": result_to_dict(detail["reconciliation"]),
        "due_status": detail["due_status"].value,
        "next_due_date": due.isoformat() if due else None,
        "payments": [
            {
                **payment_to_dict(row["payment"]),
                "period_label": row["period_label"],
                "invoice_months": row["invoice_months"],
                "invoice_period": row["invoice_period"],
                "periods": [period_to_dict(p) for p in row["periods"]],
            }
            for row in detail["payments"]
        ],
    }
    return _ok(payload)


@api_contracts_bp.route("/<int:contract_id>", methods=["PUT"])
def api_update_contract(contract_id: int):
    data = request.get_json(silent=True) or {}
    contract, result = contract_service.update_contract(contract_id, data)
    return _ok(
        {"contract": contract_to_dict(contract), "reconciliation": result_to_dict(result)},
        message="Contratto aggiornato.",
    )


@api_contracts_bp.route("/<int:contract_id>", methods=["DELETE"])
def api_delete_contract(contract_id: int):
    contract_service.delete_contract(contract_id)
    return _ok(None, message="Contratto eliminato.")


@api_contracts_bp.route("/<int:contract_id>/recalculate", methods=["POST"])
def api_recalculate_contract(contract_id: int):
    result = reconciliation_service.recalculate_contract(contract_id)
    return _ok(result_to_dict(result), message="Debito ricalcolato.")


@api_contracts_bp.route("/<int:contract_id>/months", methods=["GET"])
def api_contract_months(contract_id: int):
    return _ok(contract_service.month_options(contract_id))


@api_contracts_bp.route("/recalculate-all", methods=["POST"])
def api_recalculate_all():
    changed = reconciliation_service.recalculate_all()
    return _ok({"changed_count": changed}, message=f"Ricalcolati {changed} contratti.")
