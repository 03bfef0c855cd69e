"""
API JSON per i pagamenti dei contratti (PaymentRecord).

Endpoint principali:

GET    /api/payments/?contract_id=<id>       storico pagamenti di un contratto
POST   /api/payments/                        registra un pagamento (o rimborso)
PUT    /api/payments/<id>                    modifica un pagamento
DELETE /api/payments/<id>                    cancella un pagamento
POST   /api/payments/<id>/fulfill-refund     segna un rimborso come eseguito
GET    /api/payments/pending-refunds         rimborsi in attesa

Body JSON per POST/PUT:
{
  "contract_id": 1,                 # solo POST
  "payment_date": "2024-03-15",     # ISO o dd/mm/yyyy
  "amount": 1500000,                # negativo per un rimborso
  "months": ["2024-03", "2024-04"], # oppure testo "Tháng 3-4/2024"
  "method": "Tiền mặt",
  "notes": "..."
}
"""

from __future__ import annotations

from flask import Blueprint, request, jsonify

from parking_rentals.api.serializers import payment_to_dict, result_to_dict
from parking_rentals.services import payment_service
from parking_rentals.services.exceptions import ValidationError

api_payments_bp = Blueprint("api_payments", __name__)


def _ok(payload, message: str = "", status: int = 200):
    return jsonify({"success": True, "message": message, "payload": payload}), status


@api_payments_bp.route("/", methods=["GET"])
def api_list_payments():
    contract_id = request.args.get("contract_id", type=int)
    if contract_id is None:
        raise ValidationError("contract_id mancante o non valido.")
    payments = payment_service.list_payments_by_contract(contract_id)
    return _ok([payment_to_dict(p) for p in payments])


@api_payments_bp.route("/", methods=["POST"])
def api_add_payment():
    data = request.get_json(silent=True) or {}

    try:
        contract_id = int(data.get("contract_id"))
    except (TypeError, ValueError):
        raise ValidationError("contract_id mancante o non valido.") from None

    payment, result = payment_service.add_payment(
        contract_id=contract_id,
        payment_date=data.get("payment_date"),
        amount=data.get("amount"),
        months=data.get("months"),
        method=data.get("method"),
        notes=data.get("notes"),
    )
    return _ok(
        {"payment": payment_to_dict(payment), "reconciliation": result_to_dict(result)},
        message="Pagamento registrato.",
        status=201,
    )


@api_payments_bp.route("/<int:payment_id>", methods=["PUT"])
def api_edit_payment(payment_id: int):
    data = request.get_json(silent=True) or {}
    payment, result = payment_service.edit_payment(
        payment_id,
        payment_date=data.get("payment_date"),
        amount=data.get("amount"),
        months=data.get("months"),
        method=data.get("method"),
        notes=data.get("notes"),
    )
    return _ok(
        {"payment": payment_to_dict(payment), "reconciliation": result_to_dict(result)},
        message="Pagamento aggiornato.",
    )


@api_payments_bp.route("/<int:payment_id>", methods=["DELETE"])
def api_delete_payment(payment_id: int):
    result = payment_service.delete_payment(payment_id)
    return _ok({"reconciliation": result_to_dict(result)}, message="Pagamento eliminato.")


@api_payments_bp.route("/<int:payment_id>/fulfill-refund", methods=["POST"])
def api_fulfill_refund(payment_id: int):
    payment = payment_service.mark_refund_fulfilled(payment_id)
    return _ok(payment_to_dict(payment), message="Rimborso eseguito.")


@api_payments_bp.route("/pending-refunds", methods=["GET"])
def api_pending_refunds():
    refunds = payment_service.list_pending_refunds()
    return _ok([payment_to_dict(p) for p in refunds])
