"""
Route per l'export dei dati (CSV).
"""
from __future__ import annotations

import csv
import io

from flask import Blueprint, Response, request

from parking_rentals.services import contract_service, payment_service
from parking_rentals.services.dto.contract_filters import ContractSearchFilters
from parking_rentals.services.formatting_service import format_amount, format_print_date

export_bp = Blueprint("export", __name__)


def _csv_response(rows, header, filename: str) -> Response:
    output = io.StringIO()
    writer = csv.writer(output, delimiter=";")
    writer.writerow(header)
    writer.writerows(rows)

    csv_data = output.getvalue()
    output.close()

    return Response(
        csv_data,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@export_bp.route("/contracts", methods=["GET"])
def export_contracts_csv():
    """Elenco contratti (stessi filtri dell'API) nell'ordine per scadenza."""
    filters = ContractSearchFilters.from_query_args(request.args)
    contracts = contract_service.list_contracts(filters)

    rows = [
        [
            c.id,
            c.owner_name,
            c.plate_number,
            c.vehicle_model,
            c.parking_area or "",
            c.phone_number or "",
            format_print_date(c.start_date),
            "" if c.is_open_ended else format_print_date(c.end_date),
            format_amount(c.monthly_rate),
            c.months_paid_count,
            c.months_paid_details or "",
            format_amount(c.amount_owed),
            "1" if c.is_settled else "0",
        ]
        for c in contracts
    ]
    header = [
        "contract_id", "owner_name", "plate_number", "vehicle_model", "parking_area",
        "phone_number", "start_date", "end_date", "monthly_rate", "months_paid_count",
        "months_paid_details", "amount_owed", "is_settled",
    ]
    return _csv_response(rows, header, "contracts_export.csv")


@export_bp.route("/contracts/<int:contract_id>/payments", methods=["GET"])
def export_payments_csv(contract_id: int):
    payments = payment_service.list_payments_by_contract(contract_id)

    rows = [
        [
            p.id,
            format_print_date(p.payment_date),
            format_amount(p.amount_paid),
            p.months_covered or "",
            p.payment_method or "",
            p.entry_type or "",
            p.refund_status or "",
            p.notes or "",
        ]
        for p in payments
    ]
    header = [
        "payment_id", "payment_date", "amount_paid", "months_covered",
        "payment_method", "entry_type", "refund_status", "notes",
    ]
    return _csv_response(rows, header, f"contract_{contract_id}_payments.csv")
