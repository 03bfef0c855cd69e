"""Conversione dei modelli in dizionari JSON per le API."""

from __future__ import annotations

from typing import Any, Dict, Optional

from parking_rentals.models import Contract, PaymentRecord
from parking_rentals.services.formatting_service import format_vnd
from parking_rentals.services.period_service import BillingPeriod
from parking_rentals.services.reconciliation_service import ReconciliationResult


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def contract_to_dict(contract: Contract) -> Dict[str, Any]:
    return {
        "id": contract.id,
        "owner_name": contract.owner_name,
        "address": contract.address,
        "phone_number": contract.phone_number,
        "vehicle_model": contract.vehicle_model,
        "plate_number": contract.plate_number,
        "parking_area": contract.parking_area,
        "start_date": _iso(contract.start_date),
        "end_date": _iso(contract.end_date),
        "is_open_ended": bool(contract.is_open_ended),
        "monthly_rate": contract.monthly_rate,
        "months_paid_count": contract.months_paid_count,
        "months_paid_details": contract.months_paid_details,
        "amount_owed": contract.amount_owed,
        "amount_owed_text": format_vnd(contract.amount_owed),
        "is_settled": bool(contract.is_settled),
        "payment_method": contract.payment_method,
        "notes": contract.notes,
    }


def payment_to_dict(payment: PaymentRecord) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "contract_id": payment.contract_id,
        "payment_date": _iso(payment.payment_date),
        "amount_paid": payment.amount_paid,
        "amount_paid_text": format_vnd(payment.amount_paid),
        "months_covered": payment.months_covered,
        "adjusted_months": payment.adjusted_months,
        "payment_method": payment.payment_method,
        "entry_type": payment.entry_type,
        "refund_status": payment.refund_status,
        "rate_applied": payment.rate_applied,
        "notes": payment.notes,
    }


def result_to_dict(result: ReconciliationResult) -> Dict[str, Any]:
    return {
        "amount_owed": result.amount_owed,
        "months_paid_count": result.months_paid_count,
        "months_paid_details": result.coverage_text,
        "settled": result.settled,
        "liability": result.liability,
        "net_paid": result.net_paid,
        "credit": result.credit,
    }


def period_to_dict(period: BillingPeriod) -> Dict[str, Any]:
    return {
        "month": period.month.key,
        "label": period.label,
        "start": _iso(period.start),
        "end": _iso(period.end),
        "period_text": period.period_text,
    }
