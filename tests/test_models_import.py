"""
Verifica import dei modelli e delle colonne usate dalla riconciliazione.
"""
from parking_rentals.models import Contract, PaymentRecord


def test_contract_has_derived_fields():
    for name in ("months_paid_count", "months_paid_details", "amount_owed", "is_settled"):
        assert hasattr(Contract, name)


def test_payment_record_fields():
    assert hasattr(PaymentRecord, "contract_id")
    assert hasattr(PaymentRecord, "entry_type")
    assert hasattr(PaymentRecord, "refund_status")
    assert hasattr(PaymentRecord, "rate_applied")


def test_payment_record_flags():
    refund = PaymentRecord(amount_paid=-100, entry_type="refund")
    surcharge = PaymentRecord(amount_paid=0, entry_type="surcharge")
    payment = PaymentRecord(amount_paid=100, entry_type="payment")

    assert refund.is_refund and refund.is_adjustment
    assert surcharge.is_adjustment and not surcharge.is_refund
    assert not payment.is_adjustment and not payment.is_refund
