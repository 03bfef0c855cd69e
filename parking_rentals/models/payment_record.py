"""
Modello PaymentRecord (tabella: payment_records).

Una riga dello storico pagamenti di un contratto: pagamento ordinario,
maggiorazione per aumento tariffa (importo 0) o rimborso (importo negativo).
"""

from datetime import datetime

from parking_rentals.extensions import db

# Tipi di registrazione
ENTRY_PAYMENT = "payment"
ENTRY_SURCHARGE = "surcharge"
ENTRY_REFUND = "refund"
ADJUSTMENT_ENTRY_TYPES = {ENTRY_SURCHARGE, ENTRY_REFUND}

# Stato rimborso (significativo solo per importi negativi)
REFUND_NOT_APPLICABLE = "not_applicable"
REFUND_PENDING = "pending"
REFUND_FULFILLED = "fulfilled"

# Etichette metodo di pagamento
METHOD_CASH = "Tiền mặt"
METHOD_BANK_TRANSFER = "Chuyển khoản"
METHOD_PRICE_ADJUSTMENT = "Điều chỉnh giá"
METHOD_REFUND = "Hoàn tiền"


class PaymentRecord(db.Model):
    __tablename__ = "payment_records"

    id = db.Column(db.Integer, primary_key=True)

    contract_id = db.Column(
        db.Integer,
        db.ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    payment_date = db.Column(db.Date, nullable=False, index=True)

    # Positivo = pagamento, negativo = rimborso
    amount_paid = db.Column(db.BigInteger, nullable=False, default=0)

    # Forma canonica dei mesi coperti (rettifiche: solo il mese corrente)
    months_covered = db.Column(db.Text, nullable=False)

    # Solo rettifiche di tariffa: mesi ri-prezzati alla tariffa rate_applied
    adjusted_months = db.Column(db.Text, nullable=True)

    payment_method = db.Column(db.String(64), nullable=False, default=METHOD_CASH)

    # es. "payment", "surcharge", "refund"
    entry_type = db.Column(db.String(16), nullable=False, default=ENTRY_PAYMENT, index=True)

    # es. "not_applicable", "pending", "fulfilled"
    refund_status = db.Column(
        db.String(16), nullable=False, default=REFUND_NOT_APPLICABLE, index=True
    )

    # Tariffa mensile del contratto al momento della registrazione
    rate_applied = db.Column(db.BigInteger, nullable=True)

    notes = db.Column(db.Text, nullable=True)

    # Timestamps
    created_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, index=True
    )
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    contract = db.relationship("Contract", back_populates="payments")

    @property
    def is_adjustment(self) -> bool:
        return self.entry_type in ADJUSTMENT_ENTRY_TYPES

    @property
    def is_refund(self) -> bool:
        return (self.amount_paid or 0) < 0

    def __repr__(self) -> str:
        return (
            f"<PaymentRecord id={self.id} contract_id={self.contract_id} "
            f"amount={self.amount_paid} type={self.entry_type!r}>"
        )
