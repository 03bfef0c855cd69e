"""
Modello Contract (tabella: contracts).

Rappresenta un contratto di noleggio mensile di un posto auto.
I campi derivati (mesi pagati, debito, stato saldato) vengono ricalcolati
dal servizio di riconciliazione a ogni modifica dello storico pagamenti:
non vanno mai modificati direttamente.
"""

from datetime import datetime

from parking_rentals.extensions import db


class Contract(db.Model):
    """
    Contratto di noleggio posto auto.

    Un contratto a termine ha ``end_date`` valorizzata; un contratto
    "aperto" (``is_open_ended``) non ha data di fine e il dovuto matura
    fino alla data odierna.
    """

    __tablename__ = "contracts"

    # Primary key
    id = db.Column(db.Integer, primary_key=True)

    # Dati anagrafici (informativi, non usati nei calcoli)
    owner_name = db.Column(db.String(255), nullable=False, index=True)
    address = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(64), nullable=True)
    vehicle_model = db.Column(db.String(128), nullable=False)
    plate_number = db.Column(db.String(32), nullable=False, index=True)
    parking_area = db.Column(db.String(32), nullable=False, default="1")

    # Date contratto
    start_date = db.Column(db.Date, nullable=False, index=True)
    end_date = db.Column(db.Date, nullable=True, index=True)
    is_open_ended = db.Column(db.Boolean, nullable=False, default=False)

    # Tariffa mensile in unità intere (VND)
    monthly_rate = db.Column(db.BigInteger, nullable=False, default=0)

    # --- Campi derivati (riconciliazione) ---
    months_paid_count = db.Column(db.Integer, nullable=False, default=0)
    # Forma canonica dei mesi coperti ("Tháng 1/2024+Tháng 2/2024")
    months_paid_details = db.Column(db.Text, nullable=False, default="")
    amount_owed = db.Column(db.BigInteger, nullable=False, default=0)
    is_settled = db.Column(db.Boolean, nullable=False, default=False, index=True)
    # ----------------------------------------

    payment_method = db.Column(db.String(64), nullable=False, default="Tiền mặt")
    notes = db.Column(db.Text, nullable=True)

    # Timestamps
    created_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, index=True
    )
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    payments = db.relationship(
        "PaymentRecord",
        back_populates="contract",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PaymentRecord.payment_date.asc()",
    )

    def __repr__(self) -> str:
        return (
            f"<Contract id={self.id} owner={self.owner_name!r} "
            f"plate={self.plate_number!r} owed={self.amount_owed}>"
        )
