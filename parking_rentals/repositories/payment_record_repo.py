"""
Repository specifico per PaymentRecord.
Eredita le funzioni base (add, get, list) da SqlAlchemyRepository.
"""
from typing import List

from parking_rentals.models import PaymentRecord
from parking_rentals.models.payment_record import REFUND_PENDING
from parking_rentals.repositories.base import SqlAlchemyRepository

class PaymentRecordRepository(SqlAlchemyRepository[PaymentRecord]):
    def __init__(self, session):
        super().__init__(session, PaymentRecord)

    def list_by_contract(self, contract_id: int) -> List[PaymentRecord]:
        """Storico completo di un contratto, in ordine di data e inserimento."""
        return (
            self.session.query(PaymentRecord)
            .filter_by(contract_id=contract_id)
            .order_by(PaymentRecord.payment_date.asc(), PaymentRecord.id.asc())
            .all()
        )

    def list_all_ordered(self) -> List[PaymentRecord]:
        """Restituisce tutti i pagamenti ordinati per data decrescente."""
        return (
            self.session.query(PaymentRecord)
            .order_by(PaymentRecord.payment_date.desc(), PaymentRecord.id.desc())
            .all()
        )

    def list_pending_refunds(self) -> List[PaymentRecord]:
        """Rimborsi registrati ma non ancora eseguiti."""
        return (
            self.session.query(PaymentRecord)
            .filter(
                PaymentRecord.amount_paid < 0,
                PaymentRecord.refund_status == REFUND_PENDING,
            )
            .order_by(PaymentRecord.payment_date.asc(), PaymentRecord.id.asc())
            .all()
        )
