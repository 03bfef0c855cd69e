"""
Unit of Work Pattern.
Gestisce la transazione del database atomica e l'accesso ai repository.
"""
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from parking_rentals.extensions import db
from parking_rentals.repositories.contract_repo import ContractRepository
from parking_rentals.repositories.payment_record_repo import PaymentRecordRepository
from parking_rentals.services.exceptions import StoreFailure

class UnitOfWork:
    def __init__(self):
        self.session = db.session
        self._contracts: Optional[ContractRepository] = None
        self._payments: Optional[PaymentRecordRepository] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
            return False
        # Flask gestisce la chiusura della sessione, non chiudere qui

    @property
    def contracts(self) -> ContractRepository:
        if self._contracts is None:
            self._contracts = ContractRepository(self.session)
        return self._contracts

    @property
    def payments(self) -> PaymentRecordRepository:
        if self._payments is None:
            self._payments = PaymentRecordRepository(self.session)
        return self._payments

    def flush(self):
        """Rende visibili le modifiche alle query successive della stessa transazione."""
        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            self.rollback()
            raise StoreFailure(f"Errore database durante il flush: {exc}") from exc

    def commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.rollback()
            raise StoreFailure(f"Errore database durante il commit: {exc}") from exc

    def rollback(self):
        self.session.rollback()
