"""
Repository specifico per Contract.
Eredita le funzioni base (add, get, list) da SqlAlchemyRepository.
"""
from typing import List

from parking_rentals.models import Contract
from parking_rentals.repositories.base import SqlAlchemyRepository

class ContractRepository(SqlAlchemyRepository[Contract]):
    def __init__(self, session):
        super().__init__(session, Contract)

    def list_ordered(self) -> List[Contract]:
        """Restituisce tutti i contratti ordinati per id."""
        return self.session.query(Contract).order_by(Contract.id.asc()).all()
