"""
Package repositories.
Espone i Repository per l'accesso ai dati.
"""

from .contract_repo import ContractRepository
from .payment_record_repo import PaymentRecordRepository

__all__ = [
    "ContractRepository",
    "PaymentRecordRepository",
]
