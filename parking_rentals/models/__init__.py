"""
Pacchetto per i modelli SQLAlchemy.

Qui vengono esportate le classi modello principali.
"""

from .contract import Contract
from .payment_record import PaymentRecord

__all__ = [
    "Contract",
    "PaymentRecord",
]
