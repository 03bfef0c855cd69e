"""
Eccezioni di dominio per contratti e pagamenti.

Gerarchia:
- BillingError
  - ValidationError (InvalidDate, EmptyMonthSelection, InvalidAmount)
  - NotFoundError (ContractNotFound, PaymentNotFound)
  - StoreFailure
"""


class BillingError(Exception):
    """Errore generico della fatturazione."""


class ValidationError(BillingError):
    """Input non valido: nessuna scrittura è stata eseguita."""


class InvalidDate(ValidationError):
    """Data non interpretabile o fuori intervallo."""


class EmptyMonthSelection(ValidationError):
    """Pagamento senza alcun mese coperto."""


class InvalidAmount(ValidationError):
    """Importo o tariffa non validi."""


class NotFoundError(BillingError):
    """Riferimento a un record inesistente."""


class ContractNotFound(NotFoundError):
    def __init__(self, contract_id):
        super().__init__(f"Contratto con id {contract_id} non trovato")
        self.contract_id = contract_id


class PaymentNotFound(NotFoundError):
    def __init__(self, payment_id):
        super().__init__(f"Pagamento con id {payment_id} non trovato")
        self.payment_id = payment_id


class StoreFailure(BillingError):
    """Errore del database: la mutazione in corso è stata annullata."""
