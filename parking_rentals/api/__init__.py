"""
Pacchetto per le API JSON.

Contiene:
- api_contracts_bp -> contratti (elenco, dettaglio, modifica, ricalcolo)
- api_payments_bp  -> pagamenti di un contratto e rimborsi
- api_reports_bp   -> riepilogo per la dashboard
"""

from .api_contracts import api_contracts_bp
from .api_payments import api_payments_bp
from .api_reports import api_reports_bp

__all__ = [
    "api_contracts_bp",
    "api_payments_bp",
    "api_reports_bp",
]
