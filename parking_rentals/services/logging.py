"""Helper per gli eventi strutturati (JSON) dei servizi contratti/pagamenti."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

EVENT_LOGGER_NAME = "parking_rentals.events"


def log_structured_event(
    action: str,
    *,
    message: Optional[str] = None,
    level: str = "info",
    **fields: Any,
) -> None:
    """Registra un evento di dominio (pagamento aggiunto, tariffa cambiata, ...).

    I campi diventano attributi ``extra`` del record e finiscono nel JSON
    prodotto da ``extensions.JsonFormatter``. I campi a None vengono omessi,
    le date sono scritte in ISO 8601.
    """

    logger = logging.getLogger(EVENT_LOGGER_NAME)
    log_method = getattr(logger, level.lower(), logger.info)

    payload: Dict[str, Any] = {"action": action}
    for key, value in fields.items():
        if value is None:
            continue
        payload[key] = value.isoformat() if isinstance(value, date) else value

    try:
        log_method(message or f"Evento {action}", extra=payload)
    except Exception:
        # Un problema di logging non deve annullare una mutazione già salvata
        logger.debug("Logging strutturato fallito", exc_info=True)
