"""
Helper per la formattazione centralizzata di importi e date.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

CURRENCY_SYMBOL = "₫"
PRINT_DATE_FORMAT = "%d/%m/%Y"


def format_number(value: Any, decimals: int = 0, use_grouping: bool = True) -> str:
    """Numero con separatore delle migliaia ``.`` e decimali con ``,``."""
    if value in (None, ""):
        return ""
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return str(value)

    if decimals < 0:
        decimals = 0

    quant = Decimal("1") if decimals == 0 else Decimal("1").scaleb(-decimals)
    try:
        number = number.quantize(quant)
    except InvalidOperation:
        pass

    format_spec = f",.{decimals}f" if use_grouping else f".{decimals}f"
    text = format(number, format_spec)
    # 1,500,000.50 -> 1.500.000,50
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_vnd(value: Any) -> str:
    """``1.500.000 ₫``; valori mancanti come ``0 ₫``."""
    if value in (None, ""):
        value = 0
    return f"{format_number(value, decimals=0)} {CURRENCY_SYMBOL}"


def format_amount(value: Any) -> str:
    return format_number(value, decimals=0)


def format_print_date(value: Any) -> str:
    """``dd/mm/yyyy`` per date e datetime; stringa vuota altrimenti."""
    if isinstance(value, (date, datetime)):
        return value.strftime(PRINT_DATE_FORMAT)
    return ""


def parse_input_date(value: Any) -> Optional[date]:
    """
    Accetta ``YYYY-MM-DD`` (ISO) o ``dd/mm/yyyy``.

    Restituisce None per input vuoto o non valido: la decisione se
    considerarlo un errore spetta al chiamante.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value in (None, ""):
        return None
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", PRINT_DATE_FORMAT):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None
