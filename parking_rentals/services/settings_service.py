"""
Servizi per la lettura delle impostazioni applicative.
"""

from typing import Any

from flask import current_app

_TRUE_VALUES = {"1", "true", "yes", "on"}


def get_setting(key: str, default: str = "") -> str:
    return current_app.config.get(key, default)

def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES

def get_bool_setting(key: str, default: bool = False) -> bool:
    return parse_bool(get_setting(key, "1" if default else "0"))

def get_int_setting(key: str, default: int = 0) -> int:
    raw = get_setting(key, str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def get_default_payment_method() -> str:
    """Metodo proposto per i nuovi pagamenti (``Tiền mặt`` se non configurato)."""
    return get_setting("DEFAULT_PAYMENT_METHOD") or "Tiền mặt"

def auto_refund_overpayment_enabled() -> bool:
    """Se attivo, un'eccedenza su contratto a termine genera un rimborso in attesa."""
    return get_bool_setting("AUTO_REFUND_OVERPAYMENT")

def get_due_soon_days() -> int:
    return max(0, get_int_setting("DUE_SOON_DAYS", 7))
