"""DTO e helper per i filtri di ricerca contratti."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Any, Mapping, Optional

STATUS_VALUES = {"paid", "unpaid"}
REMINDER_VALUES = {"overdue", "today", "upcoming"}

# Campi del contratto su cui opera la ricerca testuale
SEARCH_FIELDS = (
    "owner_name",
    "plate_number",
    "address",
    "phone_number",
    "vehicle_model",
    "parking_area",
    "payment_method",
    "notes",
)


def normalize_search_text(value: Any) -> str:
    """Minuscolo senza diacritici (``Đặng`` -> ``dang``)."""
    if not value:
        return ""
    text = str(value).lower().replace("đ", "d")
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


@dataclass
class ContractSearchFilters:
    search: Optional[str] = None
    status: Optional[str] = None  # "paid" / "unpaid"
    reminder: Optional[str] = None  # "overdue" / "today" / "upcoming"

    @staticmethod
    def _parse_choice(value: Any, allowed: set) -> Optional[str]:
        choice = (value or "").strip().lower()
        return choice if choice in allowed else None

    @classmethod
    def from_query_args(cls, args: Mapping[str, Any]) -> "ContractSearchFilters":
        search_raw = (args.get("search") or args.get("q") or "").strip()
        return cls(
            search=search_raw or None,
            status=cls._parse_choice(args.get("status"), STATUS_VALUES),
            reminder=cls._parse_choice(args.get("reminder"), REMINDER_VALUES),
        )

    @property
    def normalized_search(self) -> str:
        return normalize_search_text(self.search)

    def matches_text(self, contract: Any) -> bool:
        term = self.normalized_search
        if not term:
            return True
        return any(
            term in normalize_search_text(getattr(contract, name, None))
            for name in SEARCH_FIELDS
        )
