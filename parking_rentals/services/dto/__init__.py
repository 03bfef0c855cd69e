"""DTO e tipi valore usati dai servizi."""

from .month_set import MonthSet, YearMonth, month_range
from .contract_filters import ContractSearchFilters, normalize_search_text

__all__ = [
    "MonthSet",
    "YearMonth",
    "month_range",
    "ContractSearchFilters",
    "normalize_search_text",
]
