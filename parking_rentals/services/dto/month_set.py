"""Tipi valore per l'insieme dei mesi coperti da un pagamento."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True, order=True)
class YearMonth:
    """Mese di calendario (anno, mese 1-12)."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Mese fuori intervallo: {self.month}")
        if self.year < 1:
            raise ValueError(f"Anno non valido: {self.year}")

    @classmethod
    def from_date(cls, value: date) -> "YearMonth":
        return cls(value.year, value.month)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "YearMonth":
        return cls(ordinal // 12, ordinal % 12 + 1)

    @property
    def ordinal(self) -> int:
        return self.year * 12 + (self.month - 1)

    @property
    def key(self) -> str:
        """Chiave compatta ``YYYY-MM`` (usata dalle checkbox di selezione)."""
        return f"{self.year:04d}-{self.month:02d}"

    def shift(self, months: int) -> "YearMonth":
        return YearMonth.from_ordinal(self.ordinal + months)

    def first_day(self) -> date:
        return date(self.year, self.month, 1)


def month_range(start: YearMonth, end: YearMonth) -> List[YearMonth]:
    """Mesi da ``start`` a ``end`` inclusi (lista vuota se invertiti)."""
    return [YearMonth.from_ordinal(o) for o in range(start.ordinal, end.ordinal + 1)]


@dataclass(frozen=True)
class MonthSet:
    """
    Insieme canonico di mesi pagati.

    - ``months``: mesi riconosciuti, senza duplicati; l'iterazione è sempre
      in ordine cronologico.
    - ``opaque``: token storici non interpretabili, conservati testualmente
      (nell'ordine in cui sono stati incontrati) per non perdere dati legacy.
    """

    months: FrozenSet[YearMonth] = field(default_factory=frozenset)
    opaque: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "months", frozenset(self.months))
        cleaned: List[str] = []
        for token in self.opaque:
            token = (token or "").strip()
            if token and token not in cleaned:
                cleaned.append(token)
        object.__setattr__(self, "opaque", tuple(cleaned))

    @classmethod
    def of(cls, *months: YearMonth) -> "MonthSet":
        return cls(frozenset(months))

    @classmethod
    def span(cls, start: YearMonth, end: YearMonth) -> "MonthSet":
        return cls(frozenset(month_range(start, end)))

    @classmethod
    def union_all(cls, sets: Iterable["MonthSet"]) -> "MonthSet":
        result = cls()
        for item in sets:
            result = result | item
        return result

    def __len__(self) -> int:
        return len(self.months)

    def __iter__(self) -> Iterator[YearMonth]:
        return iter(self.sorted())

    def __contains__(self, item: object) -> bool:
        return item in self.months

    def __or__(self, other: "MonthSet") -> "MonthSet":
        return self.union(other)

    def union(self, other: "MonthSet") -> "MonthSet":
        return MonthSet(self.months | other.months, self.opaque + other.opaque)

    def sorted(self) -> List[YearMonth]:
        return sorted(self.months)

    @property
    def is_empty(self) -> bool:
        return not self.months and not self.opaque

    @property
    def first(self) -> Optional[YearMonth]:
        return min(self.months) if self.months else None

    @property
    def last(self) -> Optional[YearMonth]:
        return max(self.months) if self.months else None

    @property
    def is_contiguous(self) -> bool:
        if not self.months:
            return False
        return self.last.ordinal - self.first.ordinal + 1 == len(self.months)
