"""
Parser/serializzatore del campo testuale "mesi coperti" (months_covered).

Formati accettati in lettura (più token uniti da ``+``, ognuno interpretato
in modo indipendente e poi unito agli altri):

- mese singolo:            ``Tháng 3/2024`` (il prefisso ``Tháng`` è facoltativo)
- intervallo nello stesso anno: ``Tháng 3-5/2024``
- intervallo generico:     ``3/2025 tới 6/2025``, ``Tháng 7/2025 tới Tháng 7/2026``,
                           ``Tháng 3/2024 - 2/2025``

Formato canonico in scrittura: un token ``Tháng M/YYYY`` per ogni mese, in
ordine cronologico, uniti da ``+``.

Il parser è pensato per essere tollerante: un token non riconosciuto non
solleva eccezioni ma viene conservato così com'è (dati storici sempre
leggibili).
"""

from __future__ import annotations

import re
import unicodedata
from typing import List, Optional

from parking_rentals.services.dto.month_set import MonthSet, YearMonth, month_range

TOKEN_SEPARATOR = "+"
NO_MONTHS_LABEL = "CHƯA CHỌN THÁNG"

_PREFIX = r"(?:th[áa]ng\s*)?"
_MONTH_YEAR = r"(\d{1,2})\s*/\s*(\d{4})"

SINGLE_REGEX = re.compile(rf"^{_PREFIX}{_MONTH_YEAR}$", re.IGNORECASE)
INTRA_YEAR_REGEX = re.compile(
    rf"^{_PREFIX}(\d{{1,2}})\s*-\s*(\d{{1,2}})\s*/\s*(\d{{4}})$", re.IGNORECASE
)
RANGE_TOI_REGEX = re.compile(
    rf"^{_PREFIX}{_MONTH_YEAR}\s+t[ớo]i\s+{_PREFIX}{_MONTH_YEAR}$", re.IGNORECASE
)
RANGE_DASH_REGEX = re.compile(
    rf"^{_PREFIX}{_MONTH_YEAR}\s*-\s*{_PREFIX}{_MONTH_YEAR}$", re.IGNORECASE
)


def parse_months_covered(text: Optional[str]) -> MonthSet:
    """Interpreta il testo dei mesi coperti; non solleva mai eccezioni."""
    if not text:
        return MonthSet()

    months: set = set()
    opaque: List[str] = []

    for raw_token in text.split(TOKEN_SEPARATOR):
        token = " ".join(unicodedata.normalize("NFC", raw_token).split())
        if not token:
            continue
        parsed = _parse_token(token)
        if parsed is None:
            opaque.append(token)
        else:
            months.update(parsed)

    return MonthSet(frozenset(months), tuple(opaque))


def format_months_covered(month_set: MonthSet) -> str:
    """Forma canonica: ``Tháng M/YYYY`` per ogni mese, in ordine, uniti da ``+``."""
    tokens = [month_label(ym) for ym in month_set.sorted()]
    tokens.extend(month_set.opaque)
    return TOKEN_SEPARATOR.join(tokens)


def format_as_single_range(month_set: MonthSet) -> str:
    """
    Etichetta sintetica per i nuovi pagamenti e le stampe.

    Mesi non contigui vengono riassunti dal loro intervallo (primo/ultimo
    mese): per l'appartenenza esatta usare solo format/parse.
    """
    first, last = month_set.first, month_set.last
    if first is None:
        return NO_MONTHS_LABEL
    if first == last:
        return month_label(first)
    return f"{first.month}/{first.year} tới {last.month}/{last.year}"


def format_range_for_invoice(month_set: MonthSet) -> str:
    """Etichetta per la ricevuta: ``Tháng 7/2025 tới Tháng 7/2026``."""
    first, last = month_set.first, month_set.last
    if first is None:
        return ""
    if first == last:
        return month_label(first)
    return f"{month_label(first)} tới {month_label(last)}"


def month_label(ym: YearMonth) -> str:
    return f"Tháng {ym.month}/{ym.year}"


def _parse_token(token: str) -> Optional[List[YearMonth]]:
    match = SINGLE_REGEX.match(token)
    if match:
        month = _year_month(match.group(1), match.group(2))
        return [month] if month else None

    match = INTRA_YEAR_REGEX.match(token)
    if match:
        start = _year_month(match.group(1), match.group(3))
        end = _year_month(match.group(2), match.group(3))
        return _expand(start, end)

    match = RANGE_TOI_REGEX.match(token) or RANGE_DASH_REGEX.match(token)
    if match:
        start = _year_month(match.group(1), match.group(2))
        end = _year_month(match.group(3), match.group(4))
        return _expand(start, end)

    return None


def _expand(start: Optional[YearMonth], end: Optional[YearMonth]) -> Optional[List[YearMonth]]:
    if start is None or end is None or start > end:
        return None
    return month_range(start, end)


def _year_month(month: str, year: str) -> Optional[YearMonth]:
    try:
        return YearMonth(int(year), int(month))
    except ValueError:
        return None
