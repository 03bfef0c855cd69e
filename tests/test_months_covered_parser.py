import unicodedata

from parking_rentals.parsers.months_covered_parser import (
    NO_MONTHS_LABEL,
    format_as_single_range,
    format_months_covered,
    format_range_for_invoice,
    parse_months_covered,
)
from parking_rentals.services.dto.month_set import MonthSet, YearMonth


def ym(year, month):
    return YearMonth(year, month)


def test_parse_single_month():
    assert parse_months_covered("Tháng 3/2024") == MonthSet.of(ym(2024, 3))


def test_parse_single_month_without_prefix():
    assert parse_months_covered("3/2024").months == {ym(2024, 3)}


def test_parse_cross_year_range_with_toi():
    result = parse_months_covered("3/2025 tới 6/2025")
    assert result.sorted() == [ym(2025, 3), ym(2025, 4), ym(2025, 5), ym(2025, 6)]


def test_parse_range_with_prefix_on_both_sides():
    result = parse_months_covered("Tháng 7/2025 tới Tháng 7/2026")
    assert len(result) == 13
    assert result.first == ym(2025, 7)
    assert result.last == ym(2026, 7)


def test_parse_intra_year_range_and_single():
    result = parse_months_covered("Tháng 3-5/2024+Tháng 8/2024")
    assert result.sorted() == [ym(2024, 3), ym(2024, 4), ym(2024, 5), ym(2024, 8)]
    assert not result.opaque


def test_parse_dash_range_across_years():
    result = parse_months_covered("Tháng 11/2024 - 2/2025")
    assert result.sorted() == [ym(2024, 11), ym(2024, 12), ym(2025, 1), ym(2025, 2)]


def test_parse_merges_duplicates():
    result = parse_months_covered("Tháng 1/2024+Tháng 1-2/2024+Tháng 2/2024")
    assert len(result) == 2


def test_parse_tolerates_case_whitespace_and_decomposed_accents():
    text = unicodedata.normalize("NFD", "  THÁNG  3 / 2024 +tháng 4/2024 ")
    assert parse_months_covered(text).sorted() == [ym(2024, 3), ym(2024, 4)]


def test_parse_keeps_unrecognized_tokens_as_opaque():
    result = parse_months_covered("Tháng 1/2024+Tháng 13/2024+Tháng 5-3/2024+tiền cọc")
    assert result.sorted() == [ym(2024, 1)]
    assert result.opaque == ("Tháng 13/2024", "Tháng 5-3/2024", "tiền cọc")
    assert len(result) == 1


def test_parse_empty_and_blank():
    assert parse_months_covered("").is_empty
    assert parse_months_covered(None).is_empty
    assert parse_months_covered("  + ").is_empty


def test_format_is_canonical_and_sorted():
    month_set = MonthSet.of(ym(2025, 1), ym(2024, 12), ym(2024, 3))
    assert format_months_covered(month_set) == "Tháng 3/2024+Tháng 12/2024+Tháng 1/2025"


def test_format_appends_opaque_tokens():
    month_set = MonthSet(frozenset({ym(2024, 2)}), ("ghi chú cũ",))
    assert format_months_covered(month_set) == "Tháng 2/2024+ghi chú cũ"


def test_round_trip():
    samples = [
        MonthSet(),
        MonthSet.of(ym(2024, 1)),
        MonthSet.span(ym(2023, 11), ym(2024, 2)) | MonthSet.of(ym(2024, 9)),
        MonthSet(frozenset({ym(2024, 5)}), ("Tháng 13/2024",)),
    ]
    for month_set in samples:
        assert parse_months_covered(format_months_covered(month_set)) == month_set


def test_format_as_single_range():
    assert format_as_single_range(MonthSet()) == NO_MONTHS_LABEL
    assert format_as_single_range(MonthSet.of(ym(2024, 3))) == "Tháng 3/2024"
    assert format_as_single_range(MonthSet.span(ym(2024, 3), ym(2024, 6))) == "3/2024 tới 6/2024"


def test_format_as_single_range_summarizes_gaps():
    month_set = MonthSet.of(ym(2024, 1), ym(2024, 6))
    assert format_as_single_range(month_set) == "1/2024 tới 6/2024"
    assert not month_set.is_contiguous


def test_format_range_for_invoice():
    month_set = MonthSet.span(ym(2025, 7), ym(2026, 7))
    assert format_range_for_invoice(month_set) == "Tháng 7/2025 tới Tháng 7/2026"
    assert format_range_for_invoice(MonthSet()) == ""
