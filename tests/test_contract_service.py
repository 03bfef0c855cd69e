from datetime import date

import pytest

from parking_rentals.extensions import db
from parking_rentals.models import PaymentRecord
from parking_rentals.services import contract_service, payment_service
from parking_rentals.services.dto.contract_filters import ContractSearchFilters, normalize_search_text
from parking_rentals.services.exceptions import ContractNotFound, InvalidAmount, InvalidDate, ValidationError

TODAY = date(2024, 3, 1)


def _quarter_contract(make_contract, rate):
    """Contratto di tre mesi (gen-mar 2024) interamente pagato alla tariffa ``rate``."""
    contract = make_contract(
        start_date=date(2024, 1, 1), end_date=date(2024, 3, 31), monthly_rate=rate
    )
    payment_service.add_payment(contract.id, "2024-01-01", rate * 3, "Tháng 1-3/2024", today=TODAY)
    assert contract.is_settled
    return contract


def test_rate_increase_adds_surcharge_for_paid_months(make_contract):
    contract = _quarter_contract(make_contract, 1_200_000)

    _, result = contract_service.update_contract(contract.id, {"monthly_rate": 1_500_000}, today=TODAY)

    assert result.amount_owed == 900_000
    assert not contract.is_settled
    assert contract.months_paid_count == 3

    surcharge = [p for p in payment_service.list_payments_by_contract(contract.id) if p.entry_type == "surcharge"]
    assert len(surcharge) == 1
    assert surcharge[0].amount_paid == 0
    assert surcharge[0].payment_method == "Điều chỉnh giá"
    assert surcharge[0].rate_applied == 1_500_000
    assert surcharge[0].months_covered == "Tháng 3/2024"
    assert surcharge[0].adjusted_months == "Tháng 1/2024+Tháng 2/2024+Tháng 3/2024"


def test_rate_decrease_creates_pending_refund(make_contract):
    contract = _quarter_contract(make_contract, 1_500_000)

    _, result = contract_service.update_contract(contract.id, {"monthly_rate": 1_200_000}, today=TODAY)

    refunds = payment_service.list_pending_refunds()
    assert len(refunds) == 1
    assert refunds[0].amount_paid == -900_000
    assert refunds[0].payment_method == "Hoàn tiền"
    assert result.amount_owed == 0
    assert contract.is_settled
    assert contract.months_paid_count == 3


def test_rate_change_without_paid_months_records_nothing(make_contract):
    contract = make_contract()
    _, result = contract_service.update_contract(contract.id, {"monthly_rate": 2_000_000}, today=TODAY)

    assert result.amount_owed == 24_000_000
    assert db.session.query(PaymentRecord).count() == 0


def test_rate_raised_then_restored_issues_no_refund(make_contract):
    contract = _quarter_contract(make_contract, 1_200_000)

    contract_service.update_contract(contract.id, {"monthly_rate": 1_500_000}, today=TODAY)
    _, result = contract_service.update_contract(contract.id, {"monthly_rate": 1_200_000}, today=TODAY)

    assert payment_service.list_pending_refunds() == []
    assert result.amount_owed == 0
    assert contract.is_settled
    types = [p.entry_type for p in payment_service.list_payments_by_contract(contract.id)]
    assert types == ["payment", "surcharge"]


def test_paid_surcharge_is_refunded_when_rate_falls_back(make_contract):
    contract = _quarter_contract(make_contract, 1_200_000)
    contract_service.update_contract(contract.id, {"monthly_rate": 1_500_000}, today=TODAY)
    payment_service.add_payment(contract.id, "2024-03-01", 900_000, "Tháng 1-3/2024", today=TODAY)
    assert contract.is_settled

    _, result = contract_service.update_contract(contract.id, {"monthly_rate": 1_200_000}, today=TODAY)

    refunds = payment_service.list_pending_refunds()
    assert [r.amount_paid for r in refunds] == [-900_000]
    assert result.amount_owed == 0


def test_months_paid_at_other_rates_are_not_repriced(make_contract):
    contract = make_contract(start_date=date(2024, 1, 1), end_date=date(2024, 3, 31), monthly_rate=1_000_000)
    payment_service.add_payment(contract.id, "2024-01-01", 1_000_000, "Tháng 1/2024", today=TODAY)
    contract_service.update_contract(contract.id, {"monthly_rate": 1_200_000}, today=TODAY)
    payment_service.add_payment(contract.id, "2024-02-01", 2_400_000, "Tháng 2-3/2024", today=TODAY)

    contract_service.update_contract(contract.id, {"monthly_rate": 1_000_000}, today=TODAY)

    refunds = payment_service.list_pending_refunds()
    assert [r.amount_paid for r in refunds] == [-400_000]
    assert refunds[0].adjusted_months == "Tháng 2/2024+Tháng 3/2024"


def test_surcharge_edited_to_negative_amount_becomes_pending_refund(make_contract):
    contract = _quarter_contract(make_contract, 1_200_000)
    contract_service.update_contract(contract.id, {"monthly_rate": 1_500_000}, today=TODAY)
    surcharge = [p for p in payment_service.list_payments_by_contract(contract.id) if p.entry_type == "surcharge"][0]

    edited, _ = payment_service.edit_payment(surcharge.id, amount=-300_000, today=TODAY)

    assert edited.entry_type == "refund"
    assert edited.refund_status == "pending"
    assert [r.id for r in payment_service.list_pending_refunds()] == [surcharge.id]


def test_deleting_repriced_payment_uncovers_its_months(make_contract):
    contract = _quarter_contract(make_contract, 1_200_000)
    contract_service.update_contract(contract.id, {"monthly_rate": 1_500_000}, today=TODAY)
    original = [p for p in payment_service.list_payments_by_contract(contract.id) if p.entry_type == "payment"][0]

    result = payment_service.delete_payment(original.id, today=TODAY)

    assert result.months_paid_count == 1
    assert result.coverage_text == "Tháng 3/2024"
    assert result.amount_owed == 4_500_000


def test_update_without_rate_change_keeps_history(make_contract):
    contract = make_contract()
    contract_service.update_contract(contract.id, {"owner_name": "Trần Thị Bình"}, today=TODAY)
    assert contract.owner_name == "Trần Thị Bình"
    assert contract.amount_owed == 36_000_000
    assert db.session.query(PaymentRecord).count() == 0


def test_delete_contract_cascades_payments(make_contract):
    contract = make_contract()
    payment_service.add_payment(contract.id, "2024-01-15", 3_000_000, ["2024-01"], today=TODAY)

    contract_service.delete_contract(contract.id)

    assert db.session.query(PaymentRecord).count() == 0
    with pytest.raises(ContractNotFound):
        contract_service.get_contract(contract.id)


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"owner_name": " "}, ValidationError),
        ({"plate_number": None}, ValidationError),
        ({"start_date": "31/02/2024"}, InvalidDate),
        ({"end_date": None}, InvalidDate),
        ({"end_date": date(2024, 1, 15)}, InvalidDate),
        ({"monthly_rate": -1}, InvalidAmount),
        ({"monthly_rate": "tanti"}, InvalidAmount),
    ],
)
def test_create_contract_validation(make_contract, overrides, error):
    with pytest.raises(error):
        make_contract(**overrides)


def test_open_ended_contract_needs_no_end_date(make_contract):
    contract = make_contract(
        today=date(2024, 4, 1), start_date="01/01/2024", end_date=None, is_open_ended="1", monthly_rate="1000000"
    )
    assert contract.is_open_ended
    assert contract.end_date is None
    assert contract.amount_owed == 4_000_000


def test_list_contracts_filters_and_sorts(make_contract):
    settled = make_contract(owner_name="Lê Văn Cường", monthly_rate=0)
    overdue = make_contract(owner_name="Đặng Thị Dung", plate_number="30F-999.99")
    upcoming = make_contract(owner_name="Phạm Minh Đức", start_date=date(2024, 2, 20))
    payment_service.add_payment(upcoming.id, "2024-02-20", 3_000_000, ["2024-02"], today=TODAY)

    everyone = contract_service.list_contracts(today=TODAY)
    assert [c.id for c in everyone] == [overdue.id, upcoming.id, settled.id]

    by_name = contract_service.list_contracts(ContractSearchFilters(search="dang thi"), today=TODAY)
    assert [c.id for c in by_name] == [overdue.id]

    unpaid = contract_service.list_contracts(ContractSearchFilters(status="unpaid"), today=TODAY)
    assert settled.id not in [c.id for c in unpaid]

    late = contract_service.list_contracts(ContractSearchFilters(reminder="overdue"), today=TODAY)
    assert [c.id for c in late] == [overdue.id]

    soon = contract_service.list_contracts(ContractSearchFilters(reminder="upcoming"), today=TODAY)
    assert [c.id for c in soon] == [upcoming.id]


def test_filters_from_query_args():
    filters = ContractSearchFilters.from_query_args({"q": " Hùng ", "status": "PAID", "reminder": "later"})
    assert filters.search == "Hùng"
    assert filters.status == "paid"
    assert filters.reminder is None
    assert filters.normalized_search == "hung"
    assert normalize_search_text("Đặng Văn Hùng") == "dang van hung"


def test_contract_detail_includes_periods(make_contract):
    contract = make_contract()
    payment_service.add_payment(contract.id, "2024-01-15", 6_000_000, ["2024-01", "2024-02"], today=TODAY)

    detail = contract_service.get_contract_detail(contract.id, today=TODAY)

    row = detail["payments"][0]
    assert row["period_label"] == "1/2024 tới 2/2024"
    assert row["invoice_months"] == "Tháng 1/2024 tới Tháng 2/2024"
    assert row["invoice_period"] == "Từ 15/01/2024 tới 14/03/2024"
    assert detail["next_due_date"] == date(2024, 4, 15)
    assert detail["reconciliation"].amount_owed == 30_000_000


def test_month_options_mark_paid_months(make_contract):
    contract = make_contract()
    payment_service.add_payment(contract.id, "2024-01-15", 3_000_000, ["2024-01"], today=TODAY)

    options = contract_service.month_options(contract.id, today=TODAY)

    assert len(options) == 12
    assert options[0] == {"key": "2024-01", "label": "Tháng 1/2024", "paid": True}
    assert not options[1]["paid"]
