from datetime import date

import pytest

import manage
from parking_rentals.extensions import db


def test_parser_reads_reference_date():
    args = manage.build_parser().parse_args(["recalculate-all", "--today", "2024-05-01"])
    assert args.today == date(2024, 5, 1)
    assert args.handler is manage.recalculate_all


def test_parser_rejects_bad_date():
    with pytest.raises(SystemExit):
        manage.build_parser().parse_args(["recalculate-all", "--today", "01/05/2024"])


def test_recalculate_all_command(app, make_contract):
    contract = make_contract(
        today=date(2024, 4, 1),
        start_date=date(2024, 1, 1),
        end_date=None,
        is_open_ended=True,
        monthly_rate=1_000_000,
    )
    args = manage.build_parser().parse_args(["recalculate-all", "--today", "2024-06-01"])

    assert manage.recalculate_all(app, args) == 0
    db.session.refresh(contract)
    assert contract.amount_owed == 6_000_000
