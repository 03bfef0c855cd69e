"""Fixture comuni: app Flask con SQLite in memoria, client e contratti di prova."""

from datetime import date

import pytest

from config import TestConfig
from parking_rentals import create_app
from parking_rentals.extensions import db
from parking_rentals.services import contract_service


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_contract(app):
    """Crea un contratto a termine 15/01/2024 - 15/12/2024 da 3.000.000 al mese."""

    def _make(today=date(2024, 1, 20), **overrides):
        data = {
            "owner_name": "Nguyễn Văn An",
            "address": "12 Lê Lợi, Quận 1",
            "phone_number": "0901234567",
            "vehicle_model": "Toyota Vios",
            "plate_number": "51A-123.45",
            "parking_area": "2",
            "start_date": date(2024, 1, 15),
            "end_date": date(2024, 12, 15),
            "is_open_ended": False,
            "monthly_rate": 3_000_000,
        }
        data.update(overrides)
        contract, _ = contract_service.create_contract(data, today=today)
        return contract

    return _make
