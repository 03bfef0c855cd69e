from datetime import date

from parking_rentals.services import payment_service, reporting_service

CONTRACT_BODY = {
    "owner_name": "Nguyễn Văn An",
    "vehicle_model": "Honda City",
    "plate_number": "51G-456.78",
    "start_date": "2024-01-15",
    "end_date": "15/12/2024",
    "monthly_rate": 3000000,
}


def _create_contract(client, **overrides):
    body = dict(CONTRACT_BODY, **overrides)
    response = client.post("/api/contracts/", json=body)
    assert response.status_code == 201
    return response.get_json()["payload"]["contract"]


def test_healthcheck(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_create_and_list_contracts(client):
    contract = _create_contract(client)
    assert contract["amount_owed"] == 36000000
    assert contract["amount_owed_text"] == "36.000.000 ₫"
    assert contract["is_settled"] is False

    response = client.get("/api/contracts/?search=nguyen van")
    data = response.get_json()
    assert data["success"] is True
    assert [c["id"] for c in data["payload"]] == [contract["id"]]
    assert data["payload"][0]["next_due_date"] == "2024-02-15"


def test_payment_lifecycle(client):
    contract = _create_contract(client)

    response = client.post(
        "/api/payments/",
        json={
            "contract_id": contract["id"],
            "payment_date": "2024-01-20",
            "amount": 6000000,
            "months": ["2024-01", "2024-02"],
            "method": "Chuyển khoản",
        },
    )
    assert response.status_code == 201
    payload = response.get_json()["payload"]
    payment_id = payload["payment"]["id"]
    assert payload["reconciliation"]["amount_owed"] == 30000000
    assert payload["payment"]["months_covered"] == "Tháng 1/2024+Tháng 2/2024"

    response = client.put(f"/api/payments/{payment_id}", json={"amount": 9000000, "months": "Tháng 1-3/2024"})
    assert response.get_json()["payload"]["reconciliation"]["amount_owed"] == 27000000

    detail = client.get(f"/api/contracts/{contract['id']}").get_json()["payload"]
    assert detail["contract"]["months_paid_count"] == 3
    assert detail["payments"][0]["periods"][0]["start"] == "2024-01-15"
    assert detail["payments"][0]["invoice_months"] == "Tháng 1/2024 tới Tháng 3/2024"

    listed = client.get(f"/api/payments/?contract_id={contract['id']}").get_json()["payload"]
    assert [p["id"] for p in listed] == [payment_id]

    response = client.delete(f"/api/payments/{payment_id}")
    assert response.get_json()["payload"]["reconciliation"]["amount_owed"] == 36000000


def test_validation_errors_use_envelope(client):
    contract = _create_contract(client)

    response = client.post(
        "/api/payments/",
        json={"contract_id": contract["id"], "payment_date": "2024-01-20", "amount": 1000, "months": []},
    )
    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert response.get_json()["payload"] is None

    response = client.post("/api/contracts/", json=dict(CONTRACT_BODY, owner_name=""))
    assert response.status_code == 400

    response = client.get("/api/payments/")
    assert response.status_code == 400


def test_not_found_errors(client):
    assert client.get("/api/contracts/999").status_code == 404
    assert client.delete("/api/payments/999").status_code == 404
    response = client.get("/api/route-inesistente")
    assert response.status_code == 404
    assert response.get_json()["success"] is False


def test_rate_change_through_api(client):
    contract = _create_contract(client, start_date="2024-01-01", end_date="2024-03-31", monthly_rate=1200000)
    client.post(
        "/api/payments/",
        json={"contract_id": contract["id"], "payment_date": "2024-01-01", "amount": 3600000, "months": "Tháng 1-3/2024"},
    )

    response = client.put(f"/api/contracts/{contract['id']}", json={"monthly_rate": 1500000})

    assert response.status_code == 200
    assert response.get_json()["payload"]["contract"]["amount_owed"] == 900000


def test_month_options_and_recalculate(client):
    contract = _create_contract(client)

    months = client.get(f"/api/contracts/{contract['id']}/months").get_json()["payload"]
    assert len(months) == 12
    assert months[0]["key"] == "2024-01"

    response = client.post(f"/api/contracts/{contract['id']}/recalculate")
    assert response.get_json()["payload"]["amount_owed"] == 36000000

    response = client.post("/api/contracts/recalculate-all")
    assert response.get_json()["payload"]["changed_count"] == 0


def test_refund_fulfilment_endpoints(client):
    contract = _create_contract(client)
    response = client.post(
        "/api/payments/",
        json={"contract_id": contract["id"], "payment_date": "2024-02-01", "amount": -500000, "months": ["2024-01"]},
    )
    refund_id = response.get_json()["payload"]["payment"]["id"]

    pending = client.get("/api/payments/pending-refunds").get_json()["payload"]
    assert [p["id"] for p in pending] == [refund_id]

    response = client.post(f"/api/payments/{refund_id}/fulfill-refund")
    assert response.get_json()["payload"]["refund_status"] == "fulfilled"


def test_delete_contract(client):
    contract = _create_contract(client)
    assert client.delete(f"/api/contracts/{contract['id']}").status_code == 200
    assert client.get(f"/api/contracts/{contract['id']}").status_code == 404


def test_dashboard_summary(client):
    contract = _create_contract(client)
    client.post(
        "/api/payments/",
        json={
            "contract_id": contract["id"],
            "payment_date": "2024-01-20",
            "amount": 6000000,
            "months": ["2024-01", "2024-02"],
        },
    )

    payload = client.get("/api/reports/summary").get_json()["payload"]

    assert payload["total_contracts"] == 1
    assert payload["contracts_with_debt"] == 1
    assert payload["total_debt"] == 30000000
    assert payload["revenue_cash"] == 6000000
    assert payload["revenue_bank_transfer"] == 0


def test_dashboard_summary_by_period(make_contract):
    contract = make_contract()
    payment_service.add_payment(contract.id, "2024-03-05", 3_000_000, ["2024-01"], method="Chuyển khoản")
    payment_service.add_payment(contract.id, "2023-12-20", 3_000_000, ["2024-02"])

    summary = reporting_service.get_dashboard_summary(today=date(2024, 3, 10))

    assert summary.revenue_this_month == 3_000_000
    assert summary.revenue_this_year == 3_000_000
    assert summary.total_revenue == 6_000_000
    assert summary.revenue_bank_transfer == 3_000_000
    assert summary.due_status_counts["upcoming"] == 1
    assert summary.due_soon_count == 0


def test_export_csv(client):
    contract = _create_contract(client)
    client.post(
        "/api/payments/",
        json={"contract_id": contract["id"], "payment_date": "2024-01-20", "amount": 3000000, "months": ["2024-01"]},
    )

    response = client.get("/export/contracts")
    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0].startswith("contract_id;owner_name;plate_number")
    assert "Tháng 1/2024" in lines[1]
    assert "33.000.000" in lines[1]

    response = client.get(f"/export/contracts/{contract['id']}/payments")
    lines = response.get_data(as_text=True).splitlines()
    assert len(lines) == 2
    assert lines[1].split(";")[1] == "20/01/2024"
