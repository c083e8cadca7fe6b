from app.shared.database.models import Payment

TERMS = {
    "total_amount": 1200,
    "down_payment": 200,
    "number_of_installments": 10,
    "installment_amount": 100,
    "payment_frequency": "MONTHLY",
    "start_date": "2026-01-10",
}


def open_account(client, headers, motorcycle_id, client_id, **overrides):
    payload = dict(TERMS, motorcycle_id=motorcycle_id, client_id=client_id, **overrides)
    return client.post("/api/v1/current-accounts/", json=payload, headers=headers)


def test_create_account(client, seed, admin_headers, make_motorcycle):
    motorcycle = make_motorcycle(state="VENDIDO")

    response = open_account(client, admin_headers, motorcycle.id, seed.customer.id)

    assert response.status_code == 201
    account = response.json()["account"]
    assert account["remaining_amount"] == 1000
    assert account["next_due_date"] == "2026-02-10"
    assert account["client_name"] == "Juan Pérez"
    assert account["motorcycle_label"] == "Honda CB 190R 2024"
    assert account["payments"] == []


def test_down_payment_cannot_exceed_total(client, seed, admin_headers, make_motorcycle):
    motorcycle = make_motorcycle()

    response = open_account(client, admin_headers, motorcycle.id, seed.customer.id, down_payment=5000)

    assert response.status_code == 400


def test_one_account_per_motorcycle(client, seed, admin_headers, make_motorcycle):
    motorcycle = make_motorcycle()
    open_account(client, admin_headers, motorcycle.id, seed.customer.id)

    response = open_account(client, admin_headers, motorcycle.id, seed.customer.id)

    assert response.status_code == 400
    assert "ya tiene una cuenta corriente" in response.json()["detail"]


def test_sellers_cannot_open_accounts(client, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle()

    assert open_account(client, seller_headers, motorcycle.id, seed.customer.id).status_code == 403


def test_record_installments_in_order(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]

    first = client.post(f"/api/v1/current-accounts/{account_id}/payments", json={"amount_paid": 100}, headers=cashier_headers)

    assert first.status_code == 201
    assert first.json()["payment"]["installment_number"] == 1
    assert first.json()["account"]["remaining_amount"] == 900
    assert first.json()["account"]["next_due_date"] == "2026-03-10"

    second = client.post(f"/api/v1/current-accounts/{account_id}/payments", json={"amount_paid": 100}, headers=cashier_headers)

    assert second.json()["payment"]["installment_number"] == 2
    assert second.json()["account"]["remaining_amount"] == 800
    assert second.json()["account"]["paid_installments"] == 2


def test_surplus_recalculates_installment(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]

    response = client.post(
        f"/api/v1/current-accounts/{account_id}/payments",
        json={"amount_paid": 300},
        headers=cashier_headers
    )

    account = response.json()["account"]
    assert account["remaining_amount"] == 700
    assert account["installment_amount"] == 78
    assert account["number_of_installments"] == 10


def test_surplus_reduces_installments(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]

    response = client.post(
        f"/api/v1/current-accounts/{account_id}/payments",
        json={"amount_paid": 300, "surplus_action": "REDUCE_INSTALLMENTS"},
        headers=cashier_headers
    )

    account = response.json()["account"]
    assert account["installment_amount"] == 100
    assert account["number_of_installments"] == 8
    assert "[INFO_ULTIMA_CUOTA]" in account["notes"]


def test_simple_payment_pays_off_account(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]

    response = client.post(
        f"/api/v1/current-accounts/{account_id}/simple-payments",
        json={"amount_paid": 1500, "payment_method": "Efectivo"},
        headers=cashier_headers
    )

    assert response.status_code == 201
    account = response.json()["account"]
    assert account["remaining_amount"] == 0
    assert account["status"] == "PAID_OFF"
    assert account["next_due_date"] is None

    again = client.post(
        f"/api/v1/current-accounts/{account_id}/simple-payments",
        json={"amount_paid": 10},
        headers=cashier_headers
    )
    assert again.status_code == 400
    assert "ya ha sido saldada" in again.json()["detail"]


def test_simple_payment_advances_due_date(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]

    response = client.post(
        f"/api/v1/current-accounts/{account_id}/simple-payments",
        json={"amount_paid": 50},
        headers=cashier_headers
    )

    assert response.json()["account"]["next_due_date"] == "2026-03-10"
    assert response.json()["account"]["remaining_amount"] == 950


def test_undo_payment_creates_debit_and_credit_entries(client, db_session, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]
    payment_id = client.post(
        f"/api/v1/current-accounts/{account_id}/payments",
        json={"amount_paid": 100, "notes": "Cuota enero"},
        headers=cashier_headers
    ).json()["payment"]["id"]

    response = client.post(f"/api/v1/current-accounts/payments/{payment_id}/undo", headers=cashier_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["payment"]["installment_version"] == "H"
    assert data["payment"]["notes"] == "Cuota enero (Anulación H)"
    assert data["account"]["remaining_amount"] == 1000
    db_session.expire_all()
    assert db_session.get(Payment, payment_id).installment_version == "D"

    again = client.post(f"/api/v1/current-accounts/payments/{payment_id}/undo", headers=cashier_headers)
    assert again.status_code == 400


def test_undo_reactivates_paid_off_account(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]
    payment_id = client.post(
        f"/api/v1/current-accounts/{account_id}/simple-payments",
        json={"amount_paid": 1000},
        headers=cashier_headers
    ).json()["payment"]["id"]

    response = client.post(f"/api/v1/current-accounts/payments/{payment_id}/undo", headers=cashier_headers)

    assert response.json()["account"]["status"] == "ACTIVE"


def test_cancel_payment_leaves_installment_pending(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]
    payment_id = client.post(
        f"/api/v1/current-accounts/{account_id}/payments",
        json={"amount_paid": 100},
        headers=cashier_headers
    ).json()["payment"]["id"]

    response = client.post(f"/api/v1/current-accounts/payments/{payment_id}/cancel", headers=cashier_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["payment"]["payment_date"] is None
    assert data["payment"]["installment_number"] == 1
    assert data["account"]["remaining_amount"] == 1000
    assert data["account"]["installment_amount"] == 112
    versions = sorted(p["installment_version"] or "-" for p in data["account"]["payments"])
    assert versions == ["-", "D", "H"]


def test_cancel_requires_installment_payment(client, seed, admin_headers, cashier_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]
    payment_id = client.post(
        f"/api/v1/current-accounts/{account_id}/simple-payments",
        json={"amount_paid": 100},
        headers=cashier_headers
    ).json()["payment"]["id"]

    response = client.post(f"/api/v1/current-accounts/payments/{payment_id}/cancel", headers=cashier_headers)

    assert response.status_code == 400


def test_schedule(client, seed, admin_headers, seller_headers, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]

    response = client.get(f"/api/v1/current-accounts/{account_id}/schedule", headers=seller_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["principal"] == 1000
    assert data["periodic_rate"] == 0
    assert len(data["schedule"]) == 10
    assert data["schedule"][0]["due_date"] == "2026-02-10"
    assert all(e["calculated_installment_amount"] == 100 for e in data["schedule"])

    account = client.get(f"/api/v1/current-accounts/{account_id}", headers=seller_headers).json()["account"]
    assert data["schedule"][-1]["due_date"] == account["end_date"] == "2026-11-10"


def test_list_filters_by_status(client, seed, admin_headers, cashier_headers, make_motorcycle):
    open_account(client, admin_headers, make_motorcycle().id, seed.customer.id)
    paid_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]
    client.post(f"/api/v1/current-accounts/{paid_id}/simple-payments", json={"amount_paid": 1000}, headers=cashier_headers)

    response = client.get("/api/v1/current-accounts/?status=PAID_OFF", headers=admin_headers)

    assert response.json()["total"] == 1
    assert response.json()["accounts"][0]["id"] == paid_id


def test_accounts_are_isolated_per_organization(client, seed, admin_headers, headers_for, make_motorcycle):
    account_id = open_account(client, admin_headers, make_motorcycle().id, seed.customer.id).json()["account"]["id"]

    response = client.get(f"/api/v1/current-accounts/{account_id}", headers=headers_for(seed.users.other_admin))

    assert response.status_code == 404
