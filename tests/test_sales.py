from app.shared.database.models import CurrentAccount, Motorcycle, Reservation

FINANCING = {
    "total_amount": 1200000,
    "down_payment": 200000,
    "number_of_installments": 10,
    "installment_amount": 100000,
    "payment_frequency": "MONTHLY",
    "interest_rate": 0,
    "start_date": "2026-01-10",
}


def reserve(client, headers, motorcycle_id, client_id, amount=150000):
    return client.post(
        "/api/v1/sales/reservations",
        json={"motorcycle_id": motorcycle_id, "client_id": client_id, "amount": amount, "currency": "ars"},
        headers=headers
    )


def test_reservation_marks_motorcycle_reserved(client, db_session, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle()

    response = reserve(client, seller_headers, motorcycle.id, seed.customer.id)

    assert response.status_code == 201
    reservation = response.json()["reservation"]
    assert reservation["status"] == "active"
    assert reservation["currency"] == "ARS"
    assert reservation["created_by_user_id"] == seed.users.seller.id

    db_session.refresh(motorcycle)
    assert motorcycle.state == "RESERVADO"
    assert motorcycle.client_id == seed.customer.id


def test_cannot_reserve_sold_motorcycle(client, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle(state="VENDIDO")

    response = reserve(client, seller_headers, motorcycle.id, seed.customer.id)

    assert response.status_code == 400
    assert "VENDIDO" in response.json()["detail"]


def test_reservation_requires_client_of_same_organization(client, db_session, seed, seller_headers, make_motorcycle):
    from app.shared.database.models import Client

    foreign = Client(organization_id=seed.other_org.id, first_name="Ext", last_name="Erno", tax_id="1")
    db_session.add(foreign)
    db_session.commit()
    motorcycle = make_motorcycle()

    response = reserve(client, seller_headers, motorcycle.id, foreign.id)

    assert response.status_code == 404
    db_session.refresh(motorcycle)
    assert motorcycle.state == "STOCK"


def test_cancel_reservation_returns_motorcycle_to_stock(client, db_session, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle()
    reservation_id = reserve(client, seller_headers, motorcycle.id, seed.customer.id).json()["reservation"]["id"]

    response = client.post(f"/api/v1/sales/reservations/{reservation_id}/cancel", headers=seller_headers)

    assert response.status_code == 200
    assert response.json()["reservation"]["status"] == "cancelled"
    db_session.refresh(motorcycle)
    assert motorcycle.state == "STOCK"
    assert motorcycle.client_id is None

    again = client.post(f"/api/v1/sales/reservations/{reservation_id}/cancel", headers=seller_headers)
    assert again.status_code == 400


def test_complete_sale_without_financing(client, db_session, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle()

    response = client.post(
        "/api/v1/sales/",
        json={"motorcycle_id": motorcycle.id, "client_id": seed.customer.id, "notes": "Entrega inmediata"},
        headers=seller_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["current_account"] is None
    assert data["motorcycle"]["state"] == "VENDIDO"
    assert data["motorcycle"]["seller_id"] == seed.users.seller.id
    assert data["motorcycle"]["sold_at"] is not None
    assert data["motorcycle"]["observations"] == "Entrega inmediata"


def test_sale_with_financing_creates_current_account(client, db_session, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle()

    response = client.post(
        "/api/v1/sales/",
        json={"motorcycle_id": motorcycle.id, "client_id": seed.customer.id, "current_account": FINANCING},
        headers=seller_headers
    )

    assert response.status_code == 201
    account = response.json()["current_account"]
    assert account["remaining_amount"] == 1000000
    assert account["status"] == "ACTIVE"
    assert account["next_due_date"] == "2026-02-10"
    assert account["end_date"] == "2026-11-10"
    assert db_session.query(CurrentAccount).filter(CurrentAccount.motorcycle_id == motorcycle.id).count() == 1


def test_invalid_financing_rolls_back_the_sale(client, db_session, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle()
    financing = dict(FINANCING, down_payment=5000000)

    response = client.post(
        "/api/v1/sales/",
        json={"motorcycle_id": motorcycle.id, "client_id": seed.customer.id, "current_account": financing},
        headers=seller_headers
    )

    assert response.status_code == 400
    db_session.expire_all()
    assert db_session.get(Motorcycle, motorcycle.id).state == "STOCK"


def test_complete_reservation(client, db_session, seed, seller_headers, make_motorcycle):
    motorcycle = make_motorcycle()
    reservation_id = reserve(client, seller_headers, motorcycle.id, seed.customer.id).json()["reservation"]["id"]

    response = client.post(
        f"/api/v1/sales/reservations/{reservation_id}/complete",
        json={"current_account": FINANCING},
        headers=seller_headers
    )

    assert response.status_code == 200
    assert response.json()["motorcycle"]["state"] == "VENDIDO"
    assert response.json()["current_account"]["total_amount"] == 1200000
    assert db_session.get(Reservation, reservation_id).status == "completed"


def test_list_sales_includes_profit(client, seed, admin_headers, make_motorcycle):
    make_motorcycle(state="VENDIDO", seller_id=seed.users.seller.id, cost_price=1000, retail_price=1500)
    make_motorcycle(state="STOCK")

    response = client.get("/api/v1/sales/", headers=admin_headers)

    assert response.status_code == 200
    sales = response.json()["sales"]
    assert len(sales) == 1
    assert sales[0]["profit"] == 500
    assert sales[0]["seller_name"] == "User Prueba"
