from datetime import datetime

from app.shared.database.models import Reservation


def test_sales_report_groups_amounts_by_currency(client, seed, admin_headers, make_motorcycle):
    seller_id = seed.users.seller.id
    make_motorcycle(state="VENDIDO", sold_at=datetime(2026, 3, 5), seller_id=seller_id, cost_price=1000, retail_price=1500)
    make_motorcycle(state="VENDIDO", sold_at=datetime(2026, 3, 20), seller_id=seller_id, cost_price=2000, retail_price=2500)
    make_motorcycle(
        state="VENDIDO", sold_at=datetime(2026, 4, 2), currency="USD", branch_id=None,
        cost_price=3000, retail_price=3600
    )
    make_motorcycle(state="STOCK")

    response = client.get("/api/v1/reports/sales", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    summary = data["summary"]
    assert summary["total_sales"] == 3
    assert summary["total_revenue"] == {"ARS": 4000, "USD": 3600}
    assert summary["total_profit"] == {"ARS": 1000, "USD": 600}
    assert summary["average_price"]["ARS"] == 2000
    assert [g["key"] for g in data["groups"]["by_month"]] == ["2026-03", "2026-04"]
    labels = {g["label"] for g in data["groups"]["by_seller"]}
    assert labels == {"User Prueba", "Desconocido"}
    assert "Sin Sucursal" in {g["label"] for g in data["groups"]["by_branch"]}


def test_sales_report_date_filter(client, seed, admin_headers, make_motorcycle):
    make_motorcycle(state="VENDIDO", sold_at=datetime(2026, 3, 5, 18, 30))
    make_motorcycle(state="VENDIDO", sold_at=datetime(2026, 4, 2))

    response = client.get(
        "/api/v1/reports/sales?start_date=2026-03-01&end_date=2026-03-05",
        headers=admin_headers
    )

    assert response.json()["summary"]["total_sales"] == 1


def test_invalid_date_range(client, seed, admin_headers):
    response = client.get(
        "/api/v1/reports/sales?start_date=2026-05-01&end_date=2026-04-01",
        headers=admin_headers
    )

    assert response.status_code == 400


def test_reports_are_for_admins(client, seed, seller_headers, cashier_headers):
    assert client.get("/api/v1/reports/inventory", headers=seller_headers).status_code == 403
    assert client.get("/api/v1/reports/inventory", headers=cashier_headers).status_code == 403


def test_inventory_report(client, seed, admin_headers, make_motorcycle):
    make_motorcycle(state="STOCK", cost_price=100, retail_price=150)
    make_motorcycle(state="RESERVADO", cost_price=200, retail_price=250)
    make_motorcycle(state="VENDIDO")
    make_motorcycle(state="ELIMINADO")

    response = client.get("/api/v1/reports/inventory", headers=admin_headers)

    summary = response.json()["summary"]
    assert summary["total"] == 3
    assert summary["in_stock"] == 2
    assert summary["sold"] == 1
    assert summary["stock_cost_value"] == {"ARS": 300}
    assert summary["stock_retail_value"] == {"ARS": 400}


def test_reservations_report_conversion_rate(client, db_session, seed, admin_headers, make_motorcycle):
    for status in ["completed", "cancelled", "active", "completed"]:
        motorcycle = make_motorcycle()
        db_session.add(Reservation(
            organization_id=seed.org.id, motorcycle_id=motorcycle.id, client_id=seed.customer.id,
            amount=1000, currency="ARS", status=status
        ))
    db_session.commit()

    response = client.get("/api/v1/reports/reservations", headers=admin_headers)

    summary = response.json()["summary"]
    assert summary["total_reservations"] == 4
    assert summary["completed_reservations"] == 2
    assert summary["expired_reservations"] == 0
    assert summary["conversion_rate"] == 50
    assert summary["total_amount"] == {"ARS": 4000}
    statuses = [g["key"] for g in response.json()["groups"]["by_status"]]
    assert statuses[:4] == ["active", "completed", "cancelled", "expired"]


def test_suppliers_report_uses_cost_of_supplied_motorcycles(client, seed, admin_headers, make_motorcycle):
    make_motorcycle(supplier_id=seed.supplier.id, cost_price=1000)
    make_motorcycle(supplier_id=seed.supplier.id, cost_price=500, currency="USD")
    make_motorcycle(cost_price=999)

    response = client.get("/api/v1/reports/suppliers", headers=admin_headers)

    data = response.json()
    assert data["summary"]["total_suppliers"] == 1
    assert data["summary"]["total_purchases"] == {"ARS": 1000, "USD": 500}
    assert data["details"][0]["motos"] == 2


def test_current_accounts_report(client, seed, admin_headers, cashier_headers, make_motorcycle):
    motorcycle = make_motorcycle(state="VENDIDO")
    account_id = client.post(
        "/api/v1/current-accounts/",
        json={
            "motorcycle_id": motorcycle.id, "client_id": seed.customer.id, "total_amount": 1000,
            "number_of_installments": 4, "installment_amount": 250, "start_date": "2026-01-01"
        },
        headers=admin_headers
    ).json()["account"]["id"]
    client.post(f"/api/v1/current-accounts/{account_id}/payments", json={"amount_paid": 250}, headers=cashier_headers)

    response = client.get("/api/v1/reports/current-accounts", headers=admin_headers)

    summary = response.json()["summary"]
    assert summary["total_accounts"] == 1
    assert summary["total_paid"] == {"ARS": 250}
    assert summary["total_pending"] == {"ARS": 750}


def test_report_pdf(client, seed, admin_headers, make_motorcycle):
    make_motorcycle(state="VENDIDO", sold_at=datetime(2026, 3, 5), seller_id=seed.users.seller.id)

    response = client.get("/api/v1/reports/sales/pdf", headers=admin_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "reporte-sales-" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_unknown_report_kind(client, seed, admin_headers):
    assert client.get("/api/v1/reports/ventas", headers=admin_headers).status_code == 422
