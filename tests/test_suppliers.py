def test_create_supplier_with_defaults(client, seed, admin_headers):
    response = client.post(
        "/api/v1/suppliers/",
        json={
            "legal_name": "Motopartes SA",
            "commercial_name": "Motopartes",
            "tax_identification": "30-22222222-2",
            "payment_currency": "usd",
        },
        headers=admin_headers
    )

    assert response.status_code == 201
    supplier = response.json()["supplier"]
    assert supplier["payment_currency"] == "USD"
    assert supplier["status"] == "activo"
    assert supplier["vat_condition"] == "Responsable Inscripto"
    assert supplier["payment_methods"] == []


def test_duplicate_cuit_is_rejected(client, seed, admin_headers):
    response = client.post(
        "/api/v1/suppliers/",
        json={"legal_name": "Copia SA", "tax_identification": "30-11111111-1"},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert "30-11111111-1" in response.json()["detail"]


def test_select_list_prefers_commercial_name(client, db_session, seed, seller_headers):
    seed.supplier.commercial_name = "Honda"
    db_session.commit()

    response = client.get("/api/v1/suppliers/select", headers=seller_headers)

    assert response.status_code == 200
    assert response.json() == [{"id": seed.supplier.id, "name": "Honda"}]


def test_filter_by_status(client, seed, admin_headers):
    client.post(
        "/api/v1/suppliers/",
        json={"legal_name": "Inactivo SA", "tax_identification": "30-33333333-3", "status": "inactivo"},
        headers=admin_headers
    )

    response = client.get("/api/v1/suppliers/?status=inactivo", headers=admin_headers)

    assert [s["legal_name"] for s in response.json()["suppliers"]] == ["Inactivo SA"]


def test_update_supplier_cuit_collision(client, seed, admin_headers):
    other = client.post(
        "/api/v1/suppliers/",
        json={"legal_name": "Otro SA", "tax_identification": "30-44444444-4"},
        headers=admin_headers
    ).json()["supplier"]

    response = client.put(
        f"/api/v1/suppliers/{other['id']}",
        json={"tax_identification": "30-11111111-1"},
        headers=admin_headers
    )

    assert response.status_code == 400


def test_delete_supplier_with_motorcycles_is_blocked(client, seed, admin_headers, make_motorcycle):
    make_motorcycle(supplier_id=seed.supplier.id)

    response = client.delete(f"/api/v1/suppliers/{seed.supplier.id}", headers=admin_headers)

    assert response.status_code == 400
    assert "motocicletas" in response.json()["detail"]


def test_delete_supplier(client, seed, admin_headers):
    response = client.delete(f"/api/v1/suppliers/{seed.supplier.id}", headers=admin_headers)

    assert response.status_code == 200
    assert client.get(f"/api/v1/suppliers/{seed.supplier.id}", headers=admin_headers).status_code == 404
