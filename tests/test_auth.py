from conftest import PASSWORD


def test_login_json_returns_token_with_organization(client, seed):
    response = client.post("/api/v1/auth/login-json", json={"email": "admin@sur.test", "password": PASSWORD})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["organization_id"] == seed.org.id
    assert data["user"]["organization_name"] == "Motos del Sur"


def test_login_rejects_wrong_password(client, seed):
    response = client.post("/api/v1/auth/login-json", json={"email": "admin@sur.test", "password": "otra-clave"})

    assert response.status_code == 401


def test_login_rejects_inactive_organization(client, db_session, seed):
    seed.org.is_active = False
    db_session.commit()

    response = client.post("/api/v1/auth/login-json", json={"email": "admin@sur.test", "password": PASSWORD})

    assert response.status_code == 403


def test_me_requires_token(client, seed):
    response = client.get("/api/v1/auth/me")

    assert response.status_code in (401, 403)


def test_me_rejects_invalid_token(client, seed):
    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer no-es-un-jwt"})

    assert response.status_code == 401


def test_root_needs_organization_header_for_tenant_endpoints(client, seed, headers_for):
    response = client.get("/api/v1/clients/", headers=headers_for(seed.users.root))

    assert response.status_code == 403
    assert response.json()["detail"] == "Usuario sin organización asignada"


def test_root_can_operate_on_selected_organization(client, seed, headers_for):
    response = client.get("/api/v1/clients/", headers=headers_for(seed.users.root, seed.org.id))

    assert response.status_code == 200
    assert response.json()["total"] == 1


def test_tenants_do_not_see_each_other(client, seed, headers_for):
    response = client.get("/api/v1/clients/", headers=headers_for(seed.users.other_admin))

    assert response.status_code == 200
    assert response.json()["total"] == 0

    response = client.get(f"/api/v1/clients/{seed.customer.id}", headers=headers_for(seed.users.other_admin))
    assert response.status_code == 404


def test_role_restrictions(client, seed, seller_headers):
    response = client.post(
        "/api/v1/suppliers/",
        json={"legal_name": "Nuevo SA", "tax_identification": "30-22222222-2"},
        headers=seller_headers
    )

    assert response.status_code == 403


def test_module_listing(client):
    response = client.get("/api/v1/modules")

    assert response.status_code == 200
    prefixes = {module["prefix"] for module in response.json()["modules"]}
    assert {"/stock", "/sales", "/petty-cash", "/reports", "/payments"} <= prefixes
