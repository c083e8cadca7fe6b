from app.shared.database.models import User

NEW_ORGANIZATION = {
    "name": "Motos del Oeste",
    "slug": "motos-del-oeste",
    "admin_email": "admin@oeste.test",
    "admin_password": "clave123",
    "admin_first_name": "Laura",
    "admin_last_name": "Gómez",
}


def test_root_creates_organization_with_initial_admin(client, db_session, seed, headers_for):
    response = client.post("/api/v1/organizations/", json=NEW_ORGANIZATION, headers=headers_for(seed.users.root))

    assert response.status_code == 201
    data = response.json()
    assert data["organization"]["slug"] == "motos-del-oeste"

    admin = db_session.query(User).filter(User.id == data["admin_user_id"]).one()
    assert admin.role == "admin"
    assert admin.organization_id == data["organization"]["id"]


def test_duplicate_slug_is_rejected(client, seed, headers_for):
    payload = dict(NEW_ORGANIZATION, slug="motos-del-sur")
    response = client.post("/api/v1/organizations/", json=payload, headers=headers_for(seed.users.root))

    assert response.status_code == 400
    assert "ya está en uso" in response.json()["detail"]


def test_only_root_lists_organizations(client, seed, admin_headers, headers_for):
    assert client.get("/api/v1/organizations/", headers=admin_headers).status_code == 403

    response = client.get("/api/v1/organizations/", headers=headers_for(seed.users.root))
    assert response.status_code == 200
    assert {o["slug"] for o in response.json()} == {"motos-del-sur", "motos-del-norte"}


def test_admin_lists_only_own_users(client, seed, admin_headers):
    response = client.get("/api/v1/organizations/current/users", headers=admin_headers)

    assert response.status_code == 200
    emails = {u["email"] for u in response.json()["users"]}
    assert "admin@norte.test" not in emails
    assert {"admin@sur.test", "caja@sur.test", "vendedor@sur.test"} <= emails


def test_admin_cannot_create_users_in_other_organization(client, seed, admin_headers):
    response = client.post(
        f"/api/v1/organizations/{seed.other_org.id}/users",
        json={"email": "intruso@test.com", "password": "clave123", "first_name": "Intru", "last_name": "So"},
        headers=admin_headers
    )

    assert response.status_code == 403


def test_admin_creates_user_with_foreign_branch_fails(client, seed, admin_headers):
    response = client.post(
        f"/api/v1/organizations/{seed.org.id}/users",
        json={
            "email": "nuevo@sur.test", "password": "clave123", "first_name": "Nuevo",
            "last_name": "Vendedor", "branch_id": seed.foreign_branch.id
        },
        headers=admin_headers
    )

    assert response.status_code == 400


def test_admin_cannot_promote_to_root(client, seed, admin_headers):
    response = client.put(
        f"/api/v1/organizations/users/{seed.users.seller.id}",
        json={"role": "root"},
        headers=admin_headers
    )

    assert response.status_code == 403
