from app.shared.database.models import Organization
from app.shared.services.otp_service import OTPService


def test_create_branch_and_reject_duplicate(client, seed, admin_headers):
    response = client.post("/api/v1/configuration/branches", json={"name": "  Sucursal Sur "}, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["branch"]["name"] == "Sucursal Sur"
    assert response.json()["branch"]["order"] == 2

    response = client.post("/api/v1/configuration/branches", json={"name": "Casa Central"}, headers=admin_headers)
    assert response.status_code == 400


def test_same_branch_name_allowed_in_other_organization(client, seed, headers_for):
    response = client.post(
        "/api/v1/configuration/branches",
        json={"name": "Sucursal Norte"},
        headers=headers_for(seed.users.other_admin)
    )

    assert response.status_code == 201


def test_reorder_branches(client, seed, admin_headers):
    response = client.put(
        "/api/v1/configuration/branches/reorder",
        json={"branches": [{"id": seed.central.id, "order": 1}, {"id": seed.norte.id, "order": 0}]},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert [b["name"] for b in response.json()["branches"]] == ["Sucursal Norte", "Casa Central"]


def test_reorder_rejects_foreign_branch(client, seed, admin_headers):
    response = client.put(
        "/api/v1/configuration/branches/reorder",
        json={"branches": [{"id": seed.foreign_branch.id, "order": 0}]},
        headers=admin_headers
    )

    assert response.status_code == 404


def test_global_brands_are_managed_by_root(client, seed, admin_headers, headers_for):
    payload = {"name": "Yamaha", "color": "#1565c0", "models": ["FZ 25", "MT 03", "FZ 25"]}

    assert client.post("/api/v1/configuration/global-brands", json=payload, headers=admin_headers).status_code == 403

    response = client.post("/api/v1/configuration/global-brands", json=payload, headers=headers_for(seed.users.root))
    assert response.status_code == 201
    assert [m["name"] for m in response.json()["brand"]["models"]] == ["FZ 25", "MT 03"]


def test_associate_brand_creates_visible_models(client, seed, admin_headers, headers_for):
    created = client.post(
        "/api/v1/configuration/global-brands",
        json={"name": "Zanella", "models": ["RX 150", "ZR 250"]},
        headers=headers_for(seed.users.root)
    ).json()["brand"]

    response = client.post("/api/v1/configuration/brands", json={"brand_id": created["id"]}, headers=admin_headers)

    assert response.status_code == 201
    zanella = next(b for b in response.json()["brands"] if b["name"] == "Zanella")
    assert all(m["is_visible"] for m in zanella["models"])
    assert len(zanella["models"]) == 2

    again = client.post("/api/v1/configuration/brands", json={"brand_id": created["id"]}, headers=admin_headers)
    assert again.status_code == 400


def test_hide_model(client, seed, admin_headers):
    response = client.patch(
        f"/api/v1/configuration/models/{seed.model.id}/visibility",
        json={"is_visible": False},
        headers=admin_headers
    )

    assert response.status_code == 200
    response = client.get("/api/v1/configuration/brands?only_visible=true", headers=admin_headers)
    honda = next(b for b in response.json()["brands"] if b["name"] == "Honda")
    assert honda["models"] == []


def test_bitone_color_requires_second_color(client, seed, admin_headers):
    response = client.post(
        "/api/v1/configuration/colors",
        json={"name": "Azul y Blanco", "type": "BITONO", "color_one": "#0000ff"},
        headers=admin_headers
    )
    assert response.status_code == 422

    response = client.post(
        "/api/v1/configuration/colors",
        json={"name": "Azul y Blanco", "type": "BITONO", "color_one": "#0000ff", "color_two": "#ffffff"},
        headers=admin_headers
    )
    assert response.status_code == 201
    assert response.json()["color"]["order"] == 1


def test_secure_mode_setup_flow(client, db_session, seed, admin_headers):
    response = client.post("/api/v1/configuration/security/toggle", json={"enabled": True}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["secure_mode_enabled"] is True
    assert data["otp_verified"] is False
    assert data["otp_auth_url"].startswith("otpauth://totp/")

    response = client.post("/api/v1/configuration/security/verify", json={"token": "000000"}, headers=admin_headers)
    assert response.status_code == 400

    token = OTPService.current_token(data["otp_secret"])
    response = client.post("/api/v1/configuration/security/verify", json={"token": token}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["otp_verified"] is True

    db_session.expire_all()
    organization = db_session.query(Organization).filter(Organization.id == seed.org.id).one()
    assert organization.otp_verified is True


def test_disable_secure_mode_clears_secret(client, db_session, seed, admin_headers):
    client.post("/api/v1/configuration/security/toggle", json={"enabled": True}, headers=admin_headers)
    response = client.post("/api/v1/configuration/security/toggle", json={"enabled": False}, headers=admin_headers)

    assert response.status_code == 200
    db_session.expire_all()
    organization = db_session.query(Organization).filter(Organization.id == seed.org.id).one()
    assert organization.otp_secret is None
    assert organization.secure_mode_enabled is False
