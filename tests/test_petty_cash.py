from app.shared.database.models import Organization, PettyCashDeposit
from app.shared.services.otp_service import OTPService
from app.shared.services.s3_service import S3Service


def create_deposit(client, headers, amount=10000, branch_id=None):
    payload = {"description": "Fondo semanal", "amount": amount, "date": "2026-03-01T09:00:00"}
    if branch_id is not None:
        payload["branch_id"] = branch_id
    return client.post("/api/v1/petty-cash/deposits", json=payload, headers=headers)


def create_withdrawal(client, headers, user, amount, deposit_id=None):
    payload = {
        "user_id": user.id,
        "user_name": f"{user.first_name} {user.last_name}",
        "amount_given": amount,
        "date": "2026-03-02T10:00:00",
    }
    if deposit_id is not None:
        payload["deposit_id"] = deposit_id
    return client.post("/api/v1/petty-cash/withdrawals", json=payload, headers=headers)


def spend(client, headers, withdrawal_id, amount, motive="combustible", **fields):
    data = {"withdrawal_id": withdrawal_id, "motive": motive, "amount": amount, "date": "2026-03-03T12:00:00"}
    data.update(fields)
    return client.post("/api/v1/petty-cash/spends", data=data, headers=headers)


def enable_secure_mode(db_session, organization_id):
    organization = db_session.get(Organization, organization_id)
    organization.secure_mode_enabled = True
    organization.otp_secret = OTPService.generate_secret()
    organization.otp_verified = True
    db_session.commit()
    return organization.otp_secret


def test_general_branch_deposit(client, seed, cashier_headers):
    response = create_deposit(client, cashier_headers, branch_id="__general__")

    assert response.status_code == 201
    deposit = response.json()["deposit"]
    assert deposit["branch_id"] is None
    assert deposit["status"] == "OPEN"
    assert deposit["available"] == 10000


def test_deposit_rejects_foreign_branch(client, seed, cashier_headers):
    response = create_deposit(client, cashier_headers, branch_id=str(seed.foreign_branch.id))

    assert response.status_code == 400


def test_sellers_cannot_create_deposits(client, seed, seller_headers):
    assert create_deposit(client, seller_headers).status_code == 403


def test_withdrawal_checks_available_funds(client, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=1000).json()["deposit"]["id"]
    create_withdrawal(client, cashier_headers, seed.users.seller, 600, deposit_id)

    response = create_withdrawal(client, cashier_headers, seed.users.seller, 500, deposit_id)

    assert response.status_code == 400
    assert "Fondos insuficientes" in response.json()["detail"]


def test_withdrawing_everything_closes_deposit(client, db_session, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=1000).json()["deposit"]["id"]

    response = create_withdrawal(client, cashier_headers, seed.users.seller, 1000)

    assert response.status_code == 201
    assert response.json()["withdrawal"]["deposit_id"] == deposit_id
    db_session.expire_all()
    assert db_session.get(PettyCashDeposit, deposit_id).status == "CLOSED"

    again = create_withdrawal(client, cashier_headers, seed.users.seller, 10, deposit_id)
    assert again.status_code == 400


def test_spends_justify_withdrawal(client, seed, cashier_headers, seller_headers):
    create_deposit(client, cashier_headers, amount=1000)
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 500).json()["withdrawal"]["id"]

    first = spend(client, seller_headers, withdrawal_id, 200)
    assert first.status_code == 201
    assert first.json()["spend"]["description"] == "combustible"

    assert spend(client, seller_headers, withdrawal_id, 400).status_code == 400

    spend(client, seller_headers, withdrawal_id, 300, ticket_number="0001-123")
    deposits = client.get("/api/v1/petty-cash/deposits", headers=seller_headers).json()["deposits"]
    withdrawal = deposits[0]["withdrawals"][0]
    assert withdrawal["status"] == "JUSTIFIED"
    assert withdrawal["amount_justified"] == 500
    assert len(withdrawal["spends"]) == 2

    assert spend(client, seller_headers, withdrawal_id, 1).status_code == 400


def test_other_motive_requires_description(client, seed, cashier_headers):
    create_deposit(client, cashier_headers)
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 500).json()["withdrawal"]["id"]

    response = spend(client, cashier_headers, withdrawal_id, 100, motive="otros")

    assert response.status_code == 400
    assert "Otros" in response.json()["detail"]


def test_spend_with_ticket_uploads_to_storage(client, seed, cashier_headers, monkeypatch):
    uploaded = {}

    def fake_upload(self, data, key, content_type=None):
        uploaded.update(key=key, content_type=content_type, size=len(data))
        return {"key": key, "url": f"https://bucket.test/{key}"}

    monkeypatch.setattr(S3Service, "upload_bytes", fake_upload)
    create_deposit(client, cashier_headers)
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 500).json()["withdrawal"]["id"]

    response = client.post(
        "/api/v1/petty-cash/spends",
        data={"withdrawal_id": withdrawal_id, "motive": "peajes", "amount": 150, "date": "2026-03-03T12:00:00"},
        files={"ticket": ("Ticket Peaje.png", b"\x89PNG fake", "image/png")},
        headers=cashier_headers
    )

    assert response.status_code == 201
    assert uploaded["key"].startswith(f"uploads/tickets/petty-cash/{seed.org.id}/{withdrawal_id}/")
    assert uploaded["key"].endswith("-ticket-peaje.png")
    assert response.json()["spend"]["ticket_url"] == f"https://bucket.test/{uploaded['key']}"


def test_spend_rejects_unsupported_ticket(client, seed, cashier_headers):
    create_deposit(client, cashier_headers)
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 500).json()["withdrawal"]["id"]

    response = client.post(
        "/api/v1/petty-cash/spends",
        data={"withdrawal_id": withdrawal_id, "motive": "peajes", "amount": 150, "date": "2026-03-03T12:00:00"},
        files={"ticket": ("planilla.txt", b"hola", "text/plain")},
        headers=cashier_headers
    )

    assert response.status_code == 400


def test_deposit_with_withdrawals_cannot_be_deleted(client, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers).json()["deposit"]["id"]
    create_withdrawal(client, cashier_headers, seed.users.seller, 100, deposit_id)

    response = client.delete(f"/api/v1/petty-cash/deposits/{deposit_id}", headers=cashier_headers)

    assert response.status_code == 400


def test_deleting_withdrawal_reopens_deposit(client, db_session, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=300).json()["deposit"]["id"]
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 300).json()["withdrawal"]["id"]

    response = client.delete(f"/api/v1/petty-cash/withdrawals/{withdrawal_id}", headers=cashier_headers)

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(PettyCashDeposit, deposit_id).status == "OPEN"


def test_secure_mode_requires_otp_to_delete(client, db_session, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers).json()["deposit"]["id"]
    secret = enable_secure_mode(db_session, seed.org.id)

    response = client.delete(f"/api/v1/petty-cash/deposits/{deposit_id}", headers=cashier_headers)
    assert response.status_code == 403

    wrong = client.delete(
        f"/api/v1/petty-cash/deposits/{deposit_id}",
        headers=dict(cashier_headers, **{"X-OTP-Token": "abc123"})
    )
    assert wrong.status_code == 403

    response = client.delete(
        f"/api/v1/petty-cash/deposits/{deposit_id}",
        headers=dict(cashier_headers, **{"X-OTP-Token": OTPService.current_token(secret)})
    )
    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(PettyCashDeposit, deposit_id) is None


def test_movements_balance(client, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=1000, branch_id=str(seed.central.id)).json()["deposit"]["id"]
    create_deposit(client, cashier_headers, amount=400)
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 500, deposit_id).json()["withdrawal"]["id"]
    spend(client, cashier_headers, withdrawal_id, 250, ticket_number="A-1")

    response = client.get("/api/v1/petty-cash/movements", headers=cashier_headers)

    data = response.json()
    assert data["total_debe"] == 1400
    assert data["total_haber"] == 250
    assert data["balance"] == 1150
    haber = next(m for m in data["movements"] if m["type"] == "HABER")
    assert haber["ticket_number"] == "A-1"
    assert haber["user_id"] == seed.users.seller.id


def test_update_spend_movement_recalculates_justification(client, seed, cashier_headers):
    create_deposit(client, cashier_headers, amount=1000)
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 500).json()["withdrawal"]["id"]
    spend_id = spend(client, cashier_headers, withdrawal_id, 500).json()["spend"]["id"]

    response = client.put(
        f"/api/v1/petty-cash/movements/{spend_id}",
        json={"type": "HABER", "amount": 200, "description": "Nafta"},
        headers=cashier_headers
    )

    assert response.status_code == 200
    assert response.json()["amount"] == 200
    deposits = client.get("/api/v1/petty-cash/deposits", headers=cashier_headers).json()["deposits"]
    assert deposits[0]["withdrawals"][0]["status"] == "PARTIALLY_JUSTIFIED"


def test_deposit_amount_cannot_drop_below_withdrawn(client, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=1000).json()["deposit"]["id"]
    create_withdrawal(client, cashier_headers, seed.users.seller, 600, deposit_id)

    response = client.put(
        f"/api/v1/petty-cash/movements/{deposit_id}",
        json={"type": "DEBE", "amount": 500},
        headers=cashier_headers
    )

    assert response.status_code == 400


def test_cent_amounts_justify_exactly(client, db_session, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=30.30).json()["deposit"]["id"]
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 30.30).json()["withdrawal"]["id"]

    assert spend(client, cashier_headers, withdrawal_id, "10.10").status_code == 201
    assert spend(client, cashier_headers, withdrawal_id, "20.20").status_code == 201

    deposits = client.get("/api/v1/petty-cash/deposits", headers=cashier_headers).json()["deposits"]
    withdrawal = deposits[0]["withdrawals"][0]
    assert withdrawal["status"] == "JUSTIFIED"
    assert withdrawal["amount_justified"] == 30.30
    db_session.expire_all()
    assert db_session.get(PettyCashDeposit, deposit_id).status == "CLOSED"


def test_small_cent_spends_are_not_rejected(client, seed, cashier_headers):
    create_deposit(client, cashier_headers, amount=1)
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 0.30).json()["withdrawal"]["id"]

    assert spend(client, cashier_headers, withdrawal_id, "0.10").status_code == 201
    response = spend(client, cashier_headers, withdrawal_id, "0.20")

    assert response.status_code == 201
    deposits = client.get("/api/v1/petty-cash/deposits", headers=cashier_headers).json()["deposits"]
    assert deposits[0]["withdrawals"][0]["status"] == "JUSTIFIED"
    assert deposits[0]["available"] == 0.70


def test_editing_deposit_amount_closes_and_reopens(client, db_session, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=1000).json()["deposit"]["id"]
    create_withdrawal(client, cashier_headers, seed.users.seller, 600, deposit_id)

    response = client.put(
        f"/api/v1/petty-cash/movements/{deposit_id}",
        json={"type": "DEBE", "amount": 600},
        headers=cashier_headers
    )

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(PettyCashDeposit, deposit_id).status == "CLOSED"
    assert create_withdrawal(client, cashier_headers, seed.users.seller, 10, deposit_id).status_code == 400

    client.put(
        f"/api/v1/petty-cash/movements/{deposit_id}",
        json={"type": "DEBE", "amount": 900},
        headers=cashier_headers
    )

    db_session.expire_all()
    assert db_session.get(PettyCashDeposit, deposit_id).status == "OPEN"
    assert create_withdrawal(client, cashier_headers, seed.users.seller, 300, deposit_id).status_code == 201


def test_editing_spend_to_full_amount_justifies_and_closes(client, db_session, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=500).json()["deposit"]["id"]
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 500).json()["withdrawal"]["id"]
    spend_id = spend(client, cashier_headers, withdrawal_id, 350).json()["spend"]["id"]

    response = client.put(
        f"/api/v1/petty-cash/movements/{spend_id}",
        json={"type": "HABER", "amount": 500},
        headers=cashier_headers
    )

    assert response.status_code == 200
    deposits = client.get("/api/v1/petty-cash/deposits", headers=cashier_headers).json()["deposits"]
    assert deposits[0]["withdrawals"][0]["status"] == "JUSTIFIED"
    assert deposits[0]["status"] == "CLOSED"
    assert spend(client, cashier_headers, withdrawal_id, 1).status_code == 400
    db_session.expire_all()
    assert db_session.get(PettyCashDeposit, deposit_id).status == "CLOSED"


def test_movements_pdf(client, seed, cashier_headers):
    deposit_id = create_deposit(client, cashier_headers, amount=1000).json()["deposit"]["id"]
    withdrawal_id = create_withdrawal(client, cashier_headers, seed.users.seller, 400, deposit_id).json()["withdrawal"]["id"]
    spend(client, cashier_headers, withdrawal_id, 150)

    response = client.get(
        "/api/v1/petty-cash/movements/pdf?from_date=2026-03-01&to_date=2026-03-01",
        headers=cashier_headers
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "reporte_actividad_caja_chica_2026-03-01_a_2026-03-01.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_movements_pdf_without_deposits(client, seed, cashier_headers):
    create_deposit(client, cashier_headers)

    response = client.get(
        "/api/v1/petty-cash/movements/pdf?from_date=2026-04-01&to_date=2026-04-30&branch_id=__general__",
        headers=cashier_headers
    )

    assert response.status_code == 200
    assert "_vacio.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_movements_pdf_rejects_inverted_range(client, seed, cashier_headers, seller_headers):
    url = "/api/v1/petty-cash/movements/pdf?from_date=2026-03-10&to_date=2026-03-01"

    assert client.get(url, headers=cashier_headers).status_code == 400
    assert client.get(url, headers=seller_headers).status_code == 403
