from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import HTTPException

from app.config.settings import settings
from app.modules.payments import service as payments_service
from app.modules.payments.service import PaymentsService, resolve_access_token
from app.shared.database.models import MercadoPagoOAuth, Payment, PaymentNotification

WEBHOOK = "/api/v1/payments/mercadopago/webhook"


class FakeMercadoPago:
    """Reemplazo de MercadoPagoClient que responde desde memoria"""

    payments = {}
    orders = []
    preferences = []
    open_orders = {}
    failing_searches = set()
    failing_cancels = set()
    cancelled = []

    def __init__(self, access_token=None):
        self.access_token = access_token

    async def get_payment(self, payment_id):
        return dict(self.payments[payment_id])

    async def exchange_code(self, code, redirect_uri):
        return {
            "access_token": "APP_USR-oauth-token", "refresh_token": "refresh",
            "public_key": "APP_USR-public", "scope": "offline_access read write", "expires_in": 3600,
        }

    async def get_user_info(self):
        return {"id": 998877, "email": "cobros@motosdelsur.test"}

    async def create_preference(self, preference):
        self.preferences.append(preference)
        return {"id": "PREF01", "init_point": "https://mp.test/checkout/PREF01"}

    async def create_order(self, order, idempotency_key):
        self.orders.append(order)
        return {
            "id": "ORD01", "status": "created",
            "config": {"point": {"terminal_id": order["config"]["point"]["terminal_id"]}},
            "transactions": {"payments": [{"id": "PAY01", "status": "pending"}]},
        }

    async def search_orders(self, terminal_id, status):
        if status in self.failing_searches:
            raise HTTPException(status_code=502, detail=f"Error de MercadoPago buscando {status}")
        return {"results": [dict(o) for o in self.open_orders.get(status, [])]}

    async def cancel_order(self, order_id, idempotency_key):
        if order_id in self.failing_cancels:
            raise HTTPException(status_code=409, detail="La order ya está en la terminal")
        self.cancelled.append(order_id)
        return {"id": order_id, "status": "canceled"}

    async def get_order(self, order_id):
        return {
            "id": order_id, "status": "processed",
            "transactions": {"payments": [{"id": "PAY01", "status": "approved"}]},
        }


@pytest.fixture
def fake_mp(monkeypatch):
    FakeMercadoPago.payments = {}
    FakeMercadoPago.orders = []
    FakeMercadoPago.preferences = []
    FakeMercadoPago.open_orders = {}
    FakeMercadoPago.failing_searches = set()
    FakeMercadoPago.failing_cancels = set()
    FakeMercadoPago.cancelled = []
    monkeypatch.setattr(payments_service, "MercadoPagoClient", FakeMercadoPago)
    monkeypatch.setattr(settings, "MERCADOPAGO_ACCESS_TOKEN", "APP_USR-global")
    return FakeMercadoPago


@pytest.mark.parametrize("global_token,oauth_token,expected", [
    ("TEST-global", "APP_USR-oauth", ("TEST-global", "global-test")),
    ("APP_USR-global", "TEST-oauth", ("TEST-oauth", "oauth-test")),
    ("APP_USR-global", "APP_USR-oauth", ("APP_USR-oauth", "oauth-prod")),
    ("APP_USR-global", None, ("APP_USR-global", "global-prod")),
    (None, None, (None, "none")),
])
def test_resolve_access_token(global_token, oauth_token, expected):
    assert resolve_access_token(global_token, oauth_token) == expected


def test_preference_requires_oauth(client, seed, seller_headers):
    response = client.post(
        "/api/v1/payments/mercadopago/create-preference",
        json={"amount": 150000, "description": "Seña Honda CB 190R"},
        headers=seller_headers
    )

    assert response.status_code == 400


def test_webhook_ignores_other_types(client, seed):
    response = client.post(WEBHOOK, json={"type": "merchant_order", "data": {"id": "1"}})

    assert response.status_code == 200
    assert response.json() == {"received": True, "status": "ignored"}


def test_webhook_rejects_invalid_json(client, seed):
    response = client.post(WEBHOOK, content=b"{no es json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400


def test_webhook_registers_approved_payment_once(client, db_session, seed, fake_mp):
    fake_mp.payments["555"] = {
        "id": 555, "status": "approved", "status_detail": "accredited",
        "transaction_amount": 150000, "payment_method_id": "visa",
        "date_approved": "2026-03-10T15:30:00.000-03:00",
        "metadata": {"organization_id": seed.org.id},
        "payer": {"email": "juan@test.com"},
    }
    notification = {"type": "payment", "data": {"id": "555"}}

    first = client.post(WEBHOOK, json=notification)
    second = client.post(WEBHOOK, json=notification)

    assert first.status_code == 200
    assert first.json()["status"] == "approved"
    assert first.json()["credential_source"] == "global-prod"
    assert second.status_code == 200
    payments = db_session.query(Payment).filter(Payment.transaction_reference == "555").all()
    assert len(payments) == 1
    assert payments[0].organization_id == seed.org.id
    assert payments[0].payment_method == "MercadoPago - visa"
    assert db_session.query(PaymentNotification).filter(PaymentNotification.type == "payment").count() == 1


def test_webhook_without_organization_is_acknowledged(client, db_session, seed, fake_mp):
    fake_mp.payments["556"] = {"id": 556, "status": "approved", "transaction_amount": 10, "metadata": {}}

    response = client.post(WEBHOOK, json={"type": "payment", "data": {"id": "556"}})

    assert response.status_code == 200
    assert response.json()["status"] == "missing_organization"
    assert db_session.query(Payment).count() == 0


def test_point_minimum_amount(client, seed, seller_headers):
    response = client.post(
        "/api/v1/payments/mercadopago/point/create-payment-intent",
        json={"amount": 10, "description": "Accesorio", "device_id": "PAX_A910__SMARTPOS123"},
        headers=seller_headers
    )

    assert response.status_code == 400
    assert "mínimo" in response.json()["detail"]


def test_point_payment_intent(client, seed, seller_headers, fake_mp):
    response = client.post(
        "/api/v1/payments/mercadopago/point/create-payment-intent",
        json={"amount": 1500.5, "description": "Casco", "device_id": "PAX_A910__SMARTPOS123"},
        headers=seller_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["order_id"] == "ORD01"
    assert data["payment_id"] == "PAY01"
    assert data["terminal_id"] == "PAX_A910__SMARTPOS123"
    assert fake_mp.orders[0]["transactions"]["payments"][0]["amount"] == "1500.50"


CANCEL_INTENTS = "/api/v1/payments/mercadopago/point/cancel-device-intents/PAX_A910__SMARTPOS123"


def test_cancel_device_intents_without_orders(client, seed, seller_headers, fake_mp):
    response = client.post(CANCEL_INTENTS, headers=seller_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "no_active_orders"
    assert data["results"] == []
    assert fake_mp.cancelled == []


def test_cancel_device_intents_cancels_each_order_once(client, seed, seller_headers, fake_mp):
    fake_mp.open_orders = {
        "created": [{"id": "ORD01"}, {"id": "ORD02"}],
        "processing": [{"id": "ORD02"}],
        "pending": [{"id": "ORD03"}],
        "opened": [{"id": "ORD01"}, {"id": "ORD03"}],
    }

    response = client.post(CANCEL_INTENTS, headers=seller_headers)

    data = response.json()
    assert data["success"] is True
    assert data["status"] == "cancelled"
    assert [r["order_id"] for r in data["results"]] == ["ORD01", "ORD02", "ORD03"]
    assert sorted(fake_mp.cancelled) == ["ORD01", "ORD02", "ORD03"]


def test_cancel_device_intents_reports_partial_failures(client, seed, seller_headers, fake_mp):
    fake_mp.open_orders = {"created": [{"id": "ORD01"}], "opened": [{"id": "ORD02"}], "pending": [{"id": "ORD09"}]}
    fake_mp.failing_cancels = {"ORD02"}
    fake_mp.failing_searches = {"pending"}

    response = client.post(CANCEL_INTENTS, headers=seller_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert data["status"] == "partial"
    assert data["message"] == "1 de 2 orders canceladas"
    results = {r["order_id"]: r for r in data["results"]}
    assert results["ORD01"] == {"order_id": "ORD01", "status": "cancelled", "success": True, "error": None}
    assert results["ORD02"]["status"] == "error"
    assert results["ORD02"]["error"] == "La order ya está en la terminal"
    assert "ORD09" not in results
    assert fake_mp.cancelled == ["ORD01"]


def test_order_payment_status(client, seed, seller_headers, fake_mp):
    response = client.get("/api/v1/payments/mercadopago/point/payment-status/ORD07", headers=seller_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["order_id"] == "ORD07"
    assert data["status"] == "processed"
    assert data["payment_status"] == "approved"
    assert data["additional_info"]["transactions"]["payments"][0]["id"] == "PAY01"


def test_action_notifications_are_not_repeated(db_session, seed):
    service = PaymentsService(db_session, seed.org.id)

    assert service._notify_action({"id": "ACT1", "status": "processing"}) is True
    assert service._notify_action({"id": "ACT1", "status": "processing"}) is False
    assert service._notify_action({"id": "ACT1", "status": "finished"}) is True
    assert service._notify_action({"id": "ACT1", "status": "desconocido"}) is False

    messages = [n.message for n in db_session.query(PaymentNotification).order_by(PaymentNotification.id)]
    assert messages == ["⚙️ Point Smart: Procesando - ACT1", "✅ Point Smart: COMPLETADO - ACT1"]


def test_notifications_list_and_mark_read(client, db_session, seed, seller_headers, headers_for):
    PaymentsService(db_session, seed.org.id)._notify_action({"id": "ACT2", "status": "on_terminal"})

    response = client.get("/api/v1/payments/notifications?only_unread=true", headers=seller_headers)
    assert response.json()["total"] == 1
    notification_id = response.json()["notifications"][0]["id"]

    other = client.patch(
        f"/api/v1/payments/notifications/{notification_id}/read",
        headers=headers_for(seed.users.other_admin)
    )
    assert other.status_code == 404

    marked = client.patch(f"/api/v1/payments/notifications/{notification_id}/read", headers=seller_headers)
    assert marked.json()["notification"]["is_read"] is True

    response = client.get("/api/v1/payments/notifications?only_unread=true", headers=seller_headers)
    assert response.json()["total"] == 0


def test_oauth_url(client, seed, admin_headers, seller_headers, monkeypatch):
    monkeypatch.setattr(settings, "MERCADOPAGO_CLIENT_ID", "123456")

    assert client.get("/api/v1/payments/mercadopago/oauth/connect", headers=seller_headers).status_code == 403

    response = client.get("/api/v1/payments/mercadopago/oauth/connect?force_logout=true", headers=admin_headers)

    assert response.status_code == 200
    params = parse_qs(urlparse(response.json()["auth_url"]).query)
    assert params["client_id"] == ["123456"]
    assert params["state"] == [str(seed.org.id)]
    assert params["prompt"] == ["login"]
    assert params["redirect_uri"][0].endswith("/api/v1/payments/mercadopago/oauth/callback")


def test_oauth_callback_stores_credentials(client, db_session, seed, admin_headers, fake_mp):
    response = client.get(
        f"/api/v1/payments/mercadopago/oauth/callback?code=TG-abc&state={seed.org.id}",
        follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"].endswith("/configuration?mp_success=true")
    oauth = db_session.query(MercadoPagoOAuth).filter(MercadoPagoOAuth.organization_id == seed.org.id).one()
    assert oauth.email == "cobros@motosdelsur.test"
    assert oauth.mercadopago_user_id == "998877"

    status = client.get("/api/v1/payments/mercadopago/status", headers=admin_headers).json()
    assert status["connected"] is True
    assert status["credential_source"] == "oauth-prod"

    assert client.delete("/api/v1/payments/mercadopago/oauth", headers=admin_headers).status_code == 200
    assert client.get("/api/v1/payments/mercadopago/status", headers=admin_headers).json()["connected"] is False


@pytest.mark.parametrize("query,error", [
    ("error=access_denied", "access_denied"),
    ("code=TG-abc", "missing_params"),
    ("code=TG-abc&state=abc", "invalid_state"),
    ("code=TG-abc&state=9999", "invalid_state"),
])
def test_oauth_callback_errors(client, seed, query, error):
    response = client.get(f"/api/v1/payments/mercadopago/oauth/callback?{query}", follow_redirects=False)

    assert response.status_code == 302
    assert parse_qs(urlparse(response.headers["location"]).query)["mp_error"] == [error]


def test_preference_with_oauth_credentials(client, db_session, seed, seller_headers, fake_mp):
    db_session.add(MercadoPagoOAuth(
        organization_id=seed.org.id, access_token="APP_USR-oauth", public_key="APP_USR-public"
    ))
    db_session.commit()

    response = client.post(
        "/api/v1/payments/mercadopago/create-preference",
        json={
            "amount": 150000, "description": "Seña", "motorcycle_id": 7, "sale_id": "venta-7",
            "additional_info": {"brand": "Honda", "model": "CB 190R", "year": 2024}
        },
        headers=seller_headers
    )

    assert response.status_code == 200
    assert response.json()["preference_id"] == "PREF01"
    assert response.json()["public_key"] == "APP_USR-public"
    preference = fake_mp.preferences[0]
    assert preference["external_reference"] == "venta-7"
    assert preference["items"][0]["description"] == "Honda CB 190R 2024"
    assert preference["metadata"]["organization_id"] == seed.org.id
