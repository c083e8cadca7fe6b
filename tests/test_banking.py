from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.modules.banking.service import apply_promotion, promotion_applies_on
from app.shared.database.models import Bank, CardType, PaymentMethod, BankingPromotion, InstallmentPlan


@pytest.fixture
def catalog(db_session):
    credit = PaymentMethod(name="Tarjeta de Crédito", type="credit")
    galicia = Bank(name="Banco Galicia")
    visa = CardType(name="Visa Crédito", type="credit")
    master = CardType(name="Mastercard Crédito", type="credit")
    db_session.add_all([credit, galicia, visa, master])
    db_session.commit()
    return SimpleNamespace(credit=credit, galicia=galicia, visa=visa, master=master)


def promotion_payload(catalog, **overrides):
    payload = {
        "name": "Galicia 3 cuotas",
        "payment_method_id": catalog.credit.id,
        "bank_id": catalog.galicia.id,
        "discount_rate": 10,
        "installment_plans": [{"installments": 3, "interest_rate": 0}],
    }
    payload.update(overrides)
    return payload


def create_promotion(client, headers, catalog, **overrides):
    return client.post("/api/v1/banking/promotions", json=promotion_payload(catalog, **overrides), headers=headers)


def test_only_root_creates_banks(client, seed, admin_headers, headers_for):
    assert client.post("/api/v1/banking/banks", json={"name": "Macro"}, headers=admin_headers).status_code == 403

    response = client.post("/api/v1/banking/banks", json={"name": "Macro"}, headers=headers_for(seed.users.root))
    duplicate = client.post("/api/v1/banking/banks", json={"name": "macro"}, headers=headers_for(seed.users.root))

    assert response.status_code == 201
    assert duplicate.status_code == 400


def test_associate_card_types_skips_existing(client, seed, admin_headers, catalog):
    first = client.post(
        "/api/v1/banking/bank-cards",
        json={"bank_id": catalog.galicia.id, "card_type_ids": [catalog.visa.id]},
        headers=admin_headers
    )
    second = client.post(
        "/api/v1/banking/bank-cards",
        json={"bank_id": catalog.galicia.id, "card_type_ids": [catalog.visa.id, catalog.master.id]},
        headers=admin_headers
    )
    third = client.post(
        "/api/v1/banking/bank-cards",
        json={"bank_id": catalog.galicia.id, "card_type_ids": [catalog.master.id]},
        headers=admin_headers
    )

    assert first.json()["created"] == 1
    assert second.json()["created"] == 1
    assert second.json()["message"] == "1 tipo(s) de tarjeta asociados correctamente."
    assert third.json()["created"] == 0
    assert third.json()["message"] == "Todos los tipos de tarjeta seleccionados ya estaban asociados."
    assert len(third.json()["bank_cards"]) == 2


def test_associate_unknown_card_type(client, seed, admin_headers, catalog):
    response = client.post(
        "/api/v1/banking/bank-cards",
        json={"bank_id": catalog.galicia.id, "card_type_ids": [catalog.visa.id, 999]},
        headers=admin_headers
    )

    assert response.status_code == 404


def test_bank_card_used_by_promotion_cannot_be_removed(client, seed, admin_headers, catalog):
    bank_card_id = client.post(
        "/api/v1/banking/bank-cards",
        json={"bank_id": catalog.galicia.id, "card_type_ids": [catalog.visa.id]},
        headers=admin_headers
    ).json()["bank_cards"][0]["id"]
    promotion_id = create_promotion(client, admin_headers, catalog, bank_card_id=bank_card_id).json()["promotion"]["id"]

    response = client.delete(f"/api/v1/banking/bank-cards/{bank_card_id}", headers=admin_headers)
    assert response.status_code == 400
    assert "usada en promociones" in response.json()["detail"]

    client.delete(f"/api/v1/banking/promotions/{promotion_id}", headers=admin_headers)
    response = client.delete(f"/api/v1/banking/bank-cards/{bank_card_id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["bank_cards"] == []


def test_promotion_with_foreign_bank_card_is_rejected(client, seed, admin_headers, headers_for, catalog):
    foreign_bank_card = client.post(
        "/api/v1/banking/bank-cards",
        json={"bank_id": catalog.galicia.id, "card_type_ids": [catalog.visa.id]},
        headers=headers_for(seed.users.other_admin)
    ).json()["bank_cards"][0]["id"]

    response = create_promotion(client, admin_headers, catalog, bank_card_id=foreign_bank_card)

    assert response.status_code == 400


@pytest.mark.parametrize("overrides", [
    {"discount_rate": 10, "surcharge_rate": 5},
    {"active_days": ["lunes", "feriado"]},
    {"min_amount": 5000, "max_amount": 1000},
    {"start_date": "2026-05-01", "end_date": "2026-04-01"},
    {"installment_plans": [{"installments": 0}]},
])
def test_invalid_promotions(client, seed, admin_headers, catalog, overrides):
    assert create_promotion(client, admin_headers, catalog, **overrides).status_code == 422


def test_repeated_installment_plans(client, seed, admin_headers, catalog):
    response = create_promotion(
        client, admin_headers, catalog,
        installment_plans=[{"installments": 3}, {"installments": 3, "interest_rate": 5}]
    )

    assert response.status_code == 400


def test_create_promotion(client, seed, admin_headers, catalog):
    response = create_promotion(client, admin_headers, catalog, active_days=["Viernes"], min_amount=1000.50)

    assert response.status_code == 201
    promotion = response.json()["promotion"]
    assert promotion["payment_method_name"] == "Tarjeta de Crédito"
    assert promotion["bank_name"] == "Banco Galicia"
    assert promotion["active_days"] == ["viernes"]
    assert promotion["min_amount"] == 1000.50
    assert [p["installments"] for p in promotion["installment_plans"]] == [3]


def test_update_upserts_installment_plans(client, seed, admin_headers, catalog):
    promotion_id = create_promotion(client, admin_headers, catalog).json()["promotion"]["id"]

    response = client.put(
        f"/api/v1/banking/promotions/{promotion_id}",
        json=promotion_payload(catalog, name="Galicia 3 y 6", installment_plans=[
            {"installments": 6, "interest_rate": 12},
            {"installments": 3, "interest_rate": 2.5},
        ]),
        headers=admin_headers
    )

    assert response.status_code == 200
    promotion = response.json()["promotion"]
    assert promotion["name"] == "Galicia 3 y 6"
    plans = {p["installments"]: p["interest_rate"] for p in promotion["installment_plans"]}
    assert plans == {3: 2.5, 6: 12}


def test_list_promotions_for_a_day(client, seed, admin_headers, seller_headers, catalog):
    create_promotion(client, admin_headers, catalog, name="Lunes", active_days=["lunes"])
    create_promotion(client, admin_headers, catalog, name="Siempre")
    create_promotion(client, admin_headers, catalog, name="Vencida", end_date="2026-01-31")
    disabled = create_promotion(client, admin_headers, catalog, name="Apagada").json()["promotion"]["id"]
    client.patch(f"/api/v1/banking/promotions/{disabled}/toggle", json={"is_enabled": False}, headers=admin_headers)

    # 2026-03-02 es lunes
    monday = client.get("/api/v1/banking/promotions?on_date=2026-03-02", headers=seller_headers).json()
    tuesday = client.get("/api/v1/banking/promotions?on_date=2026-03-03", headers=seller_headers).json()
    everything = client.get("/api/v1/banking/promotions", headers=seller_headers).json()

    assert monday["day"] == "lunes"
    assert [p["name"] for p in monday["promotions"]] == ["Lunes", "Siempre"]
    assert [p["name"] for p in tuesday["promotions"]] == ["Siempre"]
    assert everything["total"] == 4


def test_calculate_discount_with_installments(client, seed, seller_headers, admin_headers, catalog):
    promotion_id = create_promotion(
        client, admin_headers, catalog,
        installment_plans=[{"installments": 3, "interest_rate": 15}]
    ).json()["promotion"]["id"]

    response = client.post(
        f"/api/v1/banking/promotions/{promotion_id}/calculate",
        json={"amount": 100000, "installments": 3},
        headers=seller_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["discount_amount"] == 10000
    assert data["total_interest"] == 13500
    assert data["final_amount"] == 103500
    assert data["installment_amount"] == 34500


def test_calculate_without_matching_plan_is_single_payment(client, seed, seller_headers, admin_headers, catalog):
    promotion_id = create_promotion(
        client, admin_headers, catalog, discount_rate=None, surcharge_rate=8
    ).json()["promotion"]["id"]

    data = client.post(
        f"/api/v1/banking/promotions/{promotion_id}/calculate",
        json={"amount": 1234.56, "installments": 12},
        headers=seller_headers
    ).json()

    assert data["surcharge_amount"] == 98.76
    assert data["final_amount"] == 1333.32
    assert data["installments"] is None
    assert data["installment_amount"] is None


def test_calculate_respects_amount_range(client, seed, seller_headers, admin_headers, catalog):
    promotion_id = create_promotion(client, admin_headers, catalog, min_amount=5000).json()["promotion"]["id"]

    response = client.post(
        f"/api/v1/banking/promotions/{promotion_id}/calculate", json={"amount": 4999.99}, headers=seller_headers
    )

    assert response.status_code == 400


def test_disabled_installment_plan_is_ignored(client, seed, seller_headers, admin_headers, catalog):
    promotion = create_promotion(client, admin_headers, catalog).json()["promotion"]
    plan_id = promotion["installment_plans"][0]["id"]

    toggled = client.patch(
        f"/api/v1/banking/installment-plans/{plan_id}/toggle", json={"is_enabled": False}, headers=admin_headers
    )
    data = client.post(
        f"/api/v1/banking/promotions/{promotion['id']}/calculate",
        json={"amount": 900, "installments": 3},
        headers=seller_headers
    ).json()

    assert toggled.json()["promotion"]["installment_plans"][0]["is_enabled"] is False
    assert data["final_amount"] == 810
    assert data["installment_amount"] is None


def test_promotion_of_other_organization_is_not_found(client, seed, admin_headers, headers_for, catalog):
    promotion_id = create_promotion(client, admin_headers, catalog).json()["promotion"]["id"]
    other = headers_for(seed.users.other_admin)

    assert client.get(f"/api/v1/banking/promotions/{promotion_id}", headers=other).status_code == 404
    assert client.delete(f"/api/v1/banking/promotions/{promotion_id}", headers=other).status_code == 404


def test_apply_promotion_rounds_to_cents():
    plans = [InstallmentPlan(installments=3, interest_rate=10, is_enabled=True)]

    result = apply_promotion(Decimal("100.00"), 0, 0, plans, 3)

    assert result["final_amount"] == Decimal("110.00")
    assert result["installment_amount"] == Decimal("36.67")


def test_promotion_applies_on_validity_window():
    promotion = BankingPromotion(
        is_enabled=True, active_days=["sábado"], start_date=date(2026, 3, 1), end_date=date(2026, 3, 31)
    )

    assert promotion_applies_on(promotion, date(2026, 3, 7))
    assert not promotion_applies_on(promotion, date(2026, 3, 8))
    assert not promotion_applies_on(promotion, date(2026, 4, 4))
