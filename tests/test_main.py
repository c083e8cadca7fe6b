from app.config.settings import settings


def test_root_and_health(client):
    assert client.get("/").json()["api"] == "/api/v1"

    response = client.get("/health")

    assert response.json()["status"] == "healthy"
    assert response.json()["version"] == settings.version


def test_request_id_is_generated(client):
    response = client.get("/health")

    assert len(response.headers["X-Request-ID"]) == 12
    assert float(response.headers["X-Process-Time"]) >= 0


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-abc"})

    assert response.headers["X-Request-ID"] == "req-abc"


def test_module_health_endpoints(client):
    for module in ["clients", "suppliers", "sales", "logistics", "petty-cash", "current-accounts"]:
        assert client.get(f"/api/v1/{module}/health").status_code == 200
