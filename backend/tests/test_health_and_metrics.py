from stacka.main import app
from stacka.settings import settings


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_readyz_pings_database(client):
    response = client.get("/readyz")

    assert response.status_code == 200
    assert response.json()["checks"]["database"]["ok"] is True


def test_readyz_without_session_factory(client):
    client.app.state.db_session_factory = None

    response = client.get("/readyz")

    assert response.status_code == 503
    assert response.json()["status"] == "unavailable"


def test_metrics_exposes_request_counters(client):
    client.get("/healthz")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_metrics_requires_token_in_prod(client):
    app.state.app_settings = settings.model_copy(
        update={"app_env": "prod", "metrics_token": "metrics-token-1234"}
    )

    denied = client.get("/metrics")
    allowed = client.get("/metrics", headers={"Authorization": "Bearer metrics-token-1234"})

    assert denied.status_code == 401
    assert allowed.status_code == 200


def test_request_id_echoed(client):
    response = client.get("/healthz", headers={"X-Request-ID": "req-abc"})

    assert response.headers["X-Request-ID"] == "req-abc"


def test_request_id_generated_when_missing(client):
    response = client.get("/healthz")

    assert response.headers["X-Request-ID"]
