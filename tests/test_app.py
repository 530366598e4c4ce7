from fastapi.testclient import TestClient

from main import create_app


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_root_describes_the_service(client):
    body = client.get("/").json()
    assert body["service"] == "Epic Quiz API"
    assert "/quiz" in body["endpoints"]


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/nowhere")
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "Not Found"
    assert "timestamp" in body


def test_wildcard_cors_without_credentials(client):
    r = client.get("/health", headers={"Origin": "https://example.com"})
    assert r.headers["access-control-allow-origin"] == "*"
    assert "access-control-allow-credentials" not in r.headers


def test_listed_origins_allow_credentials(settings, engine):
    settings.cors_origins = ["https://app.example.com"]
    with TestClient(create_app(settings, engine=engine)) as client:
        r = client.get("/health", headers={"Origin": "https://app.example.com"})
    assert r.headers["access-control-allow-origin"] == "https://app.example.com"
    assert r.headers["access-control-allow-credentials"] == "true"
