from fastapi.testclient import TestClient
from entrydesk.main import app

client = TestClient(app)

def test_health_ok():
    r = client.get("/health", headers={"x-request-id": "req-123"})
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["request_id"] == "req-123"
    assert data["deadline_timezone"]
    assert r.headers["X-Request-ID"] == "req-123"

def test_version_ok():
    r = client.get("/version")
    assert r.status_code == 200
    data = r.json()
    assert data["name"] == "entrydesk-api"
    assert "version" in data and "git_sha" in data

def test_ready_checks_database():
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": True}

def test_unknown_route_uses_error_shape():
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}
