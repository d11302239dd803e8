from party_cart.db import init_db
from party_cart.main import app
from fastapi.testclient import TestClient

client = TestClient(app)


def setup_module(module):
    init_db()


def test_health_ok():
    res = client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert body["db"] is True
    assert body["telemetry_client"] is True
    assert "scheduler" in body


def test_lifespan_starts_scheduler():
    with TestClient(app) as c:
        body = c.get("/api/health").json()
        assert body["scheduler"] is True
