from fastapi.testclient import TestClient

from party_cart.adapters.telemetry_client import AbandonedCartClient
from party_cart.db import init_db
from party_cart.main import app
from party_cart.repositories.storage_repo import MemoryStorageBackend
from party_cart.services.abandoned_cart_tracker import AbandonedCartTracker
from party_cart.services.cart_service import UnifiedCartService
from party_cart.services.durable_store import DurableStore

client = TestClient(app)


def setup_module(module):
    init_db()


def _payload(**overrides):
    payload = {
        "session_id": "session_abc",
        "cart_items": [{"id": "beer1", "title": "Shiner", "name": "Shiner", "price": 12.99, "quantity": 2}],
        "customer_email": "jo@example.com",
        "subtotal": 25.98,
        "total_amount": 25.98,
        "affiliate_code": "LAKE5",
    }
    payload.update(overrides)
    return payload


def test_records_abandoned_cart():
    res = client.post("/api/abandoned-carts", json=_payload())
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["abandoned_order_id"]

    rec = client.get("/api/abandoned-carts/session_abc").json()
    assert rec["customer_email"] == "jo@example.com"
    assert rec["affiliate_code"] == "LAKE5"
    assert rec["cart_items"][0]["quantity"] == 2


def test_upserts_by_session_id():
    first = client.post("/api/abandoned-carts", json=_payload(session_id="session_upsert")).json()
    second = client.post(
        "/api/abandoned-carts",
        json=_payload(session_id="session_upsert", subtotal=12.99, total_amount=12.99),
    ).json()
    assert first["abandoned_order_id"] == second["abandoned_order_id"]
    assert client.get("/api/abandoned-carts/session_upsert").json()["subtotal"] == 12.99


def test_empty_cart_is_acknowledged_not_stored():
    res = client.post("/api/abandoned-carts", json=_payload(session_id="session_empty", cart_items=[]))
    assert res.json() == {"success": True, "message": "No items to track"}
    assert client.get("/api/abandoned-carts/session_empty").status_code == 404


def test_missing_session_id_is_422():
    payload = _payload()
    payload.pop("session_id")
    assert client.post("/api/abandoned-carts", json=payload).status_code == 422


def test_tracker_reports_to_collector():
    storage = DurableStore(MemoryStorageBackend())
    storage.init()
    tracker = AbandonedCartTracker(
        storage,
        client=AbandonedCartClient(url="/api/abandoned-carts", session=TestClient(app)),
    )
    cart = UnifiedCartService(storage).init()
    cart.add_to_cart({"id": "seltzer", "title": "Ranch Water", "price": 18})

    assert tracker.track_now() is True
    rec = client.get(f"/api/abandoned-carts/{tracker.session_id()}").json()
    assert rec["cart_items"][0]["id"] == "seltzer"
    assert rec["subtotal"] == 18
