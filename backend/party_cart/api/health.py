from fastapi import APIRouter, Request
from sqlalchemy import text

from party_cart.adapters.telemetry_client import AbandonedCartClient
from party_cart.db import engine

router = APIRouter()


@router.get("/health", tags=["health"])
def health(request: Request):
    db_ok = False
    telemetry_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except Exception:
        db_ok = False
    try:
        client = getattr(request.app.state, "telemetry_client", None) or AbandonedCartClient()
        telemetry_ok = client.health_check()
    except Exception:
        telemetry_ok = False

    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "ok" if db_ok and telemetry_ok else "degraded",
        "db": db_ok,
        "telemetry_client": telemetry_ok,
        "scheduler": bool(scheduler and scheduler.running),
    }
