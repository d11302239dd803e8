from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from party_cart.adapters.telemetry_client import AbandonedCartClient
from party_cart.api.health import router as health_router
from party_cart.api.routes_abandoned import router as abandoned_router
from party_cart.api.routes_cart import router as cart_router
from party_cart.api.routes_group_orders import router as group_orders_router
from party_cart.config import settings
from party_cart.db import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    # debounced abandoned-cart reports run as one-shot jobs on this scheduler
    scheduler = BackgroundScheduler()
    scheduler.start()
    app.state.scheduler = scheduler
    app.state.telemetry_client = AbandonedCartClient()

    try:
        yield
    finally:
        scheduler.shutdown(wait=False)
        app.state.scheduler = None


app = FastAPI(title="Party Delivery Cart - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(cart_router, tags=["cart"])

app.include_router(group_orders_router, tags=["group-orders"])

app.include_router(abandoned_router, tags=["abandoned-carts"])
