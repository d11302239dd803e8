import uuid
from typing import Any, List, Optional, Union

from fastapi import APIRouter, Body, HTTPException, Request, Response
from pydantic import BaseModel

from party_cart.config import settings
from party_cart.repositories.storage_repo import SqlStorageBackend
from party_cart.schemas.cart_schema import RawCartItem
from party_cart.services.abandoned_cart_tracker import AbandonedCartTracker
from party_cart.services.cart_service import UnifiedCartService
from party_cart.services.durable_store import DurableStore

router = APIRouter(prefix="/api/cart", tags=["cart"])


class QuantityIn(BaseModel):
    quantity: Any = None
    variant: Optional[str] = None


def cart_session(request: Request, response: Response) -> str:
    """Cart session id from the cookie, minting (and setting) one when missing."""
    namespace = request.cookies.get(settings.CART_SESSION_COOKIE) or uuid.uuid4().hex
    response.set_cookie(settings.CART_SESSION_COOKIE, namespace, httponly=False, samesite="Lax")
    return namespace


def open_storage(namespace: str) -> DurableStore:
    store = DurableStore(SqlStorageBackend(namespace))
    store.init()
    return store


def _tracker(request: Request, storage: DurableStore, namespace: str) -> AbandonedCartTracker:
    return AbandonedCartTracker(
        storage,
        client=getattr(request.app.state, "telemetry_client", None),
        scheduler=getattr(request.app.state, "scheduler", None),
        job_id=f"abandoned-cart:{namespace}",
    )


def _open_cart(request: Request, response: Response) -> UnifiedCartService:
    namespace = cart_session(request, response)
    storage = open_storage(namespace)
    return UnifiedCartService(storage, tracker=_tracker(request, storage, namespace)).init()


def _cart_body(cart: UnifiedCartService) -> dict:
    return {
        "items": [it.to_storage() for it in cart.items],
        "total_items": cart.total_items(),
        "total_price": cart.total_price(),
        "cart_flash": cart.cart_flash,
    }


@router.get("", summary="Get cart")
def get_cart(request: Request, response: Response):
    return _cart_body(_open_cart(request, response))


@router.post("/items", summary="Add one unit of an item, or replace the cart with a list")
def add_items(
    request: Request,
    response: Response,
    payload: Union[List[RawCartItem], RawCartItem] = Body(...),
):
    cart = _open_cart(request, response)
    if not cart.add_to_cart(payload):
        raise HTTPException(status_code=400, detail="Invalid cart item: id and a positive price are required")
    return _cart_body(cart)


@router.patch("/items/{item_id}", summary="Set item quantity (0 removes the line)")
def update_quantity(item_id: str, payload: QuantityIn, request: Request, response: Response):
    cart = _open_cart(request, response)
    cart.update_quantity(item_id, payload.variant, payload.quantity)
    return _cart_body(cart)


@router.delete("/items/{item_id}", summary="Remove item")
def remove_item(item_id: str, request: Request, response: Response, variant: Optional[str] = None):
    cart = _open_cart(request, response)
    cart.remove_item(item_id, variant)
    return _cart_body(cart)


@router.delete("", summary="Empty cart")
def empty_cart(request: Request, response: Response):
    cart = _open_cart(request, response)
    cart.empty_cart()
    return _cart_body(cart)


@router.post("/track", summary="Report the cart to the abandoned-cart collector now")
def track_now(request: Request, response: Response):
    namespace = cart_session(request, response)
    storage = open_storage(namespace)
    sent = _tracker(request, storage, namespace).track_now()
    return {"sent": sent}
