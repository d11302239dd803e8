from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from party_cart.db import get_db
from party_cart.repositories.abandoned_order_repo import AbandonedOrderRepository
from party_cart.schemas.group_order_schema import AbandonedCartPayload
from party_cart.utils.log import get_logger
from party_cart.utils.transactions import smart_transaction

router = APIRouter(prefix="/api/abandoned-carts", tags=["abandoned-carts"])

log = get_logger("collector")


@router.post("", summary="Record (upsert) an abandoned cart by session id")
def track_abandoned_cart(payload: AbandonedCartPayload, db: Session = Depends(get_db)):
    log.info(f"tracking abandoned cart for session {payload.session_id}")
    if not payload.cart_items:
        return {"success": True, "message": "No items to track"}

    fields = payload.model_dump(exclude={"session_id"})
    try:
        with smart_transaction(db):
            rec = AbandonedOrderRepository(db).upsert(payload.session_id, fields)
            rec_id = rec.id
    except Exception:
        log.exception(f"error tracking abandoned cart for session {payload.session_id}")
        raise HTTPException(status_code=500, detail="Error tracking abandoned cart")
    return {"success": True, "abandoned_order_id": rec_id}


@router.get("/{session_id}", summary="Get the abandoned cart recorded for a session")
def get_abandoned_cart(session_id: str, db: Session = Depends(get_db)):
    rec = AbandonedOrderRepository(db).get_by_session(session_id)
    if not rec:
        raise HTTPException(status_code=404, detail="Abandoned cart not found")
    return {
        "id": rec.id,
        "session_id": rec.session_id,
        "cart_items": rec.cart_items,
        "customer_email": rec.customer_email,
        "customer_name": rec.customer_name,
        "customer_phone": rec.customer_phone,
        "delivery_address": rec.delivery_address,
        "subtotal": rec.subtotal,
        "total_amount": rec.total_amount,
        "affiliate_code": rec.affiliate_code,
        "last_activity_at": rec.last_activity_at.isoformat() if rec.last_activity_at else None,
    }
