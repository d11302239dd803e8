from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from party_cart.api.routes_cart import cart_session, open_storage
from party_cart.db import get_db
from party_cart.repositories.group_order_repo import GroupOrderRepository
from party_cart.schemas.group_order_schema import OriginalOrder
from party_cart.services.group_order_service import GroupOrderResolver

router = APIRouter(prefix="/api/group-orders", tags=["group-orders"])


def _resolver(request: Request, response: Response) -> GroupOrderResolver:
    return GroupOrderResolver(open_storage(cart_session(request, response)))


def _lookup(share_token: str, db: Session) -> OriginalOrder:
    order = GroupOrderRepository(db).get_by_share_token(share_token)
    if not order:
        raise HTTPException(status_code=404, detail="Group order not found")
    return OriginalOrder.model_validate(order)


@router.get("/context", summary="Group order this cart session has joined")
def get_context(request: Request, response: Response):
    ctx = _resolver(request, response).current()
    return {"joining": ctx is not None, "context": ctx.model_dump() if ctx else None}


@router.post("/decline", summary="Decline joining a group order")
def decline(request: Request, response: Response):
    _resolver(request, response).decline()
    return {"ok": True, "decision": "no"}


@router.get("/{share_token}", summary="Look up a group order by share token")
def get_group_order(share_token: str, db: Session = Depends(get_db)):
    return {"success": True, "order": _lookup(share_token, db).model_dump()}


@router.post("/{share_token}/join", summary="Join a group order from this cart session")
def join_group_order(share_token: str, request: Request, response: Response, db: Session = Depends(get_db)):
    order = _lookup(share_token, db)
    ctx = _resolver(request, response).resolve_join(share_token, order)
    return {"ok": True, "decision": "yes", "context": ctx.model_dump()}
