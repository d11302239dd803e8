from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict


class OriginalOrder(BaseModel):
    """The order being joined, as returned by the group-order lookup."""

    model_config = ConfigDict(from_attributes=True)
    share_token: Optional[str] = None
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    buyer_last_name: Optional[str] = None
    delivery_date: Optional[str] = None
    delivery_time: Optional[str] = None
    delivery_address: Optional[Union[str, Dict[str, Any]]] = None


class GroupOrderContext(BaseModel):
    share_token: str
    delivery_date: Optional[str] = None
    delivery_time: Optional[str] = None
    delivery_address: Optional[Union[str, Dict[str, Any]]] = None
    discount_code: Optional[str] = None


class AbandonedCartPayload(BaseModel):
    session_id: str
    cart_items: List[Dict[str, Any]] = []
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    delivery_address: Optional[Union[str, Dict[str, Any]]] = None
    subtotal: float = 0
    total_amount: float = 0
    affiliate_code: Optional[str] = None
