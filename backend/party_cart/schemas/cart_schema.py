# backend/party_cart/schemas/cart_schema.py
from typing import Any, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

Label = Union[str, int, float]


class RawCartItem(BaseModel):
    """Loose input shape accepted by the normalizer; every field is optional."""

    model_config = ConfigDict(extra="ignore")
    id: Optional[Label] = None
    productId: Optional[Label] = None
    title: Optional[Label] = None
    name: Optional[Label] = None
    price: Any = None
    quantity: Any = None
    image: Optional[Label] = None
    variant: Optional[Label] = None
    eventName: Optional[Label] = None
    category: Optional[Label] = None


class CartLineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    product_id: Optional[str] = Field(default=None, alias="productId")
    title: str = ""
    name: str = ""
    price: float = Field(ge=0)
    quantity: int = Field(gt=0)
    image: str = ""
    variant: Optional[str] = None
    event_name: Optional[str] = Field(default=None, alias="eventName")
    category: Optional[str] = None

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        return (self.id, self.variant or None)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
