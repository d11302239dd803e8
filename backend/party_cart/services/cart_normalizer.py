import math
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError

from party_cart.schemas.cart_schema import CartLineItem, RawCartItem
from party_cart.utils.log import get_logger

log = get_logger("cart")

RawInput = Union[RawCartItem, CartLineItem, Dict[str, Any]]


def parse_number(value: Any) -> Optional[float]:
    """Finite float from a number or numeric string, else None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(n) or math.isinf(n):
        return None
    return n


def coerce_number(value: Any) -> float:
    """Like parse_number, but anything unparseable becomes 0."""
    n = parse_number(value)
    return 0.0 if n is None else n


def coerce_quantity(value: Any) -> int:
    """max(0, floor(number))"""
    return max(0, math.floor(coerce_number(value)))


def is_unbounded(value: Any) -> bool:
    """True for +infinity, which no quantity can be set to."""
    if isinstance(value, bool):
        return False
    try:
        n = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return False
    return math.isinf(n) and n > 0


def _to_raw(raw: RawInput) -> Optional[RawCartItem]:
    try:
        if isinstance(raw, RawCartItem):
            return raw
        if isinstance(raw, CartLineItem):
            return RawCartItem.model_validate(raw.model_dump(by_alias=True))
        if isinstance(raw, BaseModel):
            return RawCartItem.model_validate(raw.model_dump())
        return RawCartItem.model_validate(raw)
    except ValidationError as e:
        log.warning(f"rejecting malformed cart item: {e.error_count()} validation error(s)")
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _build(raw: RawCartItem, quantity: int) -> Optional[CartLineItem]:
    item_id = _text(raw.id) or _text(raw.productId)
    price = coerce_number(raw.price)
    if price < 0:
        price = 0.0
    if not item_id:
        log.debug("rejecting cart item without id")
        return None
    if price <= 0:
        log.debug(f"rejecting cart item {item_id!r}: non-positive price")
        return None
    title = _text(raw.title) or _text(raw.name) or item_id
    name = _text(raw.name) or _text(raw.title) or item_id
    return CartLineItem(
        id=item_id,
        product_id=_text(raw.productId) or item_id,
        title=title,
        name=name,
        price=price,
        quantity=quantity,
        image=_text(raw.image),
        variant=_text(raw.variant) or None,
        event_name=_text(raw.eventName) or None,
        category=_text(raw.category) or None,
    )


def normalize(raw: RawInput) -> Optional[CartLineItem]:
    """
    Map a single-add input onto a CartLineItem with quantity 1.
    Returns None when the item must not be inserted.
    """
    parsed = _to_raw(raw)
    if parsed is None:
        return None
    return _build(parsed, 1)


def normalize_bulk(raws: Iterable[RawInput]) -> List[CartLineItem]:
    """
    Map a bulk import, keeping each entry's quantity (default 1).

    Rejected entries and entries with a non-positive quantity are dropped;
    repeated (id, variant) pairs are folded into one line.
    """
    lines: Dict[Tuple[str, Optional[str]], CartLineItem] = {}
    for raw in raws:
        parsed = _to_raw(raw)
        if parsed is None:
            continue
        n = parse_number(parsed.quantity)
        qty = 1 if n is None else max(0, math.floor(n))
        if qty <= 0:
            log.debug(f"dropping bulk entry {parsed.id!r} with quantity {parsed.quantity!r}")
            continue
        item = _build(parsed, qty)
        if item is None:
            continue
        existing = lines.get(item.key)
        if existing:
            existing.quantity += item.quantity
        else:
            lines[item.key] = item
    return list(lines.values())
