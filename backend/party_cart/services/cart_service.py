import time
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError

from party_cart.config import settings
from party_cart.constants import LEGACY_CART_KEY, UNIFIED_CART_KEY
from party_cart.services.cart_normalizer import RawInput, coerce_quantity, is_unbounded, normalize, normalize_bulk
from party_cart.services.durable_store import DurableStore
from party_cart.services.legacy_migration import migrate_legacy_cart
from party_cart.schemas.cart_schema import CartLineItem
from party_cart.utils.log import get_logger

log = get_logger("cart")


def _key(item_id: str, variant: Optional[str]):
    return (item_id, variant or None)


class UnifiedCartService:
    """
    The single canonical cart: an insertion-ordered list of line items, unique
    per (id, variant), mirrored to the durable store after every mutation.

    The in-memory list is authoritative. A failed write is logged and never
    rolls the change back.
    """

    def __init__(self, storage: DurableStore, tracker=None):
        self.storage = storage
        self.tracker = tracker
        self._items: List[CartLineItem] = []
        self._flash_until = 0.0
        self.legacy_checked = False

    # lifecycle

    def init(self) -> "UnifiedCartService":
        self._items = self._load()
        migrate_legacy_cart(self)
        return self

    def dispose(self) -> None:
        self._items = []
        self.legacy_checked = False

    def reset_legacy_guard(self) -> None:
        self.legacy_checked = False

    def _load(self) -> List[CartLineItem]:
        stored = self.storage.get(UNIFIED_CART_KEY, [])
        if not isinstance(stored, list):
            log.warning(f"{UNIFIED_CART_KEY!r} is not a list, starting empty")
            return []
        items = []
        seen = set()
        for row in stored:
            try:
                item = CartLineItem.model_validate(row)
            except ValidationError:
                log.warning(f"skipping malformed stored cart line: {row!r}")
                continue
            if item.key in seen:
                continue
            seen.add(item.key)
            items.append(item)
        return items

    def _persist(self) -> bool:
        ok = self.storage.set(UNIFIED_CART_KEY, [it.to_storage() for it in self._items])
        if not ok:
            log.debug("cart kept in memory only (durable write failed or store unavailable)")
        return ok

    def _changed(self) -> None:
        self._persist()
        if self.tracker is not None:
            self.tracker.schedule()

    def _index(self, item_id: str, variant: Optional[str]) -> int:
        wanted = _key(item_id, variant)
        return next((i for i, it in enumerate(self._items) if it.key == wanted), -1)

    # reads

    @property
    def items(self) -> List[CartLineItem]:
        return [it.model_copy() for it in self._items]

    @property
    def cart_flash(self) -> bool:
        return time.monotonic() < self._flash_until

    def quantity_of(self, item_id: str, variant: Optional[str] = None) -> int:
        idx = self._index(item_id, variant)
        return self._items[idx].quantity if idx >= 0 else 0

    def total_items(self) -> int:
        return sum(it.quantity for it in self._items)

    def total_price(self) -> float:
        return round(sum(it.price * it.quantity for it in self._items), 2)

    # mutations

    def add_to_cart(self, item: Union[RawInput, Iterable[RawInput]]) -> bool:
        """
        Single item: add one unit (new line or +1 on the matching line).
        List: replace the whole cart with the normalized list.
        Returns False when a single item was rejected.
        """
        if isinstance(item, (list, tuple)):
            self._items = normalize_bulk(item)
            log.info(f"bulk replace: cart now has {len(self._items)} lines")
        else:
            line = normalize(item)
            if line is None:
                return False
            idx = self._index(line.id, line.variant)
            if idx >= 0:
                self._items[idx].quantity += 1
                log.debug(f"incremented {line.key} to {self._items[idx].quantity}")
            else:
                self._items.append(line)
                log.debug(f"added {line.key}")
        self._flash_until = time.monotonic() + settings.CART_FLASH_MS / 1000.0
        self._changed()
        return True

    def update_quantity(self, item_id: str, variant: Optional[str], quantity) -> None:
        if is_unbounded(quantity):
            log.debug(f"ignoring unbounded quantity for {(item_id, variant or None)}")
            return
        qty = coerce_quantity(quantity)
        idx = self._index(item_id, variant)
        if idx < 0:
            return
        if qty == 0:
            removed = self._items.pop(idx)
            log.debug(f"removed {removed.key} (quantity 0)")
        else:
            self._items[idx].quantity = qty
        self._changed()

    def remove_item(self, item_id: str, variant: Optional[str] = None) -> None:
        wanted = _key(item_id, variant)
        kept = [it for it in self._items if it.key != wanted]
        if len(kept) == len(self._items):
            return
        self._items = kept
        self._changed()

    def replace_items(self, items: List[CartLineItem]) -> None:
        self._items = list(items)
        self._changed()

    def empty_cart(self) -> None:
        self._items = []
        self.storage.remove(LEGACY_CART_KEY)
        self._changed()
