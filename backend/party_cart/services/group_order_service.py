from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from party_cart.constants import (
    ADD_TO_ORDER_KEY,
    APPLIED_DISCOUNT_KEY,
    GROUP_DISCOUNT_PREFIX,
    GROUP_ORDER_DECISION_KEY,
    GROUP_ORDER_DELIVERY_KEY,
    GROUP_ORDER_TOKEN_KEY,
)
from party_cart.schemas.group_order_schema import GroupOrderContext, OriginalOrder
from party_cart.services.durable_store import DurableStore
from party_cart.utils.log import get_logger

log = get_logger("group_order")


def discount_code_for(last_name: Optional[str]) -> Optional[str]:
    last_name = (last_name or "").strip()
    if not last_name:
        return None
    return GROUP_DISCOUNT_PREFIX + last_name.upper()


class GroupOrderResolver:
    """
    Turns a shared order into the join context that checkout consumes.
    Writes to the durable store only; the cart is never touched here.
    """

    def __init__(self, storage: DurableStore):
        self.storage = storage

    def resolve_join(
        self, share_token: str, original_order: Union[OriginalOrder, Dict[str, Any]]
    ) -> GroupOrderContext:
        if not isinstance(original_order, OriginalOrder):
            try:
                original_order = OriginalOrder.model_validate(original_order or {})
            except ValidationError as e:
                log.warning(f"group order {share_token}: unusable order record ({e.error_count()} errors)")
                original_order = OriginalOrder()

        ctx = GroupOrderContext(
            share_token=share_token,
            delivery_date=original_order.delivery_date,
            delivery_time=original_order.delivery_time,
            delivery_address=original_order.delivery_address,
            discount_code=discount_code_for(original_order.buyer_last_name),
        )

        self.storage.set(
            GROUP_ORDER_DELIVERY_KEY,
            {
                "shareToken": ctx.share_token,
                "date": ctx.delivery_date,
                "timeSlot": ctx.delivery_time,
                "address": ctx.delivery_address,
            },
        )
        if ctx.discount_code:
            self.storage.set(
                APPLIED_DISCOUNT_KEY,
                {"code": ctx.discount_code, "type": "free_shipping", "value": 0},
            )
        else:
            self.storage.remove(APPLIED_DISCOUNT_KEY)
        self.storage.set(GROUP_ORDER_TOKEN_KEY, share_token)
        self.storage.set(ADD_TO_ORDER_KEY, True)
        self.storage.set(GROUP_ORDER_DECISION_KEY, "yes")

        log.info(f"joined group order {share_token} (discount={ctx.discount_code})")
        return ctx

    def decline(self) -> None:
        self.storage.set(GROUP_ORDER_DECISION_KEY, "no")
        for key in (GROUP_ORDER_TOKEN_KEY, GROUP_ORDER_DELIVERY_KEY, ADD_TO_ORDER_KEY, APPLIED_DISCOUNT_KEY):
            self.storage.remove(key)
        log.info("group order declined")

    def current(self) -> Optional[GroupOrderContext]:
        """The persisted join context, or None when not joining a group order."""
        if self.storage.get(GROUP_ORDER_DECISION_KEY) != "yes":
            return None
        token = self.storage.get(GROUP_ORDER_TOKEN_KEY)
        info = self.storage.get(GROUP_ORDER_DELIVERY_KEY)
        if not isinstance(token, str) or not isinstance(info, dict):
            return None
        discount = self.storage.get(APPLIED_DISCOUNT_KEY)
        code = discount.get("code") if isinstance(discount, dict) else None
        try:
            return GroupOrderContext(
                share_token=token,
                delivery_date=info.get("date"),
                delivery_time=info.get("timeSlot"),
                delivery_address=info.get("address"),
                discount_code=code,
            )
        except ValidationError:
            log.warning("stored group order context is malformed, ignoring")
            return None
