from __future__ import annotations

# Durable-store keys shared with the storefront.
UNIFIED_CART_KEY = "unified-cart"
LEGACY_CART_KEY = "partyondelivery_cart"
SESSION_ID_KEY = "partyondelivery_session_id"
CUSTOMER_KEY = "partyondelivery_customer"
ADDRESS_KEY = "partyondelivery_address"
AFFILIATE_CODE_KEY = "affiliate_code"

GROUP_ORDER_TOKEN_KEY = "groupOrderToken"
GROUP_ORDER_DECISION_KEY = "groupOrderJoinDecision"
GROUP_ORDER_DELIVERY_KEY = "groupOrderDeliveryInfo"
ADD_TO_ORDER_KEY = "partyondelivery_add_to_order"
APPLIED_DISCOUNT_KEY = "partyondelivery_applied_discount"

GROUP_DISCOUNT_PREFIX = "GROUP-SHIPPING-"
