from party_cart.constants import LEGACY_CART_KEY, UNIFIED_CART_KEY
from party_cart.services.cart_normalizer import normalize_bulk
from party_cart.utils.log import get_logger

log = get_logger("cart")


def migrate_legacy_cart(cart) -> bool:
    """
    Absorb the legacy `partyondelivery_cart` list into an empty unified cart.

    Runs at most once per `cart.legacy_checked` guard and only while the
    unified cart is empty and has never been written. Any persisted
    `unified-cart` value, even `[]`, marks the session as migrated, so a line
    removed after migration stays removed on later loads. The legacy key is
    left in place; only empty_cart() deletes it.
    Returns True when items were migrated.
    """
    if cart.legacy_checked:
        return False
    cart.legacy_checked = True

    if cart.total_items() > 0:
        return False
    if cart.storage.get(UNIFIED_CART_KEY) is not None:
        return False

    try:
        legacy = cart.storage.get(LEGACY_CART_KEY)
        if legacy is None:
            return False
        if not isinstance(legacy, list):
            raise ValueError(f"expected a list, got {type(legacy).__name__}")
        items = normalize_bulk(legacy)
    except Exception as e:
        log.warning(f"legacy cart migration skipped: {e}")
        return False

    if not items:
        return False
    cart.replace_items(items)
    log.info(f"migrated {len(items)} legacy cart lines")
    return True
