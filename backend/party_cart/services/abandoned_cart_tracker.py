import enum
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from pydantic import ValidationError

from party_cart.adapters.telemetry_client import AbandonedCartClient
from party_cart.config import settings
from party_cart.constants import (
    ADDRESS_KEY,
    AFFILIATE_CODE_KEY,
    CUSTOMER_KEY,
    SESSION_ID_KEY,
    UNIFIED_CART_KEY,
)
from party_cart.schemas.cart_schema import CartLineItem
from party_cart.schemas.group_order_schema import AbandonedCartPayload
from party_cart.services.durable_store import DurableStore
from party_cart.utils.log import get_logger

log = get_logger("telemetry")


class TrackerState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    FIRED = "fired"


def _as_dict(value: Any) -> Dict:
    return value if isinstance(value, dict) else {}


def _field(value: Any) -> Optional[str]:
    """Text for a scalar customer field; containers and booleans are dropped."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return str(value).strip() or None


class AbandonedCartTracker:
    """
    Debounced, fire-and-forget reporting of the current cart.

    schedule() (re)arms a one-shot scheduler job `debounce_seconds` in the
    future; calls inside the window replace the job, so only the last one
    fires. track_now() reports immediately. Neither ever raises.
    """

    def __init__(
        self,
        storage: DurableStore,
        client: Optional[AbandonedCartClient] = None,
        scheduler: Optional[BackgroundScheduler] = None,
        debounce_seconds: Optional[float] = None,
        job_id: str = "abandoned-cart",
        items_provider: Optional[Callable[[], List[CartLineItem]]] = None,
    ):
        self.storage = storage
        self.client = client or AbandonedCartClient()
        self.scheduler = scheduler
        self._owns_scheduler = False
        self.debounce_seconds = (
            settings.ABANDONED_CART_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.job_id = job_id
        self.items_provider = items_provider
        self.state = TrackerState.IDLE
        self.deadline: Optional[datetime] = None

    def init(self) -> "AbandonedCartTracker":
        if self.scheduler is None:
            self.scheduler = BackgroundScheduler()
            self._owns_scheduler = True
        if not self.scheduler.running:
            self.scheduler.start()
        return self

    def dispose(self) -> None:
        self.cancel()
        if self._owns_scheduler and self.scheduler is not None:
            self.scheduler.shutdown(wait=False)
            self.scheduler = None
            self._owns_scheduler = False

    # debounce

    def schedule(self) -> None:
        if self.scheduler is None:
            log.debug("schedule() without a scheduler; telemetry disabled")
            return
        self.deadline = datetime.now(timezone.utc) + timedelta(seconds=self.debounce_seconds)
        try:
            self.scheduler.add_job(
                self._fire,
                "date",
                run_date=self.deadline,
                id=self.job_id,
                replace_existing=True,
                misfire_grace_time=None,
            )
            self.state = TrackerState.PENDING
        except Exception as e:
            log.warning(f"could not schedule abandoned-cart report: {e!r}")

    def cancel(self) -> None:
        if self.scheduler is not None and self.state is TrackerState.PENDING:
            try:
                self.scheduler.remove_job(self.job_id)
            except JobLookupError:
                pass
        self.state = TrackerState.IDLE
        self.deadline = None

    def _fire(self) -> None:
        self.state = TrackerState.FIRED
        try:
            self.track_now()
        finally:
            self.state = TrackerState.IDLE
            self.deadline = None

    # reporting

    def session_id(self) -> str:
        sid = self.storage.get(SESSION_ID_KEY)
        if isinstance(sid, str) and sid:
            return sid
        sid = f"session_{uuid.uuid4().hex}"
        self.storage.set(SESSION_ID_KEY, sid)
        return sid

    def _current_items(self) -> List[CartLineItem]:
        if self.items_provider is not None:
            return list(self.items_provider())
        rows = self.storage.get(UNIFIED_CART_KEY, [])
        items = []
        for row in rows if isinstance(rows, list) else []:
            try:
                items.append(CartLineItem.model_validate(row))
            except ValidationError:
                continue
        return items

    def build_payload(self) -> Optional[AbandonedCartPayload]:
        items = self._current_items()
        if not items:
            return None

        customer = _as_dict(self.storage.get(CUSTOMER_KEY))
        address = self.storage.get(ADDRESS_KEY)
        if not isinstance(address, (dict, str)) or not address:
            address = None
        affiliate = self.storage.get(AFFILIATE_CODE_KEY)

        name = _field(customer.get("name")) or " ".join(
            p for p in (_field(customer.get("firstName")), _field(customer.get("lastName"))) if p
        )
        subtotal = round(sum(it.price * it.quantity for it in items), 2)
        return AbandonedCartPayload(
            session_id=self.session_id(),
            cart_items=[it.to_storage() for it in items],
            customer_email=_field(customer.get("email")),
            customer_name=name or None,
            customer_phone=_field(customer.get("phone")),
            delivery_address=address,
            subtotal=subtotal,
            total_amount=subtotal,
            affiliate_code=affiliate if isinstance(affiliate, str) and affiliate else None,
        )

    def track_now(self) -> bool:
        """Report the cart immediately. Returns True if a report was delivered."""
        try:
            payload = self.build_payload()
        except Exception as e:
            log.warning(f"could not build abandoned-cart payload: {e!r}")
            return False
        if payload is None:
            log.debug("cart empty, nothing to report")
            return False
        try:
            self.client.send(payload.model_dump(exclude_none=True))
        except Exception as e:
            log.warning(f"abandoned-cart report for {payload.session_id} failed: {e}")
            return False
        log.info(f"abandoned-cart report sent for {payload.session_id} ({len(payload.cart_items)} lines)")
        return True
